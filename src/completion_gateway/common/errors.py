"""Gateway error types and the HTTP status each one maps to."""
from __future__ import annotations


class GatewayError(Exception):
    """Base error rendered as a plaintext body with ``status_code``."""

    status_code = 500


class ConfigurationError(GatewayError):
    """Required process configuration (the provider credential) is missing."""


class BadRequestError(GatewayError):
    status_code = 400


class UpstreamError(GatewayError):
    """The completion provider could not be reached or answered unusably."""


class StreamDecodeError(GatewayError):
    """A streamed upstream value could not be decoded.

    Never reaches the caller: by the time it is raised the stream headers are sent.
    """
