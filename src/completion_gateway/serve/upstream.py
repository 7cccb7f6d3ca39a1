"""Client for the hosted completion API."""
from __future__ import annotations
import logging
from typing import Any

import httpx

from completion_gateway.common.config import GatewaySettings
from completion_gateway.common.errors import ConfigurationError, UpstreamError
from completion_gateway.common.schema import GenerationRequest

LOGGER = logging.getLogger("completion_gateway.serve.upstream")


class UpstreamClient:
    """Issues completion requests with the configured credential.

    The response of ``open`` is left unread; callers must close it.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = settings.api_key
        self.url = settings.upstream_url
        self._client = httpx.Client(timeout=settings.timeout, transport=transport)

    @staticmethod
    def build_payload(req: GenerationRequest) -> dict[str, Any]:
        return {
            "model": req.model,
            "prompt": req.prompt,
            "max_tokens": req.max_tokens,
            "temperature": req.temperature,
            "stream": req.stream,
        }

    def open(self, req: GenerationRequest) -> httpx.Response:
        if not self.api_key:
            raise ConfigurationError("API key not set in TOGETHER_API_KEY environment variable")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        request = self._client.build_request("POST", self.url, headers=headers, json=self.build_payload(req))
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            LOGGER.error("Upstream request failed: %s", e)
            raise UpstreamError(f"request failed: {e}") from e

        if response.is_error:
            try:
                detail = response.read().decode("utf-8", errors="replace").strip()
            except httpx.HTTPError:
                detail = ""
            finally:
                response.close()
            LOGGER.error("Upstream returned status %s: %s", response.status_code, detail)
            raise UpstreamError(f"upstream returned status {response.status_code}: {detail}")
        return response

    def close(self) -> None:
        self._client.close()
