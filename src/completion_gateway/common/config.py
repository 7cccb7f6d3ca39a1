"""Gateway settings from an optional YAML file overlaid with environment variables."""
from __future__ import annotations
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from completion_gateway.common.schema import DEFAULT_MODEL

TOGETHER_API_URL = "https://api.together.xyz/v1/completions"

# field name -> environment variable
ENV_VARS = {
    "api_key": "TOGETHER_API_KEY",
    "upstream_url": "UPSTREAM_URL",
    "default_model": "DEFAULT_MODEL",
    "timeout": "UPSTREAM_TIMEOUT",
    "host": "HOST",
    "port": "PORT",
    "log_level": "LOG_LEVEL",
}


@dataclass(frozen=True)
class GatewaySettings:
    """Read-only process configuration shared by all requests."""

    api_key: str | None = None
    upstream_url: str = TOGETHER_API_URL
    default_model: str = DEFAULT_MODEL
    timeout: float = 120.0
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"


def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def load_settings(path: str | None = None) -> GatewaySettings:
    """
    Build settings from a YAML file and the environment.

    Args:
        path: YAML config path; falls back to the GATEWAY_CONFIG variable.
            Environment variables override values read from the file.
    """
    path = path or os.getenv("GATEWAY_CONFIG")
    raw: dict[str, Any] = {}
    if path:
        if not Path(path).exists():
            raise FileNotFoundError(f"Gateway config not found at {path}")
        raw.update(load_cfg(path))

    for name, var in ENV_VARS.items():
        value = os.getenv(var)
        if value:
            raw[name] = value

    known = {f.name for f in fields(GatewaySettings)}
    values = {k: v for k, v in raw.items() if k in known}
    if "timeout" in values:
        values["timeout"] = float(values["timeout"])
    if "port" in values:
        values["port"] = int(values["port"])
    if values.get("api_key") == "":
        values["api_key"] = None
    return GatewaySettings(**values)
