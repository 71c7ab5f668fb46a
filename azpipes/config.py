"""Configuration loading from azpipes.yaml with env var interpolation."""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} patterns with environment variable values."""
    return re.sub(
        r"\$\{(\w+)\}",
        lambda m: os.environ.get(m.group(1), m.group(0)),
        value,
    )


def _walk_interpolate(obj):
    """Recursively interpolate env vars in a config dict."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_interpolate(v) for v in obj]
    return obj


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8765
    reload: bool = False


class LoggingConfig(BaseModel):
    level: str = "INFO"
    dir: str = "./logs"


class ApiVersions(BaseModel):
    """Default api-version query parameter per Azure DevOps endpoint."""

    create: str = "6.1-preview.1"
    permits: str = "7.1-preview.1"
    run: str = "7.0"
    build: str = "6.1-preview.6"


class AzureConfig(BaseModel):
    host: str = "dev.azure.com"
    default_branch: str = "main"
    poll_interval: float = Field(default=10.0, ge=0)
    # None keeps polling until the run reaches a terminal state
    poll_timeout: float | None = Field(default=None, ge=0)
    request_timeout: float = 30.0
    api_versions: ApiVersions = Field(default_factory=ApiVersions)


class AzureCredentialConfig(BaseModel):
    organizations: list[str] = Field(default_factory=list)
    personal_access_token: str | None = None


class AzureIntegrationConfig(BaseModel):
    host: str = "dev.azure.com"
    token: str | None = None
    credentials: list[AzureCredentialConfig] = Field(default_factory=list)


class IntegrationsConfig(BaseModel):
    azure: list[AzureIntegrationConfig] = Field(default_factory=list)


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    azure: AzureConfig = Field(default_factory=AzureConfig)
    integrations: IntegrationsConfig = Field(default_factory=IntegrationsConfig)


def load_config(path: str | Path = "azpipes.yaml") -> AppConfig:
    """Load config from YAML file with env var interpolation."""
    path = Path(path)
    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        raw = _walk_interpolate(raw)
    else:
        raw = {}
    return AppConfig(**raw)
