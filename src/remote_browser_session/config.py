"""Configuration models for the remote browser session tool."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BROWSER_ZONE = "n8n_browser"


def _default_zone_name() -> str:
    return os.environ.get("BROWSER_ZONE") or DEFAULT_BROWSER_ZONE


class ZoneConfig(BaseModel):
    """Remote browser zone the debugging endpoint is derived from."""

    name: str = Field(default_factory=_default_zone_name)
    country: Optional[str] = None
    customer: Optional[str] = None
    password: Optional[str] = None
    host: str = "brd.superproxy.io"
    port: int = 9222

    @field_validator("country")
    @classmethod
    def _normalise_country(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().lower()
        return value or None

    def endpoint(self) -> str:
        """Compose the remote debugging endpoint for this zone."""

        if not self.customer or not self.password:
            raise ValueError(f"Zone '{self.name}' needs a customer id and password")
        country_suffix = f"-country-{self.country}" if self.country else ""
        return (
            f"wss://brd-customer-{self.customer}-zone-{self.name}{country_suffix}"
            f":{self.password}@{self.host}:{self.port}"
        )


class SessionConfig(BaseModel):
    """Settings for domain sessions and the commands run against them."""

    cdp_endpoint: Optional[str] = Field(
        default=None,
        description="Explicit remote debugging endpoint; takes precedence over the zone.",
    )
    default_domain: str = "default"
    navigation_timeout: float = Field(default=120.0, description="Seconds to wait for navigation.")
    action_timeout: float = Field(default=5.0, description="Seconds to wait for clicks.")
    wait_timeout: float = Field(default=30.0, description="Default wait-for-element timeout.")
    wait_until: Literal["commit", "domcontentloaded", "load", "networkidle"] = "domcontentloaded"
    connect_timeout: Optional[float] = None


class ScannerConfig(BaseModel):
    """Settings for the in-page clickability scan."""

    max_name_length: int = 80
    ref_attribute: str = "data-fastmcp-ref"


class ToolConfig(BaseSettings):
    """Top-level configuration for the session tool."""

    model_config = SettingsConfigDict(
        env_prefix="REMOTE_BROWSER_SESSION_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    zone: ZoneConfig = Field(default_factory=ZoneConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)

    def resolve_endpoint(self, zone: Optional[ZoneConfig] = None) -> str:
        """Return the endpoint sessions should connect to."""

        if self.session.cdp_endpoint:
            return self.session.cdp_endpoint
        return (zone or self.zone).endpoint()


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> ToolConfig:
    """Build the configuration from a YAML file, keyword overrides and the environment.

    Overrides beat the file and the file beats environment variables; within a
    section only the keys that are given are replaced.
    """

    sections: dict[str, Any] = {}
    if path:
        import yaml

        loaded = yaml.safe_load(path.read_text()) or {}
        if not isinstance(loaded, Mapping):
            raise ValueError(f"{path} must contain a mapping of configuration sections")
        sections = dict(loaded)
    sections = _merge_sections(sections, overrides)

    settings_kwargs: dict[str, Any] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    return ToolConfig(**sections, **settings_kwargs)


def _merge_sections(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = _merge_sections(current, value)
        else:
            merged[key] = value
    return merged
