"""Pydantic Settings for the transcript service.

All environment variables use the YTSCRAPE_ prefix.
Example: YTSCRAPE_PORT=8002, YTSCRAPE_PROXY_WARM_SECRET=my-secret
List values are given as JSON: YTSCRAPE_PROXY_COUNTRIES='["US", "DE"]'
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class ServiceSettings(BaseSettings):
    """Transcript service configuration validated from environment variables."""

    # Service
    port: int = 8002
    log_level: str = "INFO"
    log_file: str | None = None

    # Proxy pool
    proxy_enabled: bool = True
    proxy_protocol: Literal["http", "https"] = "http"
    proxy_countries: list[str] = []
    proxy_max_proxies: int = Field(default=20, ge=1)
    proxy_cache_period_minutes: float = Field(default=10, gt=0)
    proxy_cache_dir: str | None = None
    proxy_auto_rotate: bool = True
    proxy_auto_update: bool = False
    proxy_selected_providers: list[str] = []

    # Proxy list file (static list in, warm export out)
    proxy_list_path: str | None = None
    proxy_list_export_path: str = "proxy-list.json"
    proxy_list_write_enabled: bool = False
    proxy_warm_secret: str | None = None  # Bearer token for /api/v1/proxy/warm

    # Transcript pipeline
    transcript_retries_when_blocked: int = Field(default=5, ge=0)
    transcript_default_languages: list[str] = ["en"]
    transcript_request_timeout_seconds: float = Field(default=15.0, gt=0)

    # Residential proxy credentials (take precedence over the pool when set)
    webshare_username: str | None = None
    webshare_password: str | None = None

    model_config = {"env_prefix": "YTSCRAPE_"}

    @field_validator("proxy_countries")
    @classmethod
    def _upper_countries(cls, value: list[str]) -> list[str]:
        return [country.upper() for country in value]

    @property
    def webshare_enabled(self) -> bool:
        return bool(self.webshare_username and self.webshare_password)
