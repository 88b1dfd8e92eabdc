"""Proxy data models for the proxy pool."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt

ProxyProtocol = Literal["http", "https"]

SUPPORTED_PROTOCOLS: tuple[str, ...] = ("http", "https")


class Proxy(BaseModel):
    """A single HTTP(S) egress point. Immutable and hashable."""

    model_config = ConfigDict(frozen=True)

    ip: str = Field(..., min_length=1)
    port: StrictInt = Field(..., ge=1, le=65535)
    protocol: ProxyProtocol

    @property
    def address(self) -> str:
        """``protocol://ip:port``, the deduplication key."""
        return f"{self.protocol}://{self.ip}:{self.port}"

    def as_url(self) -> str:
        return self.address

    def to_record(self) -> dict:
        return {"ip": self.ip, "port": self.port, "protocol": self.protocol}

    def __str__(self) -> str:
        return self.address


class ProxyCacheRecord(BaseModel):
    """On-disk snapshot of the last successful provider refresh."""

    model_config = ConfigDict(populate_by_name=True)

    expiry_in: datetime = Field(..., alias="expiryIn")
    config_string: str = Field(..., alias="configString")
    proxies: list[Proxy] = Field(default_factory=list)


class ProxyListFile(BaseModel):
    """Wrapped proxy list export."""

    model_config = ConfigDict(populate_by_name=True)

    generated_at: datetime = Field(..., alias="generatedAt")
    protocol: ProxyProtocol
    proxies: list[Proxy] = Field(default_factory=list)
