"""Configuration module."""

from ytscrape.config.settings import ServiceSettings

__all__ = ["ServiceSettings"]
