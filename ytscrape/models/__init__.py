"""Public models for the transcript service."""

from ytscrape.models.responses import ApiResponse

__all__ = ["ApiResponse"]
