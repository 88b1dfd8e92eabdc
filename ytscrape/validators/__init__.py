"""Validators for transcript request inputs."""

from ytscrape.validators.video_id import extract_video_id, is_video_id

__all__ = ["extract_video_id", "is_video_id"]
