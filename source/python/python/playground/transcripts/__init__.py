"""Transcript logging for provider requests and responses."""

from .transcript import (
  TranscriptConfig,
  get_transcript_config,
  log_raw_request,
  log_raw_response,
)

__all__ = [
  "TranscriptConfig",
  "get_transcript_config",
  "log_raw_request",
  "log_raw_response",
]
