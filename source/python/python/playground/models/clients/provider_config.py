"""
Provider configuration.

Environment Variables:
- PLAYGROUND_DEFAULT_PROVIDER: Provider used when a request names none (default: gemini)
- PLAYGROUND_DEFAULT_MODEL: Model used when a request names none (default: gemini-3-flash-preview)
- PLAYGROUND_GEMINI_API_URL: Gemini REST base URL (default: https://generativelanguage.googleapis.com/v1beta)
- PLAYGROUND_GEMINI_THINKING_BUDGET: Reasoning token budget for thinking models (default: 8192)
- PLAYGROUND_ANTHROPIC_MAX_TOKENS: max_tokens sent to Anthropic (default: 4096)
"""

import os

from ...logs import get_logger

logger = get_logger("model")

DEFAULT_PROVIDER = "gemini"
DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_THINKING_BUDGET = 8192
DEFAULT_ANTHROPIC_MAX_TOKENS = 4096


def _int_from_env(name: str, default: int) -> int:
  value = os.environ.get(name)
  if not value:
    return default
  try:
    return int(value)
  except ValueError:
    logger.warning(f"Ignoring invalid {name}={value!r}, using {default}")
    return default


def get_default_provider() -> str:
  return os.environ.get("PLAYGROUND_DEFAULT_PROVIDER", DEFAULT_PROVIDER).strip().lower()


def get_default_model() -> str:
  return os.environ.get("PLAYGROUND_DEFAULT_MODEL", DEFAULT_MODEL)


def get_gemini_api_url() -> str:
  return os.environ.get("PLAYGROUND_GEMINI_API_URL", DEFAULT_GEMINI_API_URL).rstrip("/")


def get_gemini_thinking_budget() -> int:
  return _int_from_env("PLAYGROUND_GEMINI_THINKING_BUDGET", DEFAULT_GEMINI_THINKING_BUDGET)


def get_anthropic_max_tokens() -> int:
  return _int_from_env("PLAYGROUND_ANTHROPIC_MAX_TOKENS", DEFAULT_ANTHROPIC_MAX_TOKENS)
