"""
Simulated-world configuration.

Environment Variables:
- PLAYGROUND_WORLD_API_URL: World API base URL (default: the hosted AppWorld API)
- PLAYGROUND_WORLD_TIMEOUT: Request timeout in seconds (default: 60)
"""

import os

DEFAULT_WORLD_API_URL = "https://appworld-api-838155728558.us-central1.run.app"
DEFAULT_WORLD_TIMEOUT = 60.0


def get_world_api_url() -> str:
  return os.environ.get("PLAYGROUND_WORLD_API_URL", DEFAULT_WORLD_API_URL).rstrip("/")


def get_world_timeout() -> float:
  value = os.environ.get("PLAYGROUND_WORLD_TIMEOUT")
  if not value:
    return DEFAULT_WORLD_TIMEOUT
  try:
    return float(value)
  except ValueError:
    return DEFAULT_WORLD_TIMEOUT
