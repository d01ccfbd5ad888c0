from .session import Session
from .protocol import WorldExecutor
from .client import WorldClient, extract_session_cookie, format_output, snapshot_value
from .config import get_world_api_url, get_world_timeout

__all__ = [
  "Session",
  "WorldExecutor",
  "WorldClient",
  "extract_session_cookie",
  "format_output",
  "snapshot_value",
  "get_world_api_url",
  "get_world_timeout",
]
