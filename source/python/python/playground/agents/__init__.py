from .errors import (
  PlaygroundError,
  ConfigurationError,
  MissingCredentialError,
  UnknownProviderError,
  UninitializedSessionError,
  ProviderError,
  ToolResolutionError,
  ToolExecutionError,
  StreamTransportError,
)
from .events import TextEvent, ToolCallEvent, ToolResultEvent, TokenUpdate, Done, ErrorEvent, TraceEvent
from .state import RunState, RunPhase
from .loop import AgentLoop
from .stream import EventStream, format_sse
from .summary import RunSummary, collect
from .request import RunRequest

__all__ = [
  "PlaygroundError",
  "ConfigurationError",
  "MissingCredentialError",
  "UnknownProviderError",
  "UninitializedSessionError",
  "ProviderError",
  "ToolResolutionError",
  "ToolExecutionError",
  "StreamTransportError",
  "TextEvent",
  "ToolCallEvent",
  "ToolResultEvent",
  "TokenUpdate",
  "Done",
  "ErrorEvent",
  "TraceEvent",
  "RunState",
  "RunPhase",
  "AgentLoop",
  "EventStream",
  "format_sse",
  "RunSummary",
  "collect",
  "RunRequest",
]
