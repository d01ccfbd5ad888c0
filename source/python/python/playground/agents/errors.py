"""
Exception classes for agent runs.

Configuration errors are raised before a run starts. Provider errors end a run. Tool
resolution and tool execution errors are caught by the agent loop and handed back to the
model as the tool's result so it can correct itself.
"""

from typing import Optional, Dict, Any


class PlaygroundError(Exception):
  """
  Base class for errors raised by the playground.

  Attributes:
    kind: Short, stable identifier of the error category
    context: Additional context about the failure
    message: Human-readable error message
  """

  kind = "PlaygroundError"

  def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
    self.context = context or {}
    if message is None:
      message = self._build_message()
    self.message = message
    super().__init__(message)

  def _build_message(self) -> str:
    parts = [self.kind]
    context_parts = [f"{k}: {v}" for k, v in self.context.items() if v is not None]
    if context_parts:
      parts.append(f"({', '.join(context_parts)})")
    return " ".join(parts)

  def to_dict(self) -> dict:
    return {"error": self.kind, "details": self.message}


class ConfigurationError(PlaygroundError):
  """Raised when a run request cannot be started as configured."""

  kind = "ConfigurationError"


class MissingCredentialError(ConfigurationError):
  kind = "MissingCredential"

  def __init__(self, provider: Optional[str] = None):
    super().__init__(
      message="Missing x-api-key header" if provider is None else f"Missing API key for provider '{provider}'",
      context={"provider": provider},
    )
    self.provider = provider


class UnknownProviderError(ConfigurationError):
  kind = "UnknownProvider"

  def __init__(self, provider: str, supported=()):
    supported = list(supported)
    message = f"Unknown model provider '{provider}'"
    if supported:
      message += f". Must be one of: {', '.join(supported)}"
    super().__init__(message=message, context={"provider": provider})
    self.provider = provider


class UninitializedSessionError(ConfigurationError):
  kind = "UninitializedSession"

  def __init__(self, message: Optional[str] = None):
    super().__init__(message=message or "Missing taskId or cookie. Initialize the world state first.")


class ProviderError(PlaygroundError):
  """
  Raised when a vendor API call fails or returns nothing usable.

  The vendor's raw error text is preserved in ``detail``. Provider errors are never retried
  by the agent loop; the caller decides whether to invoke it again.
  """

  kind = "ProviderError"

  def __init__(self, provider: str, detail: str, status_code: Optional[int] = None):
    self.provider = provider
    self.detail = detail
    self.status_code = status_code
    status = f" (HTTP {status_code})" if status_code is not None else ""
    super().__init__(
      message=f"{provider} request failed{status}: {detail}",
      context={"provider": provider, "status_code": status_code},
    )


class ToolResolutionError(PlaygroundError):
  """Raised when the model asks for a tool that is not in the active tool set."""

  kind = "ToolResolutionError"

  def __init__(self, name: str):
    self.name = name
    super().__init__(message=f'Error: Unknown function "{name}"', context={"tool": name})


class ToolExecutionError(PlaygroundError):
  """
  Raised by a world executor when an instruction could not be executed.

  The message is phrased for the model since it becomes the tool's result.
  """

  kind = "ToolExecutionError"

  def __init__(self, detail: str, name: Optional[str] = None, status_code: Optional[int] = None):
    self.name = name
    self.detail = detail
    self.status_code = status_code
    super().__init__(message=f"Error: {detail}", context={"tool": name, "status_code": status_code})


class StreamTransportError(PlaygroundError):
  """The observer of an event stream went away. Treated as a cancellation, never reported to the model."""

  kind = "StreamTransportError"
