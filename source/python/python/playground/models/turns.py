"""
Provider-neutral conversation turns.

A conversation is a sequence of three kinds of turns:

- ``UserTurn``: text typed by the user.
- ``ModelTurn``: what the model produced, visible text and zero or more tool calls,
  plus an optional ``ContinuationState`` that the originating adapter needs to
  rebuild its next request faithfully.
- ``ToolResultTurn``: the results of executing every call of the preceding model turn,
  one result per call and in the same order.

Adapters translate these turns into their vendor's native message list. The agent loop
never looks inside ``ContinuationState``; it only threads it through.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class ContinuationState:
  """
  Opaque, provider-tagged data replayed verbatim on the next request.

  For Gemini this is the complete list of response parts, including reasoning parts and
  their thought signatures. For Anthropic it is the list of content blocks and for OpenAI
  the raw assistant message.
  """

  provider: str
  data: Any


@dataclass
class ToolCall:
  name: str
  arguments: Dict[str, Any] = field(default_factory=dict)
  id: Optional[str] = None


@dataclass
class ToolResult:
  name: str
  content: str
  id: Optional[str] = None


@dataclass
class UserTurn:
  text: str


@dataclass
class ModelTurn:
  text: Optional[str] = None
  tool_calls: List[ToolCall] = field(default_factory=list)
  continuation: Optional[ContinuationState] = None

  def continuation_for(self, provider: str) -> Optional[Any]:
    """Return the replay data when it was produced by ``provider``, otherwise None."""
    if self.continuation is not None and self.continuation.provider == provider:
      return self.continuation.data
    return None


@dataclass
class ToolResultTurn:
  results: List[ToolResult] = field(default_factory=list)


ConversationTurn = Union[UserTurn, ModelTurn, ToolResultTurn]


@dataclass
class ModelResponse:
  """
  The normalized outcome of a single provider invocation.

  Token counts are copied from the vendor's usage metadata; missing fields are 0.
  ``output_tokens`` never includes reasoning tokens, those are in ``thinking_tokens``.
  """

  text: Optional[str] = None
  tool_calls: List[ToolCall] = field(default_factory=list)
  input_tokens: int = 0
  output_tokens: int = 0
  thinking_tokens: int = 0
  continuation: Optional[ContinuationState] = None
  finish_reason: Optional[str] = None

  def to_turn(self) -> ModelTurn:
    return ModelTurn(text=self.text, tool_calls=list(self.tool_calls), continuation=self.continuation)


def synthesize_call_id(prefix: str, index: int) -> str:
  """Stable id for a call or result whose provider did not assign one."""
  return f"{prefix}_{index}"
