"""
Trace events emitted by the agent loop.

Every event serializes to the wire object delivered to observers:

- text, tool call and tool result events are wrapped as ``{"type": "trace", "entry": {...}}``
- ``{"type": "tokens", "inputTokens", "outputTokens", "thinkingTokens", "toolCallCount"}``
- ``{"type": "done", "completed", "needsUserInput"}``
- ``{"type": "error", "error", "details"}``
"""

import json

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, Optional, Union


def timestamp() -> str:
  return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_call(name: str, args: Dict[str, Any]) -> str:
  return f"{name}({json.dumps(args, separators=(',', ':'), ensure_ascii=False, default=str)})"


@dataclass
class TextEvent:
  content: str
  timestamp: str = field(default_factory=timestamp)

  def trace_entry(self) -> dict:
    return {"type": "text", "content": self.content, "timestamp": self.timestamp}

  def to_dict(self) -> dict:
    return {"type": "trace", "entry": self.trace_entry()}


@dataclass
class ToolCallEvent:
  name: str
  args: Dict[str, Any] = field(default_factory=dict)
  id: Optional[str] = None
  timestamp: str = field(default_factory=timestamp)

  def trace_entry(self) -> dict:
    return {
      "type": "tool_call",
      "content": format_call(self.name, self.args),
      "name": self.name,
      "args": self.args,
      "timestamp": self.timestamp,
    }

  def to_dict(self) -> dict:
    return {"type": "trace", "entry": self.trace_entry()}


@dataclass
class ToolResultEvent:
  name: str
  content: str
  id: Optional[str] = None
  timestamp: str = field(default_factory=timestamp)

  def trace_entry(self) -> dict:
    return {"type": "tool_result", "content": self.content, "name": self.name, "timestamp": self.timestamp}

  def to_dict(self) -> dict:
    return {"type": "trace", "entry": self.trace_entry()}


@dataclass
class TokenUpdate:
  input_tokens: int = 0
  output_tokens: int = 0
  thinking_tokens: int = 0
  tool_call_count: int = 0

  def to_dict(self) -> dict:
    return {
      "type": "tokens",
      "inputTokens": self.input_tokens,
      "outputTokens": self.output_tokens,
      "thinkingTokens": self.thinking_tokens,
      "toolCallCount": self.tool_call_count,
    }


@dataclass
class Done:
  completed: bool
  needs_user_input: bool

  def to_dict(self) -> dict:
    return {"type": "done", "completed": self.completed, "needsUserInput": self.needs_user_input}


@dataclass
class ErrorEvent:
  error: str
  details: Optional[str] = None
  timestamp: str = field(default_factory=timestamp)

  def trace_entry(self) -> dict:
    content = f"{self.error}: {self.details}" if self.details else self.error
    return {"type": "error", "content": content, "timestamp": self.timestamp}

  def to_dict(self) -> dict:
    result = {"type": "error", "error": self.error}
    if self.details is not None:
      result["details"] = self.details
    return result


TraceEvent = Union[TextEvent, ToolCallEvent, ToolResultEvent, TokenUpdate, Done, ErrorEvent]

TERMINAL_EVENTS = (Done, ErrorEvent)


def is_terminal(event: TraceEvent) -> bool:
  return isinstance(event, TERMINAL_EVENTS)
