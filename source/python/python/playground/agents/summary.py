from dataclasses import dataclass, field
from typing import AsyncIterable, List, Optional

from .events import Done, ErrorEvent, TextEvent, TokenUpdate, ToolCallEvent, ToolResultEvent, TraceEvent


@dataclass
class RunSummary:
  """Post-hoc record of a run, delivered instead of the event stream when streaming is off."""

  trace: List[dict] = field(default_factory=list)
  final_text: Optional[str] = None
  input_tokens: int = 0
  output_tokens: int = 0
  thinking_tokens: int = 0
  tool_call_count: int = 0
  completed: bool = False
  needs_user_input: bool = False
  error: Optional[ErrorEvent] = None

  def apply(self, event: TraceEvent):
    if isinstance(event, (TextEvent, ToolCallEvent, ToolResultEvent, ErrorEvent)):
      self.trace.append(event.trace_entry())

    if isinstance(event, TextEvent):
      self.final_text = event.content
    elif isinstance(event, TokenUpdate):
      self.input_tokens = event.input_tokens
      self.output_tokens = event.output_tokens
      self.thinking_tokens = event.thinking_tokens
      self.tool_call_count = event.tool_call_count
    elif isinstance(event, Done):
      self.completed = event.completed
      self.needs_user_input = event.needs_user_input
    elif isinstance(event, ErrorEvent):
      self.error = event

  def to_dict(self) -> dict:
    result = {
      "trace": self.trace,
      "finalText": self.final_text,
      "inputTokens": self.input_tokens,
      "outputTokens": self.output_tokens,
      "thinkingTokens": self.thinking_tokens,
      "toolCallCount": self.tool_call_count,
      "completed": self.completed,
      "needsUserInput": self.needs_user_input,
    }
    if self.error is not None:
      result["error"] = self.error.error
      result["details"] = self.error.details
    return result


async def collect(events: AsyncIterable[TraceEvent]) -> RunSummary:
  summary = RunSummary()
  async for event in events:
    summary.apply(event)
  return summary
