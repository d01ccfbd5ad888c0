from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..models.turns import ConversationTurn, ModelResponse, ModelTurn, ToolResultTurn
from .events import TokenUpdate


class RunPhase(Enum):
  READY = "ready"
  ITERATING = "iterating"
  TOOL_EXECUTING = "tool_executing"
  COMPLETED = "completed"
  AWAITING_USER_INPUT = "awaiting_user_input"
  STOPPED = "stopped"
  FAILED = "failed"
  CANCELLED = "cancelled"


TERMINAL_PHASES = {
  RunPhase.COMPLETED,
  RunPhase.AWAITING_USER_INPUT,
  RunPhase.STOPPED,
  RunPhase.FAILED,
  RunPhase.CANCELLED,
}


@dataclass
class RunState:
  """
  Mutable state of one agent run, owned by a single loop invocation.

  Token totals only ever grow and equal the sum of what the provider reported for each
  invocation. ``history`` starts as the caller's turns and gains one model turn and one
  tool result turn per executed batch.
  """

  history: List[ConversationTurn] = field(default_factory=list)
  iteration: int = 0
  input_tokens: int = 0
  output_tokens: int = 0
  thinking_tokens: int = 0
  tool_call_count: int = 0
  completed: bool = False
  needs_user_input: bool = False
  final_text: Optional[str] = None
  phase: RunPhase = RunPhase.READY

  def record_usage(self, response: ModelResponse):
    self.input_tokens += max(0, response.input_tokens)
    self.output_tokens += max(0, response.output_tokens)
    self.thinking_tokens += max(0, response.thinking_tokens)

  def record_tool_call(self):
    self.tool_call_count += 1

  def append_batch(self, turn: ModelTurn, results: ToolResultTurn):
    self.history.append(turn)
    self.history.append(results)

  def token_update(self) -> TokenUpdate:
    return TokenUpdate(
      input_tokens=self.input_tokens,
      output_tokens=self.output_tokens,
      thinking_tokens=self.thinking_tokens,
      tool_call_count=self.tool_call_count,
    )

  @property
  def finished(self) -> bool:
    return self.phase in TERMINAL_PHASES
