"""
The provider-agnostic agent loop.

A run alternates between invoking the model and executing the tool calls it asks for:

  READY → ITERATING → TOOL_EXECUTING → ITERATING → ... → COMPLETED | AWAITING_USER_INPUT
                                                          | STOPPED | FAILED

Tool calls of one batch run strictly in order, a later call may rely on an account or
token an earlier call established. Unknown tools and failed executions become the tool's
result text so the model can react to them; only provider failures end a run with an
error.

The run is an async generator of trace events. Cancellation is cooperative: the token is
checked after every model invocation and every tool execution, and once it is seen the
generator returns without emitting anything else, in particular no ``Done``.
"""

import asyncio
import os

from typing import AsyncIterator, Optional

from ..logs import get_logger, InfoContext, DebugContext
from ..models.turns import ToolCall, ToolResult, ToolResultTurn
from ..tools.catalog import COMPLETION_TOOL
from ..tools.protocol import ToolResolver
from ..world.protocol import WorldExecutor
from ..world.session import Session
from .errors import ProviderError, ToolExecutionError, ToolResolutionError
from .events import Done, ErrorEvent, TextEvent, ToolCallEvent, ToolResultEvent, TraceEvent
from .state import RunPhase, RunState

DEFAULT_MAX_ITERATIONS = 50


def get_max_iterations() -> int:
  value = os.environ.get("PLAYGROUND_MAX_ITERATIONS")
  try:
    return int(value) if value else DEFAULT_MAX_ITERATIONS
  except ValueError:
    return DEFAULT_MAX_ITERATIONS


class AgentLoop(InfoContext, DebugContext):
  def __init__(
    self,
    model,
    tools: ToolResolver,
    executor: WorldExecutor,
    session: Session,
    system_instructions: str = "",
    max_iterations: Optional[int] = None,
    completion_tool: str = COMPLETION_TOOL,
    conversation: Optional[str] = None,
  ):
    self.logger = get_logger("agent")
    self.model = model
    self.tools = tools
    self.executor = executor
    self.session = session
    self.system_instructions = system_instructions
    self.max_iterations = max_iterations if max_iterations is not None else get_max_iterations()
    self.completion_tool = completion_tool
    self.conversation = conversation or session.task_id

  async def run(self, state: RunState, cancelled: Optional[asyncio.Event] = None) -> AsyncIterator[TraceEvent]:
    declarations = list(self.tools.declarations())
    self.logger.info(
      f"Starting run for task '{self.session.task_id}' with {getattr(self.model, 'provider', 'model')} "
      f"'{getattr(self.model, 'name', '?')}', {len(declarations)} tools, {len(state.history)} turns"
    )

    def is_cancelled() -> bool:
      if cancelled is not None and cancelled.is_set():
        state.phase = RunPhase.CANCELLED
        self.logger.info(f"Run for task '{self.session.task_id}' cancelled at iteration {state.iteration}")
        return True
      return False

    try:
      while state.iteration < self.max_iterations:
        if is_cancelled():
          return

        state.iteration += 1
        state.phase = RunPhase.ITERATING
        self.logger.debug(f"Iteration {state.iteration}/{self.max_iterations}")

        try:
          response = await self.model.invoke(
            self.system_instructions, state.history, declarations, conversation=self.conversation
          )
        except ProviderError as e:
          if is_cancelled():
            return
          state.phase = RunPhase.FAILED
          self.logger.error(f"Run failed: {e.message}")
          yield ErrorEvent("Agent error", e.message)
          return

        if is_cancelled():
          return

        state.record_usage(response)
        yield state.token_update()

        if response.text:
          state.final_text = response.text
          yield TextEvent(response.text)

        if not response.tool_calls:
          state.history.append(response.to_turn())
          state.needs_user_input = bool(response.text)
          state.phase = RunPhase.AWAITING_USER_INPUT if state.needs_user_input else RunPhase.STOPPED
          self.logger.info(f"Run stopped after {state.iteration} iterations, needs user input: {state.needs_user_input}")
          yield Done(completed=False, needs_user_input=state.needs_user_input)
          return

        state.phase = RunPhase.TOOL_EXECUTING
        results = []
        for call in response.tool_calls:
          yield ToolCallEvent(call.name, dict(call.arguments), id=call.id)

          if call.name == self.completion_tool:
            state.completed = True

          content = await self.execute(call)
          if is_cancelled():
            return

          results.append(ToolResult(name=call.name, content=content, id=call.id))
          state.record_tool_call()
          yield ToolResultEvent(call.name, content, id=call.id)
          yield state.token_update()

        state.append_batch(response.to_turn(), ToolResultTurn(results))

        if state.completed:
          state.phase = RunPhase.COMPLETED
          self.logger.info(f"Task '{self.session.task_id}' completed after {state.iteration} iterations")
          yield Done(completed=True, needs_user_input=False)
          return

      state.phase = RunPhase.STOPPED
      self.logger.warning(f"Run reached the maximum of {self.max_iterations} iterations")
      yield Done(completed=False, needs_user_input=False)

    except Exception as e:
      state.phase = RunPhase.FAILED
      self.logger.exception(f"Unexpected error during run: {e}")
      yield ErrorEvent("Agent error", str(e) or type(e).__name__)

  async def execute(self, call: ToolCall) -> str:
    """Execute one tool call and return its result text, errors included."""
    try:
      tool = self.tools.resolve(call.name)
    except ToolResolutionError as e:
      self.logger.error(f"Unknown function requested: {call.name}")
      return e.message

    try:
      instruction = tool.render(call.arguments)
    except (KeyError, TypeError, ValueError) as e:
      self.logger.warning(f"Could not render arguments for {call.name}: {e}")
      return f"Error: Invalid arguments for {call.name}: {e}"

    self.logger.debug(f"Executing {call.name}: {instruction}")
    try:
      content = await self.executor.execute(self.session, instruction)
    except ToolExecutionError as e:
      self.logger.warning(f"Tool {call.name} failed: {e.detail}")
      return e.message
    except Exception as e:
      self.logger.error(f"Tool {call.name} execution failed: {e}")
      return f"Error executing tool: {e}"

    self.logger.debug(f"Tool {call.name} returned {len(content)} characters")
    return content
