import asyncio

from playground.agents.errors import ProviderError, ToolExecutionError
from playground.agents.events import Done, ErrorEvent, TextEvent, TokenUpdate, ToolCallEvent, ToolResultEvent
from playground.agents.loop import AgentLoop
from playground.agents.state import RunPhase, RunState
from playground.models.turns import ContinuationState, ModelResponse, ModelTurn, ToolCall, ToolResultTurn, UserTurn
from playground.tools import COMPLETION_TOOL

from tests.agents.mock_utils import (
  SESSION,
  ScriptedModel,
  ScriptedWorld,
  drain,
  make_tools,
  text_response,
  tool_response,
)


def make_loop(model, world=None, **kwargs):
  return AgentLoop(
    model,
    make_tools(),
    world or ScriptedWorld(),
    SESSION,
    system_instructions="You are helpful.",
    **kwargs,
  )


def start_state(text="what is my balance"):
  return RunState(history=[UserTurn(text)])


def terminal_events(events):
  return [e for e in events if isinstance(e, (Done, ErrorEvent))]


class TestScenarios:
  async def test_text_only_turn_waits_for_user(self):
    model = ScriptedModel([text_response("You have $42")])
    state = start_state()

    events = await drain(make_loop(model).run(state))

    texts = [e for e in events if isinstance(e, TextEvent)]
    assert [t.content for t in texts] == ["You have $42"]
    assert terminal_events(events) == [Done(completed=False, needs_user_input=True)]
    assert events[-1] == Done(completed=False, needs_user_input=True)
    assert state.phase == RunPhase.AWAITING_USER_INPUT
    assert state.final_text == "You have $42"

  async def test_completion_in_batch_stops_after_batch(self):
    model = ScriptedModel(
      [
        tool_response(
          ToolCall("check_balance", {}, id="c1"),
          ToolCall(COMPLETION_TOOL, {}, id="c2"),
        ),
        text_response("should never be requested"),
      ]
    )
    world = ScriptedWorld({"show_venmo_balance": "42.0", "complete_task": "null"})
    state = start_state()

    events = await drain(make_loop(model, world).run(state))

    kinds = [type(e).__name__ for e in events]
    assert kinds == [
      "TokenUpdate",
      "ToolCallEvent",
      "ToolResultEvent",
      "TokenUpdate",
      "ToolCallEvent",
      "ToolResultEvent",
      "TokenUpdate",
      "Done",
    ]
    assert [e.name for e in events if isinstance(e, ToolCallEvent)] == ["check_balance", COMPLETION_TOOL]
    assert events[-1] == Done(completed=True, needs_user_input=False)
    assert model.call_count == 1
    assert len(world.instructions) == 2
    assert state.phase == RunPhase.COMPLETED

  async def test_unknown_tool_becomes_result_and_run_continues(self):
    model = ScriptedModel(
      [
        tool_response(ToolCall("fly_to_moon", {"speed": 3}, id="c1")),
        text_response("I cannot do that."),
      ]
    )
    world = ScriptedWorld()
    state = start_state()

    events = await drain(make_loop(model, world).run(state))

    results = [e for e in events if isinstance(e, ToolResultEvent)]
    assert len(results) == 1
    assert results[0].content == 'Error: Unknown function "fly_to_moon"'
    assert model.call_count == 2
    assert world.instructions == []
    assert events[-1] == Done(completed=False, needs_user_input=True)

    last_turn = model.calls[1]["history"][-1]
    assert isinstance(last_turn, ToolResultTurn)
    assert last_turn.results[0].content == 'Error: Unknown function "fly_to_moon"'

  async def test_cancel_during_tool_execution(self):
    model = ScriptedModel(
      [
        tool_response(ToolCall("check_balance", {}, id="c1"), ToolCall("check_balance", {}, id="c2")),
        text_response("never"),
      ]
    )
    world = ScriptedWorld({"show_venmo_balance": "42.0"})
    world.gate = asyncio.Event()
    world.started = asyncio.Event()
    cancelled = asyncio.Event()
    state = start_state()
    events = []

    async def consume():
      async for event in make_loop(model, world).run(state, cancelled):
        events.append(event)

    task = asyncio.create_task(consume())
    await world.started.wait()
    cancelled.set()
    world.gate.set()
    await asyncio.wait_for(task, timeout=5)

    assert model.call_count == 1
    assert len(world.instructions) == 1
    assert terminal_events(events) == []
    assert state.phase == RunPhase.CANCELLED

  async def test_cancel_before_start_emits_nothing(self):
    model = ScriptedModel([text_response("hi")])
    cancelled = asyncio.Event()
    cancelled.set()

    events = await drain(make_loop(model).run(start_state(), cancelled))

    assert events == []
    assert model.call_count == 0


class TestProperties:
  async def test_tool_call_precedes_result_and_next_invocation(self):
    model = ScriptedModel(
      [
        tool_response(ToolCall("check_balance", {}), ToolCall("send_money", {"receiver_email": "a@b.c", "amount": 5})),
        tool_response(ToolCall("check_balance", {})),
        text_response("Done."),
      ]
    )
    events = await drain(make_loop(model).run(start_state()))

    pending = []
    for event in events:
      if isinstance(event, ToolCallEvent):
        pending.append(event.name)
      elif isinstance(event, ToolResultEvent):
        assert pending and pending[-1] == event.name
        pending.pop()
    assert pending == []

    # every result of a batch is in the history of the following invocation
    second_history = model.calls[1]["history"]
    assert isinstance(second_history[-1], ToolResultTurn)
    assert [r.name for r in second_history[-1].results] == ["check_balance", "send_money"]

  async def test_each_result_follows_its_call_then_a_count_update(self):
    model = ScriptedModel([tool_response(ToolCall("check_balance", {}), ToolCall("check_balance", {})), text_response("x")])

    events = await drain(make_loop(model).run(start_state()))

    first_call = next(i for i, e in enumerate(events) if isinstance(e, ToolCallEvent))
    assert isinstance(events[first_call + 1], ToolResultEvent)
    assert isinstance(events[first_call + 2], TokenUpdate)
    assert events[first_call + 2].tool_call_count == 1
    assert isinstance(events[first_call + 5], TokenUpdate)
    assert events[first_call + 5].tool_call_count == 2

  async def test_results_match_calls_in_order(self):
    calls = [
      ToolCall("send_money", {"receiver_email": "x@y.z", "amount": 1}, id="a"),
      ToolCall("unknown_tool", {}, id="b"),
      ToolCall("check_balance", {}, id="c"),
    ]
    model = ScriptedModel([tool_response(*calls), text_response("done")])
    state = start_state()

    await drain(make_loop(model).run(state))

    model_turn, result_turn = state.history[1], state.history[2]
    assert isinstance(model_turn, ModelTurn)
    assert isinstance(result_turn, ToolResultTurn)
    assert len(result_turn.results) == len(model_turn.tool_calls) == 3
    assert [r.id for r in result_turn.results] == ["a", "b", "c"]
    assert [r.name for r in result_turn.results] == ["send_money", "unknown_tool", "check_balance"]

  async def test_token_totals_are_monotonic_sums(self):
    model = ScriptedModel(
      [
        tool_response(ToolCall("check_balance", {}), input_tokens=100, output_tokens=20, thinking_tokens=7),
        tool_response(ToolCall("check_balance", {}), input_tokens=150, output_tokens=30, thinking_tokens=0),
        text_response("Balance is 42", input_tokens=200, output_tokens=10, thinking_tokens=3),
      ]
    )
    state = start_state()

    events = await drain(make_loop(model).run(state))

    updates = [e for e in events if isinstance(e, TokenUpdate)]
    for previous, current in zip(updates, updates[1:]):
      assert current.input_tokens >= previous.input_tokens
      assert current.output_tokens >= previous.output_tokens
      assert current.thinking_tokens >= previous.thinking_tokens
      assert current.tool_call_count >= previous.tool_call_count

    assert updates[-1] == TokenUpdate(450, 60, 10, 2)
    assert (state.input_tokens, state.output_tokens, state.thinking_tokens) == (450, 60, 10)

  async def test_completion_with_failing_call_runs_whole_batch(self):
    model = ScriptedModel(
      [
        tool_response(
          ToolCall("send_money", {"receiver_email": "a@b.c", "amount": 5}),
          ToolCall(COMPLETION_TOOL, {}),
          ToolCall("check_balance", {}),
        )
      ]
    )
    world = ScriptedWorld({"create_transaction": ToolExecutionError("HTTP 500 - boom", status_code=500)})

    events = await drain(make_loop(model, world).run(start_state()))

    results = [e.content for e in events if isinstance(e, ToolResultEvent)]
    assert results == ["Error: HTTP 500 - boom", "ok", "ok"]
    assert len(world.instructions) == 3
    assert model.call_count == 1
    assert events[-1] == Done(completed=True, needs_user_input=False)

  async def test_text_and_completion_in_same_batch_is_completed(self):
    model = ScriptedModel([tool_response(ToolCall(COMPLETION_TOOL, {}), text="All done!")])

    events = await drain(make_loop(model).run(start_state()))

    assert any(isinstance(e, TextEvent) and e.content == "All done!" for e in events)
    assert events[-1] == Done(completed=True, needs_user_input=False)


class TestErrorHandling:
  async def test_executor_exception_becomes_result(self):
    model = ScriptedModel([tool_response(ToolCall("check_balance", {})), text_response("sorry")])
    world = ScriptedWorld({"show_venmo_balance": RuntimeError("connection reset")})

    events = await drain(make_loop(model, world).run(start_state()))

    results = [e.content for e in events if isinstance(e, ToolResultEvent)]
    assert results == ["Error executing tool: connection reset"]
    assert model.call_count == 2

  async def test_provider_error_ends_run_with_error(self):
    model = ScriptedModel([ProviderError("gemini", "quota exceeded", status_code=429)])
    state = start_state()

    events = await drain(make_loop(model).run(state))

    assert events == [ErrorEvent("Agent error", "gemini request failed (HTTP 429): quota exceeded", events[0].timestamp)]
    assert state.phase == RunPhase.FAILED

  async def test_provider_error_after_tool_batch(self):
    model = ScriptedModel([tool_response(ToolCall("check_balance", {})), ProviderError("openai", "bad request")])

    events = await drain(make_loop(model).run(start_state()))

    assert isinstance(events[-1], ErrorEvent)
    assert events[-1].details == "openai request failed: bad request"
    assert terminal_events(events) == [events[-1]]

  async def test_unexpected_exception_reported_as_agent_error(self):
    model = ScriptedModel([RuntimeError("boom")])

    events = await drain(make_loop(model).run(start_state()))

    assert len(events) == 1
    assert events[0].error == "Agent error"
    assert events[0].details == "boom"

  async def test_invalid_arguments_become_result(self):
    model = ScriptedModel([tool_response(ToolCall("execute_python", {})), text_response("ok")])

    events = await drain(make_loop(model).run(start_state()))

    results = [e.content for e in events if isinstance(e, ToolResultEvent)]
    assert results == ["Error: Invalid arguments for execute_python: 'code'"]


class TestTermination:
  async def test_max_iterations_ends_without_completion(self):
    model = ScriptedModel([tool_response(ToolCall("check_balance", {})) for _ in range(10)])
    state = start_state()

    events = await drain(make_loop(model, max_iterations=3).run(state))

    assert model.call_count == 3
    assert events[-1] == Done(completed=False, needs_user_input=False)
    assert len(terminal_events(events)) == 1
    assert state.phase == RunPhase.STOPPED

  async def test_max_iterations_from_environment(self, monkeypatch):
    monkeypatch.setenv("PLAYGROUND_MAX_ITERATIONS", "2")
    model = ScriptedModel([tool_response(ToolCall("check_balance", {})) for _ in range(5)])

    await drain(make_loop(model).run(start_state()))

    assert model.call_count == 2

  async def test_silent_stop_does_not_need_input(self):
    model = ScriptedModel([ModelResponse()])

    events = await drain(make_loop(model).run(start_state()))

    assert events[-1] == Done(completed=False, needs_user_input=False)


class TestHistory:
  async def test_continuation_is_threaded_through(self):
    parts = [{"text": "thinking...", "thought": True, "thoughtSignature": "sig"}, {"functionCall": {"name": "check_balance", "args": {}}}]
    first = tool_response(ToolCall("check_balance", {}))
    first.continuation = ContinuationState("gemini", parts)
    model = ScriptedModel([first, text_response("done")])

    await drain(make_loop(model).run(start_state()))

    model_turn = model.calls[1]["history"][1]
    assert model_turn.continuation == ContinuationState("gemini", parts)

  async def test_hidden_tool_executes_verbatim_code(self):
    model = ScriptedModel([tool_response(ToolCall("execute_python", {"code": "print(1)"})), text_response("ok")])
    world = ScriptedWorld()

    await drain(make_loop(model, world).run(start_state()))

    assert world.instructions == ["print(1)"]
    assert "execute_python" not in model.calls[0]["tools"]

  async def test_session_and_system_prompt_passed_through(self):
    model = ScriptedModel([tool_response(ToolCall("check_balance", {})), text_response("ok")])
    world = ScriptedWorld()

    await drain(make_loop(model, world).run(start_state()))

    assert world.sessions == [SESSION]
    assert all(call["system"] == "You are helpful." for call in model.calls)
    assert model.calls[0]["conversation"] == SESSION.task_id
