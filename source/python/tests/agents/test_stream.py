import asyncio
import json

from playground.agents.events import Done, TextEvent, TokenUpdate
from playground.agents.loop import AgentLoop
from playground.agents.state import RunPhase, RunState
from playground.agents.stream import EventStream, format_sse
from playground.models.turns import ToolCall, UserTurn
from playground.tools import COMPLETION_TOOL

from tests.agents.mock_utils import SESSION, ScriptedModel, ScriptedWorld, make_tools, text_response, tool_response


def make_stream(model, world=None):
  loop = AgentLoop(model, make_tools(), world or ScriptedWorld(), SESSION, system_instructions="sys")
  return EventStream(loop, RunState(history=[UserTurn("hi")]))


def parse_frames(frames):
  parsed = []
  for frame in frames:
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    parsed.append(json.loads(frame[len("data: ") : -2]))
  return parsed


class TestFormatSse:
  def test_frame_is_self_delimited(self):
    frame = format_sse(Done(completed=True, needs_user_input=False))
    assert frame == 'data: {"type": "done", "completed": true, "needsUserInput": false}\n\n'

  def test_trace_frame_wraps_entry(self):
    frame = format_sse(TextEvent("hello", timestamp="2025-01-01T00:00:00.000Z"))
    payload = json.loads(frame[len("data: ") :])
    assert payload == {
      "type": "trace",
      "entry": {"type": "text", "content": "hello", "timestamp": "2025-01-01T00:00:00.000Z"},
    }


class TestEventStream:
  async def test_events_delivered_in_emission_order(self):
    model = ScriptedModel([tool_response(ToolCall("check_balance", {}), ToolCall(COMPLETION_TOOL, {}))])
    stream = make_stream(model)

    events = [event async for event in stream]

    assert isinstance(events[0], TokenUpdate)
    assert events[-1] == Done(completed=True, needs_user_input=False)
    assert stream.state.phase == RunPhase.COMPLETED

  async def test_frames_are_parsable_json(self):
    model = ScriptedModel([text_response("You have $42")])
    stream = make_stream(model)

    frames = [frame async for frame in stream.frames()]

    payloads = parse_frames(frames)
    assert [p["type"] for p in payloads] == ["tokens", "trace", "done"]
    assert payloads[1]["entry"]["content"] == "You have $42"
    assert payloads[2] == {"type": "done", "completed": False, "needsUserInput": True}

  async def test_disconnected_observer_cancels_run(self):
    model = ScriptedModel([tool_response(ToolCall("check_balance", {})) for _ in range(5)])
    stream = make_stream(model)
    disconnected = False

    async def is_disconnected():
      return disconnected

    frames = []
    async for frame in stream.frames(is_disconnected):
      frames.append(frame)
      disconnected = True

    await asyncio.wait_for(stream.wait(), timeout=5)

    assert len(frames) == 1
    assert stream.cancelled.is_set()
    assert stream.state.phase == RunPhase.CANCELLED
    assert model.call_count < 5

  async def test_observer_leaving_early_cancels_run(self):
    model = ScriptedModel([tool_response(ToolCall("check_balance", {})) for _ in range(5)])
    stream = make_stream(model)

    frames = stream.frames()
    first = await frames.__anext__()
    await frames.aclose()
    await asyncio.wait_for(stream.wait(), timeout=5)

    assert first.startswith("data: ")
    assert stream.cancelled.is_set()
    assert model.call_count < 5

  async def test_concurrent_runs_do_not_share_state(self):
    first = make_stream(ScriptedModel([text_response("one", input_tokens=1)]))
    second = make_stream(ScriptedModel([text_response("two", input_tokens=2)]))

    first_events, second_events = await asyncio.gather(
      _collect(first),
      _collect(second),
    )

    assert [e.content for e in first_events if isinstance(e, TextEvent)] == ["one"]
    assert [e.content for e in second_events if isinstance(e, TextEvent)] == ["two"]
    assert first.state.input_tokens == 1
    assert second.state.input_tokens == 2


async def _collect(stream):
  return [event async for event in stream]
