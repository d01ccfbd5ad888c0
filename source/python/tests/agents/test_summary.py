from playground.agents.errors import ProviderError
from playground.agents.events import Done, ErrorEvent, TextEvent, TokenUpdate, ToolCallEvent, ToolResultEvent
from playground.agents.loop import AgentLoop
from playground.agents.state import RunState
from playground.agents.summary import RunSummary, collect
from playground.models.turns import ToolCall, UserTurn
from playground.tools import COMPLETION_TOOL

from tests.agents.mock_utils import SESSION, ScriptedModel, ScriptedWorld, make_tools, text_response, tool_response


def run(model, world=None):
  loop = AgentLoop(model, make_tools(), world or ScriptedWorld(), SESSION)
  return loop.run(RunState(history=[UserTurn("pay alice")]))


class TestRunSummary:
  async def test_summary_of_completed_run(self):
    model = ScriptedModel(
      [
        tool_response(ToolCall("send_money", {"receiver_email": "alice@example.com", "amount": 5}), text="Paying",
                      input_tokens=100, output_tokens=10, thinking_tokens=4),
        tool_response(ToolCall(COMPLETION_TOOL, {}), input_tokens=120, output_tokens=8),
      ]
    )

    summary = (await collect(run(model))).to_dict()

    assert summary["completed"] is True
    assert summary["needsUserInput"] is False
    assert summary["finalText"] == "Paying"
    assert summary["inputTokens"] == 220
    assert summary["outputTokens"] == 18
    assert summary["thinkingTokens"] == 4
    assert summary["toolCallCount"] == 2
    assert [entry["type"] for entry in summary["trace"]] == ["text", "tool_call", "tool_result", "tool_call", "tool_result"]
    assert summary["trace"][1]["content"] == 'send_money({"receiver_email":"alice@example.com","amount":5})'
    assert "error" not in summary

  async def test_summary_of_failed_run(self):
    model = ScriptedModel([ProviderError("anthropic", "invalid x-api-key", status_code=401)])

    summary = (await collect(run(model))).to_dict()

    assert summary["error"] == "Agent error"
    assert summary["details"] == "anthropic request failed (HTTP 401): invalid x-api-key"
    assert summary["completed"] is False
    assert summary["trace"][-1]["type"] == "error"

  def test_apply_tracks_latest_values(self):
    summary = RunSummary()
    for event in [
      TokenUpdate(1, 2, 0, 0),
      TextEvent("first"),
      ToolCallEvent("check_balance", {}),
      ToolResultEvent("check_balance", "42"),
      TokenUpdate(5, 6, 1, 1),
      TextEvent("second"),
      Done(completed=False, needs_user_input=True),
    ]:
      summary.apply(event)

    assert summary.final_text == "second"
    assert (summary.input_tokens, summary.output_tokens, summary.thinking_tokens) == (5, 6, 1)
    assert summary.tool_call_count == 1
    assert summary.needs_user_input is True
    assert len(summary.trace) == 4

  def test_error_event_without_details(self):
    summary = RunSummary()
    summary.apply(ErrorEvent("Agent error"))

    assert summary.to_dict()["details"] is None
    assert summary.trace[0]["content"] == "Agent error"
