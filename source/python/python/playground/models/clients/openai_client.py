"""
OpenAI client using the official SDK's chat completions API.

The system prompt is prepended as a system message. Tool calls arrive in the assistant
message's ``tool_calls`` array with JSON-encoded arguments, and every result goes back as
its own ``tool`` message correlated by ``tool_call_id``.
"""

import json

from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from ...agents.errors import ProviderError
from ...logs import get_logger, InfoContext, DebugContext
from ...tools.tool import ToolDescriptor
from ...transcripts import log_raw_request, log_raw_response
from ..turns import (
  ContinuationState,
  ConversationTurn,
  ModelResponse,
  ModelTurn,
  ToolCall,
  ToolResultTurn,
  UserTurn,
  synthesize_call_id,
)

PROVIDER = "openai"
CALL_ID_PREFIX = "call"

logger = get_logger("model")


def parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
  if not raw:
    return {}
  try:
    arguments = json.loads(raw)
  except ValueError:
    logger.warning(f"Ignoring tool call arguments that are not valid JSON: {raw!r}")
    return {}
  return arguments if isinstance(arguments, dict) else {}


def assistant_message(turn: ModelTurn) -> dict:
  message: Dict[str, Any] = {"role": "assistant", "content": turn.text or None}
  if turn.tool_calls:
    message["tool_calls"] = [
      {
        "id": call.id or synthesize_call_id(CALL_ID_PREFIX, index),
        "type": "function",
        "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
      }
      for index, call in enumerate(turn.tool_calls)
    ]
  return message


def to_messages(system_instructions: str, history: Sequence[ConversationTurn]) -> List[dict]:
  messages: List[dict] = [{"role": "system", "content": system_instructions}]
  for turn in history:
    if isinstance(turn, UserTurn):
      messages.append({"role": "user", "content": turn.text})

    elif isinstance(turn, ModelTurn):
      raw = turn.continuation_for(PROVIDER)
      messages.append(dict(raw) if raw is not None else assistant_message(turn))

    elif isinstance(turn, ToolResultTurn):
      for index, result in enumerate(turn.results):
        messages.append(
          {
            "role": "tool",
            "tool_call_id": result.id or synthesize_call_id(CALL_ID_PREFIX, index),
            "content": result.content,
          }
        )

  return messages


def parse_response(response: Any) -> ModelResponse:
  choices = getattr(response, "choices", None) or []
  if not choices:
    raise ProviderError(PROVIDER, "No response choice from OpenAI")
  choice = choices[0]
  message = choice.message

  tool_calls = []
  raw_calls = []
  for tc in getattr(message, "tool_calls", None) or []:
    tool_calls.append(ToolCall(name=tc.function.name, arguments=parse_arguments(tc.function.arguments), id=tc.id))
    raw_calls.append(
      {
        "id": tc.id,
        "type": "function",
        "function": {"name": tc.function.name, "arguments": tc.function.arguments or "{}"},
      }
    )

  raw_message: Dict[str, Any] = {"role": "assistant", "content": message.content}
  if raw_calls:
    raw_message["tool_calls"] = raw_calls

  usage = getattr(response, "usage", None)
  return ModelResponse(
    text=message.content or None,
    tool_calls=tool_calls,
    input_tokens=getattr(usage, "prompt_tokens", None) or 0,
    output_tokens=getattr(usage, "completion_tokens", None) or 0,
    thinking_tokens=0,
    continuation=ContinuationState(provider=PROVIDER, data=raw_message),
    finish_reason=getattr(choice, "finish_reason", None),
  )


class OpenAIClient(InfoContext, DebugContext):
  def __init__(
    self,
    name: str,
    api_key: str,
    request_timeout: float = 120.0,
    connect_timeout: float = 10.0,
    **kwargs,
  ):
    self.logger = get_logger("model")
    self.name = name
    self.kwargs = kwargs

    timeout = openai.Timeout(connect=connect_timeout, read=request_timeout, write=30.0, pool=10.0)
    self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)

  def build_request(
    self,
    system_instructions: str,
    history: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
  ) -> Dict[str, Any]:
    request: Dict[str, Any] = {
      "model": self.name,
      "messages": to_messages(system_instructions, history),
      **self.kwargs,
    }
    if tools:
      request["tools"] = [t.spec() for t in tools]
      request["tool_choice"] = "auto"
    return request

  async def invoke(
    self,
    system_instructions: str,
    history: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
    conversation: Optional[str] = None,
  ) -> ModelResponse:
    request = self.build_request(system_instructions, history, tools)
    self.logger.debug(f"Sending {len(request['messages'])} messages to OpenAI model '{self.name}'")
    log_raw_request(request, PROVIDER, self.name, conversation)

    try:
      response = await self.client.chat.completions.create(**request)
    except openai.APIStatusError as e:
      raise ProviderError(PROVIDER, e.message, status_code=e.status_code) from e
    except openai.OpenAIError as e:
      raise ProviderError(PROVIDER, str(e)) from e

    result = parse_response(response)
    log_raw_response({"choices": [{"message": result.continuation.data}]}, PROVIDER, self.name, conversation)
    self.logger.debug(
      f"OpenAI usage: input={result.input_tokens} output={result.output_tokens} "
      f"tool_calls={len(result.tool_calls)}"
    )
    return result

  async def aclose(self):
    await self.client.close()
