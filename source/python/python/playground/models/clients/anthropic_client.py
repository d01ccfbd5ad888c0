"""
Anthropic client using the official SDK's ``messages.create``.

The system prompt travels in its own field, tools are declared with ``input_schema``, tool
calls arrive as ``tool_use`` content blocks and results go back as ``tool_result`` blocks
in a user message, correlated by ``tool_use_id``.
"""

from typing import Any, Dict, List, Optional, Sequence

import anthropic
from anthropic import AsyncAnthropic

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
from .provider_config import get_anthropic_max_tokens

PROVIDER = "anthropic"
CALL_ID_PREFIX = "tool"


def tool_definitions(tools: Sequence[ToolDescriptor]) -> List[dict]:
  return [{"name": t.name, "description": t.description, "input_schema": t.parameters_spec()} for t in tools]


def content_block_to_dict(block: Any) -> Dict[str, Any]:
  """Convert an SDK content block into a request-ready dict."""
  if isinstance(block, dict):
    return dict(block)
  if hasattr(block, "model_dump"):
    return block.model_dump(exclude_none=True)

  result: Dict[str, Any] = {"type": getattr(block, "type", None)}
  for attribute in ("text", "id", "name", "input", "thinking", "signature"):
    value = getattr(block, attribute, None)
    if value is not None:
      result[attribute] = value
  return result


def assistant_content(turn: ModelTurn) -> List[dict]:
  content: List[dict] = []
  if turn.text:
    content.append({"type": "text", "text": turn.text})
  for index, call in enumerate(turn.tool_calls):
    content.append(
      {
        "type": "tool_use",
        "id": call.id or synthesize_call_id(CALL_ID_PREFIX, index),
        "name": call.name,
        "input": dict(call.arguments),
      }
    )
  return content


def to_messages(history: Sequence[ConversationTurn]) -> List[dict]:
  messages = []
  for turn in history:
    if isinstance(turn, UserTurn):
      messages.append({"role": "user", "content": turn.text})

    elif isinstance(turn, ModelTurn):
      blocks = turn.continuation_for(PROVIDER)
      content = [dict(b) for b in blocks] if blocks is not None else assistant_content(turn)
      if content:
        messages.append({"role": "assistant", "content": content})

    elif isinstance(turn, ToolResultTurn):
      if turn.results:
        messages.append(
          {
            "role": "user",
            "content": [
              {
                "type": "tool_result",
                "tool_use_id": result.id or synthesize_call_id(CALL_ID_PREFIX, index),
                "content": result.content,
              }
              for index, result in enumerate(turn.results)
            ],
          }
        )

  return messages


def parse_response(response: Any) -> ModelResponse:
  text = None
  tool_calls = []
  blocks = []
  for block in response.content or []:
    blocks.append(content_block_to_dict(block))
    if block.type == "text":
      text = (text or "") + block.text
    elif block.type == "tool_use":
      tool_calls.append(ToolCall(name=block.name, arguments=dict(block.input or {}), id=block.id))

  usage = getattr(response, "usage", None)
  return ModelResponse(
    text=text,
    tool_calls=tool_calls,
    input_tokens=getattr(usage, "input_tokens", None) or 0,
    output_tokens=getattr(usage, "output_tokens", None) or 0,
    thinking_tokens=0,
    continuation=ContinuationState(provider=PROVIDER, data=blocks),
    finish_reason=getattr(response, "stop_reason", None),
  )


class AnthropicClient(InfoContext, DebugContext):
  def __init__(
    self,
    name: str,
    api_key: str,
    max_tokens: Optional[int] = None,
    request_timeout: float = 120.0,
    connect_timeout: float = 10.0,
    **kwargs,
  ):
    self.logger = get_logger("model")
    self.name = name
    self.max_tokens = max_tokens if max_tokens is not None else get_anthropic_max_tokens()
    self.kwargs = kwargs

    # the SDK validates timeouts against its own bundled http client
    timeout = anthropic.Timeout(connect=connect_timeout, read=request_timeout, write=30.0, pool=10.0)
    self.client = AsyncAnthropic(api_key=api_key, timeout=timeout)

  def build_request(
    self,
    system_instructions: str,
    history: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
  ) -> Dict[str, Any]:
    request: Dict[str, Any] = {
      "model": self.name,
      "max_tokens": self.max_tokens,
      "messages": to_messages(history),
      **self.kwargs,
    }
    if system_instructions:
      request["system"] = system_instructions
    if tools:
      request["tools"] = tool_definitions(tools)
    return request

  async def invoke(
    self,
    system_instructions: str,
    history: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
    conversation: Optional[str] = None,
  ) -> ModelResponse:
    request = self.build_request(system_instructions, history, tools)
    self.logger.debug(f"Sending {len(request['messages'])} messages to Anthropic model '{self.name}'")
    log_raw_request(request, PROVIDER, self.name, conversation)

    try:
      response = await self.client.messages.create(**request)
    except anthropic.APIStatusError as e:
      raise ProviderError(PROVIDER, e.message, status_code=e.status_code) from e
    except anthropic.APIError as e:
      raise ProviderError(PROVIDER, str(e)) from e

    result = parse_response(response)
    log_raw_response({"content": result.continuation.data}, PROVIDER, self.name, conversation)
    self.logger.debug(
      f"Anthropic usage: input={result.input_tokens} output={result.output_tokens} "
      f"tool_calls={len(result.tool_calls)}"
    )
    return result

  async def aclose(self):
    await self.client.close()
