"""
Gemini client over the public ``generateContent`` REST endpoint.

Reasoning-capable models are sent a thinking budget. Their responses contain ``thought``
parts, each possibly carrying a ``thoughtSignature``, which must be sent back unchanged on
the next request or later tool calls degrade. The complete list of response parts is
therefore kept as the turn's continuation state and replayed as the model message.

Function responses carry no call id, Gemini correlates them by position and name.
"""

from copy import deepcopy
from typing import Any, Dict, List, Optional, Sequence

import httpx

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
)
from .provider_config import get_gemini_api_url, get_gemini_thinking_budget

PROVIDER = "gemini"

THINKING_MODEL_MARKERS = ("gemini-3", "gemini-2.5")


def is_thinking_model(model_name: str) -> bool:
  name = model_name.lower()
  return any(marker in name for marker in THINKING_MODEL_MARKERS)


def _strip_defaults(schema: Any) -> Any:
  # Gemini's schema dialect rejects "default"
  if isinstance(schema, dict):
    return {k: _strip_defaults(v) for k, v in schema.items() if k != "default"}
  if isinstance(schema, list):
    return [_strip_defaults(v) for v in schema]
  return schema


def function_declarations(tools: Sequence[ToolDescriptor]) -> List[dict]:
  declarations = []
  for tool in tools:
    declaration: Dict[str, Any] = {"name": tool.name, "description": tool.description}
    parameters = tool.parameters_spec()
    if parameters["properties"]:
      declaration["parameters"] = _strip_defaults(parameters)
    declarations.append(declaration)
  return declarations


def function_call_part(call: ToolCall) -> dict:
  return {"functionCall": {"name": call.name, "args": dict(call.arguments)}}


def function_response_part(name: str, content: str) -> dict:
  return {"functionResponse": {"name": name, "response": {"result": content}}}


def to_contents(history: Sequence[ConversationTurn]) -> List[dict]:
  """Translate conversation turns into Gemini ``contents``."""
  contents = []
  for turn in history:
    if isinstance(turn, UserTurn):
      contents.append({"role": "user", "parts": [{"text": turn.text}]})

    elif isinstance(turn, ModelTurn):
      parts = turn.continuation_for(PROVIDER)
      if parts is not None:
        parts = deepcopy(parts)
      else:
        parts = []
        if turn.text:
          parts.append({"text": turn.text})
        parts.extend(function_call_part(call) for call in turn.tool_calls)
      if parts:
        contents.append({"role": "model", "parts": parts})

    elif isinstance(turn, ToolResultTurn):
      if turn.results:
        contents.append(
          {"role": "user", "parts": [function_response_part(r.name, r.content) for r in turn.results]}
        )

  return contents


def parse_response(data: Dict[str, Any]) -> ModelResponse:
  candidates = data.get("candidates") or []
  if not candidates:
    raise ProviderError(PROVIDER, "No response candidate from Gemini")
  candidate = candidates[0]

  usage = data.get("usageMetadata") or {}
  prompt_tokens = usage.get("promptTokenCount") or 0
  candidate_tokens = usage.get("candidatesTokenCount") or 0
  thoughts_tokens = usage.get("thoughtsTokenCount") or 0

  parts = (candidate.get("content") or {}).get("parts") or []

  text = None
  tool_calls = []
  for part in parts:
    if part.get("text") and not part.get("thought"):
      text = (text or "") + part["text"]
    function_call = part.get("functionCall")
    if function_call:
      tool_calls.append(
        ToolCall(
          name=function_call.get("name", ""),
          arguments=function_call.get("args") or {},
          id=function_call.get("id"),
        )
      )

  return ModelResponse(
    text=text,
    tool_calls=tool_calls,
    input_tokens=prompt_tokens,
    # vendors have reported thought tokens above the candidate total
    output_tokens=max(0, candidate_tokens - thoughts_tokens),
    thinking_tokens=thoughts_tokens,
    continuation=ContinuationState(provider=PROVIDER, data=deepcopy(parts)),
    finish_reason=candidate.get("finishReason"),
  )


def _error_detail(response: httpx.Response) -> str:
  try:
    error = response.json().get("error")
  except ValueError:
    return response.text
  if isinstance(error, dict) and error.get("message"):
    return error["message"]
  return response.text


class GeminiClient(InfoContext, DebugContext):
  def __init__(
    self,
    name: str,
    api_key: str,
    base_url: Optional[str] = None,
    thinking_budget: Optional[int] = None,
    request_timeout: float = 120.0,
    connect_timeout: float = 10.0,
    client: Optional[httpx.AsyncClient] = None,
  ):
    self.logger = get_logger("model")
    self.name = name
    self.api_key = api_key
    self.base_url = (base_url or get_gemini_api_url()).rstrip("/")
    self.thinking_budget = thinking_budget if thinking_budget is not None else get_gemini_thinking_budget()
    self.timeout = httpx.Timeout(connect=connect_timeout, read=request_timeout, write=30.0, pool=10.0)
    self._client = client
    self._owns_client = client is None

  @property
  def client(self) -> httpx.AsyncClient:
    if self._client is None:
      self._client = httpx.AsyncClient(timeout=self.timeout)
    return self._client

  def build_request(
    self,
    system_instructions: str,
    history: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
  ) -> Dict[str, Any]:
    body: Dict[str, Any] = {"contents": to_contents(history)}
    if system_instructions:
      body["systemInstruction"] = {"parts": [{"text": system_instructions}]}
    if tools:
      body["tools"] = [{"functionDeclarations": function_declarations(tools)}]
    if is_thinking_model(self.name):
      body["generationConfig"] = {"thinkingConfig": {"thinkingBudget": self.thinking_budget}}
    return body

  async def invoke(
    self,
    system_instructions: str,
    history: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
    conversation: Optional[str] = None,
  ) -> ModelResponse:
    body = self.build_request(system_instructions, history, tools)
    self.logger.debug(f"Sending {len(body['contents'])} contents to Gemini model '{self.name}'")
    log_raw_request(body, PROVIDER, self.name, conversation)

    url = f"{self.base_url}/models/{self.name}:generateContent"
    try:
      response = await self.client.post(url, json=body, headers={"x-goog-api-key": self.api_key})
    except httpx.HTTPError as e:
      raise ProviderError(PROVIDER, str(e) or type(e).__name__) from e

    if response.status_code >= 400:
      raise ProviderError(PROVIDER, _error_detail(response), status_code=response.status_code)

    try:
      data = response.json()
    except ValueError as e:
      raise ProviderError(PROVIDER, f"Invalid JSON response: {response.text}") from e

    log_raw_response(data, PROVIDER, self.name, conversation)
    result = parse_response(data)
    self.logger.debug(
      f"Gemini usage: input={result.input_tokens} output={result.output_tokens} "
      f"thinking={result.thinking_tokens} tool_calls={len(result.tool_calls)}"
    )
    return result

  async def aclose(self):
    if self._client is not None and self._owns_client:
      await self._client.aclose()
      self._client = None
