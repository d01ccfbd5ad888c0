"""
Parsing of inbound chat requests.

A request arrives as HTTP headers (provider, credential, model, enabled services) plus a
JSON body in the browser's wire shape:

  {
    "messages": [{"role": "user" | "assistant", "content": "...",
                  "toolCalls": [{"id": "...", "name": "...", "args": {...}}],
                  "toolResults": [{"id": "...", "name": "...", "result": "..."}]}],
    "systemPrompt": "...",
    "taskId": "...",
    "cookie": "..."
  }

Tool call and result ids are optional, adapters synthesize them positionally.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import cattr
from cattrs.errors import BaseValidationError
from cattrs.gen import make_dict_structure_fn, override

from ..models.clients.provider_config import get_default_model, get_default_provider
from ..models.model import SUPPORTED_PROVIDERS
from ..models.turns import ConversationTurn, ModelTurn, ToolCall, ToolResult, ToolResultTurn, UserTurn
from ..world.session import Session
from .errors import ConfigurationError, MissingCredentialError, UninitializedSessionError, UnknownProviderError


@dataclass
class WireToolCall:
  name: str
  args: Dict[str, Any] = field(default_factory=dict)
  id: Optional[str] = None


@dataclass
class WireToolResult:
  name: str
  result: str = ""
  id: Optional[str] = None


@dataclass
class WireMessage:
  role: str
  content: Optional[str] = ""
  tool_calls: Optional[List[WireToolCall]] = None
  tool_results: Optional[List[WireToolResult]] = None


@dataclass
class ChatBody:
  messages: List[WireMessage] = field(default_factory=list)
  system_prompt: str = ""
  task_id: Optional[str] = None
  cookie: Optional[str] = None


converter = cattr.Converter()
converter.register_structure_hook(
  WireMessage,
  make_dict_structure_fn(
    WireMessage,
    converter,
    tool_calls=override(rename="toolCalls"),
    tool_results=override(rename="toolResults"),
  ),
)
converter.register_structure_hook(
  ChatBody,
  make_dict_structure_fn(
    ChatBody,
    converter,
    system_prompt=override(rename="systemPrompt"),
    task_id=override(rename="taskId"),
  ),
)


def to_turns(messages: List[WireMessage]) -> List[ConversationTurn]:
  turns: List[ConversationTurn] = []
  for message in messages:
    if message.role == "user":
      turns.append(UserTurn(text=message.content or ""))
    elif message.role == "assistant":
      calls = [ToolCall(name=c.name, arguments=dict(c.args or {}), id=c.id) for c in message.tool_calls or []]
      turns.append(ModelTurn(text=message.content or None, tool_calls=calls))
    else:
      raise ConfigurationError(f"Unsupported message role '{message.role}'")

    if message.tool_results:
      turns.append(
        ToolResultTurn([ToolResult(name=r.name, content=r.result, id=r.id) for r in message.tool_results])
      )
  return turns


def parse_services(header: Optional[str]) -> Optional[List[str]]:
  if header is None or not header.strip():
    return None
  return [name.strip() for name in header.split(",") if name.strip()]


@dataclass
class RunRequest:
  provider: str
  model_name: str
  api_key: Optional[str]
  enabled_services: Optional[List[str]]
  system_prompt: str
  history: List[ConversationTurn]
  task_id: Optional[str]
  cookie: Optional[str]

  @staticmethod
  def from_http(headers: Mapping[str, str], body: Any) -> "RunRequest":
    """
    Build a request from headers and a decoded JSON body.

    Raises ConfigurationError when the body does not have the expected shape. Use
    ``validate()`` before starting a run.
    """
    if not isinstance(body, dict):
      raise ConfigurationError("Request body must be a JSON object")
    try:
      chat = converter.structure(body, ChatBody)
    except (BaseValidationError, KeyError, TypeError, ValueError) as e:
      raise ConfigurationError(f"Invalid request body: {e}") from e

    provider = headers.get("x-model-provider")
    return RunRequest(
      provider=provider.strip().lower() if provider else get_default_provider(),
      model_name=headers.get("x-model-name") or get_default_model(),
      api_key=headers.get("x-api-key"),
      enabled_services=parse_services(headers.get("x-enabled-services")),
      system_prompt=chat.system_prompt or "",
      history=to_turns(chat.messages),
      task_id=chat.task_id,
      cookie=chat.cookie,
    )

  def validate(self) -> "RunRequest":
    if not self.api_key:
      raise MissingCredentialError()
    if self.provider not in SUPPORTED_PROVIDERS:
      raise UnknownProviderError(self.provider, SUPPORTED_PROVIDERS)
    if not self.session.is_valid():
      raise UninitializedSessionError()
    return self

  @property
  def session(self) -> Session:
    return Session(task_id=self.task_id or "", cookie=self.cookie or "")
