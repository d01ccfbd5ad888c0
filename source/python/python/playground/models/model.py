from typing import Any, Optional, Sequence

from ..agents.errors import MissingCredentialError, UnknownProviderError
from ..logs import get_logger, InfoContext, DebugContext
from ..tools.tool import ToolDescriptor
from .clients.anthropic_client import AnthropicClient
from .clients.gemini_client import GeminiClient
from .clients.openai_client import OpenAIClient
from .clients.provider_config import get_default_model, get_default_provider
from .turns import ConversationTurn, ModelResponse

logger = get_logger("model")

MODEL_CLIENTS = {
  "gemini": GeminiClient,
  "anthropic": AnthropicClient,
  "openai": OpenAIClient,
}

SUPPORTED_PROVIDERS = tuple(MODEL_CLIENTS.keys())


class Model(InfoContext, DebugContext):
  """
  Uniform interface to the supported model providers.

  The provider selects the client that translates turns into the vendor's request shape:

  - ``gemini`` - Gemini ``generateContent`` REST API, with a thinking budget for
    reasoning-capable models
  - ``anthropic`` - Anthropic Messages API
  - ``openai`` - OpenAI Chat Completions API

  **Timeout Configuration**

  - ``request_timeout`` - Timeout for a model call (default: 120s)
  - ``connect_timeout`` - Connection establishment timeout (default: 10s)

  Construction fails with ``UnknownProviderError`` for an unsupported provider and with
  ``MissingCredentialError`` when no API key is given, before any request is made.
  """

  def __init__(
    self,
    name: Optional[str] = None,
    provider: Optional[str] = None,
    api_key: Optional[str] = None,
    request_timeout: float = 120.0,
    connect_timeout: float = 10.0,
    client: Optional[Any] = None,
    **kwargs,
  ):
    self.logger = get_logger("model")
    self.provider = (provider or get_default_provider()).strip().lower()
    self.name = name or get_default_model()

    if self.provider not in MODEL_CLIENTS:
      raise UnknownProviderError(self.provider, SUPPORTED_PROVIDERS)

    if client is not None:
      self.client = client
    else:
      if not api_key:
        raise MissingCredentialError(self.provider)
      self.client = MODEL_CLIENTS[self.provider](
        self.name,
        api_key,
        request_timeout=request_timeout,
        connect_timeout=connect_timeout,
        **kwargs,
      )

  async def invoke(
    self,
    system_instructions: str,
    history: Sequence[ConversationTurn],
    tools: Sequence[ToolDescriptor],
    conversation: Optional[str] = None,
  ) -> ModelResponse:
    with self.debug(
      f"Invoking {self.provider} model '{self.name}' with {len(history)} turns and {len(tools)} tools",
      f"Received response from {self.provider} model '{self.name}'",
    ):
      return await self.client.invoke(system_instructions, history, tools, conversation=conversation)

  async def aclose(self):
    close = getattr(self.client, "aclose", None)
    if close is not None:
      await close()

  def __repr__(self):
    return f"Model(provider={self.provider!r}, name={self.name!r})"
