from .gemini_client import GeminiClient
from .anthropic_client import AnthropicClient
from .openai_client import OpenAIClient

__all__ = ["GeminiClient", "AnthropicClient", "OpenAIClient"]
