from .model import Model, MODEL_CLIENTS, SUPPORTED_PROVIDERS
from .turns import (
  ContinuationState,
  ConversationTurn,
  ModelResponse,
  ModelTurn,
  ToolCall,
  ToolResult,
  ToolResultTurn,
  UserTurn,
  synthesize_call_id,
)

__all__ = [
  "Model",
  "MODEL_CLIENTS",
  "SUPPORTED_PROVIDERS",
  "ContinuationState",
  "ConversationTurn",
  "ModelResponse",
  "ModelTurn",
  "ToolCall",
  "ToolResult",
  "ToolResultTurn",
  "UserTurn",
  "synthesize_call_id",
]
