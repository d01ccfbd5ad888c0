from .tool import Field, ToolDescriptor, MISSING
from .protocol import ToolResolver
from .registry import Service, SnapshotView, ToolSet, ToolRegistry
from .render import api_call, authenticated_call, format_python_arg, format_keyword_args
from .catalog import (
  BASE_TOOLS,
  COMPLETION_TOOL,
  EXECUTE_PYTHON,
  SERVICES,
  default_registry,
  default_preset,
  generate_system_prompt,
)

__all__ = [
  "Field",
  "ToolDescriptor",
  "MISSING",
  "ToolResolver",
  "Service",
  "SnapshotView",
  "ToolSet",
  "ToolRegistry",
  "api_call",
  "authenticated_call",
  "format_python_arg",
  "format_keyword_args",
  "BASE_TOOLS",
  "COMPLETION_TOOL",
  "EXECUTE_PYTHON",
  "SERVICES",
  "default_registry",
  "default_preset",
  "generate_system_prompt",
]
