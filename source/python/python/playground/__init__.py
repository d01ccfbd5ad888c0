from .logs import set_log_level, set_log_levels, get_logger, InfoContext, DebugContext
from .agents import (
  AgentLoop,
  EventStream,
  RunRequest,
  RunState,
  RunSummary,
  PlaygroundError,
  ConfigurationError,
  ProviderError,
  ToolExecutionError,
  ToolResolutionError,
)
from .models import Model
from .tools import ToolRegistry, ToolDescriptor, Field, default_registry, generate_system_prompt
from .world import Session, WorldClient
from .agents.http import HttpServer
