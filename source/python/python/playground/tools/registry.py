from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..agents.errors import ToolResolutionError
from ..logs.logs import InfoContext, get_logger
from .tool import ToolDescriptor


@dataclass(frozen=True)
class SnapshotView:
  """A read-only call whose result is shown under ``key`` in the service's world context."""

  key: str
  method: str
  arguments: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Service:
  name: str
  display_name: str
  description: str
  functions: Sequence[ToolDescriptor] = field(default_factory=tuple)
  snapshot: Sequence[SnapshotView] = field(default_factory=tuple)
  # profile field used as the login username
  login_field: str = "email"

  def to_dict(self) -> dict:
    return {
      "name": self.name,
      "displayName": self.display_name,
      "description": self.description,
      "functions": [f.name for f in self.functions],
    }


class ToolSet:
  """
  The tools active for one run.

  ``declarations()`` are advertised to the model. ``resolve()`` also finds hidden tools,
  which can be called but are never declared.
  """

  def __init__(self, tools: Iterable[ToolDescriptor], hidden: Iterable[ToolDescriptor] = ()):
    self._tools: Dict[str, ToolDescriptor] = {}
    for tool in tools:
      self._tools.setdefault(tool.name, tool)
    self._hidden: Dict[str, ToolDescriptor] = {t.name: t for t in hidden if t.name not in self._tools}

  def declarations(self) -> List[ToolDescriptor]:
    return list(self._tools.values())

  def resolve(self, name: str) -> ToolDescriptor:
    tool = self._tools.get(name) or self._hidden.get(name)
    if tool is None:
      raise ToolResolutionError(name)
    return tool

  def names(self) -> List[str]:
    return list(self._tools.keys())

  def __contains__(self, name: str) -> bool:
    return name in self._tools or name in self._hidden

  def __len__(self) -> int:
    return len(self._tools)


class ToolRegistry(InfoContext):
  """
  Catalog of every service and tool the playground knows about.

  Base tools are active in every run regardless of the selected services.
  """

  def __init__(
    self,
    services: Iterable[Service] = (),
    base_tools: Iterable[ToolDescriptor] = (),
    hidden_tools: Iterable[ToolDescriptor] = (),
  ):
    self.logger = get_logger("tool")
    self._services: Dict[str, Service] = {}
    self.base_tools: List[ToolDescriptor] = list(base_tools)
    self.hidden_tools: List[ToolDescriptor] = list(hidden_tools)
    for service in services:
      self.register(service)

  def register(self, service: Service):
    if service.name in self._services:
      raise ValueError(f"Service '{service.name}' is already registered")
    self._services[service.name] = service
    self.logger.debug(f"Registered service '{service.name}' with {len(service.functions)} tools")

  @property
  def services(self) -> List[Service]:
    return list(self._services.values())

  def service_names(self) -> List[str]:
    return list(self._services.keys())

  def service(self, name: str) -> Optional[Service]:
    return self._services.get(name)

  def select(self, service_names: Optional[Sequence[str]] = None) -> ToolSet:
    """
    Build the tool set for a run from the enabled services, all services when None.

    Unknown service names are ignored.
    """
    if service_names is None:
      service_names = self.service_names()

    tools = list(self.base_tools)
    for service in self._services.values():
      if service.name in service_names:
        tools.extend(service.functions)

    unknown = [name for name in service_names if name not in self._services]
    if unknown:
      self.logger.warning(f"Ignoring unknown services: {', '.join(unknown)}")

    return ToolSet(tools, hidden=self.hidden_tools)

  def resolve(self, name: str) -> ToolDescriptor:
    return self.select().resolve(name)

  def display_names(self, service_names: Sequence[str]) -> List[str]:
    return [s.display_name for s in self._services.values() if s.name in service_names]
