from typing import Protocol, Sequence

from .tool import ToolDescriptor


class ToolResolver(Protocol):
  def declarations(self) -> Sequence[ToolDescriptor]: ...

  def resolve(self, name: str) -> ToolDescriptor: ...
