from typing import Protocol

from .session import Session


class WorldExecutor(Protocol):
  async def execute(self, session: Session, instruction: str) -> str: ...
