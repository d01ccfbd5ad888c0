from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
  """
  Handle of one initialized simulated-world task.

  Created by the world's initialize call and only read during a run.
  """

  task_id: str
  cookie: str

  def is_valid(self) -> bool:
    return bool(self.task_id) and bool(self.cookie)
