"""
Push delivery of a run's trace events.

The loop runs as a producer task that puts every event on an ``asyncio.Queue``; the
observer consumes them in emission order, either as event objects or as server-sent event
frames (``data: <json>\\n\\n``). When the observer goes away the shared cancellation token
is set, the producer finishes its current model call or tool execution and stops.
"""

import asyncio
import json

from typing import AsyncIterator, Awaitable, Callable, Optional, Set

from ..logs import get_logger
from .errors import StreamTransportError
from .events import TraceEvent
from .loop import AgentLoop
from .state import RunState

_END = object()


def format_sse(event: TraceEvent) -> str:
  return f"data: {json.dumps(event.to_dict(), ensure_ascii=False, default=str)}\n\n"


class EventStream:
  # keep references to running producers so they are not garbage collected mid-run
  _background_tasks: Set[asyncio.Task] = set()

  def __init__(self, loop: AgentLoop, state: RunState):
    self.logger = get_logger("agent")
    self.loop = loop
    self.state = state
    self.cancelled = asyncio.Event()
    self.queue: asyncio.Queue = asyncio.Queue()
    self.task: Optional[asyncio.Task] = None

  def start(self) -> "EventStream":
    if self.task is None:
      self.task = asyncio.create_task(self._produce())
      EventStream._background_tasks.add(self.task)
      self.task.add_done_callback(EventStream._background_tasks.discard)
    return self

  def cancel(self):
    self.cancelled.set()

  async def _produce(self):
    try:
      async for event in self.loop.run(self.state, self.cancelled):
        if self.cancelled.is_set():
          break
        self.queue.put_nowait(event)
    finally:
      self.queue.put_nowait(_END)

  async def events(self) -> AsyncIterator[TraceEvent]:
    self.start()
    while True:
      item = await self.queue.get()
      if item is _END:
        break
      yield item

  def __aiter__(self):
    return self.events()

  async def frames(self, is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None) -> AsyncIterator[str]:
    """
    Server-sent event frames, one per event.

    ``is_disconnected`` is polled before each frame. A disconnected observer, or one that
    stops iterating, cancels the run.
    """
    try:
      async for event in self.events():
        if is_disconnected is not None and await is_disconnected():
          raise StreamTransportError("Observer disconnected")
        yield format_sse(event)
    except StreamTransportError as e:
      self.logger.info(f"{e.message}, cancelling run for task '{self.loop.session.task_id}'")
    finally:
      self.cancel()

  async def wait(self):
    if self.task is not None:
      await self.task
