"""One-way task channel from test bodies to the host process.

Test code calls ``send`` and waits until the host-side consumer has handled
the message, so task output keeps its place among the runner's own log
records.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from types import TracebackType
from typing import Any, Self

from e2e_harness.errors import TaskNotHandled

log = logging.getLogger(__name__)
task_log = logging.getLogger("e2e_harness.tasks")

type TaskHandler = Callable[[Any], Any]

DEFAULT_QUEUE_SIZE = 100


@dataclass(frozen=True, kw_only=True)
class TaskMessage:
    """A message sent over the bridge."""

    sequence: int
    name: str
    payload: Any
    timestamp: datetime


def log_task(message: Any) -> None:
    """Print a message on the host console."""
    task_log.info("%s", message)


class TaskBridge:
    """Bounded queue with a host-side consumer that acknowledges every message."""

    def __init__(
        self,
        handlers: Mapping[str, TaskHandler] | None = None,
        *,
        maxsize: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self._handlers: dict[str, TaskHandler] = {"log": log_task}
        self._handlers.update(handlers or {})
        self._queue: asyncio.Queue[tuple[TaskMessage, asyncio.Future[Any]]] = (
            asyncio.Queue(maxsize=maxsize)
        )
        self._consumer: asyncio.Task[None] | None = None
        self._sequence = 0

    def register(self, name: str, handler: TaskHandler) -> None:
        """Register or replace the handler for a task name."""
        self._handlers[name] = handler

    async def __aenter__(self) -> Self:
        self._consumer = asyncio.create_task(self._consume(), name="task-bridge")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._queue.join()
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None

    async def send(self, name: str, payload: Any = None) -> Any:
        """Deliver a task message and wait for the host to handle it.

        Returns:
            The handler's return value

        Raises:
            TaskNotHandled: If no handler is registered for ``name``
            RuntimeError: If the bridge has not been started

        """
        if self._consumer is None:
            raise RuntimeError("Task bridge is not running")
        if name not in self._handlers:
            raise TaskNotHandled(name, sorted(self._handlers))

        self._sequence += 1
        message = TaskMessage(
            sequence=self._sequence,
            name=name,
            payload=payload,
            timestamp=datetime.now(timezone.utc),
        )
        ack: asyncio.Future[Any] = asyncio.get_event_loop().create_future()
        await self._queue.put((message, ack))
        return await ack

    async def _consume(self) -> None:
        while True:
            message, ack = await self._queue.get()
            try:
                result = self._handlers[message.name](message.payload)
            except Exception as e:
                log.debug("Task %s #%d raised: %s", message.name, message.sequence, e)
                if not ack.cancelled():
                    ack.set_exception(e)
            else:
                if not ack.cancelled():
                    ack.set_result(result)
            finally:
                self._queue.task_done()
