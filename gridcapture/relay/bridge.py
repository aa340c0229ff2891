import asyncio
import inspect
from collections.abc import Callable
from enum import Enum
from typing import Any

from gridcapture.logging.logger import Log
from gridcapture.relay.messages import Message

Listener = Callable[[Message], Any]


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    NO_LISTENER = "no_listener"


class RelayBridge:
    """Fire-and-forget channel between the capture side and its consumer.

    ``send`` never raises and never waits: a message with no listener is
    dropped, and listener failures are logged. There is no sequencing or
    retry; consumers use the ids inside payloads to discard stale messages.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def subscribe(self, message_type: str, listener: Listener) -> Callable[[], None]:
        self._listeners.setdefault(message_type, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(message_type, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def has_listener(self, message_type: str) -> bool:
        return bool(self._listeners.get(message_type))

    def send(self, message: Message) -> DeliveryStatus:
        listeners = list(self._listeners.get(message.type, []))
        if not listeners:
            Log.debug(f"No listener for {message.type}, dropped")
            return DeliveryStatus.NO_LISTENER

        for listener in listeners:
            try:
                result = listener(message)
            except Exception as exc:
                Log.error(f"Listener for {message.type} failed: {exc}")
                continue
            if inspect.isawaitable(result):
                self._schedule(message.type, result)
        return DeliveryStatus.DELIVERED

    async def drain(self) -> None:
        """Wait for every coroutine listener scheduled so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _schedule(self, message_type: str, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            Log.error(f"Listener for {message_type} needs a running event loop, dropped")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(task)

        def finished(done: asyncio.Task[Any]) -> None:
            self._tasks.discard(done)
            if not done.cancelled() and done.exception() is not None:
                Log.error(f"Listener for {message_type} failed: {done.exception()}")

        task.add_done_callback(finished)
