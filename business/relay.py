import asyncio
import logging
from typing import Any, Dict, Protocol

from utils.constants import RELAY_SEND_TIMEOUT

logger = logging.getLogger(__name__)


class Listener(Protocol):
    """A connected client. Starlette's ``WebSocket`` satisfies this."""

    async def accept(self) -> None:
        ...

    async def send_json(self, data: Any) -> None:
        ...


class BroadcastRelay:
    """
    Single shared channel that republishes every event to every listener.

    There is no filtering by receiver: the publisher gets its own event back
    along with everyone else. Nothing is persisted or replayed, so a listener
    only sees events published while it is registered.

    The registry lock is only held to mutate or snapshot the listener set.
    Fan-out runs under a separate publish lock, which keeps every listener
    seeing publishes in the same order. Each send is bounded by
    ``send_timeout``; a listener that times out or fails is dropped.
    """

    def __init__(self, send_timeout: float = RELAY_SEND_TIMEOUT):
        # Keyed by id(): starlette WebSockets are not hashable
        self._listeners: Dict[int, Listener] = {}
        self._registry_lock = asyncio.Lock()
        self._publish_lock = asyncio.Lock()
        self.send_timeout = send_timeout

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def connect(self, listener: Listener) -> None:
        await listener.accept()
        async with self._registry_lock:
            self._listeners[id(listener)] = listener
            logger.info(f"Relay listener connected ({len(self._listeners)} active)")

    async def disconnect(self, listener: Listener) -> None:
        async with self._registry_lock:
            if self._listeners.pop(id(listener), None) is not None:
                logger.info(f"Relay listener disconnected ({len(self._listeners)} active)")

    async def _drop(self, key: int, listener: Listener) -> None:
        async with self._registry_lock:
            if self._listeners.get(key) is listener:
                del self._listeners[key]

    async def publish(self, event: Dict[str, Any]) -> int:
        """Deliver ``event`` to all registered listeners. Returns how many received it."""
        async with self._publish_lock:
            async with self._registry_lock:
                snapshot = list(self._listeners.items())

            delivered = 0
            for key, listener in snapshot:
                try:
                    await asyncio.wait_for(listener.send_json(event), timeout=self.send_timeout)
                    delivered += 1
                except asyncio.TimeoutError:
                    logger.warning(
                        f"Dropping relay listener after send timed out ({self.send_timeout}s)"
                    )
                    await self._drop(key, listener)
                except Exception as e:
                    logger.warning(f"Dropping relay listener after failed send: {e}")
                    await self._drop(key, listener)

        return delivered
