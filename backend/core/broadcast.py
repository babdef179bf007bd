"""Broadcast hub fanning out tagged events to live subscribers.

Every subscriber gets a bounded queue and a writer task. ``publish``
serializes the envelope once and only enqueues, so a slow subscriber never
blocks the publisher or the other subscribers. When a queue is full the
overflow policy either drops the oldest queued message or disconnects the
subscriber.

Send failures are logged and ignored: a subscriber leaves the registry
only through ``unregister`` (explicit disconnect) or the DISCONNECT
overflow policy.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

import orjson
from pydantic import BaseModel

from core.models import MarketQuote, Signal

logger = logging.getLogger(__name__)

EVENT_MARKET_UPDATE = "marketUpdate"
EVENT_NEW_SIGNAL = "newSignal"

DEFAULT_QUEUE_SIZE = 256


@runtime_checkable
class Subscriber(Protocol):
    """Delivery channel for one connected client."""

    @property
    def is_open(self) -> bool:
        ...

    async def send_text(self, data: str) -> None:
        ...


class OverflowPolicy(str, Enum):
    """What to do when a subscriber's queue is full."""

    DROP_OLDEST = "drop_oldest"
    DISCONNECT = "disconnect"


def _default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    return str(obj)


def encode_envelope(event: str, payload: Any) -> str:
    """Serialize an ``{event, payload}`` envelope to a JSON string."""
    return orjson.dumps({"event": event, "payload": payload}, default=_default).decode("utf-8")


class _Channel:
    """Queue and writer task for one subscriber."""

    def __init__(self, subscriber: Subscriber, queue_size: int):
        self.subscriber = subscriber
        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self.sent = 0
        self.dropped = 0
        self.errors = 0
        self.writer: asyncio.Task | None = None

    def offer(self, message: str, policy: OverflowPolicy) -> bool:
        """Enqueue without blocking. False means the subscriber overflowed."""
        try:
            self.queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            if policy is OverflowPolicy.DISCONNECT:
                return False

        self.queue.get_nowait()
        self.queue.task_done()
        self.dropped += 1
        self.queue.put_nowait(message)
        return True

    async def run(self) -> None:
        while True:
            message = await self.queue.get()
            try:
                if self.subscriber.is_open:
                    await self.subscriber.send_text(message)
                    self.sent += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.errors += 1
                logger.warning(f"Failed to send message to subscriber: {e}")
            finally:
                self.queue.task_done()


class BroadcastHub:
    """Registry of live subscribers with non-blocking fan-out."""

    def __init__(
        self,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        overflow: OverflowPolicy = OverflowPolicy.DROP_OLDEST,
    ):
        if queue_size < 1:
            raise ValueError(f"queue_size must be positive, got {queue_size}")
        self.queue_size = queue_size
        self.overflow = OverflowPolicy(overflow)
        self._channels: dict[Subscriber, _Channel] = {}
        self._lock = asyncio.Lock()
        self._closed = False

    async def register(self, subscriber: Subscriber) -> None:
        """Add a subscriber and start its writer."""
        if self._closed:
            raise RuntimeError("BroadcastHub is closed")
        async with self._lock:
            if subscriber in self._channels:
                return
            channel = _Channel(subscriber, self.queue_size)
            channel.writer = asyncio.create_task(channel.run())
            self._channels[subscriber] = channel
        logger.info(f"Subscriber registered. Total subscribers: {len(self._channels)}")

    async def unregister(self, subscriber: Subscriber) -> None:
        """Remove a subscriber (explicit disconnect) and stop its writer."""
        async with self._lock:
            channel = self._channels.pop(subscriber, None)
        if channel is None:
            return
        await self._stop_channel(channel)
        logger.info(f"Subscriber unregistered. Total subscribers: {len(self._channels)}")

    @staticmethod
    async def _stop_channel(channel: _Channel) -> None:
        if channel.writer is None:
            return
        channel.writer.cancel()
        try:
            await channel.writer
        except asyncio.CancelledError:
            pass

    async def publish(self, event: str, payload: Any) -> int:
        """
        Fan out one event to every registered subscriber.

        Args:
            event: Event name (e.g., "marketUpdate", "newSignal")
            payload: JSON-serializable payload

        Returns:
            Number of subscribers the message was queued for
        """
        if not self._channels:
            return 0

        message = encode_envelope(event, payload)
        queued = 0
        overflowed: list[Subscriber] = []

        for subscriber, channel in list(self._channels.items()):
            if channel.offer(message, self.overflow):
                queued += 1
            else:
                overflowed.append(subscriber)

        for subscriber in overflowed:
            logger.warning("Subscriber queue full, disconnecting slow subscriber")
            await self.unregister(subscriber)

        return queued

    async def publish_market_update(self, quote: MarketQuote, timestamp: datetime) -> int:
        """Broadcast a market snapshot."""
        return await self.publish(EVENT_MARKET_UPDATE, quote.to_payload(timestamp))

    async def publish_signal(self, signal: Signal) -> int:
        """Broadcast a newly created signal."""
        return await self.publish(EVENT_NEW_SIGNAL, signal.to_payload())

    async def drain(self) -> None:
        """Wait until every queued message has been handled."""
        channels = list(self._channels.values())
        await asyncio.gather(*(c.queue.join() for c in channels))

    async def close(self) -> None:
        """Stop all writers and clear the registry."""
        self._closed = True
        async with self._lock:
            channels = list(self._channels.values())
            self._channels.clear()
        for channel in channels:
            await self._stop_channel(channel)
        logger.info("BroadcastHub closed")

    @property
    def subscriber_count(self) -> int:
        """Get number of registered subscribers."""
        return len(self._channels)

    def stats(self) -> dict[str, int]:
        """Aggregate delivery counters across subscribers."""
        channels = list(self._channels.values())
        return {
            "subscribers": len(channels),
            "sent": sum(c.sent for c in channels),
            "dropped": sum(c.dropped for c in channels),
            "errors": sum(c.errors for c in channels),
        }
