"""Real-time fan-out of new contact messages over Server-Sent Events.

A ``BroadcastRegistry`` holds the channels of every open stream connection
in this process. Publishing writes one framed event to each of them; a
failing channel never affects the others or the publisher.
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator

from contact_relay.api.errors import BroadcastWriteError

logger = logging.getLogger(__name__)

CONTACT_NEW_EVENT = "contact:new"
PING_EVENT = "ping"
DEFAULT_PING_INTERVAL = 25.0


def format_event(event: str, payload: Any) -> str:
    """Frame a payload as a single SSE event.

    Args:
        event: Event name
        payload: JSON-serializable data

    Returns:
        ``event: <event>\\ndata: <json>\\n\\n``
    """
    data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


class SSEChannel:
    """Outbound side of one open stream connection.

    Frames are buffered in an unbounded queue and drained by the response
    generator.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: str) -> None:
        """Queue a frame without waiting.

        Raises:
            BroadcastWriteError: If the channel has been closed
        """
        if self._closed:
            raise BroadcastWriteError("channel is closed")
        self._queue.put_nowait(frame)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # wake up a pending reader
        self._queue.put_nowait(None)

    def __aiter__(self) -> AsyncIterator[str]:
        return self._frames()

    async def _frames(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame


class BroadcastRegistry:
    """Set of channels currently subscribed to broadcasts.

    One registry is owned by each application instance.
    """

    def __init__(self) -> None:
        self._channels: set[SSEChannel] = set()

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, channel: object) -> bool:
        return channel in self._channels

    def subscribe(self, channel: SSEChannel) -> None:
        self._channels.add(channel)
        logger.debug("Stream subscribed (%d active)", len(self._channels))

    def unsubscribe(self, channel: SSEChannel) -> None:
        """Remove a channel. Absent channels are ignored."""
        self._channels.discard(channel)
        logger.debug("Stream unsubscribed (%d active)", len(self._channels))

    def publish(self, event: str, payload: Any) -> int:
        """Write one event to every subscribed channel.

        Channels that fail are logged and dropped; the failure does not
        reach the caller.

        Args:
            event: Event name
            payload: JSON-serializable data

        Returns:
            Number of channels the event was written to
        """
        frame = format_event(event, payload)
        delivered = 0

        # snapshot: unsubscribe may run while we iterate
        for channel in list(self._channels):
            try:
                channel.send(frame)
            except Exception as e:
                logger.warning(
                    "Broadcast write failed",
                    extra={"event": event, "error": str(e)},
                )
                self._channels.discard(channel)
                continue
            delivered += 1

        return delivered


async def _keep_alive(channel: SSEChannel, interval: float) -> None:
    ping = format_event(PING_EVENT, {})
    while True:
        await asyncio.sleep(interval)
        try:
            channel.send(ping)
        except BroadcastWriteError:
            return


async def stream_events(
    registry: BroadcastRegistry,
    ping_interval: float = DEFAULT_PING_INTERVAL,
) -> AsyncIterator[str]:
    """Yield SSE frames for one stream connection.

    Subscribes a new channel on first iteration and sends a ``ping`` event
    every ``ping_interval`` seconds. The channel is unsubscribed and the
    keep-alive task cancelled when the generator is closed or cancelled,
    which is what happens when the client disconnects.

    Args:
        registry: Registry to subscribe to
        ping_interval: Seconds between keep-alive events

    Yields:
        Framed SSE events
    """
    channel = SSEChannel()
    registry.subscribe(channel)
    keep_alive = asyncio.create_task(_keep_alive(channel, ping_interval))
    try:
        async for frame in channel:
            yield frame
    finally:
        keep_alive.cancel()
        registry.unsubscribe(channel)
        channel.close()
