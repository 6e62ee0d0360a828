"""Batched event delivery.

Entity deltas are queued and flushed to the sink every ``flush_interval``
seconds by a background task; status, progress, fatal-error and completion
events flush the queue and are delivered at once, so delivery order always
matches emission order.
"""

import asyncio
import logging
from typing import Callable, Optional

from .events import GraphEvent, is_immediate

logger = logging.getLogger(__name__)

EventSink = Callable[[list[GraphEvent]], None]

DEFAULT_FLUSH_INTERVAL = 0.25


class EventStream:
    """Buffered channel between the engine and one consumer.

    Usage:
        stream = EventStream(sink=print_batch)
        stream.start()
        stream.emit(PaperAddedEvent(paper=paper))
        await stream.stop()  # final flush
    """

    def __init__(self, sink: EventSink, flush_interval: float = DEFAULT_FLUSH_INTERVAL):
        self._sink = sink
        self.flush_interval = flush_interval
        self._queue: list[GraphEvent] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def emit(self, event: GraphEvent) -> None:
        """Queue a delta, or deliver immediately for control events."""
        if is_immediate(event):
            self.flush()
            self._sink([event])
        else:
            self._queue.append(event)

    def flush(self) -> None:
        """Deliver all queued events as one batch."""
        if not self._queue:
            return
        batch, self._queue = self._queue, []
        logger.debug(f"Flushing {len(batch)} events")
        self._sink(batch)

    def start(self) -> None:
        """Start the periodic flush task (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._flush_loop())

    async def stop(self) -> None:
        """Stop the periodic flush and deliver whatever is still queued."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.flush()

    def discard(self) -> int:
        """Drop queued events without delivering them (session reset)."""
        dropped = len(self._queue)
        self._queue = []
        return dropped

    async def _flush_loop(self) -> None:
        while True:
            await asyncio.sleep(self.flush_interval)
            self.flush()
