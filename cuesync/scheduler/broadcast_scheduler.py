"""Periodic cue broadcast loop."""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Set

from cuesync.core.generator import CueGenerator
from cuesync.core.types import Cue

logger = logging.getLogger(__name__)


@dataclass
class BroadcastSchedulerConfig:
    """Configuration for BroadcastScheduler.

    Attributes:
        interval_ms: Delay between ticks in milliseconds.
        error_log_threshold: Consecutive failed ticks after which each
            further failure is logged as critical. The loop never stops
            on its own.
    """
    interval_ms: int = 5000
    error_log_threshold: int = 10


class Broadcaster(Protocol):
    """Protocol for fanning a serialized payload out to clients."""

    async def broadcast_text(self, text: str) -> int:
        ...


def serialize_cue(cue: Cue) -> str:
    """Serialize a cue to its JSON wire form."""
    return json.dumps(cue.to_dict(), ensure_ascii=False)


class BroadcastScheduler:
    """Fires the cue generator on a fixed interval and broadcasts the result.

    Each tick:
    1. Generate the next cue
    2. Serialize it once
    3. Hand the identical payload to every open connection

    Fan-out runs as its own task so a slow client never delays the next
    tick.

    Example:
        >>> scheduler = BroadcastScheduler(generator, registry)
        >>> scheduler.start()        # inside a running event loop
        >>> await scheduler.stop()
    """

    def __init__(
        self,
        generator: CueGenerator,
        broadcaster: Broadcaster,
        config: Optional[BroadcastSchedulerConfig] = None,
    ):
        self.generator = generator
        self.broadcaster = broadcaster
        self.config = config or BroadcastSchedulerConfig()

        # State
        self._task: Optional[asyncio.Task] = None
        self._fanout_tasks: Set[asyncio.Task] = set()
        self._error_count = 0
        self._tick_count = 0

    @property
    def is_running(self) -> bool:
        """Check if the broadcast loop is running."""
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        """Number of ticks fired since start."""
        return self._tick_count

    def start(self) -> None:
        """Start the broadcast loop on the running event loop."""
        if self.is_running:
            return
        logger.info(
            "Starting cue broadcast every %d ms", self.config.interval_ms
        )
        self._task = asyncio.create_task(self._main_loop())

    async def stop(self) -> None:
        """Stop the loop and cancel in-flight fan-outs."""
        logger.info("Stopping cue broadcast...")
        tasks = list(self._fanout_tasks)
        if self._task is not None:
            tasks.append(self._task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._task = None
        self._fanout_tasks.clear()

    async def _main_loop(self) -> None:
        """Main tick loop."""
        loop = asyncio.get_running_loop()
        interval = self.config.interval_ms / 1000.0
        next_fire = loop.time() + interval

        while True:
            await asyncio.sleep(max(0.0, next_fire - loop.time()))
            next_fire += interval

            try:
                self.tick()
                self._error_count = 0  # Reset on success
            except Exception as e:
                self._error_count += 1
                log = (
                    logger.critical
                    if self._error_count >= self.config.error_log_threshold
                    else logger.error
                )
                log(
                    "Error broadcasting cue (consecutive failures: %d): %s",
                    self._error_count,
                    e,
                    exc_info=True,
                )

    def tick(self) -> Cue:
        """Generate one cue and schedule its fan-out.

        Returns:
            The cue that was generated.
        """
        cue = self.generator.generate()
        payload = serialize_cue(cue)
        self._tick_count += 1

        logger.info(
            "[%s] Sending cue #%d %s (target: %d)",
            datetime.now().strftime("%H:%M:%S"),
            self.generator.state.counter,
            cue.cue_id,
            cue.target_timestamp,
        )

        task = asyncio.create_task(self._fan_out(cue.cue_id, payload))
        self._fanout_tasks.add(task)
        task.add_done_callback(self._fanout_tasks.discard)
        return cue

    async def _fan_out(self, cue_id: str, payload: str) -> None:
        try:
            recipients = await self.broadcaster.broadcast_text(payload)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Broadcast of %s failed: %s", cue_id, exc)
            return
        logger.info("%s delivered to %d client(s)", cue_id, recipients)
