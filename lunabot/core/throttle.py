"""
Outbound reply queue for LunaBot.

Provides:
- One FIFO per target channel (no cross-channel head-of-line blocking)
- Minimum spacing between sends unless the bot is privileged there
- Failure isolation: a failed send never stops the drain
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from loguru import logger

from lunabot.core.privilege import PrivilegeTracker
from lunabot.utils.helpers import normalize_channel


# Async function(channel, text). Raises on failure.
Sender = Callable[[str, str], Awaitable[None]]


@dataclass
class ThrottleConfig:
    """Configuration for the outbound throttle."""
    min_spacing_ms: int = 1200  # Stays under the unprivileged cap with margin
    max_message_length: int = 500


@dataclass
class QueuedReply:
    """A reply waiting to be sent."""
    target: str
    payload: str
    enqueued_at: float
    outcome: "asyncio.Future[bool]" = field(repr=False)

    def resolve(self, delivered: bool) -> None:
        if not self.outcome.done():
            self.outcome.set_result(delivered)


class DrainState(str, Enum):
    """Delivery state of one target's FIFO."""
    IDLE = "idle"
    DRAINING = "draining"


class OutboundThrottle:
    """
    Serializes and paces reply delivery per target.

    Each target has its own FIFO drained by at most one task, so sends to a
    target are never concurrent and always in enqueue order. Before each
    send to a non-privileged target the drain waits until min_spacing has
    passed since the previous send there; privileged targets are sent
    immediately.
    """

    def __init__(
        self,
        sender: Sender,
        privileges: PrivilegeTracker,
        config: ThrottleConfig | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        self.config = config or ThrottleConfig()
        self._sender = sender
        self._privileges = privileges
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep

        self._queues: dict[str, deque[QueuedReply]] = {}
        self._drains: dict[str, asyncio.Task] = {}
        self._last_sent: dict[str, float] = {}
        self._accepting = True

        # Stats
        self._total_enqueued = 0
        self._total_sent = 0
        self._total_failed = 0
        self._total_dropped = 0

    @property
    def min_spacing(self) -> float:
        """Spacing between unprivileged sends, in seconds."""
        return self.config.min_spacing_ms / 1000

    def state(self, target: str) -> DrainState:
        key = normalize_channel(target)
        return DrainState.DRAINING if key in self._drains else DrainState.IDLE

    def pending(self, target: str) -> int:
        """Number of replies still queued for a target."""
        return len(self._queues.get(normalize_channel(target), ()))

    def enqueue(self, target: str, payload: str) -> "asyncio.Future[bool]":
        """
        Queue a reply for delivery.

        Args:
            target: Channel to send to.
            payload: Message text.

        Returns:
            Future resolving to True once sent, False if the send failed or
            the reply was dropped.
        """
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[bool] = loop.create_future()
        key = normalize_channel(target)

        if not self._accepting:
            logger.warning(f"Outbound throttle closed, dropping reply to #{key}")
            self._total_dropped += 1
            outcome.set_result(False)
            return outcome

        payload = self._truncate(payload.strip())
        if not payload:
            outcome.set_result(False)
            return outcome

        self._total_enqueued += 1
        self._queues.setdefault(key, deque()).append(
            QueuedReply(target=key, payload=payload, enqueued_at=self._clock(), outcome=outcome)
        )

        if key not in self._drains:
            self._drains[key] = loop.create_task(self._drain(key), name=f"drain:{key}")

        return outcome

    def _truncate(self, payload: str) -> str:
        limit = self.config.max_message_length
        if limit and len(payload) > limit:
            return payload[: limit - 3].rstrip() + "..."
        return payload

    async def _drain(self, key: str) -> None:
        """Send everything queued for one target, then go idle."""
        queue = self._queues[key]
        try:
            while queue:
                # Leave the head queued while waiting so a discard still resolves it
                item = queue[0]

                if self._privileges.can_bypass(key):
                    logger.debug(f"Bypassing outbound spacing for #{key}")
                else:
                    await self._wait_for_spacing(key)

                queue.popleft()
                await self._send(item)
        finally:
            self._drains.pop(key, None)
            if not queue:
                self._queues.pop(key, None)

    async def _wait_for_spacing(self, key: str) -> None:
        last = self._last_sent.get(key)
        if last is None:
            return
        wait = self.min_spacing - (self._clock() - last)
        if wait > 0:
            await self._sleep(wait)

    async def _send(self, item: QueuedReply) -> None:
        self._last_sent[item.target] = self._clock()
        try:
            await self._sender(item.target, item.payload)
        except asyncio.CancelledError:
            self._total_dropped += 1
            item.resolve(False)
            raise
        except Exception as e:
            self._total_failed += 1
            logger.warning(f"Failed to send reply to #{item.target}: {e}")
            item.resolve(False)
            return

        self._total_sent += 1
        item.resolve(True)

    async def join(self) -> None:
        """Wait until every target is idle."""
        while self._drains:
            await asyncio.gather(*list(self._drains.values()), return_exceptions=True)

    async def close(self, drain: bool = True, timeout: float | None = None) -> None:
        """
        Stop accepting replies and drain or discard what is queued.

        Args:
            drain: Deliver queued replies before returning.
            timeout: Upper bound on draining; leftovers are discarded.
        """
        self._accepting = False

        if drain and self._drains:
            try:
                await asyncio.wait_for(self.join(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("Outbound drain timed out, discarding remaining replies")

        await self._discard()

    async def _discard(self) -> None:
        tasks = list(self._drains.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._drains.clear()

        for queue in self._queues.values():
            while queue:
                queue.popleft().resolve(False)
                self._total_dropped += 1
        self._queues.clear()

    def get_stats(self) -> dict[str, Any]:
        """Get throttle statistics."""
        return {
            "accepting": self._accepting,
            "draining": sorted(self._drains),
            "pending": {k: len(q) for k, q in self._queues.items() if q},
            "total_enqueued": self._total_enqueued,
            "total_sent": self._total_sent,
            "total_failed": self._total_failed,
            "total_dropped": self._total_dropped,
        }
