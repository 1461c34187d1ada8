from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Sequence

from api.websocket import protocol
from core.market_data.simulator import PriceFeedSimulator
from core.sessions.registry import Session, SessionRegistry
from core.types import PriceSample

logger = logging.getLogger(__name__)


class BroadcastRouter:
    """Run the price tick loop and fan each sample out to subscribed sessions.

    Delivery is fire-and-forget: a session that is not registered and
    authenticated at tick time gets nothing for that tick. A failed send drops
    the session and delivery continues for everyone else.
    """

    def __init__(
        self,
        *,
        registry: SessionRegistry,
        feed: PriceFeedSimulator,
        interval_seconds: float = 1.0,
        send_timeout_seconds: float = 5.0,
    ) -> None:
        self._registry = registry
        self._feed = feed
        self._interval_seconds = interval_seconds
        self._send_timeout_seconds = send_timeout_seconds
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> dict[str, float]:
        """Current price for every catalog symbol, regardless of subscriptions."""
        return self._feed.prices()

    async def send(self, session: Session, payload: dict[str, object]) -> bool:
        """Push one frame to a session; on failure or timeout the session is disconnected."""
        if session.is_closed:
            return False
        try:
            await asyncio.wait_for(session.connection.send_json(payload), timeout=self._send_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Send to session {session.session_id} timed out after {self._send_timeout_seconds}s")
            self._registry.disconnect(session)
            return False
        except Exception:
            logger.warning(f"Failed to send to session {session.session_id}", exc_info=True)
            self._registry.disconnect(session)
            return False
        return True

    async def broadcast(self, samples: Sequence[PriceSample]) -> int:
        """Deliver each sample to sessions subscribed to its symbol. Returns frames sent.

        Sessions are served concurrently so a slow peer only delays its own frames.
        """
        if not samples:
            return 0

        frames = [(sample.symbol, protocol.price_update(sample)) for sample in samples]
        counts = await asyncio.gather(
            *(self._deliver(session, frames) for session in self._registry.authenticated_sessions())
        )
        return sum(counts)

    async def _deliver(self, session: Session, frames: list[tuple[str, dict[str, object]]]) -> int:
        sent = 0
        for symbol, payload in frames:
            # Re-checked per frame: an earlier failed send closes the session.
            if not session.is_subscribed(symbol):
                continue
            if await self.send(session, payload):
                sent += 1
        return sent

    async def close_all(self) -> None:
        """Close every live connection and release its session."""
        for session in self._registry.sessions():
            try:
                await asyncio.wait_for(session.connection.close(), timeout=self._send_timeout_seconds)
            except Exception:
                logger.debug(f"Close failed for session {session.session_id}", exc_info=True)
            self._registry.disconnect(session)

    async def tick(self) -> int:
        samples = self._feed.tick()
        return await self.broadcast(samples)

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event))
        logger.info(f"Price tick loop started (interval {self._interval_seconds}s)")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        await self._await_task(task, self._stop_event)
        logger.info("Price tick loop stopped")

    async def _run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._interval_seconds)
                return
            except asyncio.TimeoutError:
                pass

            try:
                await self.tick()
            except Exception:
                logger.exception("Price tick failed; continuing")

    async def _await_task(self, task: asyncio.Task, stop_event: asyncio.Event) -> None:
        stop_event.set()
        try:
            await asyncio.wait_for(task, timeout=1.0)
        except asyncio.TimeoutError:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        except asyncio.CancelledError:
            return
