"""
Asyncio-backed clock and timer capabilities.

Timer callbacks run on the event loop thread via ``loop.call_later``.
Calls made from other threads are handed over to the loop first.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from ..engine.capabilities import Clock, TimerCallback, TimerPrimitive

logger = logging.getLogger(__name__)


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class AsyncioTimerPrimitive(TimerPrimitive):
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()

    def schedule(self, delay_ms: int, callback: TimerCallback) -> asyncio.TimerHandle:
        delay = max(0, delay_ms) / 1000
        if self._on_loop_thread():
            return self.loop.call_later(delay, callback)

        # Blocks the calling thread until the loop has armed the timer.
        future = asyncio.run_coroutine_threadsafe(self._call_later(delay, callback), self.loop)
        return future.result()

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        if handle is None:
            return
        if self._on_loop_thread():
            handle.cancel()
        else:
            self.loop.call_soon_threadsafe(handle.cancel)

    async def _call_later(self, delay: float, callback: TimerCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self.loop
        except RuntimeError:
            return False
