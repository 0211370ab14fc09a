from __future__ import annotations

import asyncio
import threading
from logging import getLogger
from typing import Optional

logger = getLogger(__name__)


class CompletionSignal:
    """
    One-shot completion flag shared by the session driver and event handlers.

    The first ``set()`` wins and records its reason; every later call is a
    no-op. ``set()`` may be called from any thread, ``wait()`` must be awaited
    on the loop the signal was created for (the running loop at first wait).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reason: Optional[str] = None
        self._event = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def is_set(self) -> bool:
        return self._reason is not None

    def set(self, reason: str) -> bool:
        """Returns True if this call completed the signal, False if it was already set."""
        with self._lock:
            if self._reason is not None:
                logger.debug("[SESSION] completion already set (%s), ignoring %s", self._reason, reason)
                return False
            self._reason = reason
            loop = self._loop

        logger.debug("[SESSION] completion set: %s", reason)
        if loop is not None and not _on_loop(loop):
            loop.call_soon_threadsafe(self._event.set)
        else:
            self._event.set()
        return True

    async def wait(self, timeout: Optional[float] = None) -> str:
        """
        Wait until set and return the winning reason.

        Raises asyncio.TimeoutError when timeout (seconds) elapses first.
        """
        with self._lock:
            self._loop = asyncio.get_running_loop()
            if self._reason is not None:
                return self._reason
        if timeout is None:
            await self._event.wait()
        else:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        return self._reason


def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False
