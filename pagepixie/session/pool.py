"""
Bounded LIFO pool of idle model sessions
"""

import logging
import threading
from typing import List, Optional

from .manager import SessionManager
from ..models.session import SessionOptions
from ..providers.base import BaseModelSession

logger = logging.getLogger(__name__)


class SessionPool:
    """
    Fixed-capacity stack of idle sessions

    A session is either idle in one of the pool's slots or checked out by
    exactly one caller. Slot access is guarded by a lock so checkout and
    release stay consistent when called from several threads.
    """

    def __init__(self, manager: SessionManager, capacity: int = 3, reuse_threshold: float = 80.0):
        if capacity < 1:
            raise ValueError("Pool capacity must be at least 1")

        self.manager = manager
        self.reuse_threshold = reuse_threshold
        self._slots: List[Optional[BaseModelSession]] = [None] * capacity
        self._size = 0
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def size(self) -> int:
        """Number of idle sessions"""
        return self._size

    def __len__(self) -> int:
        return self._size

    async def checkout(self, options: Optional[SessionOptions] = None) -> BaseModelSession:
        """
        Take the most recently released idle session, or create a new one

        An idle session whose usage reached the reuse threshold is destroyed
        and replaced with a fresh session.
        """
        session = self._pop()

        if session is not None:
            usage = self.manager.usage(session)
            if usage.percent_used < self.reuse_threshold:
                logger.debug(f"Reusing pooled session ({usage.percent_used:.1f}% used)")
                return session

            logger.info(f"Discarding pooled session at {usage.percent_used:.1f}% usage")
            session.destroy()

        return await self.manager.create_session(options)

    def release(self, session: BaseModelSession) -> None:
        """Return a session to the pool, destroying it if the pool is full"""
        if session.is_destroyed:
            logger.warning("Ignoring release of a destroyed session")
            return

        with self._lock:
            if any(slot is session for slot in self._slots[:self._size]):
                logger.warning("Session is already idle in the pool")
                return

            if self._size < len(self._slots):
                self._slots[self._size] = session
                self._size += 1
                return

        logger.debug("Session pool full, destroying released session")
        session.destroy()

    def destroy_all(self) -> None:
        """Destroy every idle session; checked-out sessions are unaffected"""
        with self._lock:
            idle = self._slots[:self._size]
            self._slots = [None] * len(self._slots)
            self._size = 0

        for session in idle:
            session.destroy()

        if idle:
            logger.info(f"Destroyed {len(idle)} pooled session(s)")

    def _pop(self) -> Optional[BaseModelSession]:
        with self._lock:
            if self._size == 0:
                return None
            self._size -= 1
            session = self._slots[self._size]
            self._slots[self._size] = None
            return session
