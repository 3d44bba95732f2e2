from asyncio import Lock
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class SessionLockManager:
    """Single writer per game session.

    Every mutation of a session (start, flip) runs inside that session's lock,
    so verification and the state transition of one flip complete before the
    next flip for the same session is considered.
    """

    def __init__(self):
        self.locks: Dict[int, Lock] = {}  # session_idごとにLockを管理
        self.registry_lock = Lock()  # locksへのアクセスを保護

    async def get_lock(self, session_id: int) -> Lock:
        """Get the Lock of the specified session_id

        Args:
            session_id (int): ID to identify this game

        Returns:
            Lock: Lock of the specified session_id
        """
        async with self.registry_lock:
            if session_id not in self.locks:
                self.locks[session_id] = Lock()
            return self.locks[session_id]

    @asynccontextmanager
    async def hold(self, session_id: int) -> AsyncIterator[None]:
        """Hold the lock of the specified session_id for the duration of the block"""
        lock = await self.get_lock(session_id)
        async with lock:
            yield

    async def cleanup(self, session_id: int):
        """Delete the Lock of the specified session_id

        Args:
            session_id (int): ID to identify this game
        """
        async with self.registry_lock:
            lock = self.locks.get(session_id)
            if lock is not None and not lock.locked():
                del self.locks[session_id]
