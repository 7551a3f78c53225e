"""
Session store for multi-call validation transactions.

Holds the live ValidationSession records keyed by token. Each token has its
own lock: calls for the same session are serialised while calls for different
sessions proceed independently.
"""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional

from eark_validator.core.error_handling import UnknownSessionError
from eark_validator.models.session_models import ValidationSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Concurrency-safe keyed store of validation sessions."""

    def __init__(self):
        self._sessions: Dict[str, ValidationSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: object) -> bool:
        return token in self._sessions

    def create(self) -> str:
        """Create an empty session.

        Returns:
            Token unique among the live sessions
        """
        token = str(uuid.uuid4())
        while token in self._sessions:
            token = str(uuid.uuid4())
        self._sessions[token] = ValidationSession(token=token)
        self._locks[token] = asyncio.Lock()
        logger.info(f"Created session {token} ({len(self._sessions)} live)")
        return token

    def get(self, token: Optional[str]) -> Optional[ValidationSession]:
        """Return a snapshot of the session, or None if the token is unknown."""
        session = self._sessions.get(token) if token else None
        return session.snapshot() if session else None

    @asynccontextmanager
    async def transaction(self, token: str) -> AsyncIterator[ValidationSession]:
        """Hold the session's lock for a multi-step operation.

        Yields the live session record; changes made inside the block are
        visible to the next holder of the lock.

        Raises:
            UnknownSessionError: If the token is unknown or the session is
                deleted while waiting for the lock
        """
        lock = self._locks.get(token)
        if lock is None:
            raise UnknownSessionError(token)
        async with lock:
            session = self._sessions.get(token)
            if session is None:
                raise UnknownSessionError(token)
            yield session

    async def update(
        self,
        token: str,
        mutator: Callable[[ValidationSession], None]
    ) -> ValidationSession:
        """Atomically apply `mutator` to the session.

        Returns:
            Snapshot of the updated session

        Raises:
            UnknownSessionError: If the token is unknown
        """
        async with self.transaction(token) as session:
            mutator(session)
            return session.snapshot()

    async def delete(self, token: Optional[str]) -> Optional[ValidationSession]:
        """Remove a session.

        Waits for an in-flight operation on the same session to finish.
        Unknown tokens are ignored so repeated end signals are harmless.

        Returns:
            The removed session, or None if there was none
        """
        lock = self._locks.get(token) if token else None
        if lock is None:
            return None
        async with lock:
            session = self._sessions.pop(token, None)
            self._locks.pop(token, None)
        if session is not None:
            logger.info(f"Deleted session {token} ({len(self._sessions)} live)")
        return session
