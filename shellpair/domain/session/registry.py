"""
Connection handle registry

Owns session identity and the (terminal channel, file channel) pair of
every live session. State is guarded per session id: mutations of one
session are serialized, different sessions never contend.
"""
import asyncio
import threading
import time
import weakref
from typing import Dict, Iterator, List, Optional

from ...core.constants import (
    SESSION_ID_PREFIX,
    TERMINAL_CHANNEL_PREFIX,
    FILE_CHANNEL_PREFIX,
)
from ...core.logging import get_logger
from .models import Session, SessionProfile, PairingState, TargetDescriptor

logger = get_logger(__name__)

_id_lock = threading.Lock()
_last_id_ns = 0


def _next_id_ns() -> int:
    """Strictly increasing wall-clock nanoseconds, unique per process"""
    global _last_id_ns
    with _id_lock:
        now = time.time_ns()
        if now <= _last_id_ns:
            now = _last_id_ns + 1
        _last_id_ns = now
        return now


def terminal_channel_id(session_id: str, generation: int) -> str:
    return f"{TERMINAL_CHANNEL_PREFIX}-{session_id}-{generation}"


def file_channel_id(session_id: str, generation: int) -> str:
    return f"{FILE_CHANNEL_PREFIX}-{session_id}-{generation}"


class SessionRegistry:
    """Table of live sessions, keyed by session id"""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @staticmethod
    def allocate_id() -> str:
        """Allocate a session id that is never handed out again"""
        return f"{SESSION_ID_PREFIX}-{_next_id_ns()}"

    def lock(self, session_id: str) -> asyncio.Lock:
        """Row lock for one session id"""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    # --------------------
    # Queries
    # --------------------
    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def list(self) -> List[Session]:
        return list(self._sessions.values())

    def find_by_terminal_channel(self, channel_id: str) -> Optional[Session]:
        for session in self._sessions.values():
            if session.terminal_channel_id == channel_id:
                return session
        return None

    def find_by_file_channel(self, channel_id: str) -> Optional[Session]:
        for session in self._sessions.values():
            if session.file_channel_id == channel_id:
                return session
        return None

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(self.list())

    # --------------------
    # Mutations
    # --------------------
    async def create(self, session: Session) -> None:
        """
        Register a session.

        Raises:
            ValueError: If the id is already registered or a channel id is
                already owned by another session
        """
        async with self.lock(session.session_id):
            if session.session_id in self._sessions:
                raise ValueError(f"Session already registered: {session.session_id}")
            owner = self.find_by_terminal_channel(session.terminal_channel_id)
            if owner is not None:
                raise ValueError(
                    f"Terminal channel {session.terminal_channel_id} already owned by {owner.session_id}"
                )
            self._sessions[session.session_id] = session
        logger.debug(f"Registered session {session.session_id} ({session.target})")

    async def begin_pairing(self, session_id: str, generation: int) -> Optional[Session]:
        """
        Claim the single pairing attempt for a terminal lifetime.

        Returns the session moved to PAIRING, or None when the session is
        gone, was reconnected since, or is not UNPAIRED.
        """
        async with self.lock(session_id):
            session = self._sessions.get(session_id)
            if session is None or session.generation != generation:
                return None
            if session.pairing_state is not PairingState.UNPAIRED:
                return None
            session.pairing_state = PairingState.PAIRING
            return session

    async def update_file_channel(
        self,
        session_id: str,
        channel_id: Optional[str],
        state: PairingState,
        generation: Optional[int] = None,
    ) -> bool:
        """
        Record the outcome of a pairing attempt.

        Returns False when the session no longer exists (or, if
        ``generation`` is given, was reconnected in the meantime).

        Raises:
            ValueError: If ``state`` and ``channel_id`` contradict each other
        """
        if state is PairingState.PAIRED and not channel_id:
            raise ValueError("PAIRED requires a file channel id")
        if state in (PairingState.PAIRING_FAILED, PairingState.UNPAIRED) and channel_id:
            raise ValueError(f"{state.value} must not carry a file channel id")

        async with self.lock(session_id):
            session = self._sessions.get(session_id)
            if session is None:
                return False
            if generation is not None and session.generation != generation:
                return False
            if channel_id is not None:
                owner = self.find_by_file_channel(channel_id)
                if owner is not None and owner is not session:
                    raise ValueError(f"File channel {channel_id} already owned by {owner.session_id}")
            session.file_channel_id = channel_id
            session.pairing_state = state
            return True

    async def replace_terminal_channel(
        self,
        session_id: str,
        generation: int,
        target: Optional[TargetDescriptor] = None,
        profile: Optional[SessionProfile] = None,
    ) -> Optional[Session]:
        """
        Point a session at a freshly opened terminal channel.

        Resets pairing to UNPAIRED and drops the file channel id. A new
        profile snapshot replaces the old one when given.
        """
        async with self.lock(session_id):
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if profile is not None:
                session.profile = profile
                session.title = profile.title
            if target is not None:
                session.target = target
            session.generation = generation
            session.terminal_channel_id = terminal_channel_id(session_id, generation)
            session.file_channel_id = None
            session.pairing_state = PairingState.UNPAIRED
            return session

    async def remove(self, session_id: str) -> Optional[Session]:
        """Remove a session; removing an unknown id is a no-op"""
        async with self.lock(session_id):
            session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.debug(f"Removed session {session_id}")
        return session
