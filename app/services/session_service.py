import uuid
import logging
from typing import Callable, Dict, Optional, Tuple
from datetime import datetime, timedelta, timezone

from app.services.packing_controller import PackingListController
from app.services.storage_service import KeyValueStorage

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class SessionNotFoundError(LookupError):
    """Session id is unknown or has expired."""


class SessionService:
    """
    In-memory registry of per-browser controllers.

    Controllers expire after the TTL and are swept whenever a session is
    created. Storage that still holds a saved list is kept, so resuming an
    expired id restores it.
    """

    def __init__(
        self,
        controller_factory: Callable[[KeyValueStorage], PackingListController],
        storage_factory: Callable[[str], KeyValueStorage],
        ttl_hours: int = 4,
        storage_release: Optional[Callable[[str], None]] = None,
    ):
        self.controller_factory = controller_factory
        self.storage_factory = storage_factory
        self.storage_release = storage_release
        self.ttl = timedelta(hours=ttl_hours)
        self._sessions: Dict[str, Tuple[PackingListController, datetime]] = {}

    def _new_id(self, prefix: str) -> str:
        return f"{prefix}_{uuid.uuid4().hex[:10]}"

    def _now(self):
        return datetime.now(timezone.utc)

    def is_session_valid(self, session_id: str) -> Tuple[bool, str]:
        entry = self._sessions.get(session_id)
        if entry is None:
            return False, "Session does not exist"
        if entry[1] < self._now():
            return False, "Session has expired"
        return True, "Session is valid"

    def _evict(self, session_id: str):
        self._sessions.pop(session_id, None)
        if self.storage_release is not None:
            self.storage_release(session_id)

    def sweep_expired(self) -> int:
        """Evict every expired session and return how many were dropped."""
        now = self._now()
        expired = [sid for sid, (_, expires_at) in self._sessions.items() if expires_at < now]
        for session_id in expired:
            self._evict(session_id)
        if expired:
            logger.info(f"Evicted {len(expired)} expired session(s)")
        return len(expired)

    def create_session(self, session_id: Optional[str] = None) -> Tuple[str, datetime]:
        """Resume a live session or start one, restoring any saved list."""
        self.sweep_expired()
        if session_id:
            is_valid, _ = self.is_session_valid(session_id)
            if is_valid:
                return session_id, self._sessions[session_id][1]
        else:
            session_id = self._new_id("sess")

        controller = self.controller_factory(self.storage_factory(session_id))
        controller.load_saved_list()
        expires_at = self._now() + self.ttl
        self._sessions[session_id] = (controller, expires_at)
        logger.info(f"Started session {session_id}")
        return session_id, expires_at

    def get_controller(self, session_id: str) -> PackingListController:
        is_valid, reason = self.is_session_valid(session_id)
        if not is_valid:
            if session_id in self._sessions:
                self._evict(session_id)
            raise SessionNotFoundError(f"{reason}: {session_id}")
        return self._sessions[session_id][0]

    def get_expiry(self, session_id: str) -> datetime:
        self.get_controller(session_id)
        return self._sessions[session_id][1]
