"""
CHAT HISTORY STORE MODULE
=========================

Persists chat sessions as one JSON file each in database/chats_data/
(chat_<session_id>.json). All files are loaded into memory at startup; every
append or clear writes through to disk.

SESSION KEYS:
  A request locates its transcript with one of three keys:
    BySession(session_id)         - anonymous visitor with a session id
    ByUser(user_id)               - signed-in user without a session id
    Both(user_id, session_id)     - signed-in user with a session id

OWNERSHIP:
  - BySession only reaches anonymous sessions.
  - ByUser reaches the user's most recently updated session.
  - Both reaches the session if the user owns it or it is still anonymous; an
    anonymous session becomes the user's on its next append.
  - A session owned by somebody else raises SessionAccessError.

LIFECYCLE (per session):
  NonExistent -> Active on first append, Active -> Active on append,
  Active -> NonExistent on clear.

ORDERING:
  Appends to one session are serialized by a per-session lock, so the user and
  assistant turns of one exchange always stay next to each other. Two concurrent
  exchanges on the same session are stored in lock-arrival order. History is
  advisory prompt context, so no stronger ordering is kept.
"""

import logging
import re
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError

from civichub.errors import InvalidSessionError, SessionAccessError, StorageError
from civichub.models import ChatSession, ChatTurn, utcnow

logger = logging.getLogger("CivicHub")

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]{1,128}$")


@dataclass(frozen=True)
class ByUser:
    user_id: str


@dataclass(frozen=True)
class BySession:
    session_id: str


@dataclass(frozen=True)
class Both:
    user_id: str
    session_id: str


SessionKey = Union[ByUser, BySession, Both]


def validate_session_id(session_id: str) -> str:
    """Reject ids that are not safe as part of a file name."""
    if not session_id or not SESSION_ID_PATTERN.match(session_id) or ".." in session_id:
        raise InvalidSessionError(
            "Invalid session id",
            details="Use 1-128 letters, digits, '-', '_', '.', or ':'",
        )
    return session_id


def new_session_id() -> str:
    return f"anon-{uuid.uuid4().hex}"


def make_session_key(session_id: Optional[str] = None, user_id: Optional[str] = None) -> Optional[SessionKey]:
    """Build the tagged key for whichever identifiers the request carries."""
    if session_id:
        validate_session_id(session_id)
    if user_id and session_id:
        return Both(user_id, session_id)
    if session_id:
        return BySession(session_id)
    if user_id:
        return ByUser(user_id)
    return None


class ChatHistoryStore:
    """In-memory chat sessions with JSON write-through."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.sessions: Dict[str, ChatSession] = {}
        self._index_lock = threading.Lock()
        self._session_locks: Dict[str, threading.Lock] = {}
        self._load_all()

    # -------------------------------------------------------------------------
    # Disk
    # -------------------------------------------------------------------------

    def _path(self, session_id: str) -> Path:
        return self.data_dir / f"chat_{session_id}.json"

    def _load_all(self) -> None:
        for file_path in sorted(self.data_dir.glob("chat_*.json")):
            try:
                session = ChatSession.model_validate_json(file_path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as e:
                logger.warning("Could not load chat session file %s: %s", file_path, e)
                continue
            self.sessions[session.session_id] = session
        logger.info("Loaded %d chat sessions from %s", len(self.sessions), self.data_dir)

    def _save(self, session: ChatSession) -> None:
        path = self._path(session.session_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_text(session.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise StorageError("Failed to save chat history", details=str(e)) from e

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._index_lock:
            lock = self._session_locks.get(session_id)
            if lock is None:
                lock = self._session_locks[session_id] = threading.Lock()
            return lock

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def _latest_for_user(self, user_id: str) -> Optional[ChatSession]:
        with self._index_lock:
            owned = [s for s in self.sessions.values() if s.user_id == user_id]
        if not owned:
            return None
        # Stable sort: on equal timestamps the most recently inserted session wins.
        return sorted(owned, key=lambda s: s.updated_at)[-1]

    def _check_access(self, session: ChatSession, key: SessionKey) -> None:
        if isinstance(key, BySession):
            allowed = session.user_id is None
        elif isinstance(key, Both):
            allowed = session.user_id is None or session.user_id == key.user_id
        else:
            allowed = session.user_id == key.user_id
        if not allowed:
            raise SessionAccessError(
                "This chat session belongs to another user",
                details=f"session {session.session_id}",
            )

    def read(self, key: SessionKey) -> Optional[ChatSession]:
        """Return the session the key matches, or None if there is none yet."""
        if isinstance(key, ByUser):
            return self._latest_for_user(key.user_id)
        session = self.sessions.get(key.session_id)
        if session is None:
            return None
        self._check_access(session, key)
        return session

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def append(self, key: SessionKey, turns: List[ChatTurn]) -> ChatSession:
        """
        Append turns to the matching session, creating it if none exists.

        A ByUser key without an existing session gets a freshly generated id.
        """
        if isinstance(key, ByUser):
            existing = self._latest_for_user(key.user_id)
            session_id = existing.session_id if existing else new_session_id()
            user_id: Optional[str] = key.user_id
        else:
            session_id = key.session_id
            user_id = key.user_id if isinstance(key, Both) else None

        with self._lock_for(session_id):
            session = self.sessions.get(session_id)
            now = utcnow()
            if session is None:
                updated = ChatSession(
                    session_id=session_id,
                    user_id=user_id,
                    messages=list(turns),
                    created_at=now,
                    updated_at=now,
                )
                logger.info("Created chat session %s (user=%s)", session_id, user_id or "anonymous")
            else:
                self._check_access(session, key)
                updated = session.model_copy(
                    update={
                        "user_id": session.user_id or user_id,
                        "messages": session.messages + list(turns),
                        "updated_at": now,
                    }
                )
            self._save(updated)
            with self._index_lock:
                self.sessions[session_id] = updated
        return updated

    def clear(self, key: SessionKey) -> bool:
        """Delete the matching session. Returns False if nothing matched."""
        session = self.read(key)
        if session is None:
            return False
        with self._lock_for(session.session_id):
            try:
                self._path(session.session_id).unlink(missing_ok=True)
            except OSError as e:
                raise StorageError("Failed to clear chat history", details=str(e)) from e
            with self._index_lock:
                self.sessions.pop(session.session_id, None)
                self._session_locks.pop(session.session_id, None)
        logger.info("Cleared chat session %s", session.session_id)
        return True
