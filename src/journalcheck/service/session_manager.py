"""Session management: TTL-scoped RegistryStore instances for multi-client use."""

from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from journalcheck.service.registry_store import RegistryStore

logger = logging.getLogger("journalcheck.service")

_DEFAULT_SESSION_ID = "__default__"


class SessionNotFoundError(KeyError):
    """Raised when a session ID is not found or has expired."""


@dataclass
class SessionInfo:
    """Public session metadata (returned by list/get)."""

    session_id: str
    created_at: datetime
    last_accessed_at: datetime
    registry_count: int
    metadata: dict[str, str]


@dataclass
class _Session:
    session_id: str
    store: RegistryStore
    last_accessed: float  # monotonic, for TTL checks
    metadata: dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_accessed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def touch(self, now: float) -> None:
        self.last_accessed = now
        self.last_accessed_at = datetime.now(UTC)


class SessionManager:
    """Manages TTL-scoped sessions, each holding its own ``RegistryStore``.

    Every store starts with the ``default`` registry, loaded from
    *registry_path* when one is given.  Thread-safe.  Call :meth:`start`
    to run the background cleanup thread and :meth:`stop` to end it.
    """

    def __init__(
        self,
        ttl_seconds: int = 1800,
        cleanup_interval: int = 60,
        registry_path: Path | None = None,
    ) -> None:
        self._ttl = ttl_seconds
        self._cleanup_interval = cleanup_interval
        self._registry_path = registry_path
        self._lock = threading.Lock()
        self._sessions: dict[str, _Session] = {}
        self._stop_event = threading.Event()
        self._cleanup_thread: threading.Thread | None = None

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        if self._cleanup_thread is not None:
            return
        self._stop_event.clear()
        self._cleanup_thread = threading.Thread(
            target=self._cleanup_loop, daemon=True, name="session-cleanup"
        )
        self._cleanup_thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._cleanup_thread is not None:
            self._cleanup_thread.join(timeout=5)
            self._cleanup_thread = None

    # -- public API ----------------------------------------------------------

    def create_session(self, metadata: dict[str, str] | None = None) -> SessionInfo:
        """Create a new session and return its info."""
        session = _Session(
            session_id=secrets.token_hex(16),
            store=self._new_store(),
            last_accessed=time.monotonic(),
            metadata=metadata or {},
        )
        with self._lock:
            self._sessions[session.session_id] = session
        logger.debug("Created session %s", session.session_id)
        return self._session_info(session)

    def get_store(self, session_id: str) -> RegistryStore:
        """Get the store of a live session and refresh its last-accessed time.

        Raises :class:`SessionNotFoundError` if the session is missing or expired.
        """
        with self._lock:
            return self._live_session(session_id).store

    def get_session(self, session_id: str) -> SessionInfo:
        with self._lock:
            return self._session_info(self._live_session(session_id))

    def close_session(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(f"Session '{session_id}' not found")

    def list_sessions(self) -> list[SessionInfo]:
        """Info for all non-expired sessions, the default session excluded."""
        now = time.monotonic()
        with self._lock:
            return [
                self._session_info(s)
                for s in self._sessions.values()
                if s.session_id != _DEFAULT_SESSION_ID and not self._expired(s, now)
            ]

    @property
    def active_count(self) -> int:
        now = time.monotonic()
        with self._lock:
            return sum(1 for s in self._sessions.values() if not self._expired(s, now))

    def get_or_create_default(self) -> RegistryStore:
        """Get (or lazily create) the store of the default session."""
        with self._lock:
            session = self._sessions.get(_DEFAULT_SESSION_ID)
            if session is None:
                session = _Session(
                    session_id=_DEFAULT_SESSION_ID,
                    store=self._new_store(),
                    last_accessed=time.monotonic(),
                )
                self._sessions[_DEFAULT_SESSION_ID] = session
            else:
                session.touch(time.monotonic())
            return session.store

    # -- internal ------------------------------------------------------------

    def _new_store(self) -> RegistryStore:
        return RegistryStore(default_path=self._registry_path)

    def _expired(self, session: _Session, now: float) -> bool:
        return now - session.last_accessed > self._ttl

    def _live_session(self, session_id: str) -> _Session:
        """Look up a session (lock held); expired sessions are dropped lazily."""
        now = time.monotonic()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session '{session_id}' not found")
        if self._expired(session, now):
            del self._sessions[session_id]
            raise SessionNotFoundError(f"Session '{session_id}' has expired")
        session.touch(now)
        return session

    @staticmethod
    def _session_info(session: _Session) -> SessionInfo:
        return SessionInfo(
            session_id=session.session_id,
            created_at=session.created_at,
            last_accessed_at=session.last_accessed_at,
            registry_count=len(session.store.list_registries()),
            metadata=session.metadata,
        )

    def _purge_expired(self) -> None:
        now = time.monotonic()
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if self._expired(s, now)]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.debug("Purged %d expired sessions", len(expired))

    def _cleanup_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._cleanup_interval):
            self._purge_expired()
