"""Store for live (not yet submitted) attempts.

The API only relies on ``get/put/delete`` by test id, so the in-process
implementation can be swapped for a shared one when several server instances
sit behind a load balancer.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

from api.config import SESSION_TTL_SECONDS
from models import Responses, Test

logger = logging.getLogger(__name__)


@dataclass
class LiveSession:
    """Working set of one attempt between generation and submission."""

    test: Test
    responses: Responses = field(default_factory=dict)
    section_index: int = 0
    question_index: int = 0
    session_id: str | None = None
    student_id: str | None = None


class SessionStore(Protocol):
    def get(self, test_id: str) -> LiveSession | None:
        ...

    def put(self, test_id: str, live: LiveSession) -> None:
        ...

    def delete(self, test_id: str) -> bool:
        ...

    def evict_expired(self) -> int:
        ...


class InMemorySessionStore:
    """Process-local store; entries expire ``ttl_seconds`` after their last put."""

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._now = now
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, LiveSession]] = {}

    def get(self, test_id: str) -> LiveSession | None:
        with self._lock:
            entry = self._entries.get(test_id)
            if entry is None:
                return None
            expires_at, live = entry
            if self._ttl > 0 and expires_at <= self._now():
                del self._entries[test_id]
                return None
            return live

    def put(self, test_id: str, live: LiveSession) -> None:
        with self._lock:
            self._entries[test_id] = (self._now() + self._ttl, live)

    def delete(self, test_id: str) -> bool:
        with self._lock:
            return self._entries.pop(test_id, None) is not None

    def evict_expired(self) -> int:
        if self._ttl <= 0:
            return 0
        now = self._now()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.info(f"Evicted {len(expired)} expired live tests")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_store: SessionStore = InMemorySessionStore()


def get_session_store() -> SessionStore:
    """Dependency returning the process-wide live session store."""
    return _store
