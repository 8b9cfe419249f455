import asyncio
from fastapi.requests import HTTPConnection
from capture_studio.services.participants import ParticipantRegistry
from capture_studio.services.state_cache import SessionStateCache
from capture_studio.services.session_store import SessionStore
from capture_studio.services.connections import ConnectionManager
from capture_studio.core.logger import get_logger

logger = get_logger(__name__)


class StudioHub:
    """Process-wide coordination state, built once in the app lifespan.

    Only the event router and the HTTP handlers write through it.
    """

    def __init__(self):
        self.registry = ParticipantRegistry()
        self.states = SessionStateCache()
        self.store = SessionStore(self.registry)
        self.connections = ConnectionManager()
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, session_id: str) -> asyncio.Lock:
        """Per-session lock serializing mutate-then-broadcast."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    def forget(self, session_id: str) -> None:
        """Drop all in-memory state held for a deleted session."""
        self.registry.clear(session_id)
        self.states.evict(session_id)
        self.connections.clear(session_id)
        self._locks.pop(session_id, None)

    def close(self) -> None:
        self.registry.reset()
        self.states.reset()
        self.connections.reset()
        self._locks.clear()
        logger.info("Studio hub shut down")


def get_hub(connection: HTTPConnection) -> StudioHub:
    return connection.app.state.hub
