from sqlalchemy.orm import Session
from capture_studio.db.models import StudioSession
from capture_studio.core.errors import SessionExistsError
from capture_studio.services.participants import ParticipantRegistry
from capture_studio.core.logger import get_logger

logger = get_logger(__name__)


class SessionStore:
    """Session records, keyed by their caller-generated identifier."""

    def __init__(self, registry: ParticipantRegistry):
        self.registry = registry

    def create(
        self, db: Session, session_id: str, name: str, host_id: str, host_name: str
    ) -> StudioSession:
        """Store a new session record.

        Args:
            db (Session): The database session.
            session_id (str): Identifier chosen by the caller.
            name (str): Display name of the session.
            host_id (str): Participant identifier of the host.
            host_name (str): Display name of the host.
        Raises:
            SessionExistsError: If ``session_id`` is already stored.
        Returns:
            StudioSession: The stored record.
        """
        if db.get(StudioSession, session_id) is not None:
            raise SessionExistsError(session_id)

        record = StudioSession(
            id=session_id,
            name=name,
            host_id=host_id,
            host_name=host_name,
            is_recording=False,
            is_paused=False,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        logger.info(f"Session created: {name} ({session_id}) hosted by {host_name}")
        return record

    def get(self, db: Session, session_id: str) -> StudioSession | None:
        return db.get(StudioSession, session_id)

    def exists(self, db: Session, session_id: str) -> bool:
        return self.get(db, session_id) is not None

    def update(
        self,
        db: Session,
        session_id: str,
        *,
        name: str | None = None,
        is_recording: bool | None = None,
        is_paused: bool | None = None,
    ) -> StudioSession | None:
        """Overwrite the given fields; ``None`` keeps the stored value."""
        record = self.get(db, session_id)
        if record is None:
            return None

        if name is not None:
            record.name = name
        if is_recording is not None:
            record.is_recording = is_recording
        if is_paused is not None:
            record.is_paused = is_paused
        db.commit()
        db.refresh(record)
        return record

    def delete(self, db: Session, session_id: str) -> bool:
        """Remove the record together with its participant list."""
        record = self.get(db, session_id)
        self.registry.clear(session_id)
        if record is None:
            return False

        db.delete(record)
        db.commit()
        logger.info(f"Session deleted: {session_id}")
        return True
