from sqlalchemy import Column, String, Boolean, DateTime
from .base import Base
from datetime import datetime, timezone


class StudioSession(Base):
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, index=True)
    name = Column(String, nullable=False)
    host_id = Column(String(36), nullable=False)
    host_name = Column(String, nullable=False)
    # Summary flags, mirrored from the last recording-state-change
    is_recording = Column(Boolean, default=False)
    is_paused = Column(Boolean, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
