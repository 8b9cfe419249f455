from pydantic import ConfigDict, Field
from datetime import datetime
from .common import CamelModel


class SessionCreate(CamelModel):
    session_name: str = Field(min_length=1, max_length=100)
    host_name: str = Field(min_length=1, max_length=50)


class Session(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    host_id: str
    host_name: str
    is_recording: bool = False
    is_paused: bool = False
    created_at: datetime | None = None
