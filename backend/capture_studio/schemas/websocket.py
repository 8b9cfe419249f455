from typing import Any
from pydantic import BaseModel, Field
from .common import CamelModel
from .state import RecordingState, MusicPlayerState


class Envelope(BaseModel):
    """Frame exchanged over ``/ws`` in both directions."""

    event: str
    data: Any = Field(default_factory=dict)


class JoinEvent(CamelModel):
    session_id: str = Field(min_length=1)
    participant_id: str = Field(min_length=1)
    name: str
    is_host: bool = False


class AudioLevelEvent(CamelModel):
    session_id: str
    participant_id: str
    level: float
    is_speaking: bool


class MuteToggleEvent(CamelModel):
    session_id: str
    participant_id: str
    is_muted: bool


class RecordingStateChangeEvent(CamelModel):
    session_id: str
    state: RecordingState


class MusicStateChangeEvent(CamelModel):
    session_id: str
    state: MusicPlayerState


class SignalingMessage(CamelModel):
    session_id: str
    from_participant_id: str
    to_participant_id: str


class OfferMessage(SignalingMessage):
    offer: Any


class AnswerMessage(SignalingMessage):
    answer: Any


class IceCandidateMessage(SignalingMessage):
    candidate: Any
