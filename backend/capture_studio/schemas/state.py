from typing import Literal
from pydantic import Field, field_validator
from .common import CamelModel

ConnectionQuality = Literal["good", "fair", "poor"]

DEFAULT_VOLUME = 0.7


class SpotifyTrack(CamelModel):
    id: str
    name: str
    artist: str
    album: str
    album_art: str = ""
    duration_ms: int
    preview_url: str | None = None


class Participant(CamelModel):
    id: str
    name: str
    is_host: bool = False
    is_muted: bool = False
    is_speaking: bool = False
    audio_level: float = 0.0
    connection_quality: ConnectionQuality = "good"

    @field_validator("audio_level")
    @classmethod
    def clamp_level(cls, value: float) -> float:
        return min(max(value, 0.0), 1.0)


class RecordingState(CamelModel):
    is_recording: bool = False
    is_paused: bool = False
    # Epoch milliseconds at which the current unpaused interval began
    start_time: int | float | None = None
    elapsed_ms: int | float = 0


class MusicPlayerState(CamelModel):
    current_track: SpotifyTrack | None = None
    is_playing: bool = False
    progress: int | float = 0
    volume: float = DEFAULT_VOLUME


class SessionState(CamelModel):
    """Transient per-session state handed to late joiners."""

    recording: RecordingState = Field(default_factory=RecordingState)
    music: MusicPlayerState = Field(default_factory=MusicPlayerState)
