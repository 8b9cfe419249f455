from capture_studio.schemas.state import SessionState, RecordingState, MusicPlayerState


class SessionStateCache:
    """Recording and music-player state for sessions that have members.

    Both halves are last-writer-wins: a change replaces the stored value
    wholesale and nothing is merged.
    """

    def __init__(self):
        self._states: dict[str, SessionState] = {}

    def ensure(self, session_id: str) -> SessionState:
        """Return the session's state, seeding defaults when it has none."""
        state = self._states.get(session_id)
        if state is None:
            state = SessionState()
            self._states[session_id] = state
        return state.model_copy(deep=True)

    def get(self, session_id: str) -> SessionState | None:
        state = self._states.get(session_id)
        return state.model_copy(deep=True) if state is not None else None

    def set_recording(self, session_id: str, recording: RecordingState) -> RecordingState:
        current = self._states.get(session_id) or SessionState()
        self._states[session_id] = current.model_copy(update={"recording": recording.model_copy()})
        return recording.model_copy()

    def set_music(self, session_id: str, music: MusicPlayerState) -> MusicPlayerState:
        current = self._states.get(session_id) or SessionState()
        self._states[session_id] = current.model_copy(update={"music": music.model_copy(deep=True)})
        return music.model_copy(deep=True)

    def evict(self, session_id: str) -> bool:
        return self._states.pop(session_id, None) is not None

    def reset(self) -> None:
        self._states.clear()

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._states
