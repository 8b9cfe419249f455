class StudioError(Exception):
    """Base class for errors raised by the studio services."""


class SessionExistsError(StudioError):
    def __init__(self, session_id: str):
        super().__init__(f"Session already exists: {session_id}")
        self.session_id = session_id


class MusicSearchError(StudioError):
    """The external music catalog could not be queried."""
