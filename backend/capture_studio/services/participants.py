from capture_studio.schemas.state import Participant, ConnectionQuality


class ParticipantRegistry:
    """Ordered participant lists, one per session.

    Kept apart from the session store: a list may exist for a session id
    the store has never seen. Reads hand out copies so a roster can be
    serialized while the registry keeps changing.
    """

    def __init__(self):
        self._participants: dict[str, list[Participant]] = {}

    def add(self, session_id: str, participant: Participant) -> Participant:
        roster = self._participants.setdefault(session_id, [])
        # A rejoin replaces the stale record and takes a fresh place in line
        roster[:] = [p for p in roster if p.id != participant.id]
        roster.append(participant)
        return participant.model_copy()

    def get(self, session_id: str) -> list[Participant]:
        return [p.model_copy() for p in self._participants.get(session_id, [])]

    def find(self, session_id: str, participant_id: str) -> Participant | None:
        for participant in self._participants.get(session_id, []):
            if participant.id == participant_id:
                return participant.model_copy()
        return None

    def update(
        self,
        session_id: str,
        participant_id: str,
        *,
        audio_level: float | None = None,
        is_speaking: bool | None = None,
        is_muted: bool | None = None,
        connection_quality: ConnectionQuality | None = None,
    ) -> Participant | None:
        """Overwrite the given fields of one participant.

        Fields left as ``None`` keep their current value.

        Returns:
            Participant | None: The updated record, or None if the
            participant is not in the session.
        """
        roster = self._participants.get(session_id)
        if not roster:
            return None

        for index, participant in enumerate(roster):
            if participant.id != participant_id:
                continue
            changes = {}
            if audio_level is not None:
                changes["audio_level"] = min(max(audio_level, 0.0), 1.0)
            if is_speaking is not None:
                changes["is_speaking"] = is_speaking
            if is_muted is not None:
                changes["is_muted"] = is_muted
            if connection_quality is not None:
                changes["connection_quality"] = connection_quality
            roster[index] = participant.model_copy(update=changes)
            return roster[index].model_copy()
        return None

    def remove(self, session_id: str, participant_id: str) -> bool:
        roster = self._participants.get(session_id)
        if not roster:
            return False
        for index, participant in enumerate(roster):
            if participant.id == participant_id:
                del roster[index]
                return True
        return False

    def count(self, session_id: str) -> int:
        return len(self._participants.get(session_id, []))

    def clear(self, session_id: str) -> None:
        self._participants.pop(session_id, None)

    def reset(self) -> None:
        self._participants.clear()
