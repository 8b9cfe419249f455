import enum
from typing import Any
from fastapi import WebSocket
from pydantic import ValidationError
from sqlalchemy.orm import Session
from capture_studio.schemas.state import Participant
from capture_studio.schemas.websocket import (
    JoinEvent,
    AudioLevelEvent,
    MuteToggleEvent,
    RecordingStateChangeEvent,
    MusicStateChangeEvent,
)
from capture_studio.services.hub import StudioHub
from capture_studio.services.relay import SignalingRelay
from capture_studio.core.logger import get_logger

logger = get_logger(__name__)

# Server -> client event names
PARTICIPANTS_UPDATED = "participants-updated"
RECORDING_STATE_CHANGED = "recording-state-changed"
MUSIC_STATE_CHANGED = "music-state-changed"
ERROR = "error"


class ConnectionState(enum.Enum):
    UNJOINED = "unjoined"
    JOINED = "joined"
    CLOSED = "closed"


class EventRouter:
    """Dispatches the events of one WebSocket connection.

    A connection starts unjoined and becomes joined after a successful
    ``join-session``. Every other event requires the connection to be a
    member of the session it names. Each event holds its session's lock
    while it mutates state and broadcasts, so members see broadcasts in
    the order events were handled.
    """

    def __init__(self, hub: StudioHub, db: Session, websocket: WebSocket):
        self.hub = hub
        self.db = db
        self.websocket = websocket
        self.relay = SignalingRelay(hub.connections)
        self.state = ConnectionState.UNJOINED
        self.session_id: str | None = None
        self.participant_id: str | None = None
        self._handlers = {
            "join-session": self.on_join,
            "join": self.on_join,
            "audio-level": self.on_audio_level,
            "mute-toggle": self.on_mute_toggle,
            "recording-state-change": self.on_recording_state_change,
            "music-state-change": self.on_music_state_change,
        }

    @property
    def joined(self) -> bool:
        return self.state is ConnectionState.JOINED

    async def dispatch(self, event: str, data: Any) -> None:
        """Handle one client event. Bad input is logged and dropped."""
        if self.state is ConnectionState.CLOSED:
            return

        if self.relay.handles(event):
            message = self.relay.parse(event, data)
            if message is not None and self._is_member(event, message.session_id):
                async with self.hub.lock(message.session_id):
                    await self.relay.relay(event, message)
            return

        handler = self._handlers.get(event)
        if handler is None:
            logger.warning(f"Unknown event: {event}")
            return

        try:
            await handler(data)
        except ValidationError as e:
            logger.warning(f"Dropping malformed {event}: {e.error_count()} error(s)")

    def _is_member(self, event: str, session_id: str) -> bool:
        if not self.joined:
            logger.warning(f"Dropping {event} from a connection that has not joined")
            return False
        if session_id != self.session_id:
            logger.warning(
                f"Dropping {event} for {session_id}: connection belongs to {self.session_id}"
            )
            return False
        if not self.hub.connections.owns(session_id, self.participant_id, self.websocket):
            # Session deleted, or the participant rejoined on another socket
            logger.warning(f"Dropping {event}: connection no longer speaks for {self.participant_id}")
            return False
        return True

    async def _broadcast_roster(self, session_id: str) -> None:
        roster = [p.to_wire() for p in self.hub.registry.get(session_id)]
        await self.hub.connections.broadcast(session_id, PARTICIPANTS_UPDATED, roster)

    async def on_join(self, data: Any) -> None:
        event = JoinEvent.model_validate(data)
        if self.joined:
            logger.warning(
                f"Ignoring join to {event.session_id}: connection already in {self.session_id}"
            )
            return

        session_id = event.session_id
        if not self.hub.store.exists(self.db, session_id):
            logger.info(f"Join rejected, unknown session: {session_id}")
            await self.hub.connections.send(
                self.websocket, ERROR, {"message": "Session not found"}
            )
            return

        async with self.hub.lock(session_id):
            participant = Participant(
                id=event.participant_id,
                name=event.name,
                is_host=event.is_host,
            )
            self.hub.registry.add(session_id, participant)
            self.hub.connections.attach(session_id, participant.id, self.websocket)
            self.session_id = session_id
            self.participant_id = participant.id
            self.state = ConnectionState.JOINED

            await self._broadcast_roster(session_id)

            # Late joiners get the current picture straight away
            current = self.hub.states.ensure(session_id)
            await self.hub.connections.send(
                self.websocket, RECORDING_STATE_CHANGED, current.recording.to_wire()
            )
            await self.hub.connections.send(
                self.websocket, MUSIC_STATE_CHANGED, current.music.to_wire()
            )

        logger.info(f"{event.name} joined session {session_id}")

    async def on_audio_level(self, data: Any) -> None:
        event = AudioLevelEvent.model_validate(data)
        if not self._is_member("audio-level", event.session_id):
            return

        async with self.hub.lock(event.session_id):
            updated = self.hub.registry.update(
                event.session_id,
                event.participant_id,
                audio_level=event.level,
                is_speaking=event.is_speaking,
            )
            if updated is None:
                logger.debug(f"audio-level for unknown participant {event.participant_id}")
                return
            await self._broadcast_roster(event.session_id)

    async def on_mute_toggle(self, data: Any) -> None:
        event = MuteToggleEvent.model_validate(data)
        if not self._is_member("mute-toggle", event.session_id):
            return

        async with self.hub.lock(event.session_id):
            updated = self.hub.registry.update(
                event.session_id, event.participant_id, is_muted=event.is_muted
            )
            if updated is None:
                logger.warning(f"mute-toggle for unknown participant {event.participant_id}")
                return
            await self._broadcast_roster(event.session_id)

    async def on_recording_state_change(self, data: Any) -> None:
        event = RecordingStateChangeEvent.model_validate(data)
        if not self._is_member("recording-state-change", event.session_id):
            return

        async with self.hub.lock(event.session_id):
            state = self.hub.states.set_recording(event.session_id, event.state)
            self.hub.store.update(
                self.db,
                event.session_id,
                is_recording=state.is_recording,
                is_paused=state.is_paused,
            )
            await self.hub.connections.broadcast(
                event.session_id, RECORDING_STATE_CHANGED, state.to_wire()
            )

    async def on_music_state_change(self, data: Any) -> None:
        event = MusicStateChangeEvent.model_validate(data)
        if not self._is_member("music-state-change", event.session_id):
            return

        async with self.hub.lock(event.session_id):
            state = self.hub.states.set_music(event.session_id, event.state)
            await self.hub.connections.broadcast(
                event.session_id, MUSIC_STATE_CHANGED, state.to_wire()
            )

    async def disconnect(self) -> None:
        """Clean up after the transport closed. Always safe to call."""
        was_joined = self.joined
        self.state = ConnectionState.CLOSED
        if not was_joined:
            return

        session_id, participant_id = self.session_id, self.participant_id
        async with self.hub.lock(session_id):
            owned = self.hub.connections.detach(session_id, participant_id, self.websocket)
            if not owned:
                # The participant already rejoined on another connection
                return

            self.hub.registry.remove(session_id, participant_id)
            await self._broadcast_roster(session_id)

            if self.hub.registry.count(session_id) == 0:
                self.hub.states.evict(session_id)
                logger.info(f"Session {session_id} is empty, transient state evicted")

        logger.info(f"Participant {participant_id} left session {session_id}")
