from typing import Any
from fastapi import WebSocket
from capture_studio.core.logger import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Broadcast groups of live WebSockets, one group per session.

    Also remembers which connection currently speaks for each participant,
    so a stale socket closing after its owner rejoined elsewhere does not
    remove the fresh record.
    """

    def __init__(self):
        self.groups: dict[str, list[WebSocket]] = {}
        self.owners: dict[str, dict[str, WebSocket]] = {}

    def attach(self, session_id: str, participant_id: str, websocket: WebSocket) -> None:
        group = self.groups.setdefault(session_id, [])
        if websocket not in group:
            group.append(websocket)
        self.owners.setdefault(session_id, {})[participant_id] = websocket

    def detach(self, session_id: str, participant_id: str, websocket: WebSocket) -> bool:
        """Drop ``websocket`` from the session group.

        Returns:
            bool: True if the socket still owned ``participant_id``.
        """
        group = self.groups.get(session_id)
        if group and websocket in group:
            group.remove(websocket)
        if group is not None and not group:
            del self.groups[session_id]

        owners = self.owners.get(session_id, {})
        owned = owners.get(participant_id) is websocket
        if owned:
            del owners[participant_id]
        if not owners:
            self.owners.pop(session_id, None)
        return owned

    def owns(self, session_id: str, participant_id: str, websocket: WebSocket) -> bool:
        return self.owners.get(session_id, {}).get(participant_id) is websocket

    def members(self, session_id: str) -> list[WebSocket]:
        return list(self.groups.get(session_id, []))

    async def send(self, websocket: WebSocket, event: str, data: Any) -> None:
        await websocket.send_json({"event": event, "data": data})

    async def broadcast(self, session_id: str, event: str, data: Any) -> None:
        """Send one event to every connection in the session, sender included."""
        message = {"event": event, "data": data}
        dead = []
        for websocket in self.members(session_id):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug(f"Failed to send {event} to a member of {session_id}: {e}")
                dead.append(websocket)

        group = self.groups.get(session_id)
        if group is not None and dead:
            group[:] = [ws for ws in group if ws not in dead]

    def clear(self, session_id: str) -> None:
        self.groups.pop(session_id, None)
        self.owners.pop(session_id, None)

    def reset(self) -> None:
        self.groups.clear()
        self.owners.clear()
