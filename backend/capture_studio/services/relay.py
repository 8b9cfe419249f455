from pydantic import ValidationError
from capture_studio.schemas.websocket import (
    SignalingMessage,
    OfferMessage,
    AnswerMessage,
    IceCandidateMessage,
)
from capture_studio.services.connections import ConnectionManager
from capture_studio.core.logger import get_logger

logger = get_logger(__name__)

SIGNALING_MESSAGES: dict[str, tuple[type[SignalingMessage], str]] = {
    "webrtc-offer": (OfferMessage, "offer"),
    "webrtc-answer": (AnswerMessage, "answer"),
    "webrtc-ice-candidate": (IceCandidateMessage, "candidate"),
}


class SignalingRelay:
    """Forwards peer-connection negotiation messages to a whole session.

    There is no per-recipient targeting: every member receives the message
    and ignores it unless ``toParticipantId`` names them. Bodies are opaque
    and passed through untouched.
    """

    def __init__(self, connections: ConnectionManager):
        self.connections = connections

    @staticmethod
    def handles(event: str) -> bool:
        return event in SIGNALING_MESSAGES

    def parse(self, event: str, data) -> SignalingMessage | None:
        model, _ = SIGNALING_MESSAGES[event]
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Dropping malformed {event}: {e.error_count()} error(s)")
            return None

    async def relay(self, event: str, message: SignalingMessage) -> None:
        _, body_key = SIGNALING_MESSAGES[event]
        await self.connections.broadcast(
            message.session_id,
            event,
            {
                "fromParticipantId": message.from_participant_id,
                "toParticipantId": message.to_participant_id,
                body_key: getattr(message, body_key),
            },
        )
        logger.debug(
            f"{event} from {message.from_participant_id} to {message.to_participant_id}"
        )
