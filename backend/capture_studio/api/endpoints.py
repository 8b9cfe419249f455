from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends, HTTPException
from fastapi.requests import HTTPConnection
from sqlalchemy.orm import Session
from pydantic import ValidationError
from capture_studio.db.base import get_db
from capture_studio.db.models import StudioSession
from capture_studio.schemas.session import Session as SessionSchema, SessionCreate
from capture_studio.schemas.websocket import Envelope
from capture_studio.services.hub import StudioHub, get_hub
from capture_studio.services.router import EventRouter
from capture_studio.services.spotify import SpotifyClient, DEMO_MESSAGE
from capture_studio.core.errors import SessionExistsError, MusicSearchError
from capture_studio.core.logger import get_logger
from capture_studio.constants import SESSION_ID_LENGTH
import uuid

router = APIRouter()
logger = get_logger(__name__)

CREATE_ATTEMPTS = 5


def get_spotify(connection: HTTPConnection) -> SpotifyClient:
    return connection.app.state.spotify


@router.websocket("/ws")
async def session_websocket(
    websocket: WebSocket,
    db: Session = Depends(get_db),
    hub: StudioHub = Depends(get_hub),
):
    """Carry one client's session events.

    Args:
        websocket (WebSocket): The WebSocket connection.
        db (Session, optional): The database session. Defaults to Depends(get_db).
        hub (StudioHub, optional): Shared session state. Defaults to Depends(get_hub).
    """
    await websocket.accept()
    logger.info("Client connected")

    events = EventRouter(hub, db, websocket)

    try:
        while True:
            message = await websocket.receive()

            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            if message["type"] != "websocket.receive":
                continue

            if message.get("bytes"):
                # Media never travels through this server
                logger.debug("Ignoring binary frame")
                continue

            if not message.get("text"):
                continue

            try:
                frame = Envelope.model_validate_json(message["text"])
            except ValidationError as e:
                logger.warning(f"Dropping unreadable frame: {e.error_count()} error(s)")
                continue

            await events.dispatch(frame.event, frame.data)

    except WebSocketDisconnect:
        logger.info(f"Client disconnected: {events.participant_id or 'unjoined'}")

    except Exception as e:
        logger.error(f"WebSocket Error: {e}")
        try:
            await websocket.close()
        except Exception:
            pass

    finally:
        await events.disconnect()


@router.post("/api/sessions", response_model=SessionSchema)
def create_session(
    body: SessionCreate,
    db: Session = Depends(get_db),
    hub: StudioHub = Depends(get_hub),
) -> StudioSession:
    """Create a recording session hosted by ``hostName``.

    Args:
        body (SessionCreate): Session and host names.
        db (Session, optional): The database session. Defaults to Depends(get_db).
        hub (StudioHub, optional): Shared session state. Defaults to Depends(get_hub).
    Returns:
        Session: The stored session, including the generated host id.
    """
    host_id = str(uuid.uuid4())
    for _ in range(CREATE_ATTEMPTS):
        session_id = uuid.uuid4().hex[:SESSION_ID_LENGTH]
        try:
            record = hub.store.create(
                db,
                session_id=session_id,
                name=body.session_name,
                host_id=host_id,
                host_name=body.host_name,
            )
        except SessionExistsError:
            logger.warning(f"Session id collision on {session_id}, retrying")
            continue
        hub.states.ensure(record.id)
        return record

    raise HTTPException(status_code=500, detail="Could not allocate a session id")


@router.get("/api/sessions/{session_id}", response_model=SessionSchema)
def get_session(
    session_id: str,
    db: Session = Depends(get_db),
    hub: StudioHub = Depends(get_hub),
) -> StudioSession:
    record = hub.store.get(db, session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return record


@router.delete("/api/sessions/{session_id}")
def delete_session(
    session_id: str,
    db: Session = Depends(get_db),
    hub: StudioHub = Depends(get_hub),
) -> dict:
    """Delete a session and everything held in memory for it.

    Connected members are not notified; their sockets stay open but the
    session no longer accepts joins.
    """
    if not hub.store.delete(db, session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    hub.forget(session_id)
    return {"status": "ok", "id": session_id}


@router.get("/api/spotify/search")
async def search_tracks(
    q: str | None = None,
    spotify: SpotifyClient = Depends(get_spotify),
) -> dict:
    """Search the music catalog.

    Args:
        q (str | None, optional): Free-text query. Required.
        spotify (SpotifyClient, optional): Catalog client. Defaults to Depends(get_spotify).
    Returns:
        dict: ``{"tracks": [...]}``, plus a ``message`` when showing demo tracks.
    """
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required")

    try:
        tracks = await spotify.search(q)
    except MusicSearchError as e:
        logger.error(f"Spotify search error: {e}")
        raise HTTPException(status_code=500, detail="Failed to search Spotify")

    result = {"tracks": [track.to_wire() for track in tracks]}
    if not spotify.configured:
        result["message"] = DEMO_MESSAGE
    return result
