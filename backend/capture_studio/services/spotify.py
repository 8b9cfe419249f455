import time
import httpx
from capture_studio.schemas.state import SpotifyTrack
from capture_studio.core.errors import MusicSearchError
from capture_studio.core.logger import get_logger
from capture_studio.constants import (
    SPOTIFY_TOKEN_URL,
    SPOTIFY_SEARCH_URL,
    SPOTIFY_SEARCH_LIMIT,
    SPOTIFY_TIMEOUT,
)

logger = get_logger(__name__)

DEMO_MESSAGE = "Spotify not configured. Showing demo tracks."

DEMO_TRACKS = [
    SpotifyTrack(
        id="1",
        name="Sample Track 1",
        artist="Demo Artist",
        album="Demo Album",
        album_art="",
        duration_ms=210000,
        preview_url=None,
    ),
    SpotifyTrack(
        id="2",
        name="Sample Track 2",
        artist="Another Artist",
        album="Another Album",
        album_art="",
        duration_ms=185000,
        preview_url=None,
    ),
]


def track_from_item(item: dict) -> SpotifyTrack:
    """Map one item of a Spotify search response onto a SpotifyTrack."""
    images = item.get("album", {}).get("images") or []
    return SpotifyTrack(
        id=item["id"],
        name=item["name"],
        artist=", ".join(artist["name"] for artist in item.get("artists", [])),
        album=item.get("album", {}).get("name", ""),
        album_art=images[0]["url"] if images else "",
        duration_ms=item["duration_ms"],
        preview_url=item.get("preview_url"),
    )


class SpotifyClient:
    """Track search against the Spotify Web API (client-credentials flow).

    Without credentials the client answers every search with the fixed
    demo tracks. With credentials, failures raise ``MusicSearchError``
    and never fall back to the demo data.
    """

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        timeout: float = SPOTIFY_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.http = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._token: str | None = None
        self._token_expires_at = 0.0

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        response = await self.http.post(
            SPOTIFY_TOKEN_URL,
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
        )
        if response.status_code != 200:
            raise MusicSearchError(f"Failed to get Spotify token ({response.status_code})")

        try:
            payload = response.json()
            self._token = payload["access_token"]
        except (KeyError, ValueError) as e:
            raise MusicSearchError(f"Unexpected Spotify token response: {e}") from e
        # Refresh a minute early
        self._token_expires_at = time.monotonic() + payload.get("expires_in", 3600) - 60
        return self._token

    async def search(self, query: str) -> list[SpotifyTrack]:
        """Search the catalog for tracks matching ``query``.

        Args:
            query (str): Free-text search.
        Raises:
            MusicSearchError: If the token or search request fails.
        Returns:
            list[SpotifyTrack]: Matching tracks, demo tracks if unconfigured.
        """
        if not self.configured:
            return [track.model_copy() for track in DEMO_TRACKS]

        try:
            token = await self._access_token()
            response = await self.http.get(
                SPOTIFY_SEARCH_URL,
                params={"q": query, "type": "track", "limit": SPOTIFY_SEARCH_LIMIT},
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            raise MusicSearchError(f"Spotify request failed: {e}") from e

        if response.status_code == 401:
            # Token revoked before its expiry; fetch a new one next time
            self._token = None
        if response.status_code != 200:
            raise MusicSearchError(f"Failed to search Spotify ({response.status_code})")

        try:
            items = response.json()["tracks"]["items"]
            return [track_from_item(item) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise MusicSearchError(f"Unexpected Spotify response: {e}") from e

    async def close(self) -> None:
        await self.http.aclose()
