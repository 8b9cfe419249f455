import httpx
import pytest
from capture_studio.core.errors import MusicSearchError
from capture_studio.services.spotify import SpotifyClient, track_from_item

SEARCH_ITEM = {
    "id": "4uLU6hMCjMI75M1A2tKUQC",
    "name": "Never Gonna Give You Up",
    "artists": [{"name": "Rick Astley"}, {"name": "Guest"}],
    "album": {
        "name": "Whenever You Need Somebody",
        "images": [{"url": "https://i.scdn.co/image/large"}, {"url": "https://i.scdn.co/image/small"}],
    },
    "duration_ms": 213573,
    "preview_url": "https://p.scdn.co/mp3-preview/abc",
}


class FakeSpotify:
    """Answers token and search requests, counting each."""

    def __init__(self, token_status=200, search_status=200, items=None):
        self.token_status = token_status
        self.search_status = search_status
        self.items = [SEARCH_ITEM] if items is None else items
        self.token_requests = 0
        self.search_requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "accounts.spotify.com":
            self.token_requests += 1
            assert request.headers["authorization"].startswith("Basic ")
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_client"})
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})

        self.search_requests.append(request)
        assert request.headers["authorization"] == "Bearer tok"
        if self.search_status != 200:
            return httpx.Response(self.search_status, json={"error": "boom"})
        return httpx.Response(200, json={"tracks": {"items": self.items}})


def make_client(fake):
    return SpotifyClient("id", "secret", transport=httpx.MockTransport(fake))


@pytest.mark.asyncio
async def test_unconfigured_returns_demo_tracks():
    client = SpotifyClient(None, None)
    tracks = await client.search("anything")

    assert not client.configured
    assert [t.id for t in tracks] == ["1", "2"]
    assert [t.name for t in tracks] == ["Sample Track 1", "Sample Track 2"]
    assert all(t.preview_url is None for t in tracks)
    await client.close()


@pytest.mark.asyncio
async def test_search_maps_tracks():
    fake = FakeSpotify()
    client = make_client(fake)

    tracks = await client.search("rick astley")

    assert len(tracks) == 1
    track = tracks[0]
    assert track.artist == "Rick Astley, Guest"
    assert track.album == "Whenever You Need Somebody"
    assert track.album_art == "https://i.scdn.co/image/large"
    assert track.duration_ms == 213573
    assert track.preview_url == "https://p.scdn.co/mp3-preview/abc"

    params = fake.search_requests[0].url.params
    assert params["q"] == "rick astley"
    assert params["type"] == "track"
    assert params["limit"] == "10"
    await client.close()


@pytest.mark.asyncio
async def test_token_is_reused():
    fake = FakeSpotify()
    client = make_client(fake)

    await client.search("a")
    await client.search("b")

    assert fake.token_requests == 1
    assert len(fake.search_requests) == 2
    await client.close()


@pytest.mark.asyncio
async def test_token_failure_raises():
    client = make_client(FakeSpotify(token_status=400))
    with pytest.raises(MusicSearchError):
        await client.search("a")
    await client.close()


@pytest.mark.asyncio
async def test_search_failure_raises_without_demo_fallback():
    client = make_client(FakeSpotify(search_status=503))
    with pytest.raises(MusicSearchError):
        await client.search("a")
    await client.close()


@pytest.mark.asyncio
async def test_transport_error_raises():
    def explode(request):
        raise httpx.ConnectError("unreachable", request=request)

    client = SpotifyClient("id", "secret", transport=httpx.MockTransport(explode))
    with pytest.raises(MusicSearchError):
        await client.search("a")
    await client.close()


def test_track_without_artwork_or_preview():
    item = dict(SEARCH_ITEM, album={"name": "Single", "images": []}, preview_url=None)
    track = track_from_item(item)
    assert track.album_art == ""
    assert track.preview_url is None
