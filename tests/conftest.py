import pytest
import httpx
import numpy as np

from core.config import Settings
from core.errors import CameraError, ModelLoadError
from core.models import DetectionOptions
from core.session import RecommenderSession

# Captured before any test monkeypatches httpx.AsyncClient
_AsyncClient = httpx.AsyncClient


def make_item(i: int, preview: bool = True) -> dict:
    return {
        "id": f"t{i}",
        "uri": f"spotify:track:t{i}",
        "name": f"Song {i}",
        "artists": [{"name": f"Artist {i}"}, {"name": "Guest"}],
        "album": {"images": [{"url": f"https://img/{i}/640"}, {"url": f"https://img/{i}/300"}]},
        "preview_url": f"https://p.scdn.co/{i}.mp3" if preview else None,
        "external_urls": {"spotify": f"https://open.spotify.com/track/t{i}"},
    }


class FakeSpotify:
    """httpx.MockTransport handler standing in for accounts.spotify.com + api.spotify.com."""
    def __init__(self, items=None, search_statuses=None, token_status=200, expires_in=3600):
        self.items = items if items is not None else [make_item(i, preview=i % 2 == 0) for i in range(6)]
        self.search_statuses = list(search_statuses or [])
        self.token_status = token_status
        self.expires_in = expires_in
        self.token_requests: list[httpx.Request] = []
        self.search_requests: list[httpx.Request] = []

    @property
    def token_calls(self) -> int:
        return len(self.token_requests)

    @property
    def search_calls(self) -> int:
        return len(self.search_requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/token":
            self.token_requests.append(request)
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_client"})
            return httpx.Response(200, json={
                "access_token": f"tok{self.token_calls}",
                "token_type": "Bearer",
                "expires_in": self.expires_in,
            })
        if request.url.path == "/v1/search":
            self.search_requests.append(request)
            status = self.search_statuses.pop(0) if self.search_statuses else 200
            if status != 200:
                return httpx.Response(status, json={"error": {"status": status}})
            return httpx.Response(200, json={"tracks": {"items": self.items}})
        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return _AsyncClient(transport=httpx.MockTransport(self))


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now
    def __call__(self) -> float:
        return self.now
    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDetector:
    """Returns queued results (dict, None, or an exception to raise) one per detect()."""
    def __init__(self, results=None, fail_load=False):
        self.results = list(results or [])
        self.fail_load = fail_load
        self.loaded = False
        self.calls = 0
    def options(self):
        return DetectionOptions()
    def load(self):
        if self.fail_load:
            raise ModelLoadError("Failed to load models: boom")
        self.loaded = True
    def detect(self, frame, options=None):
        self.calls += 1
        r = self.results.pop(0) if self.results else None
        if isinstance(r, Exception):
            raise r
        return r


class FakeCamera:
    def __init__(self, fail=False):
        self.fail = fail
        self.is_open = False
        self.last_frame = None
        self.released = 0
    def open(self):
        if self.fail:
            raise CameraError("Permission denied")
        self.is_open = True
        self.last_frame = np.zeros((48, 64, 3), dtype=np.uint8)
    def read(self):
        if not self.is_open:
            return None
        self.last_frame = np.zeros((48, 64, 3), dtype=np.uint8)
        return self.last_frame
    def release(self):
        self.is_open = False
        self.released += 1
        self.last_frame = None


@pytest.fixture
def settings():
    # Large interval: tests drive the loop with tick() instead of the timer
    return Settings(DETECTION_INTERVAL=60.0, SPOTIFY_CLIENT_ID="", SPOTIFY_CLIENT_SECRET="")


@pytest.fixture
def fake_spotify():
    return FakeSpotify()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_session(settings, fake_spotify, clock):
    def _make(detector=None, camera=None, spotify=None):
        spotify = spotify or fake_spotify
        return RecommenderSession(
            settings,
            http=spotify.client(),
            camera=camera or FakeCamera(),
            detector=detector or FakeDetector(),
            clock=clock,
            token_clock=clock,
        )
    return _make
