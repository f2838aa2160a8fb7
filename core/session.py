"""
Recommender session: the explicit context object that wires camera, detector,
detection loop, recommendation gate, Spotify client and render layer together.
"""
from __future__ import annotations
from typing import Callable, Optional
import asyncio
import logging
import time

import httpx

from core.camera import Camera
from core.config import Settings
from core.detection import DetectionLoop
from core.detector import ExpressionDetector
from core.errors import CameraError, MissingCredentialsError, ModelLoadError
from core.gate import GateDecision, RecommendationGate
from core.models import PageView, PreviewHandle, keyword_for
from core.render import RenderLayer
from core.spotify import CatalogClient, TokenManager
from core.state import SessionState

logger = logging.getLogger(__name__)


class RecommenderSession:
    """One user session. All methods are called from the event loop."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        http: Optional[httpx.AsyncClient] = None,
        camera: Optional[Camera] = None,
        detector: Optional[ExpressionDetector] = None,
        clock: Callable[[], float] = time.monotonic,
        token_clock: Callable[[], float] = time.time,
    ):
        self.s = settings or Settings()
        self.state = SessionState()
        self.render = RenderLayer(self.state)
        self.camera = camera or Camera(self.s.CAMERA_INDEX)
        self.detector = detector or ExpressionDetector(self.s)
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=self.s.HTTP_TIMEOUT)
        self.tokens = TokenManager(
            self.s,
            self.http,
            clock=token_clock,
            on_request=lambda: self.render.update_status("Requesting Spotify token…", active=True),
        )
        self.catalog = CatalogClient(self.s, self.http, self.tokens)
        self.gate = RecommendationGate(
            self.state,
            self.s,
            self.render,
            fetch=self.fetch_tracks,
            has_credentials=lambda: self.tokens.has_credentials,
            clock=clock,
        )
        self.loop = DetectionLoop(
            self.state, self.s, self.camera, self.detector, self.render, on_emotion=self.gate.on_emotion
        )
        # Serializes start/stop/close so a stop never interleaves with a camera open
        self._lifecycle = asyncio.Lock()

    # ---- models ----
    async def load_models(self) -> bool:
        """Load the detector. A failure is blocking: controls stay disabled."""
        self.render.update_status("Loading vision models…", active=True)
        try:
            await asyncio.to_thread(self.detector.load)
        except ModelLoadError as e:
            self.state.load_error = str(e)
            self.render.update_status("Failed to load models. Refresh to try again.", error=True)
            self.render.disable_controls()
            return False
        self.state.models_loaded = True
        self.state.load_error = None
        self.render.update_status("Models ready. Start the camera to begin.")
        return True

    def _require_models(self) -> None:
        if self.state.load_error:
            raise ModelLoadError(self.state.load_error)

    # ---- capture lifecycle ----
    async def start(self) -> bool:
        """Open the camera and start detecting. Returns False if models are still loading."""
        self._require_models()
        if not self.state.models_loaded:
            self.render.update_status("Models are still loading. Please wait…", active=True)
            return False
        async with self._lifecycle:
            # A concurrent start finished while this one waited
            if self.state.is_detecting:
                return True

            self.render.set_controls(running=True)
            self.render.update_status("Requesting camera access…", active=True)
            try:
                await asyncio.to_thread(self.camera.open)
            except CameraError:
                logger.exception("[session] camera error")
                self.render.update_status("Unable to access camera. Check permissions.", error=True)
                self.render.set_controls(running=False)
                raise

            self.render.update_status("Now detecting…", active=True)
            self.state.is_detecting = True
            self.render.update_badge()
            self.loop.start()
            return True

    async def stop(self) -> None:
        async with self._lifecycle:
            await self.loop.stop()
            # Waits for a read still running in the worker thread
            await asyncio.to_thread(self.camera.release)
            self.render.release()
            self.state.reset_detection()
            self.render.set_controls(running=False)
            self.render.clear_emotion()
            self.render.update_badge()
            self.render.update_status("Camera stopped.")
        logger.info("[session] stopped")

    async def close(self) -> None:
        """Release camera, audio and HTTP resources (service shutdown)."""
        async with self._lifecycle:
            await self.loop.stop()
            self.gate.cancel()
            await self.gate.wait_idle()
            await asyncio.to_thread(self.camera.release)
            self.render.release()
        if self._owns_http:
            await self.http.aclose()
        logger.info("[session] closed")

    # ---- user actions ----
    def capture_now(self) -> GateDecision:
        self._require_models()
        return self.gate.capture_now()

    def retry(self) -> GateDecision:
        self._require_models()
        return self.gate.retry()

    def connect(self, client_id: str, client_secret: str) -> GateDecision:
        """Store Spotify credentials and refresh recommendations for the current emotion."""
        client_id = (client_id or "").strip()
        client_secret = (client_secret or "").strip()
        if not client_id or not client_secret:
            self.render.update_status("Client ID and secret are required.", error=True)
            raise MissingCredentialsError("Client ID and secret are required.")

        self.tokens.set_credentials(client_id, client_secret)
        self.render.update_status("Spotify connected. Awaiting emotion…")
        logger.info("[session] spotify credentials updated")
        target = self.state.detected_emotion or self.state.recommendation_emotion
        if target:
            return self.gate.attempt(target, force=True)
        return GateDecision.SKIPPED

    # ---- catalog ----
    async def fetch_tracks(self, emotion: str) -> None:
        keyword = keyword_for(emotion)
        await self.tokens.ensure_token()
        self.render.set_tracks_loading(f"Fetching {keyword} tracks…")
        tracks = await self.catalog.search_tracks(keyword)
        self.render.render_tracks(tracks, keyword)

    # ---- previews / view ----
    def play_preview(self, track_id: str) -> PreviewHandle:
        return self.render.play_preview(track_id)

    def preview_ended(self, track_id: str) -> None:
        self.render.preview_ended(track_id)

    def pause_preview(self) -> None:
        self.render.pause_preview()

    def view(self) -> PageView:
        return self.render.snapshot()
