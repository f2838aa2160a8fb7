"""
Recommendation gate: decides whether a detected emotion fetches tracks now,
waits out the cooldown as a pending emotion, or is ignored.
"""
from __future__ import annotations
from enum import Enum
from typing import Awaitable, Callable, Optional
import asyncio
import logging
import time

from core.config import Settings
from core.render import RenderLayer, format_duration
from core.state import SessionState

logger = logging.getLogger(__name__)

CREDENTIALS_HINT = "Provide Spotify credentials above to get tracks."
FETCH_ERROR_MESSAGE = "Spotify is unavailable. Try again."


class GateDecision(str, Enum):
    FETCH = "fetch"            # a fetch was started
    UNCHANGED = "unchanged"    # already recommending this emotion
    PENDING = "pending"        # deferred until the cooldown expires
    QUEUED = "queued"          # a fetch is in flight; parked in the pending slot
    SKIPPED = "skipped"        # preconditions not met (no credentials, no emotion, ...)


class RecommendationGate:
    """
    Cooldown/debounce in front of the catalog fetch.

    Fetches run as asyncio tasks on the running loop; at most one is in flight.
    """

    def __init__(
        self,
        state: SessionState,
        settings: Settings,
        render: RenderLayer,
        fetch: Callable[[str], Awaitable[None]],
        has_credentials: Callable[[], bool],
        clock: Callable[[], float] = time.monotonic,
    ):
        self.state = state
        self.s = settings
        self.render = render
        self._fetch = fetch
        self._has_credentials = has_credentials
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    def seconds_since_recommendation(self) -> Optional[float]:
        if self.state.last_recommendation_at is None:
            return None
        return self._clock() - self.state.last_recommendation_at

    def on_emotion(self, emotion: str) -> GateDecision:
        """Handle a newly accepted emotion from the detection loop."""
        st = self.state
        if not self._has_credentials():
            self.render.show_hint(CREDENTIALS_HINT)
            return GateDecision.SKIPPED

        if st.recommendation_emotion is None:
            return self.attempt(emotion)

        if st.recommendation_emotion == emotion:
            st.pending_emotion = None
            self.render.update_badge()
            return GateDecision.UNCHANGED

        elapsed = self.seconds_since_recommendation()
        if elapsed is None or elapsed >= self.s.EMOTION_COOLDOWN:
            return self.attempt(emotion)

        st.pending_emotion = emotion
        self.render.update_badge(pending=True)
        remaining = self.s.EMOTION_COOLDOWN - elapsed
        self.render.update_status(
            f"Holding current playlist for {format_duration(remaining)}. "
            "Press Capture Emotion to refresh now.",
            active=True,
        )
        logger.debug(f"[gate] pending={emotion} remaining={remaining:.1f}s")
        return GateDecision.PENDING

    def capture_now(self) -> GateDecision:
        """Manual override: fetch for the current emotion regardless of cooldown."""
        st = self.state
        if not st.is_detecting:
            self.render.update_status("Start the camera first.", error=True)
            return GateDecision.SKIPPED
        if not st.detected_emotion:
            self.render.update_status("No face detected. Look at the camera.", error=True)
            return GateDecision.SKIPPED
        if not self._has_credentials():
            self.render.update_status("Connect to Spotify first.", error=True)
            return GateDecision.SKIPPED

        decision = self.attempt(st.detected_emotion, force=True)
        if decision == GateDecision.FETCH:
            self.render.update_status("Refreshing recommendations…", active=True)
        return decision

    def retry(self) -> GateDecision:
        """Retry action shown after a failed fetch."""
        target = self.state.detected_emotion or self.state.recommendation_emotion
        if not target:
            return GateDecision.SKIPPED
        return self.attempt(target, force=True)

    def attempt(self, emotion: Optional[str], *, force: bool = False) -> GateDecision:
        st = self.state
        if not emotion or not self._has_credentials():
            return GateDecision.SKIPPED

        if st.is_fetching:
            st.pending_emotion = emotion
            self.render.update_badge(pending=True)
            logger.debug(f"[gate] fetch in flight; queued {emotion}")
            return GateDecision.QUEUED

        if not force and st.recommendation_emotion == emotion and st.last_recommendation_at is not None:
            self.render.update_badge()
            return GateDecision.UNCHANGED

        st.is_fetching = True
        st.recommendation_emotion = emotion
        st.pending_emotion = None
        self.render.update_badge()
        logger.info(f"[gate] fetching recommendations for {emotion} force={force}")
        self._task = asyncio.get_running_loop().create_task(self._run(emotion))
        return GateDecision.FETCH

    async def _run(self, emotion: str) -> None:
        try:
            await self._fetch(emotion)
            self.state.last_recommendation_at = self._clock()
            self.render.update_status("Playlist refreshed.")
        except Exception:
            logger.exception(f"[gate] fetch failed for {emotion}")
            self.render.show_tracks_error(FETCH_ERROR_MESSAGE)
        finally:
            self.state.is_fetching = False

    async def wait_idle(self) -> None:
        """Wait for the in-flight fetch (if any) to finish."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
