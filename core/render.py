"""
Render layer: reflects session state into a PageView.

The view is what the HTTP API returns and what the overlay window draws.
The render layer also owns the single active audio preview.
"""
from __future__ import annotations
from typing import List, Optional
import logging
import math

from core.models import (
    BadgeView,
    DEFAULT_EMOJI,
    PageView,
    PreviewHandle,
    StatusView,
    Track,
    TracksView,
    emoji_for,
)
from core.state import SessionState

logger = logging.getLogger(__name__)


def capitalize(text: Optional[str]) -> str:
    return text[:1].upper() + text[1:] if text else ""


def percent(probability: float) -> int:
    """Whole percent, rounding halves up."""
    return int(probability * 100 + 0.5)


def format_duration(seconds: float) -> str:
    """Format a wait time as '2m 05s' or '45s' (rounded up to whole seconds)."""
    total = math.ceil(seconds)
    minutes, secs = divmod(max(0, total), 60)
    return f"{minutes}m {secs:02d}s" if minutes else f"{secs}s"


class RenderLayer:
    def __init__(self, state: SessionState):
        self.state = state
        self.view = PageView()

    # ---- status / emotion ----
    def update_status(self, message: str, *, active: bool = False, error: bool = False) -> None:
        self.view.status = StatusView(message=message, active=active, error=error)

    def show_emotion(self, emotion: str, confidence: float) -> None:
        self.view.emotion.label = f"{capitalize(emotion)} ({percent(confidence)}%)"
        self.view.emotion.emoji = emoji_for(emotion)

    def clear_emotion(self) -> None:
        self.view.emotion.label = "No face detected"
        self.view.emotion.emoji = DEFAULT_EMOJI

    def update_badge(self, *, pending: bool = False) -> None:
        st = self.state
        if pending and st.pending_emotion:
            self.view.badge = BadgeView(text=f"{capitalize(st.pending_emotion)} (pending)", kind="pending")
        elif st.recommendation_emotion:
            self.view.badge = BadgeView(text=capitalize(st.recommendation_emotion), kind="accent")
        elif st.is_detecting:
            self.view.badge = BadgeView(text="Awaiting emotion…", kind="muted")
        else:
            self.view.badge = BadgeView(text="Waiting for camera…", kind="muted")

    # ---- controls ----
    def set_controls(self, *, running: bool) -> None:
        c = self.view.controls
        c.start_enabled = not running
        c.stop_enabled = running
        c.capture_enabled = running

    def disable_controls(self) -> None:
        c = self.view.controls
        c.start_enabled = c.stop_enabled = c.capture_enabled = False

    # ---- tracks ----
    def _replace_tracks(self, tracks_view: TracksView) -> None:
        # Old track results are discarded; a preview from them cannot keep playing.
        if self.state.active_preview is not None:
            self.pause_preview()
            self.state.active_preview = None
        self.view.tracks = tracks_view

    def show_hint(self, message: str) -> None:
        self._replace_tracks(TracksView(message=message))

    def set_tracks_loading(self, message: str) -> None:
        self._replace_tracks(TracksView(message=message))

    def render_tracks(self, tracks: List[Track], keyword: str) -> None:
        if not tracks:
            self._replace_tracks(TracksView(message=f"No tracks found for {keyword}. Try again.", keyword=keyword))
            return
        self._replace_tracks(TracksView(tracks=list(tracks), keyword=keyword))

    def show_tracks_error(self, message: str) -> None:
        self._replace_tracks(TracksView(message=message, retry_available=True))

    # ---- audio preview ----
    def play_preview(self, track_id: str) -> PreviewHandle:
        """Start a track preview, pausing whichever preview was playing."""
        track = next((t for t in self.view.tracks.tracks if t.id == track_id), None)
        if track is None:
            raise KeyError(track_id)
        if not track.preview_url:
            raise ValueError("Preview unavailable")
        current = self.state.active_preview
        if current is not None and current.track_id != track_id:
            logger.debug(f"[render] pausing preview {current.track_id}")
            current.playing = False
        handle = PreviewHandle(track_id=track.id, url=track.preview_url, playing=True)
        self.state.active_preview = handle
        return handle

    def preview_ended(self, track_id: str) -> None:
        current = self.state.active_preview
        if current is not None and current.track_id == track_id:
            self.state.active_preview = None

    def pause_preview(self) -> None:
        if self.state.active_preview is not None:
            self.state.active_preview.playing = False

    def release(self) -> None:
        """Stop any playing audio (session stop / shutdown)."""
        self.pause_preview()
        self.state.active_preview = None

    def snapshot(self) -> PageView:
        view = self.view.model_copy(deep=True)
        view.preview = self.state.active_preview.model_copy() if self.state.active_preview else None
        return view
