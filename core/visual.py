"""Visualization helpers.

- draw_overlays: draw the page view (status, emotion, badge, tracks) over a camera frame
- run_live_overlay: run a session in an OpenCV window (the desktop counterpart of the HTTP API)

Hershey fonts are ASCII-only, so text is transliterated before drawing.
"""
from __future__ import annotations
import asyncio
import cv2
import numpy as np
from typing import Tuple

from core.models import PageView

GREEN = (0, 255, 0)
RED = (0, 0, 255)
AMBER = (0, 191, 255)
GREY = (200, 200, 200)
WHITE = (255, 255, 255)

BADGE_COLORS = {"accent": GREEN, "pending": AMBER, "muted": GREY}


def _ascii(text: str) -> str:
    return (text or "").replace("…", "...").encode("ascii", "ignore").decode("ascii").strip()


def _put(img: np.ndarray, text: str, org: Tuple[int, int], color, scale: float = 0.6) -> None:
    cv2.putText(img, _ascii(text), org, cv2.FONT_HERSHEY_SIMPLEX, scale, color, 2, cv2.LINE_AA)


def draw_overlays(frame: np.ndarray, view: PageView, max_tracks: int = 6) -> np.ndarray:
    """Draw the current page view on a copy of the frame.

    Args:
        frame: BGR image
        view: render snapshot to draw
        max_tracks: cap on listed tracks (the result set size)

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    h, w = out.shape[:2]

    status_color = RED if view.status.error else (GREEN if view.status.active else WHITE)
    _put(out, view.status.message, (10, 25), status_color)
    _put(out, view.emotion.label, (10, 55), WHITE, 0.8)
    _put(out, view.badge.text, (10, 85), BADGE_COLORS.get(view.badge.kind, GREY))

    y = 120
    if view.tracks.message:
        _put(out, view.tracks.message, (10, y), RED if view.tracks.retry_available else GREY, 0.5)
        y += 25
        if view.tracks.retry_available:
            _put(out, "[r] Try again", (10, y), GREY, 0.5)
            y += 25

    for track in view.tracks.tracks[:max_tracks]:
        if y > h - 10:
            break
        playing = view.preview is not None and view.preview.playing and view.preview.track_id == track.id
        marker = ">" if playing else "-"
        line = f"{marker} {track.title} - {track.artist_line}"
        if not track.preview_url:
            line += " (Preview unavailable)"
        _put(out, line, (10, y), GREEN if playing else WHITE, 0.5)
        y += 22

    return out


WINDOW_TITLE = "Emotion Music (c capture, r retry, q quit)"


async def run_live_overlay(session, refresh_s: float = 0.03) -> None:
    """
    Run a session with an OpenCV window showing the latest frame and page view.

    Keys: 'c' capture now, 'r' retry after a fetch error, 'q' quit.
    The displayed frame is the one the detection loop last sampled.
    """
    if not await session.load_models():
        raise RuntimeError(session.state.load_error or "Failed to load models")
    try:
        await session.start()
        while True:
            frame = session.camera.last_frame
            if frame is not None:
                annotated = draw_overlays(frame, session.view(), max_tracks=session.s.TRACK_LIMIT)
                cv2.imshow(WINDOW_TITLE, annotated)
            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if key == ord("c"):
                session.capture_now()
            elif key == ord("r"):
                session.retry()
            await asyncio.sleep(refresh_s)
    finally:
        await session.stop()
        await session.close()
        cv2.destroyAllWindows()
