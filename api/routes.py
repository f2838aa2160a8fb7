"""
REST endpoints for the recommender session.
"""
import logging

from fastapi import APIRouter, Depends, Form, HTTPException

from api.state import get_session
from core.errors import CameraError, MissingCredentialsError, ModelLoadError
from core.models import PageView
from core.session import RecommenderSession

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/session", response_model=PageView)
async def session_view(session: RecommenderSession = Depends(get_session)):
    """Return the current page view (status, emotion, badge, tracks, preview, controls)."""
    return session.view()


@router.post("/session/start")
async def session_start(session: RecommenderSession = Depends(get_session)):
    """
    Open the camera and start the detection loop.

    Returns:
        dict: {"status": "started" | "loading", "view": PageView}
    """
    try:
        started = await session.start()
    except ModelLoadError as e:
        logger.warning(f"[api] start refused: {e}")
        raise HTTPException(status_code=503, detail="Failed to load models. Refresh to try again.")
    except CameraError as e:
        logger.warning(f"[api] camera unavailable: {e}")
        raise HTTPException(status_code=503, detail="Unable to access camera. Check permissions.")
    return {"status": "started" if started else "loading", "view": session.view()}


@router.post("/session/stop")
async def session_stop(session: RecommenderSession = Depends(get_session)):
    await session.stop()
    return {"status": "stopped", "view": session.view()}


@router.post("/session/capture")
async def session_capture(session: RecommenderSession = Depends(get_session)):
    """Manual override: refresh recommendations now for the detected emotion."""
    try:
        decision = session.capture_now()
    except ModelLoadError:
        raise HTTPException(status_code=503, detail="Failed to load models. Refresh to try again.")
    return {"decision": decision.value, "view": session.view()}


@router.post("/session/retry")
async def session_retry(session: RecommenderSession = Depends(get_session)):
    try:
        decision = session.retry()
    except ModelLoadError:
        raise HTTPException(status_code=503, detail="Failed to load models. Refresh to try again.")
    return {"decision": decision.value, "view": session.view()}


@router.post("/spotify/credentials")
async def spotify_credentials(
    client_id: str = Form(""),
    client_secret: str = Form(""),
    session: RecommenderSession = Depends(get_session),
):
    """
    Store Spotify client credentials for the client-credentials token exchange.

    Args:
        client_id: Spotify application client id.
        client_secret: Spotify application client secret.
    """
    try:
        decision = session.connect(client_id, client_secret)
    except MissingCredentialsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"decision": decision.value, "view": session.view()}


@router.post("/previews/{track_id}/play")
async def preview_play(track_id: str, session: RecommenderSession = Depends(get_session)):
    """Play a track preview; any other playing preview is paused."""
    try:
        handle = session.play_preview(track_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Track not found")
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return handle


@router.post("/previews/{track_id}/ended")
async def preview_ended(track_id: str, session: RecommenderSession = Depends(get_session)):
    session.preview_ended(track_id)
    return {"ok": True}


@router.post("/previews/pause")
async def preview_pause(session: RecommenderSession = Depends(get_session)):
    session.pause_preview()
    return {"ok": True}
