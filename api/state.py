"""Shared session (injected into routes)."""
from typing import Optional

from core.config import Settings
from core.session import RecommenderSession

_session: Optional[RecommenderSession] = None


def get_session() -> RecommenderSession:
    global _session
    if _session is None:
        _session = RecommenderSession(Settings())
    return _session


def set_session(session: Optional[RecommenderSession]) -> None:
    """Replace the shared session (None drops it; the next get builds a fresh one)."""
    global _session
    _session = session
