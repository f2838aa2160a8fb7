
"""Run the recommender in a live camera window.

Usage:
    uvicorn api.main:app --reload  # (separate, for the HTTP API)
    SPOTIFY_CLIENT_ID=... SPOTIFY_CLIENT_SECRET=... python scripts/live_overlay.py

Keys: 'c' capture now, 'r' retry, 'q' quit.
"""
import asyncio
import logging

from core.config import Settings
from core.session import RecommenderSession
from core.visual import run_live_overlay

if __name__ == '__main__':
    s = Settings()
    logging.basicConfig(level=s.LOG_LEVEL, format="%(levelname)s: %(name)s: %(message)s")
    asyncio.run(run_live_overlay(RecommenderSession(s)))
