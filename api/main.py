"""
FastAPI application entrypoint.
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from api.routes import router
from api.state import get_session, set_session
from core.config import Settings

settings = Settings()
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(levelname)s: %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    session = get_session()
    await session.load_models()
    yield
    # Page closed: release camera stream, playing audio and HTTP client
    await session.close()
    set_session(None)


app = FastAPI(title="Emotion Music Recommender API", version="1.0.0", lifespan=lifespan)
app.include_router(router)


@app.get("/health")
def health() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Simple status payload.
    """
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("api.main:app", host=settings.API_HOST, port=settings.API_PORT)
