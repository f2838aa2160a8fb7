"""
Configuration for the emotion music recommender.
"""
from pydantic import BaseModel
import os

DETECTOR_BACKENDS = ("opencv", "ssd", "mtcnn", "retinaface", "mediapipe", "yunet", "centerface")


class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))

    # Detection cadence and acceptance
    DETECTION_INTERVAL: float = float(os.getenv("DETECTION_INTERVAL", "1.2"))
    MIN_CONFIDENCE: float = float(os.getenv("MIN_CONFIDENCE", "0.6"))
    DETECTOR_BACKEND: str = (os.getenv("DETECTOR_BACKEND", "opencv") or "opencv")
    DETECTOR_INPUT_SIZE: int = int(os.getenv("DETECTOR_INPUT_SIZE", "224"))
    DETECTOR_SCORE_THRESHOLD: float = float(os.getenv("DETECTOR_SCORE_THRESHOLD", "0.5"))

    # Recommendation cadence
    EMOTION_COOLDOWN: float = float(os.getenv("EMOTION_COOLDOWN", "180"))
    TRACK_LIMIT: int = int(os.getenv("TRACK_LIMIT", "6"))

    # Spotify
    SPOTIFY_CLIENT_ID: str = os.getenv("SPOTIFY_CLIENT_ID", "")
    SPOTIFY_CLIENT_SECRET: str = os.getenv("SPOTIFY_CLIENT_SECRET", "")
    SPOTIFY_TOKEN_URL: str = os.getenv("SPOTIFY_TOKEN_URL", "https://accounts.spotify.com/api/token")
    SPOTIFY_SEARCH_URL: str = os.getenv("SPOTIFY_SEARCH_URL", "https://api.spotify.com/v1/search")
    TOKEN_SAFETY_MARGIN: float = float(os.getenv("TOKEN_SAFETY_MARGIN", "5"))
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "10"))

    # API
    API_HOST: str = os.getenv("API_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize DETECTOR_BACKEND: strip comments/extra words, lower-case, validate
        backend = (self.DETECTOR_BACKEND or "opencv").strip().split()[0].lower()
        if backend not in DETECTOR_BACKENDS:
            backend = "opencv"
        object.__setattr__(self, "DETECTOR_BACKEND", backend)
        object.__setattr__(self, "LOG_LEVEL", (self.LOG_LEVEL or "INFO").strip().upper())
