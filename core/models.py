"""
Pydantic data models for tracks, detections and the page view.
"""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Literal

EMOTIONS = ("happy", "sad", "neutral", "angry", "surprised", "fearful", "disgusted")

EMOTION_KEYWORDS: Dict[str, str] = {
    "happy": "feel good pop",
    "sad": "sad acoustic",
    "neutral": "lofi chill",
    "angry": "energetic rock",
    "surprised": "party hits",
    "fearful": "ambient calm",
    "disgusted": "intense beats",
}

EMOTION_EMOJI: Dict[str, str] = {
    "happy": "😄",
    "sad": "😢",
    "neutral": "😐",
    "angry": "😠",
    "surprised": "😲",
    "fearful": "😨",
    "disgusted": "🤢",
}
DEFAULT_EMOJI = "🙂"


def keyword_for(emotion: str) -> str:
    return EMOTION_KEYWORDS.get(emotion, emotion)


def emoji_for(emotion: Optional[str]) -> str:
    return EMOTION_EMOJI.get(emotion or "", DEFAULT_EMOJI)


class DetectionOptions(BaseModel):
    input_size: int = 224
    score_threshold: float = 0.5


class TopExpression(BaseModel):
    expression: Optional[str] = None
    probability: float = 0.0


class Track(BaseModel):
    id: str = ""
    uri: str = ""
    title: str
    artists: List[str] = Field(default_factory=list)
    thumbnail_url: str = ""
    preview_url: Optional[str] = None
    external_url: Optional[str] = None

    @property
    def artist_line(self) -> str:
        return ", ".join(self.artists) if self.artists else "Unknown artist"


# page view


class StatusView(BaseModel):
    message: str = ""
    active: bool = False
    error: bool = False


class EmotionView(BaseModel):
    label: str = "No face detected"
    emoji: str = DEFAULT_EMOJI


class BadgeView(BaseModel):
    text: str = "Waiting for camera…"
    kind: Literal["accent", "pending", "muted"] = "muted"


class PreviewHandle(BaseModel):
    track_id: str
    url: str
    playing: bool = True


class TracksView(BaseModel):
    tracks: List[Track] = Field(default_factory=list)
    message: Optional[str] = None
    keyword: Optional[str] = None
    retry_available: bool = False


class ControlsView(BaseModel):
    start_enabled: bool = True
    stop_enabled: bool = False
    capture_enabled: bool = False


class PageView(BaseModel):
    status: StatusView = Field(default_factory=StatusView)
    emotion: EmotionView = Field(default_factory=EmotionView)
    badge: BadgeView = Field(default_factory=BadgeView)
    tracks: TracksView = Field(default_factory=TracksView)
    preview: Optional[PreviewHandle] = None
    controls: ControlsView = Field(default_factory=ControlsView)
