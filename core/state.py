"""Per-session mutable state shared by the detection loop, gate and render layer."""
from dataclasses import dataclass
from typing import Optional

from core.models import PreviewHandle


@dataclass
class SessionState:
    """Single-writer per tick. At most one recommendation fetch is in flight."""
    models_loaded: bool = False
    load_error: Optional[str] = None
    is_detecting: bool = False
    detected_emotion: Optional[str] = None
    recommendation_emotion: Optional[str] = None
    pending_emotion: Optional[str] = None
    last_recommendation_at: Optional[float] = None  # monotonic seconds; None = never succeeded
    is_fetching: bool = False
    active_preview: Optional[PreviewHandle] = None  # written only by RenderLayer

    def reset_detection(self) -> None:
        self.is_detecting = False
        self.detected_emotion = None
        self.pending_emotion = None
        self.recommendation_emotion = None
