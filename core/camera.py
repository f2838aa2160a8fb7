"""
Webcam capture wrapper around cv2.VideoCapture.

open/read/release may be called from worker threads; they are serialized
so a capture is never released while a read is in progress.
"""
from __future__ import annotations
from typing import Optional
import logging
import threading
import cv2
import numpy as np

from core.errors import CameraError

logger = logging.getLogger(__name__)


class Camera:
    """Opens a camera index on demand and keeps the most recent frame."""

    def __init__(self, index: int = 0):
        self.index = index
        self._cap = None
        self._lock = threading.Lock()
        self.last_frame: Optional[np.ndarray] = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> None:
        with self._lock:
            if self._cap is not None:
                return
            cap = cv2.VideoCapture(self.index)
            if not cap.isOpened():
                cap.release()
                raise CameraError(f"Could not open camera index {self.index}")
            self._cap = cap
        logger.info(f"[camera] opened index={self.index}")

    def read(self) -> Optional[np.ndarray]:
        """Return the next frame, or None when the stream has no frame ready."""
        with self._lock:
            if self._cap is None:
                return None
            ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        self.last_frame = frame
        return frame

    def release(self) -> None:
        with self._lock:
            cap, self._cap = self._cap, None
            if cap is not None:
                cap.release()
                logger.info(f"[camera] released index={self.index}")
            self.last_frame = None
