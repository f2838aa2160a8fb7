# core/detection.py
"""
Detection loop: samples the camera every DETECTION_INTERVAL seconds, runs the
expression detector and feeds confident emotions to the recommendation gate.

Camera reads and detector inference run in a worker thread so the event loop
keeps serving requests while a frame is analyzed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from core.camera import Camera
from core.config import Settings
from core.detector import ExpressionDetector, top_expression
from core.models import TopExpression
from core.render import RenderLayer, percent
from core.state import SessionState

logger = logging.getLogger(__name__)


class DetectionLoop:
    """Recurring detection task with explicit start/stop."""
    def __init__(
        self,
        state: SessionState,
        settings: Settings,
        camera: Camera,
        detector: ExpressionDetector,
        render: RenderLayer,
        on_emotion: Callable[[str], Any],
    ):
        self.state = state
        self.s = settings
        self.camera = camera
        self.detector = detector
        self.render = render
        self._on_emotion = on_emotion
        self._task: Optional[asyncio.Task] = None

    # ---- lifecycle ----
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"[detect] loop started interval={self.s.DETECTION_INTERVAL}s")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("[detect] loop stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.s.DETECTION_INTERVAL)
            await self.tick()

    # ---- one iteration ----
    async def tick(self) -> Optional[TopExpression]:
        """
        Run one detection pass.

        Returns the top expression when a face was scored, else None.
        Errors are reported in the status and never escape; the next tick retries.
        """
        if not self.state.is_detecting:
            return None
        try:
            frame = await asyncio.to_thread(self.camera.read)
            if frame is None:
                return None
            expressions = await asyncio.to_thread(self.detector.detect, frame, self.detector.options())
        except Exception:
            logger.exception("[detect] detection error")
            self.render.update_status("Detection issue. Retrying…", error=True)
            return None

        # Stopped while the frame was being analyzed
        if not self.state.is_detecting:
            return None

        if not expressions:
            self._clear_emotion()
            self.render.update_status("Searching for a face…", active=True)
            return None

        top = top_expression(expressions)
        if top.expression and top.probability >= self.s.MIN_CONFIDENCE:
            self._accept(top.expression, top.probability)
        elif top.expression:
            self.render.update_status(
                f"Low confidence ({percent(top.probability)}%). Keep steady.",
                active=True,
            )
        logger.debug(f"[detect] top={top.expression} p={top.probability:.2f}")
        return top

    def _accept(self, emotion: str, probability: float) -> None:
        self.render.show_emotion(emotion, probability)
        self.state.detected_emotion = emotion
        self._on_emotion(emotion)

    def _clear_emotion(self) -> None:
        self.state.detected_emotion = None
        self.state.pending_emotion = None
        self.render.clear_emotion()
        if not self.state.recommendation_emotion:
            self.render.update_badge()
