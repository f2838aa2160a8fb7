"""
Facial expression detection on single frames with DeepFace.
"""
# core/detector.py
from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import logging
import cv2
import numpy as np

from core.config import Settings
from core.errors import ModelLoadError
from core.models import DetectionOptions, TopExpression

logger = logging.getLogger(__name__)

# DeepFace label -> our label set
LABEL_ALIASES = {
    "disgust": "disgusted",
    "fear": "fearful",
    "surprise": "surprised",
}


def normalize_expressions(raw: Dict[str, float]) -> Dict[str, float]:
    """
    Map DeepFace emotion scores onto our label set as probabilities in [0, 1].

    DeepFace reports percentages (0..100); values already in [0, 1] are kept.
    """
    if not raw:
        return {}
    scores = {LABEL_ALIASES.get(k.lower(), k.lower()): float(v) for k, v in raw.items()}
    if max(scores.values()) > 1.0:
        scores = {k: v / 100.0 for k, v in scores.items()}
    return {k: max(0.0, min(1.0, v)) for k, v in scores.items()}


def top_expression(expressions: Optional[Dict[str, float]]) -> TopExpression:
    best = TopExpression()
    for expression, probability in (expressions or {}).items():
        if probability > best.probability:
            best = TopExpression(expression=expression, probability=float(probability))
    return best


def _resize_for_detect(img: np.ndarray, target_w: int) -> Tuple[np.ndarray, float]:
    H, W = img.shape[:2]
    if W <= target_w or target_w <= 0:
        return img, 1.0
    scale = target_w / float(W)
    small = cv2.resize(img, (target_w, max(1, int(H * scale))), interpolation=cv2.INTER_AREA)
    return small, scale


class ExpressionDetector:
    """Black-box expression detector: frame in, label -> probability out."""

    def __init__(self, settings: Settings):
        self.s = settings
        self.loaded = False

    def options(self) -> DetectionOptions:
        return DetectionOptions(
            input_size=self.s.DETECTOR_INPUT_SIZE,
            score_threshold=self.s.DETECTOR_SCORE_THRESHOLD,
        )

    def load(self) -> None:
        """
        Import DeepFace and warm up the emotion model so the first tick is not slow.

        Raises:
            ModelLoadError: if the DeepFace stack cannot be imported or the model fails to build.
        """
        logger.info(f"[detect] loading models backend={self.s.DETECTOR_BACKEND}")
        try:
            # Lazy import for easier testing and to avoid loading heavy stacks too early
            from deepface import DeepFace
            DeepFace.analyze(
                np.zeros((48, 48, 3), dtype=np.uint8),
                actions=["emotion"],
                enforce_detection=False,
                detector_backend="skip",
            )
        except Exception as e:
            logger.exception("[detect] model loading failed")
            raise ModelLoadError(f"Failed to load models: {e}") from e
        self.loaded = True
        logger.info("[detect] models ready")

    def _find_faces(self, frame: np.ndarray, options: DetectionOptions) -> List[Dict[str, int]]:
        from deepface import DeepFace

        small, scale = _resize_for_detect(frame, options.input_size)
        dets = DeepFace.extract_faces(
            img_path=small,
            detector_backend=self.s.DETECTOR_BACKEND,
            enforce_detection=False,
            align=True,
        )
        H, W = frame.shape[:2]
        faces: List[Dict[str, int]] = []
        for d in dets or []:
            fa = (d or {}).get("facial_area") or {}
            try:
                conf = float(d.get("confidence") or 0.0)
            except (TypeError, ValueError):
                conf = 0.0
            if conf < options.score_threshold:
                continue
            x = max(0, int(fa.get("x", 0) / scale))
            y = max(0, int(fa.get("y", 0) / scale))
            w = min(int(fa.get("w", 0) / scale), W - x)
            h = min(int(fa.get("h", 0) / scale), H - y)
            if w <= 0 or h <= 0:
                continue
            faces.append({"x": x, "y": y, "w": w, "h": h})
        return faces

    def detect(self, frame: np.ndarray, options: Optional[DetectionOptions] = None) -> Optional[Dict[str, float]]:
        """
        Detect the most prominent face and score its expressions.

        Returns:
            {label: probability} for the largest face, or None when no face passes
            the score threshold.
        """
        options = options or self.options()
        from deepface import DeepFace

        faces = self._find_faces(frame, options)
        logger.debug(f"[detect] faces_detected={len(faces)}")
        if not faces:
            return None

        reg = max(faces, key=lambda r: r["w"] * r["h"])
        x, y, w, h = reg["x"], reg["y"], reg["w"], reg["h"]
        chip = frame[y:y+h, x:x+w]
        res = DeepFace.analyze(
            chip if chip.size else frame,
            actions=["emotion"],
            enforce_detection=False,
            detector_backend="skip",
        )
        res = res if isinstance(res, list) else [res]
        r0 = res[0] if res else {}
        probs = r0.get("emotion") if isinstance(r0.get("emotion"), dict) else None
        if not probs:
            # Fall back to the dominant label alone
            dom = r0.get("dominant_emotion")
            return {LABEL_ALIASES.get(dom, dom): 1.0} if isinstance(dom, str) and dom else None
        return normalize_expressions(probs)
