import sys, types
import numpy as np
import pytest

from core.config import Settings
from core.detector import ExpressionDetector, normalize_expressions, top_expression
from core.errors import ModelLoadError


def test_normalize_expressions_percent_and_aliases():
    out = normalize_expressions({"happy": 72.0, "Surprise": 20.0, "fear": 8.0})
    assert out == pytest.approx({"happy": 0.72, "surprised": 0.20, "fearful": 0.08})
    # already probabilities: kept as-is
    assert normalize_expressions({"sad": 0.4, "neutral": 0.6}) == {"sad": 0.4, "neutral": 0.6}
    assert normalize_expressions({}) == {}


def test_top_expression():
    top = top_expression({"happy": 0.72, "sad": 0.2, "neutral": 0.08})
    assert top.expression == "happy"
    assert top.probability == pytest.approx(0.72)
    empty = top_expression(None)
    assert empty.expression is None and empty.probability == 0.0
    # ties keep the first label seen
    assert top_expression({"sad": 0.5, "angry": 0.5}).expression == "sad"


class DummyDeepFace:
    faces = []
    analyzed = []

    @staticmethod
    def extract_faces(img_path, detector_backend, enforce_detection, align):
        DummyDeepFace.small_shape = img_path.shape
        return DummyDeepFace.faces

    @staticmethod
    def analyze(img, actions, enforce_detection, detector_backend):
        DummyDeepFace.analyzed.append(img.shape)
        return [{"emotion": {"happy": 72.0, "sad": 18.0, "neutral": 10.0}, "dominant_emotion": "happy"}]


@pytest.fixture
def deepface(monkeypatch):
    # Inject a fake 'deepface' module so `from deepface import DeepFace` works
    DummyDeepFace.faces = []
    DummyDeepFace.analyzed = []
    monkeypatch.setitem(sys.modules, "deepface", types.SimpleNamespace(DeepFace=DummyDeepFace))
    return DummyDeepFace


def test_load_warms_up(deepface):
    det = ExpressionDetector(Settings())
    det.load()
    assert det.loaded
    assert deepface.analyzed == [(48, 48, 3)]


def test_load_failure_raises_model_load_error(monkeypatch):
    class Broken:
        @staticmethod
        def analyze(*a, **k):
            raise RuntimeError("weights missing")
    monkeypatch.setitem(sys.modules, "deepface", types.SimpleNamespace(DeepFace=Broken))
    det = ExpressionDetector(Settings())
    with pytest.raises(ModelLoadError):
        det.load()
    assert not det.loaded


def test_detect_no_face(deepface):
    det = ExpressionDetector(Settings())
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    # opencv backend reports a whole-frame area with confidence 0 when nothing is found
    deepface.faces = [{"facial_area": {"x": 0, "y": 0, "w": 224, "h": 168}, "confidence": 0}]
    assert det.detect(frame) is None
    assert deepface.analyzed == []


def test_detect_largest_face_scaled_back(deepface):
    det = ExpressionDetector(Settings())
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    deepface.faces = [
        {"facial_area": {"x": 10, "y": 10, "w": 20, "h": 20}, "confidence": 0.9},
        {"facial_area": {"x": 100, "y": 40, "w": 70, "h": 70}, "confidence": 0.8},
    ]
    out = det.detect(frame)
    # frame downscaled to the detector input width
    assert deepface.small_shape[1] == 224
    assert out == pytest.approx({"happy": 0.72, "sad": 0.18, "neutral": 0.10})
    (h, w, _), = deepface.analyzed
    assert abs(w - 200) <= 1 and abs(h - 200) <= 1
