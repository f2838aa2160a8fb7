from core.config import Settings


def test_Settings():
    s = Settings()
    assert s.DETECTION_INTERVAL > 0
    assert 0.0 < s.MIN_CONFIDENCE <= 1.0
    assert s.TOKEN_SAFETY_MARGIN >= 0
    # override via env-like behavior (construct new instance)
    s2 = Settings(EMOTION_COOLDOWN=30, TRACK_LIMIT=3)
    assert s2.EMOTION_COOLDOWN == 30
    assert s2.TRACK_LIMIT == 3


def test_detector_backend_normalized():
    assert Settings(DETECTOR_BACKEND="RetinaFace  # more accurate").DETECTOR_BACKEND == "retinaface"
    assert Settings(DETECTOR_BACKEND="not-a-backend").DETECTOR_BACKEND == "opencv"
    assert Settings(LOG_LEVEL=" debug ").LOG_LEVEL == "DEBUG"
