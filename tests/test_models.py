from core.models import (
    EMOTIONS, EMOTION_KEYWORDS, DEFAULT_EMOJI, PageView, Track, emoji_for, keyword_for,
)


def test_models():
    assert set(EMOTION_KEYWORDS) == set(EMOTIONS)
    assert keyword_for("happy") == "feel good pop"
    assert keyword_for("bored") == "bored"
    assert emoji_for("sad") == "😢"
    assert emoji_for(None) == DEFAULT_EMOJI

    t = Track(title="Song", artists=["A", "B"])
    assert t.artist_line == "A, B"
    assert Track(title="Song").artist_line == "Unknown artist"

    view = PageView()
    assert view.badge.text == "Waiting for camera…"
    assert view.controls.start_enabled and not view.controls.capture_enabled
    assert view.preview is None
