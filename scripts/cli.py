"""
CLI: emotion (from an image or given) -> Spotify tracks as JSON.
"""
from __future__ import annotations
import argparse, asyncio, json, sys

import cv2
import httpx

from core.config import Settings
from core.detector import ExpressionDetector, top_expression
from core.models import keyword_for
from core.spotify import CatalogClient, TokenManager


def detect_emotion(image_path: str, settings: Settings) -> tuple[str | None, float]:
    frame = cv2.imread(image_path)
    if frame is None:
        raise FileNotFoundError(f"Could not read image: {image_path}")
    detector = ExpressionDetector(settings)
    detector.load()
    top = top_expression(detector.detect(frame))
    return top.expression, top.probability


async def recommend(emotion: str, settings: Settings, limit: int | None = None) -> dict:
    keyword = keyword_for(emotion)
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as http:
        catalog = CatalogClient(settings, http, TokenManager(settings, http))
        tracks = await catalog.search_tracks(keyword, limit)
    return {
        "emotion": emotion,
        "keyword": keyword,
        "tracks": [t.model_dump() for t in tracks],
    }


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser()
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--image", help="Path to an image with a face")
    src.add_argument("--emotion", help="Emotion label (happy, sad, neutral, ...)")
    p.add_argument("--limit", type=int, default=None, help="Number of tracks")
    args = p.parse_args(argv)

    settings = Settings()
    if args.image:
        emotion, probability = detect_emotion(args.image, settings)
        if emotion is None:
            print("No face detected.", file=sys.stderr)
            return 1
        if probability < settings.MIN_CONFIDENCE:
            print(f"Low confidence ({probability:.0%}) for {emotion}.", file=sys.stderr)
            return 1
    else:
        emotion = args.emotion.strip().lower()

    result = asyncio.run(recommend(emotion, settings, args.limit))
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0

if __name__ == "__main__":
    sys.exit(main())
