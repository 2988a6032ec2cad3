"""
CLI entrypoint:
  python -m shorts_maker --topic "Why octopuses are weird" [--duration 45] [--upload]
"""

import argparse
import asyncio
import base64
import os
import re
import sys
from datetime import datetime
from typing import List, Optional

from shorts_maker import config
from shorts_maker.api import create_short
from shorts_maker.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def slugify(text: str, max_length: int = 50) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")
    return slug[:max_length].rstrip("_") or "short"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Turn a short content brief into a narrated vertical video"
    )
    parser.add_argument("--topic", required=True, help="What the short is about")
    parser.add_argument("--tone", help="e.g. playful, dramatic, educational")
    parser.add_argument("--audience", dest="target_audience", help="Target audience")
    parser.add_argument("--cta", help="Call to action for the closing beat")
    parser.add_argument(
        "--duration",
        type=float,
        default=45,
        help=f"Target length in seconds ({config.MIN_DURATION_SECONDS}-{config.MAX_DURATION_SECONDS})",
    )
    parser.add_argument("--upload", action="store_true", help="Upload to YouTube after generation")
    parser.add_argument("--title", help="Override the generated title")
    parser.add_argument("--description", help="Override the generated description")
    parser.add_argument("--tags", help="Comma-separated tags overriding the generated ones")
    parser.add_argument("--output-dir", default=config.OUTPUT_DIR, help="Where to write the video and thumbnail")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="DEBUG, INFO, WARNING, ...")
    return parser


def payload_from_args(args: argparse.Namespace) -> dict:
    payload = {
        "topic": args.topic,
        "durationSeconds": args.duration,
        "uploadToYoutube": args.upload,
    }
    optional = {
        "tone": args.tone,
        "targetAudience": args.target_audience,
        "cta": args.cta,
        "customTitle": args.title,
        "customDescription": args.description,
    }
    payload.update({key: value for key, value in optional.items() if value})
    if args.tags:
        payload["customTags"] = [tag.strip() for tag in args.tags.split(",") if tag.strip()]
    return payload


def save_outputs(result: dict, output_dir: str) -> List[str]:
    os.makedirs(output_dir, exist_ok=True)
    stem = f"{slugify(result['plan']['title'])}_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    video_path = os.path.join(output_dir, f"{stem}.mp4")
    thumbnail_path = os.path.join(output_dir, f"{stem}.png")
    with open(video_path, "wb") as f:
        f.write(base64.b64decode(result["videoBase64"]))
    with open(thumbnail_path, "wb") as f:
        f.write(base64.b64decode(result["thumbnailBase64"]))
    return [video_path, thumbnail_path]


def print_log(entries: List[dict]) -> None:
    for entry in entries:
        print(f"  {entry['timestamp']}  [{entry['step']:<10}] {entry['message']}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    result = asyncio.run(create_short(payload_from_args(args)))

    print("\n📋 Pipeline log:")
    print_log(result.get("logs", []))

    if not result["success"]:
        print(f"\n❌ {result['error']}")
        return 1

    video_path, thumbnail_path = save_outputs(result, args.output_dir)
    print(f"\n✅ Video ({result['totalDuration']:.1f}s): {video_path}")
    print(f"🖼️  Thumbnail: {thumbnail_path}")
    if result["youtubeUrl"]:
        print(f"🎉 YouTube: {result['youtubeUrl']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
