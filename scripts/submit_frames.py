#!/usr/bin/env python3
"""
Frame Submission Script
=======================

Standalone client that plays the renderer's part against a running
render-capture service.

This script:
    1. Uploads every frame_######.png found in a local directory
    2. Requests an encode once all uploads have completed
    3. Reports the service's answer

Uploads run concurrently (bounded); the encode request is only sent after
every upload has been acknowledged, since the service does not sequence
the two itself.

Usage:
    python scripts/submit_frames.py ./rendered --codec h264 --fps 30
    python scripts/submit_frames.py ./rendered --url http://localhost:3000 --cleanup
"""

import argparse
import asyncio
import logging
import os
import sys
import time
from pathlib import Path
from typing import List

import httpx

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from render_capture.storage import is_frame_name


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def find_frames(directory: Path) -> List[Path]:
    """Frame files in ``directory``, in sequence order."""
    return sorted(p for p in directory.iterdir() if is_frame_name(p.name))


async def upload_frames(
    client: httpx.AsyncClient,
    frames: List[Path],
    concurrency: int,
) -> int:
    """
    Upload frames with bounded concurrency.

    Returns:
        Number of frames the service rejected
    """
    semaphore = asyncio.Semaphore(concurrency)
    failures = 0

    async def upload(path: Path) -> None:
        nonlocal failures
        async with semaphore:
            response = await client.post(
                "/frame",
                files={"file": (path.name, path.read_bytes(), "image/png")},
            )
        if response.status_code != 200:
            failures += 1
            logger.error(f"Upload of {path.name} failed: {response.status_code} {response.text}")

    await asyncio.gather(*(upload(path) for path in frames))
    return failures


async def run(args: argparse.Namespace) -> int:
    frames = find_frames(Path(args.directory))
    if not frames:
        logger.error(f"No frame_######.png files in {args.directory}")
        return 1

    logger.info(f"Uploading {len(frames)} frames to {args.url}")
    start_time = time.time()

    # Encodes can run for a long time; no read timeout
    timeout = httpx.Timeout(connect=10.0, read=None, write=60.0, pool=None)
    async with httpx.AsyncClient(base_url=args.url, timeout=timeout) as client:
        failures = await upload_frames(client, frames, args.concurrency)
        if failures:
            logger.error(f"{failures} uploads failed, not encoding")
            return 1

        logger.info(f"Uploaded in {time.time() - start_time:.1f}s, encoding...")
        response = await client.post(
            "/encode",
            json={
                "fps": args.fps,
                "totalFrames": len(frames),
                "cleanup": args.cleanup,
                "codec": args.codec,
                "preset": args.preset,
                "crf": args.crf,
            },
        )

    if response.status_code != 200:
        logger.error(f"Encode failed ({response.status_code}): {response.text}")
        return 1

    logger.info(f"{response.text} in {time.time() - start_time:.1f}s total")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Upload rendered frames to render-capture and encode them"
    )
    parser.add_argument("directory", help="Directory containing frame_######.png files")
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("RENDER_CAPTURE_URL", "http://127.0.0.1:3000"),
        help="Base URL of the render-capture service",
    )
    parser.add_argument("--fps", type=int, default=60, help="Frame rate (default: 60)")
    parser.add_argument(
        "--codec",
        choices=["hevc10", "h264"],
        default="hevc10",
        help="Output codec (default: hevc10)",
    )
    parser.add_argument("--preset", default="slow", help="Encoder preset (default: slow)")
    parser.add_argument("--crf", type=float, default=16, help="Quality factor (default: 16)")
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Delete frames on the service after a successful encode",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=8,
        help="Parallel uploads (default: 8)",
    )

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
