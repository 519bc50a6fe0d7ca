#!/usr/bin/env python3
"""
Pack a photo and a disparity map into a Deepends sample (MPO container).

Usage:
    python scripts/pack_depth_sample.py PHOTO DISPARITY OUTPUT [--orientation 6]

The disparity map is any grayscale image (brighter = closer). It is
stored as the secondary frame; the EXIF orientation goes on the photo.
"""

from __future__ import annotations

import argparse
import sys

import numpy as np
from PIL import Image
from loguru import logger

from deepends.core.orientation import Orientation
from deepends.depth.sample_loader import write_depth_sample


def main() -> int:
    parser = argparse.ArgumentParser(description="Pack a Deepends depth sample")
    parser.add_argument("photo", help="RGB photo (any format Pillow reads)")
    parser.add_argument("disparity", help="Grayscale disparity map")
    parser.add_argument("output", help="Output .jpg/.mpo path")
    parser.add_argument(
        "--orientation",
        type=int,
        default=1,
        choices=[o.exif_value for o in Orientation],
        help="EXIF orientation to record (default: 1, upright)",
    )
    parser.add_argument("--quality", type=int, default=95, help="JPEG quality")
    args = parser.parse_args()

    try:
        with Image.open(args.photo) as photo:
            image = np.asarray(photo.convert("RGB"))
        with Image.open(args.disparity) as depth:
            disparity = np.asarray(depth.convert("L"))
    except OSError as e:
        logger.error(f"Cannot read input: {e}")
        return 1

    path = write_depth_sample(
        args.output,
        image,
        disparity,
        orientation=Orientation(args.orientation),
        quality=args.quality,
    )
    logger.info(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
