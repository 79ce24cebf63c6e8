# identicon_reader.py
#
# ============================================================
# Identicon palette reader
#   rendered image -> per-block mean colors -> 5x5 matrix
# ============================================================
#
# OUTPUT:
#   Prints the 5x5 palette:
#     1 = block drawn in the foreground color, 0 = background
#
# The reader re-uses the renderer's geometry (identicon_avatar.align_center),
# so it must be told the padding percentage the image was created with.
# A block is ON when its mean color is farther than `tolerance` from the
# background color (mean absolute difference over R, G, B, A).
#
# Dependencies:
#   pip install opencv-python numpy
#
# ------------------------------------------------------------

from __future__ import annotations

import argparse
import logging
from typing import Optional

import cv2
import numpy as np

from identicon_avatar import (
    DEFAULT_BACKGROUND,
    GRID_SIZE,
    Color,
    Palette,
    align_center,
    padding_pixels,
)
from identicon_cli import color_arg
from identicon_codec import as_rgba


log = logging.getLogger(__name__)

# Half-width of the sampled patch relative to one block
SAMPLE_RADIUS_RATIO = 0.30

DEFAULT_TOLERANCE = 24.0


def cell_means(pixels: np.ndarray, padding_px: int) -> np.ndarray:
    """
    Mean RGBA value inside a centered patch of each block.

    pixels is a square H x W x 4 array; returns a GRID_SIZE x GRID_SIZE x 4
    float32 array.
    """
    H, W = pixels.shape[:2]
    if H != W:
        raise ValueError(f"identicon images are square, got {W}x{H}")
    size = H

    lo, hi = align_center(size, padding_px)
    block = (hi - lo) // GRID_SIZE
    if block < 1:
        raise ValueError(f"image too small to hold a {GRID_SIZE}x{GRID_SIZE} pattern: {size}px")

    inset = int(block * (0.5 - SAMPLE_RADIUS_RATIO))

    means = np.zeros((GRID_SIZE, GRID_SIZE, 4), dtype=np.float32)
    for r in range(GRID_SIZE):
        for c in range(GRID_SIZE):
            x0 = lo + c * block + inset
            y0 = lo + r * block + inset
            x1 = lo + (c + 1) * block - inset
            y1 = lo + (r + 1) * block - inset
            patch = pixels[y0:y1, x0:x1].reshape(-1, 4).astype(np.float32)
            means[r, c] = patch.mean(axis=0)

    return means


def read_palette(
    pixels: np.ndarray,
    padding: int = 10,
    background: Color = DEFAULT_BACKGROUND,
    tolerance: float = DEFAULT_TOLERANCE,
) -> Palette:
    """
    Recover the 5x5 palette from an RGBA pixel array.

    padding is the percentage the image was rendered with (clipped to 0..10
    exactly like the renderer does).
    """
    padding_px = padding_pixels(pixels.shape[0], padding)
    means = cell_means(pixels, padding_px)

    bg = np.array(background, dtype=np.float32)
    diff = np.abs(means - bg).mean(axis=2)
    on = diff > tolerance
    log.debug("cell distances from background:\n%s", np.round(diff, 1))

    return tuple(tuple(bool(v) for v in row) for row in on)


def read_palette_file(
    path: str,
    padding: int = 10,
    background: Color = DEFAULT_BACKGROUND,
    tolerance: float = DEFAULT_TOLERANCE,
) -> Palette:
    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError(f"cannot read image: {path}")
    return read_palette(as_rgba(img), padding=padding, background=background, tolerance=tolerance)


def format_palette(palette: Palette) -> str:
    return "\n".join(" ".join("1" if cell else "0" for cell in row) for row in palette)


# =========================
# CLI
# =========================
def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="identicon-read",
        description="Print the 5x5 block pattern of a rendered identicon.",
    )
    parser.add_argument("image", type=str, help="Path to the identicon image (PNG or JPEG).")
    parser.add_argument("-p", "--padding", type=int, default=10,
                        help="Padding percentage the image was created with. Default=10.")
    parser.add_argument("-b", "--background", type=color_arg, default=None,
                        help="Background color as 6 hex digits. Default=ededed.")
    parser.add_argument("--tolerance", type=float, default=DEFAULT_TOLERANCE,
                        help=f"Color distance that counts as a drawn block. Default={DEFAULT_TOLERANCE}.")
    args = parser.parse_args(argv)

    background = args.background if args.background is not None else DEFAULT_BACKGROUND
    try:
        palette = read_palette_file(
            args.image,
            padding=args.padding,
            background=background,
            tolerance=args.tolerance,
        )
    except ValueError as e:
        print("REJECT:", e)
        return 1

    print(format_palette(palette))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
