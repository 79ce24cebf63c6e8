# identicon_avatar.py
#
# ============================================================
# Identicon core: text -> SHA-1 digest -> 5x5 palette -> RGBA image
# ============================================================
#
# INPUT : an AvatarSpec (text, size, padding, optional colors)
# OUTPUT: a size x size Pillow RGBA image
#
# ---------------------------
# Digest usage (20 bytes)
# ---------------------------
#   bytes 0..2   : foreground RGB (alpha fixed to 0xff)
#   bytes 3..17  : palette recipe, 3 bytes per row, 5 rows (15 bytes)
#   bytes 18..19 : unused
#
# A recipe byte turns its cell ON when it is even. Only columns 0..2 are
# read; column j is mirrored onto column 4 - j, so every palette is
# horizontally symmetric. Column 2 mirrors onto itself.
#
# ---------------------------
# Geometry
# ---------------------------
#   padding_px = clamp(padding, 0, 10) * size // 100
#   rem        = (size - 2 * padding_px) % 5
#   min        = padding_px + rem // 2
#   max        = size - min
#   block      = (max - min) // 5
#
# Blocks are laid out from (min, min). Any remainder of (max - min) / 5 is
# left as margin on the max edge.
#
# ============================================================
# Dependencies
# ============================================================
# - Python 3.8+
# - Pillow (PIL): pip install pillow
#
# ============================================================

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from PIL import Image, ImageDraw


log = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]
Palette = Tuple[Tuple[bool, ...], ...]

GRID_SIZE = 5
DIGEST_SIZE = 20
COLUMNS_PER_ROW = GRID_SIZE // 2 + 1   # 3: left half plus the center column
COLOR_BYTES = 3
RECIPE_SIZE = GRID_SIZE * COLUMNS_PER_ROW   # 15

MIN_PADDING = 0
MAX_PADDING = 10

DEFAULT_BACKGROUND: Color = (0xED, 0xED, 0xED, 0xFF)


class InvalidSizeError(ValueError):
    """Raised when an avatar is requested with a non-positive size."""


@dataclass
class AvatarSpec:
    """
    Properties of one identicon.

    text:
      Case-insensitive source text (username, email, ...).

    size:
      Side length of the square image in pixels. Must be >= 1.

    padding:
      Percentage of size kept empty around the pattern. Values outside
      0..10 are clipped, never rejected.

    background / foreground:
      RGBA colors. None means "not set": the background falls back to
      DEFAULT_BACKGROUND and the foreground is derived from the digest.
    """
    text: str
    size: int = 320
    padding: int = 10
    background: Optional[Color] = None
    foreground: Optional[Color] = None


# ============================================================
# Digest
# ============================================================

def derive_digest(text: str) -> bytes:
    """SHA-1 of the lower-cased UTF-8 text (no other normalization)."""
    return hashlib.sha1(text.lower().encode("utf-8")).digest()


# ============================================================
# Palette
# ============================================================

def mix_color(recipe: bytes) -> Palette:
    """
    Build the symmetric 5x5 boolean palette from recipe bytes.

    recipe is consumed row-major, COLUMNS_PER_ROW bytes per row:
      cell (row, col) = recipe[row * 3 + col] is even, for col in 0..2
      cell (row, 4 - col) = cell (row, col)

    Extra bytes past the first RECIPE_SIZE are ignored.
    """
    if len(recipe) < RECIPE_SIZE:
        raise ValueError(f"mix_color expects at least {RECIPE_SIZE} recipe bytes, got {len(recipe)}")

    rows = []
    z = 0
    for _ in range(GRID_SIZE):
        row = [False] * GRID_SIZE
        for j in range(COLUMNS_PER_ROW):
            row[j] = recipe[z] % 2 == 0
            # mirror
            row[GRID_SIZE - 1 - j] = row[j]
            z += 1
        rows.append(tuple(row))
    return tuple(rows)


def is_symmetric(palette: Palette) -> bool:
    return all(
        row[col] == row[GRID_SIZE - 1 - col]
        for row in palette
        for col in range(GRID_SIZE)
    )


# ============================================================
# Colors and geometry
# ============================================================

def derive_foreground(digest: bytes) -> Color:
    r, g, b = digest[:COLOR_BYTES]
    return (r, g, b, 0xFF)


def resolve_colors(spec: AvatarSpec, digest: bytes) -> Tuple[Color, Color]:
    """Return (background, foreground); explicit colors always win."""
    background = spec.background if spec.background is not None else DEFAULT_BACKGROUND
    foreground = spec.foreground if spec.foreground is not None else derive_foreground(digest)
    return background, foreground


def clamp_padding(padding: int) -> int:
    return max(MIN_PADDING, min(MAX_PADDING, padding))


def padding_pixels(size: int, padding: int) -> int:
    """Convert a padding percentage into pixels (after clipping to 0..10)."""
    return clamp_padding(padding) * size // 100


def align_center(size: int, padding_px: int) -> Tuple[int, int]:
    """
    Find the drawable square, returned as (min, max) for both axes.

    The remainder of (size - 2 * padding_px) modulo GRID_SIZE is split
    evenly on both sides so the pattern stays centered.
    """
    rem = (size - 2 * padding_px) % GRID_SIZE
    lo = padding_px + rem // 2
    hi = size - lo
    return lo, hi


def block_rects(palette: Palette, size: int, padding_px: int) -> Iterator[Tuple[int, int, int, int]]:
    """
    Yield (x0, y0, x1, y1) for every ON cell, row-major.

    Rectangles are half-open: x0 <= x < x1, y0 <= y < y1.
    Nothing is yielded when the drawable square is narrower than GRID_SIZE.
    """
    lo, hi = align_center(size, padding_px)
    block = (hi - lo) // GRID_SIZE
    if block < 1:
        return

    y = lo
    for row in palette:
        x = lo
        for cell in row:
            if cell:
                yield (x, y, x + block, y + block)
            x += block
        y += block


# ============================================================
# Rendering
# ============================================================

def create(spec: AvatarSpec) -> Image.Image:
    """
    Render the identicon described by spec.

    Steps:
      1) Validate size (fail fast, nothing allocated)
      2) Digest the lower-cased text
      3) Resolve colors, build the palette
      4) Fill the canvas with the background, then draw each ON block

    Raises:
      InvalidSizeError: spec.size < 1
    """
    if spec.size < 1:
        raise InvalidSizeError(f"invalid avatar size: {spec.size} (must be >= 1)")

    padding_px = padding_pixels(spec.size, spec.padding)
    if clamp_padding(spec.padding) != spec.padding:
        log.debug("padding %d clipped to %d", spec.padding, clamp_padding(spec.padding))

    digest = derive_digest(spec.text)
    background, foreground = resolve_colors(spec, digest)
    palette = mix_color(digest[COLOR_BYTES:])
    log.debug("digest=%s background=%s foreground=%s", digest.hex(), background, foreground)

    img = Image.new("RGBA", (spec.size, spec.size), color=background)
    draw = ImageDraw.Draw(img)
    for x0, y0, x1, y1 in block_rects(palette, spec.size, padding_px):
        # ImageDraw rectangles include their end coordinates
        draw.rectangle((x0, y0, x1 - 1, y1 - 1), fill=foreground)

    log.debug("rendered %dx%d avatar with padding %dpx", spec.size, spec.size, padding_px)
    return img
