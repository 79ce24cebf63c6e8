# identicon_codec.py
#
# ============================================================
# Identicon image encoding / decoding / file output
# ============================================================
#
# Wraps the RGBA image produced by identicon_avatar.create():
#   - PNG  (lossless, best compression)  : the default output
#   - JPEG (lossy, no alpha)             : optional convenience
#   - base64 text / data URI             : for inline HTML <img> tags
#
# decode_image() goes the other way with OpenCV and always returns an
# RGBA uint8 array, so a PNG round trip can be compared pixel by pixel
# with to_array(image).
#
# ============================================================
# Dependencies
# ============================================================
# pip install pillow numpy opencv-python
#
# ============================================================

from __future__ import annotations

import base64
import io
import logging
import os
import stat

import cv2
import numpy as np
from PIL import Image


log = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 75

# rw-r--r--
FILE_MODE = stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP | stat.S_IROTH


class EncodingError(Exception):
    """Raised when an image cannot be encoded or decoded."""


# ============================================================
# Encoders
# ============================================================

def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    try:
        image.save(buf, format="PNG", optimize=True, compress_level=9)
    except (OSError, ValueError) as e:
        raise EncodingError(f"PNG encoding failed: {e}") from e
    data = buf.getvalue()
    log.debug("encoded %dx%d PNG (%d bytes)", image.width, image.height, len(data))
    return data


def encode_jpeg(image: Image.Image, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """
    Encode as JPEG at the given quality (1..100).

    JPEG carries no alpha channel, so the image is converted to RGB first.
    """
    if not (1 <= quality <= 100):
        raise EncodingError(f"JPEG quality must be within 1..100, got {quality}")

    buf = io.BytesIO()
    try:
        image.convert("RGB").save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError) as e:
        raise EncodingError(f"JPEG encoding failed: {e}") from e
    data = buf.getvalue()
    log.debug("encoded %dx%d JPEG q=%d (%d bytes)", image.width, image.height, quality, len(data))
    return data


def encode_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def data_uri(data: bytes, mime: str = "image/png") -> str:
    """Format encoded image bytes for an HTML <img src=...> attribute."""
    return f"data:{mime};base64,{encode_base64(data)}"


# ============================================================
# Decoding
# ============================================================

def to_array(image: Image.Image) -> np.ndarray:
    """Pixels of a Pillow image as an H x W x 4 RGBA uint8 array."""
    return np.asarray(image.convert("RGBA"), dtype=np.uint8)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode PNG/JPEG bytes into an H x W x 4 RGBA uint8 array.

    OpenCV returns BGR(A) or grayscale depending on the source; all of
    them are normalized to RGBA (opaque alpha when the source has none).
    """
    buf = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise EncodingError("cannot decode image data")
    return as_rgba(img)


def as_rgba(img: np.ndarray) -> np.ndarray:
    """Convert an OpenCV BGR, BGRA or grayscale array to RGBA."""
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)


# ============================================================
# File output
# ============================================================

def save_to_file(path: str, data: bytes) -> None:
    """Write encoded bytes to path with rw-r--r-- permissions."""
    with open(path, "wb") as f:
        f.write(data)
    try:
        os.chmod(path, FILE_MODE)
    except OSError:
        # os.chmod may be a no-op on Windows
        log.debug("could not set permissions on %s", path)
    log.info("wrote %s (%d bytes)", path, len(data))
