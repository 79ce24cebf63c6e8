# identicon_cli.py
#
# ============================================================
# Command line identicon generator
# ============================================================
#
#   identicon [options] <text>
#
# Renders the identicon of <text> and writes it as PNG (default) or JPEG,
# or prints it as a base64 data URI with --base64.
#
# Exit status:
#   0 : image written (prints "done")
#   1 : empty text, invalid size, encoding or file error
#   2 : bad command line (argparse), including malformed colors
#
# ============================================================

from __future__ import annotations

import argparse
import logging
import os
import re
import sys
import time
from typing import Optional

from identicon_avatar import AvatarSpec, Color, InvalidSizeError, create
from identicon_codec import (
    DEFAULT_JPEG_QUALITY,
    EncodingError,
    data_uri,
    encode_jpeg,
    encode_png,
    save_to_file,
)


__version__ = "1.0.0"

log = logging.getLogger(__name__)

EXTENSIONS = {"png": ".png", "jpeg": ".jpg"}
MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg"}

_HEX6 = re.compile(r"[0-9a-fA-F]{6}")
_UNSAFE_NAME_CHARS = re.compile(r"[\s/\\]")


class ColorParseError(ValueError):
    """Raised for a color that is not exactly six hex digits."""


def parse_color(text: str) -> Optional[Color]:
    """
    Parse "RRGGBB" into an opaque RGBA color.

    An empty string means "not set" and returns None.
    """
    if text == "":
        return None
    if len(text) != 6:
        raise ColorParseError(f"color must have 6 digits, got {text!r}")
    if not _HEX6.fullmatch(text):
        raise ColorParseError(f"color must be hexadecimal, got {text!r}")
    r, g, b = (int(text[i:i + 2], 16) for i in range(0, 6, 2))
    return (r, g, b, 0xFF)


def color_arg(text: str) -> Optional[Color]:
    """argparse `type=` adapter for parse_color."""
    try:
        return parse_color(text)
    except ColorParseError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def default_filename(text: str, fmt: str = "png") -> str:
    """Text with whitespace and path separators replaced by '_', plus extension."""
    return _UNSAFE_NAME_CHARS.sub("_", text) + EXTENSIONS[fmt]


def setup_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        '[{asctime}] [{levelname}] {name}: {message}', style='{')
    formatter.datefmt = '%Y-%m-%d %H:%M:%S'
    formatter.converter = time.gmtime
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="identicon",
        description="Generate a 5x5 block identicon from text.",
    )
    parser.add_argument("text", type=str, help="Case-insensitive text, e.g. a username or email.")
    parser.add_argument("-v", "--version", action="version", version=f"version {__version__}")
    parser.add_argument("-s", "--size", type=int, default=320,
                        help="Non-zero positive image size in pixels. Default=320.")
    parser.add_argument("-p", "--padding", type=int, default=10,
                        help="Image padding in percent (0-10). Default=10.")
    parser.add_argument("-b", "--background", type=color_arg, default=None,
                        help="Image background color (ffffff). Default=ededed.")
    parser.add_argument("-c", "--color", type=color_arg, default=None,
                        help="Avatar color (ffffff). Default: derived from the text.")
    parser.add_argument("-n", "--name", type=str, default="",
                        help="Image file name. Default: the text with spaces replaced by '_'.")
    parser.add_argument("-d", "--dir", type=str, default="",
                        help="Existing directory to write the image to.")
    parser.add_argument("-f", "--format", type=str, default="png", choices=sorted(EXTENSIONS),
                        help="Output format. Default=png.")
    parser.add_argument("-q", "--quality", type=int, default=DEFAULT_JPEG_QUALITY,
                        help=f"JPEG quality (1-100). Default={DEFAULT_JPEG_QUALITY}.")
    parser.add_argument("--base64", action="store_true",
                        help="Print a base64 data URI instead of writing a file.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.text == "":
        print("text is required. See help (-h)", file=sys.stderr)
        return 1

    spec = AvatarSpec(
        text=args.text,
        size=args.size,
        padding=args.padding,
        background=args.background,
        foreground=args.color,
    )

    try:
        image = create(spec)
        if args.format == "jpeg":
            data = encode_jpeg(image, quality=args.quality)
        else:
            data = encode_png(image)

        if args.base64:
            print(data_uri(data, MIME_TYPES[args.format]))
            return 0

        filename = args.name or default_filename(args.text, args.format)
        path = os.path.join(args.dir, filename) if args.dir else filename
        save_to_file(path, data)
    except (InvalidSizeError, EncodingError, OSError) as e:
        log.debug("identicon generation failed", exc_info=True)
        print(e, file=sys.stderr)
        return 1

    log.info("identicon for %r written to %s", args.text, path)
    print("done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
