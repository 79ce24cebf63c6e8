import base64
import os
import stat

import numpy as np
import pytest
from PIL import Image

from identicon_avatar import AvatarSpec, create
from identicon_codec import (
    EncodingError,
    data_uri,
    decode_image,
    encode_base64,
    encode_jpeg,
    encode_png,
    save_to_file,
    to_array,
)


@pytest.fixture
def image():
    return create(AvatarSpec("sometext", size=64, padding=10))


def test_png_round_trip_is_lossless(image):
    data = encode_png(image)
    assert data.startswith(b"\x89PNG\r\n\x1a\n")

    decoded = decode_image(data)
    assert decoded.shape == (64, 64, 4)
    assert np.array_equal(decoded, to_array(image))


def test_png_round_trip_keeps_alpha():
    img = create(AvatarSpec("alice", size=30, padding=0,
                            background=(0, 0, 0, 0), foreground=(10, 20, 30, 128)))
    decoded = decode_image(encode_png(img))
    assert np.array_equal(decoded, to_array(img))


def test_png_reopens_with_pillow(image, tmp_path):
    path = tmp_path / "a.png"
    save_to_file(str(path), encode_png(image))
    with Image.open(path) as reopened:
        assert reopened.size == (64, 64)
        assert reopened.convert("RGBA").tobytes() == image.tobytes()


def test_jpeg(image):
    data = encode_jpeg(image, quality=90)
    assert data.startswith(b"\xff\xd8")

    decoded = decode_image(data)
    assert decoded.shape == (64, 64, 4)
    assert (decoded[..., 3] == 255).all()


@pytest.mark.parametrize("quality", [0, 101, -1])
def test_jpeg_rejects_bad_quality(image, quality):
    with pytest.raises(EncodingError):
        encode_jpeg(image, quality=quality)


def test_base64(image):
    data = encode_png(image)
    text = encode_base64(data)
    assert base64.b64decode(text) == data

    uri = data_uri(data)
    assert uri == "data:image/png;base64," + text
    assert data_uri(b"x", "image/jpeg").startswith("data:image/jpeg;base64,")


def test_decode_garbage():
    with pytest.raises(EncodingError):
        decode_image(b"not an image")


def test_save_to_file_permissions(tmp_path):
    path = tmp_path / "out.png"
    save_to_file(str(path), b"data")
    assert path.read_bytes() == b"data"
    if os.name == "posix":
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o644


def test_save_to_missing_dir(tmp_path):
    with pytest.raises(OSError):
        save_to_file(str(tmp_path / "missing" / "out.png"), b"data")
