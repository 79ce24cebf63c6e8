import numpy as np
import pytest

from identicon_avatar import AvatarSpec, create, derive_digest, mix_color
from identicon_codec import decode_image, encode_jpeg, encode_png, save_to_file, to_array
from identicon_reader import (
    cell_means,
    format_palette,
    main,
    read_palette,
    read_palette_file,
)


def expected_palette(text):
    return mix_color(derive_digest(text)[3:])


@pytest.mark.parametrize("text, size, padding", [
    ("sometext", 25, 0),
    ("sometext", 320, 10),
    ("alice", 52, 3),
    ("", 50, 10),
])
def test_read_rendered_palette(text, size, padding):
    pixels = to_array(create(AvatarSpec(text, size=size, padding=padding)))
    assert read_palette(pixels, padding=padding) == expected_palette(text)


def test_read_png_file(tmp_path):
    path = tmp_path / "sometext.png"
    save_to_file(str(path), encode_png(create(AvatarSpec("sometext", size=100))))
    assert read_palette_file(str(path)) == expected_palette("sometext")


def test_read_jpeg():
    data = encode_jpeg(create(AvatarSpec("sometext", size=100)), quality=95)
    assert read_palette(decode_image(data)) == expected_palette("sometext")


def test_read_custom_background():
    bg = (0, 0, 0, 255)
    img = create(AvatarSpec("sometext", size=40, padding=0, background=bg, foreground=(255, 255, 255, 255)))
    assert read_palette(to_array(img), padding=0, background=bg) == expected_palette("sometext")


def test_cell_means_shape():
    pixels = to_array(create(AvatarSpec("sometext", size=25, padding=0)))
    means = cell_means(pixels, 0)
    assert means.shape == (5, 5, 4)
    assert tuple(means[0, 0]) == (0xD2, 0x2A, 0x15, 0xFF)


def test_rejects_non_square():
    with pytest.raises(ValueError):
        read_palette(np.zeros((10, 12, 4), dtype=np.uint8), padding=0)


def test_rejects_tiny_image():
    with pytest.raises(ValueError):
        read_palette(np.zeros((4, 4, 4), dtype=np.uint8), padding=0)


def test_read_missing_file(tmp_path):
    with pytest.raises(ValueError):
        read_palette_file(str(tmp_path / "missing.png"))


def test_format_palette():
    T, F = True, False
    palette = ((T, F, T, F, T),) * 5
    assert format_palette(palette) == "\n".join(["1 0 1 0 1"] * 5)


def test_main(tmp_path, capsys):
    path = tmp_path / "sometext.png"
    save_to_file(str(path), encode_png(create(AvatarSpec("sometext", size=60, padding=0))))

    assert main([str(path), "-p", "0"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines() == [
        "1 1 0 1 1",
        "0 0 0 0 0",
        "0 0 1 0 0",
        "1 1 1 1 1",
        "0 1 1 1 0",
    ]


def test_main_unreadable(tmp_path, capsys):
    assert main([str(tmp_path / "missing.png")]) == 1
    assert "REJECT" in capsys.readouterr().out
