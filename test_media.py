#!/usr/bin/env python3
from __future__ import annotations

from io import BytesIO
from types import SimpleNamespace

import pytest
from PIL import Image

from conftest import make_webp
from media import SourceImage, normalize_image, normalize_images, source_images_from_uploads


def test_normalize_images_payload_and_size(png_bytes) -> None:
    data = png_bytes(320, 180)
    [img] = normalize_images([SourceImage("a.png", "image/png", data)])

    assert img is not None
    assert img.encoded_payload.startswith("data:image/png;base64,")
    assert (img.width, img.height) == (320, 180)
    assert img.mime_type == "image/png"
    assert img.to_bytes() == data


def test_failed_file_keeps_its_index(png_bytes) -> None:
    sources = [
        SourceImage("ok1.png", "image/png", png_bytes(10, 20)),
        SourceImage("broken.png", "image/png", b"definitely not an image"),
        SourceImage("ok2.png", "image/png", png_bytes(30, 40)),
    ]
    out = normalize_images(sources)

    assert len(out) == 3
    assert out[1] is None
    assert (out[0].width, out[0].height) == (10, 20)
    assert (out[2].width, out[2].height) == (30, 40)


def test_no_files_gives_empty_list() -> None:
    assert normalize_images([]) == []


def test_normalize_image_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        normalize_image(b"\x00\x01\x02")


def test_webp_is_reencoded_as_png() -> None:
    [img] = normalize_images([SourceImage("photo.webp", "image/webp", make_webp(200, 120))])

    assert img.mime_type == "image/png"
    assert (img.width, img.height) == (200, 120)
    with Image.open(BytesIO(img.to_bytes())) as im:
        assert im.format == "PNG"
        assert im.size == (200, 120)


def test_animated_gif_keeps_first_frame() -> None:
    frames = [Image.new("P", (30, 20), i) for i in (1, 2)]
    out = BytesIO()
    frames[0].save(out, format="GIF", save_all=True, append_images=frames[1:])

    img = normalize_image(out.getvalue())

    assert img.mime_type == "image/png"
    assert (img.width, img.height) == (30, 20)


def test_source_images_from_uploads_guesses_missing_type(png_bytes) -> None:
    data = png_bytes()
    uploads = [
        SimpleNamespace(name="photo.jpg", type="", getvalue=lambda: data),
        SimpleNamespace(name="chart.png", type="image/png", getvalue=lambda: data),
    ]
    sources = source_images_from_uploads(uploads)

    assert [s.mime_type for s in sources] == ["image/jpeg", "image/png"]
    assert sources[1].data == data
    assert source_images_from_uploads(None) == []
