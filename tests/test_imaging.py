from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from karigar.errors import ImageCompressionError, ImageTooLargeError
from karigar.imaging import compress_image, decode_data_url, ensure_upload_size, scaled_size


def _png_bytes(size, mode="RGB", color=(180, 90, 40)) -> bytes:
    if mode == "RGB":
        im = Image.linear_gradient("L").resize(size).convert("RGB")
    else:
        im = Image.new(mode, size, color)
    buf = io.BytesIO()
    im.save(buf, format="PNG")
    return buf.getvalue()


def _decoded(url: str) -> Image.Image:
    mime, data = decode_data_url(url)
    assert mime == "image/jpeg"
    return Image.open(io.BytesIO(data))


def test_large_image_is_bounded_and_smaller() -> None:
    source = _png_bytes((4000, 3000))

    url = compress_image(source, max_dimension=800, quality=0.8)

    out = _decoded(url)
    assert max(out.size) <= 800
    assert out.size == (800, 600)

    full = io.BytesIO()
    Image.open(io.BytesIO(source)).convert("RGB").save(full, format="JPEG", quality=80)
    assert len(decode_data_url(url)[1]) < len(full.getvalue())


def test_small_image_is_never_upscaled() -> None:
    url = compress_image(_png_bytes((200, 100)), max_dimension=800)
    assert _decoded(url).size == (200, 100)


def test_portrait_scaling_uses_longer_axis() -> None:
    assert scaled_size(1200, 2400, 800) == (400, 800)


def test_transparent_png_is_flattened() -> None:
    url = compress_image(_png_bytes((300, 300), mode="RGBA", color=(0, 0, 0, 0)))
    out = _decoded(url)
    assert out.mode == "RGB"
    assert out.getpixel((150, 150))[0] > 240


def test_accepts_path_source(tmp_path: Path) -> None:
    path = tmp_path / "pot.png"
    path.write_bytes(_png_bytes((1000, 500)))
    assert _decoded(compress_image(str(path))).size == (800, 400)


def test_undecodable_input_fails() -> None:
    with pytest.raises(ImageCompressionError):
        compress_image(b"definitely not an image")


@pytest.mark.parametrize("quality", [0, -0.5, 1.5])
def test_quality_must_be_in_range(quality: float) -> None:
    with pytest.raises(ValueError):
        compress_image(_png_bytes((10, 10)), quality=quality)


def test_upload_size_guard(tmp_path: Path) -> None:
    data = b"x" * 2048
    assert ensure_upload_size(data, limit=4096) == data
    with pytest.raises(ImageTooLargeError):
        ensure_upload_size(data, limit=1024)

    path = tmp_path / "big.bin"
    path.write_bytes(data)
    with pytest.raises(ImageTooLargeError) as excinfo:
        ensure_upload_size(str(path), limit=1024)
    assert excinfo.value.size == 2048


def test_decode_data_url_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        decode_data_url("https://example.com/pot.jpg")
