"""Product photo preparation: shrink, re-encode as JPEG, inline as a data URL."""

from __future__ import annotations

import base64
import binascii
import io
import os
import re
from typing import BinaryIO, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import ImageCompressionError, ImageTooLargeError
from .logging import get_logger

LOG = get_logger("imaging")

MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_MAX_DIMENSION = 800
DEFAULT_QUALITY = 0.8

ImageSource = Union[bytes, bytearray, str, "os.PathLike[str]", BinaryIO]

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def _read_source(source: ImageSource) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as f:
            return f.read()
    return source.read()


def ensure_upload_size(source: ImageSource, limit: int = MAX_UPLOAD_BYTES) -> bytes:
    """Return the source bytes, raising ImageTooLargeError above `limit`."""
    if isinstance(source, (str, os.PathLike)):
        size = os.path.getsize(source)
        if size > limit:
            raise ImageTooLargeError(size, limit)
    data = _read_source(source)
    if len(data) > limit:
        raise ImageTooLargeError(len(data), limit)
    return data


def _flatten_to_rgb(im: Image.Image) -> Image.Image:
    # JPEG has no alpha channel; composite transparent pixels onto white.
    if im.mode in ("RGBA", "LA") or (im.mode == "P" and "transparency" in im.info):
        rgba = im.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if im.mode not in ("RGB", "L"):
        return im.convert("RGB")
    return im


def scaled_size(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """Fit (width, height) inside a max_dimension square; never upscale."""
    scale = min(max_dimension / width, max_dimension / height, 1.0)
    return max(1, int(width * scale)), max(1, int(height * scale))


def compress_image(
    source: ImageSource,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: float = DEFAULT_QUALITY,
) -> str:
    """Decode an image, shrink it to fit `max_dimension`, and return a JPEG data URL.

    `quality` is in (0, 1] and maps to the JPEG quality scale 1-100. Raises
    ImageCompressionError if the source cannot be decoded or encoding yields
    no bytes.
    """
    if not 0 < quality <= 1:
        raise ValueError(f"quality must be in (0, 1], got {quality!r}")
    if max_dimension <= 0:
        raise ValueError(f"max_dimension must be positive, got {max_dimension!r}")

    data = _read_source(source)
    try:
        with Image.open(io.BytesIO(data)) as opened:
            opened.load()
            im = ImageOps.exif_transpose(opened)
    except (UnidentifiedImageError, OSError) as exc:
        LOG.error("Image decode failed: %s", exc)
        raise ImageCompressionError("Could not decode image") from exc

    width, height = im.size
    target = scaled_size(width, height, max_dimension)
    if target != (width, height):
        im = im.resize(target, Image.Resampling.LANCZOS)
    im = _flatten_to_rgb(im)

    buf = io.BytesIO()
    im.save(buf, format="JPEG", quality=max(1, round(quality * 100)), optimize=True)
    encoded = buf.getvalue()
    if not encoded:
        raise ImageCompressionError("Failed to compress image")

    LOG.debug(
        "Compressed image %sx%s (%s bytes) -> %sx%s (%s bytes)",
        width, height, len(data), target[0], target[1], len(encoded),
    )
    return "data:image/jpeg;base64," + base64.b64encode(encoded).decode("ascii")


def decode_data_url(url: str) -> Tuple[str, bytes]:
    """Split a base64 data URL into (mime type, raw bytes)."""
    match = _DATA_URL_RE.match(url or "")
    if not match:
        raise ValueError("Not a base64 data URL")
    try:
        return match.group("mime"), base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc
