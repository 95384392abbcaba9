from __future__ import annotations

import io
import logging
import os
import random
import time
from pathlib import Path

import httpx
from PIL import Image, UnidentifiedImageError

from bistro.config import settings
from bistro.constants import IMAGE_TYPES

logger = logging.getLogger(__name__)


def _unique_name(prefix: str, ext: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


def image_url(filename: str) -> str:
    return f"{settings.server_url}/uploads/{filename}"


def _downscale(data: bytes) -> bytes:
    """Shrink to settings.image_max_width keeping the aspect ratio. GIFs pass through."""
    try:
        with Image.open(io.BytesIO(data)) as im:
            fmt = im.format
            if fmt == "GIF" or im.width <= settings.image_max_width:
                im.verify()
                return data
            height = max(1, round(im.height * settings.image_max_width / im.width))
            resized = im.resize((settings.image_max_width, height), Image.LANCZOS)
            out = io.BytesIO()
            resized.save(out, format=fmt)
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Invalid image file: {e}") from e

    logger.info("image resized to width=%s", settings.image_max_width)
    return out.getvalue()


def _write(filename: str, data: bytes) -> str:
    os.makedirs(settings.uploads_dir, exist_ok=True)
    path = Path(settings.uploads_dir) / filename
    path.write_bytes(data)
    return image_url(filename)


def store_upload(data: bytes, content_type: str, prefix: str = "product") -> str:
    """
    Validate an uploaded image, downscale it and write it to the uploads dir.
    Returns the public URL. Raises ValueError on a bad type or size.
    """
    ext = IMAGE_TYPES.get((content_type or "").lower())
    if ext is None:
        raise ValueError("Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed.")
    if len(data) > settings.upload_max_bytes:
        raise ValueError(f"File too large. Maximum size is {settings.upload_max_bytes // (1024 * 1024)}MB.")
    if not data:
        raise ValueError("Empty file")

    return _write(_unique_name(prefix, ext), _downscale(data))


def store_generated(data: bytes) -> str:
    return _write(_unique_name("ai-dish", ".png"), data)


def download_image(url: str, timeout: float = 30.0) -> str:
    """Fetch a remote (AI generated) image into the uploads dir."""
    try:
        r = httpx.get(url, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as e:
        raise ValueError(f"Failed to download image: {e}") from e
    if r.status_code != 200:
        raise ValueError(f"Failed to download image: {r.status_code}")
    return store_generated(r.content)
