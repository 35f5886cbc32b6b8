# PATH: src/infrastructure/media/image.py
# 단일 패스 이미지 변환 (아바타 / 코스 썸네일) (Pillow)

from __future__ import annotations

import io
from typing import Dict, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from src.application.media.exceptions import MediaProcessingError

# 정사각 center-crop (px)
AVATAR_SIZES: Dict[str, int] = {
    "small": 64,
    "medium": 128,
    "large": 256,
}
AVATAR_FORMAT = "WEBP"
AVATAR_EXTENSION = "webp"

THUMBNAIL_MAX_SIZE: Tuple[int, int] = (1280, 720)
THUMBNAIL_FORMAT = "JPEG"
THUMBNAIL_EXTENSION = "jpg"

IMAGE_QUALITY = 85


class ImageProcessingError(MediaProcessingError):
    pass


def _open(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"unreadable image: {e}") from e
    # 휴대폰 사진 EXIF 회전 반영
    img = ImageOps.exif_transpose(img)
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
    return img


def _encode(img: Image.Image, fmt: str) -> bytes:
    if fmt == "JPEG" and img.mode != "RGB":
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format=fmt, quality=IMAGE_QUALITY)
    return buf.getvalue()


def resize_avatar(data: bytes) -> Dict[str, bytes]:
    """small / medium / large 정사각 아바타 (WEBP)"""
    img = _open(data)
    return {
        name: _encode(ImageOps.fit(img, (size, size), method=Image.Resampling.LANCZOS), AVATAR_FORMAT)
        for name, size in AVATAR_SIZES.items()
    }


def resize_thumbnail(data: bytes) -> bytes:
    """비율 유지, THUMBNAIL_MAX_SIZE 안으로 축소 (확대 없음)"""
    img = _open(data)
    img.thumbnail(THUMBNAIL_MAX_SIZE, Image.Resampling.LANCZOS)
    return _encode(img, THUMBNAIL_FORMAT)
