from __future__ import annotations

import logging
import re
import shutil
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger("media_worker")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def invocation_dir_prefix(kind: str, owner_id: str, now: Optional[float] = None) -> str:
    """임시 디렉터리 prefix: {kind}-{owner_id}-{unix_ts}- (owner_id 는 경로 안전 문자만)"""
    safe_owner = _UNSAFE_CHARS.sub("_", str(owner_id))[:64] or "unknown"
    ts = int(now if now is not None else time.time())
    return f"{kind}-{safe_owner}-{ts}-"


@contextmanager
def temp_workdir(base_dir: Optional[str], prefix: str) -> Iterator[Path]:
    """
    호출 1회 전용 임시 디렉터리. 성공/예외 무관하게 종료 시 재귀 삭제.
    base_dir 미지정 시 OS temp root.
    """
    if base_dir:
        Path(base_dir).mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=prefix, dir=base_dir or None))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        if path.exists():
            logger.warning("Failed to cleanup temp dir: %s", path)


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def trim_tail(s: str, limit: int = 2000) -> str:
    if not s:
        return ""
    return s[-limit:] if len(s) > limit else s


def guess_content_type(name: str) -> str:
    n = name.lower()
    if n.endswith(".m3u8"):
        return "application/vnd.apple.mpegurl"
    if n.endswith(".ts"):
        return "video/MP2T"
    if n.endswith(".mp4"):
        return "video/mp4"
    if n.endswith(".jpg") or n.endswith(".jpeg"):
        return "image/jpeg"
    if n.endswith(".png"):
        return "image/png"
    if n.endswith(".webp"):
        return "image/webp"
    if n.endswith(".pdf"):
        return "application/pdf"
    if n.endswith(".csv"):
        return "text/csv"
    if n.endswith(".json"):
        return "application/json"
    return "application/octet-stream"


def cache_control_for_object(name: str) -> str:
    """
    processed 버킷 Cache-Control 전략

    - HLS playlist (.m3u8): "no-cache" (재처리 시 같은 key로 덮어씀)
    - Segment (.ts): immutable (VOD 생성 후 변경되지 않음)
    - 이미지: 7d 캐시
    """
    n = name.lower()
    if n.endswith(".m3u8"):
        return "no-cache"
    if n.endswith(".ts"):
        return "public, max-age=31536000, immutable"
    if n.endswith((".jpg", ".jpeg", ".png", ".webp")):
        return "public, max-age=604800"
    return "public, max-age=3600"
