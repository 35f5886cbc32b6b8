from __future__ import annotations

import os
import sys
from dataclasses import dataclass


def _require(name: str) -> str:
    v = os.environ.get(name)
    if not v:
        raise RuntimeError(f"Missing required env: {name}")
    return v


def _float(name: str, default: str) -> float:
    try:
        return float(os.environ.get(name, default))
    except Exception:
        return float(default)


def _int(name: str, default: str) -> int:
    try:
        return int(os.environ.get(name, default))
    except Exception:
        return int(default)


def _bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    # SQS
    MEDIA_SQS_QUEUE_NAME: str
    SQS_WAIT_TIME_SECONDS: int
    SQS_MAX_MESSAGES: int
    POLL_INTERVAL_SECONDS: float

    # AWS / S3
    AWS_REGION: str
    AWS_PROCESSED_MEDIA_BUCKET: str
    PUBLIC_MEDIA_BASE_URL: str
    S3_ENDPOINT_URL: str
    UPLOAD_MAX_CONCURRENCY: int

    # Temp
    TEMP_DIR: str

    # ffmpeg / ffprobe
    FFMPEG_BIN: str
    FFPROBE_BIN: str
    FFMPEG_TIMEOUT_SECONDS: int
    FFPROBE_TIMEOUT_SECONDS: int

    # HLS
    HLS_TIME_SECONDS: int
    HLS_KEYFRAME_INTERVAL: int

    # Events (AMQP topic exchange)
    EVENTS_BROKER_URL: str
    EVENTS_EXCHANGE: str

    # Locking (Idempotency, optional)
    MEDIA_LOCK_ENABLED: bool
    MEDIA_LOCK_TTL_SECONDS: int
    REDIS_URL: str


def load_config() -> Config:
    try:
        return Config(
            MEDIA_SQS_QUEUE_NAME=_require("MEDIA_SQS_QUEUE_NAME"),
            SQS_WAIT_TIME_SECONDS=_int("SQS_WAIT_TIME_SECONDS", "20"),
            SQS_MAX_MESSAGES=_int("SQS_MAX_MESSAGES", "10"),
            POLL_INTERVAL_SECONDS=_float("POLL_INTERVAL_SECONDS", "1.0"),

            AWS_REGION=_require("AWS_REGION"),
            AWS_PROCESSED_MEDIA_BUCKET=_require("AWS_PROCESSED_MEDIA_BUCKET"),
            PUBLIC_MEDIA_BASE_URL=os.environ.get("PUBLIC_MEDIA_BASE_URL", "").rstrip("/"),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL", ""),
            UPLOAD_MAX_CONCURRENCY=_int("UPLOAD_MAX_CONCURRENCY", "8"),

            # 빈 값이면 OS temp root
            TEMP_DIR=os.environ.get("MEDIA_WORKER_TEMP_DIR", ""),

            FFMPEG_BIN=os.environ.get("FFMPEG_BIN", "ffmpeg"),
            FFPROBE_BIN=os.environ.get("FFPROBE_BIN", "ffprobe"),
            FFMPEG_TIMEOUT_SECONDS=_int("FFMPEG_TIMEOUT_SECONDS", "3600"),  # 1h default
            FFPROBE_TIMEOUT_SECONDS=_int("FFPROBE_TIMEOUT_SECONDS", "60"),

            HLS_TIME_SECONDS=_int("HLS_TIME_SECONDS", "10"),
            HLS_KEYFRAME_INTERVAL=_int("HLS_KEYFRAME_INTERVAL", "25"),

            EVENTS_BROKER_URL=_require("EVENTS_BROKER_URL"),
            EVENTS_EXCHANGE=os.environ.get("EVENTS_EXCHANGE", "platform.events"),

            MEDIA_LOCK_ENABLED=_bool("MEDIA_LOCK_ENABLED", "false"),
            MEDIA_LOCK_TTL_SECONDS=_int("MEDIA_LOCK_TTL_SECONDS", "14400"),  # 4h
            REDIS_URL=os.environ.get("REDIS_URL", ""),
        )
    except Exception as e:
        print(f"[fatal] config error: {e}", file=sys.stderr)
        sys.exit(1)
