"""
Redis 클라이언트 - Fallback 지원

REDIS_URL 미설정 또는 연결 실패 시 None 반환.
호출부에서 None 체크 후 락 없이 진행 (SQS 재전달 + DB 상태 머신 멱등성으로 충분).
"""

from __future__ import annotations

import logging
from typing import Optional

import redis

logger = logging.getLogger(__name__)


def build_redis_client(url: Optional[str]) -> Optional[redis.Redis]:
    """
    Redis 클라이언트 생성.
    url이 비어 있거나 ping 실패 시 None.
    """
    if not url:
        logger.debug("REDIS_URL not set, Redis disabled")
        return None

    try:
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        client.ping()
    except redis.RedisError as e:
        logger.warning("Redis connection failed (locking disabled): %s", e)
        return None

    logger.info("Redis connected: %s", url.split("@")[-1])
    return client
