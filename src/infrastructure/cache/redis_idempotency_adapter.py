"""
RedisIdempotencyAdapter - IIdempotency Port 구현체

저장 키(s3_key) 단위 분산 락. 같은 메시지가 두 워커에 동시에 재전달되는 경우
한쪽만 처리하고 나머지는 재전달 대기로 돌린다.
Redis 장애 시 락 없이 진행 (DB 상태 머신 멱등성으로 수렴).
"""
from __future__ import annotations

import logging
import threading
from typing import Any

from redis.exceptions import LockError, RedisError

from src.application.ports.idempotency import IIdempotency

logger = logging.getLogger(__name__)

LOG_IDEMPOTENT_SKIP = "IDEMPOTENT_SKIP job_id=%s reason=duplicate"
LOG_LOCK_ACQUIRED = "IDEMPOTENT_LOCK job_id=%s acquired"
LOG_LOCK_RELEASED = "IDEMPOTENT_LOCK job_id=%s released"

# 가장 긴 인코딩 + 업로드 시간보다 길게 (TTL 만료 후 재처리 허용)
DEFAULT_LOCK_TTL_SECONDS = 14400  # 4h


class RedisIdempotencyAdapter(IIdempotency):
    """IIdempotency 구현 (redis-py Lock, 토큰 기반 해제)"""

    def __init__(self, client: Any, ttl_seconds: int = DEFAULT_LOCK_TTL_SECONDS) -> None:
        self._client = client
        self._ttl = ttl_seconds
        self._locks: dict[str, Any] = {}
        self._guard = threading.Lock()

    @staticmethod
    def _key(job_id: str) -> str:
        return f"media:{job_id}:lock"

    def acquire_lock(self, job_id: str) -> bool:
        """
        Returns:
            True: 락 획득 성공 (또는 Redis 장애로 락 없이 진행)
            False: 다른 워커가 처리 중
        """
        lock = self._client.lock(self._key(job_id), timeout=self._ttl, blocking=False)
        try:
            acquired = lock.acquire(blocking=False)
        except RedisError as e:
            logger.warning("Redis lock acquire failed, allowing job: %s", e)
            return True

        if not acquired:
            logger.info(LOG_IDEMPOTENT_SKIP, job_id)
            return False

        with self._guard:
            self._locks[job_id] = lock
        logger.debug(LOG_LOCK_ACQUIRED, job_id)
        return True

    def release_lock(self, job_id: str) -> None:
        """작업 완료/실패 시 락 해제"""
        with self._guard:
            lock = self._locks.pop(job_id, None)
        if lock is None:
            return
        try:
            lock.release()
            logger.debug(LOG_LOCK_RELEASED, job_id)
        except (LockError, RedisError) as e:
            # TTL 만료 시 자동 해제되므로 치명적이지 않음
            logger.warning("Redis lock release failed job_id=%s: %s", job_id, e)
