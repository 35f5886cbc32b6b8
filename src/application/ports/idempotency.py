"""
Idempotency Port (인터페이스)

저장 키 단위 중복 처리 방지 (선택 기능).
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class IIdempotency(ABC):
    @abstractmethod
    def acquire_lock(self, job_id: str) -> bool:
        pass

    @abstractmethod
    def release_lock(self, job_id: str) -> None:
        pass


class NoopIdempotency(IIdempotency):
    """락 비활성화 시 사용 (항상 획득 성공)"""

    def acquire_lock(self, job_id: str) -> bool:
        return True

    def release_lock(self, job_id: str) -> None:
        return None
