"""
Media Queue Port (인터페이스)

SQS 수신/삭제만. DB 상태는 IMediaAssetRepository가 담당.
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class IMediaQueue(ABC):
    """업로드 알림 큐 추상 인터페이스 (receive/delete만)"""

    @abstractmethod
    def receive_messages(self, max_messages: int = 10, wait_time_seconds: int = 20) -> list[dict]:
        pass

    @abstractmethod
    def delete_message(self, receipt_handle: str) -> bool:
        pass
