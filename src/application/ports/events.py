"""
Event Publisher Port (인터페이스)

토픽 익스체인지 1개, routing key = topic.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IEventPublisher(ABC):
    @abstractmethod
    def publish(self, topic: str, data: dict[str, Any]) -> None:
        """이벤트 발행. 실패 시 예외 (호출부에서 best-effort 처리)."""
        pass
