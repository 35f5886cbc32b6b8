"""
처리 1회 단위 값 객체 (영속화하지 않음)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class ProcessorContext:
    """파싱된 (bucket, key) + 객체 태그. Processor 가 받는 유일한 입력."""
    bucket: str
    key: str
    metadata: dict[str, str] = field(default_factory=dict)
    event_name: str = ""
    size: Optional[int] = None


@dataclass
class ProcessOutcome:
    processed_urls: dict[str, str]
    event_data: dict[str, Any]


@dataclass
class ParseResult:
    """
    큐 메시지 파싱 결과.
    ok=False 는 영구 실패 (재시도해도 결과 동일 → 메시지 삭제).
    """
    contexts: list[ProcessorContext] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, reason: str) -> "ParseResult":
        return cls(contexts=[], error=reason)
