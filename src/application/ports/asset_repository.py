"""
MediaAsset Repository Port (인터페이스)

DB 상태 업데이트: mark_processing, complete, fail
Processor는 이 포트를 통해서만 MediaAsset 상태를 변경.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class AssetSnapshot:
    """조회용 값 객체 (ORM 모델을 application 레이어로 노출하지 않음)"""
    s3_key: str
    upload_type: str
    status: str
    processed_urls: dict[str, str] = field(default_factory=dict)
    error_message: Optional[str] = None
    user_id: Optional[str] = None
    parent_entity_id: Optional[str] = None


class IMediaAssetRepository(ABC):
    """MediaAsset 상태 Repository 추상 인터페이스 (s3_key 기준)"""

    @abstractmethod
    def get_by_s3_key(self, s3_key: str) -> Optional[AssetSnapshot]:
        pass

    @abstractmethod
    def mark_processing(self, s3_key: str) -> bool:
        """
        PROCESSING 으로 전환. 재전달 시 어떤 상태에서든 재진입 허용
        (이전 결과/에러는 비움). 레코드 없으면 False.
        """
        pass

    @abstractmethod
    def complete(self, s3_key: str, processed_urls: dict[str, str]) -> bool:
        """COMPLETED 로 전환 (processed_urls 는 비어 있으면 안 됨)"""
        pass

    @abstractmethod
    def fail(self, s3_key: str, reason: str) -> bool:
        """FAILED 로 전환 (error_message 기록)"""
        pass
