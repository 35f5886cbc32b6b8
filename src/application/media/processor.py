"""
Processor 계약 (uploadType 별 전략)

흐름 (BaseProcessor.process):
1. 필수 소유자 ID 확인 → 없으면 MissingMetadataError (상태 변경 없음)
2. Repository.mark_processing → 레코드 없으면 AssetNotFoundError (변환 전)
3. _transform (다운로드 → 변환 → 업로드)
4. Repository.complete (레코드 없으면 AssetNotFoundError) → 성공 이벤트 발행
5. 2~4 중 실패 시: Repository.fail (항상 먼저) → 실패 이벤트 발행 → 예외 재발생

이벤트 발행은 best-effort: 실패해도 로그만 남기고 DB 상태가 최종 기준.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Mapping

from src.application.media.constants import TAG_UPLOAD_TYPE, UploadType
from src.application.media.context import ProcessOutcome, ProcessorContext
from src.application.media.exceptions import AssetNotFoundError, MissingMetadataError
from src.application.ports.asset_repository import IMediaAssetRepository
from src.application.ports.events import IEventPublisher
from src.application.ports.storage import IObjectStorage

logger = logging.getLogger(__name__)


class IProcessor(ABC):
    """uploadType 별 처리 전략"""

    upload_types: ClassVar[tuple[UploadType, ...]] = ()

    def can_process(self, metadata: Mapping[str, str]) -> bool:
        """uploadType 태그 하나만 보는 순수 판정"""
        return UploadType.parse(metadata.get(TAG_UPLOAD_TYPE)) in self.upload_types

    @abstractmethod
    def process(self, context: ProcessorContext) -> ProcessOutcome:
        pass


class BaseProcessor(IProcessor):
    """공통 상태 전이 / 이벤트 발행 템플릿. 하위 클래스는 _transform 만 구현."""

    def __init__(
        self,
        *,
        storage: IObjectStorage,
        repo: IMediaAssetRepository,
        publisher: IEventPublisher,
        processed_bucket: str,
    ) -> None:
        self._storage = storage
        self._repo = repo
        self._publisher = publisher
        self._processed_bucket = processed_bucket

    # ------------------------------------------------------------------
    # 하위 클래스 구현부
    # ------------------------------------------------------------------

    @abstractmethod
    def owner_field(self, metadata: Mapping[str, str]) -> str:
        """이벤트/경로에 쓰이는 소유자 태그명 (lessonId, userId ...)"""

    @abstractmethod
    def success_topic(self, metadata: Mapping[str, str]) -> str:
        pass

    @abstractmethod
    def failure_topic(self, metadata: Mapping[str, str]) -> str:
        pass

    @abstractmethod
    def _transform(self, context: ProcessorContext, owner_id: str) -> ProcessOutcome:
        pass

    # ------------------------------------------------------------------

    def resolve_owner(self, metadata: Mapping[str, str]) -> str:
        field = self.owner_field(metadata)
        value = (metadata.get(field) or "").strip()
        if not value:
            raise MissingMetadataError(field, dict(metadata))
        return value

    def process(self, context: ProcessorContext) -> ProcessOutcome:
        metadata = context.metadata
        owner_field = self.owner_field(metadata)
        owner_id = self.resolve_owner(metadata)
        name = type(self).__name__

        try:
            if not self._repo.mark_processing(context.key):
                raise AssetNotFoundError(context.key)
            logger.info("[%s] Processing s3://%s/%s %s=%s", name, context.bucket, context.key, owner_field, owner_id)

            outcome = self._transform(context, owner_id)
            if not self._repo.complete(context.key, outcome.processed_urls):
                raise AssetNotFoundError(context.key)

        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.exception("[%s] Processing failed s3_key=%s %s=%s", name, context.key, owner_field, owner_id)
            self._record_failure(context.key, reason)
            self._publish_safely(self.failure_topic(metadata), {owner_field: owner_id, "reason": reason})
            raise

        logger.info("[%s] Processing completed s3_key=%s urls=%s", name, context.key, outcome.processed_urls)
        self._publish_safely(self.success_topic(metadata), outcome.event_data)
        return outcome

    def _record_failure(self, s3_key: str, reason: str) -> None:
        try:
            self._repo.fail(s3_key, reason)
        except Exception:
            # 부분 실패 허용: 원래 예외가 우선
            logger.exception("Failed to mark MediaAsset as FAILED s3_key=%s", s3_key)

    def _publish_safely(self, topic: str, data: dict[str, Any]) -> None:
        try:
            self._publisher.publish(topic, data)
        except Exception:
            logger.exception("Event publish failed topic=%s data=%s", topic, data)
