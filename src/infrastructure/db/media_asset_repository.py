"""
MediaAssetRepository - IMediaAssetRepository 구현체

Django ORM을 사용하여 MediaAsset 상태 업데이트.
Processor는 모델을 직접 부르지 않고 repo.mark_processing(), repo.complete() 등만 호출.

불변식:
- processed_urls 는 COMPLETED 일 때만 비어 있지 않다.
- error_message 는 FAILED 일 때만 값이 있다.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction

from apps.support.media.models import MediaAsset
from src.application.ports.asset_repository import AssetSnapshot, IMediaAssetRepository

logger = logging.getLogger(__name__)

ERROR_MESSAGE_MAX_LENGTH = 2000


def _to_snapshot(asset: MediaAsset) -> AssetSnapshot:
    return AssetSnapshot(
        s3_key=asset.s3_key,
        upload_type=asset.upload_type,
        status=asset.status,
        processed_urls=dict(asset.processed_urls or {}),
        error_message=asset.error_message,
        user_id=asset.user_id,
        parent_entity_id=asset.parent_entity_id,
    )


class MediaAssetRepository(IMediaAssetRepository):
    """IMediaAssetRepository 구현 (Django ORM)"""

    def get_by_s3_key(self, s3_key: str) -> Optional[AssetSnapshot]:
        asset = MediaAsset.objects.filter(s3_key=s3_key).first()
        return _to_snapshot(asset) if asset else None

    @transaction.atomic
    def mark_processing(self, s3_key: str) -> bool:
        asset = MediaAsset.objects.select_for_update().filter(s3_key=s3_key).first()
        if not asset:
            logger.warning("MediaAsset not found for s3_key=%s (mark_processing)", s3_key)
            return False

        if asset.status != MediaAsset.Status.UPLOADING:
            # 재전달(redelivery) 재진입: 이전 시도 결과를 비우고 다시 처리
            logger.info(
                "MediaAsset re-entering PROCESSING s3_key=%s previous_status=%s",
                s3_key,
                asset.status,
            )

        asset.status = MediaAsset.Status.PROCESSING
        asset.processed_urls = {}
        asset.error_message = None
        asset.save(update_fields=["status", "processed_urls", "error_message", "updated_at"])
        return True

    @transaction.atomic
    def complete(self, s3_key: str, processed_urls: dict[str, str]) -> bool:
        if not processed_urls:
            raise ValueError("processed_urls must not be empty on completion")

        asset = MediaAsset.objects.select_for_update().filter(s3_key=s3_key).first()
        if not asset:
            logger.warning("MediaAsset not found for s3_key=%s (complete)", s3_key)
            return False

        if asset.status != MediaAsset.Status.PROCESSING:
            logger.warning(
                "MediaAsset %s status is %s (expected PROCESSING)",
                s3_key,
                asset.status,
            )

        asset.status = MediaAsset.Status.COMPLETED
        asset.processed_urls = {str(k): str(v) for k, v in processed_urls.items()}
        asset.error_message = None
        asset.save(update_fields=["status", "processed_urls", "error_message", "updated_at"])
        return True

    @transaction.atomic
    def fail(self, s3_key: str, reason: str) -> bool:
        asset = MediaAsset.objects.select_for_update().filter(s3_key=s3_key).first()
        if not asset:
            logger.warning("MediaAsset not found for s3_key=%s (fail)", s3_key)
            return False

        asset.status = MediaAsset.Status.FAILED
        asset.processed_urls = {}
        asset.error_message = (str(reason) or "unknown error")[:ERROR_MESSAGE_MAX_LENGTH]
        asset.save(update_fields=["status", "processed_urls", "error_message", "updated_at"])
        return True
