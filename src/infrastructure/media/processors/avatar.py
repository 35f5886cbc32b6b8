"""
AvatarProcessor - 프로필 이미지 (uploadType=avatar)

small / medium / large 정사각 WEBP 3종 생성 → avatars/{userId}/{size}.webp
"""
from __future__ import annotations

import logging
from typing import Mapping

from src.application.media.constants import TAG_USER_ID, Topic, UploadType
from src.application.media.context import ProcessOutcome, ProcessorContext
from src.application.media.processor import BaseProcessor
from src.infrastructure.media.image import AVATAR_EXTENSION, resize_avatar

logger = logging.getLogger(__name__)

AVATAR_CONTENT_TYPE = "image/webp"


class AvatarProcessor(BaseProcessor):
    upload_types = (UploadType.AVATAR,)

    def owner_field(self, metadata: Mapping[str, str]) -> str:
        return TAG_USER_ID

    def success_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.AVATAR_PROCESSED

    def failure_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.AVATAR_FAILED

    def _transform(self, context: ProcessorContext, owner_id: str) -> ProcessOutcome:
        data = self._storage.get_object(context.bucket, context.key)
        variants = resize_avatar(data)

        urls: dict[str, str] = {}
        for size, body in variants.items():
            key = f"avatars/{owner_id}/{size}.{AVATAR_EXTENSION}"
            self._storage.upload_bytes(self._processed_bucket, key, body, AVATAR_CONTENT_TYPE)
            urls[size] = self._storage.public_url(self._processed_bucket, key)

        logger.info("[AVATAR] userId=%s sizes=%s", owner_id, list(urls))
        return ProcessOutcome(
            processed_urls=urls,
            event_data={"userId": owner_id, "avatarUrls": dict(urls)},
        )
