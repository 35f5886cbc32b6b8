"""
ThumbnailProcessor - 코스 썸네일 (uploadType=thumbnail)
"""
from __future__ import annotations

from pathlib import PurePosixPath
from typing import Mapping

from src.application.media.constants import TAG_COURSE_ID, Topic, UploadType
from src.application.media.context import ProcessOutcome, ProcessorContext
from src.application.media.processor import BaseProcessor
from src.infrastructure.media.image import THUMBNAIL_EXTENSION, resize_thumbnail


class ThumbnailProcessor(BaseProcessor):
    upload_types = (UploadType.THUMBNAIL,)

    def owner_field(self, metadata: Mapping[str, str]) -> str:
        return TAG_COURSE_ID

    def success_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.THUMBNAIL_PROCESSED

    def failure_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.THUMBNAIL_FAILED

    def _transform(self, context: ProcessorContext, owner_id: str) -> ProcessOutcome:
        data = self._storage.get_object(context.bucket, context.key)
        body = resize_thumbnail(data)

        stem = PurePosixPath(context.key).stem or "thumbnail"
        key = f"thumbnails/{owner_id}/{stem}.{THUMBNAIL_EXTENSION}"
        self._storage.upload_bytes(self._processed_bucket, key, body, "image/jpeg")
        url = self._storage.public_url(self._processed_bucket, key)

        return ProcessOutcome(
            processed_urls={"final": url},
            event_data={"courseId": owner_id, "thumbnailUrl": url},
        )
