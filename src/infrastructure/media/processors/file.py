"""
FileProcessor - 변환 없는 첨부 파일 (uploadType=course_resource | chat_attachment)

원본을 그대로 processed 버킷으로 복사하고 파일 메타(이름/크기/타입)를 이벤트로 전달.
- course_resource → resources/{courseId}/{fileName}
- chat_attachment → chat/{conversationId}/{fileName}
"""
from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Mapping

from src.application.media.constants import (
    TAG_CONVERSATION_ID,
    TAG_COURSE_ID,
    TAG_SENDER_ID,
    TAG_UPLOAD_TYPE,
    Topic,
    UploadType,
)
from src.application.media.context import ProcessOutcome, ProcessorContext
from src.application.media.exceptions import MissingMetadataError
from src.application.media.processor import BaseProcessor

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _is_chat(metadata: Mapping[str, str]) -> bool:
    return UploadType.parse(metadata.get(TAG_UPLOAD_TYPE)) == UploadType.CHAT_ATTACHMENT


class FileProcessor(BaseProcessor):
    upload_types = (UploadType.COURSE_RESOURCE, UploadType.CHAT_ATTACHMENT)

    def owner_field(self, metadata: Mapping[str, str]) -> str:
        return TAG_CONVERSATION_ID if _is_chat(metadata) else TAG_COURSE_ID

    def resolve_owner(self, metadata: Mapping[str, str]) -> str:
        owner_id = super().resolve_owner(metadata)
        # 채팅 이벤트는 발신자 없이 발행하지 않는다
        if _is_chat(metadata) and not (metadata.get(TAG_SENDER_ID) or "").strip():
            raise MissingMetadataError(TAG_SENDER_ID, dict(metadata))
        return owner_id

    def success_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.CHAT_MEDIA_PROCESSED if _is_chat(metadata) else Topic.RESOURCE_PROCESSED

    def failure_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.CHAT_MEDIA_FAILED if _is_chat(metadata) else Topic.RESOURCE_FAILED

    def _transform(self, context: ProcessorContext, owner_id: str) -> ProcessOutcome:
        chat = _is_chat(context.metadata)
        prefix = f"chat/{owner_id}" if chat else f"resources/{owner_id}"

        info = self._storage.head_object(context.bucket, context.key)
        content_type = info.content_type or DEFAULT_CONTENT_TYPE
        data = self._storage.get_object(context.bucket, context.key)

        file_name = PurePosixPath(context.key).name
        key = f"{prefix}/{file_name}"
        self._storage.upload_bytes(self._processed_bucket, key, data, content_type)
        url = self._storage.public_url(self._processed_bucket, key)
        logger.info("[FILE] Copied %s -> s3://%s/%s (%d bytes)", context.key, self._processed_bucket, key, info.size)

        file_meta = {
            "fileUrl": url,
            "fileName": file_name,
            "fileSize": info.size,
            "fileType": content_type,
        }
        if chat:
            event_data = {
                "conversationId": owner_id,
                "senderId": context.metadata[TAG_SENDER_ID].strip(),
                **file_meta,
            }
        else:
            event_data = {"courseId": owner_id, **file_meta}

        return ProcessOutcome(processed_urls={"final": url}, event_data=event_data)
