"""
업로드 타입 / 이벤트 토픽 / 메타데이터 태그 상수

태그 값은 pre-signed URL 발급 시점에 객체에 부착된 값과 1:1로 일치해야 한다.
"""
from __future__ import annotations

from enum import Enum


class UploadType(str, Enum):
    AVATAR = "avatar"
    VIDEO = "video"
    THUMBNAIL = "thumbnail"
    COURSE_RESOURCE = "course_resource"
    CHAT_ATTACHMENT = "chat_attachment"
    REPORT = "report"

    @classmethod
    def parse(cls, value: object) -> "UploadType | None":
        try:
            return cls(str(value))
        except ValueError:
            return None


# 객체 태그 키
TAG_UPLOAD_TYPE = "uploadType"
TAG_USER_ID = "userId"
TAG_LESSON_ID = "lessonId"
TAG_COURSE_ID = "courseId"
TAG_CONVERSATION_ID = "conversationId"
TAG_SENDER_ID = "senderId"
TAG_REPORT_FORMAT = "format"


class Topic:
    """토픽 익스체인지 routing key"""
    AVATAR_PROCESSED = "user.avatar.processed"
    AVATAR_FAILED = "user.avatar.failed"
    THUMBNAIL_PROCESSED = "course.thumbnail.processed"
    THUMBNAIL_FAILED = "course.thumbnail.failed"
    VIDEO_PROCESSED = "lesson.video.processed"
    VIDEO_FAILED = "lesson.video.failed"
    RESOURCE_PROCESSED = "course.resource.processed"
    RESOURCE_FAILED = "course.resource.failed"
    CHAT_MEDIA_PROCESSED = "chat.media.processed"
    CHAT_MEDIA_FAILED = "chat.media.failed"
    REPORT_GENERATED = "report.generated"
    REPORT_FAILED = "report.failed"


# HLS
MASTER_PLAYLIST_NAME = "playlist.m3u8"
VARIANT_PLAYLIST_NAME = "index.m3u8"
