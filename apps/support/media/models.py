import uuid

from django.db import models

from apps.core.models.base import TimestampModel
from src.application.media.constants import UploadType


# ========================================================
# MediaAsset (업로드 1건 = 처리 레코드 1건)
# ========================================================

class MediaAsset(TimestampModel):
    """
    업로드된 미디어 객체와 처리 이력.

    - 레코드는 pre-signed URL 발급 시점(API)에 UPLOADING 으로 생성된다.
    - 이후 상태 변경은 Worker Processor 만 수행 (repository 경유).
    - processed_urls 는 COMPLETED 일 때만, error_message 는 FAILED 일 때만 채워진다.
    """

    class Status(models.TextChoices):
        UPLOADING = "uploading", "업로드 중"
        PROCESSING = "processing", "처리중"
        COMPLETED = "completed", "완료"
        FAILED = "failed", "실패"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # ===============================
    # Source of Truth (raw 업로드)
    # ===============================
    s3_key = models.CharField(
        max_length=1024,
        unique=True,
        help_text="raw bucket object key",
    )

    upload_type = models.CharField(
        max_length=32,
        choices=[(t.value, t.value) for t in UploadType],
        db_index=True,
    )

    # --------------------------------------------------
    # 소유자 / 연결 도메인 객체 (user, lesson, course, conversation)
    # --------------------------------------------------
    user_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    parent_entity_id = models.CharField(max_length=64, blank=True, default="")

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.UPLOADING,
        db_index=True,
    )

    # ===============================
    # Worker 결과
    # ===============================
    processed_urls = models.JSONField(
        default=dict,
        blank=True,
        help_text="rendition name -> public URL (e.g. small/medium/large, master, final)",
    )
    error_message = models.TextField(null=True, blank=True)

    class Meta:
        db_table = "media_asset"
        indexes = [
            models.Index(fields=["status", "updated_at"], name="media_asset_status_upd_idx"),
        ]

    def __str__(self):
        return f"[{self.status}] {self.upload_type} {self.s3_key}"
