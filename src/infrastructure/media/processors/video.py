"""
VideoProcessor - 강의 영상 (uploadType=video)

다운로드 → 정규화(ffmpeg 1차) → HLS 멀티 렌디션(ffmpeg 2차) → processed 버킷 업로드

임시 디렉터리 2개 (raw-*, hls-*) 는 성공/실패 무관하게 삭제.
정규화 파일은 HLS 패스 직후 즉시 삭제 (대용량 원본 2벌 보관 방지).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

from apps.worker.media_worker.utils import invocation_dir_prefix, temp_workdir
from src.application.media.constants import MASTER_PLAYLIST_NAME, TAG_LESSON_ID, Topic, UploadType
from src.application.media.context import ProcessOutcome, ProcessorContext
from src.application.media.processor import BaseProcessor
from src.application.ports.transcoder import ITranscoder

logger = logging.getLogger(__name__)

RAW_FILENAME = "source"
NORMALIZED_FILENAME = "normalized.mp4"


def video_prefix(lesson_id: str) -> str:
    return f"videos/{lesson_id}"


class VideoProcessor(BaseProcessor):
    upload_types = (UploadType.VIDEO,)

    def __init__(self, *, transcoder: ITranscoder, temp_dir: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._transcoder = transcoder
        self._temp_dir = temp_dir

    def owner_field(self, metadata: Mapping[str, str]) -> str:
        return TAG_LESSON_ID

    def success_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.VIDEO_PROCESSED

    def failure_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.VIDEO_FAILED

    def _transform(self, context: ProcessorContext, owner_id: str) -> ProcessOutcome:
        lesson_id = owner_id

        with temp_workdir(self._temp_dir, invocation_dir_prefix("raw", lesson_id)) as raw_dir, \
                temp_workdir(self._temp_dir, invocation_dir_prefix("hls", lesson_id)) as out_dir:
            src_path = raw_dir / (RAW_FILENAME + Path(context.key).suffix)
            normalized_path = raw_dir / NORMALIZED_FILENAME

            logger.info("[VIDEO] Downloading s3://%s/%s lessonId=%s", context.bucket, context.key, lesson_id)
            self._storage.download_to_path(context.bucket, context.key, src_path)

            logger.info("[VIDEO] Normalizing lessonId=%s", lesson_id)
            self._transcoder.normalize(input_path=src_path, output_path=normalized_path)
            src_path.unlink(missing_ok=True)

            try:
                logger.info("[VIDEO] Transcoding to HLS lessonId=%s", lesson_id)
                self._transcoder.transcode_to_hls(input_path=normalized_path, output_root=out_dir)
            finally:
                normalized_path.unlink(missing_ok=True)

            prefix = video_prefix(lesson_id)
            keys = self._storage.upload_directory(out_dir, self._processed_bucket, prefix)
            logger.info("[VIDEO] Uploaded %d objects to s3://%s/%s", len(keys), self._processed_bucket, prefix)

        master_key = f"{prefix}/{MASTER_PLAYLIST_NAME}"
        master_url = self._storage.public_url(self._processed_bucket, master_key)

        return ProcessOutcome(
            processed_urls={"master": master_url},
            event_data={"lessonId": lesson_id, "videoUrl": master_url},
        )
