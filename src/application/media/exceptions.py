"""
미디어 처리 예외 계층

    MediaProcessingError (base)
    ├── MissingMetadataError        계약 오류: 필수 태그 누락 (상태 변경 없이 즉시 실패)
    ├── ObjectTagsUnavailableError  태그 조회 실패 (삭제된 객체/권한) → 재전달 대상
    ├── AssetNotFoundError          raw 키에 해당하는 MediaAsset 없음
    ├── DownloadError
    ├── UploadError
    └── TranscodeError              ffmpeg 비정상 종료/타임아웃
    AmbiguousProcessorError         같은 uploadType 을 두 processor 가 등록 (기동 시 오류)
"""
from __future__ import annotations


class MediaProcessingError(RuntimeError):
    pass


class MissingMetadataError(MediaProcessingError):
    def __init__(self, field: str, metadata: dict | None = None):
        self.field = field
        super().__init__(f"missing required metadata '{field}' (tags={metadata or {}})")


class ObjectTagsUnavailableError(MediaProcessingError):
    pass


class AssetNotFoundError(MediaProcessingError):
    def __init__(self, s3_key: str):
        self.s3_key = s3_key
        super().__init__(f"MediaAsset not found for s3_key={s3_key}")


class DownloadError(MediaProcessingError):
    pass


class UploadError(MediaProcessingError):
    pass


class TranscodeError(MediaProcessingError):
    pass


class AmbiguousProcessorError(ValueError):
    pass
