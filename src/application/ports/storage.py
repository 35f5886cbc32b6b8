# PATH: src/application/ports/storage.py
# 객체 스토리지 포트: 다운로드/업로드/태그 조회 (버킷명은 호출 시점에 주입)

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ObjectInfo:
    """HEAD 결과 (존재하는 객체만)"""
    size: int
    content_type: str


class IObjectStorage(ABC):
    """객체 스토리지 (raw / processed 버킷 공용, 버킷명 하드코딩 없음)"""

    @abstractmethod
    def get_object(self, bucket: str, key: str) -> bytes:
        """버킷에서 객체 내용을 바이트로 반환."""
        ...

    @abstractmethod
    def download_to_path(self, bucket: str, key: str, local_path: Path) -> None:
        """버킷에서 객체를 로컬 경로로 다운로드."""
        ...

    @abstractmethod
    def head_object(self, bucket: str, key: str) -> ObjectInfo:
        """객체 크기/Content-Type 조회. 없으면 예외."""
        ...

    @abstractmethod
    def get_object_tags(self, bucket: str, key: str) -> dict[str, str]:
        """업로드 시 부착된 태그 (uploadType, userId 등) 평탄화 dict."""
        ...

    @abstractmethod
    def upload_bytes(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        """바이트를 객체로 업로드 (동일 key overwrite 허용)."""
        ...

    @abstractmethod
    def upload_directory(self, local_dir: Path, bucket: str, prefix: str) -> list[str]:
        """
        디렉터리 트리 전체 업로드 (상대 경로 유지).
        하나라도 실패하면 전체 실패. 업로드된 key 목록 반환.
        """
        ...

    @abstractmethod
    def public_url(self, bucket: str, key: str) -> str:
        """처리 완료 객체의 공개 URL."""
        ...
