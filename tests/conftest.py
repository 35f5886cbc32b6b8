"""
공용 Mock Adapter / fixture

외부 시스템(S3, SQS, ffmpeg, AMQP)은 전부 메모리 Mock 으로 대체.
DB 는 pytest-django (SQLite in-memory) 로 실제 MediaAssetRepository 를 사용.
"""
from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from PIL import Image

from src.application.media.constants import MASTER_PLAYLIST_NAME, VARIANT_PLAYLIST_NAME
from src.application.media.exceptions import UploadError
from src.application.ports.events import IEventPublisher
from src.application.ports.media_queue import IMediaQueue
from src.application.ports.storage import IObjectStorage, ObjectInfo
from src.application.ports.transcoder import ITranscoder

RAW_BUCKET = "raw-bucket"
PROCESSED_BUCKET = "processed-bucket"
PUBLIC_BASE = "https://cdn.test"


class MockStorage(IObjectStorage):
    """버킷/키 → bytes 메모리 스토리지. 태그는 별도 dict."""

    def __init__(self) -> None:
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.content_types: Dict[Tuple[str, str], str] = {}
        self.tags: Dict[Tuple[str, str], Dict[str, str]] = {}
        self.uploaded: Dict[str, bytes] = {}
        self.tag_error: Optional[Exception] = None
        self.fail_upload_suffix: Optional[str] = None
        self.downloaded_paths: List[Path] = []

    def put(self, key: str, data: bytes, *, tags: Dict[str, str], content_type: str = "application/octet-stream",
            bucket: str = RAW_BUCKET) -> None:
        self.objects[(bucket, key)] = data
        self.content_types[(bucket, key)] = content_type
        self.tags[(bucket, key)] = dict(tags)

    def get_object(self, bucket: str, key: str) -> bytes:
        return self.objects[(bucket, key)]

    def download_to_path(self, bucket: str, key: str, local_path: Path) -> None:
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(self.objects[(bucket, key)])
        self.downloaded_paths.append(local_path)

    def head_object(self, bucket: str, key: str) -> ObjectInfo:
        data = self.objects[(bucket, key)]
        return ObjectInfo(size=len(data), content_type=self.content_types[(bucket, key)])

    def get_object_tags(self, bucket: str, key: str) -> dict[str, str]:
        if self.tag_error is not None:
            raise self.tag_error
        return dict(self.tags[(bucket, key)])

    def upload_bytes(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        self.uploaded[key] = data

    def upload_directory(self, local_dir: Path, bucket: str, prefix: str) -> list[str]:
        keys = []
        for path in sorted(p for p in local_dir.rglob("*") if p.is_file()):
            key = f"{prefix}/{path.relative_to(local_dir).as_posix()}"
            if self.fail_upload_suffix and key.endswith(self.fail_upload_suffix):
                raise UploadError(f"upload failed: {key}")
            self.uploaded[key] = path.read_bytes()
            keys.append(key)
        return keys

    def public_url(self, bucket: str, key: str) -> str:
        return f"{PUBLIC_BASE}/{key}"


class MockTranscoder(ITranscoder):
    """ffmpeg 대신 HLS 출력 트리를 직접 만든다. fail_on 지정 시 해당 단계에서 예외."""

    def __init__(self, fail_on: Optional[str] = None, error: Optional[Exception] = None) -> None:
        self.fail_on = fail_on
        self.error = error
        self.calls: List[str] = []
        self.seen_dirs: List[Path] = []

    def normalize(self, *, input_path: Path, output_path: Path) -> Path:
        self.calls.append("normalize")
        self.seen_dirs.append(output_path.parent)
        if self.fail_on == "normalize":
            raise self.error
        output_path.write_bytes(input_path.read_bytes())
        return output_path

    def transcode_to_hls(self, *, input_path: Path, output_root: Path) -> Path:
        self.calls.append("hls")
        self.seen_dirs.append(output_root)
        if self.fail_on == "hls":
            raise self.error
        for name in ("1080p", "720p", "480p"):
            variant = output_root / name
            variant.mkdir(parents=True, exist_ok=True)
            (variant / VARIANT_PLAYLIST_NAME).write_text("#EXTM3U\n")
            (variant / "segment_000.ts").write_bytes(b"\x47" * 188)
        master = output_root / MASTER_PLAYLIST_NAME
        master.write_text("#EXTM3U\n")
        return master


class MockPublisher(IEventPublisher):
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self.error = error

    def publish(self, topic: str, data: dict[str, Any]) -> None:
        if self.error is not None:
            raise self.error
        self.events.append((topic, dict(data)))

    def topics(self) -> List[str]:
        return [t for t, _ in self.events]


class MockQueue(IMediaQueue):
    """배치 1회 반환 후 빈 리스트. 삭제된 receipt handle 기록."""

    def __init__(self, messages: Optional[List[dict]] = None) -> None:
        self._batches = [list(messages or [])]
        self.deleted: List[str] = []
        self.receive_calls = 0

    def receive_messages(self, max_messages: int = 10, wait_time_seconds: int = 20) -> list[dict]:
        self.receive_calls += 1
        return self._batches.pop(0) if self._batches else []

    def delete_message(self, receipt_handle: str) -> bool:
        self.deleted.append(receipt_handle)
        return True


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def s3_notification(*keys: str, bucket: str = RAW_BUCKET, event_name: str = "ObjectCreated:Put") -> str:
    return json.dumps({
        "Records": [
            {
                "eventName": event_name,
                "s3": {"bucket": {"name": bucket}, "object": {"key": key, "size": 1024}},
            }
            for key in keys
        ]
    })


def sqs_message(body: str, receipt_handle: str, message_id: str = "") -> dict:
    return {
        "MessageId": message_id or receipt_handle,
        "ReceiptHandle": receipt_handle,
        "Body": body,
        "Attributes": {"ApproximateReceiveCount": "1"},
    }


def make_image_bytes(size=(800, 600), fmt="PNG", color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def storage() -> MockStorage:
    return MockStorage()


@pytest.fixture
def publisher() -> MockPublisher:
    return MockPublisher()


@pytest.fixture
def repo():
    from src.infrastructure.db.media_asset_repository import MediaAssetRepository
    return MediaAssetRepository()


@pytest.fixture
def make_asset(db):
    from apps.support.media.models import MediaAsset

    def _make(s3_key: str, upload_type: str, **kwargs) -> MediaAsset:
        return MediaAsset.objects.create(s3_key=s3_key, upload_type=upload_type, **kwargs)

    return _make


@pytest.fixture
def processor_kwargs(storage, repo, publisher) -> Dict[str, Any]:
    return dict(storage=storage, repo=repo, publisher=publisher, processed_bucket=PROCESSED_BUCKET)
