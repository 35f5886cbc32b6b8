# PATH: src/infrastructure/storage/s3_adapter.py
# S3 객체 스토리지 어댑터: IObjectStorage 구현
# boto3 client 는 호출부(bootstrap)에서 1회 생성 후 주입

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from apps.worker.media_worker.utils import cache_control_for_object, guess_content_type, trim_tail
from libs.s3_client.client import head_object, public_object_url
from src.application.media.exceptions import DownloadError, UploadError
from src.application.ports.storage import IObjectStorage, ObjectInfo

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_MAX_CONCURRENCY = 8


class S3ObjectStorageAdapter(IObjectStorage):
    """S3 객체 스토리지 IObjectStorage 구현."""

    def __init__(
        self,
        s3: Any,
        *,
        region: str,
        public_base_url: Optional[str] = None,
        upload_max_concurrency: int = DEFAULT_UPLOAD_MAX_CONCURRENCY,
    ) -> None:
        self._s3 = s3
        self._region = region
        self._public_base_url = public_base_url
        self._upload_max_concurrency = max(1, int(upload_max_concurrency))

    def get_object(self, bucket: str, key: str) -> bytes:
        logger.info("Downloading s3://%s/%s as bytes", bucket, key)
        try:
            resp = self._s3.get_object(Bucket=bucket, Key=key)
            body = resp.get("Body")
            if body is None:
                raise DownloadError(f"S3 object s3://{bucket}/{key} has no body")
            return body.read()
        except (ClientError, BotoCoreError) as e:
            raise DownloadError(f"download failed s3://{bucket}/{key}: {trim_tail(str(e))}") from e

    def download_to_path(self, bucket: str, key: str, local_path: Path) -> None:
        logger.info("Downloading s3://%s/%s to %s", bucket, key, local_path)
        local_path = Path(local_path)
        local_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._s3.download_file(Bucket=bucket, Key=key, Filename=str(local_path))
        except (ClientError, BotoCoreError) as e:
            raise DownloadError(f"download failed s3://{bucket}/{key}: {trim_tail(str(e))}") from e

        if not local_path.exists() or local_path.stat().st_size <= 0:
            raise DownloadError(f"downloaded file is empty: s3://{bucket}/{key}")

    def head_object(self, bucket: str, key: str) -> ObjectInfo:
        exists, size, content_type = head_object(self._s3, bucket, key)
        if not exists:
            raise DownloadError(f"S3 object s3://{bucket}/{key} not found")
        return ObjectInfo(size=size, content_type=content_type)

    def get_object_tags(self, bucket: str, key: str) -> dict[str, str]:
        resp = self._s3.get_object_tagging(Bucket=bucket, Key=key)
        tags: dict[str, str] = {}
        for tag in resp.get("TagSet") or []:
            k, v = tag.get("Key"), tag.get("Value")
            if k and v:
                tags[k] = v
        return tags

    def upload_bytes(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        try:
            self._s3.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl=cache_control_for_object(key),
            )
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"upload failed key={key} err={trim_tail(str(e))}") from e

    def _upload_file(self, path: Path, bucket: str, key: str) -> str:
        self._s3.upload_file(
            Filename=str(path),
            Bucket=bucket,
            Key=key,
            ExtraArgs={
                "ContentType": guess_content_type(path.name),
                "CacheControl": cache_control_for_object(path.name),
            },
        )
        return key

    def upload_directory(self, local_dir: Path, bucket: str, prefix: str) -> list[str]:
        """
        업로드 정책:
        - 상대 경로 유지 ({prefix}/{relative_path})
        - Content-Type / Cache-Control 확장자 기준
        - 파일 간 순서 무관 → 병렬 (동시성 상한 upload_max_concurrency)
        - fail-fast: 첫 실패 시 아직 시작 안 한 업로드 취소 후 UploadError
        - 동일 Key overwrite 허용 (재전달 시 멱등)
        """
        local_dir = Path(local_dir).resolve()
        files = sorted(p for p in local_dir.rglob("*") if p.is_file())
        if not files:
            raise UploadError(f"nothing to upload in {local_dir}")

        base = prefix.strip("/")
        jobs: list[tuple[Path, str]] = []
        for path in files:
            rel = path.relative_to(local_dir).as_posix()
            jobs.append((path, f"{base}/{rel}" if base else rel))

        logger.info(
            "Uploading %d files from %s to s3://%s/%s (concurrency=%d)",
            len(jobs),
            local_dir,
            bucket,
            base,
            min(self._upload_max_concurrency, len(jobs)),
        )

        executor = ThreadPoolExecutor(
            max_workers=min(self._upload_max_concurrency, len(jobs)),
            thread_name_prefix="s3-upload",
        )
        try:
            futures = {executor.submit(self._upload_file, path, bucket, key): key for path, key in jobs}
            done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
            failed = [f for f in done if f.exception() is not None]
            if failed:
                for f in not_done:
                    f.cancel()
                first = failed[0]
                err = first.exception()
                raise UploadError(
                    f"upload failed key={futures[first]} err={trim_tail(str(err))}"
                ) from err
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        uploaded = [key for _, key in jobs]
        logger.info("Successfully uploaded %d files to s3://%s/%s", len(uploaded), bucket, base)
        return uploaded

    def public_url(self, bucket: str, key: str) -> str:
        return public_object_url(
            bucket=bucket,
            key=key,
            region=self._region,
            public_base_url=self._public_base_url,
        )
