"""
S3EventParser - 큐 메시지 → ProcessorContext

지원 포맷:
- S3 Event Notification: {"Records": [{"eventName", "s3": {"bucket": {"name"}, "object": {"key", "size"}}}]}
- SNS 경유: {"Type": "Notification", "Message": "<S3 notification JSON>"}

정책:
- 형식 오류 / Records 없음 / s3:TestEvent → ParseResult.failure (예외 아님, 호출부가 삭제 결정)
- 태그 조회 실패 (객체 삭제/권한) → ObjectTagsUnavailableError (처리 실패, 재전달 대상)
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional
from urllib.parse import unquote_plus

from src.application.media.context import ParseResult, ProcessorContext
from src.application.media.exceptions import ObjectTagsUnavailableError
from src.application.ports.storage import IObjectStorage

logger = logging.getLogger(__name__)

OBJECT_CREATED_PREFIX = "ObjectCreated:"
S3_TEST_EVENT = "s3:TestEvent"


def _load_json(raw: Any) -> tuple[Any, Optional[str]]:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None, "body is not valid UTF-8"
    if isinstance(raw, str):
        try:
            return json.loads(raw), None
        except json.JSONDecodeError as e:
            return None, f"body is not valid JSON: {e.msg}"
    return raw, None


def _unwrap_sns(payload: Any) -> tuple[Any, Optional[str]]:
    if isinstance(payload, dict) and payload.get("Type") == "Notification" and "Message" in payload:
        return _load_json(payload["Message"])
    return payload, None


class S3EventParser:
    def __init__(self, storage: IObjectStorage) -> None:
        self._storage = storage

    def parse(self, body: Any) -> ParseResult:
        payload, err = _load_json(body)
        if err:
            return ParseResult.failure(err)

        payload, err = _unwrap_sns(payload)
        if err:
            return ParseResult.failure(f"SNS message: {err}")

        if not isinstance(payload, dict):
            return ParseResult.failure("body is not a storage notification envelope")

        if payload.get("Event") == S3_TEST_EVENT:
            return ParseResult.failure(S3_TEST_EVENT)

        records = payload.get("Records")
        if not isinstance(records, list) or not records:
            return ParseResult.failure("envelope has no Records")

        refs: list[tuple[str, str, str, Optional[int]]] = []
        for idx, record in enumerate(records):
            if not isinstance(record, dict):
                return ParseResult.failure(f"Records[{idx}] is not an object")

            event_name = str(record.get("eventName") or "")
            if event_name and not event_name.startswith(OBJECT_CREATED_PREFIX):
                logger.info("Skipping non-create record eventName=%s", event_name)
                continue

            s3 = record.get("s3")
            if not isinstance(s3, dict):
                return ParseResult.failure(f"Records[{idx}].s3 is not an object")
            bucket_info = s3.get("bucket") or {}
            obj = s3.get("object") or {}
            if not isinstance(bucket_info, dict) or not isinstance(obj, dict):
                return ParseResult.failure(f"Records[{idx}].s3 bucket/object is not an object")

            bucket = bucket_info.get("name")
            raw_key = obj.get("key")
            if not bucket or not raw_key:
                return ParseResult.failure(f"Records[{idx}] missing bucket name or object key")

            size = obj.get("size")
            refs.append((
                str(bucket),
                unquote_plus(str(raw_key)),
                event_name,
                size if isinstance(size, int) else None,
            ))

        if not refs:
            return ParseResult.failure("envelope has no ObjectCreated records")

        contexts: list[ProcessorContext] = []
        for bucket, key, event_name, size in refs:
            try:
                tags = self._storage.get_object_tags(bucket, key)
            except Exception as e:
                raise ObjectTagsUnavailableError(
                    f"cannot read tags for s3://{bucket}/{key}: {e}"
                ) from e
            contexts.append(
                ProcessorContext(
                    bucket=bucket,
                    key=key,
                    metadata=dict(tags),
                    event_name=event_name,
                    size=size,
                )
            )
        return ParseResult(contexts=contexts)
