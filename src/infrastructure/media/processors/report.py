"""
ReportProcessor - 성적 리포트 (uploadType=report)

raw 객체 = 행 목록 JSON. format 태그(pdf | csv, 기본 pdf)에 따라 렌더링 후
reports/{userId}/{stem}.{ext} 로 업로드.
"""
from __future__ import annotations

from pathlib import PurePosixPath
from typing import Mapping

from src.application.media.constants import TAG_REPORT_FORMAT, TAG_USER_ID, Topic, UploadType
from src.application.media.context import ProcessOutcome, ProcessorContext
from src.application.media.processor import BaseProcessor
from src.infrastructure.media.report_renderer import ReportRenderError, parse_rows, render_csv, render_pdf

FORMAT_CONTENT_TYPES = {
    "pdf": "application/pdf",
    "csv": "text/csv",
}
DEFAULT_FORMAT = "pdf"


class ReportProcessor(BaseProcessor):
    upload_types = (UploadType.REPORT,)

    def owner_field(self, metadata: Mapping[str, str]) -> str:
        return TAG_USER_ID

    def success_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.REPORT_GENERATED

    def failure_topic(self, metadata: Mapping[str, str]) -> str:
        return Topic.REPORT_FAILED

    def _transform(self, context: ProcessorContext, owner_id: str) -> ProcessOutcome:
        fmt = (context.metadata.get(TAG_REPORT_FORMAT) or DEFAULT_FORMAT).strip().lower()
        if fmt not in FORMAT_CONTENT_TYPES:
            raise ReportRenderError(f"unsupported report format: {fmt}")

        rows = parse_rows(self._storage.get_object(context.bucket, context.key))
        body = render_pdf(rows) if fmt == "pdf" else render_csv(rows)

        stem = PurePosixPath(context.key).stem or "report"
        key = f"reports/{owner_id}/{stem}.{fmt}"
        self._storage.upload_bytes(self._processed_bucket, key, body, FORMAT_CONTENT_TYPES[fmt])
        url = self._storage.public_url(self._processed_bucket, key)

        return ProcessOutcome(
            processed_urls={"final": url},
            event_data={"userId": owner_id, "reportUrl": url, "format": fmt},
        )
