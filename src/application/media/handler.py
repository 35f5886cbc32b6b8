"""
ProcessMediaMessageHandler - 큐 메시지 1건 처리 유스케이스

흐름:
1. 본문 파싱 (S3EventParser) → 영구 실패면 "skip:parse"
2. 레코드별 processor 선택 (ProcessorFactory) → 없으면 로그 후 건너뜀
3. (선택) 저장 키 단위 락 획득 → 실패 시 "skip:lock"
4. Processor.process (상태 전이 / 이벤트 발행은 processor 책임)
5. 락 해제

메시지 삭제 여부는 호출부(워커 루프)가 outcome 으로 결정한다.
"""
from __future__ import annotations

import logging
from typing import Any

from src.application.media.constants import TAG_UPLOAD_TYPE
from src.application.media.event_parser import S3EventParser
from src.application.media.factory import ProcessorFactory
from src.application.ports.idempotency import IIdempotency, NoopIdempotency

logger = logging.getLogger(__name__)

OUTCOME_OK = "ok"
OUTCOME_SKIP_PARSE = "skip:parse"
OUTCOME_SKIP_NO_PROCESSOR = "skip:no_processor"
OUTCOME_SKIP_LOCK = "skip:lock"
OUTCOME_FAILED = "failed"

# 처리 완료로 간주되어 메시지를 삭제해도 되는 결과
DELETABLE_OUTCOMES = frozenset({OUTCOME_OK, OUTCOME_SKIP_PARSE, OUTCOME_SKIP_NO_PROCESSOR})


class ProcessMediaMessageHandler:
    """
    Media 메시지 처리 Handler

    파싱 -> processor 선택 -> 락 -> 처리 -> 락 해제
    """

    def __init__(
        self,
        parser: S3EventParser,
        factory: ProcessorFactory,
        idempotency: IIdempotency | None = None,
    ) -> None:
        self._parser = parser
        self._factory = factory
        self._idempotency = idempotency or NoopIdempotency()

    def handle(self, body: Any) -> str:
        """
        Returns:
            "ok" | "skip:parse" | "skip:no_processor" | "skip:lock" | "failed"

            - "ok": 모든 레코드 처리 성공 (processor 없는 레코드는 건너뜀)
            - "skip:parse": 본문 형식 오류 (재전달해도 동일) → 삭제
            - "skip:no_processor": 어떤 레코드도 처리 대상이 아님 → 삭제
            - "skip:lock": 다른 워커가 같은 키를 처리 중 → 재전달 대기
            - "failed": 하나 이상의 레코드 처리 실패 → 재전달 대기
        """
        try:
            result = self._parser.parse(body)
        except Exception:
            logger.exception("[HANDLER] Failed to resolve storage notification")
            return OUTCOME_FAILED

        if not result.ok:
            logger.warning("[HANDLER] Unparseable message, dropping: %s", result.error)
            return OUTCOME_SKIP_PARSE

        outcomes: list[str] = []
        for context in result.contexts:
            processor = self._factory.select(context.metadata)
            if processor is None:
                logger.warning(
                    "[HANDLER] No processor for s3_key=%s uploadType=%s",
                    context.key,
                    context.metadata.get(TAG_UPLOAD_TYPE),
                )
                outcomes.append(OUTCOME_SKIP_NO_PROCESSOR)
                continue

            if not self._idempotency.acquire_lock(context.key):
                logger.info("[HANDLER] Lock held elsewhere s3_key=%s, leaving for redelivery", context.key)
                outcomes.append(OUTCOME_SKIP_LOCK)
                continue

            try:
                processor.process(context)
                outcomes.append(OUTCOME_OK)
            except Exception as e:
                logger.error(
                    "[HANDLER] %s failed s3_key=%s: %s",
                    type(processor).__name__,
                    context.key,
                    e,
                )
                outcomes.append(OUTCOME_FAILED)
            finally:
                self._idempotency.release_lock(context.key)

        return _combine(outcomes)


def _combine(outcomes: list[str]) -> str:
    """레코드별 결과 → 메시지 결과 (실패 > 락 > 성공 > processor 없음)"""
    if OUTCOME_FAILED in outcomes:
        return OUTCOME_FAILED
    if OUTCOME_SKIP_LOCK in outcomes:
        return OUTCOME_SKIP_LOCK
    if OUTCOME_OK in outcomes:
        return OUTCOME_OK
    return OUTCOME_SKIP_NO_PROCESSOR
