"""
Media Worker - SQS 기반 메인 엔트리포인트

S3 업로드 알림(SQS) Long Polling → uploadType 별 processor 실행.

메시지 삭제 정책:
- ok / skip:parse / skip:no_processor → 삭제 (재시도해도 결과 동일)
- failed / skip:lock → 남김 (visibility timeout 후 재전달)
"""

from __future__ import annotations

import logging
import os
import sys
import time
from typing import Any, Callable, Optional

from libs.observability.shutdown import is_shutdown_requested, setup_graceful_shutdown, wait_for_shutdown
from libs.queue import QueueUnavailableError
from src.application.media.handler import DELETABLE_OUTCOMES, OUTCOME_FAILED, ProcessMediaMessageHandler
from src.application.ports.media_queue import IMediaQueue

logger = logging.getLogger("media_worker")

LOG_FORMAT = "%(asctime)s [%(levelname)s] [MEDIA-WORKER] %(message)s"

# 자격 증명 만료 등 큐 자체가 불가용일 때 대기
QUEUE_UNAVAILABLE_BACKOFF_SECONDS = 60.0


class MediaWorker:
    """
    단일 폴링 루프. 배치 내 메시지는 순차 처리하며
    한 메시지의 예외가 배치 나머지를 중단시키지 않는다.
    """

    def __init__(
        self,
        queue: IMediaQueue,
        handler: ProcessMediaMessageHandler,
        *,
        max_messages: int = 10,
        wait_time_seconds: int = 20,
        poll_interval_seconds: float = 1.0,
        unavailable_backoff_seconds: float = QUEUE_UNAVAILABLE_BACKOFF_SECONDS,
        sleep: Optional[Callable[[float], Any]] = None,
    ) -> None:
        self._queue = queue
        self._handler = handler
        self._max_messages = max_messages
        self._wait_time_seconds = wait_time_seconds
        self._poll_interval_seconds = poll_interval_seconds
        self._unavailable_backoff_seconds = unavailable_backoff_seconds
        self._sleep = sleep or wait_for_shutdown

    def run_once(self) -> dict[str, int]:
        """1회 receive → 배치 처리. Returns: outcome 별 건수"""
        messages = self._queue.receive_messages(
            max_messages=self._max_messages,
            wait_time_seconds=self._wait_time_seconds,
        )
        counts: dict[str, int] = {}
        for message in messages:
            outcome = self._handle_message(message)
            counts[outcome] = counts.get(outcome, 0) + 1
        return counts

    def _handle_message(self, message: dict) -> str:
        message_id = message.get("MessageId", "")
        receipt_handle = message.get("ReceiptHandle")
        receive_count = (message.get("Attributes") or {}).get("ApproximateReceiveCount", "1")
        started = time.monotonic()

        logger.info("MEDIA_MESSAGE | received | message_id=%s | receive_count=%s", message_id, receive_count)
        try:
            outcome = self._handler.handle(message.get("Body"))
        except Exception:
            logger.exception("MEDIA_MESSAGE | handler crashed | message_id=%s", message_id)
            outcome = OUTCOME_FAILED

        elapsed = time.monotonic() - started
        if outcome in DELETABLE_OUTCOMES and receipt_handle:
            deleted = self._queue.delete_message(receipt_handle)
            logger.info(
                "MEDIA_MESSAGE | %s | message_id=%s | deleted=%s | elapsed_sec=%.2f",
                outcome, message_id, deleted, elapsed,
            )
        else:
            logger.info(
                "MEDIA_MESSAGE | %s | message_id=%s | left for redelivery | elapsed_sec=%.2f",
                outcome, message_id, elapsed,
            )
        return outcome

    def run_forever(self) -> None:
        logger.info(
            "Media Worker started | max_messages=%s | wait_time=%ss",
            self._max_messages,
            self._wait_time_seconds,
        )
        while not is_shutdown_requested():
            delay = self._poll_interval_seconds
            try:
                self.run_once()
            except QueueUnavailableError as e:
                logger.warning("SQS unavailable, backing off %.0fs: %s", self._unavailable_backoff_seconds, e)
                delay = self._unavailable_backoff_seconds
            except Exception:
                logger.exception("Unexpected error in poll cycle")
            self._sleep(delay)
        logger.info("Media Worker stopped (shutdown requested)")


def run_worker(*, once: bool = False) -> int:
    """Django 초기화 이후 호출 (main / manage.py run_media_worker 공용)"""
    from apps.worker.media_worker.bootstrap import build_components
    from apps.worker.media_worker.config import load_config

    cfg = load_config()
    components = build_components(cfg)
    setup_graceful_shutdown()

    worker = MediaWorker(
        components.queue,
        components.handler,
        max_messages=cfg.SQS_MAX_MESSAGES,
        wait_time_seconds=cfg.SQS_WAIT_TIME_SECONDS,
        poll_interval_seconds=cfg.POLL_INTERVAL_SECONDS,
    )
    logger.info("Media Worker (SQS) | queue=%s | once=%s", components.queue.queue_name, once)
    try:
        if once:
            counts = worker.run_once()
            logger.info("Single poll cycle finished: %s", counts)
        else:
            worker.run_forever()
    except Exception:
        logger.exception("Fatal error in Media Worker")
        return 1
    finally:
        components.publisher.close()
    return 0


def main() -> int:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    # Django 설정 필수: MediaAssetRepository 가 ORM 사용
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "apps.api.config.settings.worker")
    import django
    django.setup()

    return run_worker()


if __name__ == "__main__":
    sys.exit(main())
