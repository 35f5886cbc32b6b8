"""
Queue 클라이언트 추상화

업로드 알림(S3 → SQS) 수신 전용. 메시지 발행은 이벤트 퍼블리셔가 담당.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# 로컬에서 AWS 자격 증명 없을 때 로그 스팸 방지: 인증 오류는 한 번만 로그
_last_auth_error_log = 0.0
_AUTH_ERROR_LOG_INTERVAL = 60.0  # 초

# SQS ReceiveMessage 상한
SQS_MAX_BATCH_SIZE = 10
SQS_MAX_WAIT_TIME_SECONDS = 20


class QueueUnavailableError(Exception):
    """SQS 접근 불가 (자격 증명 없음/만료 등). 워커는 이걸 잡고 백오프 후 재시도."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


def _is_auth_error(e: Exception) -> bool:
    if isinstance(e, ClientError):
        code = (e.response or {}).get("Error", {}).get("Code", "")
        return code in (
            "InvalidClientTokenId",
            "UnrecognizedClientException",
            "SignatureDoesNotMatch",
            "InvalidSignatureException",
            "ExpiredToken",
        )
    return False


def _log_auth_error_once(queue_name: str, op: str, e: Exception) -> None:
    global _last_auth_error_log
    now = time.time()
    if now - _last_auth_error_log >= _AUTH_ERROR_LOG_INTERVAL:
        logger.warning(
            "SQS %s (%s): %s. AWS 자격 증명이 없거나 만료되었을 수 있음. 백오프 후 재시도합니다.",
            op,
            queue_name,
            e,
        )
        _last_auth_error_log = now


class QueueClient(ABC):
    """Queue 클라이언트 추상 인터페이스"""

    @abstractmethod
    def receive_messages(
        self,
        queue_name: str,
        max_messages: int = SQS_MAX_BATCH_SIZE,
        wait_time_seconds: int = SQS_MAX_WAIT_TIME_SECONDS,
    ) -> List[Dict[str, Any]]:
        """메시지 배치 수신 (Long Polling)"""
        pass

    @abstractmethod
    def delete_message(self, queue_name: str, receipt_handle: str) -> bool:
        """메시지 삭제 (ACK)"""
        pass


class SQSQueueClient(QueueClient):
    """AWS SQS 기반 큐 클라이언트"""

    def __init__(self, region_name: str, endpoint_url: Optional[str] = None):
        self.region_name = region_name
        self.sqs = boto3.client("sqs", region_name=region_name, endpoint_url=endpoint_url)
        self._queue_urls: Dict[str, str] = {}
        logger.info("SQSQueueClient initialized: %s", self.region_name)

    def _get_queue_url(self, queue_name: str) -> str:
        """큐 이름으로 URL 조회 (프로세스 내 캐시)"""
        cached = self._queue_urls.get(queue_name)
        if cached:
            return cached
        try:
            response = self.sqs.get_queue_url(QueueName=queue_name)
        except Exception as e:
            if _is_auth_error(e):
                _log_auth_error_once(queue_name, "get_queue_url", e)
                raise QueueUnavailableError(f"Queue URL unavailable: {e}", cause=e) from e
            logger.error("Failed to get queue URL for %s: %s", queue_name, e)
            raise
        self._queue_urls[queue_name] = response["QueueUrl"]
        return response["QueueUrl"]

    def receive_messages(
        self,
        queue_name: str,
        max_messages: int = SQS_MAX_BATCH_SIZE,
        wait_time_seconds: int = SQS_MAX_WAIT_TIME_SECONDS,
    ) -> List[Dict[str, Any]]:
        """SQS에서 최대 max_messages 건 수신. 빈 큐면 빈 리스트."""
        queue_url = self._get_queue_url(queue_name)
        try:
            response = self.sqs.receive_message(
                QueueUrl=queue_url,
                MaxNumberOfMessages=max(1, min(int(max_messages), SQS_MAX_BATCH_SIZE)),
                WaitTimeSeconds=max(0, min(int(wait_time_seconds), SQS_MAX_WAIT_TIME_SECONDS)),
                AttributeNames=["ApproximateReceiveCount"],
                MessageAttributeNames=["All"],
            )
        except Exception as e:
            if _is_auth_error(e):
                _log_auth_error_once(queue_name, "receive_message", e)
                raise QueueUnavailableError(f"Receive unavailable: {e}", cause=e) from e
            raise
        return response.get("Messages", [])

    def delete_message(self, queue_name: str, receipt_handle: str) -> bool:
        """SQS 메시지 삭제"""
        try:
            queue_url = self._get_queue_url(queue_name)
            self.sqs.delete_message(
                QueueUrl=queue_url,
                ReceiptHandle=receipt_handle,
            )
            return True
        except Exception as e:
            logger.error("Failed to delete message from %s: %s", queue_name, e)
            return False


def get_queue_client(region_name: str, endpoint_url: Optional[str] = None) -> QueueClient:
    """SQS 큐 클라이언트 반환"""
    return SQSQueueClient(region_name=region_name, endpoint_url=endpoint_url)
