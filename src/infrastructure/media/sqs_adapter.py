"""
Media SQS Adapter - IMediaQueue 구현체

SQS receive/delete만. DB 상태는 MediaAssetRepository가 담당.
"""
from __future__ import annotations

from libs.queue import QueueClient
from src.application.ports.media_queue import IMediaQueue


class MediaSQSAdapter(IMediaQueue):
    """IMediaQueue 포트 구현 (SQS만, DB 무관)"""

    def __init__(self, client: QueueClient, queue_name: str) -> None:
        self._client = client
        self._queue_name = queue_name

    @property
    def queue_name(self) -> str:
        return self._queue_name

    def receive_messages(self, max_messages: int = 10, wait_time_seconds: int = 20) -> list[dict]:
        return self._client.receive_messages(
            self._queue_name,
            max_messages=max_messages,
            wait_time_seconds=wait_time_seconds,
        )

    def delete_message(self, receipt_handle: str) -> bool:
        return self._client.delete_message(self._queue_name, receipt_handle)
