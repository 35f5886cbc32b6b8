"""
Queue 추상화 레이어

AWS SQS 업로드 알림 수신 전용

사용 예:
    from libs.queue import get_queue_client

    queue = get_queue_client(region_name="ap-northeast-2")
    messages = queue.receive_messages(queue_name="media-upload-events", max_messages=10)
    queue.delete_message(queue_name="media-upload-events", receipt_handle=messages[0]["ReceiptHandle"])
"""

from .client import QueueClient, QueueUnavailableError, SQSQueueClient, get_queue_client

__all__ = ["QueueClient", "QueueUnavailableError", "SQSQueueClient", "get_queue_client"]
