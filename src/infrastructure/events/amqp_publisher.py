"""
AmqpEventPublisher - IEventPublisher 구현체

kombu 로 토픽 익스체인지(durable)에 JSON 이벤트 발행.
routing key = topic (e.g. "lesson.video.processed").
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from kombu import Connection, Exchange

from src.application.ports.events import IEventPublisher

logger = logging.getLogger(__name__)

DEFAULT_EXCHANGE_NAME = "platform.events"

# 브로커 일시 장애 시 재시도 (발행은 best-effort, 무한 재시도 금지)
PUBLISH_RETRY_POLICY = {
    "max_retries": 3,
    "interval_start": 0.5,
    "interval_step": 1.0,
    "interval_max": 3.0,
}


class AmqpEventPublisher(IEventPublisher):
    """IEventPublisher 구현 (AMQP topic exchange)"""

    def __init__(
        self,
        *,
        broker_url: Optional[str] = None,
        exchange_name: str = DEFAULT_EXCHANGE_NAME,
        connection: Optional[Connection] = None,
    ) -> None:
        if connection is None and not broker_url:
            raise ValueError("broker_url or connection is required")
        self._connection = connection or Connection(broker_url)
        self._exchange = Exchange(exchange_name, type="topic", durable=True)

    def publish(self, topic: str, data: dict[str, Any]) -> None:
        producer = self._connection.Producer(serializer="json")
        producer.publish(
            data,
            exchange=self._exchange,
            routing_key=topic,
            declare=[self._exchange],
            delivery_mode=2,
            retry=True,
            retry_policy=PUBLISH_RETRY_POLICY,
        )
        logger.info(
            "Event published to exchange '%s' with topic '%s': %s",
            self._exchange.name,
            topic,
            data,
        )

    def close(self) -> None:
        self._connection.release()
