"""
Media Worker 의존성 조립

모든 외부 클라이언트(S3, SQS, AMQP, Redis)는 여기서 1회 생성되어
processor / handler / worker 에 생성자로 주입된다.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from apps.worker.media_worker.config import Config
from libs.queue import get_queue_client
from libs.redis import build_redis_client
from libs.s3_client.client import build_s3_client
from src.application.media.event_parser import S3EventParser
from src.application.media.factory import ProcessorFactory
from src.application.media.handler import ProcessMediaMessageHandler
from src.application.media.processor import IProcessor
from src.application.ports.events import IEventPublisher
from src.application.ports.idempotency import IIdempotency, NoopIdempotency
from src.application.ports.storage import IObjectStorage
from src.infrastructure.cache.redis_idempotency_adapter import RedisIdempotencyAdapter
from src.infrastructure.db.media_asset_repository import MediaAssetRepository
from src.infrastructure.events.amqp_publisher import AmqpEventPublisher
from src.infrastructure.media.processors import (
    AvatarProcessor,
    FileProcessor,
    ReportProcessor,
    ThumbnailProcessor,
    VideoProcessor,
)
from src.infrastructure.media.sqs_adapter import MediaSQSAdapter
from src.infrastructure.media.transcoder import FFmpegTranscoder
from src.infrastructure.storage import S3ObjectStorageAdapter

logger = logging.getLogger(__name__)


@dataclass
class WorkerComponents:
    queue: MediaSQSAdapter
    handler: ProcessMediaMessageHandler
    publisher: AmqpEventPublisher


def build_processors(
    cfg: Config,
    *,
    storage: IObjectStorage,
    repo: MediaAssetRepository,
    publisher: IEventPublisher,
) -> List[IProcessor]:
    common = dict(
        storage=storage,
        repo=repo,
        publisher=publisher,
        processed_bucket=cfg.AWS_PROCESSED_MEDIA_BUCKET,
    )
    transcoder = FFmpegTranscoder(
        ffmpeg_bin=cfg.FFMPEG_BIN,
        ffprobe_bin=cfg.FFPROBE_BIN,
        timeout_seconds=cfg.FFMPEG_TIMEOUT_SECONDS,
        probe_timeout_seconds=cfg.FFPROBE_TIMEOUT_SECONDS,
        hls_time=cfg.HLS_TIME_SECONDS,
        keyframe_interval=cfg.HLS_KEYFRAME_INTERVAL,
    )
    return [
        AvatarProcessor(**common),
        VideoProcessor(transcoder=transcoder, temp_dir=cfg.TEMP_DIR or None, **common),
        ThumbnailProcessor(**common),
        FileProcessor(**common),
        ReportProcessor(**common),
    ]


def build_idempotency(cfg: Config) -> IIdempotency:
    if not cfg.MEDIA_LOCK_ENABLED:
        return NoopIdempotency()
    client = build_redis_client(cfg.REDIS_URL)
    if client is None:
        logger.warning("MEDIA_LOCK_ENABLED but Redis unavailable, running without lock")
        return NoopIdempotency()
    return RedisIdempotencyAdapter(client, ttl_seconds=cfg.MEDIA_LOCK_TTL_SECONDS)


def build_components(cfg: Config) -> WorkerComponents:
    endpoint_url = cfg.S3_ENDPOINT_URL or None

    s3 = build_s3_client(
        region=cfg.AWS_REGION,
        endpoint_url=endpoint_url,
        max_pool_connections=max(16, cfg.UPLOAD_MAX_CONCURRENCY * 2),
    )
    storage = S3ObjectStorageAdapter(
        s3,
        region=cfg.AWS_REGION,
        public_base_url=cfg.PUBLIC_MEDIA_BASE_URL or None,
        upload_max_concurrency=cfg.UPLOAD_MAX_CONCURRENCY,
    )
    publisher = AmqpEventPublisher(
        broker_url=cfg.EVENTS_BROKER_URL,
        exchange_name=cfg.EVENTS_EXCHANGE,
    )
    repo = MediaAssetRepository()

    factory = ProcessorFactory(build_processors(cfg, storage=storage, repo=repo, publisher=publisher))
    handler = ProcessMediaMessageHandler(
        parser=S3EventParser(storage),
        factory=factory,
        idempotency=build_idempotency(cfg),
    )
    queue = MediaSQSAdapter(
        get_queue_client(region_name=cfg.AWS_REGION, endpoint_url=endpoint_url),
        cfg.MEDIA_SQS_QUEUE_NAME,
    )
    logger.info("Registered processors for uploadTypes=%s", [t.value for t in factory.upload_types])
    return WorkerComponents(queue=queue, handler=handler, publisher=publisher)
