"""
Redis 보호 레이어

SQS + Worker + DB 구조는 그대로 유지.
Redis는 저장 키 단위 중복 처리 방지(선택) 목적으로만 사용.

Redis 장애 시 락 없이 진행 (fallback).
"""

from libs.redis.client import build_redis_client

__all__ = [
    "build_redis_client",
]
