"""
Graceful Shutdown 유틸리티

SIGTERM, SIGINT 수신 시 종료 플래그만 세운다.
워커 루프는 현재 배치를 끝낸 뒤 플래그를 보고 빠져나간다 (drain).
"""

import logging
import signal
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)

_shutdown_handlers: List[Callable[[], None]] = []
_shutdown_event = threading.Event()


def register_shutdown_handler(handler: Callable[[], None]) -> None:
    """종료 핸들러 등록"""
    _shutdown_handlers.append(handler)


def is_shutdown_requested() -> bool:
    """종료 요청 여부 확인"""
    return _shutdown_event.is_set()


def request_shutdown() -> None:
    """종료 요청 (시그널 핸들러/테스트 공용)"""
    _shutdown_event.set()
    for handler in _shutdown_handlers:
        try:
            handler()
        except Exception as e:
            logger.error("Error in shutdown handler: %s", e)


def wait_for_shutdown(timeout: float) -> bool:
    """timeout 동안 대기. 그 사이 종료 요청이 오면 즉시 True."""
    return _shutdown_event.wait(timeout=timeout)


def _signal_handler(signum, frame):
    """시그널 핸들러"""
    signal_name = signal.Signals(signum).name
    logger.info("Received %s, drain started, will finish current batch and exit", signal_name)
    request_shutdown()


def setup_graceful_shutdown() -> None:
    """Graceful shutdown 설정"""
    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)
    logger.info("Graceful shutdown handlers registered")


def reset_shutdown_state() -> None:
    """테스트용: 종료 플래그/핸들러 초기화"""
    _shutdown_event.clear()
    _shutdown_handlers.clear()
