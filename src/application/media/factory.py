"""
ProcessorFactory - uploadType 태그 → Processor

기동 시 1회 구성. 한 uploadType 은 정확히 하나의 processor 만 가질 수 있다.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from src.application.media.constants import TAG_UPLOAD_TYPE, UploadType
from src.application.media.exceptions import AmbiguousProcessorError
from src.application.media.processor import IProcessor

logger = logging.getLogger(__name__)


class ProcessorFactory:
    def __init__(self, processors: Iterable[IProcessor]) -> None:
        self._registry: dict[UploadType, IProcessor] = {}
        for processor in processors:
            self.register(processor)

    def register(self, processor: IProcessor) -> None:
        if not processor.upload_types:
            raise ValueError(f"{type(processor).__name__} declares no upload types")
        for upload_type in processor.upload_types:
            existing = self._registry.get(upload_type)
            if existing is not None:
                raise AmbiguousProcessorError(
                    f"uploadType '{upload_type.value}' claimed by both "
                    f"{type(existing).__name__} and {type(processor).__name__}"
                )
            self._registry[upload_type] = processor

    @property
    def upload_types(self) -> list[UploadType]:
        return list(self._registry)

    def select(self, metadata: Mapping[str, str]) -> Optional[IProcessor]:
        upload_type = UploadType.parse(metadata.get(TAG_UPLOAD_TYPE))
        if upload_type is None:
            return None
        processor = self._registry.get(upload_type)
        if processor is None or not processor.can_process(metadata):
            return None
        return processor
