"""
Transcoder Port (인터페이스)

외부 인코딩 엔진(ffmpeg) 호출. 비정상 종료는 TranscodeError.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class ITranscoder(ABC):
    @abstractmethod
    def normalize(self, *, input_path: Path, output_path: Path) -> Path:
        """1차 패스: 기준 코덱/프로파일(H.264 + AAC, yuv420p)로 재인코딩"""
        pass

    @abstractmethod
    def transcode_to_hls(self, *, input_path: Path, output_root: Path) -> Path:
        """2차 패스: 멀티 렌디션 HLS. master playlist 경로 반환"""
        pass
