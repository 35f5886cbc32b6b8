# PATH: src/infrastructure/media/transcoder.py

from __future__ import annotations

import json
import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from apps.worker.media_worker.utils import ensure_dir, trim_tail
from src.application.media.constants import MASTER_PLAYLIST_NAME, VARIANT_PLAYLIST_NAME
from src.application.media.exceptions import TranscodeError
from src.application.ports.transcoder import ITranscoder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rendition:
    name: str
    width: int
    height: int
    video_bitrate: str
    maxrate: str
    bufsize: str


# 고정 래더 (순서 = master playlist 내 variant 순서)
HLS_LADDER: List[Rendition] = [
    Rendition("1080p", 1920, 1080, "5000k", "5350k", "10000k"),
    Rendition("720p", 1280, 720, "2800k", "2996k", "5600k"),
    Rendition("480p", 854, 480, "1400k", "1498k", "2800k"),
]

AUDIO_BITRATE = "128k"
AUDIO_SAMPLE_RATE = "48000"
NORMALIZED_CRF = "20"


def has_audio_stream(*, input_path: str, ffprobe_bin: str, timeout: int) -> bool:
    cmd = [
        ffprobe_bin,
        "-v", "error",
        "-print_format", "json",
        "-show_streams",
        input_path,
    ]
    try:
        p = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            timeout=timeout,
            check=False,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.warning("ffprobe failed for %s: %s", input_path, e)
        return False

    if p.returncode != 0:
        return False

    try:
        data = json.loads(p.stdout or "{}")
    except json.JSONDecodeError:
        return False
    streams = data.get("streams") or []
    return any(s.get("codec_type") == "audio" for s in streams)


def build_normalize_command(*, input_path: str, output_path: str, ffmpeg_bin: str) -> List[str]:
    return [
        ffmpeg_bin,
        "-y",
        "-i", input_path,
        "-map", "0:v:0",
        "-map", "0:a:0?",
        "-c:v", "libx264",
        "-preset", "veryfast",
        "-profile:v", "main",
        "-pix_fmt", "yuv420p",
        "-crf", NORMALIZED_CRF,
        "-c:a", "aac",
        "-ar", AUDIO_SAMPLE_RATE,
        "-ac", "2",
        "-b:a", AUDIO_BITRATE,
        "-movflags", "+faststart",
        output_path,
    ]


def build_filter_complex(ladder: List[Rendition]) -> str:
    parts: List[str] = []
    split_count = len(ladder)
    parts.append("[0:v]split={}".format(split_count) + "".join(f"[v{i}]" for i in range(split_count)))
    for i, r in enumerate(ladder):
        parts.append(
            f"[v{i}]scale=w={r.width}:h={r.height}"
            f":force_original_aspect_ratio=decrease:force_divisible_by=2[v{i}out]"
        )
    return ";".join(parts)


def build_hls_command(
    *,
    input_path: str,
    ladder: List[Rendition],
    with_audio: bool,
    ffmpeg_bin: str,
    hls_time: int,
    keyframe_interval: int,
) -> List[str]:
    """
    모든 variant 가 같은 GOP(-g/-keyint_min, scene-cut 끔)를 공유해야
    세그먼트 경계가 일치하고 ABR 전환이 끊기지 않는다.
    출력 경로는 cwd(output_root) 기준 상대 경로.
    """
    cmd: List[str] = [
        ffmpeg_bin,
        "-y",
        "-i", input_path,
        "-filter_complex", build_filter_complex(ladder),
    ]

    for i, r in enumerate(ladder):
        cmd += ["-map", f"[v{i}out]"]
        if with_audio:
            cmd += ["-map", "0:a:0"]

        cmd += [
            f"-c:v:{i}", "libx264",
            f"-b:v:{i}", r.video_bitrate,
            f"-maxrate:v:{i}", r.maxrate,
            f"-bufsize:v:{i}", r.bufsize,
        ]

        if with_audio:
            cmd += [
                f"-c:a:{i}", "aac",
                f"-b:a:{i}", AUDIO_BITRATE,
            ]

    cmd += [
        "-preset", "veryfast",
        "-profile:v", "main",
        "-pix_fmt", "yuv420p",
        "-g", str(keyframe_interval),
        "-keyint_min", str(keyframe_interval),
        "-sc_threshold", "0",
    ]
    if with_audio:
        cmd += ["-ar", AUDIO_SAMPLE_RATE, "-ac", "2"]

    if with_audio:
        var_map = " ".join(f"v:{i},a:{i},name:{r.name}" for i, r in enumerate(ladder))
    else:
        var_map = " ".join(f"v:{i},name:{r.name}" for i, r in enumerate(ladder))

    cmd += [
        "-f", "hls",
        "-hls_time", str(hls_time),
        "-hls_playlist_type", "vod",
        "-hls_flags", "independent_segments",
        "-hls_segment_filename", "%v/segment_%03d.ts",
        "-master_pl_name", MASTER_PLAYLIST_NAME,
        "-var_stream_map", var_map,
        f"%v/{VARIANT_PLAYLIST_NAME}",
    ]
    return cmd


def run_ffmpeg(cmd: List[str], *, label: str, timeout: Optional[int], cwd: Optional[Path] = None) -> str:
    """
    ffmpeg 실행 (감독 프로세스).

    - stderr 전체를 수집하면서 라인 단위 DEBUG 로그
    - timeout 초과 시 kill 후 TranscodeError
    - 종료 코드 != 0 이면 TranscodeError (stderr tail 포함)

    Returns: 수집된 stderr 전체
    """
    logger.info("[TRANSCODER] Starting %s cmd=%s", label, " ".join(cmd[:4]) + " ...")
    try:
        p = subprocess.Popen(
            cmd,
            cwd=str(cwd) if cwd else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
        )
    except OSError as e:
        raise TranscodeError(f"failed to start ffmpeg ({label}): {e}") from e

    stderr_lines: List[str] = []

    def read_stderr() -> None:
        for line in p.stderr or []:
            stderr_lines.append(line)
            logger.debug("ffmpeg[%s] %s", label, line.rstrip())

    reader = threading.Thread(target=read_stderr, name=f"ffmpeg-stderr-{label}", daemon=True)
    reader.start()

    try:
        returncode = p.wait(timeout=timeout if timeout and timeout > 0 else None)
    except subprocess.TimeoutExpired:
        p.kill()
        p.wait()
        reader.join(timeout=2.0)
        raise TranscodeError(f"ffmpeg timeout ({label}) after {timeout}s")
    reader.join(timeout=5.0)

    stderr = "".join(stderr_lines)
    if returncode != 0:
        logger.error("[TRANSCODER] ffmpeg exited with code %s (%s)", returncode, label)
        raise TranscodeError(f"ffmpeg exited with code {returncode} ({label}): {trim_tail(stderr, 1000)}")

    logger.info("[TRANSCODER] %s finished successfully", label)
    return stderr


class FFmpegTranscoder(ITranscoder):
    """ITranscoder 구현 (ffmpeg / ffprobe subprocess)"""

    def __init__(
        self,
        *,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        timeout_seconds: Optional[int] = 3600,
        probe_timeout_seconds: int = 60,
        hls_time: int = 10,
        keyframe_interval: int = 25,
        ladder: Optional[List[Rendition]] = None,
    ) -> None:
        self.ffmpeg_bin = ffmpeg_bin
        self.ffprobe_bin = ffprobe_bin
        self.timeout_seconds = timeout_seconds
        self.probe_timeout_seconds = probe_timeout_seconds
        self.hls_time = hls_time
        self.keyframe_interval = keyframe_interval
        self.ladder = list(ladder or HLS_LADDER)

    def normalize(self, *, input_path: Path, output_path: Path) -> Path:
        ensure_dir(output_path.parent)
        cmd = build_normalize_command(
            input_path=str(input_path),
            output_path=str(output_path),
            ffmpeg_bin=self.ffmpeg_bin,
        )
        run_ffmpeg(cmd, label="normalize", timeout=self.timeout_seconds)
        if not output_path.exists():
            raise TranscodeError(f"normalized output not created: {output_path.name}")
        return output_path

    def transcode_to_hls(self, *, input_path: Path, output_root: Path) -> Path:
        ensure_dir(output_root)
        for r in self.ladder:
            ensure_dir(output_root / r.name)

        with_audio = has_audio_stream(
            input_path=str(input_path),
            ffprobe_bin=self.ffprobe_bin,
            timeout=self.probe_timeout_seconds,
        )
        cmd = build_hls_command(
            input_path=str(Path(input_path).resolve()),
            ladder=self.ladder,
            with_audio=with_audio,
            ffmpeg_bin=self.ffmpeg_bin,
            hls_time=self.hls_time,
            keyframe_interval=self.keyframe_interval,
        )
        run_ffmpeg(cmd, label="hls", timeout=self.timeout_seconds, cwd=output_root.resolve())

        master = output_root / MASTER_PLAYLIST_NAME
        if not master.exists():
            raise TranscodeError(f"{MASTER_PLAYLIST_NAME} not created")
        return master
