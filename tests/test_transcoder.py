import stat

import pytest

from src.application.media.exceptions import TranscodeError
from src.infrastructure.media.transcoder import (
    HLS_LADDER,
    FFmpegTranscoder,
    build_hls_command,
    build_normalize_command,
    run_ffmpeg,
)


def _script(tmp_path, name, body):
    path = tmp_path / name
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IEXEC)
    return str(path)


def _value_after(cmd, flag):
    return cmd[cmd.index(flag) + 1]


class TestCommandBuilding:
    def test_hls_command_shares_keyframe_interval(self):
        cmd = build_hls_command(
            input_path="/tmp/in.mp4",
            ladder=HLS_LADDER,
            with_audio=True,
            ffmpeg_bin="ffmpeg",
            hls_time=10,
            keyframe_interval=25,
        )
        assert _value_after(cmd, "-g") == "25"
        assert _value_after(cmd, "-keyint_min") == "25"
        assert _value_after(cmd, "-sc_threshold") == "0"
        assert _value_after(cmd, "-hls_time") == "10"
        assert _value_after(cmd, "-master_pl_name") == "playlist.m3u8"
        assert _value_after(cmd, "-hls_segment_filename") == "%v/segment_%03d.ts"
        assert cmd[-1] == "%v/index.m3u8"
        assert _value_after(cmd, "-var_stream_map") == "v:0,a:0,name:1080p v:1,a:1,name:720p v:2,a:2,name:480p"
        assert [_value_after(cmd, f"-b:v:{i}") for i in range(3)] == ["5000k", "2800k", "1400k"]

    def test_hls_command_without_audio(self):
        cmd = build_hls_command(
            input_path="/tmp/in.mp4",
            ladder=HLS_LADDER,
            with_audio=False,
            ffmpeg_bin="ffmpeg",
            hls_time=10,
            keyframe_interval=25,
        )
        assert "0:a:0" not in cmd
        assert _value_after(cmd, "-var_stream_map") == "v:0,name:1080p v:1,name:720p v:2,name:480p"

    def test_normalize_command(self):
        cmd = build_normalize_command(input_path="in.mov", output_path="out.mp4", ffmpeg_bin="/usr/bin/ffmpeg")
        assert cmd[0] == "/usr/bin/ffmpeg"
        assert _value_after(cmd, "-c:v") == "libx264"
        assert _value_after(cmd, "-pix_fmt") == "yuv420p"
        assert cmd[-1] == "out.mp4"


class TestRunFfmpeg:
    def test_non_zero_exit_raises_with_stderr_tail(self, tmp_path):
        ffmpeg = _script(tmp_path, "ffmpeg", 'echo "Invalid data found when processing input" >&2\nexit 1\n')
        with pytest.raises(TranscodeError) as exc:
            run_ffmpeg([ffmpeg, "-i", "x"], label="normalize", timeout=10)
        assert "exited with code 1" in str(exc.value)
        assert "Invalid data found" in str(exc.value)

    def test_timeout_kills_process(self, tmp_path):
        ffmpeg = _script(tmp_path, "ffmpeg", "exec sleep 30\n")
        with pytest.raises(TranscodeError) as exc:
            run_ffmpeg([ffmpeg], label="hls", timeout=1)
        assert "timeout" in str(exc.value)

    def test_missing_binary(self, tmp_path):
        with pytest.raises(TranscodeError):
            run_ffmpeg([str(tmp_path / "does-not-exist")], label="normalize", timeout=5)

    def test_success_returns_stderr(self, tmp_path):
        ffmpeg = _script(tmp_path, "ffmpeg", 'echo "frame=1" >&2\nexit 0\n')
        assert "frame=1" in run_ffmpeg([ffmpeg], label="normalize", timeout=10)


class TestFFmpegTranscoder:
    def test_hls_failure_when_master_missing(self, tmp_path):
        ffmpeg = _script(tmp_path, "ffmpeg", "exit 0\n")
        ffprobe = _script(tmp_path, "ffprobe", 'echo \'{"streams": [{"codec_type": "video"}]}\'\n')
        transcoder = FFmpegTranscoder(ffmpeg_bin=ffmpeg, ffprobe_bin=ffprobe, timeout_seconds=10)
        src = tmp_path / "normalized.mp4"
        src.write_bytes(b"\x00")

        with pytest.raises(TranscodeError):
            transcoder.transcode_to_hls(input_path=src, output_root=tmp_path / "hls")
        assert (tmp_path / "hls" / "720p").is_dir()

    def test_hls_success(self, tmp_path):
        ffmpeg = _script(tmp_path, "ffmpeg", "echo '#EXTM3U' > playlist.m3u8\n")
        ffprobe = _script(tmp_path, "ffprobe", "exit 1\n")
        transcoder = FFmpegTranscoder(ffmpeg_bin=ffmpeg, ffprobe_bin=ffprobe, timeout_seconds=10)
        src = tmp_path / "normalized.mp4"
        src.write_bytes(b"\x00")

        master = transcoder.transcode_to_hls(input_path=src, output_root=tmp_path / "hls")
        assert master == tmp_path / "hls" / "playlist.m3u8"
