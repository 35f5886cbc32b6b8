"""
VideoProcessor 라이프사이클: 다운로드 → 정규화 → HLS → 업로드 → 상태/이벤트
"""
import pytest

from apps.support.media.models import MediaAsset
from src.application.media.context import ProcessorContext
from src.application.media.exceptions import AssetNotFoundError, MissingMetadataError, TranscodeError, UploadError
from src.infrastructure.media.processors import VideoProcessor

from .conftest import PUBLIC_BASE, RAW_BUCKET, MockPublisher, MockTranscoder

KEY = "uploads/lesson-1.mp4"
TAGS = {"uploadType": "video", "lessonId": "L1"}


@pytest.fixture
def video_asset(make_asset, storage):
    storage.put(KEY, b"\x00" * 2048, tags=TAGS, content_type="video/mp4")
    return make_asset(KEY, "video")


def _context(metadata=None):
    return ProcessorContext(bucket=RAW_BUCKET, key=KEY, metadata=dict(metadata or TAGS))


def _processor(processor_kwargs, transcoder, tmp_path):
    return VideoProcessor(transcoder=transcoder, temp_dir=str(tmp_path), **processor_kwargs)


@pytest.mark.django_db
class TestVideoProcessor:
    def test_success_completes_with_single_master_url(self, video_asset, processor_kwargs, storage, publisher, tmp_path):
        transcoder = MockTranscoder()
        outcome = _processor(processor_kwargs, transcoder, tmp_path).process(_context())

        master_url = f"{PUBLIC_BASE}/videos/L1/playlist.m3u8"
        assert outcome.processed_urls == {"master": master_url}

        video_asset.refresh_from_db()
        assert video_asset.status == MediaAsset.Status.COMPLETED
        assert list(video_asset.processed_urls.values()) == [master_url]
        assert video_asset.error_message is None

        assert transcoder.calls == ["normalize", "hls"]
        assert "videos/L1/720p/index.m3u8" in storage.uploaded
        assert "videos/L1/1080p/segment_000.ts" in storage.uploaded
        assert publisher.events == [("lesson.video.processed", {"lessonId": "L1", "videoUrl": master_url})]

    def test_temp_dirs_named_per_invocation_and_removed(self, video_asset, processor_kwargs, tmp_path):
        transcoder = MockTranscoder()
        _processor(processor_kwargs, transcoder, tmp_path).process(_context())

        raw_dir, hls_dir = transcoder.seen_dirs
        assert raw_dir.name.startswith("raw-L1-")
        assert hls_dir.name.startswith("hls-L1-")
        assert list(tmp_path.iterdir()) == []

    def test_transcode_failure_marks_failed_and_publishes_once(self, video_asset, processor_kwargs, storage, publisher, tmp_path):
        error = TranscodeError("ffmpeg exited with code 1 (hls): Invalid data found when processing input")
        transcoder = MockTranscoder(fail_on="hls", error=error)

        with pytest.raises(TranscodeError):
            _processor(processor_kwargs, transcoder, tmp_path).process(_context())

        video_asset.refresh_from_db()
        assert video_asset.status == MediaAsset.Status.FAILED
        assert "exited with code 1" in video_asset.error_message
        assert video_asset.processed_urls == {}

        assert publisher.events == [("lesson.video.failed", {"lessonId": "L1", "reason": str(error)})]
        assert list(tmp_path.iterdir()) == []
        assert storage.uploaded == {}

    def test_upload_failure_fails_the_step(self, video_asset, processor_kwargs, storage, publisher, tmp_path):
        storage.fail_upload_suffix = "480p/index.m3u8"

        with pytest.raises(UploadError):
            _processor(processor_kwargs, MockTranscoder(), tmp_path).process(_context())

        video_asset.refresh_from_db()
        assert video_asset.status == MediaAsset.Status.FAILED
        assert publisher.topics() == ["lesson.video.failed"]
        assert list(tmp_path.iterdir()) == []

    def test_missing_lesson_id_is_contract_error_without_mutation(self, video_asset, processor_kwargs, publisher, tmp_path):
        transcoder = MockTranscoder()
        with pytest.raises(MissingMetadataError):
            _processor(processor_kwargs, transcoder, tmp_path).process(_context({"uploadType": "video"}))

        video_asset.refresh_from_db()
        assert video_asset.status == MediaAsset.Status.UPLOADING
        assert transcoder.calls == []
        assert publisher.events == []

    def test_redelivery_after_failure_recovers(self, video_asset, processor_kwargs, tmp_path):
        failing = MockTranscoder(fail_on="normalize", error=TranscodeError("ffmpeg timeout (normalize) after 3600s"))
        with pytest.raises(TranscodeError):
            _processor(processor_kwargs, failing, tmp_path).process(_context())

        _processor(processor_kwargs, MockTranscoder(), tmp_path).process(_context())

        video_asset.refresh_from_db()
        assert video_asset.status == MediaAsset.Status.COMPLETED
        assert video_asset.error_message is None
        assert len(video_asset.processed_urls) == 1

    def test_redelivery_of_completed_asset_is_idempotent(self, video_asset, processor_kwargs, tmp_path):
        processor = _processor(processor_kwargs, MockTranscoder(), tmp_path)
        first = processor.process(_context())
        second = processor.process(_context())

        video_asset.refresh_from_db()
        assert first.processed_urls == second.processed_urls
        assert video_asset.status == MediaAsset.Status.COMPLETED
        assert video_asset.processed_urls == second.processed_urls

    def test_publish_error_does_not_fail_processing(self, video_asset, storage, repo, tmp_path):
        publisher = MockPublisher(error=ConnectionError("broker down"))
        processor = VideoProcessor(
            transcoder=MockTranscoder(),
            temp_dir=str(tmp_path),
            storage=storage,
            repo=repo,
            publisher=publisher,
            processed_bucket="processed-bucket",
        )
        processor.process(_context())

        video_asset.refresh_from_db()
        assert video_asset.status == MediaAsset.Status.COMPLETED

    def test_missing_asset_row_fails_before_transcoding(self, db, storage, processor_kwargs, publisher, tmp_path):
        storage.put("v/orphan.mp4", b"\x00" * 64, tags=TAGS, content_type="video/mp4")
        transcoder = MockTranscoder()
        context = ProcessorContext(bucket=RAW_BUCKET, key="v/orphan.mp4", metadata=dict(TAGS))

        with pytest.raises(AssetNotFoundError):
            _processor(processor_kwargs, transcoder, tmp_path).process(context)

        assert transcoder.calls == []
        assert storage.uploaded == {}
        assert publisher.topics() == ["lesson.video.failed"]
        assert not MediaAsset.objects.filter(s3_key="v/orphan.mp4").exists()
