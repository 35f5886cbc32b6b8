"""
Handler outcome + 워커 루프 삭제 정책
"""
import json

import pytest

from apps.support.media.models import MediaAsset
from apps.worker.media_worker.sqs_main import MediaWorker
from libs.observability.shutdown import request_shutdown, reset_shutdown_state
from libs.queue import QueueUnavailableError
from src.application.media.event_parser import S3EventParser
from src.application.media.factory import ProcessorFactory
from src.application.media.handler import ProcessMediaMessageHandler
from src.application.ports.idempotency import IIdempotency
from src.infrastructure.media.processors import AvatarProcessor, VideoProcessor

from .conftest import MockQueue, MockTranscoder, make_image_bytes, s3_notification, sqs_message


class MockLock(IIdempotency):
    def __init__(self, held=()):
        self.held = set(held)
        self.released = []

    def acquire_lock(self, job_id):
        return job_id not in self.held

    def release_lock(self, job_id):
        self.released.append(job_id)


@pytest.fixture(autouse=True)
def _reset_shutdown():
    reset_shutdown_state()
    yield
    reset_shutdown_state()


@pytest.fixture
def transcoder():
    return MockTranscoder()


@pytest.fixture
def handler(storage, processor_kwargs, transcoder, tmp_path):
    factory = ProcessorFactory([
        AvatarProcessor(**processor_kwargs),
        VideoProcessor(transcoder=transcoder, temp_dir=str(tmp_path), **processor_kwargs),
    ])
    return ProcessMediaMessageHandler(parser=S3EventParser(storage), factory=factory)


@pytest.fixture
def seeded(storage, make_asset):
    storage.put("a/ok.png", make_image_bytes(), tags={"uploadType": "avatar", "userId": "u1"})
    storage.put("v/bad.mp4", b"\x00" * 64, tags={"uploadType": "video", "lessonId": "L1"})
    storage.put("v/nolesson.mp4", b"\x00" * 64, tags={"uploadType": "video"})
    storage.put("x/unknown.bin", b"x", tags={"uploadType": "spreadsheet"})
    make_asset("a/ok.png", "avatar")
    make_asset("v/bad.mp4", "video")
    make_asset("v/nolesson.mp4", "video")


@pytest.mark.django_db
class TestProcessMediaMessageHandler:
    def test_outcomes(self, handler, seeded, transcoder):
        from src.application.media.exceptions import TranscodeError

        assert handler.handle(s3_notification("a/ok.png")) == "ok"
        assert handler.handle("not json") == "skip:parse"
        assert handler.handle(s3_notification("x/unknown.bin")) == "skip:no_processor"
        assert handler.handle(s3_notification("v/nolesson.mp4")) == "failed"

        transcoder.fail_on = "hls"
        transcoder.error = TranscodeError("ffmpeg exited with code 1 (hls): boom")
        assert handler.handle(s3_notification("v/bad.mp4")) == "failed"

    def test_malformed_record_is_dropped_as_parse_skip(self, handler):
        body = json.dumps({"Records": [{"eventName": "ObjectCreated:Put", "s3": "oops"}]})
        assert handler.handle(body) == "skip:parse"

    def test_missing_asset_row_is_failed(self, handler, storage):
        storage.put("a/orphan.png", make_image_bytes(), tags={"uploadType": "avatar", "userId": "u1"})
        assert handler.handle(s3_notification("a/orphan.png")) == "failed"

    def test_tag_failure_is_failed_not_skip(self, handler, storage, seeded):
        storage.tag_error = RuntimeError("AccessDenied")
        assert handler.handle(s3_notification("a/ok.png")) == "failed"

    def test_lock_held_leaves_message(self, storage, processor_kwargs, seeded):
        lock = MockLock(held={"a/ok.png"})
        handler = ProcessMediaMessageHandler(
            parser=S3EventParser(storage),
            factory=ProcessorFactory([AvatarProcessor(**processor_kwargs)]),
            idempotency=lock,
        )
        assert handler.handle(s3_notification("a/ok.png")) == "skip:lock"
        assert MediaAsset.objects.get(s3_key="a/ok.png").status == MediaAsset.Status.UPLOADING

    def test_lock_released_after_processing(self, storage, processor_kwargs, seeded):
        lock = MockLock()
        handler = ProcessMediaMessageHandler(
            parser=S3EventParser(storage),
            factory=ProcessorFactory([AvatarProcessor(**processor_kwargs)]),
            idempotency=lock,
        )
        assert handler.handle(s3_notification("a/ok.png")) == "ok"
        assert lock.released == ["a/ok.png"]


@pytest.mark.django_db
class TestMediaWorker:
    def test_batch_deletion_policy_and_isolation(self, handler, seeded, transcoder):
        from src.application.media.exceptions import TranscodeError

        transcoder.fail_on = "hls"
        transcoder.error = TranscodeError("ffmpeg exited with code 1 (hls): boom")
        queue = MockQueue([
            sqs_message("not json", "rh-parse"),
            sqs_message(s3_notification("v/bad.mp4"), "rh-video"),
            sqs_message(s3_notification("a/ok.png"), "rh-avatar"),
            sqs_message(s3_notification("x/unknown.bin"), "rh-unknown"),
        ])
        worker = MediaWorker(queue, handler, sleep=lambda _: None)

        counts = worker.run_once()

        assert counts == {"skip:parse": 1, "failed": 1, "ok": 1, "skip:no_processor": 1}
        assert queue.deleted == ["rh-parse", "rh-avatar", "rh-unknown"]
        assert MediaAsset.objects.get(s3_key="a/ok.png").status == MediaAsset.Status.COMPLETED
        assert MediaAsset.objects.get(s3_key="v/bad.mp4").status == MediaAsset.Status.FAILED

    def test_handler_crash_does_not_abort_batch(self, seeded):
        class ExplodingHandler:
            def handle(self, body):
                if "boom" in body:
                    raise RuntimeError("boom")
                return "ok"

        queue = MockQueue([sqs_message("boom", "rh-1"), sqs_message("fine", "rh-2")])
        counts = MediaWorker(queue, ExplodingHandler(), sleep=lambda _: None).run_once()

        assert counts == {"failed": 1, "ok": 1}
        assert queue.deleted == ["rh-2"]

    def test_run_forever_stops_on_shutdown(self, handler):
        queue = MockQueue([])
        delays = []

        def fake_sleep(delay):
            delays.append(delay)
            request_shutdown()

        MediaWorker(queue, handler, poll_interval_seconds=1.0, sleep=fake_sleep).run_forever()
        assert queue.receive_calls == 1
        assert delays == [1.0]

    def test_queue_unavailable_backs_off(self, handler):
        class UnavailableQueue(MockQueue):
            def receive_messages(self, max_messages=10, wait_time_seconds=20):
                raise QueueUnavailableError("ExpiredToken")

        delays = []

        def fake_sleep(delay):
            delays.append(delay)
            request_shutdown()

        MediaWorker(UnavailableQueue(), handler, sleep=fake_sleep).run_forever()
        assert delays == [60.0]
