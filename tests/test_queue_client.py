import pytest
from botocore.exceptions import ClientError

from libs.queue import QueueUnavailableError, SQSQueueClient
from src.infrastructure.media.sqs_adapter import MediaSQSAdapter


class MockSQS:
    def __init__(self, receive_error=None):
        self.receive_error = receive_error
        self.receive_kwargs = None
        self.deleted = []

    def get_queue_url(self, QueueName):
        return {"QueueUrl": f"https://sqs.test/123/{QueueName}"}

    def receive_message(self, **kwargs):
        if self.receive_error:
            raise self.receive_error
        self.receive_kwargs = kwargs
        return {"Messages": [{"MessageId": "m1", "ReceiptHandle": "rh1", "Body": "{}"}]}

    def delete_message(self, QueueUrl, ReceiptHandle):
        self.deleted.append((QueueUrl, ReceiptHandle))


@pytest.fixture
def client():
    c = SQSQueueClient(region_name="us-east-1")
    c.sqs = MockSQS()
    return c


class TestSQSQueueClient:
    def test_receive_batch_is_clamped(self, client):
        queue = MediaSQSAdapter(client, "media-uploads")
        messages = queue.receive_messages(max_messages=50, wait_time_seconds=99)

        assert [m["ReceiptHandle"] for m in messages] == ["rh1"]
        assert client.sqs.receive_kwargs["MaxNumberOfMessages"] == 10
        assert client.sqs.receive_kwargs["WaitTimeSeconds"] == 20
        assert client.sqs.receive_kwargs["QueueUrl"].endswith("/media-uploads")

    def test_delete(self, client):
        assert MediaSQSAdapter(client, "media-uploads").delete_message("rh1") is True
        assert client.sqs.deleted == [("https://sqs.test/123/media-uploads", "rh1")]

    def test_expired_credentials_raise_queue_unavailable(self, client):
        client.sqs.receive_error = ClientError({"Error": {"Code": "ExpiredToken", "Message": "expired"}}, "ReceiveMessage")
        with pytest.raises(QueueUnavailableError):
            client.receive_messages("media-uploads")

    def test_other_errors_propagate(self, client):
        client.sqs.receive_error = ClientError({"Error": {"Code": "InternalError", "Message": "x"}}, "ReceiveMessage")
        with pytest.raises(ClientError):
            client.receive_messages("media-uploads")
