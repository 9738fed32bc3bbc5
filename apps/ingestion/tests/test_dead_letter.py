"""
Tests for dead-letter sinks.
"""
import json
from unittest import mock

import boto3
from botocore.stub import ANY, Stubber
from django.test import TestCase, override_settings

from apps.core.errors import InferenceRejected, MalformedKey
from apps.ingestion.dead_letter import (
    DatabaseDeadLetterSink, SQSDeadLetterSink, get_dead_letter_sink,
)
from apps.ingestion.dtos import PipelineStep, UploadNotification
from apps.ingestion.models import FailedNotification, FailedNotificationStatus

QUEUE_URL = 'https://sqs.us-west-2.amazonaws.com/123456789012/uploads-dlq'


class DatabaseDeadLetterSinkTest(TestCase):

    def test_records_failure(self):
        error = MalformedKey("Object key 'alice+task' has no task segment")
        error.step = PipelineStep.PARSE_KEY

        entry_id = DatabaseDeadLetterSink().send(
            UploadNotification('bucket1', 'alice%2Btask'), error, attempts=1,
        )

        failed = FailedNotification.objects.get(id=entry_id)
        self.assertEqual(failed.container, 'bucket1')
        self.assertEqual(failed.object_key, 'alice%2Btask')
        self.assertEqual(failed.error_code, 'MALFORMED_KEY')
        self.assertEqual(failed.failed_step, 'PARSE_KEY')
        self.assertEqual(failed.status, FailedNotificationStatus.PENDING)

    def test_error_without_step(self):
        DatabaseDeadLetterSink().send(UploadNotification('b', 'k'), MalformedKey(), attempts=1)
        self.assertEqual(FailedNotification.objects.get().failed_step, '')


class SQSDeadLetterSinkTest(TestCase):

    def setUp(self):
        self.client = boto3.client(
            'sqs',
            region_name='us-west-2',
            aws_access_key_id='testing',
            aws_secret_access_key='testing',
        )
        self.stubber = Stubber(self.client)
        self.stubber.activate()

    def tearDown(self):
        self.stubber.deactivate()

    def test_sends_json_message(self):
        self.stubber.add_response(
            'send_message',
            {'MessageId': 'msg-1'},
            {
                'QueueUrl': QUEUE_URL,
                'MessageBody': ANY,
                'MessageAttributes': {
                    'ErrorCode': {'DataType': 'String', 'StringValue': 'INFERENCE_REJECTED'},
                },
            },
        )
        error = InferenceRejected('InvalidImageFormatException')
        error.step = PipelineStep.DETECT_LABELS

        sink = SQSDeadLetterSink(sqs_client=self.client, queue_url=QUEUE_URL)
        message_id = sink.send(UploadNotification('bucket1', 'alice/t1'), error, attempts=1)

        self.assertEqual(message_id, 'msg-1')
        self.stubber.assert_no_pending_responses()

    def test_message_body(self):
        client = mock.Mock()
        client.send_message.return_value = {'MessageId': 'msg-2'}

        sink = SQSDeadLetterSink(sqs_client=client, queue_url=QUEUE_URL)
        sink.send(UploadNotification('bucket1', 'alice/t1'), InferenceRejected('bad'), attempts=2)

        body = json.loads(client.send_message.call_args.kwargs['MessageBody'])
        self.assertEqual(body['notification'], {'containerName': 'bucket1', 'objectKey': 'alice/t1'})
        self.assertEqual(body['error_code'], 'INFERENCE_REJECTED')
        self.assertEqual(body['attempts'], 2)

    def test_requires_queue_url(self):
        with override_settings(DEAD_LETTER_QUEUE_URL=None):
            sink = SQSDeadLetterSink(sqs_client=self.client)
        with self.assertRaises(RuntimeError):
            sink.send(UploadNotification('b', 'k'), MalformedKey(), attempts=1)


class DeadLetterSinkFactoryTest(TestCase):

    @override_settings(DEAD_LETTER_BACKEND='database')
    def test_database(self):
        self.assertIsInstance(get_dead_letter_sink(), DatabaseDeadLetterSink)

    @override_settings(DEAD_LETTER_BACKEND='sqs', DEAD_LETTER_QUEUE_URL=QUEUE_URL)
    def test_sqs(self):
        self.assertIsInstance(get_dead_letter_sink(), SQSDeadLetterSink)

    @override_settings(DEAD_LETTER_BACKEND='kafka')
    def test_unknown(self):
        with self.assertRaises(ValueError):
            get_dead_letter_sink()
