"""
Tests for the task execution backends.
"""
import json
from unittest import mock

import boto3
from botocore.stub import ANY, Stubber
from django.test import SimpleTestCase, override_settings

from apps.core.backends.celery_backend import CeleryTaskService
from apps.core.backends.lambda_backend import LambdaTaskService
from apps.core.backends.local_backend import LocalTaskService, TASK_HANDLERS, register_handler
from apps.core.task_service import PROCESS_UPLOAD, TaskService

QUEUE_URL = 'https://sqs.us-west-2.amazonaws.com/123456789012/tasks'
NOTIFICATION = {'containerName': 'bucket1', 'objectKey': 'alice/t1'}


class LambdaTaskServiceTest(SimpleTestCase):

    def setUp(self):
        self.client = boto3.client(
            'sqs',
            region_name='us-west-2',
            aws_access_key_id='testing',
            aws_secret_access_key='testing',
        )
        self.stubber = Stubber(self.client)
        self.stubber.activate()
        self.service = LambdaTaskService(sqs_client=self.client, queue_url=QUEUE_URL)

    def tearDown(self):
        self.stubber.deactivate()

    def _expect(self, delay):
        self.stubber.add_response(
            'send_message',
            {'MessageId': 'msg-1'},
            {
                'QueueUrl': QUEUE_URL,
                'MessageBody': ANY,
                'DelaySeconds': delay,
                'MessageAttributes': ANY,
            },
        )

    def test_delay_is_passed(self):
        self._expect(8)
        self.service.send_task(PROCESS_UPLOAD, {'notification': NOTIFICATION, 'attempt': 3}, delay_seconds=8)
        self.stubber.assert_no_pending_responses()

    def test_delay_is_clamped_to_sqs_maximum(self):
        self._expect(900)
        self.service.send_task(PROCESS_UPLOAD, {}, delay_seconds=3600)
        self.stubber.assert_no_pending_responses()

    def test_message_body(self):
        client = mock.Mock()
        client.send_message.return_value = {'MessageId': 'msg-1'}
        service = LambdaTaskService(sqs_client=client, queue_url=QUEUE_URL)

        task_id = service.send_task(PROCESS_UPLOAD, {'notification': NOTIFICATION, 'attempt': 2})

        body = json.loads(client.send_message.call_args.kwargs['MessageBody'])
        self.assertEqual(body['task_id'], task_id)
        self.assertEqual(body['task_name'], PROCESS_UPLOAD)
        self.assertEqual(body['payload'], {'notification': NOTIFICATION, 'attempt': 2})
        attributes = client.send_message.call_args.kwargs['MessageAttributes']
        self.assertEqual(attributes['Attempt'], {'DataType': 'Number', 'StringValue': '2'})

    @override_settings(TASK_QUEUE_URL=None)
    def test_requires_queue_url(self):
        with self.assertRaises(RuntimeError):
            LambdaTaskService(sqs_client=self.client).send_task(PROCESS_UPLOAD, {})


class LocalTaskServiceTest(SimpleTestCase):

    def tearDown(self):
        TASK_HANDLERS.pop('echo', None)

    def test_runs_registered_handler(self):
        calls = []
        register_handler('echo')(lambda **payload: calls.append(payload))

        LocalTaskService().send_task('echo', {'value': 1}, delay_seconds=30)

        self.assertEqual(calls, [{'value': 1}])

    def test_unknown_task(self):
        with self.assertRaises(ValueError):
            LocalTaskService().send_task('echo', {})


class CeleryTaskServiceTest(SimpleTestCase):

    @mock.patch('config.celery.app.send_task')
    def test_countdown(self, send_task):
        task_id = CeleryTaskService().send_task(PROCESS_UPLOAD, {'attempt': 2}, delay_seconds=4)

        send_task.assert_called_once_with(
            'apps.ingestion.tasks.process_upload_notification',
            kwargs={'attempt': 2},
            countdown=4,
            task_id=task_id,
        )

    def test_unmapped_task(self):
        with self.assertRaises(ValueError):
            CeleryTaskService().send_task('nope', {})


class TaskServiceFacadeTest(SimpleTestCase):

    @override_settings(TASK_BACKEND='lambda', TASK_QUEUE_URL=QUEUE_URL)
    @mock.patch('apps.core.backends.lambda_backend.LambdaTaskService.send_task', return_value='id-1')
    def test_redeliver_upload(self, send_task):
        TaskService.redeliver_upload(NOTIFICATION, attempt=2, delay_seconds=2)

        send_task.assert_called_once_with(
            task_name=PROCESS_UPLOAD,
            payload={'notification': NOTIFICATION, 'attempt': 2},
            delay_seconds=2,
        )

    @override_settings(TASK_BACKEND='rq')
    def test_unknown_backend(self):
        with self.assertRaises(ValueError):
            TaskService.redeliver_upload(NOTIFICATION, attempt=2)
