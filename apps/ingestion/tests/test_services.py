"""
Tests for the ingestion retry policy, driven through the local task backend.
"""
from unittest import mock

from django.db import DataError, models
from django.test import TestCase, override_settings

from apps.core.errors import InferenceRejected, InferenceUnavailable, StoreUnavailable
from apps.core.task_service import TaskService
from apps.ingestion import runtime
from apps.ingestion.dead_letter import DatabaseDeadLetterSink
from apps.ingestion.dtos import Outcome, UploadNotification
from apps.ingestion.models import FailedNotification, FailedNotificationStatus, FailureCode
from apps.ingestion.pipeline import IngestionPipeline
from apps.ingestion.services import (
    backoff_delay, handle_notification, notifications_from_s3_event, replay_failed_notification,
)
from apps.todos.backends.database_backend import DatabaseTaskStore
from apps.todos.models import Task

from .fakes import KeyedLabelClient, ScriptedLabelClient

RETRY_SETTINGS = dict(
    TASK_BACKEND='local',
    INGESTION_MAX_ATTEMPTS=3,
    INGESTION_BACKOFF_BASE_SECONDS=2,
    INGESTION_BACKOFF_MAX_SECONDS=900,
)


@override_settings(**RETRY_SETTINGS)
class BackoffDelayTest(TestCase):

    def test_doubles_per_attempt(self):
        self.assertEqual([backoff_delay(n) for n in (1, 2, 3, 4)], [2, 4, 8, 16])

    @override_settings(INGESTION_BACKOFF_BASE_SECONDS=600)
    def test_capped(self):
        self.assertEqual(backoff_delay(1), 600)
        self.assertEqual(backoff_delay(2), 900)
        self.assertEqual(backoff_delay(10), 900)


@override_settings(**RETRY_SETTINGS)
class HandleNotificationTest(TestCase):

    def setUp(self):
        self.task = Task.objects.create(owner='alice', task_id='task#42', title='Walk the dog')
        self.notification = UploadNotification(container='bucket1', object_key='alice/task%2342')

    def tearDown(self):
        runtime.reset()

    def _configure(self, label_client):
        runtime.configure(
            pipeline=IngestionPipeline(store=DatabaseTaskStore(), label_client=label_client),
            dead_letter_sink=DatabaseDeadLetterSink(),
        )
        return label_client

    def test_completed(self):
        self._configure(ScriptedLabelClient(['Dog', 'Outdoor']))

        self.assertEqual(handle_notification(self.notification), Outcome.COMPLETED)

        self.task.refresh_from_db()
        self.assertEqual(self.task.labels, ['Dog', 'Outdoor'])
        self.assertFalse(FailedNotification.objects.exists())

    def test_transient_failure_is_retried_until_success(self):
        labels = self._configure(ScriptedLabelClient(InferenceUnavailable('throttled'), ['Dog']))

        self.assertEqual(handle_notification(self.notification), Outcome.RETRY_SCHEDULED)

        self.assertEqual(len(labels.calls), 2)
        self.task.refresh_from_db()
        self.assertEqual(self.task.labels, ['Dog'])
        self.assertFalse(FailedNotification.objects.exists())

    def test_retry_is_scheduled_with_backoff(self):
        self._configure(ScriptedLabelClient(InferenceUnavailable('throttled')))

        with mock.patch.object(TaskService, 'redeliver_upload') as redeliver:
            outcome = handle_notification(self.notification, attempt=2)

        self.assertEqual(outcome, Outcome.RETRY_SCHEDULED)
        redeliver.assert_called_once_with(
            {'containerName': 'bucket1', 'objectKey': 'alice/task%2342'},
            attempt=3,
            delay_seconds=4,
        )

    def test_exhausted_attempts_are_dead_lettered(self):
        labels = self._configure(ScriptedLabelClient(InferenceUnavailable('throttled')))

        handle_notification(self.notification)

        self.assertEqual(len(labels.calls), 3)
        failed = FailedNotification.objects.get()
        self.assertEqual(failed.error_code, FailureCode.INFERENCE_UNAVAILABLE)
        self.assertEqual(failed.failed_step, 'DETECT_LABELS')
        self.assertEqual(failed.attempts, 3)
        self.assertEqual(failed.object_key, 'alice/task%2342')
        self.task.refresh_from_db()
        self.assertEqual(self.task.upload, 's3://bucket1/alice/task#42')
        self.assertIsNone(self.task.labels)

    def test_last_attempt_is_dead_lettered(self):
        self._configure(ScriptedLabelClient(InferenceUnavailable('throttled')))

        with mock.patch.object(TaskService, 'redeliver_upload') as redeliver:
            outcome = handle_notification(self.notification, attempt=3)

        self.assertEqual(outcome, Outcome.DEAD_LETTERED)
        redeliver.assert_not_called()

    def test_terminal_failure_is_not_retried(self):
        labels = self._configure(ScriptedLabelClient(InferenceRejected('ImageTooLargeException')))

        self.assertEqual(handle_notification(self.notification), Outcome.DEAD_LETTERED)

        self.assertEqual(len(labels.calls), 1)
        failed = FailedNotification.objects.get()
        self.assertEqual(failed.error_code, FailureCode.INFERENCE_REJECTED)
        self.assertEqual(failed.attempts, 1)

    def test_missing_task_is_dead_lettered(self):
        self.task.delete()
        labels = self._configure(ScriptedLabelClient(['Dog']))

        self.assertEqual(handle_notification(self.notification), Outcome.DEAD_LETTERED)

        self.assertEqual(labels.calls, [])
        self.assertFalse(Task.objects.exists())
        self.assertEqual(FailedNotification.objects.get().error_code, FailureCode.RECORD_NOT_FOUND)

    def test_malformed_key_is_dead_lettered(self):
        self._configure(ScriptedLabelClient(['Dog']))

        outcome = handle_notification(UploadNotification('bucket1', 'alice%2Btask'))

        self.assertEqual(outcome, Outcome.DEAD_LETTERED)
        failed = FailedNotification.objects.get()
        self.assertEqual(failed.error_code, FailureCode.MALFORMED_KEY)
        self.assertEqual(failed.failed_step, 'PARSE_KEY')

    def test_store_outage_is_retried(self):
        self._configure(ScriptedLabelClient(['Dog']))
        store = runtime.get_pipeline().store
        real_update = store.update_field
        failures = [StoreUnavailable('timeout')]

        def flaky_update(*args):
            if failures:
                raise failures.pop()
            return real_update(*args)

        with mock.patch.object(store, 'update_field', side_effect=flaky_update):
            self.assertEqual(handle_notification(self.notification), Outcome.RETRY_SCHEDULED)

        self.task.refresh_from_db()
        self.assertEqual(self.task.labels, ['Dog'])

    def test_long_key_is_recorded(self):
        labels = self._configure(ScriptedLabelClient(['Dog']))
        suffix = '%20' * 1024

        outcome = handle_notification(UploadNotification('bucket1', 'alice/task%2342/' + suffix))

        self.assertEqual(outcome, Outcome.COMPLETED)
        self.task.refresh_from_db()
        self.assertEqual(self.task.upload, 's3://bucket1/alice/task#42/' + ' ' * 1024)
        self.assertEqual(len(labels.calls), 1)

    def test_store_refusal_is_dead_lettered_with_full_key(self):
        labels = self._configure(ScriptedLabelClient(['Dog']))
        object_key = 'alice/task%2342/' + 'x' * 1100

        with mock.patch('django.db.models.query.QuerySet.update', side_effect=DataError('value too long')):
            outcome = handle_notification(UploadNotification('bucket1', object_key))

        self.assertEqual(outcome, Outcome.DEAD_LETTERED)
        self.assertEqual(labels.calls, [])
        self.assertIsInstance(FailedNotification._meta.get_field('object_key'), models.TextField)
        failed = FailedNotification.objects.get()
        self.assertEqual(failed.error_code, FailureCode.STORE_REJECTED)
        self.assertEqual(failed.failed_step, 'RECORD_UPLOAD')
        self.assertEqual(failed.attempts, 1)
        self.assertEqual(failed.object_key, object_key)

    def test_unclassified_errors_propagate(self):
        self._configure(ScriptedLabelClient(RuntimeError('bug')))

        with self.assertRaises(RuntimeError):
            handle_notification(self.notification)
        self.assertFalse(FailedNotification.objects.exists())

    def test_interleaved_notifications_do_not_mix(self):
        other = Task.objects.create(owner='bob', task_id='t7', title='Feed the cat')
        self._configure(KeyedLabelClient({
            'alice/task#42': ['Dog'],
            'bob/t7/cat.png': ['Cat', 'Pet'],
        }))
        second = UploadNotification(container='bucket1', object_key='bob/t7/cat.png')

        for notification in (self.notification, second, self.notification, second):
            self.assertEqual(handle_notification(notification), Outcome.COMPLETED)

        self.task.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(self.task.labels, ['Dog'])
        self.assertEqual(other.labels, ['Cat', 'Pet'])
        self.assertEqual(other.upload, 's3://bucket1/bob/t7/cat.png')


class S3EventTest(TestCase):

    def test_object_created_records(self):
        event = {'Records': [
            {
                'eventSource': 'aws:s3',
                'eventName': 'ObjectCreated:Put',
                's3': {'bucket': {'name': 'bucket1'}, 'object': {'key': 'alice/task%2342'}},
            },
            {
                'eventSource': 'aws:s3',
                'eventName': 'ObjectRemoved:Delete',
                's3': {'bucket': {'name': 'bucket1'}, 'object': {'key': 'alice/old'}},
            },
            {'eventSource': 'aws:sqs', 'body': '{}'},
            {
                'eventSource': 'aws:s3',
                'eventName': 'ObjectCreated:CompleteMultipartUpload',
                's3': {'bucket': {'name': 'bucket1'}, 'object': {'key': 'bob/t7/cat.png'}},
            },
        ]}

        self.assertEqual(notifications_from_s3_event(event), [
            UploadNotification('bucket1', 'alice/task%2342'),
            UploadNotification('bucket1', 'bob/t7/cat.png'),
        ])

    def test_empty_event(self):
        self.assertEqual(notifications_from_s3_event({}), [])

    def test_payload_form(self):
        notification = UploadNotification.from_payload({'containerName': 'b', 'objectKey': 'k'})
        self.assertEqual(notification.to_payload(), {'containerName': 'b', 'objectKey': 'k'})
        with self.assertRaises(ValueError):
            UploadNotification.from_payload({'containerName': 'b'})


@override_settings(**RETRY_SETTINGS)
class ReplayFailedNotificationTest(TestCase):

    def tearDown(self):
        runtime.reset()

    def test_replay_after_fix(self):
        task = Task.objects.create(owner='alice', task_id='t1', title='Walk the dog')
        failed = FailedNotification.objects.create(
            container='bucket1',
            object_key='alice/t1',
            error_code=FailureCode.INFERENCE_UNAVAILABLE,
            attempts=3,
        )
        runtime.configure(
            pipeline=IngestionPipeline(DatabaseTaskStore(), ScriptedLabelClient(['Dog'])),
            dead_letter_sink=DatabaseDeadLetterSink(),
        )

        self.assertEqual(replay_failed_notification(failed), Outcome.COMPLETED)

        failed.refresh_from_db()
        task.refresh_from_db()
        self.assertEqual(failed.status, FailedNotificationStatus.REPLAYED)
        self.assertEqual(failed.replay_outcome, 'COMPLETED')
        self.assertIsNotNone(failed.replayed_at)
        self.assertEqual(task.labels, ['Dog'])
