"""
Tests for label inference clients.
"""
from unittest import mock

import boto3
from botocore.exceptions import ReadTimeoutError
from botocore.stub import Stubber
from django.test import SimpleTestCase, override_settings

from apps.core.errors import InferenceRejected, InferenceUnavailable
from apps.intelligence.services import (
    RekognitionLabelClient, StaticLabelClient, get_label_client,
)


class RekognitionLabelClientTest(SimpleTestCase):

    def setUp(self):
        self.client = boto3.client(
            'rekognition',
            region_name='us-west-2',
            aws_access_key_id='testing',
            aws_secret_access_key='testing',
        )
        self.stubber = Stubber(self.client)
        self.stubber.activate()

    def tearDown(self):
        self.stubber.deactivate()

    def test_labels_in_service_order(self):
        self.stubber.add_response(
            'detect_labels',
            {'Labels': [
                {'Name': 'Dog', 'Confidence': 99.1},
                {'Name': 'Outdoor', 'Confidence': 87.0},
            ]},
            {'Image': {'S3Object': {'Bucket': 'bucket1', 'Name': 'alice/task#42'}}},
        )

        labels = RekognitionLabelClient(self.client).detect_labels('bucket1', 'alice/task#42')

        self.assertEqual(labels, ['Dog', 'Outdoor'])
        self.stubber.assert_no_pending_responses()

    def test_limits_are_passed(self):
        self.stubber.add_response(
            'detect_labels',
            {'Labels': []},
            {
                'Image': {'S3Object': {'Bucket': 'bucket1', 'Name': 'alice/t1'}},
                'MaxLabels': 5,
                'MinConfidence': 80.0,
            },
        )

        client = RekognitionLabelClient(self.client, max_labels=5, min_confidence=80.0)
        self.assertEqual(client.detect_labels('bucket1', 'alice/t1'), [])
        self.stubber.assert_no_pending_responses()

    def test_invalid_image_is_rejected(self):
        for code in ('InvalidImageFormatException', 'ImageTooLargeException', 'InvalidS3ObjectException'):
            self.stubber.add_client_error('detect_labels', service_error_code=code, http_status_code=400)
            with self.assertRaises(InferenceRejected):
                RekognitionLabelClient(self.client).detect_labels('bucket1', 'alice/t1')
        self.stubber.assert_no_pending_responses()

    def test_throttling_is_unavailable(self):
        self.stubber.add_client_error(
            'detect_labels',
            service_error_code='ProvisionedThroughputExceededException',
            http_status_code=400,
        )
        with self.assertRaises(InferenceUnavailable) as ctx:
            RekognitionLabelClient(self.client).detect_labels('bucket1', 'alice/t1')
        self.assertTrue(ctx.exception.retriable)
        self.stubber.assert_no_pending_responses()

    def test_invalid_request_is_rejected(self):
        # bucket names shorter than three characters fail client-side validation
        with self.assertRaises(InferenceRejected) as ctx:
            RekognitionLabelClient(self.client).detect_labels('b', 'alice/t1')
        self.assertFalse(ctx.exception.retriable)

    def test_overlong_key_is_rejected(self):
        with self.assertRaises(InferenceRejected):
            RekognitionLabelClient(self.client).detect_labels('bucket1', 'alice/t1/' + 'x' * 1100)

    def test_timeout_is_unavailable(self):
        client = mock.Mock()
        client.detect_labels.side_effect = ReadTimeoutError(endpoint_url='https://rekognition')

        with self.assertRaises(InferenceUnavailable):
            RekognitionLabelClient(client).detect_labels('b', 'k')


class LabelClientFactoryTest(SimpleTestCase):

    @override_settings(LABEL_BACKEND='static', STATIC_LABELS=['Dog'])
    def test_static(self):
        client = get_label_client()
        self.assertIsInstance(client, StaticLabelClient)
        self.assertEqual(client.detect_labels('b', 'k'), ['Dog'])

    @override_settings(LABEL_BACKEND='rekognition', LABEL_MAX_LABELS=10, LABEL_MIN_CONFIDENCE=None)
    def test_rekognition(self):
        client = get_label_client()
        self.assertIsInstance(client, RekognitionLabelClient)
        self.assertEqual(client.max_labels, 10)

    @override_settings(LABEL_BACKEND='nope')
    def test_unknown(self):
        with self.assertRaises(ValueError):
            get_label_client()
