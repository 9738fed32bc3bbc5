"""
Tests for the landing-zone key convention.
"""
from django.test import SimpleTestCase

from apps.core.errors import MalformedKey
from apps.uploads.keys import (
    ObjectKey, build_object_key, compose_upload_uri, decode_event_key, parse_object_key,
)


class DecodeEventKeyTest(SimpleTestCase):

    def test_plus_is_space(self):
        self.assertEqual(decode_event_key('alice/t1/my+photo.jpg'), 'alice/t1/my photo.jpg')

    def test_percent_escapes(self):
        self.assertEqual(decode_event_key('alice/task%2342'), 'alice/task#42')

    def test_encoded_slash_stays_in_segment(self):
        # %2F decodes to a separator, which parse_object_key then splits on
        self.assertEqual(decode_event_key('alice%2Ftask'), 'alice/task')

    def test_encoded_plus(self):
        self.assertEqual(decode_event_key('alice%2Btask'), 'alice+task')


class ParseObjectKeyTest(SimpleTestCase):

    def test_owner_and_task(self):
        self.assertEqual(parse_object_key('alice/task#42'), ObjectKey('alice', 'task#42'))

    def test_suffix_keeps_remaining_segments(self):
        key = parse_object_key('alice/t1/photos/dog.jpg')
        self.assertEqual(key.owner, 'alice')
        self.assertEqual(key.task_id, 't1')
        self.assertEqual(key.suffix, 'photos/dog.jpg')

    def test_single_segment_is_malformed(self):
        with self.assertRaises(MalformedKey):
            parse_object_key('alice+task')

    def test_empty_owner_is_malformed(self):
        with self.assertRaises(MalformedKey):
            parse_object_key('/t1/photo.jpg')

    def test_empty_task_is_malformed(self):
        with self.assertRaises(MalformedKey):
            parse_object_key('alice//photo.jpg')

    def test_trailing_separator_is_malformed(self):
        with self.assertRaises(MalformedKey):
            parse_object_key('alice/')

    def test_malformed_key_is_terminal(self):
        with self.assertRaises(MalformedKey) as ctx:
            parse_object_key('')
        self.assertFalse(ctx.exception.retriable)
        self.assertEqual(ctx.exception.code, 'MALFORMED_KEY')


class BuildObjectKeyTest(SimpleTestCase):

    def test_round_trips_through_parse(self):
        key = build_object_key('alice', 't1', 'dog.jpg')
        self.assertEqual(key, 'alice/t1/dog.jpg')
        self.assertEqual(parse_object_key(key), ObjectKey('alice', 't1', 'dog.jpg'))

    def test_without_file_name(self):
        self.assertEqual(build_object_key('alice', 't1'), 'alice/t1')

    def test_rejects_separator_in_segment(self):
        with self.assertRaises(ValueError):
            build_object_key('alice/bob', 't1')

    def test_rejects_empty_segment(self):
        with self.assertRaises(ValueError):
            build_object_key('alice', '')


class ComposeUploadUriTest(SimpleTestCase):

    def test_uri(self):
        self.assertEqual(
            compose_upload_uri('bucket1', 'alice/task#42'),
            's3://bucket1/alice/task#42',
        )
