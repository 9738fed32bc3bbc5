"""
Integration tests for the tasks API.
"""
import json
from unittest import mock

from django.db import DataError
from django.test import TestCase, Client

from apps.identity.jwt_auth import create_access_token
from apps.todos.models import Task


class TaskAPITest(TestCase):
    """Test task API endpoints."""

    def setUp(self):
        self.client = Client()
        self.auth = self._auth('alice')

    def _auth(self, principal):
        return {'HTTP_AUTHORIZATION': f"Bearer {create_access_token(principal)}"}

    def _create(self, title='Walk the dog', **auth):
        return self.client.post(
            '/tasks',
            data=json.dumps({'title': title}),
            content_type='application/json',
            **(auth or self.auth),
        )

    def test_requires_auth(self):
        response = self.client.get('/tasks')
        self.assertEqual(response.status_code, 401)

    def test_invalid_token(self):
        response = self.client.get('/tasks', HTTP_AUTHORIZATION='Bearer not-a-token')
        self.assertEqual(response.status_code, 401)

    def test_create_task(self):
        response = self._create()

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['owner'], 'alice')
        self.assertEqual(data['title'], 'Walk the dog')
        self.assertIsNone(data['upload'])
        self.assertIsNone(data['labels'])

    def test_blank_title_is_400(self):
        response = self._create(title='  ')
        self.assertEqual(response.status_code, 400)

    def test_refused_value_is_400(self):
        with mock.patch('django.db.models.query.QuerySet.create', side_effect=DataError('value too long')):
            response = self._create()
        self.assertEqual(response.status_code, 400)

    def test_list_only_own_tasks(self):
        self._create()
        self._create(title='Other', **self._auth('bob'))

        response = self.client.get('/tasks', **self.auth)

        self.assertEqual(response.status_code, 200)
        self.assertEqual([t['title'] for t in response.json()], ['Walk the dog'])

    def test_get_task_with_labels(self):
        task_id = self._create().json()['task_id']
        Task.objects.filter(task_id=task_id).update(upload='s3://b/k', labels=['Dog'])

        response = self.client.get(f'/tasks/{task_id}', **self.auth)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['labels'], ['Dog'])

    def test_get_other_owner_is_404(self):
        task_id = self._create().json()['task_id']
        response = self.client.get(f'/tasks/{task_id}', **self._auth('bob'))
        self.assertEqual(response.status_code, 404)

    def test_delete_task(self):
        task_id = self._create().json()['task_id']

        response = self.client.delete(f'/tasks/{task_id}', **self.auth)
        self.assertEqual(response.status_code, 204)

        response = self.client.delete(f'/tasks/{task_id}', **self.auth)
        self.assertEqual(response.status_code, 404)
