from datetime import timedelta

import jwt
from django.conf import settings
from django.test import TestCase, Client, SimpleTestCase, override_settings

from apps.identity.authorizer import Effect, Unauthorized, api_resource, authorize
from apps.identity.jwt_auth import create_access_token, decode_token, get_principal_from_token

METHOD_ARN = 'arn:aws:execute-api:us-west-2:123456789012:abc123/prod/GET/tasks'


class TokenTest(SimpleTestCase):
    def test_round_trip(self):
        token = create_access_token('alice')
        self.assertEqual(get_principal_from_token(token), 'alice')
        self.assertEqual(decode_token(token)['scope'], 'tasks')

    def test_expired_token(self):
        token = create_access_token('alice', expires_in=timedelta(seconds=-1))
        self.assertIsNone(decode_token(token))

    def test_wrong_secret(self):
        token = jwt.encode({'sub': 'alice', 'iss': settings.TOKEN_ISSUER, 'exp': 9999999999}, 'other', algorithm='HS256')
        self.assertIsNone(get_principal_from_token(token))

    def test_wrong_issuer(self):
        token = jwt.encode({'sub': 'alice', 'iss': 'someone-else', 'exp': 9999999999}, settings.JWT_SECRET, algorithm='HS256')
        self.assertIsNone(get_principal_from_token(token))

    def test_garbage(self):
        self.assertIsNone(get_principal_from_token('not-a-jwt'))


class AuthorizerTest(SimpleTestCase):
    def test_allow_policy(self):
        result = authorize(f"Bearer {create_access_token('alice')}", METHOD_ARN)
        policy = result.to_policy()

        self.assertTrue(result.allowed)
        self.assertEqual(policy['principalId'], 'alice')
        statement = policy['policyDocument']['Statement'][0]
        self.assertEqual(statement['Effect'], 'Allow')
        self.assertEqual(statement['Action'], 'execute-api:Invoke')
        self.assertEqual(statement['Resource'], 'arn:aws:execute-api:us-west-2:123456789012:abc123/prod/*')
        self.assertEqual(policy['context']['principalId'], 'alice')
        self.assertIn('issuedAt', policy['context'])

    def test_expired_token_is_denied(self):
        token = create_access_token('alice', expires_in=timedelta(seconds=-1))
        result = authorize(f"Bearer {token}", METHOD_ARN)
        policy = result.to_policy()

        self.assertIs(result.effect, Effect.DENY)
        self.assertEqual(policy['policyDocument']['Statement'][0]['Effect'], 'Deny')
        self.assertNotIn('context', policy)

    def test_missing_header_is_unauthorized(self):
        with self.assertRaises(Unauthorized) as ctx:
            authorize(None, METHOD_ARN)
        self.assertEqual(str(ctx.exception), 'Unauthorized')

    def test_non_bearer_scheme_is_unauthorized(self):
        with self.assertRaises(Unauthorized):
            authorize('Basic YWxpY2U6cHc=', METHOD_ARN)

    def test_empty_bearer_is_unauthorized(self):
        with self.assertRaises(Unauthorized):
            authorize('Bearer ', METHOD_ARN)

    def test_api_resource(self):
        self.assertEqual(api_resource('arn:aws:execute-api:r:1:api/stage'), 'arn:aws:execute-api:r:1:api/stage/*')


class TokenAPITest(TestCase):
    def setUp(self):
        self.client = Client()

    def test_issue_token(self):
        response = self.client.post('/token', data={'username': ' alice '}, content_type='application/json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'text/plain')
        self.assertEqual(get_principal_from_token(response.content.decode()), 'alice')

    def test_username_with_separator_rejected(self):
        response = self.client.post('/token', data={'username': 'al/ice'}, content_type='application/json')
        self.assertEqual(response.status_code, 400)

    @override_settings(TOKEN_EXPIRE_MINUTES=1)
    def test_token_expiry_setting(self):
        response = self.client.post('/token', data={'username': 'alice'}, content_type='application/json')
        payload = decode_token(response.content.decode())
        self.assertEqual(payload['exp'] - payload['iat'], 60)
