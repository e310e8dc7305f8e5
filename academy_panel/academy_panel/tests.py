"""
Тесты инфраструктуры проекта: health checks, формат ошибок API,
маскирование логов и фильтр событий Sentry.
"""
import logging
import os
from unittest.mock import patch

from django.http import Http404
from django.test import SimpleTestCase, TestCase
from rest_framework.exceptions import NotFound, ValidationError

from .exceptions import _first_message, api_exception_handler
from .safe_logging import REDACTED, RedactingFilter, redact
from .sentry_config import before_send_callback, init_sentry


class HealthCheckTests(TestCase):
    def test_health(self):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['status'], 'healthy')
        self.assertEqual(data['checks'], {'database': 'ok', 'cache': 'ok', 'settings': 'ok'})

    def test_ready_and_live(self):
        self.assertEqual(self.client.get('/api/health/ready/').json(), {'ready': True})
        self.assertTrue(self.client.get('/api/health/live/').json()['alive'])

    def test_database_failure(self):
        with patch('academy_panel.health._check_database', side_effect=RuntimeError('db down')):
            response = self.client.get('/api/health/')
            self.assertEqual(response.status_code, 500)
            self.assertEqual(response.json()['checks']['database'], 'error: db down')
            self.assertEqual(self.client.get('/api/health/ready/').status_code, 503)


class ExceptionHandlerTests(SimpleTestCase):
    def test_first_message(self):
        self.assertEqual(_first_message({'amount': ['Must be positive']}), 'amount: Must be positive')
        self.assertEqual(_first_message({'non_field_errors': ['Already recorded']}), 'Already recorded')
        self.assertEqual(_first_message({'detail': 'Not found.'}), 'Not found.')
        self.assertEqual(_first_message([]), '')

    def test_error_key_added(self):
        response = api_exception_handler(ValidationError({'phone': ['Phone number must be valid']}), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], 'phone: Phone number must be valid')
        self.assertIn('phone', response.data)

    def test_list_payload_wrapped(self):
        response = api_exception_handler(ValidationError(['Bad request']), {})
        self.assertEqual(response.data, {'error': 'Bad request', 'errors': ['Bad request']})

    def test_not_found(self):
        response = api_exception_handler(NotFound(), {})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['error'], 'Not found.')

    def test_unhandled_exception_passes_through(self):
        self.assertIsNone(api_exception_handler(RuntimeError('boom'), {}))


class RedactionTests(SimpleTestCase):
    def test_redact(self):
        self.assertEqual(redact('password=hunter2&next=/'), f'password={REDACTED}&next=/')
        self.assertEqual(redact('Authorization: Bearer abc.def'), f'Authorization: Bearer {REDACTED}')
        self.assertEqual(redact('nothing here'), 'nothing here')
        self.assertEqual(redact(''), '')

    def test_filter_rewrites_record(self):
        record = logging.LogRecord('test', logging.INFO, __file__, 1, 'login with token=%s', ('abc123',), None)
        self.assertTrue(RedactingFilter().filter(record))
        self.assertEqual(record.getMessage(), f'login with token={REDACTED}')


class SentryConfigTests(SimpleTestCase):
    def test_disabled_without_dsn(self):
        with patch.dict(os.environ, {'SENTRY_DSN': ''}):
            self.assertFalse(init_sentry())

    def test_not_found_dropped(self):
        event = {'message': 'missing'}
        self.assertIsNone(before_send_callback(event, {'exc_info': (Http404, Http404(), None)}))

    def test_sensitive_request_data_scrubbed(self):
        event = {
            'request': {
                'data': {'email': 'a@b.io', 'password': 'hunter2'},
                'headers': {'Authorization': 'Bearer abc'},
            }
        }
        result = before_send_callback(event, {})
        self.assertEqual(result['request']['data'], {'email': 'a@b.io', 'password': REDACTED})
        self.assertEqual(result['request']['headers']['Authorization'], REDACTED)
