"""
Tests for the DRF exception handler and error body.
"""
from django.db import OperationalError
from django.test import RequestFactory, TestCase
from django_ratelimit.exceptions import Ratelimited
from rest_framework import exceptions as drf_exceptions
from rest_framework.parsers import JSONParser
from rest_framework.request import Request

from apps.core.exceptions import (
    Conflict, DuplicateResource, Internal, InvalidArgument, NotFound,
    custom_exception_handler, ratelimit_view,
)


class ExceptionHandlerTestCase(TestCase):
    """Every failure is rendered with the same envelope."""

    def setUp(self):
        django_request = RequestFactory().post('/api/roles', data={}, content_type='application/json')
        django_request.request_id = 'req-9'
        self.request = Request(django_request, parsers=[JSONParser()])
        self.context = {'request': self.request}

    def handle(self, exc):
        return custom_exception_handler(exc, self.context)

    def test_domain_error_keeps_status_and_code(self):
        response = self.handle(DuplicateResource("Role name already exists"))

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['error'], 'DUPLICATE_RESOURCE')
        self.assertEqual(response.data['message'], 'Role name already exists')
        self.assertEqual(response.data['path'], '/api/roles')
        self.assertEqual(response.data['request_id'], 'req-9')
        self.assertNotIn('details', response.data)

    def test_not_found_lists_missing_ids(self):
        response = self.handle(NotFound("Some roles not found", missing_ids={3, 1}))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['details'], {'missing_ids': [1, 3]})

    def test_conflict_and_invalid_argument_statuses(self):
        self.assertEqual(self.handle(Conflict("stale")).status_code, 409)
        self.assertEqual(self.handle(InvalidArgument("bad")).status_code, 400)

    def test_drf_validation_error(self):
        response = self.handle(drf_exceptions.ValidationError({'name': ['This field is required.']}))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], 'VALIDATION_ERROR')
        self.assertEqual(response.data['details']['name'], ['This field is required.'])

    def test_store_outage_is_503(self):
        with self.assertLogs('apps.core.exceptions', level='ERROR'):
            response = self.handle(OperationalError("connection refused"))

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data['error'], 'SERVICE_UNAVAILABLE')

    def test_unexpected_error_does_not_leak(self):
        with self.assertLogs('apps.core.exceptions', level='ERROR'):
            response = self.handle(RuntimeError("db password is hunter22"))

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data['message'], 'Something went wrong')

    def test_internal_error_is_generic(self):
        with self.assertLogs('apps.core.exceptions', level='ERROR'):
            response = self.handle(Internal("secret detail"))

        self.assertEqual(response.data['message'], 'Something went wrong')

    def test_rate_limited_is_429_with_retry_after(self):
        with self.assertLogs('security', level='WARNING'):
            response = self.handle(Ratelimited())

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response['Retry-After'], '60')
        self.assertEqual(response.data['error'], 'RATE_LIMIT_EXCEEDED')

    def test_ratelimit_view_outside_drf(self):
        request = RequestFactory().get('/api/auth/login')

        with self.assertLogs('security', level='WARNING'):
            response = ratelimit_view(request, Ratelimited())

        self.assertEqual(response.status_code, 429)
        self.assertEqual(response['Retry-After'], '60')
