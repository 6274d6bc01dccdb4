"""
Tests for per-request logging: one line with route and request id,
never the body, headers or cookies.
"""
import logging

import pytest

from conftest import make_event
from shared.logging import describe_route, log_event


@pytest.fixture
def http_api_event(sponsor_token):
    event = make_event({'profile': {'bio': 'private'}}, token=sponsor_token, path={'id': 't-1'})
    event['requestContext'] = {
        'requestId': 'req-123',
        'routeKey': 'DELETE /tasks/{id}',
        'http': {'method': 'DELETE'},
    }
    event['rawPath'] = '/tasks/t-1'
    return event


class TestDescribeRoute:

    def test_route_key(self, http_api_event):
        assert describe_route(http_api_event) == 'DELETE /tasks/{id}'

    def test_default_route_falls_back_to_method_and_path(self):
        event = {'requestContext': {'routeKey': '$default', 'http': {'method': 'GET'}}, 'rawPath': '/skills'}

        assert describe_route(event) == 'GET /skills'

    def test_rest_api_event(self):
        event = {'httpMethod': 'POST', 'resource': '/tasks/create', 'path': '/prod/tasks/create'}

        assert describe_route(event) == 'POST /tasks/create'

    def test_bare_event(self):
        assert describe_route({}) == '- -'


class TestLogEvent:

    def test_logs_request_id_route_and_path_parameters(self, http_api_event, caplog):
        with caplog.at_level(logging.INFO, logger='jobboard'):
            log_event(http_api_event)

        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert 'req-123' in message
        assert 'DELETE /tasks/{id}' in message
        assert "'id': 't-1'" in message

    def test_never_logs_tokens_or_bodies(self, http_api_event, sponsor_token, caplog):
        http_api_event['headers']['Cookie'] = f'next-auth.session-token={sponsor_token}'

        with caplog.at_level(logging.INFO, logger='jobboard'):
            log_event(http_api_event)

        assert sponsor_token not in caplog.text
        assert 'private' not in caplog.text
        assert 'Authorization' not in caplog.text

    def test_missing_request_context(self, caplog):
        with caplog.at_level(logging.INFO, logger='jobboard'):
            log_event({'httpMethod': 'GET', 'resource': '/skills'})

        assert caplog.records[0].getMessage() == 'Request - GET /skills pathParameters={}'
