"""
Unit tests for the retrying request executor.
"""

import logging
import threading
from unittest.mock import Mock, patch

import pytest
import requests

from reverso_client import (
    AuthorizationError,
    RequestCancelledError,
    RequestExecutor,
    RetryPolicy,
    ServiceUnavailableError,
    SignatureAuthenticator,
    TooManyRequestsError,
    TransportError,
    UnknownStatusError
)
from reverso_client.constants import HEADER_CREATED, HEADER_SIGNATURE, HEADER_USERNAME

CREATED = "2024-05-01 12:30:45"


def make_response(status_code, content=b""):
    response = Mock()
    response.status_code = status_code
    response.content = content
    return response


@pytest.fixture
def signed_headers():
    authenticator = SignatureAuthenticator("user", "secret", send_platform_info=False, created=CREATED)
    return authenticator.signed_headers


@pytest.fixture
def executor(signed_headers):
    return RequestExecutor(
        "https://api.example.com",
        signed_headers,
        timeout=5,
        max_retries=2,
        retry_policy=RetryPolicy(initial_delay=1.0, multiplier=2.0, max_delay=10.0)
    )


@patch('reverso_client.executor.time.sleep')
@patch('reverso_client.executor.requests.Session.request')
class TestRequestExecutor:
    """Test attempt counting, classification and backoff."""

    def test_success_single_attempt(self, mock_request, mock_sleep, executor):
        mock_request.return_value = make_response(200, b'{"ok":true}')

        result = executor.execute('GET', '/v1/GetAllTranslationDirections')

        assert result == (200, b'{"ok":true}')
        mock_request.assert_called_once()
        mock_sleep.assert_not_called()

    def test_success_never_consults_retry_policy(self, mock_request, mock_sleep, executor):
        mock_request.return_value = make_response(302, b"")
        executor.retry_policy = Mock(spec=RetryPolicy)

        assert executor.execute('GET', '/x') == (302, b"")
        executor.retry_policy.should_retry.assert_not_called()
        executor.retry_policy.delay_before.assert_not_called()

    def test_body_passed_through_unmodified(self, mock_request, mock_sleep, executor):
        """Test success content is returned byte for byte."""
        content = "Ünïcödé".encode('utf-16') + b"\x00\xff"
        mock_request.return_value = make_response(200, content)

        _, body = executor.execute('POST', '/v1/TranslateText', data=b"abc")

        assert body is content

    def test_request_arguments(self, mock_request, mock_sleep, executor, signed_headers):
        mock_request.return_value = make_response(200)

        executor.execute('POST', 'v1/TranslateText', params={'a': '1'}, data=b"body",
                         headers={'X-Extra': 'yes'})

        args, kwargs = mock_request.call_args
        assert args == ('POST', 'https://api.example.com/v1/TranslateText')
        assert kwargs['params'] == {'a': '1'}
        assert kwargs['data'] == b"body"
        assert kwargs['timeout'] == 5
        assert kwargs['headers'][HEADER_CREATED] == CREATED
        assert kwargs['headers'][HEADER_USERNAME] == "user"
        assert kwargs['headers'][HEADER_SIGNATURE] == signed_headers.signature
        assert kwargs['headers']['X-Extra'] == 'yes'

    def test_429_then_success(self, mock_request, mock_sleep, executor):
        """Test max_retries rate-limited responses followed by success."""
        mock_request.side_effect = [
            make_response(429),
            make_response(429),
            make_response(200, b"done"),
        ]

        assert executor.execute('GET', '/x') == (200, b"done")
        assert mock_request.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_same_headers_on_every_attempt(self, mock_request, mock_sleep, executor):
        mock_request.side_effect = [make_response(503), make_response(200)]

        executor.execute('GET', '/x')

        first, second = mock_request.call_args_list
        assert first.kwargs['headers'] == second.kwargs['headers']

    def test_429_exhausted(self, mock_request, mock_sleep, executor):
        mock_request.return_value = make_response(429, b'{"message":"slow down"}')

        with pytest.raises(TooManyRequestsError, match="slow down") as exc_info:
            executor.execute('GET', '/x')

        assert exc_info.value.status_code == 429
        assert mock_request.call_count == 3

    def test_last_error_surfaces(self, mock_request, mock_sleep, executor):
        """Test the error of the final attempt is raised on exhaustion."""
        mock_request.side_effect = [
            make_response(503),
            make_response(500),
            make_response(502, b"bad gateway"),
        ]

        with pytest.raises(UnknownStatusError) as exc_info:
            executor.execute('GET', '/x')

        assert exc_info.value.status_code == 502
        assert "bad gateway" in str(exc_info.value)

    @pytest.mark.parametrize("max_retries", [0, 2, 10])
    def test_403_single_attempt(self, mock_request, mock_sleep, signed_headers, max_retries):
        executor = RequestExecutor("https://api.example.com", signed_headers, max_retries=max_retries)
        mock_request.return_value = make_response(403)

        with pytest.raises(AuthorizationError):
            executor.execute('GET', '/x')

        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()

    def test_transport_failure_exhausted(self, mock_request, mock_sleep, executor):
        error = requests.ConnectionError("connection refused")
        mock_request.side_effect = error

        with pytest.raises(TransportError) as exc_info:
            executor.execute('GET', '/x')

        assert mock_request.call_count == 3
        assert exc_info.value.should_retry is True
        assert exc_info.value.status_code is None
        assert exc_info.value.__cause__ is error

    def test_timeout_is_retried(self, mock_request, mock_sleep, executor):
        mock_request.side_effect = [requests.Timeout("read timed out"), make_response(200, b"ok")]

        assert executor.execute('GET', '/x') == (200, b"ok")
        assert mock_request.call_count == 2

    def test_truncated_body_exhausted(self, mock_request, mock_sleep, executor):
        """Test a connection dropped while reading the body is retried."""
        error = requests.exceptions.ChunkedEncodingError("Connection broken: IncompleteRead")
        mock_request.side_effect = error

        with pytest.raises(TransportError) as exc_info:
            executor.execute('GET', '/x')

        assert mock_request.call_count == 3
        assert exc_info.value.should_retry is True
        assert exc_info.value.__cause__ is error

    def test_content_decoding_error_is_retried(self, mock_request, mock_sleep, executor):
        mock_request.side_effect = [
            requests.exceptions.ContentDecodingError("bad gzip"),
            make_response(200, b"ok"),
        ]

        assert executor.execute('GET', '/x') == (200, b"ok")
        assert mock_request.call_count == 2

    def test_malformed_request_not_retried(self, mock_request, mock_sleep, executor):
        mock_request.side_effect = requests.exceptions.InvalidURL("bad url")

        with pytest.raises(TransportError) as exc_info:
            executor.execute('GET', '/x')

        assert exc_info.value.should_retry is False
        assert mock_request.call_count == 1

    def test_zero_retries(self, mock_request, mock_sleep, signed_headers):
        executor = RequestExecutor("https://api.example.com", signed_headers, max_retries=0)
        mock_request.return_value = make_response(503)

        with pytest.raises(ServiceUnavailableError):
            executor.execute('GET', '/x')

        assert mock_request.call_count == 1

    def test_cancelled_before_first_attempt(self, mock_request, mock_sleep, executor):
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(RequestCancelledError):
            executor.execute('GET', '/x', cancel_event=cancel_event)

        mock_request.assert_not_called()

    def test_cancelled_during_backoff(self, mock_request, mock_sleep, executor):
        """Test cancellation while waiting aborts without another attempt."""
        mock_request.return_value = make_response(503)
        cancel_event = Mock(spec=threading.Event)
        cancel_event.is_set.return_value = False
        cancel_event.wait.return_value = True

        with pytest.raises(RequestCancelledError):
            executor.execute('GET', '/x', cancel_event=cancel_event)

        assert mock_request.call_count == 1
        cancel_event.wait.assert_called_once_with(1.0)
        mock_sleep.assert_not_called()

    def test_uncancelled_event_waits(self, mock_request, mock_sleep, executor):
        mock_request.side_effect = [make_response(503), make_response(200)]
        cancel_event = Mock(spec=threading.Event)
        cancel_event.is_set.return_value = False
        cancel_event.wait.return_value = False

        assert executor.execute('GET', '/x', cancel_event=cancel_event) == (200, b"")
        assert mock_request.call_count == 2

    def test_logs_each_attempt(self, mock_request, mock_sleep, signed_headers):
        logger = Mock(spec=logging.Logger)
        executor = RequestExecutor("https://api.example.com", signed_headers,
                                   max_retries=1, logger=logger)
        mock_request.side_effect = [make_response(429), make_response(200)]

        executor.execute('GET', '/x')

        extras = [c.kwargs['extra'] for c in logger.log.call_args_list]
        assert {'http_method': 'GET', 'path': '/x', 'attempt': 1, 'status_code': 429} in extras
        assert {'http_method': 'GET', 'path': '/x', 'attempt': 2, 'status_code': 200} in extras

    def test_logging_failure_ignored(self, mock_request, mock_sleep, signed_headers):
        logger = Mock(spec=logging.Logger)
        logger.log.side_effect = RuntimeError("log sink down")
        executor = RequestExecutor("https://api.example.com", signed_headers,
                                   max_retries=1, logger=logger)
        mock_request.side_effect = [make_response(500), make_response(200, b"ok")]

        assert executor.execute('GET', '/x') == (200, b"ok")


class TestRequestExecutorSession:
    """Test session ownership and proxies."""

    @patch('reverso_client.executor.requests.Session.request')
    def test_proxy_string(self, mock_request, signed_headers):
        mock_request.return_value = make_response(200)
        executor = RequestExecutor("https://api.example.com", signed_headers,
                                   proxy="http://proxy:3128")

        executor.execute('GET', '/x')

        assert mock_request.call_args.kwargs['proxies'] == {
            'http': "http://proxy:3128",
            'https': "http://proxy:3128",
        }

    @patch('reverso_client.executor.requests.Session.request')
    def test_proxy_mapping(self, mock_request, signed_headers):
        mock_request.return_value = make_response(200)
        executor = RequestExecutor("https://api.example.com", signed_headers,
                                   proxy={'https': "http://secure:3128"})

        executor.execute('GET', '/x')

        assert mock_request.call_args.kwargs['proxies'] == {'https': "http://secure:3128"}

    @patch('reverso_client.executor.requests.Session.request')
    def test_no_proxy(self, mock_request, signed_headers):
        mock_request.return_value = make_response(200)
        executor = RequestExecutor("https://api.example.com", signed_headers)

        executor.execute('GET', '/x')

        assert mock_request.call_args.kwargs['proxies'] is None

    def test_proxy_leaves_external_session_unchanged(self, signed_headers):
        session = requests.Session()
        session.proxies = {'http': "http://original:8080"}

        RequestExecutor("https://api.example.com", signed_headers,
                        proxy="http://proxy:3128", session=session)

        assert session.proxies == {'http': "http://original:8080"}

    def test_owned_session_closed(self, signed_headers):
        executor = RequestExecutor("https://api.example.com", signed_headers)
        executor.session = Mock()

        with executor:
            pass

        executor.session.close.assert_called_once()

    def test_external_session_left_open(self, signed_headers):
        session = Mock(spec=requests.Session)
        session.proxies = {}
        executor = RequestExecutor("https://api.example.com", signed_headers, session=session)

        executor.close()

        session.close.assert_not_called()
