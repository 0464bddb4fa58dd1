from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from studygen.errors import (
    GenerationNotConfiguredError,
    MalformedResponseError,
    NetworkError,
    RateLimitedError,
    ServiceError,
    ServiceUnauthorizedError,
    ServiceUnavailableError,
)
from studygen.generation import GenerationClient, resolve_api_key

URL = 'https://api.groq.com/openai/v1/chat/completions'


def _status_error(cls, status):
    request = httpx.Request('POST', URL)
    response = httpx.Response(status, request=request)
    return cls(f'status {status}', response=response, body=None)


def _client_raising(exc):
    client = GenerationClient(api_key='test-key')
    client._client = MagicMock()
    client._client.chat.completions.create.side_effect = exc
    return client


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=34),
    )


@pytest.mark.unit
def test_resolve_api_key_precedence(monkeypatch):
    monkeypatch.delenv('GENERATION_API_KEY', raising=False)
    monkeypatch.setenv('GROQ_API_KEY', 'groq-key')
    monkeypatch.setenv('OPENAI_API_KEY', 'openai-key')
    assert resolve_api_key() == 'groq-key'
    monkeypatch.setenv('GENERATION_API_KEY', '"quoted-key"')
    assert resolve_api_key() == 'quoted-key'


@pytest.mark.unit
def test_missing_key_is_not_configured(monkeypatch):
    for name in ('GENERATION_API_KEY', 'GROQ_API_KEY', 'OPENAI_API_KEY'):
        monkeypatch.delenv(name, raising=False)
    assert resolve_api_key() is None
    with pytest.raises(GenerationNotConfiguredError):
        GenerationClient()


@pytest.mark.unit
def test_sdk_retries_disabled():
    client = GenerationClient(api_key='test-key')
    assert client._client.max_retries == 0


@pytest.mark.unit
@pytest.mark.parametrize('cls,status,expected', [
    (openai.AuthenticationError, 401, ServiceUnauthorizedError),
    (openai.PermissionDeniedError, 403, ServiceUnauthorizedError),
    (openai.RateLimitError, 429, RateLimitedError),
    (openai.InternalServerError, 500, ServiceUnavailableError),
    (openai.InternalServerError, 503, ServiceUnavailableError),
])
def test_status_errors_mapped(cls, status, expected):
    client = _client_raising(_status_error(cls, status))
    with pytest.raises(expected) as exc:
        client.complete('sys', 'user', max_tokens=10, temperature=0.1)
    assert exc.value.status_code == status


@pytest.mark.unit
def test_other_status_is_generic_service_error():
    client = _client_raising(_status_error(openai.BadRequestError, 400))
    with pytest.raises(ServiceError) as exc:
        client.complete('sys', 'user', max_tokens=10, temperature=0.1)
    assert type(exc.value) is ServiceError
    assert '400' in str(exc.value)


@pytest.mark.unit
@pytest.mark.parametrize('exc', [
    openai.APIConnectionError(request=httpx.Request('POST', URL)),
    openai.APITimeoutError(request=httpx.Request('POST', URL)),
])
def test_transport_failures_are_network_errors(exc):
    client = _client_raising(exc)
    with pytest.raises(NetworkError):
        client.complete('sys', 'user', max_tokens=10, temperature=0.1)


@pytest.mark.unit
def test_called_once_without_retry():
    client = _client_raising(_status_error(openai.RateLimitError, 429))
    with pytest.raises(RateLimitedError):
        client.complete('sys', 'user', max_tokens=10, temperature=0.1)
    assert client._client.chat.completions.create.call_count == 1


@pytest.mark.unit
def test_complete_returns_text_and_sends_messages():
    client = GenerationClient(api_key='test-key', model='test-model')
    client._client = MagicMock()
    client._client.chat.completions.create.return_value = _completion('  [{"question": "Q", "answer": "A"}]  ')
    text = client.complete('system text', 'user text', max_tokens=1200, temperature=0.4, kind='flashcard')
    assert text == '[{"question": "Q", "answer": "A"}]'
    kwargs = client._client.chat.completions.create.call_args.kwargs
    assert kwargs['model'] == 'test-model'
    assert kwargs['max_tokens'] == 1200
    assert kwargs['temperature'] == 0.4
    assert kwargs['messages'][0] == {'role': 'system', 'content': 'system text'}
    assert kwargs['messages'][1] == {'role': 'user', 'content': 'user text'}


@pytest.mark.unit
def test_empty_completion_is_malformed():
    client = GenerationClient(api_key='test-key')
    client._client = MagicMock()
    client._client.chat.completions.create.return_value = _completion('')
    with pytest.raises(MalformedResponseError):
        client.complete('sys', 'user', max_tokens=10, temperature=0.1)
