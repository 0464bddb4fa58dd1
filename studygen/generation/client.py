"""Adapter for the external text-generation service.

Talks to any OpenAI-compatible chat completions endpoint (Groq by default)
through the ``openai`` SDK. The SDK's own retries are disabled: a failed call
is reported once, mapped onto the pipeline's error taxonomy.
"""
from __future__ import annotations

import os
import time
from typing import Optional

import openai
from openai import OpenAI

from studygen.errors import (
    GenerationNotConfiguredError,
    ServiceError,
    ServiceUnauthorizedError,
    RateLimitedError,
    ServiceUnavailableError,
    NetworkError,
    MalformedResponseError,
)
from studygen.utils import get_logger, log_llm_call

LOG = get_logger()

GENERATION_API_BASE = os.getenv('GENERATION_API_BASE', 'https://api.groq.com/openai/v1')
GENERATION_MODEL = os.getenv('GENERATION_MODEL', 'llama-3.3-70b-versatile')
GENERATION_TIMEOUT = float(os.getenv('GENERATION_TIMEOUT', '60'))


def resolve_api_key() -> Optional[str]:
    key = os.getenv('GENERATION_API_KEY') or os.getenv('GROQ_API_KEY') or os.getenv('OPENAI_API_KEY')
    if not key or not key.strip():
        return None
    key = key.strip()
    # quoted values are a common .env mistake
    if len(key) > 1 and key[0] == key[-1] and key[0] in ('"', "'"):
        LOG.warning('generation_api_key_quoted')
        key = key[1:-1].strip()
    return key or None


class GenerationClient:
    _instance = None

    def __init__(self, api_key: str = None, base_url: str = None, model: str = None, timeout: float = None):
        self.api_key = api_key or resolve_api_key()
        if not self.api_key:
            raise GenerationNotConfiguredError()
        self.model = model or GENERATION_MODEL
        self.base_url = base_url or GENERATION_API_BASE
        self.timeout = timeout or GENERATION_TIMEOUT
        self._client = OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout, max_retries=0)
        LOG.info('GenerationClient initialized', extra={'model': self.model, 'base_url': self.base_url})

    @classmethod
    def get_instance(cls) -> 'GenerationClient':
        if cls._instance is None:
            cls._instance = GenerationClient()
        return cls._instance

    def complete(self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float, request_id: str = None, kind: str = None) -> str:
        start = time.time()
        try:
            resp = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': system_prompt},
                    {'role': 'user', 'content': user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            LOG.warning('generation_unauthorized', extra={'status_code': e.status_code})
            raise ServiceUnauthorizedError('Invalid or unauthorized generation API key. Please verify the key is correct and has proper permissions.', e.status_code) from e
        except openai.RateLimitError as e:
            LOG.warning('generation_rate_limited', extra={'status_code': e.status_code})
            raise RateLimitedError(status_code=e.status_code) from e
        except openai.InternalServerError as e:
            LOG.warning('generation_service_unavailable', extra={'status_code': e.status_code})
            raise ServiceUnavailableError(f'Generation service error ({e.status_code}). Please try again in a few moments.', e.status_code) from e
        except openai.APIStatusError as e:
            LOG.warning('generation_api_error', extra={'status_code': e.status_code})
            raise ServiceError(f'Generation service error ({e.status_code}): {e.message}', e.status_code) from e
        except openai.APIConnectionError as e:
            LOG.warning('generation_network_error', extra={'error': str(e)})
            raise NetworkError(f'Network error connecting to generation service: {e}. Please check your internet connection.') from e
        duration_ms = int((time.time() - start) * 1000)
        usage = getattr(resp, 'usage', None)
        log_llm_call(request_id, self.model, getattr(usage, 'prompt_tokens', 0) or 0, getattr(usage, 'completion_tokens', 0) or 0, duration_ms, kind=kind)
        choices = getattr(resp, 'choices', None) or []
        text = choices[0].message.content if choices and choices[0].message else None
        if not text or not text.strip():
            raise MalformedResponseError('Empty response from generation service')
        return text.strip()
