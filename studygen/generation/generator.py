"""Generation request builder + adapter.

Turns extracted text into a validated list of candidate artifacts:
length gate, truncation, prompt construction, one service call, JSON
extraction, then normalization.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from studygen.errors import InsufficientContentError, EmptyResultError, GenerationNotConfiguredError
from studygen.utils import get_logger
from .client import GenerationClient, resolve_api_key
from .json_parser import parse_candidates
from .normalizer import normalize_candidates, Candidate
from .prompts import build_prompt
from .schemas import ArtifactKind, GenerationContext

LOG = get_logger()

GENERATION_MAX_ITEMS = int(os.getenv('GENERATION_MAX_ITEMS', '50'))


@dataclass(frozen=True)
class KindSettings:
    min_chars: int
    max_chars: int
    max_tokens: int
    temperature: float


KIND_SETTINGS: Dict[ArtifactKind, KindSettings] = {
    ArtifactKind.FLASHCARD: KindSettings(
        min_chars=60,
        max_chars=int(os.getenv('FLASHCARD_MAX_CONTENT_CHARS', '10000')),
        max_tokens=int(os.getenv('FLASHCARD_MAX_TOKENS', '1200')),
        temperature=float(os.getenv('FLASHCARD_TEMPERATURE', '0.4')),
    ),
    ArtifactKind.QUIZ_QUESTION: KindSettings(
        min_chars=100,
        max_chars=int(os.getenv('QUIZ_MAX_CONTENT_CHARS', '15000')),
        max_tokens=int(os.getenv('QUIZ_MAX_TOKENS', '4000')),
        temperature=float(os.getenv('QUIZ_TEMPERATURE', '0.7')),
    ),
}


def clamp_max_items(value: Optional[int], default: int = 6) -> int:
    if value is None:
        return default
    try:
        num = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, min(GENERATION_MAX_ITEMS, num))


@dataclass
class GenerationResult:
    items: List[Candidate] = field(default_factory=list)
    skipped_count: int = 0
    candidate_count: int = 0


class ArtifactGenerator:
    def __init__(self, client: Optional[GenerationClient] = None):
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or resolve_api_key() is not None

    @property
    def client(self) -> GenerationClient:
        if self._client is None:
            if resolve_api_key() is None:
                raise GenerationNotConfiguredError()
            self._client = GenerationClient.get_instance()
        return self._client

    def generate(self, text: str, kind: ArtifactKind, max_items: int, context: GenerationContext, request_id: str = None) -> GenerationResult:
        kind = ArtifactKind(kind)
        settings = KIND_SETTINGS[kind]
        content = (text or '').strip()
        if len(content) < settings.min_chars:
            raise InsufficientContentError(
                f'Document content is too short to generate study items ({len(content)} characters, minimum {settings.min_chars})'
            )
        if len(content) > settings.max_chars:
            LOG.info('content_truncated', extra={'kind': kind.value, 'original_length': len(content), 'max_chars': settings.max_chars})
            content = content[:settings.max_chars]

        system_prompt, user_prompt = build_prompt(kind, content, context, max_items)
        raw = self.client.complete(
            system_prompt,
            user_prompt,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            request_id=request_id,
            kind=kind.value,
        )
        candidates = parse_candidates(raw)
        normalized = normalize_candidates(candidates, kind, context.subject, max_items)
        if not normalized.items:
            raise EmptyResultError()
        LOG.info('candidates_generated', extra={
            'kind': kind.value,
            'candidates': len(candidates),
            'valid': len(normalized.items),
            'skipped': normalized.skipped,
        })
        return GenerationResult(items=normalized.items, skipped_count=normalized.skipped, candidate_count=len(candidates))
