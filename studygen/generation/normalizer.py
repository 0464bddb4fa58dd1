from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Union

from pydantic import ValidationError

from studygen.errors import ValidationSkipped
from studygen.utils import get_logger
from .schemas import ArtifactKind, FlashcardCandidate, QuizQuestionCandidate

LOG = get_logger()

Candidate = Union[FlashcardCandidate, QuizQuestionCandidate]


@dataclass
class NormalizationResult:
    items: List[Candidate] = field(default_factory=list)
    skipped: int = 0


def normalize_candidate(raw: Any, kind: ArtifactKind, default_subject: str) -> Candidate:
    """Validate a single raw item; raises ``ValidationSkipped`` when it is unusable."""
    if not isinstance(raw, dict):
        raise ValidationSkipped(f'candidate is not an object: {type(raw).__name__}')
    try:
        if kind == ArtifactKind.FLASHCARD:
            card = FlashcardCandidate.model_validate(raw)
            if not card.subject:
                card.subject = default_subject
            return card
        question = QuizQuestionCandidate.model_validate(raw)
        if not question.category:
            question.category = default_subject
        return question
    except ValidationError as e:
        raise ValidationSkipped(str(e)) from e


def normalize_candidates(raw_items: List[Any], kind: ArtifactKind, default_subject: str, max_items: int) -> NormalizationResult:
    result = NormalizationResult()
    for idx, raw in enumerate(raw_items):
        try:
            result.items.append(normalize_candidate(raw, kind, default_subject))
        except ValidationSkipped as e:
            result.skipped += 1
            LOG.info('candidate_skipped', extra={'kind': kind.value, 'index': idx, 'reason': str(e)[:200]})
    result.items = result.items[:max_items]
    return result
