"""Strict candidate schemas for model output.

Each artifact kind has a pydantic model that coerces loosely typed model output
into the closed vocabularies the store expects. A candidate that cannot be
coerced fails validation and is skipped by the normalizer.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

FLASHCARD_DIFFICULTIES = ('easy', 'medium', 'advanced')
QUIZ_DIFFICULTIES = ('easy', 'medium', 'hard')
MIN_OPTIONS = 2
MAX_OPTIONS = 6
DEFAULT_POINTS = 10
DEFAULT_TIME_LIMIT = 60
TIME_LIMIT_RANGE = (10, 300)
POINTS_RANGE = (1, 100)


class ArtifactKind(str, Enum):
    FLASHCARD = 'flashcard'
    QUIZ_QUESTION = 'quiz_question'


def normalize_difficulty(value) -> str:
    """Map a free-form label onto easy|medium|advanced."""
    if not value:
        return 'medium'
    diff = str(value).strip().lower()
    if diff == 'hard':
        return 'advanced'
    if diff in FLASHCARD_DIFFICULTIES:
        return diff
    return 'medium'


def normalize_quiz_difficulty(value) -> str:
    diff = normalize_difficulty(value)
    return 'hard' if diff == 'advanced' else diff


def _as_number(value) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            num = float(value.strip())
        except ValueError:
            return None
        return num if math.isfinite(num) else None
    return None


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _required_text(value) -> str:
    if value is None:
        raise ValueError('field is required')
    text = str(value).strip()
    if not text:
        raise ValueError('field must not be empty')
    return text


def _optional_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_list(value, lower: bool = False) -> List[str]:
    if not isinstance(value, list):
        return []
    out = []
    for v in value:
        if v is None:
            continue
        s = str(v).strip()
        if s:
            out.append(s.lower() if lower else s)
    return out


class GenerationContext(BaseModel):
    subject: str = 'General Studies'
    document_title: str = 'Study Notes'
    tags: List[str] = Field(default_factory=list)
    is_ocr_source: bool = False


class FlashcardCandidate(BaseModel):
    model_config = ConfigDict(extra='ignore')

    question: str
    answer: str
    hint: str = ''
    difficulty: str = 'medium'
    subject: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)

    @field_validator('question', 'answer', mode='before')
    @classmethod
    def _non_empty(cls, v):
        return _required_text(v)

    @field_validator('hint', mode='before')
    @classmethod
    def _hint(cls, v):
        return _optional_text(v) or ''

    @field_validator('difficulty', mode='before')
    @classmethod
    def _difficulty(cls, v):
        return normalize_difficulty(v)

    @field_validator('subject', mode='before')
    @classmethod
    def _subject(cls, v):
        return _optional_text(v)

    @field_validator('tags', 'examples', mode='before')
    @classmethod
    def _lists(cls, v):
        return _string_list(v)


class QuizQuestionCandidate(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    question: str
    options: List[str]
    correct_answer: int = Field(alias='correctAnswer')
    explanation: str = ''
    category: Optional[str] = None
    difficulty: str = 'medium'
    time_limit: int = Field(DEFAULT_TIME_LIMIT, alias='timeLimit')
    points: int = DEFAULT_POINTS
    tags: List[str] = Field(default_factory=list)

    @field_validator('question', mode='before')
    @classmethod
    def _question(cls, v):
        return _required_text(v)

    @field_validator('options', mode='before')
    @classmethod
    def _options(cls, v):
        if not isinstance(v, list):
            raise ValueError('options must be a list')
        # correctAnswer indexes the raw list, so a blank entry cannot be dropped
        if any(o is None or not str(o).strip() for o in v):
            raise ValueError('options must not contain blank entries')
        opts = _string_list(v)
        if not MIN_OPTIONS <= len(opts) <= MAX_OPTIONS:
            raise ValueError(f'options must have between {MIN_OPTIONS} and {MAX_OPTIONS} entries')
        return opts

    @field_validator('correct_answer', mode='before')
    @classmethod
    def _correct_answer(cls, v):
        num = _as_number(v)
        if num is None:
            raise ValueError('correctAnswer must be numeric')
        return int(num)

    @field_validator('explanation', mode='before')
    @classmethod
    def _explanation(cls, v):
        return _optional_text(v) or ''

    @field_validator('category', mode='before')
    @classmethod
    def _category(cls, v):
        return _optional_text(v)

    @field_validator('difficulty', mode='before')
    @classmethod
    def _difficulty(cls, v):
        return normalize_quiz_difficulty(v)

    @field_validator('time_limit', mode='before')
    @classmethod
    def _time_limit(cls, v):
        num = _as_number(v)
        if num is None or int(num) <= 0:
            return DEFAULT_TIME_LIMIT
        return _clamp(int(num), *TIME_LIMIT_RANGE)

    @field_validator('points', mode='before')
    @classmethod
    def _points(cls, v):
        num = _as_number(v)
        if num is None:
            return DEFAULT_POINTS
        return _clamp(int(num), *POINTS_RANGE)

    @field_validator('tags', mode='before')
    @classmethod
    def _tags(cls, v):
        return _string_list(v, lower=True)

    @model_validator(mode='after')
    def _clamp_answer(self):
        # out-of-range indices are pulled into range, not rejected
        self.correct_answer = _clamp(self.correct_answer, 0, len(self.options) - 1)
        return self
