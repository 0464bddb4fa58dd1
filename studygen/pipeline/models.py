from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from studygen.generation import ArtifactKind


def _now() -> int:
    return int(time.time())


def _new_id() -> str:
    return str(uuid.uuid4())


class GenerationStatus(str, Enum):
    PENDING = 'pending'
    QUEUED = 'queued'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'


class GenerationState(BaseModel):
    status: GenerationStatus = GenerationStatus.PENDING
    last_generated_count: int = 0
    last_generated_at: Optional[int] = None
    last_error: Optional[str] = None
    last_kind: Optional[ArtifactKind] = None


class Document(BaseModel):
    id: str = Field(default_factory=_new_id)
    owner_id: str
    title: str = ''
    file_ref: str
    media_type: str = ''
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    file_size: int = 0
    created_at: int = Field(default_factory=_now)
    generation: GenerationState = Field(default_factory=GenerationState)


class Flashcard(BaseModel):
    id: str = Field(default_factory=_new_id)
    owner_id: str
    source_document_id: str
    question: str
    answer: str
    hint: str = ''
    difficulty: str = 'medium'
    subject: str
    category: str = 'General'
    tags: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)
    source_title: Optional[str] = None
    created_at: int = Field(default_factory=_now)

    @property
    def kind(self) -> ArtifactKind:
        return ArtifactKind.FLASHCARD


class QuizQuestion(BaseModel):
    id: str = Field(default_factory=_new_id)
    owner_id: str
    source_document_id: str
    question: str
    options: List[str]
    correct_answer: int
    explanation: str = ''
    category: str
    subject: str
    difficulty: str = 'medium'
    time_limit: int = 60
    points: int = 10
    tags: List[str] = Field(default_factory=list)
    created_at: int = Field(default_factory=_now)

    @property
    def kind(self) -> ArtifactKind:
        return ArtifactKind.QUIZ_QUESTION


ARTIFACT_MODELS = {
    ArtifactKind.FLASHCARD: Flashcard,
    ArtifactKind.QUIZ_QUESTION: QuizQuestion,
}


class GenerationRequest(BaseModel):
    document_id: str
    kind: ArtifactKind = ArtifactKind.FLASHCARD
    max_items: int = 6
    options: Dict[str, Any] = Field(default_factory=dict)
    request_id: Optional[str] = None
    requested_at: int = Field(default_factory=_now)


class GenerationOutcome(BaseModel):
    document_id: str
    kind: ArtifactKind
    status: GenerationStatus
    created_count: int = 0
    duplicate_count: int = 0
    skipped_count: int = 0
    candidate_count: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None
