"""Pipeline subpackage: document state, persistence, dedup and orchestration"""

from .models import (
    GenerationStatus,
    GenerationState,
    Document,
    Flashcard,
    QuizQuestion,
    GenerationRequest,
    GenerationOutcome,
)
from .store import DocumentStore, artifact_key
from .dedup import DeduplicationFilter, DeduplicationResult
from .worker import GenerationWorkerPool
from .orchestrator import GenerationOrchestrator, build_context, build_artifacts, resolve_subject

__all__ = [
    'GenerationStatus',
    'GenerationState',
    'Document',
    'Flashcard',
    'QuizQuestion',
    'GenerationRequest',
    'GenerationOutcome',
    'DocumentStore',
    'artifact_key',
    'DeduplicationFilter',
    'DeduplicationResult',
    'GenerationWorkerPool',
    'GenerationOrchestrator',
    'build_context',
    'build_artifacts',
    'resolve_subject',
]
