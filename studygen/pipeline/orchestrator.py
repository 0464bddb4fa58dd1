"""Generation orchestrator and document status state machine.

pending -> queued -> processing -> completed | failed

``enqueue`` runs on the request path: it marks the document queued and hands
the request to the worker pool. ``run`` executes one request in the
background: extraction, generation, dedup and persistence strictly in
sequence, then a terminal status and a notification. Store and notification
I/O never runs on the event loop; it goes through ``asyncio.to_thread``.
Runs for one document are serialised; a request that arrives while another
run owns the document waits behind it without touching the status.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional

from studygen.errors import GenerationError, StoreError, DocumentNotFoundError, GenerationNotConfiguredError
from studygen.extraction import ContentExtractor, ExtractedContent
from studygen.generation import ArtifactGenerator, ArtifactKind, GenerationContext, clamp_max_items
from studygen.notifications import (
    NotificationEmitter,
    FLASHCARDS_CREATED,
    QUIZ_QUESTIONS_CREATED,
    GENERATION_NO_NEW_ITEMS,
    DOCUMENT_PROCESS_FAILED,
)
from studygen.utils import get_logger, log_status_change, log_generation_run
from .dedup import DeduplicationFilter
from .models import (
    Document,
    Flashcard,
    QuizQuestion,
    GenerationOutcome,
    GenerationRequest,
    GenerationStatus,
)
from .store import DocumentStore, Artifact
from .worker import GenerationWorkerPool

LOG = get_logger()

DEFAULT_SUBJECT = 'General Studies'
DEFAULT_TITLE = 'Study Notes'
DEFAULT_FLASHCARD_CATEGORY = 'General'

CREATED_EVENTS = {
    ArtifactKind.FLASHCARD: FLASHCARDS_CREATED,
    ArtifactKind.QUIZ_QUESTION: QUIZ_QUESTIONS_CREATED,
}


def resolve_subject(document: Document, options: Optional[Dict[str, Any]] = None) -> str:
    override = str((options or {}).get('subject') or '').strip()
    if override:
        return override
    if document.category and document.category.strip():
        return document.category.strip()
    for tag in document.tags:
        if tag and tag.strip():
            return tag.strip()
    return DEFAULT_SUBJECT


def build_context(document: Document, content: ExtractedContent, options: Optional[Dict[str, Any]] = None) -> GenerationContext:
    return GenerationContext(
        subject=resolve_subject(document, options),
        document_title=(document.title or '').strip() or DEFAULT_TITLE,
        tags=[t for t in document.tags if t],
        is_ocr_source=content.is_ocr,
    )


def build_artifacts(document: Document, kind: ArtifactKind, candidates: List[Any], context: GenerationContext) -> List[Artifact]:
    artifacts: List[Artifact] = []
    for c in candidates:
        if kind == ArtifactKind.FLASHCARD:
            artifacts.append(Flashcard(
                owner_id=document.owner_id,
                source_document_id=document.id,
                question=c.question,
                answer=c.answer,
                hint=c.hint,
                difficulty=c.difficulty,
                subject=c.subject or context.subject,
                category=document.category or DEFAULT_FLASHCARD_CATEGORY,
                tags=c.tags or list(document.tags),
                examples=c.examples,
                source_title=document.title or None,
            ))
        else:
            artifacts.append(QuizQuestion(
                owner_id=document.owner_id,
                source_document_id=document.id,
                question=c.question,
                options=c.options,
                correct_answer=c.correct_answer,
                explanation=c.explanation,
                category=c.category or context.subject,
                subject=context.subject,
                difficulty=c.difficulty,
                time_limit=c.time_limit,
                points=c.points,
                tags=c.tags or [t.lower() for t in document.tags if t],
            ))
    return artifacts


class GenerationOrchestrator:
    def __init__(
        self,
        store: DocumentStore,
        extractor: ContentExtractor,
        generator: ArtifactGenerator,
        emitter: NotificationEmitter,
        workers: int = None,
    ):
        self.store = store
        self.extractor = extractor
        self.generator = generator
        self.emitter = emitter
        self.dedup = DeduplicationFilter(store)
        self.pool = GenerationWorkerPool(self.run, workers)
        self._locks: Dict[str, asyncio.Lock] = {}
        self._active: Dict[str, int] = {}

    async def start(self):
        await self.pool.start()

    async def stop(self):
        await self.pool.stop()

    async def join(self):
        await self.pool.join()

    def is_busy(self, document_id: str) -> bool:
        return self._active.get(document_id, 0) > 0

    def _set_status(self, document: Document, status: GenerationStatus, **fields) -> Document:
        previous = document.generation.status
        updated = self.store.update_generation(document.id, status=status, **fields)
        log_status_change(document.id, status.value, previous.value if previous else None, fields.get('last_error'))
        return updated

    async def enqueue(self, request: GenerationRequest) -> Document:
        document = await asyncio.to_thread(self.store.get_document, request.document_id)
        if document is None:
            raise DocumentNotFoundError(f'Document {request.document_id} not found')
        if not self.generator.is_configured:
            err = GenerationNotConfiguredError()
            document = await asyncio.to_thread(self._set_status, document, GenerationStatus.FAILED, last_error=str(err), last_kind=request.kind)
            await asyncio.to_thread(self._notify_failure, document, request.kind, err)
            return document
        busy = self.is_busy(document.id)
        # claim the slot before awaiting the store so a concurrent request sees it
        self._active[document.id] = self._active.get(document.id, 0) + 1
        try:
            if busy:
                LOG.info('generation_request_waiting', extra={'document_id': document.id, 'kind': request.kind.value, 'active_runs': self._active[document.id] - 1})
            else:
                document = await asyncio.to_thread(self._set_status, document, GenerationStatus.QUEUED, last_error=None, last_kind=request.kind)
            self.pool.submit(request)
        except (StoreError, RuntimeError):
            self._release(document.id)
            raise
        return document

    def _lock_for(self, document_id: str) -> asyncio.Lock:
        lock = self._locks.get(document_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[document_id] = lock
        return lock

    def _release(self, document_id: str):
        remaining = self._active.get(document_id, 0) - 1
        if remaining > 0:
            self._active[document_id] = remaining
        else:
            self._active.pop(document_id, None)
            self._locks.pop(document_id, None)

    async def run(self, request: GenerationRequest) -> GenerationOutcome:
        lock = self._lock_for(request.document_id)
        try:
            async with lock:
                return await self._run(request)
        finally:
            self._release(request.document_id)

    async def _run(self, request: GenerationRequest) -> GenerationOutcome:
        start = time.time()
        kind = ArtifactKind(request.kind)
        max_items = clamp_max_items(request.max_items)
        document = await asyncio.to_thread(self.store.get_document, request.document_id)
        if document is None:
            err = DocumentNotFoundError(f'Document {request.document_id} not found')
            LOG.warning('generation_document_missing', extra={'document_id': request.document_id})
            return GenerationOutcome(document_id=request.document_id, kind=kind, status=GenerationStatus.FAILED, error=str(err), error_code='DocumentNotFound')

        try:
            document = await asyncio.to_thread(self._set_status, document, GenerationStatus.PROCESSING, last_error=None, last_kind=kind)
            content = await asyncio.to_thread(self.extractor.extract, document.file_ref, document.media_type, document.id)
            context = build_context(document, content, request.options)
            result = await asyncio.to_thread(self.generator.generate, content.text, kind, max_items, context, request.request_id)
            artifacts = build_artifacts(document, kind, result.items, context)
            persisted = await asyncio.to_thread(self.dedup.persist_all, artifacts)
        except (GenerationError, StoreError) as e:
            return await self._fail(document, kind, e, start)
        except Exception as e:
            LOG.exception('generation_unexpected_error', extra={'document_id': document.id, 'kind': kind.value})
            return await self._fail(document, kind, e, start)

        created = len(persisted.created)
        outcome = GenerationOutcome(
            document_id=document.id,
            kind=kind,
            status=GenerationStatus.COMPLETED,
            created_count=created,
            duplicate_count=persisted.duplicate_count,
            skipped_count=result.skipped_count,
            candidate_count=result.candidate_count,
        )
        try:
            document = await asyncio.to_thread(
                self._set_status,
                document,
                GenerationStatus.COMPLETED,
                last_generated_count=created,
                last_generated_at=int(time.time()),
                last_error=None,
            )
        except StoreError as e:
            return await self._fail(document, kind, e, start)

        duration = int((time.time() - start) * 1000)
        log_generation_run(document.id, kind.value, outcome.status.value, created, outcome.duplicate_count, outcome.skipped_count, duration)
        event = CREATED_EVENTS[kind] if created else GENERATION_NO_NEW_ITEMS
        await asyncio.to_thread(self.emitter.notify, document.owner_id, event, {
            'document_id': document.id,
            'document_title': document.title,
            'kind': kind.value,
            'count': created,
            'duplicate_count': outcome.duplicate_count,
        })
        return outcome

    async def _fail(self, document: Document, kind: ArtifactKind, error: Exception, start: float) -> GenerationOutcome:
        message = str(error) or error.__class__.__name__
        code = getattr(error, 'code', error.__class__.__name__)
        try:
            await asyncio.to_thread(self._set_status, document, GenerationStatus.FAILED, last_error=message)
        except StoreError as e:
            LOG.error('generation_status_write_failed', extra={'document_id': document.id, 'error': str(e)})
        duration = int((time.time() - start) * 1000)
        log_generation_run(document.id, kind.value, GenerationStatus.FAILED.value, 0, 0, 0, duration, error=message)
        await asyncio.to_thread(self._notify_failure, document, kind, error)
        return GenerationOutcome(document_id=document.id, kind=kind, status=GenerationStatus.FAILED, error=message, error_code=code)

    def _notify_failure(self, document: Document, kind: ArtifactKind, error: Exception):
        self.emitter.notify(document.owner_id, DOCUMENT_PROCESS_FAILED, {
            'document_id': document.id,
            'document_title': document.title,
            'kind': ArtifactKind(kind).value,
            'error': str(error),
        }, priority='high')
