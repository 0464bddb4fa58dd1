"""Document and artifact persistence.

Redis when reachable, otherwise an in-process store. Documents live under
``document:{id}`` as JSON; artifacts live in one hash per
(owner, document, kind) keyed by question text so a conditional insert
(``HSETNX``) is the duplicate check.
"""
from __future__ import annotations

import os
import json
import threading
from typing import Any, Dict, List, Optional, Union

import redis

from studygen.errors import StoreError, DocumentNotFoundError
from studygen.generation import ArtifactKind
from studygen.utils import get_logger
from .models import Document, GenerationState, Flashcard, QuizQuestion, ARTIFACT_MODELS

LOG = get_logger()

REDIS_ENABLED = os.getenv('REDIS_ENABLED', 'true').lower() in ('1', 'true', 'yes')
REDIS_URL = os.getenv('REDIS_URL', None)

Artifact = Union[Flashcard, QuizQuestion]


def artifact_key(owner_id: str, document_id: str, kind: ArtifactKind) -> str:
    return f'artifacts:{owner_id}:{document_id}:{ArtifactKind(kind).value}'


def _connect():
    if REDIS_URL:
        return redis.from_url(REDIS_URL, decode_responses=True)
    return redis.Redis(
        host=os.getenv('REDIS_HOST', 'redis'),
        port=int(os.getenv('REDIS_PORT', '6379')),
        password=os.getenv('REDIS_PASSWORD') or None,
        decode_responses=True,
    )


class DocumentStore:
    _instance = None

    def __init__(self, client=None, use_redis: Optional[bool] = None):
        self._client = None
        self._lock = threading.Lock()
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._artifacts: Dict[str, Dict[str, Dict[str, Any]]] = {}
        if client is not None:
            self._client = client
        elif use_redis if use_redis is not None else REDIS_ENABLED:
            try:
                conn = _connect()
                conn.ping()
                self._client = conn
                LOG.info('DocumentStore using Redis', extra={'redis_url': REDIS_URL})
            except redis.RedisError as e:
                LOG.warning('Redis not available for DocumentStore, using in-memory store', extra={'error': str(e)})
        else:
            LOG.info('DocumentStore using in-memory store')

    @classmethod
    def get_instance(cls) -> 'DocumentStore':
        if cls._instance is None:
            cls._instance = DocumentStore()
        return cls._instance

    @property
    def client(self):
        return self._client

    @property
    def backend(self) -> str:
        return 'redis' if self._client is not None else 'memory'

    def _doc_key(self, document_id: str) -> str:
        return f'document:{document_id}'

    def ping(self) -> bool:
        if self._client is None:
            return True
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            LOG.warning('store_ping_failed', extra={'error': str(e)})
            return False

    def save_document(self, document: Document) -> Document:
        data = document.model_dump(mode='json')
        if self._client is None:
            with self._lock:
                self._documents[document.id] = data
            return document
        try:
            self._client.set(self._doc_key(document.id), json.dumps(data))
        except redis.RedisError as e:
            raise StoreError(f'Failed to save document {document.id}: {e}') from e
        return document

    def get_document(self, document_id: str) -> Optional[Document]:
        if self._client is None:
            with self._lock:
                data = self._documents.get(document_id)
            return Document.model_validate(data) if data else None
        try:
            raw = self._client.get(self._doc_key(document_id))
        except redis.RedisError as e:
            raise StoreError(f'Failed to load document {document_id}: {e}') from e
        if not raw:
            return None
        return Document.model_validate(json.loads(raw))

    def update_generation(self, document_id: str, **fields) -> Document:
        """Apply ``fields`` to the document's generation block and persist it."""
        doc = self.get_document(document_id)
        if doc is None:
            raise DocumentNotFoundError(f'Document {document_id} not found')
        doc.generation = GenerationState.model_validate({**doc.generation.model_dump(), **fields})
        return self.save_document(doc)

    def add_artifact_if_absent(self, artifact: Artifact) -> bool:
        """Insert unless an artifact with the same question already exists in scope."""
        key = artifact_key(artifact.owner_id, artifact.source_document_id, artifact.kind)
        payload = artifact.model_dump(mode='json')
        if self._client is None:
            with self._lock:
                bucket = self._artifacts.setdefault(key, {})
                if artifact.question in bucket:
                    return False
                bucket[artifact.question] = payload
            return True
        try:
            return bool(self._client.hsetnx(key, artifact.question, json.dumps(payload)))
        except redis.RedisError as e:
            raise StoreError(f'Failed to persist artifact: {e}') from e

    def list_artifacts(self, owner_id: str, document_id: str, kind: ArtifactKind) -> List[Artifact]:
        key = artifact_key(owner_id, document_id, kind)
        model = ARTIFACT_MODELS[ArtifactKind(kind)]
        if self._client is None:
            with self._lock:
                rows = list(self._artifacts.get(key, {}).values())
        else:
            try:
                rows = [json.loads(v) for v in self._client.hvals(key)]
            except redis.RedisError as e:
                raise StoreError(f'Failed to list artifacts: {e}') from e
        items = [model.model_validate(r) for r in rows]
        items.sort(key=lambda a: a.created_at)
        return items

    def count_artifacts(self, owner_id: str, document_id: str, kind: ArtifactKind) -> int:
        key = artifact_key(owner_id, document_id, kind)
        if self._client is None:
            with self._lock:
                return len(self._artifacts.get(key, {}))
        try:
            return int(self._client.hlen(key))
        except redis.RedisError as e:
            raise StoreError(f'Failed to count artifacts: {e}') from e
