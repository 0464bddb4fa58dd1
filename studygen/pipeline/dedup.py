from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from studygen.errors import DuplicateSkipped
from studygen.utils import get_logger
from .store import DocumentStore, Artifact

LOG = get_logger()


@dataclass
class DeduplicationResult:
    created: List[Artifact] = field(default_factory=list)
    duplicate_count: int = 0


class DeduplicationFilter:
    """Persists artifacts whose question text is new within (owner, document, kind)."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def persist(self, artifact: Artifact) -> Artifact:
        if not self.store.add_artifact_if_absent(artifact):
            raise DuplicateSkipped(f'duplicate question: {artifact.question[:80]}')
        return artifact

    def persist_all(self, artifacts: Iterable[Artifact]) -> DeduplicationResult:
        result = DeduplicationResult()
        for artifact in artifacts:
            try:
                result.created.append(self.persist(artifact))
            except DuplicateSkipped as e:
                result.duplicate_count += 1
                LOG.info('candidate_duplicate', extra={'document_id': artifact.source_document_id, 'kind': artifact.kind.value, 'reason': str(e)})
        return result
