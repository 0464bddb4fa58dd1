import json

import pytest

from studygen.errors import DocumentNotFoundError, StoreError
from studygen.generation import ArtifactKind
from studygen.pipeline import Document, DocumentStore, Flashcard, GenerationStatus, QuizQuestion, artifact_key

from tests.fixtures.mock_redis import BrokenRedisClient, MockRedisClient


def _card(question='What is ATP?', **kw):
    return Flashcard(owner_id='u1', source_document_id='d1', question=question, answer='Energy', subject='Biology', **kw)


@pytest.fixture(params=['memory', 'redis'])
def store(request):
    if request.param == 'memory':
        return DocumentStore(use_redis=False)
    return DocumentStore(client=MockRedisClient())


@pytest.mark.unit
def test_document_round_trip(store):
    doc = Document(id='d1', owner_id='u1', title='Cells', file_ref='cells.txt', media_type='text/plain', tags=['bio'])
    store.save_document(doc)
    got = store.get_document('d1')
    assert got.title == 'Cells'
    assert got.generation.status == GenerationStatus.PENDING
    assert store.get_document('missing') is None


@pytest.mark.unit
def test_update_generation_fields(store):
    store.save_document(Document(id='d1', owner_id='u1', file_ref='x.txt'))
    updated = store.update_generation('d1', status=GenerationStatus.FAILED, last_error='boom', last_kind=ArtifactKind.QUIZ_QUESTION)
    assert updated.generation.status == GenerationStatus.FAILED
    again = store.get_document('d1')
    assert again.generation.last_error == 'boom'
    assert again.generation.last_kind == ArtifactKind.QUIZ_QUESTION


@pytest.mark.unit
def test_update_generation_unknown_document(store):
    with pytest.raises(DocumentNotFoundError):
        store.update_generation('nope', status=GenerationStatus.QUEUED)


@pytest.mark.unit
def test_conditional_artifact_insert(store):
    assert store.add_artifact_if_absent(_card()) is True
    assert store.add_artifact_if_absent(_card()) is False
    assert store.add_artifact_if_absent(_card('What is ADP?')) is True
    assert store.count_artifacts('u1', 'd1', ArtifactKind.FLASHCARD) == 2
    questions = [c.question for c in store.list_artifacts('u1', 'd1', ArtifactKind.FLASHCARD)]
    assert sorted(questions) == ['What is ADP?', 'What is ATP?']


@pytest.mark.unit
def test_scope_separates_kind_and_owner(store):
    store.add_artifact_if_absent(_card())
    quiz = QuizQuestion(owner_id='u1', source_document_id='d1', question='What is ATP?', options=['a', 'b'], correct_answer=0, category='Biology', subject='Biology')
    assert store.add_artifact_if_absent(quiz) is True
    other_owner = Flashcard(owner_id='u2', source_document_id='d1', question='What is ATP?', answer='Energy', subject='Biology')
    assert store.add_artifact_if_absent(other_owner) is True
    assert store.count_artifacts('u1', 'd1', ArtifactKind.QUIZ_QUESTION) == 1


@pytest.mark.unit
def test_redis_layout():
    client = MockRedisClient()
    store = DocumentStore(client=client)
    store.save_document(Document(id='d1', owner_id='u1', file_ref='x.txt'))
    store.add_artifact_if_absent(_card())
    assert json.loads(client.get('document:d1'))['owner_id'] == 'u1'
    key = artifact_key('u1', 'd1', ArtifactKind.FLASHCARD)
    assert key == 'artifacts:u1:d1:flashcard'
    assert 'What is ATP?' in client.hashes[key]


@pytest.mark.unit
def test_redis_failures_raise_store_error():
    store = DocumentStore(client=BrokenRedisClient())
    assert store.ping() is False
    with pytest.raises(StoreError):
        store.get_document('d1')
    with pytest.raises(StoreError):
        store.add_artifact_if_absent(_card())
