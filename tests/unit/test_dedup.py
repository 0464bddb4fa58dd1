import pytest

from studygen.errors import DuplicateSkipped
from studygen.pipeline import DeduplicationFilter, DocumentStore, Flashcard


def _card(question):
    return Flashcard(owner_id='u1', source_document_id='d1', question=question, answer='A', subject='Biology')


@pytest.mark.unit
def test_persist_raises_on_duplicate():
    dedup = DeduplicationFilter(DocumentStore(use_redis=False))
    dedup.persist(_card('Q1'))
    with pytest.raises(DuplicateSkipped):
        dedup.persist(_card('Q1'))


@pytest.mark.unit
def test_persist_all_counts_duplicates():
    store = DocumentStore(use_redis=False)
    dedup = DeduplicationFilter(store)
    first = dedup.persist_all([_card('Q1'), _card('Q2'), _card('Q3')])
    assert len(first.created) == 3
    assert first.duplicate_count == 0
    second = dedup.persist_all([_card('Q1'), _card('Q2'), _card('Q4'), _card('Q4')])
    assert [c.question for c in second.created] == ['Q4']
    assert second.duplicate_count == 3


@pytest.mark.unit
def test_question_match_is_exact():
    dedup = DeduplicationFilter(DocumentStore(use_redis=False))
    result = dedup.persist_all([_card('What is ATP?'), _card('what is ATP?')])
    assert len(result.created) == 2
