import pytest

from studygen.errors import ValidationSkipped
from studygen.generation import (
    ArtifactKind,
    normalize_candidate,
    normalize_candidates,
    normalize_difficulty,
    normalize_quiz_difficulty,
)


@pytest.mark.unit
@pytest.mark.parametrize('raw', ['HARD', 'hard', 'Advanced', ' advanced '])
def test_flashcard_hard_variants_become_advanced(raw):
    assert normalize_difficulty(raw) == 'advanced'


@pytest.mark.unit
@pytest.mark.parametrize('raw', ['trivial', '', None, 3, 'expert'])
def test_unknown_difficulty_becomes_medium(raw):
    assert normalize_difficulty(raw) == 'medium'


@pytest.mark.unit
def test_quiz_advanced_maps_to_hard():
    assert normalize_quiz_difficulty('advanced') == 'hard'
    assert normalize_quiz_difficulty('Easy') == 'easy'


@pytest.mark.unit
def test_flashcard_defaults_filled():
    card = normalize_candidate({'question': ' What is ATP? ', 'answer': 'Energy currency'}, ArtifactKind.FLASHCARD, 'Biology')
    assert card.question == 'What is ATP?'
    assert card.subject == 'Biology'
    assert card.tags == []
    assert card.examples == []
    assert card.hint == ''
    assert card.difficulty == 'medium'


@pytest.mark.unit
@pytest.mark.parametrize('raw', [
    {'question': 'Q only'},
    {'question': '', 'answer': 'A'},
    {'question': '   ', 'answer': 'A'},
    'not an object',
])
def test_flashcard_missing_fields_skipped(raw):
    with pytest.raises(ValidationSkipped):
        normalize_candidate(raw, ArtifactKind.FLASHCARD, 'Biology')


@pytest.mark.unit
def test_quiz_correct_answer_clamped():
    q = normalize_candidate(
        {'question': 'Pick one', 'options': ['a', 'b', 'c'], 'correctAnswer': 7},
        ArtifactKind.QUIZ_QUESTION,
        'Biology',
    )
    assert q.correct_answer == 2
    low = normalize_candidate(
        {'question': 'Pick one', 'options': ['a', 'b'], 'correctAnswer': -3},
        ArtifactKind.QUIZ_QUESTION,
        'Biology',
    )
    assert low.correct_answer == 0


@pytest.mark.unit
def test_quiz_defaults_and_category_fallback():
    q = normalize_candidate(
        {'question': 'Pick one', 'options': ['a', 'b'], 'correctAnswer': '1', 'timeLimit': 'soon', 'tags': ['Bio', ' Cells ']},
        ArtifactKind.QUIZ_QUESTION,
        'Biology',
    )
    assert q.correct_answer == 1
    assert q.time_limit == 60
    assert q.points == 10
    assert q.category == 'Biology'
    assert q.tags == ['bio', 'cells']


@pytest.mark.unit
def test_quiz_time_limit_and_points_clamped():
    q = normalize_candidate(
        {'question': 'Pick', 'options': ['a', 'b'], 'correctAnswer': 0, 'timeLimit': 5000, 'points': 0},
        ArtifactKind.QUIZ_QUESTION,
        'General Studies',
    )
    assert q.time_limit == 300
    assert q.points == 1


@pytest.mark.unit
@pytest.mark.parametrize('raw', [
    {'question': 'Pick', 'options': ['only one'], 'correctAnswer': 0},
    {'question': 'Pick', 'options': ['a', 'b', 'c', 'd', 'e', 'f', 'g'], 'correctAnswer': 0},
    {'question': 'Pick', 'options': ['a', 'b'], 'correctAnswer': 'first'},
    {'question': 'Pick', 'options': ['a', 'b'], 'correctAnswer': True},
    {'question': 'Pick', 'options': ['a', 'b']},
    {'options': ['a', 'b'], 'correctAnswer': 0},
    {'question': 'Pick', 'options': ['', 'Paris', 'London', 'Rome'], 'correctAnswer': 1},
    {'question': 'Pick', 'options': ['Paris', None, 'London'], 'correctAnswer': 0},
])
def test_quiz_invalid_items_skipped(raw):
    with pytest.raises(ValidationSkipped):
        normalize_candidate(raw, ArtifactKind.QUIZ_QUESTION, 'General Studies')


@pytest.mark.unit
def test_one_option_item_dropped_from_batch():
    raw = [
        {'question': 'Q1', 'options': ['a', 'b', 'c', 'd'], 'correctAnswer': 0},
        {'question': 'Q2', 'options': ['a'], 'correctAnswer': 0},
        {'question': 'Q3', 'options': ['a', 'b'], 'correctAnswer': 1},
        {'question': 'Q4', 'options': ['a', 'b', 'c'], 'correctAnswer': 2},
    ]
    result = normalize_candidates(raw, ArtifactKind.QUIZ_QUESTION, 'General Studies', max_items=10)
    assert [q.question for q in result.items] == ['Q1', 'Q3', 'Q4']
    assert result.skipped == 1


@pytest.mark.unit
def test_output_truncated_to_max_items():
    raw = [{'question': f'Q{i}', 'answer': 'A'} for i in range(10)]
    result = normalize_candidates(raw, ArtifactKind.FLASHCARD, 'General Studies', max_items=4)
    assert len(result.items) == 4
    assert result.skipped == 0


@pytest.mark.unit
def test_blank_option_never_shifts_the_answer_key():
    raw = [
        {'question': 'Capital of France?', 'options': ['', 'Paris', 'London', 'Rome'], 'correctAnswer': 1},
        {'question': 'Capital of Italy?', 'options': ['Paris', 'London', 'Rome'], 'correctAnswer': 2},
    ]
    result = normalize_candidates(raw, ArtifactKind.QUIZ_QUESTION, 'Geography', max_items=10)
    assert result.skipped == 1
    assert len(result.items) == 1
    q = result.items[0]
    assert q.options[q.correct_answer] == 'Rome'
