"""Tests for the form answer store."""
import pytest

from shared.enums import AnswerField, QuestionType
from shared.schemas import Question
from src.inspection_app.form_store import FormAnswerStore, AnswerNotFoundError


def test_initialize_creates_unanswered_records(store, sample_questions):
    """Each question becomes one FormQuestion with no answer or comment."""
    records = store.snapshot()
    assert [r.id for r in records] == [q.id for q in sample_questions]
    assert [r.text for r in records] == [q.text for q in sample_questions]
    assert all(r.answer is None and r.comment is None for r in records)


def test_initialize_empty():
    """An empty question list is a valid, empty store."""
    store = FormAnswerStore.from_questions([])
    assert len(store) == 0
    assert store.snapshot() == []
    assert store.validate() == []


def test_initialize_rejects_duplicate_ids():
    questions = [
        Question(id='q1', text='A', type=QuestionType.INPUT),
        Question(id='q1', text='B', type=QuestionType.INPUT),
    ]
    with pytest.raises(ValueError):
        FormAnswerStore.from_questions(questions)


def test_example_scenario(store):
    """Answers for both question types end up in the snapshot in order."""
    store.update('q1', 'answer', 'OK')
    store.update('q2', 'answer', 'Clear site')

    snapshot = store.snapshot()
    assert [(r.id, r.answer, r.comment) for r in snapshot] == [
        ('q1', 'OK', None),
        ('q2', 'Clear site', None),
    ]


def test_update_changes_only_target_record():
    questions = [Question(id=f'q{i}', text=f'Question {i}', type=QuestionType.INPUT) for i in range(5)]
    store = FormAnswerStore.from_questions(questions)
    store.update('q0', AnswerField.ANSWER, 'first')
    before = store.snapshot()

    store.update('q3', AnswerField.ANSWER, 'changed')

    after = store.snapshot()
    assert len(after) == len(before) == 5
    for old, new in zip(before, after):
        if new.id == 'q3':
            assert new.answer == 'changed'
        else:
            assert new == old


def test_update_comment(store):
    updated = store.update('q1', AnswerField.COMMENT, '  leaking hose  ')
    assert updated.comment == '  leaking hose  '
    assert store.get('q1').comment == '  leaking hose  '
    assert store.get('q1').answer is None


def test_update_can_clear_field(store):
    store.update('q2', 'answer', 'text')
    store.update('q2', 'answer', None)
    assert store.get('q2').answer is None


def test_update_unknown_id_raises_and_changes_nothing(store):
    store.update('q1', 'answer', 'NA')
    before = store.snapshot()

    with pytest.raises(AnswerNotFoundError) as exc_info:
        store.update('missing', 'answer', 'OK')

    assert exc_info.value.question_id == 'missing'
    assert store.snapshot() == before


def test_update_unknown_id_is_logged(store, caplog):
    with pytest.raises(AnswerNotFoundError):
        store.update('missing', 'comment', 'x')
    assert "missing" in caplog.text


def test_update_rejects_unknown_field(store):
    with pytest.raises(ValueError):
        store.update('q1', 'text', 'renamed')
    assert store.get('q1').text == 'Brakes working?'


def test_not_found_is_lookup_error(store):
    with pytest.raises(LookupError):
        store.get('nope')


def test_snapshot_is_a_copy(store):
    snapshot = store.snapshot()
    snapshot[0].answer = 'OK'
    assert store.get('q1').answer is None


def test_get_returns_copy(store):
    record = store.get('q2')
    record.answer = 'sneaky'
    assert store.get('q2').answer is None


def test_order_stable_across_updates(store):
    for value in ['OK', 'NOK', 'NA']:
        store.update('q1', 'answer', value)
        store.update('q2', 'answer', value.lower())
    assert store.ids == ['q1', 'q2']
    assert [r.id for r in store] == ['q1', 'q2']
    assert len(store) == 2


def test_contains(store):
    assert 'q1' in store
    assert 'q9' not in store


def test_validate_all_required_by_default(store):
    assert store.validate() == ['q1', 'q2']
    store.update('q1', 'answer', 'OK')
    assert store.validate() == ['q2']
    store.update('q2', 'answer', 'Clear site')
    assert store.validate() == []


def test_validate_treats_blank_as_missing(store):
    store.update('q1', 'answer', 'OK')
    store.update('q2', 'answer', '   ')
    assert store.validate() == ['q2']


def test_validate_with_required_subset(store):
    assert store.validate(required_ids=['q2']) == ['q2']
    assert store.validate(required_ids=[]) == []


def test_comment_does_not_count_as_answer(store):
    store.update('q1', 'comment', 'note')
    assert 'q1' in store.validate()
