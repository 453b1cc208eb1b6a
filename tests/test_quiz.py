from collections import Counter
import random

import pytest

from studyhall.errors import NotFoundError, QuizStateError, ValidationError
from studyhall.quiz import (
    ExamCatalog,
    ExamDefinition,
    QuizSession,
    QuizState,
    SUBMIT_LABEL,
    exam_id_from_title,
    fisher_yates,
    grade_answers,
    last_scores,
    module_id_for_exam,
)
from studyhall.storage import keys
from tests.conftest import make_exam


class RecordingSubmitter:
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.attempts = []

    def submit_attempt(self, attempt):
        self.attempts.append(attempt)
        if self.error:
            raise self.error
        return self.result


def answer(session, correct, wrong):
    ids = sorted(q.id for q in session.exam.questions)
    for qid in ids[:correct]:
        session.select(qid, 'a')
    for qid in ids[correct:correct + wrong]:
        session.select(qid, 'b')


def test_exam_id_parsing():
    assert exam_id_from_title('270202a - Driveline Basics') == '270202a'
    assert exam_id_from_title('Driveline Basics') is None
    assert module_id_for_exam('270202a') == '270202'
    assert module_id_for_exam('abc') is None


def test_catalog_loads_bundled_exams(app):
    catalog = app.extensions['exam_catalog']
    exam = catalog.get('270202a')
    assert exam.module_id == '270202'
    assert exam.total_questions == 4
    with pytest.raises(NotFoundError):
        catalog.get('999999z')


def test_catalog_skips_bad_files(tmp_path):
    (tmp_path / 'bad.json').write_text('{nope', encoding='utf-8')
    (tmp_path / 'untitled.json').write_text('{"title": "no id here"}', encoding='utf-8')
    assert len(ExamCatalog.from_directory(str(tmp_path))) == 0


def test_fisher_yates_is_a_permutation(rng):
    items = list(range(20))
    shuffled = fisher_yates(list(items), rng)
    assert sorted(shuffled) == items


def test_fisher_yates_is_roughly_uniform():
    rng = random.Random(42)
    counts = Counter(tuple(fisher_yates([1, 2, 3], rng)) for _ in range(6000))
    assert len(counts) == 6
    assert all(800 < n < 1200 for n in counts.values())


def test_seven_of_ten_passes(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    answer(session, correct=7, wrong=3)
    result = session.submit()

    assert result.percentage == 70
    assert result.passed
    assert result.banner_class == 'pass'
    assert result.banner_text == '70% — 7 correct, 3 incorrect, 0 unanswered.'
    assert session.state is QuizState.SUBMITTED
    assert storage.get_item(keys.last_score(exam.page_path)) == '70'
    assert storage.get_item(keys.exam_score(exam.exam_id)) == '70'


def test_six_of_ten_is_review(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    answer(session, correct=6, wrong=4)
    result = session.submit()

    assert result.percentage == 60
    assert not result.passed
    assert result.label == 'REVIEW'
    assert result.banner_class == 'review'


def test_unanswered_questions_are_counted(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    answer(session, correct=5, wrong=0)
    result = session.submit()
    assert (result.correct, result.incorrect, result.unanswered) == (5, 0, 5)
    assert result.percentage == 50


def test_percentage_rounds_half_up(storage, rng):
    exam = make_exam(count=8)
    session = QuizSession(exam, storage, rng=rng)
    answer(session, correct=5, wrong=3)
    assert session.submit().percentage == 63


def test_select_returns_mark_and_persists(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    assert session.select('q1', 'a') == 'correct'
    assert session.select('q2', 'c') == 'incorrect'
    assert storage.get_json(keys.exam_state(exam.page_path)) == {'q1': 'a', 'q2': 'c'}
    assert session.progress() == (2, 10, 20)


def test_select_rejects_unknown_question_and_choice(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    with pytest.raises(ValidationError):
        session.select('q99', 'a')
    with pytest.raises(ValidationError):
        session.select('q1', 'z')


def test_no_answers_after_submit(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    session.select('q1', 'a')
    first = session.submit()
    assert session.submit() is first
    with pytest.raises(QuizStateError):
        session.select('q2', 'a')


def test_submit_requires_an_answer(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    assert not session.can_submit
    with pytest.raises(QuizStateError):
        session.submit()


def test_restore_keeps_order_and_marks(storage, exam):
    first = QuizSession(exam, storage, rng=random.Random(1))
    first.select('q3', 'a')
    first.select('q4', 'b')

    second = QuizSession(exam, storage, rng=random.Random(99))
    assert second.answers == {'q3': 'a', 'q4': 'b'}
    assert second.marks == {'q3': 'correct', 'q4': 'incorrect'}
    assert second.question_order == first.question_order
    assert second.choice_order('q3') == first.choice_order('q3')
    assert second.state is QuizState.IN_PROGRESS
    assert second.last_result is None


def test_retake_reshuffles_a_permutation(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    answer(session, correct=7, wrong=3)
    session.submit()
    session.retake()

    assert session.state is QuizState.IN_PROGRESS
    assert session.submit_label == SUBMIT_LABEL
    assert session.answers == {} and session.marks == {}
    assert storage.get_item(keys.last_score(exam.page_path)) is None
    assert storage.get_json(keys.exam_state(exam.page_path)) is None
    assert Counter(session.question_order) == Counter(q.id for q in exam.questions)
    for question in exam.questions:
        assert Counter(session.choice_order(question.id)) == Counter(question.choice_values())


def test_retry_wrong_locks_correct_answers(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    session.select('q1', 'a')
    session.select('q2', 'b')
    session.submit()
    session.retry_wrong()

    assert session.state is QuizState.IN_PROGRESS
    assert session.answers == {'q1': 'a'}
    with pytest.raises(QuizStateError):
        session.select('q1', 'b')
    assert session.select('q2', 'a') == 'correct'


def test_locked_answers_survive_reload(storage, rng, exam):
    session = QuizSession(exam, storage, rng=rng)
    session.select('q1', 'a')
    session.select('q2', 'b')
    session.submit()
    session.retry_wrong()

    reloaded = QuizSession(exam, storage, rng=random.Random(7))
    assert reloaded.locked == {'q1'}
    with pytest.raises(QuizStateError):
        reloaded.select('q1', 'b')

    reloaded.retake()
    assert storage.get_json(keys.locked_questions(exam.page_path)) is None
    assert QuizSession(exam, storage, rng=rng).locked == set()


def test_submit_hands_attempt_to_submitter(storage, rng, exam):
    storage.set_item(keys.USERNAME, 'alice')
    submitter = RecordingSubmitter()
    session = QuizSession(exam, storage, rng=rng, submitter=submitter)
    answer(session, correct=10, wrong=0)
    session.submit()

    attempt = submitter.attempts[0]
    assert attempt['username'] == 'alice'
    assert attempt['moduleId'] == '270201'
    assert attempt['examId'] == exam.exam_id
    assert attempt['score'] == 100
    assert session.last_submission is True


def test_submitter_failure_does_not_break_grading(storage, rng, exam):
    storage.set_item(keys.USERNAME, 'alice')
    session = QuizSession(exam, storage, rng=rng,
                          submitter=RecordingSubmitter(error=RuntimeError('offline')))
    answer(session, correct=8, wrong=2)
    assert session.submit().percentage == 80
    assert session.last_submission is False


def test_no_username_skips_submitter(storage, rng, exam):
    submitter = RecordingSubmitter()
    session = QuizSession(exam, storage, rng=rng, submitter=submitter)
    answer(session, correct=1, wrong=0)
    session.submit()
    assert submitter.attempts == []


def test_grade_answers_ignores_unknown_ids(exam):
    result = grade_answers(exam, {'q1': 'a', 'bogus': 'a'})
    assert result.correct == 1
    assert result.unanswered == 9


def test_last_scores(storage):
    storage.set_item(keys.exam_score('270201a'), '85')
    storage.set_item(keys.exam_score('270201b'), 'junk')
    assert last_scores(storage, ['270201a', '270201b', '270201c']) == {
        '270201a': 85, '270201b': None, '270201c': None,
    }


def test_exam_routes_hide_answers_and_grade(client):
    listing = client.get('/api/exams').get_json()
    assert {e['examId'] for e in listing['exams']} == {'270201a', '270202a'}

    exam = client.get('/api/exams/270201a').get_json()
    assert 'answers' not in exam
    assert len(exam['questions']) == 5

    graded = client.post('/api/exams/270201a/grade',
                         json={'answers': {'q1': 'c', 'q2': 'b', 'q3': 'a', 'q4': 'a'}})
    data = graded.get_json()
    assert graded.status_code == 200
    assert data['score'] == 60
    assert data['passed'] is False
    assert data['unanswered'] == 1


def test_grade_route_errors(client):
    assert client.get('/api/exams/000000x').status_code == 404
    assert client.post('/api/exams/270201a/grade', json={'answers': []}).status_code == 400


def test_exam_definition_from_dict_uses_title_id():
    exam = ExamDefinition.from_dict({
        'title': '270203b - Hydraulics',
        'questions': [{'id': 1, 'choices': [{'value': 'a'}, {'value': 'b'}]}],
        'answers': {'1': 'b'},
    })
    assert exam.exam_id == '270203b'
    assert exam.module_id == '270203'
    assert exam.page_path == '/exams/270203b'
    assert exam.question('1').choice_values() == ['a', 'b']
