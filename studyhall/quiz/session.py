"""
Quiz Session
Per-page grading state machine: restore, shuffle, mark, grade, retake
"""
from dataclasses import dataclass
from enum import Enum
import logging

from studyhall.errors import QuizStateError, ValidationError
from studyhall.quiz.shuffle import fisher_yates
from studyhall.storage import keys
from studyhall.utils.helpers import now_utc, round_half_up, to_iso

logger = logging.getLogger(__name__)

PASS_THRESHOLD = 70
SUBMIT_LABEL = 'Submit Exam'
SUBMITTED_LABEL = 'Submitted'

CORRECT = 'correct'
INCORRECT = 'incorrect'


class QuizState(Enum):
    IN_PROGRESS = 'in_progress'
    SUBMITTED = 'submitted'


@dataclass(frozen=True)
class GradeResult:
    """Outcome of grading one set of answers"""
    correct: int
    incorrect: int
    unanswered: int
    total: int
    marks: dict

    @property
    def percentage(self):
        if self.total == 0:
            return 0
        return round_half_up(self.correct / self.total * 100)

    @property
    def passed(self):
        return self.percentage >= PASS_THRESHOLD

    @property
    def label(self):
        return 'PASS' if self.passed else 'REVIEW'

    @property
    def banner_class(self):
        return 'pass' if self.passed else 'review'

    @property
    def banner_text(self):
        return (
            f'{self.percentage}% — {self.correct} correct, '
            f'{self.incorrect} incorrect, {self.unanswered} unanswered.'
        )

    def to_dict(self):
        return {
            'correct': self.correct,
            'incorrect': self.incorrect,
            'unanswered': self.unanswered,
            'total': self.total,
            'score': self.percentage,
            'passed': self.passed,
            'label': self.label,
            'bannerText': self.banner_text,
            'bannerClass': self.banner_class,
            'marks': dict(self.marks),
        }


def mark_answer(answer_key, question_id, choice):
    """Correctness mark for one selected choice"""
    return CORRECT if answer_key.get(question_id) == choice else INCORRECT


def grade_answers(exam, answers):
    """
    Grade a mapping of question id -> selected choice against the exam key.

    Questions with no selection count as unanswered. Unknown question ids
    are ignored.
    """
    correct = incorrect = unanswered = 0
    marks = {}

    for question in exam.questions:
        chosen = answers.get(question.id)
        if chosen is None or chosen == '':
            unanswered += 1
            continue
        mark = mark_answer(exam.answer_key, question.id, str(chosen))
        marks[question.id] = mark
        if mark == CORRECT:
            correct += 1
        else:
            incorrect += 1

    return GradeResult(
        correct=correct,
        incorrect=incorrect,
        unanswered=unanswered,
        total=exam.total_questions,
        marks=marks,
    )


def last_scores(storage, exam_ids):
    """Last stored score per exam id for index pages (None when never taken)"""
    scores = {}
    for exam_id in exam_ids:
        raw = storage.get_item(keys.exam_score(exam_id))
        try:
            scores[exam_id] = int(raw) if raw is not None else None
        except ValueError:
            scores[exam_id] = None
    return scores


class QuizSession:
    """
    Grading widget for one exam page.

    Answers and the shuffled order are persisted under keys derived from the
    page path, so reloading the page resumes where the student left off.
    The aggregate score is only computed on submit().
    """

    def __init__(self, exam, storage, page_path=None, rng=None, submitter=None):
        self.exam = exam
        self.storage = storage
        self.page_path = page_path or exam.page_path
        self.rng = rng
        self.submitter = submitter

        self.state_key = keys.exam_state(self.page_path)
        self.order_key = keys.exam_order(self.page_path)
        self.locked_key = keys.locked_questions(self.page_path)

        self.state = QuizState.IN_PROGRESS
        self.answers = {}
        self.marks = {}
        self.locked = set()
        self.submit_label = SUBMIT_LABEL
        self.last_result = None
        self.last_submission = None

        self.question_order = [q.id for q in exam.questions]
        self.choice_orders = {q.id: q.choice_values() for q in exam.questions}

        self._restore()

    # ================= RESTORE =================

    def _restore(self):
        saved = self.storage.get_json(self.state_key)
        saved_answers = {}
        if isinstance(saved, dict):
            for question_id, choice in saved.items():
                question = self.exam.question(question_id)
                if question and choice in question.choice_values():
                    saved_answers[question_id] = choice

        if not saved_answers:
            self.shuffle()
        elif not self._restore_order():
            logger.debug('No saved order for %s, keeping natural order', self.page_path)

        for question_id, choice in saved_answers.items():
            self.answers[question_id] = choice
            self.marks[question_id] = mark_answer(self.exam.answer_key, question_id, choice)

        saved_locked = self.storage.get_json(self.locked_key)
        if isinstance(saved_locked, list):
            self.locked = {qid for qid in saved_locked if isinstance(qid, str) and qid in saved_answers}

    def _restore_order(self):
        saved = self.storage.get_json(self.order_key)
        if not isinstance(saved, dict) or not isinstance(saved.get('questions'), list):
            return False

        if sorted(saved['questions']) != sorted(self.question_order):
            return False
        self.question_order = list(saved['questions'])

        for question_id, order in (saved.get('options') or {}).items():
            current = self.choice_orders.get(question_id)
            if current is not None and sorted(order) == sorted(current):
                self.choice_orders[question_id] = list(order)
        return True

    # ================= ORDER =================

    def shuffle(self):
        """Shuffle question order and every question's choices, then persist"""
        fisher_yates(self.question_order, self.rng)
        for order in self.choice_orders.values():
            fisher_yates(order, self.rng)
        self.storage.set_json(self.order_key, {
            'questions': self.question_order,
            'options': self.choice_orders,
        })

    def choice_order(self, question_id):
        return list(self.choice_orders[question_id])

    # ================= ANSWERING =================

    def select(self, question_id, choice):
        """
        Record a selection, persist partial progress and return its mark.

        Raises:
            QuizStateError: session is submitted or the question is locked
            ValidationError: unknown question or choice
        """
        if self.state is not QuizState.IN_PROGRESS:
            raise QuizStateError('Exam already submitted; retake to answer again')
        if question_id in self.locked:
            raise QuizStateError(f'Question {question_id} is locked')

        question = self.exam.question(question_id)
        if question is None:
            raise ValidationError(f'Unknown question: {question_id}')
        if choice not in question.choice_values():
            raise ValidationError(f'Unknown choice {choice!r} for question {question_id}')

        self.answers[question_id] = choice
        self.storage.set_json(self.state_key, self.answers)
        mark = mark_answer(self.exam.answer_key, question_id, choice)
        self.marks[question_id] = mark
        return mark

    def progress(self):
        """(answered, total, percent)"""
        total = self.exam.total_questions
        answered = len(self.answers)
        percent = round_half_up(answered / total * 100) if total else 0
        return answered, total, percent

    @property
    def can_submit(self):
        return self.state is QuizState.IN_PROGRESS and bool(self.answers)

    # ================= TRANSITIONS =================

    def submit(self):
        """
        Grade the exam and enter SUBMITTED.

        Submitting an already submitted session returns the previous result.
        """
        if self.state is QuizState.SUBMITTED:
            return self.last_result
        if not self.answers:
            raise QuizStateError('Answer at least one question before submitting')

        result = grade_answers(self.exam, self.answers)
        self.marks = dict(result.marks)
        self.state = QuizState.SUBMITTED
        self.submit_label = SUBMITTED_LABEL
        self.last_result = result

        self.storage.set_item(keys.last_score(self.page_path), str(result.percentage))
        self.storage.set_item(keys.exam_score(self.exam.exam_id), str(result.percentage))

        self.last_submission = self._submit_to_leaderboard(result.percentage)
        return result

    def _submit_to_leaderboard(self, score):
        if self.submitter is None:
            logger.info('Leaderboard not configured. Score saved locally only.')
            return None

        username = (self.storage.get_item(keys.USERNAME) or '').strip()
        if not username:
            logger.info('No username set. Score saved locally but not submitted.')
            return None

        if not self.exam.module_id:
            logger.warning('Could not determine module id from exam id %s', self.exam.exam_id)
            return None

        attempt = {
            'username': username,
            'moduleId': self.exam.module_id,
            'examId': self.exam.exam_id,
            'score': score,
            'timestamp': to_iso(now_utc()),
        }
        try:
            return bool(self.submitter.submit_attempt(attempt))
        except Exception as err:
            logger.error('Error submitting to leaderboard: %s', err)
            return False

    def retake(self):
        """Clear everything for this page, reshuffle and go back to IN_PROGRESS"""
        self.answers = {}
        self.marks = {}
        self.locked = set()
        self.last_result = None
        self.last_submission = None

        self.storage.remove_item(self.state_key)
        self.storage.remove_item(keys.last_score(self.page_path))
        self.storage.remove_item(self.order_key)
        self.storage.remove_item(self.locked_key)

        self.shuffle()
        self.state = QuizState.IN_PROGRESS
        self.submit_label = SUBMIT_LABEL

    def retry_wrong(self):
        """Reopen only the incorrectly answered questions; correct ones stay locked"""
        if self.state is not QuizState.SUBMITTED:
            raise QuizStateError('Nothing to retry before submitting')

        for question_id, mark in list(self.marks.items()):
            if mark == INCORRECT:
                self.answers.pop(question_id, None)
                del self.marks[question_id]
            else:
                self.locked.add(question_id)

        self.storage.set_json(self.state_key, self.answers)
        self.storage.set_json(self.locked_key, sorted(self.locked))
        self.state = QuizState.IN_PROGRESS
        self.submit_label = SUBMIT_LABEL
        self.last_result = None
