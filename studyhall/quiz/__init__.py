"""
Quiz Package
Exam catalog, shuffling and the grading session state machine
"""
from studyhall.quiz.exam import (
    Choice,
    Question,
    ExamDefinition,
    ExamCatalog,
    exam_id_from_title,
    module_id_for_exam,
)
from studyhall.quiz.shuffle import fisher_yates
from studyhall.quiz.session import (
    QuizState,
    GradeResult,
    QuizSession,
    grade_answers,
    last_scores,
    PASS_THRESHOLD,
    SUBMIT_LABEL,
)

__all__ = [
    'Choice',
    'Question',
    'ExamDefinition',
    'ExamCatalog',
    'exam_id_from_title',
    'module_id_for_exam',
    'fisher_yates',
    'QuizState',
    'GradeResult',
    'QuizSession',
    'grade_answers',
    'last_scores',
    'PASS_THRESHOLD',
    'SUBMIT_LABEL',
]
