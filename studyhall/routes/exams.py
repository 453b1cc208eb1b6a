"""
Exam Routes
Exam content without answer keys, and server-side grading
"""
from flask import Blueprint, current_app, jsonify, request

from studyhall.errors import ValidationError
from studyhall.quiz import grade_answers

exams_bp = Blueprint('exams', __name__)


def get_catalog():
    return current_app.extensions['exam_catalog']


@exams_bp.route('', methods=['GET'])
def list_exams():
    """Exam index: id, title, module and question count"""
    exams = [
        {
            'examId': exam.exam_id,
            'title': exam.title,
            'moduleId': exam.module_id,
            'pagePath': exam.page_path,
            'totalQuestions': exam.total_questions,
        }
        for exam in get_catalog().list()
    ]
    return jsonify({'exams': exams})


@exams_bp.route('/<exam_id>', methods=['GET'])
def get_exam(exam_id):
    return jsonify(get_catalog().get(exam_id).to_public_dict())


@exams_bp.route('/<exam_id>/grade', methods=['POST'])
def grade_exam(exam_id):
    """Grade {answers: {questionId: choice}} with the same rules as the page widget"""
    exam = get_catalog().get(exam_id)
    data = request.get_json(silent=True) or {}
    answers = data.get('answers')
    if not isinstance(answers, dict):
        raise ValidationError('answers must be an object of questionId -> choice')

    result = grade_answers(exam, {str(k): v for k, v in answers.items()})
    payload = result.to_dict()
    payload['examId'] = exam.exam_id
    payload['moduleId'] = exam.module_id
    return jsonify(payload)
