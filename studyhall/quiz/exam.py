"""
Exam Definitions
Static question sets and answer keys loaded from JSON files
"""
from dataclasses import dataclass, field
import json
import logging
import os
import re

from studyhall.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_EXAM_ID_RE = re.compile(r'^(27\d{3}[0-9A-Za-z]*)\s*-')
_MODULE_ID_RE = re.compile(r'^(\d{6})')


def exam_id_from_title(title):
    """Derive an exam id like "270202a" from a page title "270202a - ..." """
    match = _EXAM_ID_RE.match(title or '')
    return match.group(1) if match else None


def module_id_for_exam(exam_id):
    """Leading six digits of the exam id ("270201b" -> "270201")"""
    match = _MODULE_ID_RE.match(exam_id or '')
    return match.group(1) if match else None


@dataclass(frozen=True)
class Choice:
    value: str
    text: str


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    choices: tuple

    def choice_values(self):
        return [choice.value for choice in self.choices]


@dataclass
class ExamDefinition:
    """One exam page: ordered questions plus the answer key"""
    exam_id: str
    title: str
    questions: list
    answer_key: dict
    module_id: str = None
    page_path: str = None
    extra: dict = field(default_factory=dict)

    def __post_init__(self):
        if not self.module_id:
            self.module_id = module_id_for_exam(self.exam_id)
        if not self.page_path:
            self.page_path = f'/exams/{self.exam_id}'

    @property
    def total_questions(self):
        return len(self.questions)

    def question(self, question_id):
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    @classmethod
    def from_dict(cls, data):
        """Build from the JSON layout used in EXAM_DATA_DIR"""
        title = data.get('title') or ''
        exam_id = data.get('examId') or exam_id_from_title(title)
        if not exam_id:
            raise ValidationError('Exam definition needs an examId or a "<id> - " title')

        questions = []
        for raw in data.get('questions', []):
            choices = tuple(
                Choice(value=str(c['value']), text=c.get('text', ''))
                for c in raw.get('choices', [])
            )
            questions.append(Question(id=str(raw['id']), text=raw.get('text', ''), choices=choices))

        answer_key = {str(k): str(v) for k, v in (data.get('answers') or {}).items()}
        return cls(
            exam_id=exam_id,
            title=title,
            questions=questions,
            answer_key=answer_key,
            module_id=data.get('moduleId'),
            page_path=data.get('pagePath'),
        )

    def to_public_dict(self):
        """Exam content without the answer key"""
        return {
            'examId': self.exam_id,
            'title': self.title,
            'moduleId': self.module_id,
            'pagePath': self.page_path,
            'questions': [
                {
                    'id': q.id,
                    'text': q.text,
                    'choices': [{'value': c.value, 'text': c.text} for c in q.choices],
                }
                for q in self.questions
            ],
        }


class ExamCatalog:
    """Exam definitions indexed by exam id"""

    def __init__(self, exams=None):
        self._exams = {}
        for exam in exams or []:
            self.add(exam)

    def add(self, exam):
        self._exams[exam.exam_id] = exam

    def get(self, exam_id):
        exam = self._exams.get(exam_id)
        if exam is None:
            raise NotFoundError(f'Unknown exam: {exam_id}')
        return exam

    def list(self):
        return [self._exams[key] for key in sorted(self._exams)]

    def __len__(self):
        return len(self._exams)

    @classmethod
    def from_directory(cls, directory):
        """Load every *.json file; unreadable files are skipped with a warning"""
        catalog = cls()
        if not directory or not os.path.isdir(directory):
            logger.warning('Exam data directory not found: %s', directory)
            return catalog

        for name in sorted(os.listdir(directory)):
            if not name.endswith('.json'):
                continue
            path = os.path.join(directory, name)
            try:
                with open(path, encoding='utf-8') as fh:
                    catalog.add(ExamDefinition.from_dict(json.load(fh)))
            except (OSError, ValueError, KeyError, ValidationError) as err:
                logger.warning('Skipping exam file %s: %s', path, err)
        logger.info('Loaded %d exam definitions from %s', len(catalog), directory)
        return catalog
