"""Shared fixtures: app on in-memory SQLite, storage, fake HTTP sessions"""
import random

import pytest
import requests

from studyhall import create_app
from studyhall.extensions import db, socketio
from studyhall.quiz import Choice, ExamDefinition, Question
from studyhall.storage import MemoryBackend, StorageAdapter
from studyhall.utils.auth import SESSION_HEADER, encode_session


class FakeResponse:
    def __init__(self, status_code=200, data=None, text=''):
        self.status_code = status_code
        self._data = data
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._data is None:
            raise ValueError('no JSON body')
        return self._data

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f'HTTP {self.status_code}')


class FakeSession:
    """Stands in for requests.Session; replays queued responses per method"""

    def __init__(self, **responses):
        self.responses = {method: list(items) for method, items in responses.items()}
        self.calls = []

    def queue(self, method, *items):
        self.responses.setdefault(method, []).extend(items)

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        pending = self.responses.get(method) or []
        if not pending:
            raise AssertionError(f'unexpected {method.upper()} {url}')
        item = pending.pop(0) if len(pending) > 1 else pending[0]
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, **kwargs):
        return self._next('get', url, kwargs)

    def post(self, url, **kwargs):
        return self._next('post', url, kwargs)

    def delete(self, url, **kwargs):
        return self._next('delete', url, kwargs)


@pytest.fixture
def app():
    app = create_app('testing')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def socket_client(app):
    sc = socketio.test_client(app)
    yield sc
    if sc.is_connected():
        sc.disconnect()


@pytest.fixture
def storage():
    return StorageAdapter(MemoryBackend())


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def admin_headers():
    token = encode_session({'login': 'StudyWithJesus', 'name': 'Site Owner'})
    return {SESSION_HEADER: token}


def make_exam(exam_id='270201t', count=10):
    """Exam with `count` questions; choice "a" is always correct"""
    questions = [
        Question(
            id=f'q{i}',
            text=f'Question {i}',
            choices=tuple(Choice(value=v, text=v.upper()) for v in ('a', 'b', 'c', 'd')),
        )
        for i in range(1, count + 1)
    ]
    return ExamDefinition(
        exam_id=exam_id,
        title=f'{exam_id} - Practice',
        questions=questions,
        answer_key={q.id: 'a' for q in questions},
    )


@pytest.fixture
def exam():
    return make_exam()
