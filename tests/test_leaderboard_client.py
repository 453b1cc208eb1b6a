import requests

from studyhall.clients import LeaderboardClient
from tests.conftest import FakeResponse, FakeSession

SAMPLE = {'270201': [{'username': f'user{i}', 'bestScore': 100 - i} for i in range(15)]}


def attempt(score=80):
    return {'username': 'alice', 'moduleId': '270201', 'examId': '270201a', 'score': score}


def test_username_is_sanitized_and_stored(storage):
    client = LeaderboardClient(storage, sample_data=SAMPLE)
    assert client.username() is None
    assert client.username('  <b>Alice</b>  ') == 'Alice'
    assert client.username() == 'Alice'


def test_local_only_submission(storage):
    session = FakeSession()
    client = LeaderboardClient(storage, session=session, sample_data=SAMPLE)
    assert client.submit_attempt(attempt()) is True
    assert client.local_attempts()[0]['score'] == 80
    assert client.local_attempts()[0]['timestamp'].endswith('Z')
    assert session.calls == []


def test_invalid_attempt_is_rejected_without_network(storage):
    session = FakeSession()
    client = LeaderboardClient(storage, backend_url='https://api.test', session=session)
    assert client.submit_attempt(dict(attempt(), score='80')) is False
    assert client.submit_attempt({'username': 'alice'}) is False
    assert session.calls == []
    assert client.local_attempts() == []


def test_local_history_keeps_last_hundred(storage):
    client = LeaderboardClient(storage, sample_data=SAMPLE)
    for i in range(105):
        client.submit_attempt(attempt(i % 100))
    attempts = client.local_attempts()
    assert len(attempts) == 100
    assert attempts[0]['score'] == 5


def test_backend_submission(storage):
    session = FakeSession(post=[FakeResponse(201, {'id': 1})])
    client = LeaderboardClient(storage, backend_url='https://api.test/', session=session)
    assert client.submit_attempt(attempt()) is True
    assert session.calls[0][1] == 'https://api.test/api/attempts'


def test_backend_failure_returns_false_but_keeps_local_copy(storage):
    session = FakeSession(post=[requests.ConnectionError('offline')])
    client = LeaderboardClient(storage, backend_url='https://api.test', session=session)
    assert client.submit_attempt(attempt()) is False
    assert len(client.local_attempts()) == 1


def test_fetch_uses_sample_data_without_backend(storage):
    client = LeaderboardClient(storage, sample_data=SAMPLE, top_n=10)
    entries = client.fetch_leaderboard('270201')
    assert len(entries) == 10
    assert entries[0]['username'] == 'user0'
    assert client.fetch_leaderboard('270299') == []


def test_fetch_from_backend_then_fallback(storage):
    session = FakeSession(get=[FakeResponse(200, {'entries': [{'username': 'bob', 'bestScore': 90}]}),
                               FakeResponse(503)])
    client = LeaderboardClient(storage, backend_url='https://api.test', session=session,
                               sample_data=SAMPLE, top_n=3)
    assert client.fetch_leaderboard('270201') == [{'username': 'bob', 'bestScore': 90}]
    assert session.calls[0][2]['params'] == {'limit': 3}
    assert [e['username'] for e in client.fetch_leaderboard('270201')] == ['user0', 'user1', 'user2']



def test_non_object_backend_reply_falls_back(storage):
    session = FakeSession(get=[FakeResponse(200, [{'username': 'bob', 'bestScore': 90}])])
    client = LeaderboardClient(storage, backend_url='https://api.test', session=session,
                               sample_data=SAMPLE, top_n=2)
    assert [e['username'] for e in client.fetch_leaderboard('270201')] == ['user0', 'user1']


def test_bundled_sample_data_loads(storage):
    client = LeaderboardClient(storage)
    assert client.fetch_leaderboard('270201')[0]['username'] == 'TechMaster'
