from datetime import datetime, timedelta, timezone

import pytest

from studyhall.clients import ChatWidget, HttpChatBackend, format_timestamp
from studyhall.errors import AuthorizationError, NotFoundError, ValidationError
from studyhall.models import AdminLog
from studyhall.pubsub import MessageHub
from studyhall.services import ChatService
from studyhall.services.chat_service import build_reply_preview, validate_message_text
from studyhall.storage import keys
from studyhall.utils import to_iso
from tests.conftest import FakeResponse, FakeSession

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class RecordingSender:
    def __init__(self):
        self.sent = []
        self.deleted = []

    def send(self, username, text, reply_to_id=None):
        self.sent.append((username, text, reply_to_id))
        return {'id': str(len(self.sent))}

    def delete(self, message_id):
        self.deleted.append(message_id)
        return True


def message(msg_id, minutes_ago, text='hello', username='bob'):
    return {
        'id': str(msg_id),
        'username': username,
        'message': text,
        'timestamp': to_iso(NOW - timedelta(minutes=minutes_ago)),
    }


@pytest.fixture
def widget(storage):
    storage.set_item(keys.USERNAME, 'alice')
    return ChatWidget(MessageHub(), storage, RecordingSender(), clock=lambda: NOW)


# ================= VALIDATION =================

def test_message_length_limits():
    assert validate_message_text('  hi  ') == 'hi'
    assert validate_message_text('x' * 500) == 'x' * 500
    with pytest.raises(ValidationError):
        validate_message_text('x' * 501)
    with pytest.raises(ValidationError):
        validate_message_text('   ')


def test_reply_preview_truncates():
    preview = build_reply_preview({'id': 7, 'username': 'bob', 'message': 'y' * 150})
    assert preview == {'id': '7', 'username': 'bob', 'messagePreview': 'y' * 100}


# ================= HUB =================

def test_hub_replays_and_stops():
    hub = MessageHub()
    hub.publish([{'id': '1'}])
    received = []
    sub = hub.subscribe(received.append)
    assert received == [[{'id': '1'}]]

    sub.stop()
    sub.stop()
    hub.publish([{'id': '2'}])
    assert len(received) == 1
    assert hub.subscriber_count() == 0


def test_subscription_as_context_manager():
    hub = MessageHub()
    received = []
    with hub.subscribe(received.append, replay=False):
        hub.publish([{'id': '1'}])
    hub.publish([{'id': '2'}])
    assert received == [[{'id': '1'}]]


def test_hub_isolates_failing_subscriber():
    hub = MessageHub()
    received = []

    def broken(snapshot):
        raise RuntimeError('boom')

    hub.subscribe(broken)
    hub.subscribe(received.append)
    hub.publish([])
    assert received == [[]]


# ================= WIDGET =================

def test_widget_send_validates_before_sender(widget):
    with pytest.raises(ValidationError):
        widget.send('x' * 501)
    assert widget.sender.sent == []

    widget.send(' hello ', reply_to={'id': '3', 'username': 'bob', 'message': 'hi'})
    assert widget.sender.sent == [('alice', 'hello', '3')]


def test_widget_unread_count_and_badge(widget, storage):
    storage.set_item(keys.CHAT_LAST_READ, to_iso(NOW - timedelta(minutes=30)))
    widget.last_read = widget._load_last_read()
    rendered = []
    widget.start(render=rendered.append)

    widget.feed.publish([message(i, i) for i in range(1, 13)] + [message(99, 60)])
    assert widget.unread_count == 12
    assert widget.badge_text() == '9+'
    assert rendered[-1][0]['id'] == '99'

    widget.feed.publish([message(1, 1), message(2, 2), message(99, 60)])
    assert widget.badge_text() == '2'

    widget.open()
    assert widget.unread_count == 0
    assert widget.badge_text() == ''
    assert storage.get_item(keys.CHAT_LAST_READ) == to_iso(NOW)


def test_widget_without_last_read_has_no_unread(widget):
    widget.start()
    widget.feed.publish([message(1, 1)])
    assert widget.unread_count == 0


def test_widget_start_replaces_subscription(widget):
    widget.start()
    widget.start()
    assert widget.feed.subscriber_count() == 1
    widget.stop()
    assert widget.feed.subscriber_count() == 0


def test_widget_delete_requires_admin_and_confirm(storage):
    sender = RecordingSender()
    plain = ChatWidget(MessageHub(), storage, sender)
    with pytest.raises(AuthorizationError):
        plain.delete('1', confirm=lambda: True)

    admin = ChatWidget(MessageHub(), storage, sender, admin_check=lambda: True)
    assert admin.delete('1', confirm=lambda: False) is False
    assert admin.delete('1', confirm=lambda: True) is True
    assert sender.deleted == ['1']


def test_render_html_escapes_user_content(widget):
    widget.start()
    widget.feed.publish([message(1, 2, text='<script>alert(1)</script>', username='<b>eve</b>')])
    html = widget.render_html(now=NOW)
    assert '<script>' not in html
    assert '&lt;script&gt;' in html
    assert '&lt;b&gt;eve&lt;/b&gt;' in html
    assert '2m ago' in html


def test_render_html_empty(widget):
    assert 'No messages yet' in widget.render_html([])


@pytest.mark.parametrize('delta,expected', [
    (timedelta(seconds=30), 'Just now'),
    (timedelta(minutes=5), '5m ago'),
    (timedelta(hours=3), '3h ago'),
    (timedelta(days=2), '2d ago'),
])
def test_format_timestamp_relative(delta, expected):
    assert format_timestamp(NOW - delta, NOW) == expected


def test_format_timestamp_old_dates():
    assert format_timestamp(datetime(2025, 1, 5, tzinfo=timezone.utc), NOW) == '1/5'
    assert format_timestamp(None, NOW) == ''


def test_http_backend_posts_message():
    session = FakeSession(post=[FakeResponse(201, {'id': '1'})])
    backend = HttpChatBackend('https://example.test/', session=session)
    assert backend.send('alice', 'hi', '5') == {'id': '1'}
    method, url, kwargs = session.calls[0]
    assert url == 'https://example.test/api/chat/messages'
    assert kwargs['json'] == {'username': 'alice', 'message': 'hi', 'replyTo': '5'}


# ================= SERVICE =================

def test_service_send_and_recent(app):
    with app.app_context():
        first = ChatService.send('alice', 'first')
        ChatService.send('<b>bob</b>', 'second', reply_to_id=first.id)

        snapshot = ChatService.snapshot()
        assert [m['message'] for m in snapshot] == ['second', 'first']
        assert snapshot[0]['username'] == 'bob'
        assert snapshot[0]['replyTo']['id'] == str(first.id)

        with pytest.raises(ValidationError):
            ChatService.send('alice', 'reply', reply_to_id=9999)


def test_service_publishes_to_hub(app):
    with app.app_context():
        received = []
        app.extensions['message_hub'].subscribe(received.append)
        ChatService.send('alice', 'ping')
        assert received[-1][0]['message'] == 'ping'


def test_service_delete_rules(app):
    with app.app_context():
        msg = ChatService.send('alice', 'bye')
        with pytest.raises(AuthorizationError):
            ChatService.delete(msg.id, None, confirmed=True)
        with pytest.raises(ValidationError):
            ChatService.delete(msg.id, 'StudyWithJesus', confirmed=False)
        with pytest.raises(NotFoundError):
            ChatService.delete(12345, 'StudyWithJesus', confirmed=True)

        assert ChatService.delete(msg.id, 'StudyWithJesus', confirmed=True)
        assert ChatService.snapshot() == []
        assert AdminLog.query.filter_by(actor='StudyWithJesus').count() == 1


# ================= HTTP AND SOCKETS =================

def test_chat_routes(client, admin_headers):
    created = client.post('/api/chat/messages', json={'username': 'alice', 'message': 'hello'})
    assert created.status_code == 201
    msg_id = created.get_json()['id']

    too_long = client.post('/api/chat/messages', json={'username': 'alice', 'message': 'x' * 501})
    assert too_long.status_code == 400

    assert client.get('/api/chat/messages').get_json()['messages'][0]['message'] == 'hello'

    assert client.delete(f'/api/chat/messages/{msg_id}?confirm=true').status_code == 403
    assert client.delete(f'/api/chat/messages/{msg_id}', headers=admin_headers).status_code == 400
    deleted = client.delete(f'/api/chat/messages/{msg_id}?confirm=true', headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get('/api/chat/messages').get_json()['messages'] == []


def test_socket_join_and_send(socket_client):
    socket_client.emit('chat_join', {})
    joined = socket_client.get_received()
    assert any(e['name'] == 'chat_messages' for e in joined)

    socket_client.emit('chat_send', {'username': 'alice', 'message': 'live'})
    received = socket_client.get_received()
    feeds = [e for e in received if e['name'] == 'chat_messages']
    assert feeds[-1]['args'][0]['messages'][0]['message'] == 'live'
    assert any(e['name'] == 'chat_sent' for e in received)


def test_socket_send_rejects_long_message(socket_client):
    socket_client.emit('chat_send', {'username': 'alice', 'message': 'x' * 501})
    errors = [e for e in socket_client.get_received() if e['name'] == 'chat_error']
    assert 'too long' in errors[0]['args'][0]['error']


def test_socket_delete_requires_admin(socket_client):
    socket_client.emit('chat_delete', {'id': '1', 'confirm': True})
    errors = [e for e in socket_client.get_received() if e['name'] == 'chat_error']
    assert errors[0]['args'][0]['error'].startswith('Access denied')
