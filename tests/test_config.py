from studyhall import create_app
from studyhall.config import DevelopmentConfig, TestingConfig, config, get_config


def test_get_config_follows_flask_env(monkeypatch):
    monkeypatch.setenv('FLASK_ENV', 'testing')
    assert get_config() is TestingConfig
    monkeypatch.setenv('FLASK_ENV', 'nonsense')
    assert get_config() is DevelopmentConfig


def test_testing_app_wiring(app):
    assert app.config['TESTING']
    assert app.config['LEADERBOARD_MODULES'] == ['270201', '270202', '270203', '270204']
    for name in ('message_hub', 'github_client', 'fingerprint_service', 'access_gate', 'exam_catalog'):
        assert name in app.extensions


def test_apps_do_not_share_chat_hub():
    first = create_app('testing')
    second = create_app('testing')
    assert first.extensions['message_hub'] is not second.extensions['message_hub']


def test_config_map():
    assert set(config) == {'development', 'production', 'testing', 'default'}
