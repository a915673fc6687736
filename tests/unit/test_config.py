"""
Unit tests for Config.
"""

import logging

import pytest
from fudgeroll.core.config import Config

ENV_VARS = (
    'FUDGE_MAX_ATTEMPTS', 'FUDGE_MAX_SECONDS', 'FUDGE_SEED', 'FUDGE_ROLL_MODE',
    'HOST', 'PORT', 'DEBUG', 'LOG_LEVEL', 'LOG_FILE',
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # An empty .env keeps a developer's local file out of the tests
    env_file = tmp_path / '.env'
    env_file.write_text('')
    return str(env_file)


class TestConfig:
    def test_defaults(self, clean_env):
        config = Config(env_file=clean_env)
        assert config.max_attempts == 10000
        assert config.max_seconds == 0
        assert config.seed is None
        assert config.roll_mode == 'publicroll'
        assert config.host == '127.0.0.1'
        assert config.port == 5000
        assert config.debug is False
        assert config.log_level == 'INFO'
        assert config.log_file is None
        assert config.validate()

    def test_environment_overrides(self, clean_env, monkeypatch):
        monkeypatch.setenv('FUDGE_MAX_ATTEMPTS', '50')
        monkeypatch.setenv('FUDGE_MAX_SECONDS', '2.5')
        monkeypatch.setenv('FUDGE_SEED', '42')
        monkeypatch.setenv('FUDGE_ROLL_MODE', 'gmroll')
        monkeypatch.setenv('PORT', '8080')
        monkeypatch.setenv('DEBUG', 'yes')
        monkeypatch.setenv('LOG_LEVEL', 'debug')

        config = Config(env_file=clean_env)
        assert config.max_attempts == 50
        assert config.max_seconds == 2.5
        assert config.seed == 42
        assert config.roll_mode == 'gmroll'
        assert config.port == 8080
        assert config.debug is True
        assert config.log_level == 'DEBUG'

    def test_env_file(self, clean_env, monkeypatch, tmp_path):
        env_file = tmp_path / 'fudge.env'
        env_file.write_text('FUDGE_MAX_ATTEMPTS=77\n')
        monkeypatch.delenv('FUDGE_MAX_ATTEMPTS', raising=False)

        config = Config(env_file=str(env_file))
        assert config.max_attempts == 77
        monkeypatch.delenv('FUDGE_MAX_ATTEMPTS', raising=False)

    def test_invalid_attempts(self, clean_env, monkeypatch):
        monkeypatch.setenv('FUDGE_MAX_ATTEMPTS', '0')
        assert not Config(env_file=clean_env).validate()

    def test_negative_seconds(self, clean_env, monkeypatch):
        monkeypatch.setenv('FUDGE_MAX_SECONDS', '-1')
        assert not Config(env_file=clean_env).validate()

    def test_unknown_roll_mode_falls_back(self, clean_env, monkeypatch, caplog):
        monkeypatch.setenv('FUDGE_ROLL_MODE', 'shout')
        config = Config(env_file=clean_env)

        with caplog.at_level(logging.WARNING):
            assert config.validate()

        assert config.roll_mode == 'publicroll'
        assert "Unknown FUDGE_ROLL_MODE" in caplog.text
