"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from hybridchat.common.config import DEFAULT_EXIT_COMMAND, DEFAULT_PORT, ChatSettings
from hybridchat.common.protocol import DEFAULT_MAX_FRAME_SIZE


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ChatSettings.model_fields:
        monkeypatch.delenv("HYBRIDCHAT_" + name.upper(), raising=False)
    return tmp_path


class TestChatSettings:
    def test_defaults(self, clean_env):
        settings = ChatSettings.from_env(dotenv_path=str(clean_env / "missing.env"))
        assert settings.port == DEFAULT_PORT
        assert settings.host == "127.0.0.1"
        assert settings.max_frame_size == DEFAULT_MAX_FRAME_SIZE
        assert settings.exit_command == DEFAULT_EXIT_COMMAND
        assert settings.connect_timeout is None
        assert settings.debug is False

    def test_environment_values(self, clean_env, monkeypatch):
        monkeypatch.setenv("HYBRIDCHAT_PORT", "4000")
        monkeypatch.setenv("HYBRIDCHAT_MAX_FRAME_SIZE", "4096")
        monkeypatch.setenv("HYBRIDCHAT_DEBUG", "true")
        monkeypatch.setenv("HYBRIDCHAT_EXIT_COMMAND", "/quit")
        settings = ChatSettings.from_env(dotenv_path=str(clean_env / "missing.env"))
        assert settings.port == 4000
        assert settings.max_frame_size == 4096
        assert settings.debug is True
        assert settings.exit_command == "/quit"

    def test_dotenv_file(self, clean_env):
        env_file = clean_env / ".env"
        env_file.write_text("HYBRIDCHAT_HOST=10.0.0.5\nHYBRIDCHAT_CONNECT_TIMEOUT=2.5\n")
        settings = ChatSettings.from_env(dotenv_path=str(env_file))
        assert settings.host == "10.0.0.5"
        assert settings.connect_timeout == 2.5

    def test_overrides_win(self, clean_env, monkeypatch):
        monkeypatch.setenv("HYBRIDCHAT_PORT", "4000")
        settings = ChatSettings.from_env(
            dotenv_path=str(clean_env / "missing.env"), port=5000, host=None,
        )
        assert settings.port == 5000
        assert settings.host == "127.0.0.1"

    @pytest.mark.parametrize("name,value", [
        ("HYBRIDCHAT_PORT", "70000"),
        ("HYBRIDCHAT_PORT", "abc"),
        ("HYBRIDCHAT_MAX_FRAME_SIZE", "16"),
        ("HYBRIDCHAT_CONNECT_TIMEOUT", "-1"),
    ])
    def test_invalid_values(self, clean_env, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            ChatSettings.from_env(dotenv_path=str(clean_env / "missing.env"))
