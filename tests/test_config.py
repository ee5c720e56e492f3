"""Tests for YAML settings and environment overrides."""

from pathlib import Path

import pytest

from vocab_deck import ConfigError, Settings, load_settings
from vocab_deck.db import STATE_KEY
from vocab_deck.persistence import SAVE_DELAY


@pytest.fixture
def config_file(tmp_path):
    def _write(text):
        path = tmp_path / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return _write


class TestLoadSettings:

    def test_defaults(self, config_file):
        settings = load_settings(config_file(""), environ={})
        assert settings.namespace_key == STATE_KEY
        assert settings.save_delay == SAVE_DELAY
        assert settings.log_level == "WARNING"
        assert settings.db_path.name == "vocab.db"

    def test_values_from_yaml(self, config_file, tmp_path):
        path = config_file(
            f"db_path: {tmp_path / 'words.db'}\n"
            "save_delay: 0.5\n"
            "log_level: info\n"
        )
        settings = load_settings(path, environ={})
        assert settings.db_path == tmp_path / "words.db"
        assert settings.save_delay == 0.5
        assert settings.log_level == "INFO"

    def test_env_overrides_yaml(self, config_file, tmp_path):
        path = config_file("save_delay: 0.5\n")
        settings = load_settings(path, environ={
            "VOCAB_DECK_DB": str(tmp_path / "env.db"),
            "VOCAB_DECK_SAVE_DELAY": "2",
            "VOCAB_DECK_LOG_LEVEL": "debug",
        })
        assert settings.db_path == tmp_path / "env.db"
        assert settings.save_delay == 2.0
        assert settings.log_level == "DEBUG"

    def test_home_is_expanded(self, config_file):
        settings = load_settings(config_file("db_path: ~/words.db\n"), environ={})
        assert settings.db_path == Path.home() / "words.db"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml", environ={})


class TestInvalidSettings:

    def test_invalid_yaml(self, config_file):
        path = config_file("save_delay: [1, 2\nlog_level: INFO\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path, environ={})

    def test_root_must_be_mapping(self, config_file):
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(config_file("- a\n- b\n"), environ={})

    def test_unknown_key(self, config_file):
        with pytest.raises(ConfigError, match="colour"):
            load_settings(config_file("colour: blue\n"), environ={})

    @pytest.mark.parametrize("delay", ["soon", "-1"])
    def test_bad_save_delay(self, delay):
        with pytest.raises(ConfigError):
            Settings(save_delay=delay)
