"""Tests for configuration and logging setup."""

import logging
from pathlib import Path
from unittest.mock import patch

from postpad.config import (
    LOG_FORMAT,
    get_config_path,
    get_db_path,
    get_default_config,
    get_postpad_home,
    load_config,
    setup_logging,
)


class TestPaths:
    """Tests for XDG path helpers."""

    def test_home_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("POSTPAD_HOME", str(tmp_path / "elsewhere"))
        assert get_postpad_home() == tmp_path / "elsewhere"
        assert get_db_path() == tmp_path / "elsewhere" / "postpad.db"

    def test_default_home(self, monkeypatch):
        monkeypatch.delenv("POSTPAD_HOME")
        assert get_postpad_home() == Path.home() / "postpad"

    def test_config_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert get_config_path() == tmp_path / "xdg" / "postpad" / "config.toml"


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults_without_file(self):
        config = load_config()
        assert config == get_default_config()
        assert config["storage"] == {"backend": "file", "key": "posts"}

    def test_file_merges_over_defaults(self):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text('[storage]\nbackend = "sqlite"\n\n[extra]\nflag = true\n')

        config = load_config()

        assert config["storage"] == {"backend": "sqlite", "key": "posts"}
        assert config["logging"]["level"] == "WARNING"
        assert config["extra"] == {"flag": True}


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_level_from_config(self):
        with patch("postpad.config.logging.basicConfig") as basic:
            setup_logging({"logging": {"level": "debug"}})
        basic.assert_called_once_with(format=LOG_FORMAT, level=logging.DEBUG)

    def test_env_overrides_config(self, monkeypatch):
        monkeypatch.setenv("POSTPAD_LOG_LEVEL", "ERROR")
        with patch("postpad.config.logging.basicConfig") as basic:
            setup_logging({"logging": {"level": "DEBUG"}})
        basic.assert_called_once_with(format=LOG_FORMAT, level=logging.ERROR)

    def test_unknown_level_falls_back(self):
        with patch("postpad.config.logging.basicConfig") as basic:
            setup_logging({"logging": {"level": "chatty"}})
        basic.assert_called_once_with(format=LOG_FORMAT, level=logging.WARNING)
