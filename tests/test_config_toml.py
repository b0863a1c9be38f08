"""Tests de robustesse de la configuration TOML et du fichier d'identifiants."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from comiccorpus.core.config import (
    CrawlConfig,
    config_from_dict,
    load_config,
    load_credentials,
    read_toml,
    save_config,
    write_toml,
)
from comiccorpus.core.utils.http import DEFAULT_USER_AGENT


def test_save_then_load_config(tmp_path: Path) -> None:
    path = tmp_path / "conf" / "comiccorpus.toml"
    config = CrawlConfig(db_path=tmp_path / "crawl.sqlite", rate_limit_s=2.5, log_level="DEBUG")
    save_config(path, config)

    loaded = load_config(path)
    assert loaded == config
    # log_file None : clé absente du fichier
    assert "log_file" not in read_toml(path)


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "absent.toml")
    assert config.user_agent == DEFAULT_USER_AGENT
    assert config.rate_limit_s == 1.0
    assert config.db_path.name == "comiccorpus.sqlite"


def test_explicit_db_path_wins(tmp_path: Path) -> None:
    path = tmp_path / "c.toml"
    write_toml(path, {"db_path": str(tmp_path / "from_file.sqlite")})
    config = load_config(path, db_path=tmp_path / "cli.sqlite")
    assert config.db_path == tmp_path / "cli.sqlite"


def test_write_toml_escapes_strings(tmp_path: Path) -> None:
    path = tmp_path / "c.toml"
    write_toml(path, {"user_agent": 'UA "quoted" \\ path', "timeout_s": 10, "flag": True})
    loaded = read_toml(path)
    assert loaded["user_agent"] == 'UA "quoted" \\ path'
    assert loaded["timeout_s"] == 10
    assert loaded["flag"] is True


def test_unknown_keys_are_ignored_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        config = config_from_dict({"rate_limit_s": 0, "proxy": "socks://"})
    assert config.rate_limit_s == 0.0
    assert "proxy" in caplog.text


@pytest.mark.parametrize(
    "data",
    [
        {"rate_limit_s": "fast"},
        {"timeout_s": -1},
        {"timeout_s": True},
        {"db_path": ""},
        {"log_level": 10},
    ],
)
def test_invalid_values_raise(data) -> None:
    with pytest.raises(ValueError):
        config_from_dict(data)


def test_load_credentials(tmp_path: Path) -> None:
    path = tmp_path / "credential"
    path.write_text("reader@example.com\ns3cret\n", encoding="utf-8")
    credentials = load_credentials(path)
    assert credentials.username == "reader@example.com"
    assert credentials.password == "s3cret"
    assert "s3cret" not in repr(credentials)


def test_load_credentials_keeps_password_spaces(tmp_path: Path) -> None:
    path = tmp_path / "credential"
    path.write_bytes(b" reader@example.com \r\n  pass word  \r\n")
    credentials = load_credentials(path)
    assert credentials.username == "reader@example.com"
    assert credentials.password == "  pass word  "


@pytest.mark.parametrize("content", ["", "only-user\n", "\npassword\n"])
def test_load_credentials_invalid(tmp_path: Path, content: str) -> None:
    path = tmp_path / "credential"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_credentials(path)
