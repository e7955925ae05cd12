from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from repo_cli.config import ConfigError, load_settings, parse_config_text, save_user, write_private_file


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    s = load_settings(tmp_path / "nope")
    assert s.github_user is None
    assert s.api_base == "https://api.github.com"
    assert s.private is False


def test_yaml_config(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg"
    cfg.write_text("github_user: octocat\nprivate: true\ntimeout: 5\napi_base: https://ghe.example.com/api/v3/\n")
    s = load_settings(cfg)
    assert s.github_user == "octocat"
    assert s.private is True
    assert s.timeout == 5.0
    assert s.api_base == "https://ghe.example.com/api/v3"


def test_legacy_line_format() -> None:
    assert parse_config_text("GITHUB_USER=octocat\n") == {"github_user": "octocat"}
    assert parse_config_text('# comment\nexport GITHUB_USER="octocat"\n') == {"github_user": "octocat"}


def test_environment_overrides_file(tmp_path: Path, monkeypatch) -> None:
    cfg = tmp_path / "cfg"
    cfg.write_text("github_user: octocat\n")
    monkeypatch.setenv("GITHUB_USER", "hubot")
    assert load_settings(cfg).github_user == "hubot"


def test_bad_timeout(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg"
    cfg.write_text("timeout: soon\n")
    with pytest.raises(ConfigError):
        load_settings(cfg)


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_save_user_is_private_and_keeps_other_keys(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg"
    cfg.write_text("private: true\n")
    save_user(cfg, "octocat")
    assert stat.S_IMODE(cfg.stat().st_mode) == 0o600
    s = load_settings(cfg)
    assert s.github_user == "octocat"
    assert s.private is True


def test_undecodable_config_file(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg"
    cfg.write_bytes(b"github_user: \xff\xfe\n")
    with pytest.raises(ConfigError, match="Cannot read config file"):
        load_settings(cfg)
    with pytest.raises(ConfigError):
        save_user(cfg, "octocat")


def test_interrupted_write_leaves_original_and_no_temp_file(tmp_path: Path, monkeypatch) -> None:
    cfg = tmp_path / "cfg"
    cfg.write_text("github_user: octocat\n")

    def interrupted(_src, _dst):
        raise KeyboardInterrupt

    monkeypatch.setattr("repo_cli.config.os.replace", interrupted)
    with pytest.raises(KeyboardInterrupt):
        write_private_file(cfg, "github_user: someone-else\n")

    assert cfg.read_text() == "github_user: octocat\n"
    assert list(tmp_path.glob(".cfg.*")) == []
