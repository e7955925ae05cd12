"""
config.py

Responsibility: Load the `repo` config file into a typed, immutable settings model.

The config file is small. It records the GitHub username written by `repo setup`
and a few optional defaults:
- It prefers a YAML mapping (`github_user: octocat`).
- It falls back to the legacy `GITHUB_USER=octocat` line format.

Environment variables override the file; the file overrides built-in defaults.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_WEB_BASE = "https://github.com"
DEFAULT_TIMEOUT = 30.0

# Legacy keys written by the shell installer.
_LEGACY_KEYS = {"GITHUB_USER": "github_user"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    """Resolved settings shared by every command."""

    config_path: Path
    netrc_path: Path
    github_user: str | None = None
    api_base: str = DEFAULT_API_BASE
    web_base: str = DEFAULT_WEB_BASE
    private: bool = False
    timeout: float = DEFAULT_TIMEOUT


def default_config_path() -> Path:
    raw = os.environ.get("REPO_CLI_CONFIG")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".repo-cli"


def default_netrc_path() -> Path:
    raw = os.environ.get("REPO_CLI_NETRC") or os.environ.get("NETRC")
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".netrc"


def _parse_legacy_lines(text: str) -> dict[str, Any]:
    """
    Very small fallback parser for `KEY=value` lines:
    - Ignores blank lines and `#` comments
    - Strips matching surrounding quotes from values
    - Maps known legacy keys to their YAML names
    """
    out: dict[str, Any] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        k = k.strip()
        if k.startswith("export "):
            k = k[len("export ") :].strip()
        v = v.strip()
        if len(v) >= 2 and v[0] == v[-1] and v[0] in "\"'":
            v = v[1:-1]
        if not k:
            continue
        out[_LEGACY_KEYS.get(k, k.lower())] = v
    return out


def parse_config_text(text: str) -> dict[str, Any]:
    """
    Parse config file text into a plain mapping.

    A YAML mapping wins; anything else (including YAML that parses as a bare
    string, which is what `GITHUB_USER=octocat` looks like) goes through the
    legacy line parser.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        data = None
    if data is None:
        if text.strip() and "=" in text:
            return _parse_legacy_lines(text)
        return {}
    if isinstance(data, dict):
        return {str(k): v for k, v in data.items()}
    return _parse_legacy_lines(text)


def _read_config_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e


def _as_bool(value: Any, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in {"1", "true", "yes", "on"}:
        return True
    if s in {"0", "false", "no", "off", ""}:
        return False
    raise ConfigError(f"`{key}` must be a boolean, got {value!r}")


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Load settings from the config file and the environment.

    A missing config file is not an error; it simply means `repo setup` has
    not been run yet.
    """
    path = Path(config_path).expanduser() if config_path else default_config_path()
    data: dict[str, Any] = {}
    if path.exists():
        if not path.is_file():
            raise ConfigError(f"Config path is not a file: {path}")
        data = parse_config_text(_read_config_text(path))
        logger.debug("Loaded config from %s (%d keys)", path, len(data))
    else:
        logger.debug("No config file at %s", path)

    github_user = os.environ.get("GITHUB_USER") or data.get("github_user")
    if github_user is not None:
        github_user = str(github_user).strip() or None

    api_base = os.environ.get("GITHUB_API_URL") or data.get("api_base") or DEFAULT_API_BASE
    web_base = data.get("web_base") or DEFAULT_WEB_BASE

    timeout_raw = data.get("timeout", DEFAULT_TIMEOUT)
    try:
        timeout = float(timeout_raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"`timeout` must be a number, got {timeout_raw!r}") from e
    if timeout <= 0:
        raise ConfigError("`timeout` must be positive")

    return Settings(
        config_path=path,
        netrc_path=default_netrc_path(),
        github_user=github_user,
        api_base=str(api_base).rstrip("/"),
        web_base=str(web_base).rstrip("/"),
        private=_as_bool(data.get("private", False), key="private"),
        timeout=timeout,
    )


def write_private_file(path: Path, text: str) -> None:
    """
    Atomically write `text` to `path` with owner-only (0600) permissions.

    The content goes to a temp file in the same directory first, so an
    interrupted write never leaves a half-written file behind.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    os.chmod(path, 0o600)


def save_user(path: Path, github_user: str) -> None:
    """Persist the username, keeping any other keys already in the config file."""
    data: dict[str, Any] = {}
    if path.exists():
        data = parse_config_text(_read_config_text(path))
    data["github_user"] = github_user
    write_private_file(path, yaml.safe_dump(data, default_flow_style=False, sort_keys=True))
    logger.info("Saved username to %s", path)
