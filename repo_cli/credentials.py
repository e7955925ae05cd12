"""
credentials.py

Responsibility: Store, load and verify the GitHub username + personal access token.

The token lives in a netrc file (`machine api.github.com`), which other HTTP
clients such as curl also understand. The username is also written to the
config file so commands can build `owner/name` paths without an API call.
"""

from __future__ import annotations

import getpass
import logging
import netrc
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

from repo_cli.config import Settings, save_user, write_private_file
from repo_cli.github_client import GitHubClient, GitHubError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://github.com/settings/tokens"


class CredentialError(RuntimeError):
    pass


@dataclass(frozen=True)
class Credential:
    username: str
    token: str

    def __repr__(self) -> str:
        return f"Credential(username={self.username!r}, token='***')"


def api_host(api_base: str) -> str:
    return urlparse(api_base).hostname or "api.github.com"


def _read_netrc(path: Path) -> netrc.netrc | None:
    if not path.exists():
        return None
    try:
        return netrc.netrc(str(path))
    except netrc.NetrcParseError as e:
        raise CredentialError(f"Cannot parse {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise CredentialError(f"Cannot read {path}: {e}") from e


def read_netrc_entry(path: Path, host: str) -> tuple[str, str] | None:
    """
    Return `(login, password)` stored for `host`, or None when there is no
    usable entry.
    """
    parsed = _read_netrc(path)
    if parsed is None:
        return None
    entry = parsed.hosts.get(host)
    if not entry:
        return None
    login, _account, password = entry
    if not password:
        return None
    return login or "", password


def _format_entry(host: str, login: str, account: str | None, password: str | None) -> str:
    lines = ["default" if host == "default" else f"machine {host}"]
    if login:
        lines.append(f"  login {login}")
    if account:
        lines.append(f"  account {account}")
    if password:
        lines.append(f"  password {password}")
    return "\n".join(lines)


def write_netrc_entry(path: Path, host: str, login: str, password: str) -> None:
    """
    Write (or replace) the entry for `host`, keeping entries for other machines.

    An existing file is copied to `<path>.backup` first. The result is 0600.
    """
    if not password.strip():
        raise CredentialError("Token must not be empty.")
    if any(ch.isspace() for ch in login + password):
        raise CredentialError("Username and token must not contain whitespace.")

    blocks: list[str] = []
    existing = _read_netrc(path)
    if existing is not None:
        backup = path.with_name(path.name + ".backup")
        shutil.copy2(path, backup)
        os.chmod(backup, 0o600)
        logger.info("Backed up %s to %s", path, backup)
        # The `default` entry has to stay last.
        others = [h for h in existing.hosts if h != host]
        others.sort(key=lambda h: h == "default")
        for other in others:
            o_login, o_account, o_password = existing.hosts[other]
            blocks.append(_format_entry(other, o_login, o_account, o_password))
        if existing.macros:
            logger.warning("Dropping netrc macro definitions from %s (kept in the backup)", path)

    entry = _format_entry(host, login, None, password)
    if blocks and blocks[-1].startswith("default"):
        blocks.insert(len(blocks) - 1, entry)
    else:
        blocks.append(entry)
    write_private_file(path, "\n\n".join(blocks) + "\n")
    logger.info("Stored credentials for %s in %s", host, path)


def load_credential(settings: Settings) -> Credential | None:
    """
    Resolve the stored credential.

    `GITHUB_TOKEN` overrides the netrc token; the username comes from the
    config file, falling back to the netrc login.
    """
    entry = read_netrc_entry(settings.netrc_path, api_host(settings.api_base))
    token = (os.environ.get("GITHUB_TOKEN") or "").strip() or (entry[1] if entry else "")
    username = settings.github_user or (entry[0] if entry else "")
    if not token or not username:
        return None
    return Credential(username=username, token=token)


def verify_credential(
    username: str,
    token: str,
    *,
    settings: Settings,
    client_factory: Callable[..., GitHubClient] = GitHubClient,
) -> str:
    """
    Check the token against `GET /user` and make sure it belongs to `username`.

    Returns the login as GitHub spells it.
    """
    client = client_factory(token, settings.api_base, timeout=settings.timeout)
    try:
        user = client.get_authenticated_user()
    except GitHubError as e:
        if e.status_code == 401:
            raise CredentialError("GitHub rejected the token. Check it and run `repo setup` again.") from e
        raise CredentialError(f"Could not verify the token: {e}") from e
    login = str(user.get("login") or "")
    if login.lower() != username.lower():
        raise CredentialError(f"The token belongs to {login!r}, not {username!r}.")
    return login


def run_setup(
    settings: Settings,
    *,
    input_fn: Callable[[str], str] = input,
    getpass_fn: Callable[[str], str] = getpass.getpass,
    client_factory: Callable[..., GitHubClient] = GitHubClient,
) -> Credential:
    """
    Prompt for username and token, verify them, and persist both.
    """
    print("GitHub authentication setup")
    username = input_fn("Enter your GitHub username: ").strip()
    if not username:
        raise CredentialError("Username must not be empty.")
    print(f"Create a token with the 'repo' scope (and 'delete_repo' for `repo delete`) at {TOKEN_URL}")
    token = getpass_fn("Enter your GitHub Personal Access Token (PAT): ").strip()
    if not token:
        raise CredentialError("Token must not be empty.")

    print("Verifying GitHub token...")
    login = verify_credential(username, token, settings=settings, client_factory=client_factory)

    write_netrc_entry(settings.netrc_path, api_host(settings.api_base), login, token)
    save_user(settings.config_path, login)
    print(f"Authenticated as {login}. Setup complete.")
    return Credential(username=login, token=token)


def ensure_credential(
    settings: Settings,
    *,
    interactive: bool | None = None,
    client_factory: Callable[..., GitHubClient] = GitHubClient,
) -> Credential:
    """
    Return the stored credential, running setup first when there is none.
    """
    cred = load_credential(settings)
    if cred is not None:
        return cred
    if interactive is None:
        interactive = sys.stdin.isatty()
    if not interactive:
        raise CredentialError("No GitHub credentials found. Run `repo setup` first.")
    logger.info("No stored credentials; starting setup")
    return run_setup(settings, client_factory=client_factory)
