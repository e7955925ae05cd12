"""
git_ops.py

Responsibility: Every local `git` invocation the CLI makes.

The token is never written into `.git/config`. Commands that talk to GitHub
get it through a one-shot `-c http.<url>.extraheader=...` setting instead.
"""

from __future__ import annotations

import base64
import logging
import os
import shutil
import stat
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"


class GitError(RuntimeError):
    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


@dataclass(frozen=True)
class WorkTreeState:
    branch: str | None
    dirty: bool
    has_commits: bool
    remote_url: str | None
    root: Path | None = None


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    """
    Run a subprocess command and return its combined output, raising GitError on failure.
    """
    logger.debug("Running %s in %s", _redact(cmd), cwd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except FileNotFoundError as e:
        raise GitError("git is not installed or not on PATH.") from e
    except subprocess.CalledProcessError as e:
        raise GitError(f"Command failed: {' '.join(_redact(cmd))}\n\n{e.stdout}", output=e.stdout or "") from e
    return proc.stdout or ""


def _redact(cmd: list[str]) -> list[str]:
    return [("http.extraheader=<redacted>" if "extraheader=" in part else part) for part in cmd]


def auth_config(token: str | None, web_base: str = "https://github.com") -> list[str]:
    """
    `git -c` arguments that authenticate HTTPS requests to `web_base` with `token`.
    """
    if not token:
        return []
    basic = base64.b64encode(f"x-access-token:{token}".encode()).decode()
    return ["-c", f"http.{web_base.rstrip('/')}/.extraheader=AUTHORIZATION: basic {basic}"]


def _git_env() -> dict[str, str]:
    env = os.environ.copy()
    # Fail instead of hanging on a credential prompt.
    env.setdefault("GIT_TERMINAL_PROMPT", "0")
    return env


def https_url(web_base: str, owner: str, name: str) -> str:
    return f"{web_base.rstrip('/')}/{owner}/{name}.git"


def init_commit(
    *,
    workdir: Path,
    message: str = "Initial commit",
    branch: str = DEFAULT_BRANCH,
    remote_url: str | None = None,
) -> None:
    """Create the repository if needed and record everything in `workdir` on `branch`."""
    if not (workdir / ".git").exists():
        _run(["git", "init", "--quiet"], cwd=workdir, env=_git_env())
    _run(["git", "symbolic-ref", "HEAD", f"refs/heads/{branch}"], cwd=workdir, env=_git_env())
    commit_all(workdir, message)
    if remote_url:
        set_remote(workdir, remote_url)


def set_remote(workdir: Path, remote_url: str, *, name: str = "origin") -> None:
    env = _git_env()
    current = remote_url_of(workdir, name=name)
    if current is None:
        _run(["git", "remote", "add", name, remote_url], cwd=workdir, env=env)
    elif current != remote_url:
        _run(["git", "remote", "set-url", name, remote_url], cwd=workdir, env=env)


def remote_url_of(workdir: Path, *, name: str = "origin") -> str | None:
    try:
        out = _run(["git", "remote", "get-url", name], cwd=workdir, env=_git_env())
    except GitError:
        return None
    return out.strip() or None


def push(
    *,
    workdir: Path,
    branch: str,
    token: str | None = None,
    web_base: str = "https://github.com",
    remote: str = "origin",
) -> str:
    cmd = ["git", *auth_config(token, web_base), "push", "-u", remote, branch]
    return _run(cmd, cwd=workdir, env=_git_env())


def work_tree_state(workdir: Path) -> WorkTreeState:
    """
    Inspect the repository at `workdir`: current branch, dirtiness, remote.

    Raises GitError when `workdir` is not inside a git work tree.
    """
    env = _git_env()
    try:
        inside = _run(["git", "rev-parse", "--is-inside-work-tree"], cwd=workdir, env=env).strip()
    except GitError as e:
        raise GitError(f"Not a git repository: {workdir}", output=e.output) from e
    if inside != "true":
        raise GitError(f"Not a git work tree: {workdir}")

    try:
        branch = _run(["git", "symbolic-ref", "--quiet", "--short", "HEAD"], cwd=workdir, env=env).strip() or None
    except GitError:
        # Detached HEAD.
        branch = None
    root = Path(_run(["git", "rev-parse", "--show-toplevel"], cwd=workdir, env=env).strip())
    status = _run(["git", "status", "--porcelain"], cwd=workdir, env=env)
    try:
        _run(["git", "rev-parse", "--verify", "--quiet", "HEAD"], cwd=workdir, env=env)
        has_commits = True
    except GitError:
        has_commits = False
    return WorkTreeState(
        branch=branch,
        dirty=bool(status.strip()),
        has_commits=has_commits,
        remote_url=remote_url_of(workdir),
        root=root,
    )


def commit_all(workdir: Path, message: str) -> None:
    env = _git_env()
    _run(["git", "add", "-A"], cwd=workdir, env=env)
    _run(["git", "commit", "-m", message], cwd=workdir, env=env)


def clone(
    *,
    url: str,
    destination: Path,
    token: str | None = None,
    web_base: str = "https://github.com",
) -> Path:
    if destination.exists() and any(destination.iterdir()):
        raise GitError(f"Destination is not empty: {destination}")
    destination.parent.mkdir(parents=True, exist_ok=True)
    cmd = ["git", *auth_config(token, web_base), "clone", url, str(destination)]
    _run(cmd, cwd=destination.parent, env=_git_env())
    return destination


def strip_git_dir(workdir: Path) -> None:
    git_dir = workdir / ".git"
    if git_dir.is_dir():
        # Pack files are read-only on Windows.
        for root, dirs, files in os.walk(git_dir):
            for entry in dirs + files:
                os.chmod(os.path.join(root, entry), stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
        shutil.rmtree(git_dir)
        logger.info("Removed %s", git_dir)
