"""
descriptor.py

Responsibility: Turn raw CLI input into a validated repository descriptor.

GitHub accepts repository names made of ASCII letters, digits, `.`, `-` and `_`,
up to 100 characters. It silently rewrites anything else, so we reject it up
front instead of creating a repo under a name the user did not ask for.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

MAX_NAME_LENGTH = 100
MAX_TOPICS = 20
MAX_TOPIC_LENGTH = 50

_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")
_TOPIC_RE = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class DescriptorError(ValueError):
    pass


@dataclass(frozen=True)
class RepoDescriptor:
    """Everything needed to create one repository."""

    name: str
    private: bool = False
    description: str = ""
    gitignore: str | None = None
    license: str | None = None
    topics: tuple[str, ...] = field(default_factory=tuple)

    @property
    def visibility(self) -> str:
        return "private" if self.private else "public"


def validate_repo_name(name: str) -> str:
    """
    Return `name` stripped of surrounding whitespace, or raise DescriptorError.
    """
    name = (name or "").strip()
    if not name:
        raise DescriptorError("Repository name must not be empty.")
    if len(name) > MAX_NAME_LENGTH:
        raise DescriptorError(f"Repository name must be at most {MAX_NAME_LENGTH} characters (got {len(name)}).")
    if name in {".", ".."}:
        raise DescriptorError(f"Repository name cannot be {name!r}.")
    if not _NAME_RE.match(name):
        raise DescriptorError(
            f"Invalid repository name {name!r}: use only letters, digits, '.', '-' and '_'."
        )
    return name


def parse_topics(raw: str | Iterable[str] | None) -> tuple[str, ...]:
    """
    Parse a comma separated topic list (`--topics cli,github`).

    Topics are lowercased and de-duplicated; order is preserved.
    """
    if raw is None:
        return ()
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    out: list[str] = []
    for part in parts:
        topic = part.strip().lower()
        if not topic:
            continue
        if len(topic) > MAX_TOPIC_LENGTH:
            raise DescriptorError(f"Topic {topic!r} is longer than {MAX_TOPIC_LENGTH} characters.")
        if not _TOPIC_RE.match(topic):
            raise DescriptorError(
                f"Invalid topic {topic!r}: use lowercase letters, digits and hyphens, not starting with a hyphen."
            )
        if topic not in out:
            out.append(topic)
    if len(out) > MAX_TOPICS:
        raise DescriptorError(f"At most {MAX_TOPICS} topics are allowed (got {len(out)}).")
    return tuple(out)


def build_descriptor(
    *,
    name: str,
    private: bool = False,
    description: str | None = None,
    gitignore: str | None = None,
    license: str | None = None,
    topics: str | Iterable[str] | None = None,
) -> RepoDescriptor:
    gitignore = (gitignore or "").strip() or None
    license_key = (license or "").strip().lower() or None
    return RepoDescriptor(
        name=validate_repo_name(name),
        private=bool(private),
        description=(description or "").strip(),
        gitignore=gitignore,
        license=license_key,
        topics=parse_topics(topics),
    )


def parse_repo_ref(ref: str, *, default_owner: str, web_base: str = "https://github.com") -> tuple[str, str]:
    """
    Split a repository reference into `(owner, name)`.

    Accepts `name`, `owner/name`, `https://github.com/owner/name[.git]` and
    `git@github.com:owner/name.git`. A bare name belongs to `default_owner`.
    """
    path = (ref or "").strip()
    host = web_base.split("://", 1)[-1].rstrip("/")
    for prefix in (web_base.rstrip("/") + "/", f"git@{host}:"):
        if path.startswith(prefix):
            path = path[len(prefix) :]
            break
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]

    parts = path.split("/")
    if len(parts) == 1:
        owner, name = default_owner, parts[0]
    elif len(parts) == 2:
        owner, name = parts
    else:
        raise DescriptorError(f"Invalid repository reference {ref!r}: expected NAME or OWNER/NAME.")
    if not owner:
        raise DescriptorError(f"Repository reference {ref!r} has no owner.")
    return owner, validate_repo_name(name)
