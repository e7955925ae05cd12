"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com
- Interprets GitHub API responses / error payloads

Everything else (git commands, prompts, CLI behavior) should use this client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator

import requests

from repo_cli import __version__

logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RepoInfo:
    owner: str
    name: str
    html_url: str
    clone_url: str
    private: bool = False
    description: str = ""
    default_branch: str = "main"

    @property
    def visibility(self) -> str:
        return "private" if self.private else "public"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepoInfo":
        owner = data.get("owner") or {}
        return cls(
            owner=str(owner.get("login") or ""),
            name=data["name"],
            html_url=data["html_url"],
            clone_url=data["clone_url"],
            private=bool(data.get("private")),
            description=data.get("description") or "",
            default_branch=data.get("default_branch") or "main",
        )


@dataclass(frozen=True)
class LicenseInfo:
    key: str
    name: str
    body: str


def _api_detail(payload: Any) -> str:
    """Pull `message` and any `errors[].message` out of an error payload."""
    if not isinstance(payload, dict):
        return str(payload or "").strip()
    parts = []
    message = str(payload.get("message") or "").strip()
    if message:
        parts.append(message)
    for err in payload.get("errors") or []:
        if isinstance(err, dict):
            detail = err.get("message") or " ".join(
                str(err[k]) for k in ("resource", "field", "code") if err.get(k)
            )
        else:
            detail = str(err)
        if detail:
            parts.append(str(detail))
    return "; ".join(parts)


def describe_status(status_code: int, payload: Any = None, *, rate_limited: bool = False) -> str:
    """
    Map an HTTP status to the short message shown to the user.
    """
    detail = _api_detail(payload)
    if status_code == 401:
        return "Unauthorized: GitHub token is invalid or expired. Run `repo setup` to store a new one."
    if status_code == 403:
        if rate_limited:
            return "Rate limited: GitHub API rate limit exceeded. Try again later."
        msg = "Forbidden: the token lacks permission for this action (check its scopes)."
        return f"{msg} ({detail})" if detail else msg
    if status_code == 404:
        return "Not found: the repository or resource does not exist, or the token cannot see it."
    if status_code == 422:
        msg = "Validation failed"
        return f"{msg}: {detail}" if detail else f"{msg}."
    msg = f"GitHub API error {status_code}"
    return f"{msg}: {detail}" if detail else msg


class GitHubClient:
    def __init__(
        self,
        token: str,
        api_base: str = "https://api.github.com",
        *,
        timeout: float = 30.0,
    ) -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"repo-cli/{__version__}",
        }

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self._api_base}{path}"
        logger.debug("%s %s params=%s", method, path, params)
        try:
            r = requests.request(
                method,
                url,
                headers=self._headers(),
                json=json_body,
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise GitHubError(f"Network error talking to GitHub ({method} {path}): {e}") from e

        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            rate_limited = r.status_code in (403, 429) and (
                r.headers.get("X-RateLimit-Remaining") == "0" or "rate limit" in _api_detail(payload).lower()
            )
            logger.debug("GitHub API error %s %s %s: %s", r.status_code, method, path, payload)
            raise GitHubError(describe_status(r.status_code, payload, rate_limited=rate_limited), status_code=r.status_code)
        if r.status_code == 204 or not r.content:
            return None
        return r.json()

    def get_authenticated_user(self) -> dict[str, Any]:
        """Return the `/user` document for the token's owner."""
        data = self._request("GET", "/user")
        if not isinstance(data, dict) or not data.get("login"):
            raise GitHubError("Unexpected response from GET /user (no login).")
        return data

    def get_repo(self, owner: str, name: str) -> RepoInfo:
        data = self._request("GET", f"/repos/{owner}/{name}")
        return RepoInfo.from_api(data)

    def create_repo(
        self,
        *,
        name: str,
        private: bool,
        description: str = "",
    ) -> RepoInfo:
        """
        Create a repository owned by the authenticated user.

        This method uses the GitHub REST API only; git operations are handled elsewhere.
        """
        body: dict[str, Any] = {
            "name": name,
            "private": private,
            "auto_init": False,
        }
        if description:
            body["description"] = description
        data = self._request("POST", "/user/repos", json_body=body)
        logger.info("Created repository %s", data.get("full_name") or name)
        return RepoInfo.from_api(data)

    def delete_repo(self, owner: str, name: str) -> None:
        self._request("DELETE", f"/repos/{owner}/{name}")
        logger.info("Deleted repository %s/%s", owner, name)

    def replace_topics(self, owner: str, name: str, topics: list[str]) -> list[str]:
        data = self._request("PUT", f"/repos/{owner}/{name}/topics", json_body={"names": list(topics)})
        return list((data or {}).get("names") or [])

    def iter_user_repos(self, *, affiliation: str = "owner") -> Iterator[RepoInfo]:
        """
        Yield every repository of the authenticated user, one page at a time.

        Paging stops at the first page that comes back empty.
        """
        page = 1
        while True:
            data = self._request(
                "GET",
                "/user/repos",
                params={"per_page": PER_PAGE, "page": page, "affiliation": affiliation, "sort": "full_name"},
            )
            if not data:
                logger.debug("Page %d is empty; done", page)
                return
            for item in data:
                yield RepoInfo.from_api(item)
            page += 1

    def get_gitignore_template(self, name: str) -> str:
        """Return the body of a `.gitignore` template (e.g. `Python`, `Node`)."""
        data = self._request("GET", f"/gitignore/templates/{name}")
        source = (data or {}).get("source")
        if source is None:
            raise GitHubError(f"Gitignore template {name!r} has no source.")
        return str(source)

    def get_license(self, key: str) -> LicenseInfo:
        """Return name and raw text for a license key (e.g. `mit`, `apache-2.0`)."""
        data = self._request("GET", f"/licenses/{key}") or {}
        body = data.get("body")
        if body is None:
            raise GitHubError(f"License {key!r} has no body.")
        return LicenseInfo(key=str(data.get("key") or key), name=str(data.get("name") or key), body=str(body))


def fill_license(text: str, *, year: int, fullname: str) -> str:
    """Substitute the placeholders GitHub leaves in license bodies."""
    return (
        text.replace("[year]", str(year))
        .replace("[yyyy]", str(year))
        .replace("[fullname]", fullname)
        .replace("[name of copyright owner]", fullname)
    )
