from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from repo_cli.config import Settings


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.content = b"" if payload is None else json.dumps(payload).encode()
        self.text = self.content.decode()

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeGitHub:
    """Records calls to `requests.request` and replays queued responses."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.routes: dict[tuple[str, str], list[FakeResponse]] = {}

    def add(self, method: str, path: str, response: FakeResponse) -> None:
        self.routes.setdefault((method, path), []).append(response)

    def __call__(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        path = url.split("://", 1)[-1].split("/", 1)[-1]
        path = "/" + path
        self.calls.append({"method": method, "path": path, **kwargs})
        queue = self.routes.get((method, path))
        if not queue:
            return FakeResponse(404, {"message": "Not Found"})
        return queue.pop(0) if len(queue) > 1 else queue[0]


@pytest.fixture
def fake_github(monkeypatch) -> FakeGitHub:
    fake = FakeGitHub()
    monkeypatch.setattr("repo_cli.github_client.requests.request", fake)
    return fake


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch) -> None:
    for name in ("GITHUB_TOKEN", "GITHUB_USER", "GITHUB_API_URL", "NETRC"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("REPO_CLI_CONFIG", str(tmp_path / "home" / ".repo-cli"))
    monkeypatch.setenv("REPO_CLI_NETRC", str(tmp_path / "home" / ".netrc"))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        config_path=tmp_path / "home" / ".repo-cli",
        netrc_path=tmp_path / "home" / ".netrc",
    )
