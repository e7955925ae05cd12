from __future__ import annotations

import pytest
import requests

from repo_cli.github_client import GitHubClient, GitHubError, describe_status, fill_license
from tests.conftest import FakeResponse


def _repo(name: str, private: bool = False, description: str | None = None) -> dict:
    return {
        "name": name,
        "full_name": f"octocat/{name}",
        "owner": {"login": "octocat"},
        "html_url": f"https://github.com/octocat/{name}",
        "clone_url": f"https://github.com/octocat/{name}.git",
        "private": private,
        "description": description,
    }


def test_token_required() -> None:
    with pytest.raises(GitHubError):
        GitHubClient("   ")


def test_pagination_stops_on_empty_page(fake_github) -> None:
    fake_github.add("GET", "/user/repos", FakeResponse(200, [_repo("a"), _repo("b")]))
    fake_github.add("GET", "/user/repos", FakeResponse(200, [_repo("c", private=True)]))
    fake_github.add("GET", "/user/repos", FakeResponse(200, []))

    repos = list(GitHubClient("t").iter_user_repos())

    assert [r.name for r in repos] == ["a", "b", "c"]
    assert repos[2].visibility == "private"
    assert [c["params"]["page"] for c in fake_github.calls] == [1, 2, 3]
    assert all(c["params"]["per_page"] == 100 for c in fake_github.calls)


@pytest.mark.parametrize(
    "status, prefix",
    [
        (401, "Unauthorized"),
        (403, "Forbidden"),
        (404, "Not found"),
        (422, "Validation failed"),
        (500, "GitHub API error 500"),
    ],
)
def test_status_messages(status: int, prefix: str) -> None:
    assert describe_status(status).startswith(prefix)


def test_rate_limit_is_distinguished_from_forbidden(fake_github) -> None:
    fake_github.add(
        "GET",
        "/repos/octocat/a",
        FakeResponse(403, {"message": "API rate limit exceeded"}, headers={"X-RateLimit-Remaining": "0"}),
    )
    with pytest.raises(GitHubError, match="Rate limited") as info:
        GitHubClient("t").get_repo("octocat", "a")
    assert info.value.status_code == 403


def test_validation_errors_carry_details(fake_github) -> None:
    fake_github.add(
        "POST",
        "/user/repos",
        FakeResponse(
            422,
            {"message": "Repository creation failed.", "errors": [{"message": "name already exists on this account"}]},
        ),
    )
    with pytest.raises(GitHubError) as info:
        GitHubClient("t").create_repo(name="a", private=False)
    assert info.value.status_code == 422
    assert "name already exists on this account" in str(info.value)


def test_create_repo_sends_descriptor(fake_github) -> None:
    fake_github.add("POST", "/user/repos", FakeResponse(201, _repo("proj", private=True, description="d")))

    repo = GitHubClient("t").create_repo(name="proj", private=True, description="d")

    assert repo.html_url == "https://github.com/octocat/proj"
    assert fake_github.calls[0]["json"] == {"name": "proj", "private": True, "auto_init": False, "description": "d"}


def test_delete_returns_none_on_204(fake_github) -> None:
    fake_github.add("DELETE", "/repos/octocat/proj", FakeResponse(204))
    assert GitHubClient("t").delete_repo("octocat", "proj") is None


def test_network_error_is_wrapped(monkeypatch) -> None:
    def boom(*_args, **_kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr("repo_cli.github_client.requests.request", boom)
    with pytest.raises(GitHubError, match="Network error"):
        GitHubClient("t").get_authenticated_user()


def test_templates_and_licenses(fake_github) -> None:
    fake_github.add("GET", "/gitignore/templates/Python", FakeResponse(200, {"name": "Python", "source": "__pycache__/\n"}))
    fake_github.add(
        "GET",
        "/licenses/mit",
        FakeResponse(200, {"key": "mit", "name": "MIT License", "body": "Copyright (c) [year] [fullname]\n"}),
    )
    client = GitHubClient("t")

    assert client.get_gitignore_template("Python") == "__pycache__/\n"
    lic = client.get_license("mit")
    assert lic.name == "MIT License"
    assert fill_license(lic.body, year=2024, fullname="octocat") == "Copyright (c) 2024 octocat\n"


def test_replace_topics(fake_github) -> None:
    fake_github.add("PUT", "/repos/octocat/proj/topics", FakeResponse(200, {"names": ["cli", "tools"]}))
    assert GitHubClient("t").replace_topics("octocat", "proj", ["cli", "tools"]) == ["cli", "tools"]
    assert fake_github.calls[0]["json"] == {"names": ["cli", "tools"]}
