from __future__ import annotations

import pytest

from repo_cli.descriptor import (
    DescriptorError,
    build_descriptor,
    parse_repo_ref,
    parse_topics,
    validate_repo_name,
)


@pytest.mark.parametrize("name", ["repo", "my-repo", "my_repo", "v1.2", "A" * 100, ".dotfiles"])
def test_valid_names(name: str) -> None:
    assert validate_repo_name(name) == name


@pytest.mark.parametrize("name", ["", "   ", "my repo", "repo!", "a/b", "é", ".", "..", "A" * 101])
def test_invalid_names(name: str) -> None:
    with pytest.raises(DescriptorError):
        validate_repo_name(name)


def test_name_is_stripped() -> None:
    assert validate_repo_name("  repo \n") == "repo"


def test_topics_are_normalized_and_deduplicated() -> None:
    assert parse_topics("CLI, github,,cli , tools") == ("cli", "github", "tools")


def test_topics_reject_bad_characters() -> None:
    with pytest.raises(DescriptorError):
        parse_topics("-leading")
    with pytest.raises(DescriptorError):
        parse_topics("under_score")


def test_topics_limit() -> None:
    with pytest.raises(DescriptorError):
        parse_topics(",".join(f"t{i}" for i in range(21)))


def test_build_descriptor() -> None:
    d = build_descriptor(name="proj", private=True, description=" hello ", license="MIT", topics="a,b")
    assert d.visibility == "private"
    assert d.description == "hello"
    assert d.license == "mit"
    assert d.gitignore is None
    assert d.topics == ("a", "b")


@pytest.mark.parametrize(
    "ref, expected",
    [
        ("proj", ("me", "proj")),
        ("other/proj", ("other", "proj")),
        ("https://github.com/other/proj.git", ("other", "proj")),
        ("https://github.com/other/proj", ("other", "proj")),
        ("git@github.com:other/proj.git", ("other", "proj")),
    ],
)
def test_parse_repo_ref(ref: str, expected: tuple[str, str]) -> None:
    assert parse_repo_ref(ref, default_owner="me") == expected


def test_parse_repo_ref_rejects_deep_paths() -> None:
    with pytest.raises(DescriptorError):
        parse_repo_ref("a/b/c", default_owner="me")
