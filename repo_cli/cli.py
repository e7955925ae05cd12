"""
cli.py

Responsibility: CLI entrypoint for `repo`.

Each subcommand is a `*_cmd(args) -> int` function:
- setup:  prompt for username + token, verify, store
- create: create the GitHub repo, then a local repo with starter files, commit, optional push
- delete: confirm, then delete the GitHub repo
- list:   page through the user's repos
- clone:  `git clone` over HTTPS, optionally dropping `.git`
- open:   open the repo page in a browser
- push:   check the local work tree, then push the current branch
- help:   usage

This module orchestrates; concerns live in their own modules:
- Settings: `config.py`
- Token storage: `credentials.py`
- GitHub API: `github_client.py`
- git: `git_ops.py`
"""

from __future__ import annotations

import argparse
import datetime
import logging
import sys
from pathlib import Path

from repo_cli import __version__
from repo_cli import git_ops
from repo_cli.config import ConfigError, Settings, load_settings
from repo_cli.credentials import Credential, CredentialError, ensure_credential, run_setup
from repo_cli.descriptor import DescriptorError, build_descriptor, parse_repo_ref, validate_repo_name
from repo_cli.github_client import GitHubClient, GitHubError, RepoInfo, fill_license
from repo_cli.git_ops import GitError
from repo_cli.opener import open_url
from repo_cli.renderer import RenderError, render_starter

logger = logging.getLogger(__name__)

EXAMPLES = """\
examples:
  repo setup
  repo create my-project -p --desc "A new project" --gitignore Python --license mit --topics cli,tools -push
  repo list
  repo clone my-project -clean
  repo open my-project
  repo push -m "Update docs"
  repo delete my-project
"""


class CLIError(RuntimeError):
    pass


def setup_logging(verbose: int) -> None:
    """Set up logging based on verbosity level."""
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger().setLevel(level)

    # Reduce noise from third-party libraries
    if verbose < 3:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("requests").setLevel(logging.WARNING)


def _settings(args: argparse.Namespace) -> Settings:
    return load_settings(args.config)


def _client(settings: Settings, cred: Credential) -> GitHubClient:
    return GitHubClient(cred.token, settings.api_base, timeout=settings.timeout)


def _login(settings: Settings) -> tuple[Credential, GitHubClient]:
    cred = ensure_credential(settings, client_factory=GitHubClient)
    return cred, _client(settings, cred)


def _ensure_empty_dir(path: Path) -> None:
    if path.exists():
        if not path.is_dir():
            raise CLIError(f"Target exists and is not a directory: {path}")
        if any(path.iterdir()):
            raise CLIError(f"Target directory is not empty: {path}")


def setup_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    run_setup(settings, client_factory=GitHubClient)
    return 0


def _populate_new_repo(
    *,
    client: GitHubClient,
    repo: RepoInfo,
    workdir: Path,
    username: str,
    gitignore: str | None,
    license_key: str | None,
    description: str,
) -> None:
    workdir.mkdir(parents=True, exist_ok=True)

    license_name = ""
    if license_key:
        info = client.get_license(license_key)
        text = fill_license(info.body, year=datetime.date.today().year, fullname=username)
        (workdir / "LICENSE").write_text(text, encoding="utf-8")
        license_name = info.name
    if gitignore:
        (workdir / ".gitignore").write_text(client.get_gitignore_template(gitignore), encoding="utf-8")

    render_starter(
        destination_dir=workdir,
        context={
            "repo_name": repo.name,
            "description": description,
            "clone_url": repo.clone_url,
            "html_url": repo.html_url,
            "owner": repo.owner or username,
            "license_name": license_name,
        },
    )
    git_ops.init_commit(workdir=workdir, remote_url=repo.clone_url)


def create_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    private = settings.private if args.private is None else bool(args.private)
    desc = build_descriptor(
        name=args.name,
        private=private,
        description=args.desc,
        gitignore=args.gitignore,
        license=args.license,
        topics=args.topics,
    )
    workdir = Path(args.dir or desc.name).resolve()
    _ensure_empty_dir(workdir)

    cred, client = _login(settings)
    repo = client.create_repo(name=desc.name, private=desc.private, description=desc.description)
    owner = repo.owner or cred.username
    print(f"Created {desc.visibility} repository {repo.html_url}")

    try:
        if desc.topics:
            client.replace_topics(owner, repo.name, list(desc.topics))
        _populate_new_repo(
            client=client,
            repo=repo,
            workdir=workdir,
            username=cred.username,
            gitignore=desc.gitignore,
            license_key=desc.license,
            description=desc.description,
        )
        print(f"Initialized local repository in {workdir}")
        if args.push:
            git_ops.push(workdir=workdir, branch=git_ops.DEFAULT_BRANCH, token=cred.token, web_base=settings.web_base)
            print(f"Pushed {git_ops.DEFAULT_BRANCH} to {repo.html_url}")
    except (GitHubError, GitError, RenderError, OSError) as e:
        raise CLIError(f"{e}\nThe repository {repo.html_url} exists on GitHub; finish the local setup by hand.") from e
    return 0


def _confirm_delete(owner: str, name: str) -> bool:
    print(f"This permanently deletes {owner}/{name} on GitHub.")
    try:
        answer = input(f"Type the repository name ({name}) to confirm: ")
    except EOFError:
        return False
    return answer.strip() == name


def delete_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    cred, client = _login(settings)
    owner, name = parse_repo_ref(args.name, default_owner=cred.username, web_base=settings.web_base)
    if not args.yes and not _confirm_delete(owner, name):
        print("Aborted.")
        return 1
    try:
        client.delete_repo(owner, name)
    except GitHubError as e:
        if e.status_code == 403:
            raise CLIError(f"{e}\nDeleting repositories needs a token with the 'delete_repo' scope.") from e
        raise
    print(f"Deleted {owner}/{name}")
    return 0


def list_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    _cred, client = _login(settings)
    repos = list(client.iter_user_repos())
    if not repos:
        print("No repositories found.")
        return 0
    width = max(len(r.name) for r in repos)
    for r in repos:
        print(f"{r.name:<{width}}  {r.visibility:<7}  {r.description}".rstrip())
    return 0


def clone_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    cred = ensure_credential(settings, client_factory=GitHubClient)
    owner, name = parse_repo_ref(args.repo, default_owner=cred.username, web_base=settings.web_base)
    destination = Path(args.dir or name).resolve()
    _ensure_empty_dir(destination)

    url = git_ops.https_url(settings.web_base, owner, name)
    git_ops.clone(url=url, destination=destination, token=cred.token, web_base=settings.web_base)
    print(f"Cloned {owner}/{name} into {destination}")
    if args.clean:
        git_ops.strip_git_dir(destination)
        print("Removed git history (.git)")
    return 0


def open_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    cred, client = _login(settings)
    ref = args.name or Path.cwd().name
    owner, name = parse_repo_ref(ref, default_owner=cred.username, web_base=settings.web_base)
    repo = client.get_repo(owner, name)
    if open_url(repo.html_url):
        print(f"Opening {repo.html_url}")
    else:
        print(repo.html_url)
    return 0


def push_cmd(args: argparse.Namespace) -> int:
    settings = _settings(args)
    workdir = Path.cwd()
    state = git_ops.work_tree_state(workdir)
    branch = args.branch or state.branch
    if branch is None:
        raise CLIError("HEAD is detached; check out a branch or pass -b BRANCH.")
    if state.dirty:
        if not args.message:
            raise CLIError("Working tree has uncommitted changes; commit them or pass -m MESSAGE.")
        git_ops.commit_all(workdir, args.message)
    elif not state.has_commits:
        raise CLIError("Nothing to push: the repository has no commits yet.")

    cred = ensure_credential(settings, client_factory=GitHubClient)
    if state.remote_url is None:
        name = validate_repo_name((state.root or workdir).name)
        remote_url = git_ops.https_url(settings.web_base, cred.username, name)
        git_ops.set_remote(workdir, remote_url)
        logger.info("Added origin %s", remote_url)

    git_ops.push(workdir=workdir, branch=branch, token=cred.token, web_base=settings.web_base)
    print(f"Pushed {branch} to origin")
    return 0


def help_cmd(args: argparse.Namespace) -> int:
    parser: argparse.ArgumentParser = args.root_parser
    commands: dict[str, argparse.ArgumentParser] = args.commands
    if args.topic:
        if args.topic not in commands:
            raise CLIError(f"Unknown command: {args.topic} (choose from {', '.join(commands)})")
        commands[args.topic].print_help()
    else:
        parser.print_help()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="repo",
        description="repo - manage your GitHub repositories from the command line",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"repo {__version__}")
    p.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)")
    p.add_argument("--config", default=None, help="Config file (default: ~/.repo-cli or $REPO_CLI_CONFIG)")
    sub = p.add_subparsers(dest="command", metavar="COMMAND")

    s = sub.add_parser("setup", help="Store and verify your GitHub username and token")
    s.set_defaults(func=setup_cmd)

    c = sub.add_parser("create", help="Create a GitHub repository and a matching local repository")
    c.add_argument("name", help="Repository name (letters, digits, '.', '-', '_')")
    c.add_argument("-p", "--private", dest="private", action="store_true", default=None, help="Create a private repo")
    c.add_argument("--public", dest="private", action="store_false", default=None, help="Create a public repo")
    c.add_argument("--desc", default=None, help="Repository description")
    c.add_argument("--gitignore", default=None, help="GitHub .gitignore template name (e.g. Python, Node)")
    c.add_argument("--license", default=None, help="License key (e.g. mit, apache-2.0)")
    c.add_argument("--topics", default=None, help="Comma separated topics")
    c.add_argument("-d", "--dir", default=None, help="Local directory (default: ./NAME)")
    c.add_argument("-push", "--push", action="store_true", help="Push the initial commit")
    c.set_defaults(func=create_cmd)

    d = sub.add_parser("delete", help="Delete a GitHub repository")
    d.add_argument("name", help="NAME or OWNER/NAME")
    d.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    d.set_defaults(func=delete_cmd)

    o = sub.add_parser("open", help="Open a repository in the browser")
    o.add_argument("name", nargs="?", default=None, help="NAME or OWNER/NAME (default: current directory name)")
    o.set_defaults(func=open_cmd)

    ls = sub.add_parser("list", help="List your repositories")
    ls.set_defaults(func=list_cmd)

    cl = sub.add_parser("clone", help="Clone a repository over HTTPS")
    cl.add_argument("repo", help="NAME, OWNER/NAME or a GitHub URL")
    cl.add_argument("-d", "--dir", default=None, help="Destination directory (default: ./NAME)")
    cl.add_argument("-clean", "--clean", action="store_true", help="Remove .git after cloning")
    cl.set_defaults(func=clone_cmd)

    ps = sub.add_parser("push", help="Push the current branch of the local repository")
    ps.add_argument("-m", "--message", default=None, help="Commit pending changes with this message first")
    ps.add_argument("-b", "--branch", default=None, help="Local branch to push (default: the current branch)")
    ps.set_defaults(func=push_cmd)

    h = sub.add_parser("help", help="Show help for repo or one command")
    h.add_argument("topic", nargs="?", default=None, help="Command name")
    h.set_defaults(func=help_cmd, root_parser=p, commands=dict(sub.choices))

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except (CLIError, ConfigError, CredentialError, DescriptorError, GitError, GitHubError, RenderError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
