"""
repo_cli package

This package implements the `repo` command, a small GitHub repository manager.

Key responsibilities are split across modules:
- `config.py`: load the user config file and environment overrides
- `credentials.py`: netrc-backed token storage and interactive setup
- `descriptor.py`: validate the repository descriptor built from CLI flags
- `github_client.py`: isolated GitHub REST API interactions
- `git_ops.py`: local git command sequencing
- `renderer.py`: starter files for a freshly created repository
- `opener.py`: hand a URL to the platform's opener
- `cli.py`: CLI entrypoint and command routing
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
