"""
opener.py

Responsibility: Hand a URL to the platform's URL-opening command.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys

logger = logging.getLogger(__name__)


def opener_command(url: str, *, platform: str | None = None) -> list[str] | None:
    """
    Return the argv that opens `url` on `platform`, or None if no opener is available.
    """
    platform = platform or sys.platform
    if platform == "darwin":
        return ["open", url]
    if platform.startswith("win") or platform == "cygwin":
        # `start` is a cmd builtin; the empty string is the window title.
        return ["cmd", "/c", "start", "", url]
    if os.environ.get("WSL_DISTRO_NAME") and shutil.which("wslview"):
        return ["wslview", url]
    for candidate in ("xdg-open", "gio"):
        path = shutil.which(candidate)
        if path:
            return [candidate, "open", url] if candidate == "gio" else [candidate, url]
    return None


def open_url(url: str) -> bool:
    """
    Open `url` in the user's browser. Returns False when nothing could be launched.
    """
    cmd = opener_command(url)
    if cmd is None:
        logger.warning("No URL opener found on this system")
        return False
    logger.debug("Opening %s with %s", url, cmd[0])
    try:
        subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning("Failed to open %s: %s", url, e)
        return False
    return True
