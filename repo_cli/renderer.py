"""
renderer.py

Responsibility: Write the starter files of a freshly created repository.

Rules:
- Starter templates live in a directory; every file in it lands in the new repo
  at the same relative path.
- UTF-8 text files containing Jinja2 markers are rendered with the repo context.
- Existing files in the destination are never overwritten.

This module does NOT know about GitHub, git, or CLI parsing.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

logger = logging.getLogger(__name__)

STARTER_DIR = Path(__file__).resolve().parent / "templates" / "starter"

_MARKERS = ("{{", "{%", "{#")


class RenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class RenderResult:
    written: tuple[str, ...]
    skipped: tuple[str, ...]


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return None


def render_starter(
    *,
    destination_dir: str | Path,
    context: dict[str, Any],
    template_dir: str | Path | None = None,
) -> RenderResult:
    """
    Render the starter template directory into `destination_dir`.
    """
    tpl_dir = Path(template_dir).resolve() if template_dir else STARTER_DIR
    dst_dir = Path(destination_dir).resolve()

    if not tpl_dir.is_dir():
        raise RenderError(f"Template directory not found: {tpl_dir}")

    env = Environment(
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
    )

    written: list[str] = []
    skipped: list[str] = []
    for src_path in sorted(p for p in tpl_dir.rglob("*") if p.is_file()):
        rel = src_path.relative_to(tpl_dir)
        dst_path = dst_dir / rel
        if dst_path.exists():
            skipped.append(rel.as_posix())
            continue
        dst_path.parent.mkdir(parents=True, exist_ok=True)

        text = _read_text(src_path)
        if text is None or not any(m in text for m in _MARKERS):
            shutil.copy2(src_path, dst_path)
        else:
            try:
                out = env.from_string(text).render(**context)
            except TemplateError as e:
                raise RenderError(f"Failed rendering starter file {rel}: {e}") from e
            dst_path.write_text(out, encoding="utf-8", newline="\n")
        written.append(rel.as_posix())

    logger.debug("Starter files written=%s skipped=%s", written, skipped)
    return RenderResult(written=tuple(written), skipped=tuple(skipped))
