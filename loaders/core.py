"""Shared helpers for reading the JSON manifests under ``assets/``.

Manifests are plain JSON with one extension: whole-line ``//`` comments are
stripped before parsing so balance notes can live next to the numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Sequence
import json
import os
import re

_COMMENT_LINE = re.compile(r"^\s*//.*$", re.MULTILINE)

# Installed root: the repository checkout or the site-packages directory that
# receives ``assets/`` as package data
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


@dataclass
class Context:
    """Where manifests are looked up: ``search_paths`` relative to ``repo_root``."""

    repo_root: str
    search_paths: Sequence[str] = ("assets",)


def find_file(ctx: Context, rel_path: str) -> str:
    """Return the first existing ``rel_path`` along the search paths."""
    for base in ctx.search_paths:
        root = base if os.path.isabs(base) else os.path.join(ctx.repo_root, base)
        candidate = os.path.join(root, rel_path)
        if os.path.isfile(candidate):
            return candidate
    raise FileNotFoundError(rel_path)


def read_json(ctx: Context, rel_path: str) -> Any:
    path = find_file(ctx, rel_path)
    with open(path, "r", encoding="utf-8") as fh:
        text = _COMMENT_LINE.sub("", fh.read())
    try:
        return json.loads(text)
    except ValueError as exc:
        raise ValueError(f"Malformed manifest {path}: {exc}") from exc


def require_keys(data: Dict[str, Any], keys: Iterable[str], where: str = "") -> None:
    """Raise :class:`KeyError` naming every key of ``keys`` absent from ``data``."""
    missing = [k for k in keys if k not in data]
    if missing:
        suffix = f" in {where}" if where else ""
        raise KeyError(f"Missing keys{suffix}: {', '.join(missing)}")


def default_context() -> Context:
    """Context rooted at the repository with ``assets`` as search path."""
    return Context(REPO_ROOT)
