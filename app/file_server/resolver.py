"""Path normalisation and lookup rules for file server downloads.

Stored paths drift between what was uploaded and what callers ask for, so a
download is resolved through a series of increasingly loose lookups. The
recursive search returns the first file with a matching name in directory
walk order; when two categories hold the same filename the winner depends on
filesystem ordering. That ambiguity is kept as-is.
"""

import os
import posixpath
from typing import Optional

WELL_KNOWN_CATEGORIES = ("audio", "model", "origin_audio", "temp", "default")


def normalize_request_path(raw: str) -> str:
    """Collapse ``.``/``..`` segments and drop anything that climbs above root."""
    path = posixpath.normpath(raw.replace("\\", "/"))
    path = path.lstrip("/")
    while path == ".." or path.startswith("../"):
        path = path[3:] if path.startswith("../") else ""
    return "" if path == "." else path


def normalize_category(raw: Optional[str]) -> str:
    category = normalize_request_path(raw or "")
    return category or "default"


def is_within_root(root: str, candidate: str) -> bool:
    root_real = os.path.realpath(root)
    candidate_real = os.path.realpath(candidate)
    return os.path.commonpath([root_real, candidate_real]) == root_real


def _existing_file(root: str, candidate: str) -> Optional[str]:
    if os.path.isfile(candidate) and is_within_root(root, candidate):
        return candidate
    return None


def find_by_name(root: str, name: str) -> Optional[str]:
    """Depth-first search of ``root`` for a file called ``name``."""
    for dirpath, _dirnames, filenames in os.walk(root):
        if name in filenames:
            found = _existing_file(root, os.path.join(dirpath, name))
            if found:
                return found
    return None


def resolve_download(root: str, raw_path: str) -> Optional[str]:
    """Map a requested path to a file under ``root``, or None."""
    normalized = normalize_request_path(raw_path)
    if not normalized:
        return None

    direct = _existing_file(root, os.path.join(root, *normalized.split("/")))
    if direct:
        return direct

    if "/" not in normalized:
        for category in WELL_KNOWN_CATEGORIES:
            found = _existing_file(root, os.path.join(root, category, normalized))
            if found:
                return found

    return find_by_name(root, posixpath.basename(normalized))
