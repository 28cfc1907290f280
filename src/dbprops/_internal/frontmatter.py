"""Frontmatter text helpers (internal): split, join and atomic file writes."""

import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from dbprops.kernel.render import load_yaml

BOM = "\ufeff"
FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?P<yaml>.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def split_frontmatter(raw: str) -> Tuple[Optional[Dict[str, Any]], str, bool]:
    """
    Split a document into (metadata, body, has_block).

    ``metadata`` is None when there is no leading block, when it is not
    valid YAML, or when it is not a mapping. ``has_block`` tells whether a
    fenced block was found at all; ``body`` never includes it, so a write
    replaces the block even when it could not be parsed. A leading byte
    order mark is not part of the body.
    """
    raw = raw[len(BOM):] if raw.startswith(BOM) else raw
    match = FRONTMATTER_PATTERN.match(raw)
    if match is None:
        return None, raw, False
    body = raw[match.end():]
    try:
        data = load_yaml(match.group("yaml"))
    except yaml.YAMLError:
        # malformed, treat as no metadata
        return None, body, True
    if not isinstance(data, dict):
        return None, body, True
    return data, body, True


def detect_newline(raw: str) -> str:
    """The line ending of the document's first line ("\\r\\n" or "\\n")."""
    index = raw.find("\n")
    return "\r\n" if index > 0 and raw[index - 1] == "\r" else "\n"


def join_frontmatter(block: str, body: str, newline: str = "\n", bom: bool = False) -> str:
    """
    Prepend a rendered block (possibly empty) to a document body.

    ``block`` uses "\\n" line endings and is converted to ``newline``; the
    body is kept as is.
    """
    if newline != "\n":
        block = block.replace("\n", newline)
    return f"{BOM if bom else ''}{block}{body}"


def read_text(path: Path) -> str:
    """Read a document without translating its line endings."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def atomic_write_text(path: Path, text: str, make_backup: bool = False) -> None:
    """
    Write ``text`` to ``path`` through a temporary file in the same directory.

    The replaced file's permission bits carry over to the new one.
    """
    if make_backup and path.exists():
        backup = path.with_suffix(path.suffix + ".bak")
        shutil.copy2(path, backup)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
