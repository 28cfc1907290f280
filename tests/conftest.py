"""Pytest configuration for tests.

No sys.path hacks - tests should import from installed dbprops package.
"""

import itertools
from pathlib import Path
from typing import Callable, Dict

import pytest


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Deterministic identifier minting: p1, p2, p3, ..."""
    counter = itertools.count(1)
    return lambda: f"p{next(counter)}"


@pytest.fixture
def make_vault(tmp_path) -> Callable[[Dict[str, str]], Path]:
    """Write {relative_path: text} into a fresh vault directory and return its root."""
    def _make(files: Dict[str, str]) -> Path:
        root = tmp_path / "vault"
        root.mkdir(exist_ok=True)
        for rel, text in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return root
    return _make
