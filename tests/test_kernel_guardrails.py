"""Guardrails to keep kernel free of side effects and I/O."""

import re
from pathlib import Path


FORBIDDEN_PATTERNS = {
    "argparse": re.compile(r"\bargparse\b"),
    "pathlib": re.compile(r"\bpathlib\b"),
    "open(": re.compile(r"(?<![A-Za-z0-9_.])open\s*\("),
    "print(": re.compile(r"(?<![A-Za-z0-9_])print\s*\("),
    "datetime.now": re.compile(r"\bdatetime\.now\b"),
    "os.": re.compile(r"\bos\."),
    "dbprops.source": re.compile(r"\bdbprops\.source\b"),
    "dbprops.api": re.compile(r"\bdbprops\.api\b"),
}


def test_kernel_has_no_forbidden_tokens():
    kernel_dir = Path(__file__).resolve().parents[1] / "src" / "dbprops" / "kernel"
    offenders = []

    for path in kernel_dir.glob("*.py"):
        contents = path.read_text(encoding="utf-8")
        for token, pattern in FORBIDDEN_PATTERNS.items():
            if pattern.search(contents):
                offenders.append(f"{path.name}: {token}")

    assert list(kernel_dir.glob("*.py")), "kernel sources not found"
    assert not offenders, "Forbidden kernel tokens found: " + ", ".join(offenders)
