"""Serialization of replayed entries into a YAML frontmatter block.

Rules:
- Entries are written in order, one ``key: value`` line each
- Lists become block sequences (``  - item`` lines); empty lists become ``[]``
- Wiki links (``[[...]]``) are double-quoted so they are not read back
  as nested flow sequences
- Other scalars go through the YAML dumper; plain strings stay plain
- Timestamps are not resolved, so date-looking strings stay strings
"""

import re
from datetime import date, datetime
from typing import Any, Iterable

import yaml

from .types import FrontmatterEntry

FENCE = "---"
WIKILINK_PATTERN = re.compile(r"^\[\[.*\]\]$")
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


def _without_timestamps(resolvers: dict) -> dict:
    return {
        first: [(tag, regexp) for tag, regexp in entries if tag != _TIMESTAMP_TAG]
        for first, entries in resolvers.items()
    }


class FrontmatterLoader(yaml.SafeLoader):
    """Safe loader that keeps date and datetime strings as plain strings."""


class FrontmatterDumper(yaml.SafeDumper):
    """Safe dumper that agrees with ``FrontmatterLoader`` on what is a string."""


FrontmatterLoader.yaml_implicit_resolvers = _without_timestamps(yaml.SafeLoader.yaml_implicit_resolvers)
FrontmatterDumper.yaml_implicit_resolvers = _without_timestamps(yaml.SafeDumper.yaml_implicit_resolvers)


def load_yaml(text: str) -> Any:
    return yaml.load(text, Loader=FrontmatterLoader)


def quote_wikilink(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _format_datetime(value: date) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None and value.second == 0 and value.microsecond == 0:
            return value.strftime("%Y-%m-%d %H:%M")
        return value.isoformat()
    return value.isoformat()


def format_scalar(value: Any) -> str:
    """Format a single value as inline YAML text."""
    if value is None:
        return ""
    if isinstance(value, str) and WIKILINK_PATTERN.match(value):
        return quote_wikilink(value)
    if isinstance(value, (date, datetime)):
        value = _format_datetime(value)
    style = '"' if isinstance(value, str) and ("\n" in value or "\r" in value) else None
    text = yaml.dump(
        value,
        Dumper=FrontmatterDumper,
        default_flow_style=True,
        default_style=style,
        allow_unicode=True,
        width=float("inf"),
    ).strip()
    # Scalars at document level are terminated with an explicit end marker
    if text.endswith("\n..."):
        text = text[: -len("\n...")].rstrip()
    return text


def format_value(value: Any) -> str:
    """Format the part after ``key:`` (including the separator whitespace)."""
    if isinstance(value, (list, tuple)):
        if not value:
            return " []"
        return "".join(f"\n  - {format_scalar(item)}".rstrip() for item in value)
    text = format_scalar(value)
    return f" {text}" if text else ""


def render_entries(entries: Iterable[FrontmatterEntry]) -> str:
    """Render entries as YAML lines without the fences."""
    return "\n".join(f"{format_scalar(entry.key)}:{format_value(entry.value)}" for entry in entries)


def render_frontmatter(entries: Iterable[FrontmatterEntry]) -> str:
    """
    Render a complete fenced frontmatter block.

    Returns the empty string when there are no entries, which removes the
    metadata block from the document.
    """
    body = render_entries(entries)
    if not body:
        return ""
    return f"{FENCE}\n{body}\n{FENCE}\n"
