"""Document source: selecting, reading and rewriting documents' metadata blocks.

The engine only talks to a ``DocumentSource``. ``VaultSource`` is the
implementation for a folder of markdown notes with YAML frontmatter.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Literal, Optional, Protocol, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from dbprops._internal.frontmatter import (
    BOM,
    atomic_write_text,
    detect_newline,
    join_frontmatter,
    read_text,
    split_frontmatter,
)
from dbprops.errors import DocumentReadError
from dbprops.kernel.render import render_frontmatter
from dbprops.kernel.types import FrontmatterEntry

logger = logging.getLogger(__name__)

ROOT_FOLDER = "/"
INLINE_TAG_PATTERN = re.compile(r"(?<![^\s])#([\w/-]+)")


class DocumentRef(BaseModel):
    """A document in the source, by vault-relative POSIX path."""
    path: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return self.path


class FolderSelector(BaseModel):
    """Select the direct children of a folder."""
    kind: Literal["folder"] = "folder"
    folder: str

    model_config = ConfigDict(frozen=True)


class TagSelector(BaseModel):
    """Select every document carrying a tag."""
    kind: Literal["tag"] = "tag"
    tag: str

    model_config = ConfigDict(frozen=True)


Selector = Union[FolderSelector, TagSelector]


class DocumentSource(Protocol):
    """Contract between the editing workflow and the document store."""

    def list_documents(self, selector: Selector) -> List[DocumentRef]:
        """Ordered documents matched by a folder or tag selector."""
        ...

    def read_metadata(self, ref: DocumentRef) -> Optional[Dict[str, Any]]:
        """The document's metadata block, or None when it has none."""
        ...

    def write_metadata(self, ref: DocumentRef, entries: Sequence[FrontmatterEntry]) -> bool:
        """Replace the whole metadata block with ``entries``; False on failure."""
        ...


def normalize_tag(tag: str) -> str:
    """Strip surrounding whitespace and a leading '#'."""
    return tag.strip().lstrip("#")


def _frontmatter_tags(metadata: Optional[Dict[str, Any]]) -> List[str]:
    if not metadata:
        return []
    tags: List[str] = []
    for key in ("tags", "tag"):
        value = metadata.get(key)
        if isinstance(value, str):
            tags.append(normalize_tag(value))
        elif isinstance(value, (list, tuple)):
            tags.extend(normalize_tag(str(t)) for t in value if t is not None)
    return tags


def _inline_tags(body: str) -> List[str]:
    # Pure numbers are not tags
    return [m.group(1) for m in INLINE_TAG_PATTERN.finditer(body) if not m.group(1).isdigit()]


class VaultSource:
    """A directory of markdown documents with YAML frontmatter."""

    def __init__(self, root: Union[str, Path], suffixes: Iterable[str] = (".md",), backup: bool = False):
        self.root = Path(root)
        self.suffixes = tuple(s.lower() for s in suffixes)
        self.backup = backup

    def path_of(self, ref: DocumentRef) -> Path:
        return self.root / ref.path

    def _ref(self, path: Path) -> DocumentRef:
        return DocumentRef(path=path.relative_to(self.root).as_posix())

    def _is_document(self, path: Path) -> bool:
        return path.is_file() and path.suffix.lower() in self.suffixes

    def _is_hidden(self, path: Path) -> bool:
        return any(part.startswith(".") for part in path.relative_to(self.root).parts)

    def _iter_documents(self) -> Iterator[Path]:
        for path in sorted(self.root.rglob("*")):
            if self._is_document(path) and not self._is_hidden(path):
                yield path

    def _scan(self) -> Iterator[Tuple[Path, Optional[Dict[str, Any]], str]]:
        """(path, metadata, body) for every readable document; undecodable ones are skipped."""
        for path in self._iter_documents():
            try:
                raw = read_text(path)
            except UnicodeDecodeError as e:
                logger.warning("Skipping %s: not valid UTF-8 (%s)", path.relative_to(self.root).as_posix(), e.reason)
                continue
            metadata, body, _ = split_frontmatter(raw)
            yield path, metadata, body

    def _read(self, ref: DocumentRef) -> str:
        try:
            return read_text(self.path_of(ref))
        except UnicodeDecodeError as e:
            raise DocumentReadError(ref, f"Cannot read {ref}: not valid UTF-8 ({e.reason} at byte {e.start})") from e

    def _folder_path(self, folder: str) -> Path:
        folder = folder.strip().strip("/")
        return self.root / folder if folder else self.root

    # Selection

    def list_documents(self, selector: Selector) -> List[DocumentRef]:
        if isinstance(selector, FolderSelector):
            return self._documents_in_folder(selector.folder)
        if isinstance(selector, TagSelector):
            return self._documents_with_tag(selector.tag)
        raise TypeError(f"Unsupported selector: {selector!r}")

    def _documents_in_folder(self, folder: str) -> List[DocumentRef]:
        path = self._folder_path(folder)
        if not path.is_dir():
            logger.debug("Folder %r not found under %s", folder, self.root)
            return []
        return [self._ref(p) for p in sorted(path.iterdir()) if self._is_document(p)]

    def _documents_with_tag(self, tag: str) -> List[DocumentRef]:
        wanted = normalize_tag(tag)
        if not wanted:
            return []
        refs = []
        for path, metadata, body in self._scan():
            if wanted in _inline_tags(body) or wanted in _frontmatter_tags(metadata):
                refs.append(self._ref(path))
        return refs

    def list_folders(self) -> List[str]:
        """Every non-hidden folder, the vault root included as '/'."""
        folders = [ROOT_FOLDER]
        for path in sorted(self.root.rglob("*")):
            if path.is_dir() and not self._is_hidden(path):
                folders.append(path.relative_to(self.root).as_posix())
        return folders

    def list_tags(self) -> List[str]:
        """Every inline and frontmatter tag in the vault, without '#'."""
        tags = set()
        for _, metadata, body in self._scan():
            tags.update(_inline_tags(body))
            tags.update(t for t in _frontmatter_tags(metadata) if t)
        return sorted(tags)

    # Metadata I/O

    def read_metadata(self, ref: DocumentRef) -> Optional[Dict[str, Any]]:
        """Raises DocumentReadError when the document is not valid UTF-8."""
        metadata, _, _ = split_frontmatter(self._read(ref))
        return metadata

    def write_metadata(self, ref: DocumentRef, entries: Sequence[FrontmatterEntry]) -> bool:
        path = self.path_of(ref)
        if not path.is_file():
            logger.warning("Document %s no longer exists", ref)
            return False
        raw = self._read(ref)
        _, body, _ = split_frontmatter(raw)
        # Line endings and the byte order mark follow the existing document
        text = join_frontmatter(render_frontmatter(entries), body, newline=detect_newline(raw), bom=raw.startswith(BOM))
        atomic_write_text(path, text, make_backup=self.backup)
        logger.debug("Wrote %d properties to %s", len(entries), ref)
        return True
