"""Tests for the markdown vault document source."""

import logging
import os
import stat

import pytest

from dbprops.errors import DocumentReadError
from dbprops.kernel.types import FrontmatterEntry
from dbprops.source import DocumentRef, FolderSelector, TagSelector, VaultSource


VAULT = {
    "Movies/Alien.md": "---\nTitle: Alien\ntags:\n  - scifi\n---\nBody of Alien\n",
    "Movies/Heat.md": "---\nTitle: Heat\ntags: \"#crime\"\n---\nBody #watchlist\n",
    "Movies/poster.png": "not a note",
    "Movies/Old/Ran.md": "---\ntag: scifi\n---\n",
    "Books/Dune.md": "No frontmatter, just #scifi inline and #2024 year.\n",
    ".obsidian/hidden.md": "---\ntags: [scifi]\n---\n",
}


def test_folder_selects_direct_markdown_children(make_vault):
    """Test that folder selection is not recursive and skips non-notes."""
    source = VaultSource(make_vault(VAULT))
    refs = source.list_documents(FolderSelector(folder="Movies"))
    assert [r.path for r in refs] == ["Movies/Alien.md", "Movies/Heat.md"]


def test_folder_root_and_missing(make_vault):
    """Test the vault root and an unknown folder."""
    source = VaultSource(make_vault(VAULT))
    assert source.list_documents(FolderSelector(folder="")) == []
    assert source.list_documents(FolderSelector(folder="/Movies/Old/")) == [DocumentRef(path="Movies/Old/Ran.md")]
    assert source.list_documents(FolderSelector(folder="Nope")) == []


def test_tag_matches_frontmatter_and_inline_tags(make_vault):
    """Test that tags match with or without '#', in frontmatter lists, strings and body text."""
    source = VaultSource(make_vault(VAULT))
    paths = [r.path for r in source.list_documents(TagSelector(tag="#scifi"))]
    assert paths == ["Books/Dune.md", "Movies/Alien.md", "Movies/Old/Ran.md"]
    assert [r.path for r in source.list_documents(TagSelector(tag="crime"))] == ["Movies/Heat.md"]
    assert [r.path for r in source.list_documents(TagSelector(tag="watchlist"))] == ["Movies/Heat.md"]
    assert source.list_documents(TagSelector(tag="2024")) == []


def test_list_folders_and_tags(make_vault):
    """Test the choices offered to the selection UI."""
    source = VaultSource(make_vault(VAULT))
    assert source.list_folders() == ["/", "Books", "Movies", "Movies/Old"]
    assert source.list_tags() == ["crime", "scifi", "watchlist"]


def test_read_metadata(make_vault):
    """Test reading blocks, including a document without one."""
    source = VaultSource(make_vault(VAULT))
    assert source.read_metadata(DocumentRef(path="Movies/Alien.md")) == {"Title": "Alien", "tags": ["scifi"]}
    assert source.read_metadata(DocumentRef(path="Books/Dune.md")) is None


def test_write_replaces_block_and_keeps_body(make_vault):
    """Test that writing replaces the whole block and leaves the body alone."""
    root = make_vault(VAULT)
    source = VaultSource(root)
    ref = DocumentRef(path="Movies/Alien.md")
    assert source.write_metadata(ref, [FrontmatterEntry(key="Name", value="Alien"), FrontmatterEntry(key="Score", value="")])
    assert (root / ref.path).read_text(encoding="utf-8") == "---\nName: Alien\nScore: ''\n---\nBody of Alien\n"


def test_write_inserts_block(make_vault):
    """Test writing to a document that had no block."""
    root = make_vault(VAULT)
    source = VaultSource(root)
    ref = DocumentRef(path="Books/Dune.md")
    source.write_metadata(ref, [FrontmatterEntry(key="Author", value="[[Frank Herbert]]")])
    text = (root / ref.path).read_text(encoding="utf-8")
    assert text == '---\nAuthor: "[[Frank Herbert]]"\n---\nNo frontmatter, just #scifi inline and #2024 year.\n'


def test_write_empty_entries_removes_block(make_vault):
    """Test that an empty schema removes the block entirely."""
    root = make_vault(VAULT)
    source = VaultSource(root)
    source.write_metadata(DocumentRef(path="Movies/Alien.md"), [])
    assert (root / "Movies/Alien.md").read_text(encoding="utf-8") == "Body of Alien\n"


def test_write_missing_document_reports_failure(make_vault):
    """Test that a vanished document is a reported failure, not a new file."""
    root = make_vault(VAULT)
    source = VaultSource(root)
    assert source.write_metadata(DocumentRef(path="Movies/Gone.md"), []) is False
    assert not (root / "Movies/Gone.md").exists()


def test_backup(make_vault):
    """Test the optional .bak copy."""
    root = make_vault(VAULT)
    source = VaultSource(root, backup=True)
    source.write_metadata(DocumentRef(path="Movies/Heat.md"), [])
    assert (root / "Movies/Heat.md.bak").read_text(encoding="utf-8") == VAULT["Movies/Heat.md"]
    # backups are not notes
    assert [r.path for r in source.list_documents(FolderSelector(folder="Movies"))] == ["Movies/Alien.md", "Movies/Heat.md"]


def test_write_keeps_crlf_line_endings(make_vault):
    """Test that a CRLF document keeps CRLF in the block and in the body."""
    root = make_vault({})
    path = root / "note.md"
    path.write_bytes(b"---\r\ntitle: x\r\n---\r\nline1\r\nline2\r\n")
    source = VaultSource(root)
    ref = DocumentRef(path="note.md")
    source.write_metadata(ref, [FrontmatterEntry(key="title", value="x"), FrontmatterEntry(key="n", value=1)])
    assert path.read_bytes() == b"---\r\ntitle: x\r\nn: 1\r\n---\r\nline1\r\nline2\r\n"


def test_write_inserts_crlf_block(make_vault):
    """Test that a block added to a CRLF document without one uses CRLF."""
    root = make_vault({})
    path = root / "note.md"
    path.write_bytes(b"line1\r\nline2\r\n")
    VaultSource(root).write_metadata(DocumentRef(path="note.md"), [FrontmatterEntry(key="a", value=1)])
    assert path.read_bytes() == b"---\r\na: 1\r\n---\r\nline1\r\nline2\r\n"


def test_write_keeps_byte_order_mark(make_vault):
    """Test that a leading byte order mark survives a rewrite."""
    root = make_vault({})
    path = root / "note.md"
    path.write_bytes(b"\xef\xbb\xbf---\na: 1\n---\nbody\n")
    source = VaultSource(root)
    ref = DocumentRef(path="note.md")
    assert source.read_metadata(ref) == {"a": 1}
    source.write_metadata(ref, [FrontmatterEntry(key="a", value=2)])
    assert path.read_bytes() == b"\xef\xbb\xbf---\na: 2\n---\nbody\n"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_write_keeps_file_mode(make_vault):
    """Test that rewriting a note does not change its permissions."""
    root = make_vault(VAULT)
    path = root / "Movies/Alien.md"
    path.chmod(0o644)
    VaultSource(root).write_metadata(DocumentRef(path="Movies/Alien.md"), [FrontmatterEntry(key="Title", value="Alien")])
    assert stat.S_IMODE(path.stat().st_mode) == 0o644


def test_undecodable_document_is_skipped_when_scanning_tags(make_vault, caplog):
    """Test that a non-UTF-8 file does not break tag selection or tag listing."""
    root = make_vault(VAULT)
    (root / "Movies/junk.md").write_bytes(b"\xff\xfe broken")
    source = VaultSource(root)
    with caplog.at_level(logging.WARNING, logger="dbprops.source"):
        paths = [r.path for r in source.list_documents(TagSelector(tag="scifi"))]
        tags = source.list_tags()
    assert paths == ["Books/Dune.md", "Movies/Alien.md", "Movies/Old/Ran.md"]
    assert tags == ["crime", "scifi", "watchlist"]
    assert "Movies/junk.md" in caplog.text


def test_read_metadata_names_undecodable_document(make_vault):
    """Test that reading a non-UTF-8 document raises an error naming it."""
    root = make_vault(VAULT)
    (root / "Movies/junk.md").write_bytes(b"\xff\xfe broken")
    source = VaultSource(root)
    with pytest.raises(DocumentReadError) as excinfo:
        source.read_metadata(DocumentRef(path="Movies/junk.md"))
    assert "Movies/junk.md" in str(excinfo.value)
    assert excinfo.value.ref == DocumentRef(path="Movies/junk.md")
