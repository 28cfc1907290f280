"""Tests for fuzzy selection among folders and tags."""

from dbprops.selection import choose, rank_choices

FOLDERS = ["/", "Books", "Movies", "Movies/Old", "Projects/Archive"]


def test_exact_choice_wins():
    """Test that an exact choice is returned as is."""
    assert choose("Movies", FOLDERS) == "Movies"


def test_fuzzy_choice():
    """Test that a typo still finds the intended folder."""
    assert choose("movis", FOLDERS) == "Movies"
    assert choose("archive", FOLDERS) == "Projects/Archive"


def test_no_match():
    """Test that unrelated text and empty text choose nothing."""
    assert choose("zzzzqqq", FOLDERS) is None
    assert choose("  ", FOLDERS) is None


def test_rank_choices_orders_best_first():
    """Test ranking, limit and the empty query."""
    ranked = rank_choices("movies", FOLDERS)
    assert ranked[0][0] == "Movies"
    assert all(score >= 55.0 for _, score in ranked)
    assert [c for c, _ in rank_choices("", FOLDERS, limit=2)] == ["/", "Books"]
