"""Tests for type label inference."""

from datetime import date, datetime

import pytest

from dbprops.codes import PropertyType
from dbprops.kernel.types import DocumentSnapshot, EditResult, SnapshotEntry, infer_type


@pytest.mark.parametrize("value,expected", [
    (None, PropertyType.NULL),
    ("", PropertyType.NULL),
    ([], PropertyType.LIST),
    (["a", "b"], PropertyType.LIST),
    (("a",), PropertyType.LIST),
    (True, PropertyType.CHECKBOX),
    (False, PropertyType.CHECKBOX),
    (0, PropertyType.NUMBER),
    (3.5, PropertyType.NUMBER),
    (date(2024, 1, 2), PropertyType.DATETIME),
    (datetime(2024, 1, 2, 10, 30), PropertyType.DATETIME),
    ("2024-01-02", PropertyType.DATE),
    ("2024-01-02 10:30", PropertyType.DATETIME),
    ("2024-01-02T10:30", PropertyType.TEXT),
    ("2024-1-2", PropertyType.TEXT),
    ("hello", PropertyType.TEXT),
    ({"nested": 1}, PropertyType.TEXT),
])
def test_infer_type(value, expected):
    """Test the fixed-priority dispatch over value shapes."""
    assert infer_type(value) == expected


def test_bool_is_not_number():
    """Test that booleans are labelled Checkbox even though bool is an int."""
    assert infer_type(True).value == "Checkbox"
    assert infer_type(1).value == "Number"


def test_type_labels_are_display_strings():
    """Test the labels shown to the user."""
    assert PropertyType.DATETIME.value == "Date & Time"
    assert PropertyType.TEXT == "Text"


def test_snapshot_is_frozen():
    """Test that snapshots cannot be mutated after aggregation."""
    snapshot = DocumentSnapshot(document="a.md", entries=(SnapshotEntry(id="p1", key="Title", value="A"),))
    with pytest.raises(Exception):
        snapshot.entries = ()
    with pytest.raises(Exception):
        snapshot.entries[0].value = "B"
    assert snapshot.get("p1").value == "A"
    assert snapshot.get("p2") is None


def test_edit_result_truthiness():
    """Test that an EditResult is truthy only when applied."""
    assert EditResult(applied=True)
    assert not EditResult(applied=False)
