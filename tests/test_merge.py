import pytest

from manuscript_reviser.diff.merge import MergeController
from manuscript_reviser.ir import Document, RowType

MORNING = "Morning came slowly over the hills."
DOOR = "Nobody answered the door."
KETTLE = "The kettle whistled in the kitchen."


def _docs(left, right):
    return (Document(id="ch/01.md", display_name="01.md", content="\n\n".join(left)),
            Document(id="ch/01-rev01.md", display_name="01-rev01.md", content="\n\n".join(right)))


def test_accept_all_makes_left_match_right():
    left, right = _docs(["The cat sat on the mat.", DOOR], ["The cat sat quietly on the mat.", KETTLE])
    merge = MergeController(left, right)
    merge.accept_all()
    assert left.content == right.content
    assert left.is_dirty
    assert not right.is_dirty
    assert all(r.type is RowType.EQUAL for r in merge.rows)
    assert merge.stats.change_count == 0


def test_accept_all_is_idempotent():
    left, right = _docs([MORNING, DOOR], [MORNING, KETTLE])
    merge = MergeController(left, right)
    merge.accept_all()
    first = left.content
    merge.accept_all()
    assert left.content == first


def test_reject_all_makes_right_match_left():
    left, right = _docs([MORNING, DOOR], [KETTLE])
    merge = MergeController(left, right)
    merge.reject_all()
    assert right.content == left.content
    assert right.is_dirty
    assert not left.is_dirty


def test_accept_right_on_changed_row():
    left, right = _docs(["The cat sat on the mat.", DOOR], ["The cat sat quietly on the mat.", DOOR])
    merge = MergeController(left, right)
    assert merge.rows[0].type is RowType.CHANGED
    merge.accept_right(0)
    assert left.content == "The cat sat quietly on the mat.\n\n" + DOOR
    assert [r.type for r in merge.rows] == [RowType.EQUAL, RowType.EQUAL]


def test_accept_right_on_added_row_inserts_in_place():
    left, right = _docs([MORNING, KETTLE], [MORNING, DOOR, KETTLE])
    merge = MergeController(left, right)
    assert merge.rows[1].type is RowType.ADDED
    merge.accept_right(1)
    assert left.content == "\n\n".join([MORNING, DOOR, KETTLE])


def test_accept_right_on_removed_row_drops_paragraph():
    left, right = _docs([MORNING, DOOR, KETTLE], [MORNING, KETTLE])
    merge = MergeController(left, right)
    assert merge.rows[1].type is RowType.REMOVED
    merge.accept_right(1)
    assert left.content == "\n\n".join([MORNING, KETTLE])


def test_accept_left_on_added_row_drops_paragraph():
    left, right = _docs([MORNING, KETTLE], [MORNING, DOOR, KETTLE])
    merge = MergeController(left, right)
    merge.accept_left(1)
    assert right.content == "\n\n".join([MORNING, KETTLE])
    assert right.is_dirty


def test_accept_left_on_removed_row_restores_paragraph():
    left, right = _docs([MORNING, DOOR, KETTLE], [MORNING, KETTLE])
    merge = MergeController(left, right)
    merge.accept_left(1)
    assert right.content == left.content


def test_edit_row_replaces_paragraph():
    left, right = _docs([MORNING, DOOR], [MORNING, DOOR])
    merge = MergeController(left, right)
    assert merge.edit_row(1, "right", "  Somebody answered the door at last.  ")
    assert right.content == MORNING + "\n\nSomebody answered the door at last."
    assert merge.rows[1].type is RowType.CHANGED


def test_edit_row_with_same_text_is_noop():
    left, right = _docs([MORNING], [MORNING])
    merge = MergeController(left, right)
    assert merge.edit_row(0, "left", MORNING + "  ") is False
    assert not left.is_dirty
    assert not merge.can_revert


def test_edit_row_with_empty_text_deletes_paragraph():
    left, right = _docs([MORNING, DOOR], [MORNING, DOOR])
    merge = MergeController(left, right)
    merge.edit_row(0, "left", "")
    assert left.content == DOOR
    assert [r.type for r in merge.rows] == [RowType.ADDED, RowType.EQUAL]


def test_edit_row_rejects_unknown_side():
    left, right = _docs([MORNING], [MORNING])
    with pytest.raises(ValueError):
        MergeController(left, right).edit_row(0, "middle", "x")


def test_out_of_range_row():
    left, right = _docs([MORNING], [DOOR])
    merge = MergeController(left, right)
    with pytest.raises(IndexError):
        merge.accept_right(5)
    with pytest.raises(IndexError):
        merge.accept_left(-1)


def test_revert_restores_previous_contents():
    left, right = _docs([MORNING, DOOR], [MORNING, KETTLE])
    original_left = left.content
    merge = MergeController(left, right)
    assert not merge.can_revert
    assert merge.revert() is None

    merge.accept_all()
    assert merge.can_revert
    assert merge.revert() == "accept_all"
    assert left.content == original_left
    assert not left.is_dirty
    assert [r.type for r in merge.rows][0] is RowType.EQUAL
    assert merge.stats.change_count > 0


def test_history_is_bounded():
    left, right = _docs([MORNING, DOOR], [MORNING, KETTLE])
    merge = MergeController(left, right, history_limit=1)
    merge.accept_all()
    merge.reject_all()
    assert merge.revert() == "reject_all"
    assert not merge.can_revert


def test_html_content_is_compared_as_text():
    left = Document(id="a", display_name="a", content="<p>" + MORNING + "</p><p>" + DOOR + "</p>")
    right = Document(id="b", display_name="b", content=MORNING + "\n\n" + DOOR)
    merge = MergeController(left, right)
    assert all(r.type is RowType.EQUAL for r in merge.rows)


def test_edit_row_on_empty_side_inserts_paragraph():
    left, right = _docs([MORNING, KETTLE], [MORNING, DOOR, KETTLE])
    merge = MergeController(left, right)
    assert merge.rows[1].type is RowType.ADDED
    assert merge.edit_row(1, "left", "Somebody knocked twice.")
    assert left.content == "\n\n".join([MORNING, "Somebody knocked twice.", KETTLE])
    assert merge.can_revert


def test_edit_row_on_empty_side_with_no_text_is_noop():
    left, right = _docs([MORNING, KETTLE], [MORNING, DOOR, KETTLE])
    merge = MergeController(left, right)
    assert merge.edit_row(1, "left", "  ") is False
    assert not left.is_dirty
    assert not merge.can_revert
