import pytest

from manuscript_reviser.adapters.storage import LocalFileStore
from manuscript_reviser.errors import StorageError
from manuscript_reviser.ir import Document
from manuscript_reviser.session import EditingSession


def test_create_is_create_if_absent(tmp_path):
    store = LocalFileStore(str(tmp_path))
    assert store.create("ch/01-rev01.md") is True
    assert store.exists("ch/01-rev01.md")
    store.write("ch/01-rev01.md", "kept")
    assert store.create("ch/01-rev01.md") is False
    assert store.read("ch/01-rev01.md") == "kept"


def test_list_names(tmp_path):
    (tmp_path / "ch").mkdir()
    (tmp_path / "ch" / "b.md").write_text("", encoding="utf-8")
    (tmp_path / "ch" / "a.md").write_text("", encoding="utf-8")
    (tmp_path / "ch" / "sub").mkdir()
    store = LocalFileStore(str(tmp_path))
    assert store.list_names("ch") == ["a.md", "b.md"]
    assert store.list_names("missing") == []


def test_read_missing_raises(tmp_path):
    with pytest.raises(StorageError):
        LocalFileStore(str(tmp_path)).read("nope.md")


def test_paths_cannot_escape_root(tmp_path):
    store = LocalFileStore(str(tmp_path / "root"))
    with pytest.raises(StorageError):
        store.write("../outside.md", "x")


def test_parent_and_join():
    assert LocalFileStore.parent("ch/01.md") == "ch"
    assert LocalFileStore.parent("01.md") == ""
    assert LocalFileStore.join("", "01.md") == "01.md"
    assert LocalFileStore.join("ch", "01.md") == "ch/01.md"


def test_session_open_edit_save(tmp_path):
    (tmp_path / "01.md").write_text("Original.", encoding="utf-8")
    store = LocalFileStore(str(tmp_path))
    session = EditingSession(store)
    events = []
    session.subscribe(lambda event, doc: events.append(event))

    doc = session.open_document("01.md", "01.md")
    assert isinstance(doc, Document)
    assert doc.content == "Original."
    assert session.open_document("01.md", "01.md") is doc

    session.update_content("01.md", "Edited.")
    assert doc.is_dirty
    session.save("01.md")
    assert not doc.is_dirty
    assert (tmp_path / "01.md").read_text(encoding="utf-8") == "Edited."
    assert events == ["opened", "opened", "content", "saved"]


def test_session_dual_view_and_close(tmp_path):
    session = EditingSession(LocalFileStore(str(tmp_path)))
    session.open_document("a.md", "a.md", "A")
    session.open_document("a-rev01.md", "a-rev01.md", "")
    session.set_dual_view("a.md", "a-rev01.md")
    assert session.layout == "dual"
    session.close_document("a-rev01.md")
    assert session.layout == "single"
    assert session.secondary_id is None
    assert session.get("a-rev01.md") is None
