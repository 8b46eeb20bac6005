# tests/test_controller.py
import pytest

from core.controller import IDLE, Editing, ListViewController, PendingDelete
from core.errors import AccessorError, UnknownSourceError
from core.notify import NotificationLog
from core.records import Task

from conftest import RecordingAccessor, run


def _controller(source="dashboard", accessor=None):
    sink = NotificationLog()
    c = ListViewController(source, accessor or RecordingAccessor(), sink)
    return c, sink


def _loaded(source="dashboard", accessor=None):
    c, sink = _controller(source, accessor)
    run(c.load())
    sink.drain()
    return c, sink


def test_unknown_source():
    with pytest.raises(UnknownSourceError):
        ListViewController("nope")


# ---------------- load ----------------
def test_load_replaces_records_and_clears_loading():
    accessor = RecordingAccessor()
    c, sink = _controller("dashboard", accessor)
    run(c.load())
    assert [t.id for t in c.records] == ["1", "2", "3", "4", "5"]
    assert c.loading is False
    assert accessor.fetch_calls[0].range == "dashboard!A1:Z1000"
    assert sink.items == []


def test_load_initializes_category_filter_and_expansion_for_documents():
    c, _ = _loaded("documents")
    assert c.selected_categories == frozenset({"Protocols", "Reports", "Technical", "Testing"})
    assert c.expanded_categories == ("Protocols",)


def test_diagrams_expand_first_category_without_category_filter():
    c, _ = _loaded("diagrammes")
    assert c.selected_categories is None
    assert c.expanded_categories == ("Process Flows",)


def test_tableaux_filter_all_but_nothing_expanded():
    c, _ = _loaded("tableaux")
    assert len(c.selected_categories) == 5
    assert c.expanded_categories == ()


def test_load_failure_keeps_previous_records_and_notifies(failing_accessor):
    c, sink = _loaded("documents")
    before = c.records
    c.accessor = failing_accessor
    run(c.load())
    assert c.records == before
    assert c.loading is False
    [n] = sink.drain()
    assert n.title == "Error loading documents"
    assert n.variant == "destructive"


def test_first_load_failure_leaves_empty_record_set(failing_accessor):
    c, sink = _controller("dashboard", failing_accessor)
    run(c.load())
    assert c.records == ()
    assert c.loading is False
    assert sink.items[0].description == "Failed to load dashboard data. Please try again."


def test_full_replace_not_merge():
    accessor = RecordingAccessor(rows=[{"id": "1", "name": "A", "category": "X"}])
    c, _ = _loaded("documents", accessor)
    accessor.rows = [{"id": "2", "name": "B", "category": "Y"}]
    run(c.load())
    assert [r.id for r in c.records] == ["2"]
    assert c.selected_categories == frozenset({"Y"})


# ---------------- filters ----------------
def test_apply_filters_uses_search_and_category_state():
    c, _ = _loaded("documents")
    c.set_search("report")
    assert [r.id for r in c.apply_filters()] == ["2", "4", "8"]
    c.toggle_category_filter("Reports")
    assert c.apply_filters() == []
    c.clear_search()
    assert len(c.apply_filters()) == 5
    c.clear_all_categories()
    assert c.apply_filters() == []
    c.select_all_categories()
    assert len(c.apply_filters()) == 8


def test_filter_and_expansion_are_independent():
    c, _ = _loaded("documents")
    assert c.is_expanded("Protocols")
    c.toggle_category_filter("Protocols")
    assert c.is_expanded("Protocols")
    assert "Protocols" not in c.grouped()
    c.toggle_category_expanded("Protocols")
    assert not c.is_expanded("Protocols")
    assert "Protocols" not in c.selected_categories


def test_tableaux_view_is_sorted():
    c, _ = _loaded("tableaux")
    names = [r.name for r in c.view()]
    assert names == sorted(names, key=str.casefold)
    c.set_sort_key("category")
    assert [r.category for r in c.view()][0] == "Process Flows"
    with pytest.raises(ValueError):
        c.set_sort_key("link")


# ---------------- edit slot ----------------
def test_begin_edit_new_then_cancel_leaves_records_identical():
    c, _ = _loaded()
    before = c.records
    assert c.begin_edit(None) is True
    assert isinstance(c.edit_slot, Editing)
    assert c.edit_slot.original is None
    assert c.draft.id == "6"
    c.cancel_edit()
    assert c.edit_slot == IDLE
    assert c.records is before


def test_begin_edit_rejects_second_slot():
    c, _ = _loaded()
    assert c.begin_edit(c.records[0])
    assert c.begin_edit(c.records[1]) is False
    assert c.edit_slot.original == c.records[0]


def test_update_draft_does_not_touch_record_set():
    c, _ = _loaded()
    original = c.records[0]
    c.begin_edit(original)
    c.update_draft(progress=80, id="zzz")
    assert c.draft.progress == 80
    assert c.draft.id == original.id
    assert c.records[0] == original


def test_commit_edit_updates_by_id():
    accessor = RecordingAccessor()
    c, sink = _loaded("dashboard", accessor)
    c.begin_edit(c.records[2])
    c.update_draft(status="In Progress", progress=10)
    assert run(c.commit_edit()) is True
    assert c.records[2] == Task(id="3", name="Task 3", status="In Progress", progress=10, assignee="Bob Johnson")
    assert len(c.records) == 5
    assert accessor.updates[-1]["id"] == "3"
    assert c.edit_slot == IDLE
    [n] = sink.drain()
    assert n.title == "Task updated"
    assert n.variant is None


def test_commit_edit_adds_new_record():
    c, sink = _loaded()
    c.begin_edit(None)
    c.update_draft(name="Task 6")
    assert run(c.commit_edit()) is True
    assert c.records[-1].id == "6"
    assert c.records[-1].name == "Task 6"
    assert sink.drain()[0].title == "Task added"


def test_commit_edit_failure_loses_edit():
    accessor = RecordingAccessor(update_error=AccessorError("boom"))
    c, sink = _loaded("dashboard", accessor)
    before = c.records
    c.begin_edit(c.records[0])
    c.update_draft(progress=5)
    assert run(c.commit_edit()) is False
    assert c.records == before
    assert c.edit_slot == IDLE
    [n] = sink.drain()
    assert n.variant == "destructive"
    assert n.title == "Error updating task"


def test_commit_edit_rejected_by_accessor():
    accessor = RecordingAccessor(update_result=False)
    c, sink = _loaded("dashboard", accessor)
    before = c.records
    c.begin_edit(None)
    assert run(c.commit_edit()) is False
    assert c.records == before
    assert sink.drain()[0].title == "Error adding task"


def test_commit_without_slot_is_noop():
    accessor = RecordingAccessor()
    c, _ = _loaded("dashboard", accessor)
    assert run(c.commit_edit()) is False
    assert accessor.updates == []


def test_new_library_record_category_becomes_visible():
    c, _ = _loaded("documents")
    c.begin_edit(None)
    c.update_draft(name="SOP", category="Procedures")
    run(c.commit_edit())
    assert "Procedures" in c.selected_categories
    assert c.apply_filters()[-1].name == "SOP"


def test_duplicate_ids_are_all_replaced_on_update():
    rows = [{"id": "1", "name": "a", "category": "X"}, {"id": "1", "name": "b", "category": "X"}]
    c, _ = _loaded("documents", RecordingAccessor(rows=rows))
    c.begin_edit(c.records[1])
    c.update_draft(name="c")
    run(c.commit_edit())
    assert [r.name for r in c.records] == ["c", "c"]


# ---------------- delete ----------------
def test_delete_is_two_step():
    accessor = RecordingAccessor()
    c, sink = _loaded("dashboard", accessor)
    assert c.request_delete("2") == PendingDelete(id="2")
    assert accessor.updates == []
    assert len(c.records) == 5
    assert run(c.confirm_delete()) is True
    assert accessor.updates == [{"id": "2", "deleted": True}]
    assert [t.id for t in c.records] == ["1", "3", "4", "5"]
    assert sink.drain()[0].title == "Task deleted"


def test_cancel_delete_keeps_record():
    accessor = RecordingAccessor()
    c, _ = _loaded("dashboard", accessor)
    c.request_delete("2")
    c.cancel_delete()
    assert run(c.confirm_delete()) is False
    assert accessor.updates == []
    assert len(c.records) == 5


def test_delete_record_with_confirmation_callback():
    c, _ = _loaded()
    assert run(c.delete_record("1", lambda _id: False)) is False
    assert len(c.records) == 5

    async def yes(_id):
        return True

    assert run(c.delete_record("1", yes)) is True
    assert [t.id for t in c.records] == ["2", "3", "4", "5"]


def test_delete_failure_keeps_records():
    accessor = RecordingAccessor(update_error=AccessorError("boom"))
    c, sink = _loaded("dashboard", accessor)
    assert run(c.delete_record("1", lambda _id: True)) is False
    assert len(c.records) == 5
    assert sink.drain()[0].title == "Error deleting task"


def test_request_delete_unknown_id():
    c, _ = _loaded()
    assert c.request_delete("404") is None


def test_delete_is_refused_while_editing():
    accessor = RecordingAccessor()
    c, sink = _loaded("dashboard", accessor)
    c.begin_edit(c.find("2"))
    assert c.request_delete("2") is None
    assert c.pending_delete is None
    c.update_draft(name="renamed")
    assert run(c.commit_edit()) is True
    assert [t.id for t in c.records] == ["1", "2", "3", "4", "5"]
    assert [n.title for n in sink.drain()] == ["Task updated"]


def test_pending_delete_waits_for_open_edit():
    accessor = RecordingAccessor()
    c, _ = _loaded("dashboard", accessor)
    c.request_delete("2")
    c.begin_edit(c.find("2"))
    assert run(c.confirm_delete()) is False
    assert accessor.updates == []
    c.cancel_edit()
    assert run(c.confirm_delete()) is True
    assert [t.id for t in c.records] == ["1", "3", "4", "5"]


# ---------------- unmount ----------------
def test_settlement_after_unmount_is_a_noop():
    c, sink = _controller("documents")

    async def scenario():
        c.unmount()
        await c.load()

    run(scenario())
    assert c.records == ()
    assert c.loading is False
    assert sink.items == []


def test_commit_after_unmount_does_not_mutate():
    c, sink = _loaded()
    before = c.records
    c.begin_edit(None)
    c.unmount()
    assert run(c.commit_edit()) is False
    assert c.records == before
    assert c.edit_slot == IDLE
    assert sink.items == []
