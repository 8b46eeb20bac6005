# tests/test_sheets.py
from core.config import AccessorDelays, sheet_config
from core.sheets import MockSheetsAccessor, mock_rows_for

from conftest import run


def test_mock_rows_chosen_by_range():
    assert len(mock_rows_for("documents!A1:Z1000")) == 8
    assert len(mock_rows_for("tableaux!A1:Z1000")) == 5
    assert len(mock_rows_for("diagrammes!A1:Z1000")) == 6
    assert mock_rows_for("dashboard!A1:Z1000")[0]["status"] == "In Progress"


def test_mock_rows_are_copies():
    rows = mock_rows_for("documents")
    rows[0]["name"] = "changed"
    assert mock_rows_for("documents")[0]["name"] == "Process Validation Protocol"


def test_mock_accessor_round_trip():
    accessor = MockSheetsAccessor(AccessorDelays(fetch=0.0, update=0.0))
    rows = run(accessor.fetch_records(sheet_config("documents")))
    assert rows[0]["category"] == "Protocols"
    assert run(accessor.update_record(sheet_config("documents"), {"id": "1", "deleted": True})) is True
