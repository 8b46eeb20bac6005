from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Type, Union

from core.errors import UnknownSourceError


class DocumentType(str, Enum):
    GOOGLE_DOC = "google-doc"
    PDF = "pdf"
    HTML = "html"
    GOOGLE_SHEET = "google-sheet"


class TaskStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    IN_REVIEW = "In Review"
    COMPLETED = "Completed"


def _enum_or_str(enum_cls, value: object) -> str:
    s = str(value).strip() if value is not None else ""
    try:
        return enum_cls(s).value
    except ValueError:
        return s


def _as_progress(value: object) -> int:
    try:
        out = int(round(float(value)))  # type: ignore[arg-type]
    except Exception:
        return 0
    return max(0, min(100, out))


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class LibraryRecord:
    """A document, diagram or sheet entry shown on the library pages."""

    id: str
    name: str
    category: str
    link: str = ""
    type: str = DocumentType.GOOGLE_DOC.value

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "LibraryRecord":
        return cls(
            id=_as_text(raw.get("id")),
            name=_as_text(raw.get("name")),
            category=_as_text(raw.get("category")),
            link=_as_text(raw.get("link")),
            type=_enum_or_str(DocumentType, raw.get("type") or DocumentType.GOOGLE_DOC.value),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Task:
    id: str
    name: str
    status: str = TaskStatus.NOT_STARTED.value
    progress: int = 0
    assignee: str = ""

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "Task":
        return cls(
            id=_as_text(raw.get("id")),
            name=_as_text(raw.get("name")),
            status=_enum_or_str(TaskStatus, raw.get("status") or TaskStatus.NOT_STARTED.value),
            progress=_as_progress(raw.get("progress", 0)),
            assignee=_as_text(raw.get("assignee")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Tombstone:
    """Payload sent to the accessor to delete a row."""

    id: str
    deleted: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "deleted": True}


Record = Union[LibraryRecord, Task]

RECORD_TYPES: Dict[str, Type[Record]] = {
    "dashboard": Task,
    "documents": LibraryRecord,
    "tableaux": LibraryRecord,
    "diagrammes": LibraryRecord,
}


def record_type(source: str) -> Type[Record]:
    try:
        return RECORD_TYPES[source]
    except KeyError:
        raise UnknownSourceError(source) from None


def parse_records(source: str, rows: Iterable[Dict[str, Any]]) -> tuple:
    cls = record_type(source)
    return tuple(cls.from_raw(row) for row in rows if isinstance(row, dict))


def record_category(record: Record) -> Optional[str]:
    return getattr(record, "category", None)


def next_record_id(records: Iterable[Record]) -> str:
    """Mint max(numeric ids) + 1; ids that are not integers are ignored."""
    highest = 0
    for r in records:
        s = str(r.id).strip()
        if s.isascii() and s.isdigit():
            highest = max(highest, int(s))
    return str(highest + 1)


def default_record(source: str, new_id: str) -> Record:
    cls = record_type(source)
    if cls is Task:
        return Task(id=new_id, name="New Task", status=TaskStatus.NOT_STARTED.value, progress=0, assignee="")
    doc_type = DocumentType.GOOGLE_SHEET if source == "tableaux" else DocumentType.GOOGLE_DOC
    return LibraryRecord(id=new_id, name="New document", category="Uncategorized", link="", type=doc_type.value)


def with_changes(record: Record, changes: Dict[str, Any]) -> Record:
    """Copy of ``record`` with ``changes`` applied; the id never changes."""
    allowed = {k: v for k, v in changes.items() if k != "id" and k in asdict(record)}
    if "progress" in allowed:
        allowed["progress"] = _as_progress(allowed["progress"])
    if "status" in allowed:
        allowed["status"] = _enum_or_str(TaskStatus, allowed["status"])
    if "type" in allowed:
        allowed["type"] = _enum_or_str(DocumentType, allowed["type"])
    for key in ("name", "category", "link", "assignee"):
        if key in allowed:
            allowed[key] = _as_text(allowed[key])
    return replace(record, **allowed)
