"""Per-page list controller.

One ``ListViewController`` is created per mounted page. It owns the page's
RecordSet (an immutable tuple swapped wholesale on every committed change),
the search/category/sort state, the accordion expansion state and a single
edit slot. Every mutation is confirmed by the sheet accessor before the
RecordSet changes; accessor failures are reported through the notification
sink and never propagate to the caller.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple, Union

from core.config import SheetConfig, sheet_config
from core.errors import UnknownSourceError
from core.filters import (
    SORT_KEYS,
    apply_filters,
    distinct_categories,
    group_by_category,
    sort_by,
)
from core.notify import DESTRUCTIVE, Notification, NotificationSink
from core.records import Record, Tombstone, default_record, next_record_id, parse_records, with_changes
from core.sheets import MockSheetsAccessor, SheetsAccessor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageSpec:
    source: str
    singular: str
    plural: str
    load_error_description: str
    category_filter: bool = False
    expand_first_category: bool = False
    sortable: bool = False


PAGES: Dict[str, PageSpec] = {
    "dashboard": PageSpec(
        source="dashboard",
        singular="task",
        plural="data",
        load_error_description="Failed to load dashboard data. Please try again.",
    ),
    "documents": PageSpec(
        source="documents",
        singular="document",
        plural="documents",
        load_error_description="Failed to load documents. Please try again.",
        category_filter=True,
        expand_first_category=True,
    ),
    "diagrammes": PageSpec(
        source="diagrammes",
        singular="diagram",
        plural="diagrams",
        load_error_description="Failed to load diagrams. Please try again.",
        expand_first_category=True,
    ),
    "tableaux": PageSpec(
        source="tableaux",
        singular="tableau",
        plural="tableaux",
        load_error_description="Failed to load tableaux. Please try again.",
        category_filter=True,
        sortable=True,
    ),
}


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Editing:
    original: Optional[Record]
    draft: Record


EditSlot = Union[Idle, Editing]
IDLE = Idle()


@dataclass(frozen=True)
class PendingDelete:
    id: str


Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


def _discard(notification: Notification) -> None:
    logger.debug("notification dropped: %s", notification.title)


class ListViewController:
    def __init__(
        self,
        source: str,
        accessor: Optional[SheetsAccessor] = None,
        notify: Optional[NotificationSink] = None,
        *,
        config: Optional[SheetConfig] = None,
    ) -> None:
        if source not in PAGES:
            raise UnknownSourceError(source)
        self.config = config or sheet_config(source)
        self.page = PAGES[source]
        self.source = source
        self.accessor: SheetsAccessor = accessor or MockSheetsAccessor()
        self._notify: NotificationSink = notify or _discard

        self.records: Tuple[Record, ...] = ()
        self.loading = False
        self.saving = False
        self.search_term = ""
        self.selected_categories: Optional[FrozenSet[str]] = frozenset() if self.page.category_filter else None
        self.expanded_categories: Tuple[str, ...] = ()
        self.sort_key = "name"
        self.sort_direction = "asc"
        self.edit_slot: EditSlot = IDLE
        self.pending_delete: Optional[PendingDelete] = None
        self.selected_id: Optional[str] = None
        self.mounted = True

    # ---------------- lifecycle ----------------
    @property
    def busy(self) -> bool:
        return self.loading or self.saving

    def unmount(self) -> None:
        self.mounted = False

    def _emit(self, title: str, description: Optional[str] = None, *, destructive: bool = False) -> None:
        if not self.mounted:
            return
        self._notify(Notification(title=title, description=description, variant=DESTRUCTIVE if destructive else None))

    async def load(self) -> None:
        self.loading = True
        try:
            rows = await self.accessor.fetch_records(self.config)
            records = parse_records(self.source, rows)
            if not self.mounted:
                return
            self.records = records
            categories = distinct_categories(records)
            if self.page.category_filter:
                self.selected_categories = frozenset(categories)
            if self.page.expand_first_category and categories:
                self.expanded_categories = (categories[0],)
        except Exception:
            logger.exception("loading %s failed", self.source)
            self._emit(
                f"Error loading {self.page.plural}",
                self.page.load_error_description,
                destructive=True,
            )
        finally:
            self.loading = False

    # ---------------- derived views ----------------
    def apply_filters(self) -> List[Record]:
        return apply_filters(self.records, self.search_term, self.selected_categories)

    def view(self) -> List[Record]:
        filtered = self.apply_filters()
        if self.page.sortable:
            return sort_by(filtered, self.sort_key, self.sort_direction)
        return filtered

    def grouped(self) -> Dict[str, List[Record]]:
        return group_by_category(self.view())

    def all_categories(self) -> List[str]:
        return distinct_categories(self.records)

    @property
    def has_active_filters(self) -> bool:
        if self.search_term:
            return True
        return self.selected_categories is not None and self.selected_categories != frozenset(self.all_categories())

    # ---------------- search / filter / sort / expansion ----------------
    def set_search(self, term: str) -> None:
        self.search_term = term or ""

    def clear_search(self) -> None:
        self.search_term = ""

    def toggle_category_filter(self, category: str) -> None:
        if self.selected_categories is None:
            return
        if category in self.selected_categories:
            self.selected_categories = self.selected_categories - {category}
        else:
            self.selected_categories = self.selected_categories | {category}

    def select_all_categories(self) -> None:
        if self.selected_categories is not None:
            self.selected_categories = frozenset(self.all_categories())

    def clear_all_categories(self) -> None:
        if self.selected_categories is not None:
            self.selected_categories = frozenset()

    def toggle_category_expanded(self, category: str) -> None:
        if category in self.expanded_categories:
            self.expanded_categories = tuple(c for c in self.expanded_categories if c != category)
        else:
            self.expanded_categories = self.expanded_categories + (category,)

    def is_expanded(self, category: str) -> bool:
        return category in self.expanded_categories

    def set_sort_key(self, key: str) -> None:
        if key not in SORT_KEYS:
            raise ValueError(f"unsupported sort key: {key!r}")
        self.sort_key = key

    def toggle_sort_direction(self) -> None:
        self.sort_direction = "desc" if self.sort_direction == "asc" else "asc"

    def show_details(self, record_id: str) -> Optional[Record]:
        record = self.find(record_id)
        self.selected_id = record.id if record is not None else None
        return record

    def close_details(self) -> None:
        self.selected_id = None

    def find(self, record_id: str) -> Optional[Record]:
        for r in self.records:
            if r.id == record_id:
                return r
        return None

    # ---------------- edit slot ----------------
    @property
    def draft(self) -> Optional[Record]:
        if isinstance(self.edit_slot, Editing):
            return self.edit_slot.draft
        return None

    def begin_edit(self, record: Optional[Record] = None) -> bool:
        if isinstance(self.edit_slot, Editing) or self.busy:
            return False
        if record is None:
            draft = default_record(self.source, next_record_id(self.records))
        else:
            draft = with_changes(record, {})
        self.edit_slot = Editing(original=record, draft=draft)
        return True

    def update_draft(self, **changes: Any) -> Optional[Record]:
        if not isinstance(self.edit_slot, Editing):
            return None
        draft = with_changes(self.edit_slot.draft, changes)
        self.edit_slot = Editing(original=self.edit_slot.original, draft=draft)
        return draft

    def cancel_edit(self) -> None:
        self.edit_slot = IDLE

    async def commit_edit(self) -> bool:
        slot = self.edit_slot
        if not isinstance(slot, Editing) or self.saving:
            return False
        draft = slot.draft
        is_new = all(r.id != draft.id for r in self.records)
        action = "add" if is_new else "update"
        noun = self.page.singular
        self.saving = True
        try:
            accepted = await self.accessor.update_record(self.config, draft.to_dict())
        except Exception:
            logger.exception("%s %s id=%s failed", action, noun, draft.id)
            accepted = None
        finally:
            self.saving = False
            self.edit_slot = IDLE

        if not self.mounted:
            return False
        if not accepted:
            self._emit(
                f"Error {'adding' if is_new else 'updating'} {noun}",
                f"Failed to {action} the {noun}. Please try again.",
                destructive=True,
            )
            return False

        known = set(self.all_categories())
        category = getattr(draft, "category", None)
        if self.selected_categories is not None and category is not None and category not in known:
            self.selected_categories = self.selected_categories | {category}
        if is_new:
            self.records = self.records + (draft,)
            self._emit(f"{noun.capitalize()} added", f"{draft.name} has been added.")
        else:
            self.records = tuple(draft if r.id == draft.id else r for r in self.records)
            self._emit(f"{noun.capitalize()} updated", f"{draft.name} has been updated.")
        return True

    # ---------------- deletion ----------------
    def request_delete(self, record_id: str) -> Optional[PendingDelete]:
        if self.busy or isinstance(self.edit_slot, Editing) or self.find(record_id) is None:
            return None
        self.pending_delete = PendingDelete(id=record_id)
        return self.pending_delete

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self) -> bool:
        pending = self.pending_delete
        if pending is None or self.saving or isinstance(self.edit_slot, Editing):
            return False
        self.pending_delete = None
        noun = self.page.singular
        self.saving = True
        try:
            accepted = await self.accessor.update_record(self.config, Tombstone(id=pending.id).to_dict())
        except Exception:
            logger.exception("delete %s id=%s failed", noun, pending.id)
            accepted = None
        finally:
            self.saving = False

        if not self.mounted:
            return False
        if not accepted:
            self._emit(f"Error deleting {noun}", f"Failed to delete the {noun}. Please try again.", destructive=True)
            return False
        self.records = tuple(r for r in self.records if r.id != pending.id)
        if self.selected_id == pending.id:
            self.selected_id = None
        self._emit(f"{noun.capitalize()} deleted", f"The {noun} has been deleted.")
        return True

    async def delete_record(self, record_id: str, confirm: Confirm) -> bool:
        """Request, ask ``confirm`` and execute; a declined confirmation is a no-op."""
        if self.request_delete(record_id) is None:
            return False
        decision = confirm(record_id)
        if inspect.isawaitable(decision):
            decision = await decision
        if not decision:
            self.cancel_delete()
            return False
        return await self.confirm_delete()
