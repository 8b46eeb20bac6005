from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from core.records import Record, record_category


SORT_KEYS = ("name", "category")
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class ListFilters:
    search_term: str = ""
    # None: the page has no category filter. Empty frozenset: nothing passes.
    selected_categories: Optional[FrozenSet[str]] = None
    sort_key: str = "name"
    sort_direction: str = "asc"


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    return [str(v) for v in values if v is not None]


def normalize_filters(raw: dict, *, available_categories: Optional[Sequence[str]] = None) -> ListFilters:
    """Coerce a raw UI/API payload into ``ListFilters``.

    ``selected_categories`` missing from ``raw`` means "all available"; an
    explicit empty list is kept as an empty filter. Categories that are not in
    ``available_categories`` are dropped.
    """
    search_term = str(raw.get("search_term") or raw.get("search") or "")

    selected: Optional[FrozenSet[str]] = None
    if available_categories is not None:
        if raw.get("selected_categories") is None:
            selected = frozenset(available_categories)
        else:
            wanted = set(_as_str_list(raw.get("selected_categories")))
            selected = frozenset(c for c in available_categories if c in wanted)

    sort_key = str(raw.get("sort_key") or "name").lower()
    if sort_key not in SORT_KEYS:
        sort_key = "name"
    sort_direction = str(raw.get("sort_direction") or "asc").lower()
    if sort_direction not in SORT_DIRECTIONS:
        sort_direction = "asc"

    return ListFilters(
        search_term=search_term,
        selected_categories=selected,
        sort_key=sort_key,
        sort_direction=sort_direction,
    )


def matches_search(record: Record, search_term: str) -> bool:
    if not search_term:
        return True
    q = search_term.lower()
    if q in (record.name or "").lower():
        return True
    category = record_category(record)
    return category is not None and q in category.lower()


def apply_filters(
    records: Iterable[Record],
    search_term: str = "",
    categories: Optional[Iterable[str]] = None,
) -> List[Record]:
    """Records whose name or category contains ``search_term`` (case-insensitive)
    and, when ``categories`` is given, whose category is a member of it."""
    allowed = None if categories is None else frozenset(categories)
    out: List[Record] = []
    for r in records:
        if allowed is not None and record_category(r) not in allowed:
            continue
        if matches_search(r, search_term):
            out.append(r)
    return out


def distinct_categories(records: Iterable[Record]) -> List[str]:
    seen: Dict[str, None] = {}
    for r in records:
        category = record_category(r)
        if category is not None:
            seen.setdefault(category, None)
    return list(seen)


def group_by_category(records: Iterable[Record]) -> Dict[str, List[Record]]:
    groups: Dict[str, List[Record]] = {}
    for r in records:
        groups.setdefault(record_category(r) or "", []).append(r)
    return groups


def _sort_value(record: Record, key: str) -> Tuple[str, ...]:
    name = record.name or ""
    name_key = (name.casefold(), name)
    if key == "category":
        category = record_category(record) or ""
        return (category.casefold(), category) + name_key
    return name_key


def sort_by(records: Iterable[Record], key: str = "name", direction: str = "asc") -> List[Record]:
    """Stable sort by name or (category, name); ties keep their input order in
    both directions."""
    if key not in SORT_KEYS:
        raise ValueError(f"unsupported sort key: {key!r}")
    return sorted(records, key=lambda r: _sort_value(r, key), reverse=(direction == "desc"))
