from __future__ import annotations

from typing import Any, Dict, List

from core.records import DocumentType

TYPE_LABELS = {
    DocumentType.GOOGLE_DOC.value: "Google Doc",
    DocumentType.PDF.value: "PDF",
    DocumentType.HTML.value: "HTML",
    DocumentType.GOOGLE_SHEET.value: "Google Sheet",
}

FILTERED_EMPTY_MESSAGE = "Try a different search term or adjust your filters"


def type_label(value: str) -> str:
    return TYPE_LABELS.get(value, value or "Unknown")


def _record_payload(record) -> Dict[str, Any]:
    out = record.to_dict()
    if "type" in out:
        out["type_label"] = type_label(out["type"])
    return out


def empty_message(controller) -> str:
    if controller.has_active_filters:
        return FILTERED_EMPTY_MESSAGE
    return f"No {controller.page.plural} available"


def compute_library_view(controller) -> Dict[str, Any]:
    records = controller.view()
    selected = controller.selected_categories
    payload: Dict[str, Any] = {
        "source": controller.source,
        "loading": controller.loading,
        "search_term": controller.search_term,
        "total": len(controller.records),
        "count": len(records),
        "categories": {
            "all": controller.all_categories(),
            "selected": None if selected is None else [c for c in controller.all_categories() if c in selected],
            "expanded": list(controller.expanded_categories),
        },
        "empty_message": empty_message(controller) if not records else None,
    }
    if controller.page.sortable:
        payload["sort"] = {"key": controller.sort_key, "direction": controller.sort_direction}
        payload["records"] = [_record_payload(r) for r in records]
    else:
        groups: List[Dict[str, Any]] = []
        for category, items in controller.grouped().items():
            groups.append(
                {
                    "category": category,
                    "expanded": controller.is_expanded(category),
                    "count": len(items),
                    "records": [_record_payload(r) for r in items],
                }
            )
        payload["groups"] = groups
    selected_record = controller.find(controller.selected_id) if controller.selected_id else None
    payload["selected"] = _record_payload(selected_record) if selected_record is not None else None
    draft = controller.draft
    payload["editing"] = draft.to_dict() if draft is not None else None
    return payload
