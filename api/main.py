from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import AuthStatus, LoginRequest, MetaSourcesResponse, RecordModel, ViewStateModel
from core.auth import AuthStore, login, logout
from core.config import APP_SETTINGS, SOURCE_NAMES, get_base_url
from core.controller import Editing, ListViewController
from core.errors import UnknownSourceError
from core.filters import normalize_filters
from core.metrics_library import compute_library_view
from core.metrics_tasks import compute_dashboard
from core.notify import NotificationLog
from core.sheets import MockSheetsAccessor, SheetsAccessor


app = FastAPI(title="Sheetguard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@dataclass
class PageSession:
    controller: ListViewController
    notifications: NotificationLog
    loaded: bool = False


@dataclass
class ApiState:
    auth_store: AuthStore = field(default_factory=AuthStore)
    accessor: SheetsAccessor = field(default_factory=MockSheetsAccessor)
    pages: Dict[str, PageSession] = field(default_factory=dict)


STATE = ApiState()


def reset_state(auth_store: Optional[AuthStore] = None, accessor: Optional[SheetsAccessor] = None) -> ApiState:
    """Drop every mounted page and swap the auth store / accessor."""
    global STATE
    for session in STATE.pages.values():
        session.controller.unmount()
    STATE = ApiState(
        auth_store=auth_store or AuthStore(),
        accessor=accessor or MockSheetsAccessor(),
    )
    return STATE


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for numpy scalars."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _unauthorized() -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "authentication required", "type": "Unauthorized"})


def _not_found(exc: UnknownSourceError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc), "type": type(exc).__name__})


async def _page(source: str) -> PageSession:
    session = STATE.pages.get(source)
    if session is None:
        notifications = NotificationLog()
        controller = ListViewController(source, STATE.accessor, notifications)
        session = PageSession(controller=controller, notifications=notifications)
        STATE.pages[source] = session
    if not session.loaded:
        await session.controller.load()
        session.loaded = True
    return session


def _page_payload(session: PageSession, **extra: object) -> Dict[str, object]:
    controller = session.controller
    page = compute_dashboard(controller) if controller.source == "dashboard" else compute_library_view(controller)
    notifications = [n.to_dict() for n in session.notifications.drain()]
    return {"page": page, "notifications": notifications, **extra}


def _apply_view_state(controller: ListViewController, state: ViewStateModel) -> None:
    available = controller.all_categories() if controller.selected_categories is not None else None
    selected = state.selected_categories
    if selected is None and controller.selected_categories is not None:
        selected = list(controller.selected_categories)
    filt = normalize_filters(
        {
            "search_term": state.search_term if state.search_term is not None else controller.search_term,
            "selected_categories": selected,
            "sort_key": state.sort_key or controller.sort_key,
            "sort_direction": state.sort_direction or controller.sort_direction,
        },
        available_categories=available,
    )
    controller.set_search(filt.search_term)
    if filt.selected_categories is not None:
        controller.selected_categories = filt.selected_categories
    controller.set_sort_key(filt.sort_key)
    controller.sort_direction = filt.sort_direction


# ---------------- auth ----------------
@app.post("/auth/login")
def auth_login(body: LoginRequest):
    try:
        err = login(body.password, STATE.auth_store)
        if err:
            return _json(AuthStatus(authenticated=False, error=err).model_dump(), status_code=401)
        return _json(AuthStatus(authenticated=True).model_dump())
    except Exception as exc:
        logger.exception("auth_login failed")
        return _error(exc)


@app.post("/auth/logout")
def auth_logout():
    try:
        logout(STATE.auth_store)
        for session in STATE.pages.values():
            session.controller.unmount()
        STATE.pages.clear()
        return _json(AuthStatus(authenticated=False).model_dump())
    except Exception as exc:
        logger.exception("auth_logout failed")
        return _error(exc)


@app.get("/auth/status")
def auth_status():
    return _json(AuthStatus(authenticated=STATE.auth_store.is_authenticated()).model_dump())


# ---------------- meta ----------------
@app.get("/meta/sources")
def meta_sources():
    payload = MetaSourcesResponse(sources=list(SOURCE_NAMES), app_name=APP_SETTINGS.app_name, base_url=get_base_url())
    return _json(payload.model_dump())


# ---------------- pages ----------------
@app.get("/sources/{source}/records")
async def list_records(
    source: str,
    search: Optional[str] = Query(default=None),
    categories: Optional[List[str]] = Query(default=None),
    sort_key: Optional[str] = Query(default=None),
    sort_direction: Optional[str] = Query(default=None),
):
    if not STATE.auth_store.is_authenticated():
        return _unauthorized()
    try:
        session = await _page(source)
        state = ViewStateModel(
            search_term=search,
            selected_categories=categories,
            sort_key=sort_key,
            sort_direction=sort_direction,
        )
        _apply_view_state(session.controller, state)
        return _json(_page_payload(session))
    except UnknownSourceError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("list_records failed")
        return _error(exc)


@app.put("/sources/{source}/view")
async def update_view(source: str, state: ViewStateModel):
    if not STATE.auth_store.is_authenticated():
        return _unauthorized()
    try:
        session = await _page(source)
        _apply_view_state(session.controller, state)
        return _json(_page_payload(session))
    except UnknownSourceError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("update_view failed")
        return _error(exc)


@app.post("/sources/{source}/expanded/{category}")
async def toggle_expanded(source: str, category: str):
    if not STATE.auth_store.is_authenticated():
        return _unauthorized()
    try:
        session = await _page(source)
        session.controller.toggle_category_expanded(category)
        return _json(_page_payload(session))
    except UnknownSourceError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("toggle_expanded failed")
        return _error(exc)


@app.post("/sources/{source}/reload")
async def reload_records(source: str):
    if not STATE.auth_store.is_authenticated():
        return _unauthorized()
    try:
        session = await _page(source)
        await session.controller.load()
        return _json(_page_payload(session))
    except UnknownSourceError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("reload_records failed")
        return _error(exc)


@app.post("/sources/{source}/records")
async def save_record(source: str, body: RecordModel):
    """Create (no id, or an id not in the page) or update (known id) a record."""
    if not STATE.auth_store.is_authenticated():
        return _unauthorized()
    try:
        session = await _page(source)
        controller = session.controller
        original = controller.find(body.id) if body.id else None
        if isinstance(controller.edit_slot, Editing) or not controller.begin_edit(original):
            return _json({"error": "another edit is in progress", "type": "Conflict"}, status_code=409)
        controller.update_draft(**body.model_dump(exclude_none=True, exclude={"id"}))
        saved = await controller.commit_edit()
        return _json(_page_payload(session, saved=saved))
    except UnknownSourceError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("save_record failed")
        return _error(exc)


@app.delete("/sources/{source}/records/{record_id}")
async def delete_record(source: str, record_id: str, confirm: bool = Query(default=False)):
    """Two-step delete: the first call records the request, ``confirm=true`` executes it."""
    if not STATE.auth_store.is_authenticated():
        return _unauthorized()
    try:
        session = await _page(source)
        controller = session.controller
        pending = controller.pending_delete
        if pending is None or pending.id != record_id:
            if controller.request_delete(record_id) is None:
                return _json({"error": f"no record with id {record_id!r}", "type": "NotFound"}, status_code=404)
        if not confirm:
            return _json(
                {"error": "confirmation required", "type": "ConfirmationRequired", "pending": record_id},
                status_code=409,
            )
        deleted = await controller.confirm_delete()
        return _json(_page_payload(session, deleted=deleted))
    except UnknownSourceError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("delete_record failed")
        return _error(exc)


@app.delete("/sources/{source}/pending-delete")
async def cancel_delete(source: str):
    if not STATE.auth_store.is_authenticated():
        return _unauthorized()
    try:
        session = await _page(source)
        session.controller.cancel_delete()
        return _json(_page_payload(session))
    except UnknownSourceError as exc:
        return _not_found(exc)
    except Exception as exc:
        logger.exception("cancel_delete failed")
        return _error(exc)
