import asyncio
from contextlib import contextmanager
from typing import Dict, Optional

import pandas as pd
import streamlit as st

from core.auth import LOGIN_VIEW, AuthStore, guard_view, login, logout
from core.config import APP_SETTINGS
from core.controller import Editing, ListViewController
from core.logging_config import setup_logging
from core.metrics_library import compute_library_view
from core.metrics_tasks import compute_dashboard
from core.notify import NotificationLog
from core.records import DocumentType, TaskStatus

setup_logging()

NAV_PAGES = {
    "Dashboard": "dashboard",
    "Documents": "documents",
    "Diagrammes": "diagrammes",
    "Tableaux": "tableaux",
}

PAGE_CAPTIONS = {
    "dashboard": "Overview of CBE#4-Process Validation project progress",
    "documents": "Protocols, reports and specifications grouped by category",
    "diagrammes": "Process and facility diagrams grouped by category",
    "tableaux": "Tracking sheets and matrices",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(controller: ListViewController) -> str:
    chips = [f"Search: {controller.search_term}" if controller.search_term else "Search: none"]
    if controller.selected_categories is not None:
        total = len(controller.all_categories())
        chips.append(
            "Category: All"
            if len(controller.selected_categories) == total
            else f"Category: {len(controller.selected_categories)} of {total}"
        )
    if controller.page.sortable:
        chips.append(f"Sort: {controller.sort_key} {'A-Z' if controller.sort_direction == 'asc' else 'Z-A'}")
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, controller: ListViewController, export_df: Optional[pd.DataFrame] = None):
    inject_base_styles()
    c1, c2 = st.columns([7, 3])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        btn_cols = st.columns(2)
        if btn_cols[0].button("Refresh", key=f"refresh_{controller.source}", disabled=controller.busy or isinstance(controller.edit_slot, Editing)):
            run(controller.load())
            st.rerun()
        if export_df is not None and not export_df.empty:
            btn_cols[1].download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=f"{controller.source}.csv",
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{format_filter_summary(controller)}</div>", unsafe_allow_html=True)


# ---------- state ----------
def run(coro):
    return asyncio.run(coro)


def auth_store() -> AuthStore:
    if "_auth_store" not in st.session_state:
        st.session_state["_auth_store"] = AuthStore()
    return st.session_state["_auth_store"]


def notifications() -> NotificationLog:
    if "_notifications" not in st.session_state:
        st.session_state["_notifications"] = NotificationLog()
    return st.session_state["_notifications"]


def page_controller(source: str) -> ListViewController:
    pages: Dict[str, ListViewController] = st.session_state.setdefault("_pages", {})
    controller = pages.get(source)
    if controller is None:
        controller = ListViewController(source, notify=notifications())
        pages[source] = controller
        with st.spinner("Loading..."):
            run(controller.load())
    return controller


def unmount_pages():
    for controller in st.session_state.get("_pages", {}).values():
        controller.unmount()
    st.session_state["_pages"] = {}


def flush_notifications():
    for n in notifications().drain():
        text = f"**{n.title}**" + (f": {n.description}" if n.description else "")
        if n.is_destructive:
            st.error(text)
        else:
            st.toast(text)


# ---------- login ----------
def render_login_page():
    inject_base_styles()
    _, mid, _ = st.columns([1, 2, 1])
    with mid:
        st.markdown("### Authentication Required")
        st.caption("Please enter your password to access the application")
        with st.form("login"):
            password = st.text_input("Password", type="password", placeholder="Enter password")
            submitted = st.form_submit_button("Login")
        if submitted:
            error = login(password, auth_store())
            if error:
                st.error(error)
            else:
                st.rerun()


# ---------- shared edit / delete widgets ----------
def render_delete_confirmation(controller: ListViewController):
    pending = controller.pending_delete
    if pending is None:
        return
    record = controller.find(pending.id)
    label = record.name if record is not None else pending.id
    st.warning(f"Are you sure you want to delete this {controller.page.singular}? ({label})")
    c1, c2 = st.columns(2)
    if c1.button("Delete", key=f"confirm_delete_{controller.source}", type="primary", disabled=controller.busy or isinstance(controller.edit_slot, Editing)):
        run(controller.confirm_delete())
        st.rerun()
    if c2.button("Keep", key=f"cancel_delete_{controller.source}"):
        controller.cancel_delete()
        st.rerun()


def render_edit_form(controller: ListViewController):
    slot = controller.edit_slot
    if not isinstance(slot, Editing):
        return
    draft = slot.draft
    is_task = controller.source == "dashboard"
    title = f"Edit {controller.page.singular}" if slot.original is not None else f"New {controller.page.singular}"
    with card(title):
        with st.form(f"edit_{controller.source}"):
            name = st.text_input("Name", value=draft.name)
            changes = {"name": name}
            if is_task:
                statuses = [s.value for s in TaskStatus]
                changes["status"] = st.selectbox(
                    "Status", statuses, index=statuses.index(draft.status) if draft.status in statuses else 0
                )
                changes["progress"] = st.number_input("Progress", min_value=0, max_value=100, value=int(draft.progress))
                changes["assignee"] = st.text_input("Assignee", value=draft.assignee)
            else:
                types = [t.value for t in DocumentType]
                changes["category"] = st.text_input("Category", value=draft.category)
                changes["link"] = st.text_input("Link", value=draft.link)
                changes["type"] = st.selectbox("Type", types, index=types.index(draft.type) if draft.type in types else 0)
            c1, c2 = st.columns(2)
            save = c1.form_submit_button("Save", disabled=controller.busy)
            cancel = c2.form_submit_button("Cancel")
        if save:
            controller.update_draft(**changes)
            with st.spinner("Saving..."):
                run(controller.commit_edit())
            st.rerun()
        if cancel:
            controller.cancel_edit()
            st.rerun()


# ----- Page renderers -----
def render_dashboard_page():
    controller = page_controller("dashboard")
    payload = compute_dashboard(controller)
    tasks_df = pd.DataFrame(payload["tasks"])
    render_page_header("Dashboard", "Home / Dashboard", controller, export_df=tasks_df)
    st.caption(PAGE_CAPTIONS["dashboard"])

    stats = payload["stats"]
    cols = st.columns(4)
    cols[0].metric("Overall Progress", f"{stats['overall']}%")
    cols[1].metric("Completed", stats["completed"])
    cols[2].metric("In Progress", stats["in_progress"])
    cols[3].metric("Not Started", stats["not_started"])
    st.progress(stats["overall"] / 100.0)

    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("Progress Overview"):
            st.vega_lite_chart(payload["charts"]["progress"], use_container_width=True)
    with chart_cols[1]:
        with card("Tasks by Status"):
            st.vega_lite_chart(payload["charts"]["status"], use_container_width=True)

    with card("Tasks"):
        if st.button("Add Task", disabled=controller.busy or isinstance(controller.edit_slot, Editing)):
            controller.begin_edit(None)
            st.rerun()
        render_edit_form(controller)
        render_delete_confirmation(controller)
        if not payload["tasks"]:
            st.info("No tasks available.")
        for idx, task in enumerate(controller.view()):
            c = st.columns([3, 2, 2, 3, 1, 1])
            c[0].write(task.name)
            c[1].write(task.status)
            c[2].progress(task.progress / 100.0, text=f"{task.progress}%")
            c[3].write(task.assignee or "-")
            if c[4].button("Edit", key=f"edit_{idx}_{task.id}", disabled=controller.busy or isinstance(controller.edit_slot, Editing)):
                controller.begin_edit(task)
                st.rerun()
            if c[5].button("Delete", key=f"delete_{idx}_{task.id}", disabled=controller.busy or isinstance(controller.edit_slot, Editing)):
                controller.request_delete(task.id)
                st.rerun()


def render_category_filter(controller: ListViewController):
    if controller.selected_categories is None:
        return
    with st.expander("Filter categories", expanded=False):
        b1, b2 = st.columns(2)
        if b1.button("Select all", key=f"all_{controller.source}"):
            controller.select_all_categories()
            st.rerun()
        if b2.button("Clear all", key=f"none_{controller.source}"):
            controller.clear_all_categories()
            st.rerun()
        for category in controller.all_categories():
            checked = category in controller.selected_categories
            if st.checkbox(category, value=checked, key=f"cat_{controller.source}_{category}") != checked:
                controller.toggle_category_filter(category)
                st.rerun()


def render_search(controller: ListViewController):
    term = st.text_input(
        f"Search {controller.page.plural}",
        value=controller.search_term,
        key=f"search_{controller.source}",
        placeholder="Search by name or category",
    )
    if term != controller.search_term:
        controller.set_search(term)


def render_record_row(controller: ListViewController, record: Dict[str, object], key: str):
    c = st.columns([8, 1, 1])
    c[0].markdown(f"[{record['name']}]({record['link']}) · {record.get('type_label', '')}")
    editing = isinstance(controller.edit_slot, Editing)
    if c[1].button("Edit", key=f"edit_{key}", disabled=controller.busy or editing):
        controller.begin_edit(controller.find(str(record["id"])))
        st.rerun()
    if c[2].button("Delete", key=f"delete_{key}", disabled=controller.busy or editing):
        controller.request_delete(str(record["id"]))
        st.rerun()


def render_library_page(title: str, source: str):
    controller = page_controller(source)
    render_search(controller)
    payload = compute_library_view(controller)
    render_page_header(title, f"Home / {title}", controller, export_df=pd.DataFrame([r.to_dict() for r in controller.view()]))
    st.caption(PAGE_CAPTIONS[source])
    render_category_filter(controller)

    if st.button(f"Add {controller.page.singular}", key=f"add_{source}", disabled=controller.busy or isinstance(controller.edit_slot, Editing)):
        controller.begin_edit(None)
        st.rerun()
    render_edit_form(controller)
    render_delete_confirmation(controller)

    if payload["empty_message"]:
        st.info(payload["empty_message"])
        return

    if controller.page.sortable:
        s1, s2 = st.columns([2, 8])
        if s1.button(f"Sort {'A-Z' if controller.sort_direction == 'asc' else 'Z-A'}", key=f"sort_{source}"):
            controller.toggle_sort_direction()
            st.rerun()
        if s2.toggle("Sort by category", value=controller.sort_key == "category", key=f"sortkey_{source}") != (controller.sort_key == "category"):
            controller.set_sort_key("name" if controller.sort_key == "category" else "category")
            st.rerun()
        for idx, record in enumerate(payload["records"]):
            with card(record["name"]):
                st.caption(record["category"])
                render_record_row(controller, record, f"{source}_{idx}")
                if st.button("Details", key=f"details_{source}_{idx}"):
                    controller.show_details(str(record["id"]))
                    st.rerun()
        selected = payload["selected"]
        if selected is not None:
            with card(f"Details: {selected['name']}"):
                st.json(selected)
                if st.button("Close", key=f"close_{source}"):
                    controller.close_details()
                    st.rerun()
        return

    for group in payload["groups"]:
        category = group["category"]
        marker = "▾" if group["expanded"] else "▸"
        if st.button(f"{marker} {category} ({group['count']})", key=f"group_{source}_{category}"):
            controller.toggle_category_expanded(category)
            st.rerun()
        if group["expanded"]:
            with st.container(border=True):
                for idx, record in enumerate(group["records"]):
                    render_record_row(controller, record, f"{source}_{category}_{idx}")


def render_shell(current_page: str):
    with st.sidebar:
        st.markdown(f"### {APP_SETTINGS.app_name}")
        choice = st.radio("Navigate", list(NAV_PAGES), index=list(NAV_PAGES.values()).index(current_page))
        st.markdown("---")
        if st.button("Logout"):
            logout(auth_store())
            unmount_pages()
            st.rerun()
    return NAV_PAGES[choice]


# ---------- UI setup ----------
st.set_page_config(page_title=APP_SETTINGS.app_name, layout="wide")
inject_base_styles()

requested = st.session_state.get("_view", "dashboard")
view = guard_view(requested, auth_store())
if view == LOGIN_VIEW:
    render_login_page()
    st.stop()

current_page = render_shell(view)
st.session_state["_view"] = current_page

if current_page == "dashboard":
    render_dashboard_page()
elif current_page == "documents":
    render_library_page("Documents", "documents")
elif current_page == "diagrammes":
    render_library_page("Diagrammes", "diagrammes")
else:
    render_library_page("Tableaux", "tableaux")

flush_notifications()
