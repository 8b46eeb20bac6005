# tests/test_api.py
"""API tests: the FastAPI surface over the per-page controllers.

The accessor runs with zero delay and the auth flag lives in ``tmp_path``.
"""


def test_protected_endpoints_require_login(client):
    resp = client.get("/sources/documents/records")
    assert resp.status_code == 401
    assert client.get("/auth/status").json() == {"authenticated": False, "error": None}


def test_login_failure_returns_inline_error(client):
    resp = client.post("/auth/login", json={"password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid password. Please try again."


def test_login_and_logout(logged_in):
    assert logged_in.get("/auth/status").json()["authenticated"] is True
    logged_in.post("/auth/logout")
    assert logged_in.get("/sources/dashboard/records").status_code == 401


def test_meta_sources(client):
    body = client.get("/meta/sources").json()
    assert body["sources"] == ["dashboard", "documents", "tableaux", "diagrammes"]
    assert body["app_name"] == "CBE#4 Process Validation"


def test_unknown_source_is_404(logged_in):
    assert logged_in.get("/sources/nope/records").status_code == 404


def test_dashboard_stats(logged_in):
    body = logged_in.get("/sources/dashboard/records").json()
    assert body["page"]["stats"] == {"completed": 1, "in_progress": 3, "not_started": 1, "overall": 59}
    assert body["notifications"] == []


def test_documents_search_and_categories(logged_in):
    body = logged_in.get("/sources/documents/records", params={"search": "report"}).json()
    assert body["page"]["count"] == 3
    body = logged_in.put("/sources/documents/view", json={"search_term": "", "selected_categories": []}).json()
    assert body["page"]["count"] == 0
    assert body["page"]["empty_message"] == "Try a different search term or adjust your filters"
    body = logged_in.get("/sources/documents/records", params={"categories": ["Technical", "Testing"]}).json()
    assert body["page"]["count"] == 4


def test_tableaux_sorting(logged_in):
    body = logged_in.get("/sources/tableaux/records", params={"sort_direction": "desc"}).json()
    names = [r["name"] for r in body["page"]["records"]]
    assert names == sorted(names, key=str.casefold, reverse=True)


def test_create_and_update_task(logged_in):
    body = logged_in.post("/sources/dashboard/records", json={"name": "Task 6", "progress": 40}).json()
    assert body["saved"] is True
    assert body["page"]["tasks"][-1]["id"] == "6"
    assert body["notifications"][0]["title"] == "Task added"

    body = logged_in.post("/sources/dashboard/records", json={"id": "6", "status": "Completed", "progress": 100}).json()
    task = [t for t in body["page"]["tasks"] if t["id"] == "6"][0]
    assert task["status"] == "Completed"
    assert body["page"]["stats"]["completed"] == 2
    assert body["notifications"][0]["title"] == "Task updated"


def test_delete_requires_confirmation(logged_in):
    resp = logged_in.delete("/sources/dashboard/records/3")
    assert resp.status_code == 409
    assert resp.json()["pending"] == "3"
    body = logged_in.delete("/sources/dashboard/records/3", params={"confirm": "true"}).json()
    assert body["deleted"] is True
    assert [t["id"] for t in body["page"]["tasks"]] == ["1", "2", "4", "5"]


def test_cancel_pending_delete(logged_in):
    logged_in.delete("/sources/documents/records/1")
    logged_in.delete("/sources/documents/pending-delete")
    body = logged_in.get("/sources/documents/records").json()
    assert body["page"]["total"] == 8


def test_delete_unknown_record(logged_in):
    assert logged_in.delete("/sources/dashboard/records/99", params={"confirm": "true"}).status_code == 404


def test_toggle_expanded(logged_in):
    body = logged_in.post("/sources/diagrammes/expanded/Facilities").json()
    assert body["page"]["categories"]["expanded"] == ["Process Flows", "Facilities"]
