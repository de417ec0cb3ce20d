from conftest import SAMPLE_ROWS
from reslot.core.config import get_settings


def create_session(client):
    response = client.post("/api/sessions", json={"rows": SAMPLE_ROWS})
    assert response.status_code == 201
    return response.json()["session_id"]


def test_create_session_reports_snapshot_counts(client):
    response = client.post("/api/sessions", json={"rows": SAMPLE_ROWS})
    assert response.status_code == 201
    payload = response.json()
    assert payload["sections"] == 4
    assert payload["instructors"] == 3
    assert payload["classrooms"] == 3
    assert payload["total_classes"] == 7
    assert payload["skipped_cells"] == 1


def test_create_session_from_csv(client):
    csv_text = (
        "Course Name,Section No,Sunday,Monday\n"
        "CS101 Intro,1,08:00-10:00 - R1\\Dr A,-\n"
        "MATH201 Calculus,1,-,10:00-12:00 - R2\\Dr C\n"
    )
    response = client.post(
        "/api/sessions/csv",
        content=csv_text.encode("utf-8"),
        headers={"Content-Type": "text/csv"},
    )
    assert response.status_code == 201
    assert response.json()["sections"] == 2

    empty = client.post("/api/sessions/csv", content=b"", headers={"Content-Type": "text/csv"})
    assert empty.status_code == 400
    assert empty.json()["message"] == "CSV upload contains no timetable rows"


def test_unknown_session_returns_not_found(client):
    response = client.get("/api/sessions/missing/sections")
    assert response.status_code == 404
    assert response.json() == {
        "message": "Session with id missing not found",
        "details": {"resource_type": "Session", "resource_id": "missing"},
    }


def test_group_and_section_management(client):
    session_id = create_session(client)
    base = f"/api/sessions/{session_id}"

    group = client.post(f"{base}/groups", json={"name": "Seniors", "avoid_codes": ["math201"]})
    assert group.status_code == 201
    group_id = group.json()["id"]
    assert group.json()["avoid_codes"] == ["MATH201"]

    added = client.post(f"{base}/sections", json={"section_key": "CS101-1"})
    assert added.json() == {"added": True, "group_id": group_id}
    again = client.post(f"{base}/sections", json={"section_key": "CS101-1"})
    assert again.json() == {"added": False, "group_id": None}
    missing_group = client.post(f"{base}/sections", json={"section_key": "CS101-2", "group_id": "group_9"})
    assert missing_group.status_code == 404

    second = client.post(f"{base}/groups", json={})
    moved = client.put(f"{base}/sections/CS101-1/group", json={"group_id": second.json()["id"]})
    assert moved.status_code == 200
    assert moved.json()["member_keys"] == ["CS101-1"]

    renamed = client.patch(f"{base}/groups/{group_id}", json={"name": "Year 4", "avoid_codes": []})
    assert renamed.json()["name"] == "Year 4"
    assert renamed.json()["avoid_codes"] == []

    settings = client.patch(f"{base}/sections/CS101-1/settings", json={"times_per_week": 3})
    assert settings.json() == {"times_per_week": 3, "hours_per_session": 2}
    invalid = client.patch(f"{base}/sections/CS101-1/settings", json={"hours_per_session": 0})
    assert invalid.status_code == 422

    toggled = client.post(f"{base}/sections/CS101-1/moves/toggle", json={"day": "Sunday", "start_hour": 8})
    assert toggled.json() == {"selected": False}
    freed = client.get(f"{base}/freed-slots").json()
    assert [(slot["day"], slot["hour"]) for slot in freed] == [("Tuesday", 8), ("Tuesday", 9)]

    instructors = client.get(f"{base}/instructors").json()
    assert instructors[0]["name"] == "Dr A"

    removed = client.delete(f"{base}/sections/CS101-1")
    assert removed.json() == {"status": "removed"}
    assert client.get(f"{base}/freed-slots").json() == []

    deleted = client.delete(f"{base}/groups/{group_id}")
    assert deleted.status_code == 200
    assert len(client.get(f"{base}/groups").json()) == 1


def test_search_auto_assign_and_summary(client):
    session_id = create_session(client)
    base = f"/api/sessions/{session_id}"
    client.post(f"{base}/sections", json={"section_key": "CS101-2"})

    search = client.post(
        f"{base}/search",
        json={"days": ["Monday", "Tuesday"], "duration_hours": 2, "avoid_codes": ["NOPE1"]},
    )
    assert search.status_code == 200
    payload = search.json()
    assert payload["unresolved_codes"] == ["NOPE1"]
    assert payload["total_slots"] > 0
    first_monday = payload["slots_by_day"]["Monday"][0]
    assert first_monday["start_time"] == "08:00"
    assert first_monday["classrooms"] == ["R1", "R3"]

    assigned = client.post(f"{base}/auto-assign")
    assert assigned.status_code == 200
    result = assigned.json()
    assert [(item["day"], item["start_hour"], item["classroom"]) for item in result["assignments"]] == [
        ("Monday", 8, "R1"),
        ("Tuesday", 8, "R2"),
    ]
    assert result["warnings"] == []

    assert client.get(f"{base}/assignments/audit").json() == []
    summary = client.get(f"{base}/summary").json()
    assert summary["total_assignments"] == 2
    assert summary["sections"][0]["vacated"][0]["room"] == "R2"

    comparison = client.get(f"{base}/comparison/classrooms/R2").json()
    assert comparison["current"]["Monday"]["10"]["status"] == "removing"
    assert comparison["proposed"]["Tuesday"]["8"]["status"] == "new"


def test_search_rejects_unknown_day(client):
    session_id = create_session(client)
    response = client.post(f"/api/sessions/{session_id}/search", json={"days": ["Funday"]})
    assert response.status_code == 400
    assert response.json()["message"] == "Unknown day Funday"


def test_manual_assignment_flow(client):
    session_id = create_session(client)
    base = f"/api/sessions/{session_id}"

    check = client.post(
        f"{base}/validate",
        json={"room": "R2", "day": "Monday", "start_hour": 9, "duration_hours": 2},
    )
    assert check.json() == {
        "available": False,
        "conflict": {"hour": 9, "occupant_course": "MATH201", "occupant_section": "1"},
    }

    outside = client.post(
        f"{base}/assignments",
        json={"day": "Monday", "start_hour": 14, "end_hour": 16, "section_key": "CS101-1", "classroom": "R2"},
    )
    assert outside.status_code == 400

    client.post(f"{base}/sections", json={"section_key": "CS101-1"})
    busy = client.post(
        f"{base}/assignments",
        json={"day": "Monday", "start_hour": 8, "end_hour": 10, "section_key": "CS101-1", "classroom": "R2"},
    )
    assert busy.status_code == 409
    assert busy.json()["available"] is False
    assert busy.json()["conflict"]["occupant_course"] == "MATH201"
    assert client.get(f"{base}/assignments").json() == []

    created = client.post(
        f"{base}/assignments",
        json={"day": "Monday", "start_hour": 14, "end_hour": 16, "section_key": "CS101-1", "classroom": "R2"},
    )
    assert created.status_code == 201
    assert created.json()["available"] is True

    changed = client.put(
        f"{base}/assignments/classroom",
        json={"day": "Monday", "start_hour": 14, "section_key": "CS101-1", "classroom": "R3"},
    )
    assert changed.json()["available"] is True
    assert client.get(f"{base}/assignments").json()[0]["classroom"] == "R3"

    removed = client.delete(
        f"{base}/assignments",
        params={"day": "Monday", "start_hour": 14, "section_key": "CS101-1"},
    )
    assert removed.json() == {"removed": True}
    assert client.get(f"{base}/assignments").json() == []


def test_occupancy_endpoints(client):
    session_id = create_session(client)
    base = f"/api/sessions/{session_id}/occupancy"

    busy = client.get(f"{base}/busy", params={"time": "8am", "days": ["Sunday"]})
    assert busy.json()["hour"] == 8
    assert [entry["name"] for entry in busy.json()["days"]["Sunday"]] == ["Dr A"]

    bad = client.get(f"{base}/busy", params={"time": "noon"})
    assert bad.status_code == 400

    free = client.get(f"{base}/free", params={"start": "8", "end": "10am", "days": ["Monday"]})
    assert free.json()["days"] == {"Monday": ["Dr A", "Dr B"]}

    common = client.get(f"{base}/common-free", params={"days": ["Monday"]})
    assert common.json()["days"]["Monday"][:2] == [12, 13]

    rooms = client.get(f"{base}/classrooms").json()
    assert [row["room"] for row in rooms] == ["R1", "R2", "R3"]


def test_reset_and_delete_session(client):
    session_id = create_session(client)
    base = f"/api/sessions/{session_id}"
    client.post(f"{base}/sections", json={"section_key": "CS101-1"})
    client.post(f"{base}/days/Monday/toggle")

    assert client.post(f"{base}/reset").json() == {"status": "reset"}
    assert client.get(f"{base}/groups").json() == []

    assert client.delete(base).json() == {"status": "deleted"}
    assert client.delete(base).status_code == 404


def test_oversized_timetable_upload_is_rejected(client):
    limit = get_settings().max_upload_bytes
    body = b"x" * (limit + 1)

    for path, content_type in (("/api/sessions/csv", "text/csv"), ("/api/sessions", "application/json")):
        response = client.post(path, content=body, headers={"Content-Type": content_type})
        assert response.status_code == 413
        assert response.json()["details"] == {"path": path, "max_bytes": limit, "received_bytes": limit + 1}
        assert response.json()["message"].startswith("Timetable upload too large")

    other = client.post("/api/sessions/missing/groups", content=body, headers={"Content-Type": "application/json"})
    assert other.status_code != 413
