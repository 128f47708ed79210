# /tests/test_routers.py

"""
HTTP-level tests: status codes, error translation and identity headers. The
business rules themselves are covered by the service tests.
"""

GRADE_PAYLOAD = {
    "student_id": "stu_1",
    "class_id": "cls_10a",
    "course_id": "crs_math",
    "term_id": "term_autumn",
    "topic_id": "top_alg",
    "work_type": "homework",
    "work_subtype": "worksheet",
    "marks_obtained": 3,
    "total_marks": 10,
    "assessed_date": "2026-09-15",
    "homework_submitted": True,
}


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["status"]


def test_missing_identity_headers_are_rejected(client):
    response = client.get("/api/grades")
    assert response.status_code == 401


def test_unknown_role_is_forbidden(client):
    response = client.get("/api/grades", headers={"X-User-Id": "x", "X-User-Role": "parent"})
    assert response.status_code == 403


def test_grade_entry_conflict_and_resolution(client, alice_headers):
    created = client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers)
    assert created.status_code == 201
    first_id = created.json()["grade"]["id"]

    conflict = client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers)
    assert conflict.status_code == 409
    assert conflict.json()["outcome"] == "conflicted"
    assert [g["id"] for g in conflict.json()["existing_grades"]] == [first_id]

    retake = client.post("/api/grades", json={**GRADE_PAYLOAD, "resolution": "retake"}, headers=alice_headers)
    assert retake.status_code == 201
    assert retake.json()["grade"]["attempt_number"] == 2

    skipped = client.post("/api/grades", json={**GRADE_PAYLOAD, "resolution": "skip"}, headers=alice_headers)
    assert skipped.status_code == 200
    assert skipped.json()["outcome"] == "skipped"
    print("\n✅ SUCCESS: Conflict flow works over HTTP.")


def test_invalid_marks_return_422(client, alice_headers):
    response = client.post("/api/grades", json={**GRADE_PAYLOAD, "marks_obtained": 11}, headers=alice_headers)
    assert response.status_code == 422
    assert "exceed" in response.json()["detail"]


def test_foreign_class_returns_403_and_missing_class_404(client, bob_headers):
    foreign = client.post("/api/grades", json=GRADE_PAYLOAD, headers=bob_headers)
    missing = client.post("/api/grades", json={**GRADE_PAYLOAD, "class_id": "cls_missing"}, headers=bob_headers)
    assert foreign.status_code == 403
    assert missing.status_code == 404


def test_grade_routes_by_id(client, alice_headers, admin_headers):
    grade_id = client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers).json()["grade"]["id"]

    assert client.get(f"/api/grades/{grade_id}", headers=admin_headers).status_code == 200

    patched = client.patch(f"/api/grades/{grade_id}", json={"marks_obtained": 9}, headers=alice_headers)
    assert patched.status_code == 200
    assert patched.json()["percentage"] == 90
    assert patched.json()["is_low_point"] is False

    assert client.delete(f"/api/grades/{grade_id}", headers=alice_headers).status_code == 204
    assert client.get(f"/api/grades/{grade_id}", headers=alice_headers).status_code == 404


def test_reassign_and_retake_routes(client, alice_headers):
    grade_id = client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers).json()["grade"]["id"]

    reassigned = client.post(
        f"/api/grades/{grade_id}/reassign", json={"new_deadline": "2026-10-03"}, headers=alice_headers
    )
    assert reassigned.status_code == 201
    assert reassigned.json()["marks_obtained"] == 0
    assert reassigned.json()["original_grade_id"] == grade_id

    again = client.post(f"/api/grades/{grade_id}/reassign", json={"new_deadline": "2026-10-09"}, headers=alice_headers)
    assert again.status_code == 409
    assert again.json()["detail"]["existing_grade_ids"] == [grade_id]

    successor_id = reassigned.json()["id"]
    retake = client.post(
        f"/api/grades/{successor_id}/retake",
        json={"marks_obtained": 8, "total_marks": 10, "assessed_date": "2026-10-04"},
        headers=alice_headers,
    )
    assert retake.status_code == 201
    assert retake.json()["attempt_number"] == 3


def test_batch_route_reports_deferred_students(client, alice_headers):
    payload = {
        "class_id": "cls_10a",
        "term_id": "term_autumn",
        "topic_id": "top_alg",
        "work_type": "classwork",
        "work_subtype": "pastpaper",
        "total_marks": 20,
        "assessed_date": "2026-09-18",
        "entries": [
            {"student_id": "stu_1", "course_id": "crs_math", "marks_obtained": 10},
            {"student_id": "stu_2", "course_id": "crs_math", "marks_obtained": 19},
        ],
    }
    first = client.post("/api/grades/batch", json=payload, headers=alice_headers)
    assert first.status_code == 200
    assert first.json()["summary"]["created"] == 2

    second = client.post("/api/grades/batch", json=payload, headers=alice_headers)
    assert second.status_code == 200
    assert second.json()["awaiting_resolution_for"] == "stu_1"
    assert [r["outcome"] for r in second.json()["results"]] == ["conflicted", "deferred"]


def test_history_route(client, alice_headers):
    client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers)
    response = client.get(
        "/api/grades/history",
        params={"class_id": "cls_10a", "student_id": "stu_1", "term_id": "term_autumn", "topic_id": "top_alg"},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert len(response.json()) == 1


def test_flag_and_progress_routes(client, alice_headers, admin_headers):
    client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers)

    flag = client.get("/api/flags/students/stu_1", params={"term_id": "term_autumn"}, headers=alice_headers)
    assert flag.status_code == 200
    assert flag.json()["low_point_count"] == 1

    breakdown = client.get("/api/flags/breakdown", params={"term_id": "term_autumn", "scope": "class"}, headers=admin_headers)
    assert breakdown.status_code == 200
    assert breakdown.json()[0]["cohort_id"] == "cls_10a"

    assert client.get("/api/flags", params={"term_id": "term_autumn"}, headers=admin_headers).json() == []

    contact = client.put(
        "/api/flags/contacts",
        json={"student_id": "stu_1", "term_id": "term_autumn", "contact_type": "call", "status": "contacted"},
        headers=admin_headers,
    )
    assert contact.status_code == 200
    assert contact.json()["status"] == "contacted"

    progress = client.get("/api/progress/classes/cls_10a", params={"term_id": "term_autumn"}, headers=alice_headers)
    assert progress.status_code == 200
    assert len(progress.json()) == 2

    detail = client.get("/api/progress/students/stu_1", params={"term_id": "term_autumn"}, headers=alice_headers)
    assert detail.status_code == 200
    assert detail.json()["overall"]["total_grades"] == 1


def test_dashboard_routes_check_roles(client, alice_headers, admin_headers):
    assert client.get("/api/dashboard/admin", headers=admin_headers).status_code == 200
    assert client.get("/api/dashboard/admin", headers=alice_headers).status_code == 403
    assert client.get("/api/dashboard/teacher", headers=alice_headers).json()["class_count"] == 1
    assert client.get("/api/dashboard/admin", params={"term_id": "nope"}, headers=admin_headers).status_code == 404


def test_unknown_topic_returns_422_for_every_resolution(client, alice_headers):
    for resolution in (None, "replace", "retake"):
        payload = {**GRADE_PAYLOAD, "topic_id": "top_missing", "resolution": resolution}
        response = client.post("/api/grades", json=payload, headers=alice_headers)
        assert response.status_code == 422
        assert "top_missing" in response.json()["detail"]


def test_patch_with_null_required_field_returns_422(client, alice_headers):
    grade_id = client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers).json()["grade"]["id"]

    for field_name in ("assessed_date", "work_type", "work_subtype", "marks_obtained"):
        response = client.patch(f"/api/grades/{grade_id}", json={field_name: None}, headers=alice_headers)
        assert response.status_code == 422

    assert client.get(f"/api/grades/{grade_id}", headers=alice_headers).json()["assessed_date"] == "2026-09-15"


def test_gradebook_route(client, alice_headers, bob_headers):
    client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers)
    url = "/api/progress/classes/cls_10a/students/stu_1/gradebook"

    response = client.get(url, params={"term_id": "term_autumn"}, headers=alice_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["course_name"] == "GCSE Mathematics"
    assert [r["row_id"] for r in body["rows"]] == ["topic-top_alg", "subtopic-sbt_linear", "topic-top_geo"]
    assert body["rows"][0]["grade"]["percentage"] == 30

    classwork_only = client.get(url, params={"term_id": "term_autumn", "work_filter": "classwork"}, headers=alice_headers)
    assert classwork_only.json()["rows"][0]["grade"] is None

    assert client.get(url, params={"term_id": "term_autumn", "work_filter": "essay"}, headers=alice_headers).status_code == 422
    assert client.get(url, params={"term_id": "term_autumn"}, headers=bob_headers).status_code == 403


def test_teacher_dashboard_route_lists_own_class_performance(client, alice_headers):
    client.post("/api/grades", json=GRADE_PAYLOAD, headers=alice_headers)

    body = client.get("/api/dashboard/teacher", headers=alice_headers).json()

    assert body["grades_entered"] == 1
    assert [c["class_id"] for c in body["class_performance"]] == ["cls_10a"]
    assert body["critical_students"] == []
