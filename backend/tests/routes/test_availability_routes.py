"""Route tests for /api/v1/teachers/{teacher_id}/availability."""

TEACHER = "teacher-1"
BASE = f"/api/v1/teachers/{TEACHER}/availability"
AS_TEACHER = {"X-User-Id": TEACHER}
AS_STUDENT = {"X-User-Id": "student-1"}


class TestBookableSlots:
    def test_default_template_for_new_teacher(self, client):
        response = client.get(BASE, params={"days": 7})
        assert response.status_code == 200

        body = response.json()
        assert body["teacher_id"] == TEACHER
        assert body["timezone"] == "America/New_York"
        assert [day["date"] for day in body["days"]] == [
            "2024-06-10",
            "2024-06-11",
            "2024-06-12",
            "2024-06-13",
            "2024-06-14",
        ]
        monday = body["days"][0]["slots"]
        assert len(monday) == 5
        assert monday[0]["start_time"].startswith("09:00")
        assert monday[0]["id"].startswith("slot_")
        assert monday[0]["source"] == "recurring"

    def test_include_empty(self, client):
        response = client.get(BASE, params={"days": 7, "include_empty": True})
        days = response.json()["days"]
        assert len(days) == 7
        assert days[5] == {"date": "2024-06-15", "slots": []}

    def test_horizon_limit(self, client):
        response = client.get(BASE, params={"days": 91})
        assert response.status_code == 422
        assert response.json()["code"] == "REQUEST_VALIDATION_ERROR"

    def test_reading_needs_no_identity(self, client):
        assert client.get(f"{BASE}/rules").status_code == 200


class TestRuleEditing:
    def test_add_and_remove_recurring_slot(self, client):
        response = client.post(
            f"{BASE}/recurring",
            json={"day_of_week": 0, "start_time": "10:00", "end_time": "11:00"},
            headers=AS_TEACHER,
        )
        assert response.status_code == 201
        rule_id = response.json()["id"]
        assert rule_id

        sunday = client.get(
            BASE, params={"from_date": "2024-06-16", "days": 1}
        ).json()["days"]
        assert len(sunday[0]["slots"]) == 1

        deleted = client.delete(f"{BASE}/recurring/{rule_id}", headers=AS_TEACHER)
        assert deleted.status_code == 204

        again = client.delete(f"{BASE}/recurring/{rule_id}", headers=AS_TEACHER)
        assert again.status_code == 404
        assert again.json()["code"] == "RULE_NOT_FOUND"

    def test_inverted_window_is_rejected(self, client):
        response = client.post(
            f"{BASE}/recurring",
            json={"day_of_week": 1, "start_time": "11:00", "end_time": "10:00"},
            headers=AS_TEACHER,
        )
        assert response.status_code == 422

    def test_day_of_week_range(self, client):
        response = client.post(
            f"{BASE}/recurring",
            json={"day_of_week": 7, "start_time": "10:00", "end_time": "11:00"},
            headers=AS_TEACHER,
        )
        assert response.status_code == 422

    def test_other_users_cannot_edit(self, client):
        response = client.post(
            f"{BASE}/breaks",
            json={"start_date": "2024-06-17", "end_date": "2024-06-17"},
            headers=AS_STUDENT,
        )
        assert response.status_code == 403
        assert response.json()["code"] == "UNAUTHORIZED_ACTOR"

    def test_edit_requires_identity(self, client):
        response = client.post(
            f"{BASE}/breaks", json={"start_date": "2024-06-17", "end_date": "2024-06-17"}
        )
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "MISSING_IDENTITY"
        assert body["status"] == 401

    def test_specific_date_in_the_past(self, client):
        response = client.post(
            f"{BASE}/specific",
            json={"date": "2024-06-01", "start_time": "10:00", "end_time": "11:00"},
            headers=AS_TEACHER,
        )
        assert response.status_code == 400

    def test_break_blocks_day(self, client):
        created = client.post(
            f"{BASE}/breaks",
            json={"start_date": "2024-06-11", "end_date": "2024-06-11", "reason": "dentist"},
            headers=AS_TEACHER,
        )
        assert created.status_code == 201
        assert created.json()["kind"] == "break"

        days = client.get(BASE, params={"days": 3}).json()["days"]
        assert [day["date"] for day in days] == ["2024-06-10", "2024-06-12"]

    def test_unknown_rule_kind(self, client):
        response = client.delete(f"{BASE}/holidays/abc", headers=AS_TEACHER)
        assert response.status_code == 422


class TestReplaceRules:
    def test_put_rules(self, client):
        response = client.put(
            f"{BASE}/rules",
            json={
                "recurring_slots": [
                    {"day_of_week": 1, "start_time": "09:00", "end_time": "10:00"}
                ],
                "specific_date_slots": [
                    {"date": "2024-06-17", "start_time": "14:00", "end_time": "15:00"}
                ],
                "break_periods": [{"start_date": "2024-06-17", "end_date": "2024-06-17"}],
            },
            headers=AS_TEACHER,
        )
        assert response.status_code == 200
        body = response.json()
        assert len(body["recurring_slots"]) == 1
        assert body["break_periods"][0]["start_date"] == "2024-06-17"

        days = client.get(
            BASE, params={"from_date": "2024-06-17", "days": 8, "include_empty": True}
        ).json()["days"]
        by_date = {day["date"]: day["slots"] for day in days}
        assert by_date["2024-06-17"] == []
        assert len(by_date["2024-06-24"]) == 1

    def test_extra_fields_are_rejected(self, client):
        response = client.put(
            f"{BASE}/rules", json={"recurring_slots": [], "color": "blue"}, headers=AS_TEACHER
        )
        assert response.status_code == 422

    def test_set_timezone(self, client):
        response = client.put(
            f"{BASE}/timezone", json={"timezone": "Europe/London"}, headers=AS_TEACHER
        )
        assert response.status_code == 200
        assert response.json()["timezone"] == "Europe/London"

    def test_unknown_timezone(self, client):
        response = client.put(
            f"{BASE}/timezone", json={"timezone": "Mars/Base"}, headers=AS_TEACHER
        )
        assert response.status_code == 400
        assert response.json()["code"] == "UNKNOWN_TIMEZONE"
