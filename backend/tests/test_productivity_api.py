"""
API tests for the productivity tools: circles, habits, thoughts, tasks and
pomodoro stars.
"""

import pytest
from fastapi import HTTPException

from med1.api.productivity import month_bounds


class TestMonthBounds:
    def test_leap_february(self):
        start, end = month_bounds("2024-02")
        assert (start.day, end.day) == (1, 29)

    def test_bad_month_is_400(self):
        with pytest.raises(HTTPException) as exc:
            month_bounds("02/2024")
        assert exc.value.status_code == 400


class TestCircles:
    def test_create_click_and_delete(self, client, auth_headers):
        created = client.post("/api/circles", headers=auth_headers, json={"title": "Água"}).json()
        assert (created["max_clicks"], created["clicks"]) == (5, 0)

        clicked = client.patch(f"/api/circles/{created['id']}", headers=auth_headers, json={"clicks": 3})
        assert clicked.json()["clicks"] == 3

        assert client.delete(f"/api/circles/{created['id']}", headers=auth_headers).status_code == 200
        assert client.get("/api/circles", headers=auth_headers).json() == []

    def test_blank_title_is_400(self, client, auth_headers):
        response = client.post("/api/circles", headers=auth_headers, json={"title": "   "})
        assert response.status_code == 400

    def test_foreign_circle_is_404(self, client, auth_headers, other_headers):
        created = client.post("/api/circles", headers=auth_headers, json={"title": "Água"}).json()
        response = client.patch(f"/api/circles/{created['id']}", headers=other_headers, json={"clicks": 1})
        assert response.status_code == 404


class TestHabits:
    def test_progress_toggles(self, client, auth_headers):
        habit = client.post("/api/habits", headers=auth_headers, json={"title": "Correr", "category": "Saúde"}).json()
        toggle = {"habit_id": habit["id"], "date": "2024-03-05"}

        first = client.post("/api/habits/progress", headers=auth_headers, json=toggle)
        second = client.post("/api/habits/progress", headers=auth_headers, json=toggle)

        assert first.json()["is_checked"] is True
        assert second.json()["is_checked"] is False

    def test_list_filters_progress_by_month(self, client, auth_headers):
        habit = client.post("/api/habits", headers=auth_headers, json={"title": "Ler", "category": "Estudo"}).json()
        for day in ("2024-03-05", "2024-04-01"):
            client.post("/api/habits/progress", headers=auth_headers, json={"habit_id": habit["id"], "date": day})

        march = client.get("/api/habits?month=2024-03", headers=auth_headers).json()

        assert [day["date"] for day in march[0]["progress"]] == ["2024-03-05"]

    def test_bad_month_query_is_400(self, client, auth_headers):
        assert client.get("/api/habits?month=marco", headers=auth_headers).status_code == 400


class TestThoughts:
    def test_newest_first_with_limit(self, client, auth_headers):
        for text in ("primeiro", "segundo", "terceiro"):
            client.post("/api/thoughts", headers=auth_headers, json={"content": text})

        response = client.get("/api/thoughts?limit=2", headers=auth_headers)

        assert len(response.json()) == 2

    def test_update(self, client, auth_headers):
        thought = client.post("/api/thoughts", headers=auth_headers, json={"content": "rascunho"}).json()
        response = client.put(f"/api/thoughts/{thought['id']}", headers=auth_headers, json={"content": "final"})
        assert response.json()["content"] == "final"


class TestTasks:
    def test_ordered_by_importance(self, client, auth_headers):
        for title, importance in (("Relatório", 3), ("Cirurgia", 1), ("E-mails", 4)):
            client.post(
                "/api/tasks",
                headers=auth_headers,
                json={"title": title, "due_date": "2024-05-01T10:00:00Z", "importance": importance},
            )

        titles = [task["title"] for task in client.get("/api/tasks", headers=auth_headers).json()]

        assert titles == ["Cirurgia", "Relatório", "E-mails"]

    def test_toggle_completion(self, client, auth_headers):
        task = client.post(
            "/api/tasks",
            headers=auth_headers,
            json={"title": "Ligar", "due_date": "2024-05-01T10:00:00Z", "importance": 2},
        ).json()

        response = client.put(f"/api/tasks/{task['id']}/toggle", headers=auth_headers)

        assert response.json()["is_completed"] is True

    def test_importance_out_of_range_is_400(self, client, auth_headers):
        response = client.post(
            "/api/tasks",
            headers=auth_headers,
            json={"title": "X", "due_date": "2024-05-01T10:00:00Z", "importance": 5},
        )
        assert response.status_code == 400


class TestPomodoroStars:
    def test_counts_per_day(self, client, auth_headers):
        client.post("/api/pomodoro-stars", headers=auth_headers, json={"date": "2024-06-01"})
        second = client.post("/api/pomodoro-stars", headers=auth_headers, json={"date": "2024-06-01"})
        client.post("/api/pomodoro-stars", headers=auth_headers, json={"date": "2024-06-02"})

        counts = client.get("/api/pomodoro-stars", headers=auth_headers).json()

        assert second.status_code == 201
        assert second.json()["total_stars"] == 2
        assert counts == {"counts": {"2024-06-01": 2, "2024-06-02": 1}, "total": 3}
