"""
API tests for quizzes and public quiz submissions.
"""

import json

import pytest

from med1.models.lead import Lead, LeadSource


QUIZ = {
    "title": "Triagem Cardíaca",
    "description": "Responda antes da consulta",
    "questions": [
        {"text": "Sente dor no peito?", "type": "boolean", "variable_name": "dor_peito"},
        {"text": "Idade", "type": "number", "variable_name": "idade"},
    ],
}


@pytest.fixture
def quiz(client, auth_headers) -> dict:
    response = client.post("/api/quizzes", headers=auth_headers, json=QUIZ)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def quiz_indication(client, auth_headers, quiz) -> dict:
    response = client.post(
        "/api/indications",
        headers=auth_headers,
        json={"name": "Triagem", "slug": "triagem", "quiz_id": quiz["id"]},
    )
    return response.json()


def submission(indication_id: str, questions: list, name: str = "Rita Lopes") -> dict:
    return {
        "name": name,
        "phone": "11944443333",
        "indication_id": indication_id,
        "answers": [
            {"question_id": questions[0]["id"], "value": True},
            {"question_id": questions[1]["id"], "value": 54},
        ],
    }


class TestDoctorQuizzes:
    def test_questions_keep_their_order(self, quiz):
        assert quiz["slug"] == "triagemcardiaca"
        assert [question["variable_name"] for question in quiz["questions"]] == ["dor_peito", "idade"]
        assert quiz["questions"][0]["options"] == []

    def test_foreign_quiz_is_404(self, client, other_headers, quiz):
        assert client.get(f"/api/quizzes/{quiz['id']}", headers=other_headers).status_code == 404

    def test_delete(self, client, auth_headers, quiz):
        assert client.delete(f"/api/quizzes/{quiz['id']}", headers=auth_headers).status_code == 200
        assert client.get("/api/quizzes", headers=auth_headers).json() == []


class TestPublicQuiz:
    def test_by_id_returns_owner_and_latest_indication(self, client, doctor, quiz, quiz_indication):
        response = client.get(f"/api/quiz/by-id/{quiz['id']}")

        body = response.json()
        assert body["id"] == quiz_indication["id"]
        assert body["user"]["slug"] == doctor.slug
        assert len(body["quiz"]["questions"]) == 2

    def test_submit_creates_a_quiz_lead(self, client, db, doctor, quiz, quiz_indication):
        response = client.post("/api/quiz/submit", json=submission(quiz_indication["id"], quiz["questions"]))

        assert response.status_code == 200
        assert response.json()["created"] is True
        lead = db.query(Lead).filter(Lead.phone == "11944443333").one()
        assert lead.user_id == doctor.id
        assert lead.source == LeadSource.QUIZ.value
        assert (lead.utm_source, lead.utm_medium) == ("quiz", "triagem")
        notes = json.loads(lead.medical_notes)
        assert notes["quiz_title"] == "Triagem Cardíaca"
        assert notes["answers"][0] == {
            "question_id": quiz["questions"][0]["id"],
            "question": "Sente dor no peito?",
            "variable_name": "dor_peito",
            "value": True,
        }

    def test_second_submission_updates_the_same_lead(self, client, db, quiz, quiz_indication):
        first = client.post("/api/quiz/submit", json=submission(quiz_indication["id"], quiz["questions"]))
        second = client.post(
            "/api/quiz/submit",
            json=submission(quiz_indication["id"], quiz["questions"], name="Rita L. Lopes"),
        )

        assert second.json() == {"success": True, "lead_id": first.json()["lead_id"], "created": False}
        assert db.query(Lead).filter(Lead.phone == "11944443333").one().name == "Rita L. Lopes"

    def test_indication_without_quiz_is_400(self, client, auth_headers, quiz):
        plain = client.post("/api/indications", headers=auth_headers, json={"name": "Sem quiz"}).json()
        response = client.post("/api/quiz/submit", json=submission(plain["id"], quiz["questions"]))
        assert response.status_code == 400
