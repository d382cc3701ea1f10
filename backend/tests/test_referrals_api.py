"""
API tests for patient referral links, rewards and the doctor overview.
"""

import pytest

from med1.models.lead import Lead, LeadSource
from med1.models.referral import PatientReferral


@pytest.fixture
def referral(client, auth_headers, page, patient) -> dict:
    response = client.post(
        "/api/patient-referral",
        headers=auth_headers,
        json={"page_id": str(page.id), "patient_id": str(patient.id)},
    )
    assert response.status_code == 201
    return response.json()


def add_reward(client, headers, referral_id: int, unlock_value: int, unlock_type: str = "LEADS") -> dict:
    response = client.post(
        "/api/patient-referral/rewards",
        headers=headers,
        json={
            "referral_id": referral_id,
            "type": "TEXT",
            "title": f"Brinde {unlock_value}",
            "unlock_value": unlock_value,
            "unlock_type": unlock_type,
            "text_content": "Consulta de retorno gratuita",
        },
    )
    assert response.status_code == 201
    return response.json()


class TestCreateReferral:
    def test_new_referral_has_slug_and_zero_counters(self, referral):
        assert len(referral["slug"]) == 10
        assert (referral["visits"], referral["leads"], referral["sales"]) == (0, 0, 0)

    def test_duplicate_page_and_patient_is_400(self, client, auth_headers, page, patient, referral):
        response = client.post(
            "/api/patient-referral",
            headers=auth_headers,
            json={"page_id": str(page.id), "patient_id": str(patient.id)},
        )
        assert response.status_code == 400

    def test_foreign_page_is_404(self, client, other_headers, page, patient):
        response = client.post(
            "/api/patient-referral",
            headers=other_headers,
            json={"page_id": str(page.id), "patient_id": str(patient.id)},
        )
        assert response.status_code == 404


class TestRewards:
    def test_rewards_are_listed_by_threshold(self, client, auth_headers, referral):
        add_reward(client, auth_headers, referral["id"], 3)
        add_reward(client, auth_headers, referral["id"], 1)

        response = client.get(f"/api/patient-referral/rewards?referral_id={referral['id']}", headers=auth_headers)

        assert [reward["unlock_value"] for reward in response.json()] == [1, 3]

    def test_zero_threshold_is_rejected(self, client, auth_headers, referral):
        response = client.post(
            "/api/patient-referral/rewards",
            headers=auth_headers,
            json={
                "referral_id": referral["id"],
                "type": "TEXT",
                "title": "Brinde",
                "unlock_value": 0,
                "unlock_type": "LEADS",
            },
        )
        assert response.status_code == 400

    def test_manual_unlock(self, client, auth_headers, referral):
        reward = add_reward(client, auth_headers, referral["id"], 5)

        response = client.patch(
            "/api/patient-referral/rewards",
            headers=auth_headers,
            json={"id": reward["id"], "referral_id": referral["id"]},
        )

        assert response.status_code == 200
        assert response.json()["is_unlocked"] is True


class TestPublicCounters:
    def test_visit_increments_counter(self, client, db, referral):
        client.post(f"/api/patient-referral/{referral['slug']}/visit")
        client.post(f"/api/patient-referral/{referral['slug']}/visit")

        assert db.get(PatientReferral, referral["id"]).visits == 2

    def test_unknown_slug_is_404(self, client):
        assert client.post("/api/patient-referral/nao-existe/visit").status_code == 404

    def test_lead_capture_unlocks_reached_rewards(self, client, db, auth_headers, doctor, referral):
        first = add_reward(client, auth_headers, referral["id"], 1)
        add_reward(client, auth_headers, referral["id"], 2)

        response = client.post(
            f"/api/patient-referral/{referral['slug']}/lead",
            json={"name": "Paulo Reis", "phone": "11955554444"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["leads"] == 1
        assert body["unlocked_rewards"] == [first["id"]]
        lead = db.query(Lead).filter(Lead.phone == "11955554444").one()
        assert lead.user_id == doctor.id
        assert lead.source == LeadSource.REFERRAL.value

    def test_sale_unlocks_sales_rewards(self, client, auth_headers, referral):
        reward = add_reward(client, auth_headers, referral["id"], 1, unlock_type="SALES")

        response = client.post(f"/api/patient-referral/{referral['id']}/sale", headers=auth_headers)
        rewards = client.get(f"/api/patient-referral/rewards?referral_id={referral['id']}", headers=auth_headers)

        assert response.json()["sales"] == 1
        assert rewards.json()[0]["id"] == reward["id"]
        assert rewards.json()[0]["is_unlocked"] is True


class TestDoctorReferrals:
    def test_overview_totals(self, client, auth_headers, referral):
        client.post(f"/api/patient-referral/{referral['slug']}/visit")

        response = client.get("/api/doctor/referrals", headers=auth_headers)

        body = response.json()
        assert body["stats"]["total_referrals"] == 1
        assert body["stats"]["total_visits"] == 1
        assert body["referrals"][0]["patient"]["name"] == "Maria Silva"

    def test_delete_then_lookup_is_404(self, client, auth_headers, referral):
        deleted = client.delete(f"/api/doctor/referrals/{referral['id']}", headers=auth_headers)
        lookup = client.get(f"/api/doctor/referrals/{referral['id']}", headers=auth_headers)

        assert deleted.status_code == 200
        assert lookup.status_code == 404

    def test_other_doctor_cannot_see_referral(self, client, other_headers, referral):
        assert client.get(f"/api/doctor/referrals/{referral['id']}", headers=other_headers).status_code == 404
