"""
API tests for the patient portal.
"""

from datetime import timedelta

from med1.core.database import utcnow
from med1.models.patient import Patient
from med1.models.referral import PatientReferral, ReferralReward, RewardType, UnlockType

from .conftest import PORTAL_API_KEY


def portal_login(client, email="maria@example.com", password="patient-pass-123"):
    return client.post(
        "/api/portal/login",
        headers={"X-API-Key": PORTAL_API_KEY},
        json={"email": email, "password": password},
    )


class TestApiKey:
    def test_missing_key_is_401(self, client):
        response = client.post("/api/portal/validate", json={"email": "maria@example.com"})
        assert response.status_code == 401

    def test_wrong_key_is_401(self, client):
        response = client.post(
            "/api/portal/validate", headers={"X-API-Key": "nope"}, json={"email": "maria@example.com"}
        )
        assert response.status_code == 401


class TestAccount:
    def test_validate_reports_access(self, client, portal_headers, patient):
        unknown = client.post("/api/portal/validate", headers=portal_headers, json={"email": "x@example.com"})
        known = client.post("/api/portal/validate", headers=portal_headers, json={"email": "MARIA@example.com"})

        assert unknown.json() == {"exists": False, "has_access": None}
        assert known.json() == {"exists": True, "has_access": False}

    def test_profile_by_email(self, client, portal_headers, doctor, patient):
        response = client.post("/api/portal/me", headers=portal_headers, json={"email": patient.email})

        assert response.json()["doctor"]["name"] == doctor.name

    def test_profile_by_unknown_email_is_404(self, client, portal_headers):
        response = client.post("/api/portal/me", headers=portal_headers, json={"email": "x@example.com"})
        assert response.status_code == 404


class TestLogin:
    def test_sets_cookie_and_returns_token(self, client, portal_patient):
        response = portal_login(client)

        assert response.status_code == 200
        assert response.json()["access_token"]
        cookie = response.headers["set-cookie"]
        assert "auth_token=" in cookie
        assert "HttpOnly" in cookie

    def test_wrong_password_is_401(self, client, portal_patient):
        assert portal_login(client, password="errada-123").status_code == 401

    def test_patient_without_access_is_401(self, client, db, portal_patient):
        portal_patient.has_portal_access = False
        db.commit()
        assert portal_login(client).status_code == 401

    def test_cookie_authenticates_me(self, client, portal_headers, portal_patient):
        portal_login(client)

        response = client.get("/api/portal/me", headers=portal_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "maria@example.com"

    def test_doctor_token_is_rejected(self, client, portal_headers, auth_headers):
        headers = {**portal_headers, **auth_headers}
        assert client.get("/api/portal/me", headers=headers).status_code == 401


class TestSetupPassword:
    def test_token_sets_password_once(self, client, db, portal_headers, patient):
        patient.reset_token = "setup-token"
        patient.reset_token_expiry = utcnow() + timedelta(hours=1)
        db.commit()

        first = client.post(
            "/api/portal/setup-password", headers=portal_headers, json={"token": "setup-token", "password": "nova-senha-1"}
        )
        second = client.post(
            "/api/portal/setup-password", headers=portal_headers, json={"token": "setup-token", "password": "nova-senha-2"}
        )

        assert first.status_code == 200
        assert second.status_code == 400
        db.expire_all()
        assert db.get(Patient, patient.id).has_portal_access
        assert portal_login(client, password="nova-senha-1").status_code == 200

    def test_expired_token_is_400(self, client, db, portal_headers, patient):
        patient.reset_token = "setup-token"
        patient.reset_token_expiry = utcnow() - timedelta(minutes=1)
        db.commit()

        response = client.post(
            "/api/portal/setup-password", headers=portal_headers, json={"token": "setup-token", "password": "nova-senha-1"}
        )
        assert response.status_code == 400


class TestChangePassword:
    def test_changes_password_with_current_one(self, client, portal_headers, portal_patient):
        portal_login(client)

        response = client.post(
            "/api/portal/change-password",
            headers=portal_headers,
            json={"current_password": "patient-pass-123", "new_password": "outra-senha-9"},
        )

        assert response.status_code == 200
        assert portal_login(client, password="patient-pass-123").status_code == 401
        assert portal_login(client, password="outra-senha-9").status_code == 200

    def test_wrong_current_password_is_400(self, client, portal_headers, portal_patient):
        portal_login(client)

        response = client.post(
            "/api/portal/change-password",
            headers=portal_headers,
            json={"current_password": "errada-123", "new_password": "outra-senha-9"},
        )

        assert response.status_code == 400

    def test_requires_patient_token(self, client, portal_headers):
        response = client.post(
            "/api/portal/change-password",
            headers=portal_headers,
            json={"current_password": "x", "new_password": "outra-senha-9"},
        )
        assert response.status_code == 401


class TestResetPassword:
    def test_reset_flow(self, client, db, portal_headers, portal_patient):
        requested = client.post(
            "/api/portal/reset-password", headers=portal_headers, json={"email": portal_patient.email}
        )
        db.expire_all()
        token = db.get(Patient, portal_patient.id).reset_token

        checked = client.get(f"/api/portal/reset-password/{token}", headers=portal_headers)
        confirmed = client.post(
            "/api/portal/reset-password/confirm",
            headers=portal_headers,
            json={"token": token, "password": "senha-nova-77"},
        )

        assert requested.status_code == 200
        assert token
        assert checked.json() == {"valid": True}
        assert confirmed.status_code == 200
        assert portal_login(client, password="senha-nova-77").status_code == 200
        assert client.get(f"/api/portal/reset-password/{token}", headers=portal_headers).status_code == 400

    def test_unknown_email_gets_the_same_answer(self, client, portal_headers, portal_patient):
        known = client.post(
            "/api/portal/reset-password", headers=portal_headers, json={"email": portal_patient.email}
        )
        unknown = client.post(
            "/api/portal/reset-password", headers=portal_headers, json={"email": "ninguem@example.com"}
        )

        assert known.json() == unknown.json()

    def test_patient_without_access_gets_no_token(self, client, db, portal_headers, patient):
        client.post("/api/portal/reset-password", headers=portal_headers, json={"email": patient.email})

        db.expire_all()
        assert db.get(Patient, patient.id).reset_token is None


class TestReferralsAndRewards:
    def test_lists_own_referrals_and_rewards(self, client, db, portal_headers, doctor, page, portal_patient):
        referral = PatientReferral(
            slug="abc123xyz0", user_id=doctor.id, page_id=page.id, patient_id=portal_patient.id, leads=2
        )
        db.add(referral)
        db.flush()
        db.add(ReferralReward(
            referral_id=referral.id,
            type=RewardType.TEXT,
            title="Retorno grátis",
            unlock_value=4,
            unlock_type=UnlockType.LEADS,
            text_content="Válido por 30 dias",
        ))
        db.commit()
        portal_login(client)

        referrals = client.get("/api/portal/referrals", headers=portal_headers).json()
        rewards = client.get("/api/portal/rewards", headers=portal_headers).json()

        assert referrals[0]["stats"] == {"visits": 0, "leads": 2, "sales": 0}
        assert rewards[0]["progress"] == 50.0
        assert rewards[0]["is_unlocked"] is False
        assert rewards[0]["referral"]["slug"] == "abc123xyz0"
