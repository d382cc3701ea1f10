"""
API tests for the doctor profile, plan and public doctor lookup.
"""

from datetime import timedelta

from med1.core.database import utcnow
from med1.models.user import UserPlan


class TestProfile:
    def test_profile_includes_counts(self, client, auth_headers, lead):
        response = client.get("/api/users/profile", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["lead_count"] == 1
        assert body["indication_count"] == 0

    def test_update_profile(self, client, auth_headers):
        response = client.put("/api/users/profile", headers=auth_headers, json={"specialty": "Pediatria"})

        assert response.status_code == 200
        assert response.json()["specialty"] == "Pediatria"


class TestPlan:
    def test_expired_premium_reads_as_free(self, client, db, doctor, auth_headers):
        doctor.plan = UserPlan.PREMIUM
        doctor.plan_expires_at = utcnow() - timedelta(days=1)
        db.commit()

        response = client.get("/api/users/plan", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["plan"] == "free"
        assert response.headers["Cache-Control"] == "private, max-age=60"

    def test_no_cache_flag(self, client, auth_headers):
        response = client.get("/api/users/plan?no_cache=true", headers=auth_headers)
        assert response.headers["Cache-Control"] == "no-store"


class TestPublicDoctor:
    def test_lookup_by_slug(self, client, doctor):
        response = client.get(f"/api/doctors/{doctor.slug}")
        assert response.status_code == 200
        assert response.json()["name"] == doctor.name
        assert "email" not in response.json()

    def test_unknown_slug_is_404(self, client):
        assert client.get("/api/doctors/nao-existe").status_code == 404
