"""
API tests for the doctor's lead endpoints.
"""

from med1.models.lead import Lead
from med1.models.pipeline import Pipeline


class TestListLeads:
    def test_only_own_leads_are_listed(self, client, auth_headers, other_headers, lead):
        own = client.get("/api/leads", headers=auth_headers)
        other = client.get("/api/leads", headers=other_headers)

        assert [row["id"] for row in own.json()] == [str(lead.id)]
        assert other.json() == []

    def test_requires_authentication(self, client):
        assert client.get("/api/leads").status_code == 401


class TestImportLeads:
    def test_rejects_when_no_row_is_valid(self, client, auth_headers):
        response = client.post("/api/leads/import", headers=auth_headers, json={"leads": [{"name": "Sem telefone"}]})
        assert response.status_code == 400

    def test_imports_valid_rows(self, client, auth_headers):
        rows = [{"name": "Ana", "phone": "11900000001"}, {"name": "", "phone": "11900000002"}]

        response = client.post("/api/leads/import", headers=auth_headers, json={"leads": rows})

        assert response.status_code == 200
        assert response.json()["imported"] == 1

    def test_malformed_rows_are_skipped(self, client, auth_headers):
        rows = [{"name": "Ana", "phone": "11900000001"}, "junk", None, ["Bia", "11900000002"]]

        response = client.post("/api/leads/import", headers=auth_headers, json={"leads": rows})

        assert response.status_code == 200
        assert response.json()["imported"] == 1
        assert response.json()["total"] == 4


class TestUpdateLead:
    def test_status_change(self, client, auth_headers, lead):
        response = client.patch(f"/api/leads/{lead.id}", headers=auth_headers, json={"status": "contacted"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "contacted"

    def test_unknown_status_is_400(self, client, auth_headers, lead):
        response = client.patch(f"/api/leads/{lead.id}", headers=auth_headers, json={"status": "Fechado"})
        assert response.status_code == 400

    def test_foreign_lead_is_404(self, client, other_headers, lead):
        response = client.patch(f"/api/leads/{lead.id}", headers=other_headers, json={"status": "lost"})
        assert response.status_code == 404

    def test_foreign_pipeline_is_404(self, client, db, auth_headers, other_doctor, lead):
        pipeline = Pipeline(user_id=other_doctor.id, name="Alheio")
        db.add(pipeline)
        db.commit()

        response = client.patch(
            f"/api/leads/{lead.id}", headers=auth_headers, json={"pipeline_id": str(pipeline.id)}
        )
        assert response.status_code == 404


class TestDeleteLead:
    def test_delete(self, client, db, auth_headers, lead):
        lead_id = lead.id
        response = client.delete(f"/api/leads/{lead_id}", headers=auth_headers)

        assert response.status_code == 200
        db.expire_all()
        assert db.get(Lead, lead_id) is None


class TestLeadNotes:
    def test_save_and_read_notes(self, client, auth_headers, lead):
        saved = client.post(
            f"/api/leads/{lead.id}/notes", headers=auth_headers, json={"medical_notes": "Hipertensão leve"}
        )
        fetched = client.get(f"/api/leads/{lead.id}/notes", headers=auth_headers)

        assert saved.status_code == 200
        assert fetched.json()["medical_notes"] == "Hipertensão leve"
