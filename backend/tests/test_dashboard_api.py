"""
API tests for the doctor dashboard.
"""

from med1.models.indication import Indication
from med1.models.lead import Event, EventType, Lead, LeadStatus


class TestDashboard:
    def test_empty_dashboard(self, client, auth_headers):
        body = client.get("/api/dashboard", headers=auth_headers).json()

        assert body["total_leads"] == 0
        assert body["conversion_rate"] == 0
        assert body["recent_leads"] == []

    def test_totals_and_revenue(self, client, db, doctor, auth_headers):
        indication = Indication(user_id=doctor.id, name="Joelho", slug="joelho")
        db.add(indication)
        db.flush()
        db.add_all(Event(user_id=doctor.id, indication_id=indication.id, type=EventType.CLICK.value) for _ in range(4))
        db.add_all([
            Event(user_id=doctor.id, indication_id=indication.id, type=EventType.PAGE_VIEW.value),
            Event(user_id=doctor.id, indication_id=indication.id, type=EventType.LINK_VIEW.value),
        ])
        db.add_all([
            Lead(user_id=doctor.id, name="A", phone="1", indication_id=indication.id, utm_source="google",
                 status=LeadStatus.FECHADO.value, potential_value=1000),
            Lead(user_id=doctor.id, name="B", phone="2", utm_source="google", potential_value=500),
        ])
        db.commit()

        body = client.get("/api/dashboard", headers=auth_headers).json()

        assert body["total_leads"] == 2
        assert body["total_clicks"] == 4
        assert body["conversion_rate"] == 50
        assert body["top_indications"][0]["lead_count"] == 1
        assert body["top_indications"][0]["event_count"] == 4
        assert body["top_sources"] == [{"source": "google", "count": 2}]
        assert (body["total_revenue"], body["potential_revenue"]) == (1000.0, 500.0)

    def test_other_doctors_data_is_excluded(self, client, db, other_doctor, auth_headers):
        db.add(Lead(user_id=other_doctor.id, name="X", phone="9"))
        db.commit()

        assert client.get("/api/dashboard", headers=auth_headers).json()["total_leads"] == 0
