"""
API tests for interest options and their public listing.
"""


class TestInterestOptions:
    def test_create_and_list_in_creation_order(self, client, auth_headers):
        client.post("/api/interest-options", headers=auth_headers, json={"label": "Joelho", "value": "joelho"})
        created = client.post(
            "/api/interest-options",
            headers=auth_headers,
            json={"label": "Ombro", "value": "ombro", "redirect_url": "https://wa.me/5511"},
        )

        options = client.get("/api/interest-options", headers=auth_headers).json()

        assert created.status_code == 201
        assert [option["value"] for option in options] == ["joelho", "ombro"]
        assert options[1]["redirect_url"] == "https://wa.me/5511"

    def test_duplicate_value_is_400(self, client, auth_headers):
        client.post("/api/interest-options", headers=auth_headers, json={"label": "Joelho", "value": "joelho"})

        response = client.post(
            "/api/interest-options", headers=auth_headers, json={"label": "Outro", "value": "joelho"}
        )

        assert response.status_code == 400

    def test_same_value_for_another_doctor_is_allowed(self, client, auth_headers, other_headers):
        client.post("/api/interest-options", headers=auth_headers, json={"label": "Joelho", "value": "joelho"})

        response = client.post(
            "/api/interest-options", headers=other_headers, json={"label": "Joelho", "value": "joelho"}
        )

        assert response.status_code == 201

    def test_single_default(self, client, auth_headers):
        first = client.post(
            "/api/interest-options", headers=auth_headers, json={"label": "A", "value": "a", "is_default": True}
        ).json()
        second = client.post(
            "/api/interest-options", headers=auth_headers, json={"label": "B", "value": "b"}
        ).json()

        client.put(
            f"/api/interest-options/{second['id']}",
            headers=auth_headers,
            json={"label": "B", "value": "b", "is_default": True},
        )
        options = {o["id"]: o for o in client.get("/api/interest-options", headers=auth_headers).json()}

        assert options[first["id"]]["is_default"] is False
        assert options[second["id"]]["is_default"] is True

    def test_update_to_taken_value_is_400(self, client, auth_headers):
        client.post("/api/interest-options", headers=auth_headers, json={"label": "A", "value": "a"})
        second = client.post("/api/interest-options", headers=auth_headers, json={"label": "B", "value": "b"}).json()

        response = client.put(
            f"/api/interest-options/{second['id']}", headers=auth_headers, json={"label": "B", "value": "a"}
        )

        assert response.status_code == 400

    def test_delete_and_foreign_option(self, client, auth_headers, other_headers):
        option = client.post("/api/interest-options", headers=auth_headers, json={"label": "A", "value": "a"}).json()
        url = f"/api/interest-options/{option['id']}"

        assert client.delete(url, headers=other_headers).status_code == 404
        assert client.delete(url, headers=auth_headers).status_code == 200
        assert client.get("/api/interest-options", headers=auth_headers).json() == []


class TestPublicInterestOptions:
    def test_listing_by_doctor_slug(self, client, auth_headers, doctor):
        client.post("/api/interest-options", headers=auth_headers, json={"label": "Joelho", "value": "joelho"})

        response = client.get(f"/api/interest-options/{doctor.slug}")

        assert response.status_code == 200
        assert [option["label"] for option in response.json()] == ["Joelho"]
        assert "created_at" not in response.json()[0]

    def test_unknown_slug_is_404(self, client):
        assert client.get("/api/interest-options/ninguem").status_code == 404
