"""
API tests for outbound prospecting contacts, their clinics and interactions.
"""


CONTACT = {
    "nome": "Dr. Paulo Prado",
    "especialidade": "Ortopedia",
    "clinics": [{"nome": "Clínica Centro", "localizacao": "São Paulo", "media_de_medicos": 4}],
}


class TestOutbound:
    def test_create_with_clinics(self, client, auth_headers):
        response = client.post("/api/outbound", headers=auth_headers, json=CONTACT)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "prospectado"
        assert body["clinics"][0]["nome"] == "Clínica Centro"

    def test_add_and_list_clinics(self, client, auth_headers):
        contact = client.post("/api/outbound", headers=auth_headers, json=CONTACT).json()

        added = client.post(
            f"/api/outbound/{contact['id']}/clinics", headers=auth_headers, json={"nome": "Clínica Sul"}
        )
        clinics = client.get(f"/api/outbound/{contact['id']}/clinics", headers=auth_headers).json()

        assert added.status_code == 201
        assert {clinic["nome"] for clinic in clinics} == {"Clínica Centro", "Clínica Sul"}

    def test_update_and_delete(self, client, auth_headers):
        contact = client.post("/api/outbound", headers=auth_headers, json=CONTACT).json()

        updated = client.put(f"/api/outbound/{contact['id']}", headers=auth_headers, json={"status": "contatado"})
        deleted = client.delete(f"/api/outbound/{contact['id']}", headers=auth_headers)

        assert updated.json()["status"] == "contatado"
        assert deleted.status_code == 200
        assert client.get(f"/api/outbound/{contact['id']}", headers=auth_headers).status_code == 404

    def test_foreign_contact_is_404(self, client, auth_headers, other_headers):
        contact = client.post("/api/outbound", headers=auth_headers, json=CONTACT).json()
        assert client.get(f"/api/outbound/{contact['id']}", headers=other_headers).status_code == 404


class TestInteractions:
    def test_log_and_list_newest_first(self, client, auth_headers):
        contact = client.post("/api/outbound", headers=auth_headers, json=CONTACT).json()
        url = f"/api/outbound/{contact['id']}/interactions"

        first = client.post(url, headers=auth_headers, json={"type": "whatsapp", "content": "Primeiro contato"})
        client.post(url, headers=auth_headers, json={"type": "call", "content": "Ligação de retorno"})
        interactions = client.get(url, headers=auth_headers).json()

        assert first.status_code == 201
        assert first.json()["type"] == "whatsapp"
        assert [item["type"] for item in interactions] == ["call", "whatsapp"]

    def test_unknown_type_is_400(self, client, auth_headers):
        contact = client.post("/api/outbound", headers=auth_headers, json=CONTACT).json()

        response = client.post(
            f"/api/outbound/{contact['id']}/interactions", headers=auth_headers, json={"type": "fax", "content": "x"}
        )

        assert response.status_code == 400

    def test_delete(self, client, auth_headers):
        contact = client.post("/api/outbound", headers=auth_headers, json=CONTACT).json()
        url = f"/api/outbound/{contact['id']}/interactions"
        interaction = client.post(url, headers=auth_headers, json={"type": "email", "content": "Proposta"}).json()

        deleted = client.delete(f"{url}/{interaction['id']}", headers=auth_headers)

        assert deleted.status_code == 200
        assert client.get(url, headers=auth_headers).json() == []
        assert client.delete(f"{url}/{interaction['id']}", headers=auth_headers).status_code == 404

    def test_foreign_contact_interactions_are_404(self, client, auth_headers, other_headers):
        contact = client.post("/api/outbound", headers=auth_headers, json=CONTACT).json()
        url = f"/api/outbound/{contact['id']}/interactions"

        assert client.get(url, headers=other_headers).status_code == 404
        assert client.post(url, headers=other_headers, json={"type": "call", "content": "x"}).status_code == 404
