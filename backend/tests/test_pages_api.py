"""
API tests for landing pages, their blocks, addresses and social links.
"""

from med1.models.page import PageBlock


BLOCKS = [
    {"type": "FORM", "content": {"fields": ["name", "phone"]}, "order": 1},
    {"type": "BUTTON", "content": {"label": "Agendar", "url": "https://wa.me/5511"}, "order": 0},
]


class TestPages:
    def test_create_derives_slug_from_title(self, client, auth_headers):
        response = client.post("/api/pages", headers=auth_headers, json={"title": "Dra. Ana  Souza!"})

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "dra--ana--souza"
        assert body["layout"] == "classic"
        assert body["primary_color"] == "#0070df"

    def test_duplicate_title_gets_suffixed_slug(self, client, auth_headers, page):
        response = client.post("/api/pages", headers=auth_headers, json={"title": "Consultório", "slug": "consultorio"})
        assert response.json()["slug"] == "consultorio-1"

    def test_foreign_page_is_404(self, client, other_headers, page):
        assert client.get(f"/api/pages/{page.id}", headers=other_headers).status_code == 404

    def test_update_and_delete(self, client, auth_headers, page):
        updated = client.put(f"/api/pages/{page.id}", headers=auth_headers, json={"subtitle": "Cardiologia"})
        deleted = client.delete(f"/api/pages/{page.id}", headers=auth_headers)

        assert updated.json()["subtitle"] == "Cardiologia"
        assert deleted.status_code == 200
        assert client.get(f"/api/pages/{page.id}", headers=auth_headers).status_code == 404


class TestBlocks:
    def test_blocks_are_replaced(self, client, db, auth_headers, page):
        client.put(f"/api/pages/{page.id}/blocks", headers=auth_headers, json={"blocks": BLOCKS})

        response = client.put(
            f"/api/pages/{page.id}/blocks",
            headers=auth_headers,
            json={"blocks": [{"type": "ADDRESS", "content": {"street": "Av. Paulista"}, "order": 0}]},
        )

        assert response.status_code == 200
        assert [block["type"] for block in response.json()["blocks"]] == ["ADDRESS"]
        assert db.query(PageBlock).filter(PageBlock.page_id == page.id).count() == 1

    def test_blocks_come_back_in_order(self, client, auth_headers, page):
        response = client.put(f"/api/pages/{page.id}/blocks", headers=auth_headers, json={"blocks": BLOCKS})
        assert [block["type"] for block in response.json()["blocks"]] == ["BUTTON", "FORM"]

    def test_unknown_block_type_is_400(self, client, auth_headers, page):
        response = client.put(
            f"/api/pages/{page.id}/blocks",
            headers=auth_headers,
            json={"blocks": [{"type": "VIDEO", "content": {}, "order": 0}]},
        )
        assert response.status_code == 400


class TestAddresses:
    def test_new_default_replaces_the_old_one(self, client, auth_headers, page):
        url = f"/api/pages/{page.id}/addresses"
        client.post(url, headers=auth_headers, json={"name": "Centro", "address": "Rua A, 1", "is_default": True})

        added = client.post(url, headers=auth_headers, json={"name": "Sul", "address": "Rua B, 2", "is_default": True})
        addresses = client.get(url, headers=auth_headers).json()

        assert added.status_code == 201
        assert [(a["name"], a["is_default"]) for a in addresses] == [("Centro", False), ("Sul", True)]

    def test_replace_defaults_the_first_when_none_is_flagged(self, client, auth_headers, page):
        url = f"/api/pages/{page.id}/addresses"
        client.post(url, headers=auth_headers, json={"name": "Antigo", "address": "Rua Z, 9"})

        response = client.put(url, headers=auth_headers, json={"addresses": [
            {"name": "Centro", "address": "Rua A, 1"},
            {"name": "Sul", "address": "Rua B, 2"},
        ]})

        assert response.status_code == 200
        assert [(a["name"], a["is_default"]) for a in response.json()] == [("Centro", True), ("Sul", False)]

    def test_replace_keeps_a_single_default(self, client, auth_headers, page):
        response = client.put(f"/api/pages/{page.id}/addresses", headers=auth_headers, json={"addresses": [
            {"name": "Centro", "address": "Rua A, 1"},
            {"name": "Sul", "address": "Rua B, 2", "is_default": True},
            {"name": "Norte", "address": "Rua C, 3", "is_default": True},
        ]})

        assert [a["is_default"] for a in response.json()] == [False, True, False]

    def test_missing_address_is_400(self, client, auth_headers, page):
        response = client.post(f"/api/pages/{page.id}/addresses", headers=auth_headers, json={"name": "Centro"})
        assert response.status_code == 400

    def test_foreign_page_is_404(self, client, other_headers, page):
        assert client.get(f"/api/pages/{page.id}/addresses", headers=other_headers).status_code == 404


class TestSocialLinks:
    def test_links_are_replaced(self, client, auth_headers, page):
        url = f"/api/pages/{page.id}/social-links"
        client.put(url, headers=auth_headers, json={"links": [
            {"platform": "YOUTUBE", "username": "anasouza", "url": "https://youtube.com/@anasouza"},
        ]})

        response = client.put(url, headers=auth_headers, json={"links": [
            {"platform": "INSTAGRAM", "username": "draana", "url": "https://instagram.com/draana"},
        ]})

        assert response.status_code == 200
        assert response.json()["social_links"] == [
            {"id": response.json()["social_links"][0]["id"], "platform": "INSTAGRAM",
             "username": "draana", "url": "https://instagram.com/draana"},
        ]

    def test_unknown_platform_is_400(self, client, auth_headers, page):
        response = client.put(f"/api/pages/{page.id}/social-links", headers=auth_headers, json={"links": [
            {"platform": "MYSPACE", "username": "ana", "url": "https://myspace.com/ana"},
        ]})
        assert response.status_code == 400

    def test_invalid_url_is_400(self, client, auth_headers, page):
        response = client.put(f"/api/pages/{page.id}/social-links", headers=auth_headers, json={"links": [
            {"platform": "INSTAGRAM", "username": "ana", "url": "not a url"},
        ]})
        assert response.status_code == 400
