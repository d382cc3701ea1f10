"""
API tests for DRE fact entries, file import, pivot queries and snapshots.
"""

import json

import pytest

from med1.models.dre import CostCenter, FactEntry, Product


ENTRY = {
    "period": "2024-01",
    "version": "Real",
    "scenario": "Base",
    "bu": "BU1",
    "product_sku": "SKU1",
    "cost_center_code": "CC-42",
    "pnl_line": "Receita",
    "value": 1500.0,
}

CSV = (
    "Periodo,SKU,Centro,Valor\n"
    "2024-01,SKU1,10,100\n"
    "2024-02,SKU2,11,200\n"
).encode("utf-8")

MAPPING = {"period": "Periodo", "product_sku": "SKU", "cost_center_code": "Centro", "value": "Valor"}


@pytest.fixture
def entry(client, auth_headers) -> dict:
    response = client.post("/api/dre", headers=auth_headers, json=ENTRY)
    assert response.status_code == 201
    return response.json()


class TestFactEntries:
    def test_create_registers_product_and_cost_center(self, db, entry):
        assert entry["cost_center_code"] == "000042"
        assert db.get(Product, "SKU1") is not None
        assert db.get(CostCenter, "000042") is not None

    def test_cost_center_without_digits_is_400(self, client, auth_headers):
        response = client.post("/api/dre", headers=auth_headers, json={**ENTRY, "cost_center_code": "abc"})
        assert response.status_code == 400

    def test_requires_authentication(self, client):
        assert client.get("/api/dre").status_code == 401

    def test_list_filters(self, client, auth_headers, entry):
        client.post("/api/dre", headers=auth_headers, json={**ENTRY, "period": "2024-02"})

        response = client.get("/api/dre?period=2024-02", headers=auth_headers)

        assert [row["period"] for row in response.json()] == ["2024-02"]

    @pytest.mark.parametrize("value", ["abc", True, None])
    def test_patch_rejects_non_numeric_values(self, client, auth_headers, entry, value):
        response = client.patch(f"/api/dre/{entry['id']}", headers=auth_headers, json={"value": value})
        assert response.status_code == 400

    def test_patch_accepts_numeric_strings(self, client, auth_headers, entry):
        response = client.patch(f"/api/dre/{entry['id']}", headers=auth_headers, json={"value": "99.5"})
        assert response.json()["value"] == 99.5

    def test_patch_missing_entry_is_404(self, client, auth_headers):
        assert client.patch("/api/dre/999", headers=auth_headers, json={"value": 1}).status_code == 404

    @pytest.mark.parametrize("ids", [[], "1,2", [1, "2"], None])
    def test_delete_requires_integer_ids(self, client, auth_headers, ids):
        response = client.post("/api/dre/delete", headers=auth_headers, json={"ids": ids})
        assert response.status_code == 400

    def test_delete(self, client, db, auth_headers, entry):
        response = client.post("/api/dre/delete", headers=auth_headers, json={"ids": [entry["id"]]})

        assert response.status_code == 200
        assert db.query(FactEntry).count() == 0


class TestImport:
    def test_csv_upload(self, client, db, auth_headers):
        response = client.post(
            "/api/dre/import",
            headers=auth_headers,
            files={"file": ("dre.csv", CSV, "text/csv")},
            data={"file_type": "csv", "column_mapping": json.dumps(MAPPING)},
        )

        assert response.status_code == 200
        assert response.json()["details"] == {"total_processed": 2, "imported_count": 2}
        assert {row.cost_center_code for row in db.query(FactEntry)} == {"000010", "000011"}

    def test_preview_rows_replace_the_file(self, client, db, auth_headers):
        preview = [{"period": "2024-03", "product_sku": "SKU3", "cost_center_code": "7", "value": 5}]

        response = client.post(
            "/api/dre/import",
            headers=auth_headers,
            data={"file_type": "csv", "preview_data": json.dumps(preview)},
        )

        assert response.status_code == 200
        assert db.query(FactEntry).one().period == "2024-03"

    def test_invalid_rows_reject_the_import(self, client, db, auth_headers):
        preview = [{"period": "2024-03", "product_sku": "SKU3", "cost_center_code": "7"}]

        response = client.post(
            "/api/dre/import",
            headers=auth_headers,
            data={"file_type": "csv", "preview_data": json.dumps(preview)},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["invalid_records"]
        assert db.query(FactEntry).count() == 0

    def test_malformed_mapping_is_400(self, client, auth_headers):
        response = client.post(
            "/api/dre/import",
            headers=auth_headers,
            files={"file": ("dre.csv", CSV, "text/csv")},
            data={"file_type": "csv", "column_mapping": "{not json"},
        )
        assert response.status_code == 400


class TestPivotEndpoints:
    def test_query(self, client, auth_headers, entry):
        response = client.post(
            "/api/pivot/query",
            headers=auth_headers,
            json={"rows": ["bu"], "metrics": ["SUM(value)"]},
        )

        assert response.status_code == 200
        assert response.json()["data"] == [{"bu": "BU1", "SUM(value)": 1500.0}]

    def test_unknown_dimension_is_400(self, client, auth_headers):
        response = client.post(
            "/api/pivot/query",
            headers=auth_headers,
            json={"rows": ["password_hash"], "metrics": ["SUM(value)"]},
        )
        assert response.status_code == 400

    def test_snapshots_filter_by_tag_and_author(self, client, auth_headers):
        for name, author, tags in (("Jan", "ana", ["mensal"]), ("Q1", "bruno", ["trimestral"])):
            response = client.post(
                "/api/pivot/snapshot",
                headers=auth_headers,
                json={
                    "name": name,
                    "config": {"rows": ["bu"], "metrics": ["SUM(value)"]},
                    "data": [{"bu": "BU1", "SUM(value)": 10}],
                    "totals": {"SUM(value)": 10},
                    "metadata": {"created_by": author, "created_at": "2024-04-01T12:00:00Z", "tags": tags},
                },
            )
            assert response.status_code == 201

        by_tag = client.get("/api/pivot/snapshot?tag=mensal", headers=auth_headers).json()
        by_author = client.get("/api/pivot/snapshot?created_by=bruno", headers=auth_headers).json()

        assert [snapshot["name"] for snapshot in by_tag] == ["Jan"]
        assert [snapshot["name"] for snapshot in by_author] == ["Q1"]
        assert by_tag[0]["metadata"]["tags"] == ["mensal"]
