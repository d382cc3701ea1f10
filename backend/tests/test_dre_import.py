"""
Unit tests for DRE file parsing and fact entry import.
"""

import io

import pandas as pd
import pytest

from med1.models.dre import CostCenter, FactEntry, Product
from med1.services.dre_import import (
    DreImportError,
    find_invalid_records,
    format_cost_center_code,
    import_fact_entries,
    parse_records,
)


MAPPING = {
    "period": "Periodo",
    "product_sku": "SKU",
    "cost_center_code": "Centro de Custo",
    "pnl_line": "Linha",
    "value": "Valor",
}

CSV = (
    "Periodo,SKU,Centro de Custo,Linha,Valor,Ignorada\n"
    "2024-01,SKU1,42,Receita,100.5,x\n"
    "2024-01,SKU2,CC-7,Custo,-20,y\n"
).encode("utf-8")


class TestCostCenterCode:
    @pytest.mark.parametrize(
        "raw, expected",
        [("42", "000042"), ("CC-7", "000007"), (123.0, "000123"), ("1234567", "1234567"), ("abc", ""), (None, "")],
    )
    def test_digits_only_padded_to_six(self, raw, expected):
        assert format_cost_center_code(raw) == expected


class TestParseRecords:
    def test_csv_columns_are_mapped(self):
        records = parse_records(CSV, "csv", MAPPING)

        assert len(records) == 2
        assert records[0] == {
            "period": "2024-01",
            "product_sku": "SKU1",
            "cost_center_code": "42",
            "pnl_line": "Receita",
            "value": "100.5",
        }

    def test_xlsx_is_read_with_pandas(self):
        buffer = io.BytesIO()
        pd.DataFrame(
            {"Periodo": ["2024-02"], "SKU": ["SKU9"], "Centro de Custo": [15], "Linha": ["Receita"], "Valor": [9.5]}
        ).to_excel(buffer, index=False)

        records = parse_records(buffer.getvalue(), "xlsx", MAPPING)

        assert records[0]["product_sku"] == "SKU9"
        assert format_cost_center_code(records[0]["cost_center_code"]) == "000015"

    def test_preview_data_replaces_the_file(self):
        preview = [{"period": "2024-03", "product_sku": "P", "cost_center_code": "1", "value": 1}]
        assert parse_records(None, "csv", {}, preview) == preview

    def test_unsupported_type_is_rejected(self):
        with pytest.raises(DreImportError):
            parse_records(b"{}", "json", MAPPING)


class TestImportFactEntries:
    def test_invalid_records_are_reported(self):
        records = [
            {"period": "2024-01", "product_sku": "A", "cost_center_code": "1", "value": "10"},
            {"period": "", "product_sku": "A", "cost_center_code": "1", "value": "10"},
            {"period": "2024-01", "product_sku": "A", "cost_center_code": "1", "value": "dez"},
            {"period": "2024-01", "product_sku": "A", "cost_center": {"code": "9"}, "value": 3},
        ]
        assert find_invalid_records(records) == [records[1], records[2]]

    def test_any_invalid_record_rejects_the_whole_import(self, db):
        records = [
            {"period": "2024-01", "product_sku": "A", "cost_center_code": "1", "value": "10"},
            {"period": "2024-01", "product_sku": "", "cost_center_code": "1", "value": "10"},
        ]
        with pytest.raises(DreImportError) as exc_info:
            import_fact_entries(db, records)

        assert exc_info.value.invalid_records == [records[1]]
        assert db.query(FactEntry).count() == 0

    def test_creates_missing_products_and_cost_centers(self, db):
        db.add(Product(sku="SKU1", description="Consulta"))
        db.commit()

        imported = import_fact_entries(db, parse_records(CSV, "csv", MAPPING))

        assert imported == 2
        assert {p.sku for p in db.query(Product)} == {"SKU1", "SKU2"}
        assert {c.code for c in db.query(CostCenter)} == {"000042", "000007"}
        entry = db.query(FactEntry).filter(FactEntry.product_sku == "SKU1").one()
        assert entry.value == pytest.approx(100.5)
        assert entry.cost_center_code == "000042"

    def test_empty_import_is_rejected(self, db):
        with pytest.raises(DreImportError):
            import_fact_entries(db, [])
