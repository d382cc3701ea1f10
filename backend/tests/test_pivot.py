"""
Unit tests for pivot aggregation over fact entries.
"""

import pytest

from med1.models.dre import CostCenter, FactEntry, Product
from med1.schemas.dre import PivotRequest
from med1.services.pivot import PivotQueryError, column_alias, run_pivot


@pytest.fixture
def facts(db):
    db.add_all([Product(sku="SKU1"), Product(sku="SKU2"), CostCenter(code="000100")])
    db.flush()
    rows = [
        ("2024-01", "Receita", "BU1", "SKU1", 100.0),
        ("2024-01", "Receita", "BU2", "SKU2", 50.0),
        ("2024-02", "Receita", "BU1", "SKU1", 70.0),
        ("2024-01", "Custo", "BU1", "SKU1", -40.0),
        ("2024-02", "Custo", "BU2", "SKU2", -10.0),
    ]
    db.add_all(
        FactEntry(
            period=period,
            pnl_line=line,
            bu=bu,
            product_sku=sku,
            cost_center_code="000100",
            version="Real",
            scenario="Base",
            value=value,
        )
        for period, line, bu, sku, value in rows
    )
    db.commit()


def pivot(db, **kwargs):
    return run_pivot(db, PivotRequest(**kwargs))


class TestPivotValidation:
    def test_unknown_dimension_is_rejected(self, db):
        with pytest.raises(PivotQueryError):
            pivot(db, rows=["password_hash"], metrics=["SUM(value)"])

    def test_unknown_metric_is_rejected(self, db):
        with pytest.raises(PivotQueryError):
            pivot(db, rows=["bu"], metrics=["SUM(value); DROP TABLE users"])

    def test_sort_field_must_be_produced(self, db, facts):
        with pytest.raises(PivotQueryError):
            pivot(db, rows=["bu"], metrics=["SUM(value)"], sort_by={"field": "region"})


class TestPivotAggregation:
    def test_empty_result_has_empty_totals(self, db):
        result = pivot(db, rows=["bu"], metrics=["SUM(value)"])
        assert result == {"data": [], "totals": {}, "metadata": {"page": 1, "page_size": 100, "total": 0}}

    def test_metrics_per_row_group(self, db, facts):
        result = pivot(
            db,
            rows=["pnl_line"],
            metrics=["SUM(value)", "COUNT(*)"],
            sort_by={"field": "pnl_line", "direction": "desc"},
        )

        assert result["data"] == [
            {"pnl_line": "Receita", "SUM(value)": 220.0, "COUNT(*)": 3},
            {"pnl_line": "Custo", "SUM(value)": -50.0, "COUNT(*)": 2},
        ]
        assert result["totals"] == {"SUM(value)": 170.0, "COUNT(*)": 5}
        assert result["metadata"]["total"] == 2

    def test_pivot_column_spreads_distinct_values(self, db, facts):
        result = pivot(
            db,
            rows=["pnl_line"],
            columns=["period"],
            metrics=["SUM(value)"],
            sort_by={"field": "pnl_line"},
        )

        assert result["data"] == [
            {"pnl_line": "Custo", "2024_01": -40.0, "2024_02": -10.0},
            {"pnl_line": "Receita", "2024_01": 150.0, "2024_02": 70.0},
        ]

    def test_filters_restrict_rows_and_totals(self, db, facts):
        result = pivot(
            db,
            filters={"bu": ["BU1"], "period": ["2024-01"]},
            rows=["pnl_line"],
            metrics=["SUM(value)"],
        )

        assert result["totals"] == {"SUM(value)": 60.0}
        assert result["metadata"]["total"] == 2

    def test_pagination_limits_rows_but_reports_total(self, db, facts):
        result = pivot(db, rows=["period", "bu"], metrics=["SUM(value)"], page=2, page_size=2,
                       sort_by={"field": "period"})

        assert len(result["data"]) == 2
        assert result["metadata"] == {"page": 2, "page_size": 2, "total": 4}

    def test_colliding_column_aliases_keep_every_value(self, db):
        db.add_all([Product(sku="SKU1"), CostCenter(code="000100")])
        db.flush()
        for version, value in [("period", 10.0), ("v1", 5.0), ("2024-01", 1.0), ("2024/01", 2.0)]:
            db.add(FactEntry(
                period="2024-01",
                pnl_line="Receita",
                product_sku="SKU1",
                cost_center_code="000100",
                version=version,
                scenario="Base",
                value=value,
            ))
        db.commit()

        result = pivot(db, rows=["period"], columns=["version"], metrics=["SUM(value)"])

        assert result["data"] == [
            {"period": "2024-01", "2024_01": 1.0, "2024_01_2": 2.0, "period_2": 10.0, "v1": 5.0},
        ]


def test_column_alias_replaces_non_alphanumerics():
    assert column_alias("Receita Líquida/BR") == "Receita_L_quida_BR"
