"""
DRE spreadsheet import.

Uploaded CSV/Excel files are parsed with pandas, their columns renamed
through a caller supplied ``{db_field: file_column}`` mapping, validated as a
whole and then written in a single transaction: missing products and cost
centers first, fact entries after.
"""

import io
import logging
import re
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from ..core.transactions import transaction
from ..models.dre import CostCenter, FactEntry, Product


logger = logging.getLogger(__name__)

SUPPORTED_FILE_TYPES = ("csv", "xlsx", "xls")

FACT_FIELDS = (
    "period", "version", "scenario", "bu", "region", "channel",
    "product_sku", "customer", "cost_center_code", "gl_account", "pnl_line",
)

_NON_DIGIT = re.compile(r"\D")


class DreImportError(ValueError):
    """Import rejected before anything was written."""

    def __init__(self, message: str, invalid_records: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.invalid_records = invalid_records or []


def format_cost_center_code(code: Any) -> str:
    """
    Keep only digits and left-pad to six.

    >>> format_cost_center_code("CC-42")
    '000042'
    """
    if code is None:
        return ""
    text = str(code)
    # Excel hands numeric cells back as floats
    if text.endswith(".0"):
        text = text[:-2]
    digits = _NON_DIGIT.sub("", text)
    return digits.zfill(6) if digits else ""


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if pd.isna(number) else number


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# =============================================================================
# Parsing
# =============================================================================

def read_upload(content: bytes, file_type: str) -> pd.DataFrame:
    """Parse raw upload bytes into a DataFrame of strings."""
    file_type = (file_type or "").lower()
    if file_type not in SUPPORTED_FILE_TYPES:
        raise DreImportError(f"Unsupported file type: {file_type or 'missing'}")

    buffer = io.BytesIO(content)
    try:
        if file_type == "csv":
            df = pd.read_csv(buffer, dtype=str, keep_default_na=False, skip_blank_lines=True)
        else:
            df = pd.read_excel(buffer, sheet_name=0, dtype=object)
    except (ValueError, ImportError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DreImportError(f"Could not read {file_type} file: {e}") from e

    return df.astype(object).where(pd.notna(df), None)


def map_columns(df: pd.DataFrame, column_mapping: Dict[str, str]) -> List[Dict[str, Any]]:
    """
    Rename file columns to database fields.

    Mapping entries whose file column is absent from the sheet are ignored.
    """
    selected = {
        file_column: db_field
        for db_field, file_column in column_mapping.items()
        if isinstance(file_column, str) and file_column in df.columns
    }
    mapped = df[list(selected)].rename(columns=selected)
    return mapped.to_dict(orient="records")


def parse_records(
    content: Optional[bytes],
    file_type: str,
    column_mapping: Dict[str, str],
    preview_data: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """Records to import: ``preview_data`` when given, else the mapped file rows."""
    if preview_data:
        return [row for row in preview_data if isinstance(row, dict)]
    if content is None:
        raise DreImportError("No file uploaded")
    return map_columns(read_upload(content, file_type), column_mapping)


# =============================================================================
# Validation and write
# =============================================================================

def _record_cost_center(record: Dict[str, Any]) -> Any:
    nested = record.get("cost_center")
    if isinstance(nested, dict):
        return nested.get("code")
    return record.get("cost_center_code") or record.get("cost_center.code")


def find_invalid_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Records missing period, product SKU or cost center, or with a non-numeric value."""
    return [
        record for record in records
        if not _clean(record.get("period"))
        or not _clean(record.get("product_sku"))
        or not format_cost_center_code(_record_cost_center(record))
        or _to_float(record.get("value")) is None
    ]


def import_fact_entries(db: Session, records: List[Dict[str, Any]]) -> int:
    """
    Validate and insert ``records``; returns the number of fact entries created.

    Raises:
        DreImportError: when there is nothing to import or any record is invalid
    """
    if not records:
        raise DreImportError("File is empty or has no valid rows")

    invalid = find_invalid_records(records)
    if invalid:
        logger.warning(f"DRE import rejected: {len(invalid)} of {len(records)} records invalid")
        raise DreImportError("Invalid records found", invalid_records=invalid)

    entries = []
    products: Dict[str, Optional[str]] = {}
    cost_centers: Dict[str, Optional[str]] = {}
    for record in records:
        sku = _clean(record["product_sku"])
        code = format_cost_center_code(_record_cost_center(record))
        products.setdefault(sku, _clean(record.get("product_description")) or sku)
        cost_centers.setdefault(code, _clean(record.get("cost_center_description")) or code)

        fields = {name: _clean(record.get(name)) for name in FACT_FIELDS}
        fields.update(product_sku=sku, cost_center_code=code, value=_to_float(record["value"]))
        entries.append(FactEntry(**fields))

    with transaction(db):
        existing_skus = {
            sku for (sku,) in db.query(Product.sku).filter(Product.sku.in_(products)).all()
        }
        existing_codes = {
            code for (code,) in db.query(CostCenter.code).filter(CostCenter.code.in_(cost_centers)).all()
        }
        db.add_all(
            Product(sku=sku, description=description)
            for sku, description in products.items() if sku not in existing_skus
        )
        db.add_all(
            CostCenter(code=code, description=description)
            for code, description in cost_centers.items() if code not in existing_codes
        )
        db.flush()
        db.add_all(entries)

    logger.info(
        f"DRE import: {len(entries)} entries, "
        f"{len(products) - len(existing_skus)} new products, "
        f"{len(cost_centers) - len(existing_codes)} new cost centers"
    )
    return len(entries)
