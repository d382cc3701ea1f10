"""
DRE (income statement) endpoints: fact entries, file import, pivot queries
and saved pivot snapshots.

Fact data is shared by every signed-in doctor.
"""

import json
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..core.transactions import transaction
from ..models.dre import CostCenter, FactEntry, PivotSnapshot, Product
from ..models.user import User
from ..schemas.common import SuccessResponse
from ..schemas.dre import (
    FactEntryCreate,
    FactEntryDeleteRequest,
    FactEntryResponse,
    FactEntryValueUpdate,
    ImportDetails,
    ImportResponse,
    PivotRequest,
    PivotResponse,
    SnapshotCreate,
    SnapshotResponse,
)
from ..services.dre_import import DreImportError, format_cost_center_code, import_fact_entries, parse_records
from ..services.pivot import PivotQueryError, run_pivot


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/dre", tags=["DRE"])
pivot_router = APIRouter(prefix="/api/pivot", tags=["DRE"])


def _bad_request(detail: Any) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _json_form_field(raw: Optional[str], name: str, expected: type) -> Any:
    """Decode a JSON-encoded multipart field, rejecting the wrong shape with 400."""
    if raw is None or raw == "":
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise _bad_request(f"{name} must be valid JSON")
    if not isinstance(value, expected):
        raise _bad_request(f"{name} has the wrong shape")
    return value


# =============================================================================
# Fact entries
# =============================================================================

@router.get("", response_model=List[FactEntryResponse])
async def list_entries(
    period: Optional[str] = Query(None),
    version: Optional[str] = Query(None),
    bu: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[FactEntry]:
    query = db.query(FactEntry)
    if period:
        query = query.filter(FactEntry.period == period)
    if version:
        query = query.filter(FactEntry.version == version)
    if bu:
        query = query.filter(FactEntry.bu == bu)
    return query.order_by(FactEntry.period, FactEntry.id).all()


@router.post("", response_model=FactEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: FactEntryCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FactEntry:
    """Create one entry, adding its product and cost center when they are new."""
    code = format_cost_center_code(body.cost_center_code)
    if not code:
        raise _bad_request("cost_center_code must contain digits")

    try:
        with transaction(db):
            if db.get(Product, body.product_sku) is None:
                db.add(Product(sku=body.product_sku, description=body.product_sku))
            if db.get(CostCenter, code) is None:
                db.add(CostCenter(code=code, description=code))
            db.flush()
            entry = FactEntry(**body.model_dump(exclude={"cost_center_code"}), cost_center_code=code)
            db.add(entry)
    except Exception as e:
        logger.error(f"Error creating fact entry: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create entry")
    return entry


@router.patch("/{entry_id}", response_model=FactEntryResponse)
async def update_entry_value(
    entry_id: int,
    body: FactEntryValueUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FactEntry:
    if body.value is None or isinstance(body.value, bool):
        raise _bad_request("value must be numeric")
    try:
        value = float(body.value)
    except (TypeError, ValueError):
        raise _bad_request("value must be numeric")

    entry = db.get(FactEntry, entry_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")
    entry.value = value
    db.commit()
    return entry


@router.post("/delete", response_model=SuccessResponse)
async def delete_entries(
    body: FactEntryDeleteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    ids = body.ids
    if not isinstance(ids, list) or not ids:
        raise _bad_request("ids must be a non-empty list")
    if not all(isinstance(entry_id, int) and not isinstance(entry_id, bool) for entry_id in ids):
        raise _bad_request("ids must be integers")

    try:
        deleted = db.query(FactEntry).filter(FactEntry.id.in_(ids)).delete(synchronize_session=False)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting fact entries: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete entries")
    return SuccessResponse(message=f"{deleted} entries deleted")


@router.post("/import", response_model=ImportResponse)
async def import_entries(
    file: Optional[UploadFile] = File(None),
    file_type: str = Form(...),
    column_mapping: Optional[str] = Form(None),
    preview_data: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ImportResponse:
    """
    Import fact entries from a CSV or Excel upload.

    ``column_mapping`` maps database fields to file columns. When
    ``preview_data`` is sent, its rows are imported instead of the file.
    A single invalid row rejects the whole import.
    """
    mapping = _json_form_field(column_mapping, "column_mapping", dict) or {}
    preview = _json_form_field(preview_data, "preview_data", list)
    content = await file.read() if file is not None else None

    try:
        records = parse_records(content, file_type, mapping, preview)
        imported = import_fact_entries(db, records)
    except DreImportError as e:
        detail = {"message": str(e)}
        if e.invalid_records:
            detail["invalid_records"] = jsonable_encoder(e.invalid_records)
        raise _bad_request(detail)
    except Exception as e:
        logger.error(f"DRE import failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to import file")

    logger.info(f"User {user.id} imported {imported} fact entries")
    return ImportResponse(
        message="Import completed",
        details=ImportDetails(total_processed=len(records), imported_count=imported),
    )


# =============================================================================
# Pivot
# =============================================================================

@pivot_router.post("/query", response_model=PivotResponse)
async def pivot_query(
    body: PivotRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    try:
        return run_pivot(db, body)
    except PivotQueryError as e:
        raise _bad_request(str(e))


def _snapshot_response(snapshot: PivotSnapshot) -> SnapshotResponse:
    return SnapshotResponse(
        id=snapshot.id,
        name=snapshot.name,
        description=snapshot.description,
        config=snapshot.config,
        data=snapshot.data,
        totals=snapshot.totals,
        metadata=snapshot.snapshot_metadata,
        created_at=snapshot.created_at,
    )


@pivot_router.post("/snapshot", response_model=SnapshotResponse, status_code=status.HTTP_201_CREATED)
async def save_snapshot(
    body: SnapshotCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SnapshotResponse:
    try:
        snapshot = PivotSnapshot(
            name=body.name,
            description=body.description,
            config=body.config.model_dump(mode="json"),
            data=jsonable_encoder(body.data),
            totals=jsonable_encoder(body.totals),
            snapshot_metadata=body.metadata.model_dump(mode="json"),
            created_by=body.metadata.created_by,
        )
        db.add(snapshot)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error saving pivot snapshot: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to save snapshot")
    return _snapshot_response(snapshot)


@pivot_router.get("/snapshot", response_model=List[SnapshotResponse])
async def list_snapshots(
    tag: Optional[str] = Query(None),
    created_by: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[SnapshotResponse]:
    """Saved snapshots, newest first, optionally narrowed by tag or author."""
    query = db.query(PivotSnapshot)
    if created_by:
        query = query.filter(PivotSnapshot.created_by == created_by)
    snapshots = query.order_by(PivotSnapshot.created_at.desc()).all()
    if tag:
        snapshots = [s for s in snapshots if tag in (s.snapshot_metadata or {}).get("tags", [])]
    return [_snapshot_response(snapshot) for snapshot in snapshots]
