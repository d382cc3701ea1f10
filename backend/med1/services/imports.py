"""
Bulk import of leads and patients.

Rows arrive as loosely typed dicts (parsed spreadsheets). Rows missing
required fields are filtered out; the rest are inserted in fixed-size
batches, skipping duplicates of the doctor's existing records.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.transactions import transaction
from ..models.lead import Lead, LeadSource, LeadStatus
from ..models.patient import Patient
from ..models.user import User


logger = logging.getLogger(__name__)

BATCH_SIZE = 100


@dataclass
class ImportResult:
    imported: int
    total: int
    failed: int = 0


def _text(value: Any) -> Optional[str]:
    """Stripped string value, or None for non-strings and blanks."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def chunked(items: List[Any], size: int = BATCH_SIZE) -> Iterator[List[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


# =============================================================================
# Leads
# =============================================================================

def valid_lead_rows(rows: Iterable[Any]) -> List[Dict[str, Any]]:
    """Rows whose ``name`` and ``phone`` are non-empty strings."""
    return [
        row for row in rows
        if isinstance(row, dict) and _text(row.get("name")) and _text(row.get("phone"))
    ]


def import_leads(db: Session, user: User, rows: List[Any]) -> ImportResult:
    """
    Insert valid lead rows for ``user`` in batches of ``BATCH_SIZE``.

    A row whose phone already belongs to one of the doctor's leads (or to an
    earlier row of the same import) is skipped.
    """
    valid = valid_lead_rows(rows)
    seen_phones: Set[str] = {
        phone for (phone,) in db.query(Lead.phone).filter(Lead.user_id == user.id).all()
    }

    imported = 0
    for batch in chunked(valid):
        leads = []
        for row in batch:
            phone = _text(row.get("phone"))
            if phone in seen_phones:
                continue
            seen_phones.add(phone)
            leads.append(Lead(
                user_id=user.id,
                name=_text(row.get("name")),
                phone=phone,
                email=_text(row.get("email")),
                status=_text(row.get("status")) or LeadStatus.NOVO.value,
                source=_text(row.get("source")) or LeadSource.IMPORT.value,
                medical_notes=_text(row.get("medical_notes")),
                potential_value=_number(row.get("potential_value")),
            ))
        if not leads:
            continue
        with transaction(db):
            db.add_all(leads)
        imported += len(leads)
        logger.debug(f"Imported batch of {len(leads)} leads for user {user.id}")

    logger.info(f"Lead import for user {user.id}: {imported}/{len(rows)} rows imported")
    return ImportResult(imported=imported, total=len(rows))


# =============================================================================
# Patients
# =============================================================================

def import_patients(db: Session, user: User, rows: List[Any]) -> ImportResult:
    """
    Create a lead and then a patient for each row.

    Rows missing name, email or phone, or repeating an email the doctor
    already has, are counted as failed. Each row commits on its own so one
    bad row does not discard the others.
    """
    seen_emails: Set[str] = {
        email.lower() for (email,) in db.query(Patient.email).filter(Patient.user_id == user.id).all()
    }

    imported = 0
    failed = 0
    for row in rows:
        row = row if isinstance(row, dict) else {}
        name = _text(row.get("name"))
        email = _text(row.get("email"))
        phone = _text(row.get("phone"))

        if not (name and email and phone) or email.lower() in seen_emails:
            failed += 1
            continue

        try:
            with transaction(db):
                lead = Lead(
                    user_id=user.id,
                    name=name,
                    phone=phone,
                    email=email,
                    status=_text(row.get("status")) or LeadStatus.NOVO.value,
                    source=LeadSource.IMPORT.value,
                    medical_notes=_text(row.get("medical_notes")),
                )
                db.add(lead)
                db.flush()
                db.add(Patient(
                    user_id=user.id,
                    lead_id=lead.id,
                    name=name,
                    email=email,
                    phone=phone,
                    cpf=_text(row.get("cpf")),
                ))
        except SQLAlchemyError as e:
            logger.warning(f"Patient import row failed for user {user.id}: {e}")
            failed += 1
            continue

        seen_emails.add(email.lower())
        imported += 1

    logger.info(f"Patient import for user {user.id}: {imported} imported, {failed} failed")
    return ImportResult(imported=imported, total=len(rows), failed=failed)
