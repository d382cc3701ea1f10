"""
Interest option endpoints.

Doctors manage the options shown on their capture forms; the public listing
by doctor slug feeds those forms.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..core.transactions import transaction
from ..models.catalog import InterestOption
from ..models.user import User
from ..schemas.catalog import InterestOptionInput, InterestOptionResponse, PublicInterestOption
from ..schemas.common import SuccessResponse


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/interest-options", tags=["Interest Options"])

DUPLICATE_VALUE_DETAIL = "An option with this value already exists"


def get_owned_option(db: Session, user: User, option_id: UUID) -> InterestOption:
    option = (
        db.query(InterestOption)
        .filter(InterestOption.id == option_id, InterestOption.user_id == user.id)
        .first()
    )
    if not option:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interest option not found")
    return option


def _value_taken(db: Session, user: User, value: str, exclude_id: UUID = None) -> bool:
    query = db.query(InterestOption.id).filter(InterestOption.user_id == user.id, InterestOption.value == value)
    if exclude_id is not None:
        query = query.filter(InterestOption.id != exclude_id)
    return query.first() is not None


def _clear_default(db: Session, user: User, exclude_id: UUID = None) -> None:
    query = db.query(InterestOption).filter(InterestOption.user_id == user.id, InterestOption.is_default.is_(True))
    if exclude_id is not None:
        query = query.filter(InterestOption.id != exclude_id)
    query.update({InterestOption.is_default: False}, synchronize_session=False)


@router.get("", response_model=List[InterestOptionResponse])
async def list_options(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[InterestOption]:
    return (
        db.query(InterestOption)
        .filter(InterestOption.user_id == user.id)
        .order_by(InterestOption.created_at.asc())
        .all()
    )


@router.post("", response_model=InterestOptionResponse, status_code=status.HTTP_201_CREATED)
async def create_option(
    body: InterestOptionInput,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> InterestOption:
    """Create an option; a new default takes the flag from the previous one."""
    if _value_taken(db, user, body.value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_VALUE_DETAIL)

    try:
        with transaction(db):
            if body.is_default:
                _clear_default(db, user)
            option = InterestOption(user_id=user.id, **body.model_dump())
            db.add(option)
    except Exception as e:
        logger.error(f"Error creating interest option for user {user.id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create interest option")
    return option


@router.put("/{option_id}", response_model=InterestOptionResponse)
async def update_option(
    option_id: UUID,
    body: InterestOptionInput,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> InterestOption:
    option = get_owned_option(db, user, option_id)
    if _value_taken(db, user, body.value, exclude_id=option.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_VALUE_DETAIL)

    try:
        with transaction(db):
            if body.is_default:
                _clear_default(db, user, exclude_id=option.id)
            for field, value in body.model_dump().items():
                setattr(option, field, value)
    except Exception as e:
        logger.error(f"Error updating interest option {option_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update interest option")
    return option


@router.delete("/{option_id}", response_model=SuccessResponse)
async def delete_option(
    option_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    option = get_owned_option(db, user, option_id)
    try:
        db.delete(option)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting interest option {option_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete interest option")
    return SuccessResponse(message="Interest option deleted")


@router.get("/{user_slug}", response_model=List[PublicInterestOption])
async def public_options(user_slug: str, db: Session = Depends(get_db)) -> List[InterestOption]:
    """Options of the doctor with ``user_slug``, for public capture forms."""
    owner = db.query(User).filter(User.slug == user_slug).first()
    if not owner:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return (
        db.query(InterestOption)
        .filter(InterestOption.user_id == owner.id)
        .order_by(InterestOption.created_at.asc())
        .all()
    )
