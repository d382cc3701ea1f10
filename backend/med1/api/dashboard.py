"""
Doctor dashboard endpoint.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import get_current_user
from ..core.database import get_db
from ..models.user import User
from ..schemas.dashboard import DashboardResponse
from ..services.dashboard import get_dashboard


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponse)
async def dashboard(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """Lead, click and revenue totals for the signed-in doctor (cached briefly)."""
    return get_dashboard(db, user)
