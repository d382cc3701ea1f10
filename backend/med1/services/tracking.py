"""
Best-effort event logging for clicks, views and lead submissions.
"""

import logging
from typing import Any, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from ..core.transactions import safe_commit
from ..models.lead import Event, EventType


logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    """First address of ``X-Forwarded-For``, else the socket peer."""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def record_event(
    db: Session,
    user_id: Any,
    event_type: EventType,
    request: Optional[Request] = None,
    indication_id: Any = None,
    page_id: Any = None,
    utm_source: Optional[str] = None,
    utm_medium: Optional[str] = None,
    utm_campaign: Optional[str] = None,
) -> bool:
    """
    Append an event row and commit it on its own.

    Returns False (and logs) when the write fails; callers carry on.
    """
    db.add(Event(
        user_id=user_id,
        type=event_type.value,
        indication_id=indication_id,
        page_id=page_id,
        ip=client_ip(request),
        user_agent=request.headers.get("user-agent") if request is not None else None,
        utm_source=utm_source,
        utm_medium=utm_medium,
        utm_campaign=utm_campaign,
    ))
    saved = safe_commit(db)
    if not saved:
        logger.warning(f"Dropped {event_type.value} event for user {user_id}")
    return saved
