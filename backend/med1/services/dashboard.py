"""
Per-doctor dashboard statistics.

Results are cached in Redis for ``cache_ttl_dashboard`` seconds and
invalidated whenever one of the doctor's leads changes.
"""

import logging
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.indication import Indication
from ..models.lead import Event, EventType, Lead, LeadStatus
from ..models.user import User
from ..schemas.dashboard import DashboardResponse
from ..schemas.lead import LeadResponse
from .cache import get_cache


logger = logging.getLogger(__name__)

TOP_LIMIT = 5


def conversion_rate(leads: int, clicks: int) -> int:
    """Leads per click as a rounded percentage; 0 without clicks."""
    if clicks <= 0:
        return 0
    return round(leads / clicks * 100)


def compute_dashboard(db: Session, user: User) -> Dict[str, Any]:
    total_leads = db.query(func.count(Lead.id)).filter(Lead.user_id == user.id).scalar() or 0
    total_indications = (
        db.query(func.count(Indication.id)).filter(Indication.user_id == user.id).scalar() or 0
    )
    total_clicks = (
        db.query(func.count(Event.id))
        .filter(Event.user_id == user.id, Event.type == EventType.CLICK.value)
        .scalar() or 0
    )

    recent_leads = (
        db.query(Lead)
        .filter(Lead.user_id == user.id)
        .order_by(Lead.created_at.desc())
        .limit(TOP_LIMIT)
        .all()
    )

    lead_count = (
        select(func.count(Lead.id))
        .where(Lead.indication_id == Indication.id)
        .correlate(Indication)
        .scalar_subquery()
    )
    event_count = (
        select(func.count(Event.id))
        .where(Event.indication_id == Indication.id, Event.type == EventType.CLICK.value)
        .correlate(Indication)
        .scalar_subquery()
    )
    top_indications = (
        db.query(Indication.id, Indication.name, Indication.slug, lead_count, event_count)
        .filter(Indication.user_id == user.id)
        .order_by(lead_count.desc(), Indication.created_at.desc())
        .limit(TOP_LIMIT)
        .all()
    )

    top_sources = (
        db.query(Lead.utm_source, func.count(Lead.id).label("count"))
        .filter(Lead.user_id == user.id, Lead.utm_source.isnot(None))
        .group_by(Lead.utm_source)
        .order_by(func.count(Lead.id).desc())
        .limit(TOP_LIMIT)
        .all()
    )

    with_value = (Lead.user_id == user.id, Lead.potential_value.isnot(None))
    total_revenue = (
        db.query(func.sum(Lead.potential_value))
        .filter(*with_value, Lead.status == LeadStatus.FECHADO.value)
        .scalar() or 0
    )
    potential_revenue = (
        db.query(func.sum(Lead.potential_value))
        .filter(*with_value, Lead.status != LeadStatus.FECHADO.value)
        .scalar() or 0
    )

    response = DashboardResponse(
        total_leads=total_leads,
        total_indications=total_indications,
        total_clicks=total_clicks,
        conversion_rate=conversion_rate(total_leads, total_clicks),
        recent_leads=[LeadResponse.model_validate(lead) for lead in recent_leads],
        top_indications=[
            {"id": row[0], "name": row[1], "slug": row[2], "lead_count": row[3], "event_count": row[4]}
            for row in top_indications
        ],
        top_sources=[{"source": source, "count": count} for source, count in top_sources],
        total_revenue=float(total_revenue),
        potential_revenue=float(potential_revenue),
    )
    return response.model_dump(mode="json")


def get_dashboard(db: Session, user: User) -> Dict[str, Any]:
    """Cached dashboard for ``user``."""
    cache = get_cache()
    return cache.get_or_compute(
        cache.dashboard_key(user.id),
        lambda: compute_dashboard(db, user),
        ttl=settings.cache_ttl_dashboard,
    )
