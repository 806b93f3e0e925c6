"""Read-only dashboard queries."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..config import settings
from ..models.daily_quota import AI_REPLIES_COUNTER
from ..models.lead import Lead
from . import quota_service
from .clock import day_key

LEADS_PAGE_SIZE = 50
HOT_LEADS_PAGE_SIZE = 20


def today_stats(db: Session, now: datetime) -> Dict[str, Any]:
    day = day_key(now)
    return {
        "messages_sent": quota_service.messages_sent(db, day),
        "ai_replies": quota_service.get_count(db, day, AI_REPLIES_COUNTER),
        "total_leads": db.execute(select(func.count()).select_from(Lead)).scalar_one(),
        "date": day,
    }


def list_leads(db: Session, status: Optional[str] = None) -> List[Lead]:
    """Most recently contacted first; never-contacted leads last."""
    query = select(Lead)
    if status:
        query = query.where(Lead.status == status)
    query = query.order_by(
        Lead.last_contacted_at.is_(None),
        Lead.last_contacted_at.desc(),
        Lead.created_at.desc(),
    ).limit(LEADS_PAGE_SIZE)
    return list(db.execute(query).scalars())


def hot_leads(db: Session) -> List[Lead]:
    query = (
        select(Lead)
        .where(Lead.score >= settings.HOT_LEAD_SCORE)
        .order_by(Lead.score.desc(), Lead.last_contacted_at.desc())
        .limit(HOT_LEADS_PAGE_SIZE)
    )
    return list(db.execute(query).scalars())
