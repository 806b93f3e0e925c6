"""
Contact eligibility decisions.

Answers "may the orchestrator message this handle right now?" without writing
anything. Rules, in order:

- responded: a live conversation is not cold outreach -> always allowed,
  bypassing both the daily cap and the cooldown
- daily cap reached for the channel -> denied (every other lead state,
  unseen handles included)
- unseen handle -> allowed, clean slate
- stop / dnd -> denied, sticky, no amount of elapsed time lifts it
- contacted less than FOLLOWUP_COOLDOWN_HOURS ago -> denied with wait_hours
- otherwise -> allowed, echoing the current status
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..models.lead import Lead, OPT_OUT_STATUSES, STATUS_NEW, STATUS_RESPONDED, lead_key
from . import quota_service
from .clock import as_utc, day_key

logger = logging.getLogger(__name__)

REASON_DAILY_LIMIT = "daily_limit_reached"
REASON_CLEAN_SLATE = "clean_slate"
REASON_OPT_OUT = "lead_opt_out"
REASON_ONGOING = "ongoing_conversation"
REASON_TOO_SOON = "too_soon_for_followup"


@dataclass(frozen=True, slots=True)
class ContactDecision:
    allowed: bool
    reason: Optional[str] = None
    status: Optional[str] = None
    current: Optional[int] = None
    max: Optional[int] = None
    wait_hours: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def get_lead(db: Session, channel: str, handle: str) -> Optional[Lead]:
    return db.get(Lead, lead_key(channel, handle))


def evaluate_contact(db: Session, channel: str, handle: str, now: datetime) -> ContactDecision:
    lead = get_lead(db, channel, handle)

    if lead is not None and lead.status == STATUS_RESPONDED:
        return ContactDecision(allowed=True, reason=REASON_ONGOING)

    cap = settings.daily_cap(channel)
    if cap is not None:
        sent = quota_service.get_count(db, day_key(now), channel)
        if sent >= cap:
            logger.info("Daily limit reached on %s (%d/%d), denying %s", channel, sent, cap, handle)
            return ContactDecision(allowed=False, reason=REASON_DAILY_LIMIT, current=sent, max=cap)

    if lead is None:
        return ContactDecision(allowed=True, status=STATUS_NEW, reason=REASON_CLEAN_SLATE)

    if lead.status in OPT_OUT_STATUSES:
        return ContactDecision(allowed=False, reason=REASON_OPT_OUT)

    if lead.last_contacted_at is not None:
        elapsed_hours = (as_utc(now) - as_utc(lead.last_contacted_at)).total_seconds() / 3600
        cooldown = settings.FOLLOWUP_COOLDOWN_HOURS
        if elapsed_hours < cooldown:
            return ContactDecision(
                allowed=False,
                reason=REASON_TOO_SOON,
                wait_hours=cooldown - elapsed_hours,
            )

    return ContactDecision(allowed=True, status=lead.status)
