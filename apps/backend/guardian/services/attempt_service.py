"""
Recording of successful sends.

One call = one transaction:
1. upsert the lead (insert with interaction_count=1, or bump the count,
   refresh last_contacted_at and set the status)
2. bump today's counter for the channel

Both statements are atomic upserts and they commit together; on any error
the transaction is rolled back so neither half is ever visible. Calling this
twice for the same send counts it twice.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import case, literal
from sqlalchemy.orm import Session

from ..config import settings
from ..models.db import upsert_insert
from ..models.lead import (
    Lead,
    OPT_OUT_STATUSES,
    STATUS_FIRST_MESSAGE_SENT,
    STATUS_FOLLOWUP_SENT,
    lead_key,
)
from . import quota_service
from .clock import as_utc, day_key

logger = logging.getLogger(__name__)


class AttemptRejected(Exception):
    """The lead has opted out and the overwrite policy refuses further attempts."""

    def __init__(self, channel: str, handle: str):
        super().__init__(f"Lead {lead_key(channel, handle)} has opted out; attempt not recorded")
        self.channel = channel
        self.handle = handle


def _status_on_update(table, new_status: str, policy: str):
    """SQL expression for the status column when the lead already exists."""
    if policy == "overwrite":
        return literal(new_status)
    protected = list(settings.PROTECTED_STATUSES)
    if not protected:
        return literal(new_status)
    return case((table.c.status.in_(protected), table.c.status), else_=literal(new_status))


def record_attempt(
    db: Session,
    channel: str,
    handle: str,
    new_status: Optional[str],
    now: datetime,
    policy: Optional[str] = None,
) -> Lead:
    """
    Record one successful send for (channel, handle).

    Returns the refreshed lead. Raises AttemptRejected under the "reject"
    policy when the lead is opted out; nothing is written in that case.
    """
    policy = policy or settings.STATUS_OVERWRITE_POLICY
    now = as_utc(now)
    key = lead_key(channel, handle)
    table = Lead.__table__

    insert_stmt = upsert_insert(db, table).values(
        id=key,
        channel=channel,
        handle=handle,
        status=new_status or STATUS_FIRST_MESSAGE_SENT,
        score=0,
        interaction_count=1,
        last_contacted_at=now,
        created_at=now,
    )
    upsert_kwargs = dict(
        index_elements=[table.c.id],
        set_={
            "interaction_count": table.c.interaction_count + 1,
            "last_contacted_at": now,
            "status": _status_on_update(table, new_status or STATUS_FOLLOWUP_SENT, policy),
        },
    )
    if policy == "reject":
        upsert_kwargs["where"] = table.c.status.not_in(list(OPT_OUT_STATUSES))
    stmt = insert_stmt.on_conflict_do_update(**upsert_kwargs).returning(
        table.c.interaction_count, table.c.status
    )

    try:
        row = db.execute(stmt).first()
        if row is None:
            # conflict branch filtered out by the reject policy
            db.rollback()
            logger.warning("Rejected attempt for opted-out lead %s", key)
            raise AttemptRejected(channel, handle)

        quota_service.increment(db, day_key(now), channel)
        db.commit()
    except AttemptRejected:
        raise
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Recorded attempt for %s: interaction_count=%s status=%s",
        key, row.interaction_count, row.status,
    )
    return db.get(Lead, key)
