"""
Daily quota tracker.

Counters live in `daily_quota`, keyed by (day, counter). Increments are a
single INSERT ... ON CONFLICT DO UPDATE statement, so concurrent requests
never lose an increment and nothing is read before it is written.
"""

from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..config import CHANNELS
from ..models.daily_quota import AI_REPLIES_COUNTER, DailyQuota
from ..models.db import upsert_insert


def get_count(db: Session, day: str, counter: str) -> int:
    value = db.execute(
        select(DailyQuota.value).where(DailyQuota.day == day, DailyQuota.counter == counter)
    ).scalar_one_or_none()
    return value or 0


def get_counts(db: Session, day: str) -> Dict[str, int]:
    rows = db.execute(select(DailyQuota.counter, DailyQuota.value).where(DailyQuota.day == day)).all()
    return {counter: value for counter, value in rows}


def messages_sent(db: Session, day: str) -> int:
    total = db.execute(
        select(func.coalesce(func.sum(DailyQuota.value), 0)).where(
            DailyQuota.day == day, DailyQuota.counter.in_(CHANNELS)
        )
    ).scalar_one()
    return int(total)


def increment(db: Session, day: str, counter: str) -> None:
    """
    Add one to (day, counter), creating the row on first use.

    Does not commit: callers decide the transaction boundary.
    """
    table = DailyQuota.__table__
    stmt = upsert_insert(db, table).values(day=day, counter=counter, value=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.day, table.c.counter],
        set_={"value": table.c.value + 1},
    )
    db.execute(stmt)


def record_ai_reply(db: Session, day: str) -> None:
    increment(db, day, AI_REPLIES_COUNTER)
    db.commit()
