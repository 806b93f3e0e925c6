"""
Lead Scoring Algorithm

Scoring breakdown (points, summed from 0):
- Intent "systems": +3
- Intent "learn": +2
- Intent "has_broker": +2
- Intent "promises": -3
- Intent "no_capital": -2
- Has capital to invest: +3
- Responds fast: +1
- Two or more recorded interactions: +1

The total is clamped to 0-10. Leads at HOT_LEAD_SCORE (6) or above show up
in the hot leads listing.
"""

from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..models.lead import Lead, lead_key

MIN_SCORE = 0
MAX_SCORE = 10

INTENT_POINTS = {
    "systems": 3,
    "learn": 2,
    "has_broker": 2,
    "promises": -3,
    "no_capital": -2,
}


class LeadNotFound(Exception):
    def __init__(self, channel: str, handle: str):
        super().__init__(f"Lead not found: {lead_key(channel, handle)}")
        self.channel = channel
        self.handle = handle


def score_lead(
    intent: Optional[str],
    has_capital: bool,
    responds_fast: bool,
    interaction_count: int
) -> int:
    """
    Calculate lead interest score (0-10)

    Args:
        intent: Classified intent label, unknown labels add nothing
        has_capital: Lead says they have money to invest
        responds_fast: Lead answers quickly
        interaction_count: Recorded outreach attempts for the lead

    Returns:
        int: Score between 0 and 10
    """
    score = INTENT_POINTS.get(intent or "", 0)
    if has_capital:
        score += 3
    if responds_fast:
        score += 1
    if interaction_count >= 2:
        score += 1

    return max(MIN_SCORE, min(MAX_SCORE, score))


def apply_score(
    db: Session,
    channel: str,
    handle: str,
    intent: Optional[str],
    has_capital: bool,
    responds_fast: bool
) -> Lead:
    """
    Score an existing lead and store score + intent on it.

    Same inputs always store the same value, so repeating the call is safe.

    Raises:
        LeadNotFound: scoring never creates leads
    """
    key = lead_key(channel, handle)
    lead = db.get(Lead, key)
    if lead is None:
        raise LeadNotFound(channel, handle)

    score = score_lead(intent, has_capital, responds_fast, lead.interaction_count or 0)
    db.execute(update(Lead).where(Lead.id == key).values(score=score, intent=intent))
    db.commit()
    return db.get(Lead, key)
