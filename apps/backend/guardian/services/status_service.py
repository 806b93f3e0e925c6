import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from ..models.lead import Lead, lead_key

logger = logging.getLogger(__name__)


def update_status(db: Session, channel: str, handle: str, status: str) -> bool:
    """
    Overwrite a lead's status with whatever the reply/opt-out webhook sent.

    No transition validation: any string is accepted, including leaving
    stop/dnd. Unknown leads are left alone (no record is created).

    Returns:
        bool: True if a lead was updated
    """
    key = lead_key(channel, handle)
    result = db.execute(update(Lead).where(Lead.id == key).values(status=status))
    db.commit()
    updated = result.rowcount > 0
    if updated:
        logger.info("Status of %s set to %r", key, status)
    else:
        logger.info("Status update for unknown lead %s ignored", key)
    return updated


def set_intent(db: Session, channel: str, handle: str, intent: str) -> bool:
    """Persist a classified intent on an existing lead. Same no-op rule as update_status."""
    result = db.execute(update(Lead).where(Lead.id == lead_key(channel, handle)).values(intent=intent))
    db.commit()
    return result.rowcount > 0
