from sqlalchemy import Column, String, Integer, TIMESTAMP, UniqueConstraint
from sqlalchemy.sql import func
from .db import Base
from ..services.clock import as_utc

# Known lifecycle values. The column stays free-form: webhooks may write anything.
STATUS_NEW = "new"
STATUS_FIRST_MESSAGE_SENT = "first_message_sent"
STATUS_FOLLOWUP_SENT = "followup_sent"
STATUS_RESPONDED = "responded"
OPT_OUT_STATUSES = frozenset({"stop", "dnd"})


def lead_key(channel: str, handle: str) -> str:
    return f"{channel}_{handle}"


class Lead(Base):
    __tablename__ = "leads"
    __table_args__ = (UniqueConstraint("channel", "handle", name="uq_leads_channel_handle"),)

    id = Column(String, primary_key=True)   # "{channel}_{handle}"
    channel = Column(String, nullable=False)  # 'instagram'|'whatsapp'
    handle = Column(String, nullable=False)   # @username or phone number
    status = Column(String, nullable=False, default=STATUS_NEW)
    intent = Column(String)
    score = Column(Integer, nullable=False, default=0)  # 0..10
    interaction_count = Column(Integer, nullable=False, default=0)
    last_contacted_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "channel": self.channel,
            "handle": self.handle,
            "status": self.status,
            "intent": self.intent,
            "score": self.score,
            "interaction_count": self.interaction_count,
            "last_contacted_at": as_utc(self.last_contacted_at).isoformat() if self.last_contacted_at else None,
            "created_at": as_utc(self.created_at).isoformat() if self.created_at else None,
        }
