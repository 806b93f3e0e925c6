from sqlalchemy import Column, String, Integer
from .db import Base

AI_REPLIES_COUNTER = "ai_replies"


class DailyQuota(Base):
    """One counter per (day, counter name). Counter is a channel or 'ai_replies'."""
    __tablename__ = "daily_quota"
    day = Column(String, primary_key=True)      # YYYY-MM-DD in QUOTA_TIMEZONE
    counter = Column(String, primary_key=True)
    value = Column(Integer, nullable=False, default=0)
