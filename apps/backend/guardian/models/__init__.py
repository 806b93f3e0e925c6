from .db import Base, engine
from .lead import Lead
from .daily_quota import DailyQuota

def create_all():
    Base.metadata.create_all(bind=engine)
