from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from guardian.api.routes_contact import LeadRef
from guardian.models.db import get_db
from guardian.services.clock import Clock, get_clock
from guardian.services.scoring_service import LeadNotFound, apply_score
from guardian.services.stats_service import hot_leads, list_leads, today_stats

router = APIRouter(tags=["leads"])


class UpdateScoreReq(LeadRef):
    intent: str = Field(..., min_length=1)
    has_capital: bool = False
    responds_fast: bool = False


@router.get("/stats/today")
def stats_today(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    try:
        return today_stats(db, clock())
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load stats: {e}")


@router.get("/leads/hot")
def leads_hot(db: Session = Depends(get_db)):
    try:
        return [lead.to_dict() for lead in hot_leads(db)]
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to list hot leads: {e}")


@router.get("/leads")
def leads(status: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        return [lead.to_dict() for lead in list_leads(db, status)]
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to list leads: {e}")


@router.post("/leads/update-score")
def update_score(req: UpdateScoreReq, db: Session = Depends(get_db)):
    try:
        lead = apply_score(db, req.channel, req.handle, req.intent, req.has_capital, req.responds_fast)
    except LeadNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to update score: {e}")
    return {"score": lead.score, "id": lead.id}
