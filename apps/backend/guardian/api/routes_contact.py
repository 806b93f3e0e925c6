from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from guardian.models.db import get_db
from guardian.services.attempt_service import AttemptRejected, record_attempt
from guardian.services.clock import Clock, get_clock
from guardian.services.eligibility_service import evaluate_contact
from guardian.services.status_service import update_status

router = APIRouter(tags=["contact"])

Channel = Literal["instagram", "whatsapp"]


class LeadRef(BaseModel):
    channel: Channel
    handle: str = Field(..., min_length=1, description="@username or phone number")


class LogAttemptReq(LeadRef):
    new_status: Optional[str] = None


class UpdateStatusReq(LeadRef):
    status: str = Field(..., min_length=1)


@router.post("/can-contact")
def can_contact(req: LeadRef, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    """Ask before sending. Read-only."""
    try:
        decision = evaluate_contact(db, req.channel, req.handle, clock())
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to check contact eligibility: {e}")
    return decision.to_dict()


@router.post("/log-attempt")
def log_attempt(req: LogAttemptReq, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    """
    Call this AFTER the orchestrator actually sent a message.

    Not idempotent: each call counts one more send against today's quota.
    """
    try:
        record_attempt(db, req.channel, req.handle, req.new_status, clock())
    except AttemptRejected as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to log attempt: {e}")
    return {"success": True}


@router.post("/update-status")
def set_status(req: UpdateStatusReq, db: Session = Depends(get_db)):
    """Reply/opt-out webhook. Unknown leads are not created."""
    try:
        updated = update_status(db, req.channel, req.handle, req.status)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to update status: {e}")
    return {"success": True, "updated": updated}
