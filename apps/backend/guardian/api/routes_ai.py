from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from guardian.models.db import get_db
from guardian.services import openai_service
from guardian.services.clock import Clock, day_key, get_clock
from guardian.services.openai_service import CompletionError
from guardian.services.quota_service import record_ai_reply
from guardian.services.status_service import set_intent

router = APIRouter(prefix="/ai", tags=["ai"])


class ClassifyReq(BaseModel):
    message: str = Field(..., min_length=1)
    handle: Optional[str] = None
    channel: Optional[Literal["instagram", "whatsapp"]] = None


class GenerateReq(BaseModel):
    lead_context: str = ""
    user_message: str = Field(..., min_length=1)
    intent: str = "other"


@router.post("/classify-intent")
def classify_intent(req: ClassifyReq, db: Session = Depends(get_db)):
    try:
        intent = openai_service.classify_intent(req.message)
    except CompletionError as e:
        raise HTTPException(status_code=502, detail=f"Failed to classify intent: {e}")

    # persist only when the lead is fully identified
    if req.handle and req.channel:
        try:
            set_intent(db, req.channel, req.handle, intent)
        except SQLAlchemyError as e:
            raise HTTPException(status_code=500, detail=f"Failed to save intent: {e}")

    return {"intent": intent, "message": req.message}


@router.post("/generate-response")
def generate_response(req: GenerateReq, db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    try:
        response = openai_service.generate_response(req.lead_context, req.user_message, req.intent)
    except CompletionError as e:
        raise HTTPException(status_code=502, detail=f"Failed to generate response: {e}")

    try:
        record_ai_reply(db, day_key(clock()))
    except SQLAlchemyError as e:
        raise HTTPException(status_code=500, detail=f"Failed to count AI reply: {e}")

    return {"response": response, "intent": req.intent}
