from fastapi import APIRouter
from datetime import datetime, timezone

from guardian import __version__

router = APIRouter(prefix="/health", tags=["health"])

@router.get("")
def health_root():
    return {"status": "ok", "version": __version__, "ts": datetime.now(timezone.utc).isoformat()}
