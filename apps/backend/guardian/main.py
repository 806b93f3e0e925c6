import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError

from . import __version__
from .config import settings
from .api.routes_health import router as health_router
from .api.routes_contact import router as contact_router
from .api.routes_leads import router as leads_router
from .api.routes_ai import router as ai_router
from .models import create_all

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("guardian")

# Create FastAPI app
app = FastAPI(
    title="Outreach Guardian API",
    version=__version__,
    description="Gates automated Instagram/WhatsApp outreach: daily caps, follow-up cooldowns, opt-outs and lead scoring."
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %d (%.1f ms)",
        request.method, request.url.path, response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


# Register routers
app.include_router(health_router)
app.include_router(contact_router)
app.include_router(leads_router)
app.include_router(ai_router)

# Database setup on startup
@app.on_event("startup")
def startup():
    logger.info("Starting Outreach Guardian (env=%s)", settings.ENV)
    logger.info(
        "Daily caps: instagram=%s whatsapp=%s, day boundary in %s, overwrite policy=%s",
        settings.cap_label("instagram"), settings.cap_label("whatsapp"),
        settings.QUOTA_TIMEZONE, settings.STATUS_OVERWRITE_POLICY,
    )
    # Auto-create tables if they don't exist
    try:
        create_all()
    except OperationalError as e:
        raise RuntimeError("Database connection failed. Check DATABASE_URL.") from e

# Base route
@app.get("/")
def root():
    return {
        "service": "outreach-guardian",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
