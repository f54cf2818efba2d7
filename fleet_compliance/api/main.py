"""
FastAPI Application: Fleet Compliance Engine.

Architecture:
  - PostgreSQL (prod) / SQLite (dev) for companies, drivers, vehicles,
    subscriptions and the notification ledger
  - SMTP email + HTTP SMS gateway for notifications
  - Sweeps triggered by an external scheduler (cron → POST /compliance/sweep
    or scripts/run_compliance_sweep.py)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fleet_compliance import __version__
from fleet_compliance.api.routes.compliance import router as compliance_router
from fleet_compliance.config.settings import get_settings
from fleet_compliance.core.errors import AssignmentError, NotFoundError
from fleet_compliance.infrastructure.db.database import init_db

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Fleet Compliance Engine",
    description="Document expiry tracking, notifications, deactivation and subscription entitlements for fleets.",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Startup ──
@app.on_event("startup")
async def startup():
    """Initialize DB."""
    init_db()
    logger.info(f"Fleet Compliance Engine started (env={get_settings().env})")


# Register compliance routes
app.include_router(compliance_router, prefix="/api/v1", tags=["Compliance"])


# ── Error mapping ──
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(AssignmentError)
async def assignment_handler(request: Request, exc: AssignmentError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ── Health ──
@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
