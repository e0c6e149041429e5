"""Liveness and readiness probes.

``/live`` and ``/health`` only prove the process answers. ``/ready`` also
round-trips to the credential store, so orchestrators stop routing traffic
while the database is unreachable.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from identitycore.core.config import get_settings
from identitycore.infrastructure.persistence import database

router = APIRouter()

SERVICE_NAME = "identitycore"


def _probe(status: str, **extra) -> dict:
    return {"status": status, "service": SERVICE_NAME, "version": get_settings().app_version, **extra}


@router.get("/health")
async def health():
    return _probe("healthy")


@router.get("/live")
async def live():
    return _probe("alive")


@router.get("/ready")
async def ready():
    if await database.get_db_manager().check_connection():
        return _probe("ready", database="connected")
    return JSONResponse(status_code=503, content=_probe("not_ready", database="disconnected"))
