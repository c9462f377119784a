"""Health check endpoints."""

from fastapi import APIRouter
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    """Simple health check."""
    return {"status": "ok"}


@router.get("/ready")
async def readiness_check():
    """Readiness check with dependency validation."""
    from menu_analyzer.config import get_settings
    from menu_analyzer.database import engine

    settings = get_settings()

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"[health] database not reachable: {e}")
        database_ok = False

    checks = {
        "config": bool(settings.OPENROUTER_API_KEY),
        "database": database_ok,
    }

    if all(checks.values()):
        return {"status": "ready", "checks": checks}
    else:
        return {"status": "not ready", "checks": checks}
