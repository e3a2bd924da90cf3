"""Service info and health endpoints.

GET / is the liveness/info endpoint; /admin serves the same body behind
the admin role gate. /health also checks the database connection.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from postboard import __version__
from postboard.auth.gates import authenticate, require_role
from postboard.context import Pipeline, RequestContext
from postboard.db.engine import get_db

router = APIRouter()

ADMIN_ONLY = Pipeline(authenticate, require_role("admin"))


def _info() -> dict:
    return {"name": "postboard", "version": __version__, "status": "ok"}


@router.get("/")
async def index():
    return _info()


@router.get("/admin")
async def admin_index(ctx: RequestContext = Depends(ADMIN_ONLY)):
    return _info()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
