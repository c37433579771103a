"""
Main FastAPI Application for the Budget Planner.
Serves the REST API for budget items, project processes and reports.
"""
import logging

from fastapi import FastAPI
from sqlalchemy import text

from budget_planner import __version__
from budget_planner.config import get_config
from budget_planner.models import init_db, SessionLocal
from budget_planner.api.v1 import api_router as v1_router

config = get_config()
logging.basicConfig(level=config.log_level, format=config.log_format)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title="Budget Planner",
    description="Plan monthly budgets and project schedules through a draft/pending/approved workflow",
    version=__version__
)

app.include_router(v1_router)


# Initialize database on startup
@app.on_event("startup")
async def startup_event():
    init_db()
    logger.info(f"Budget Planner {__version__} started (config {config.version})")


@app.get("/health")
def health_check():
    """Liveness plus a trivial database round trip."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except Exception:
        logger.exception("Health check database query failed")
        database = "unavailable"
    finally:
        db.close()

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
        "version": __version__,
    }
