"""
Main entry point for the league discipline API.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from league.routes import check_in, disciplinary, seasons, suspensions
from league.utils.db_async import init_db, dispose_engine, describe_database_url, DATABASE_URL

from league.logging_config import setup_logging
from league.config import settings
from league.services.suspension_cache import SuspensionCache

import logging
logger = logging.getLogger(__name__)

setup_logging(level=settings.log_level, access_log=settings.access_log)

@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.suspension_cache = SuspensionCache()
    if settings.is_dev and settings.auto_init_db:
        logger.info("Running init_db()…")
        logger.info(f"DB target: {describe_database_url(DATABASE_URL)}")
        try:
            await init_db()
            logger.info("DB ready.")
        except Exception:
            logger.exception("init_db failed")
            raise
    else:
        logger.info("Skipping init_db(); schema is managed by alembic")

    yield

    try:
        logger.info("Disposing DB engine…")
        await dispose_engine()
        logger.info("DB engine disposed.")
    except Exception:
        logger.exception("Failed to dispose DB engine")

app = FastAPI(title="League Discipline", lifespan=lifespan)
app.include_router(seasons.router)
app.include_router(suspensions.router)
app.include_router(check_in.router)
app.include_router(disciplinary.router)

@app.get("/health")
async def health_check():
    """Health Check Endpoint"""
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
