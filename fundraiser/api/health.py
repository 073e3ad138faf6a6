"""
Health check endpoint
"""
import logging

from fastapi import APIRouter, Depends
from pymongo.errors import PyMongoError

from fundraiser.config import APP_VERSION
from fundraiser.db import Database
from fundraiser.dependencies import get_database


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(database: Database = Depends(get_database)):
    """Liveness plus a database ping"""
    try:
        database_ok = await database.ping()
    except PyMongoError as e:
        logger.error(f"❌ Database ping failed: {e}")
        database_ok = False

    return {
        "status": "ok" if database_ok else "degraded",
        "message": "Golf Outing Fundraiser API",
        "version": APP_VERSION,
        "database": database_ok,
    }
