"""
Admin endpoints (authenticated)
"""
import logging

from fastapi import APIRouter, Depends

from fundraiser.auth import require_user
from fundraiser.db import Database
from fundraiser.dependencies import get_database
from fundraiser.services import sponsors
from fundraiser.utils import serialize_many


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/sponsors")
async def list_sponsors(database: Database = Depends(get_database), user_id: str = Depends(require_user)):
    """All sponsor profiles"""
    logger.info(f"Admin sponsor listing requested by {user_id}")
    return serialize_many(await sponsors.list_sponsors(database))


@router.get("/sponsorships")
async def list_sponsorships(database: Database = Depends(get_database), user_id: str = Depends(require_user)):
    """All sponsorships paid through checkout"""
    logger.info(f"Admin sponsorship listing requested by {user_id}")
    return serialize_many(await sponsors.list_sponsorships(database))
