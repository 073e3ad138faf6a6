"""
Sponsor profile endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends

from fundraiser.db import Database
from fundraiser.dependencies import get_database
from fundraiser.models import SponsorRequest
from fundraiser.services import sponsors
from fundraiser.utils import serialize


router = APIRouter(prefix="/sponsor", tags=["sponsor"])


@router.get("")
async def get_sponsor(userId: Optional[str] = None, database: Database = Depends(get_database)):
    """Sponsor of the given user, or null"""
    return serialize(await sponsors.get_sponsor(database, userId))


@router.post("")
async def create_sponsor(payload: SponsorRequest, database: Database = Depends(get_database)):
    """
    Create the user's sponsor profile

    Request:
        {"userId": "...", "name": "Acme", "price": 250, "logo": "<url>", "websiteLink": "<url>"}
    """
    sponsor = await sponsors.create_sponsor(database, payload)
    return {"success": True, "sponsorId": str(sponsor["_id"])}


@router.put("")
async def update_sponsor(payload: SponsorRequest, database: Database = Depends(get_database)):
    await sponsors.update_sponsor(database, payload)
    return {"success": True}
