"""
Checkout endpoints - open hosted Stripe payment pages
"""
from fastapi import APIRouter, Depends

from fundraiser.config import Settings
from fundraiser.db import Database
from fundraiser.dependencies import get_app_settings, get_database
from fundraiser.models import RegistrationCheckoutRequest, SponsorshipCheckoutRequest
from fundraiser.services import payments


router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("")
async def registration_checkout(
    payload: RegistrationCheckoutRequest,
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    """
    Start payment for spot reservations

    Request:
        {"userId": "...", "spots": 2, "donation": 150,
         "spotDetails": [{"name": "...", "phone": "...", "email": "..."}, ...]}

    Response:
        {"url": "<hosted checkout page>", "sessionId": "cs_..."}
    """
    return await payments.start_registration_checkout(database, settings.stripe, payload)


@router.post("/sponsorship")
async def sponsorship_checkout(
    payload: SponsorshipCheckoutRequest,
    settings: Settings = Depends(get_app_settings),
):
    """Start payment for a sponsorship (signText/logoUrl depend on signOption)"""
    return await payments.start_sponsorship_checkout(settings.stripe, payload)
