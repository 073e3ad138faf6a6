"""
Stripe webhook endpoint
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from fundraiser.config import Settings
from fundraiser.db import Database
from fundraiser.dependencies import get_app_settings, get_database
from fundraiser.services.payments import StripeEventHandler, verify_event


logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
):
    """
    Payment provider callback

    The raw body is verified against the Stripe-Signature header before the
    event is applied. Unhandled event types are acknowledged.
    """
    logger.info(f"Webhook received at: {datetime.now(timezone.utc).isoformat()}")
    payload = await request.body()
    event = verify_event(payload, request.headers.get("stripe-signature"), settings.stripe.webhook_secret)

    await StripeEventHandler(database, event).handle()

    return {"received": True}
