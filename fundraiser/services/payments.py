"""
Stripe payments: checkout sessions and webhook events

Checkout sessions carry everything the webhook needs in their metadata, so a
completed payment can be turned into a registration or sponsorship without
any state kept between the two calls.
"""
import asyncio
import json
import logging
from typing import Dict, List, Optional

import stripe
from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from fundraiser.config import StripeSettings
from fundraiser.db import Database
from fundraiser.errors import InfrastructureError, UpstreamError, ValidationError
from fundraiser.models import (
    MAX_SPOTS_PER_USER, RegistrationCheckoutRequest, SpotDetails,
    SponsorshipCheckoutRequest,
)
from fundraiser.services import registrations, sponsors


logger = logging.getLogger(__name__)

SPONSORSHIP_TYPE = "sponsorship"

_spot_list = TypeAdapter(List[SpotDetails])


# ==================== WEBHOOK ====================

def verify_event(payload: bytes, signature: Optional[str], webhook_secret: Optional[str]) -> Dict:
    """
    Check the Stripe-Signature header and decode the event

    Args:
        payload: Raw request body
        signature: Value of the Stripe-Signature header
        webhook_secret: Endpoint signing secret

    Returns:
        The event as a plain dict

    Raises:
        ValidationError: No signature header, or a body that is not a JSON event
        InfrastructureError: Signing secret not configured
        UpstreamError: Signature does not match the payload
    """
    if not signature:
        logger.error("No signature provided")
        raise ValidationError("No signature")
    if not webhook_secret:
        logger.error("STRIPE_WEBHOOK_SECRET is not set")
        raise InfrastructureError("Webhook secret not configured")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.error(f"Webhook payload is not valid UTF-8: {exc}")
        raise ValidationError("Invalid event payload") from exc

    try:
        stripe.WebhookSignature.verify_header(
            body, signature, webhook_secret, stripe.Webhook.DEFAULT_TOLERANCE
        )
    except stripe.SignatureVerificationError as exc:
        logger.error(f"Webhook signature verification failed: {exc}")
        raise UpstreamError("Invalid signature") from exc

    try:
        return json.loads(body)
    except ValueError as exc:
        raise ValidationError("Invalid event payload") from exc


class StripeEventHandler:
    """Applies a verified Stripe event to the database"""

    IGNORED_EVENTS = {
        "payment_intent.succeeded",
        "charge.succeeded",
        "payment_intent.payment_failed",
        "charge.refunded",
        "charge.dispute.created",
        "charge.dispute.closed",
    }

    def __init__(self, database: Database, event: Dict):
        self.database = database
        self.event = event

    async def handle(self) -> None:
        """Route the event to handle_<type> or handle_unknown_event"""
        event_type = self.event.get("type", "")
        logger.info(f"📥 Received event: {event_type}")
        if event_type in self.IGNORED_EVENTS:
            logger.info(f"Event {event_type} received but not processed")
            return
        handler = getattr(self, f"handle_{event_type.replace('.', '_')}", self.handle_unknown_event)
        await handler(self.event)

    async def handle_unknown_event(self, event: Dict) -> None:
        logger.info(f"Unhandled event type: {event.get('type')}")

    async def handle_checkout_session_completed(self, event: Dict) -> None:
        session = event["data"]["object"]
        metadata = session.get("metadata") or {}
        user_id = metadata.get("userId")

        if not user_id:
            logger.error("No userId found in session metadata")
            raise ValidationError("Missing userId in metadata")

        amount = (session.get("amount_total") or 0) / 100

        if metadata.get("spots"):
            await self._record_registration(session, metadata, user_id, amount)

        if metadata.get("type") == SPONSORSHIP_TYPE:
            logger.info(f"Processing sponsorship payment for user: {user_id}")
            await sponsors.record_sponsorship(
                self.database,
                user_id=user_id,
                business_name=metadata.get("businessName", ""),
                amount=amount,
                sign_option=metadata.get("signOption", ""),
                sign_text=metadata.get("signText", ""),
                logo_url=metadata.get("logoUrl", ""),
                stripe_session_id=session.get("id"),
            )

    async def _record_registration(self, session: Dict, metadata: Dict, user_id: str, amount: float) -> None:
        logger.info(f"Processing registration payment for user: {user_id}")
        try:
            spots = int(metadata.get("spots") or 1)
            spot_details = _spot_list.validate_python(json.loads(metadata.get("spotDetails") or "[]"))
        except (ValueError, SchemaError) as exc:
            logger.error(f"Failed to parse spotDetails: {exc}")
            raise ValidationError("Invalid spotDetails format") from exc

        await registrations.create_registration(
            self.database,
            user_id=user_id,
            spots=spots,
            spot_details=spot_details,
            amount=amount,
            stripe_session_id=session.get("id"),
        )


# ==================== CHECKOUT ====================

async def _create_checkout_session(settings: StripeSettings, **params):
    if not settings.secret_key:
        logger.error("STRIPE_SECRET_KEY is not set")
        raise InfrastructureError("Payments are not configured")
    try:
        return await asyncio.to_thread(
            stripe.checkout.Session.create, api_key=settings.secret_key, mode="payment", **params
        )
    except stripe.StripeError as exc:
        logger.error(f"Stripe checkout session failed: {exc}")
        raise UpstreamError("Failed to initiate payment") from exc


async def start_registration_checkout(
    database: Database, settings: StripeSettings, request: RegistrationCheckoutRequest
) -> Dict:
    """
    Open a checkout session for spot reservations

    Returns:
        {"url": ..., "sessionId": ...}

    Raises:
        ValidationError: Detail count mismatch, donation too low or too many spots in total
        DuplicateEmail: A spot email is already registered
    """
    if len(request.spot_details) != request.spots:
        raise ValidationError("Provide details for every spot")
    if request.donation < settings.min_spot_price:
        raise ValidationError(f"Donation must be at least ${settings.min_spot_price:g} per spot")

    owned = await registrations.count_paid_spots(database, request.user_id)
    if owned + request.spots > MAX_SPOTS_PER_USER:
        raise ValidationError(
            f"Cannot add {request.spots} spot(s). You already have {owned}, and the maximum is {MAX_SPOTS_PER_USER}."
        )

    await registrations.ensure_emails_available(database, [s.email for s in request.spot_details])

    spot_details = [s.model_dump() for s in request.spot_details]
    session = await _create_checkout_session(
        settings,
        line_items=[{
            "price_data": {
                "currency": settings.currency,
                "product_data": {"name": "Golf outing spot"},
                "unit_amount": int(round(request.donation * 100)),
            },
            "quantity": request.spots,
        }],
        success_url=settings.success_url,
        cancel_url=settings.cancel_url,
        metadata={
            "userId": request.user_id,
            "spots": str(request.spots),
            "spotDetails": json.dumps(spot_details),
        },
    )
    logger.info(f"Created registration checkout {session.id} for user {request.user_id}")
    return {"url": session.url, "sessionId": session.id}


async def start_sponsorship_checkout(settings: StripeSettings, request: SponsorshipCheckoutRequest) -> Dict:
    """Open a checkout session for a paid sponsorship"""
    if not request.business_name.strip():
        raise ValidationError("Business name is required")
    if request.amount < settings.min_sponsorship_amount:
        raise ValidationError(f"Sponsorship must be at least ${settings.min_sponsorship_amount:g}")
    if request.sign_option in ("text", "both") and not request.sign_text.strip():
        raise ValidationError("Sign text is required")
    if request.sign_option in ("logo", "both") and not request.logo_url.strip():
        raise ValidationError("Logo is required")

    session = await _create_checkout_session(
        settings,
        line_items=[{
            "price_data": {
                "currency": settings.currency,
                "product_data": {"name": f"Sponsorship - {request.business_name}"},
                "unit_amount": int(round(request.amount * 100)),
            },
            "quantity": 1,
        }],
        success_url=settings.sponsorship_success_url,
        cancel_url=settings.sponsorship_cancel_url,
        metadata={
            "type": SPONSORSHIP_TYPE,
            "userId": request.user_id,
            "businessName": request.business_name,
            "signOption": request.sign_option,
            "signText": request.sign_text,
            "logoUrl": request.logo_url,
        },
    )
    logger.info(f"Created sponsorship checkout {session.id} for user {request.user_id}")
    return {"url": session.url, "sessionId": session.id}
