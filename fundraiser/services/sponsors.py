"""
Sponsor profiles (one per user) and paid sponsorships
"""
import logging
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from fundraiser.db import Database
from fundraiser.errors import ConflictError, SponsorNotFound, ValidationError
from fundraiser.models import SponsorRequest
from fundraiser.utils import utcnow


logger = logging.getLogger(__name__)

MIN_SPONSOR_PRICE = 200


def validate_sponsor(payload: SponsorRequest) -> Dict:
    """
    Check a sponsor form submission

    Returns:
        The sponsor fields keyed as stored

    Raises:
        ValidationError: Missing fields or price under the floor
    """
    fields = {
        "name": payload.name,
        "price": payload.price,
        "logo": payload.logo,
        "websiteLink": payload.website_link,
    }
    if not payload.user_id or not all(fields.values()):
        raise ValidationError("All fields are required")
    if payload.price < MIN_SPONSOR_PRICE:
        raise ValidationError(f"Price must be at least ${MIN_SPONSOR_PRICE}")
    return fields


async def get_sponsor(database: Database, user_id: str) -> Optional[Dict]:
    if not user_id:
        raise ValidationError("User ID is required")
    return await database.sponsors.find_one({"userId": user_id})


async def create_sponsor(database: Database, payload: SponsorRequest) -> Dict:
    fields = validate_sponsor(payload)

    if await database.sponsors.find_one({"userId": payload.user_id}):
        raise ConflictError("User already has a sponsor")

    document = {"userId": payload.user_id, **fields, "createdAt": utcnow()}
    try:
        await database.sponsors.insert_one(document)
    except DuplicateKeyError as exc:
        raise ConflictError("User already has a sponsor") from exc

    logger.info(f"✅ Created sponsor {document['_id']} for user {payload.user_id}")
    return document


async def update_sponsor(database: Database, payload: SponsorRequest) -> None:
    fields = validate_sponsor(payload)

    result = await database.sponsors.update_one(
        {"userId": payload.user_id},
        {"$set": {**fields, "updatedAt": utcnow()}},
    )
    if result.matched_count == 0:
        raise SponsorNotFound()
    logger.info(f"Updated sponsor for user {payload.user_id}")


async def list_sponsors(database: Database) -> List[Dict]:
    return await database.sponsors.find({}).to_list(length=None)


async def list_sponsorships(database: Database) -> List[Dict]:
    return await database.sponsorships.find({}).to_list(length=None)


async def record_sponsorship(
    database: Database,
    user_id: str,
    business_name: str,
    amount: float,
    sign_option: str,
    sign_text: str,
    logo_url: str,
    stripe_session_id: str,
) -> Optional[Dict]:
    """
    Store a sponsorship paid through checkout

    Returns:
        The inserted document, or None when this session was already recorded

    Raises:
        ConflictError: The user already has a sponsorship from another session
    """
    document = {
        "userId": user_id,
        "businessName": business_name,
        "amount": amount,
        "signOption": sign_option,
        "signText": sign_text if sign_option in ("text", "both") else "",
        "logoUrl": logo_url if sign_option in ("logo", "both") else "",
        "createdAt": utcnow(),
        "stripeSessionId": stripe_session_id,
    }
    try:
        result = await database.sponsorships.insert_one(document)
    except DuplicateKeyError as exc:
        existing = await database.sponsorships.find_one({"userId": user_id})
        if existing and existing.get("stripeSessionId") == stripe_session_id:
            logger.info(f"Sponsorship for session {stripe_session_id} already recorded, skipping")
            return None
        raise ConflictError("User already has a sponsorship") from exc

    logger.info(f"✅ Inserted sponsorship {result.inserted_id} for user {user_id}")
    return document
