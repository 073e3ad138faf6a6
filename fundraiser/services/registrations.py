"""
Registration records: paid spot batches and their spots
"""
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from fundraiser.db import Database
from fundraiser.errors import DuplicateEmail, SpotNotOwned, ValidationError
from fundraiser.models import PAYMENT_COMPLETED, SpotDetails, SpotUpdate
from fundraiser.utils import new_id, utcnow


logger = logging.getLogger(__name__)


async def get_registered_emails(database: Database) -> Set[str]:
    """Distinct spot emails across every registration"""
    pipeline = [
        {"$unwind": "$spotDetails"},
        {"$group": {"_id": "$spotDetails.email"}},
    ]
    rows = await database.registrations.aggregate(pipeline).to_list(length=None)
    return {row["_id"] for row in rows if row["_id"]}


async def ensure_emails_available(database: Database, emails: Iterable[str]) -> None:
    """
    Reject a batch of emails if any is already registered or repeats in the batch

    Raises:
        DuplicateEmail: For the first conflicting email
    """
    taken = await get_registered_emails(database)
    for email in emails:
        if email in taken:
            logger.warning(f"Email {email} already exists in another reservation")
            raise DuplicateEmail(email)
        taken.add(email)


async def create_registration(
    database: Database,
    user_id: str,
    spots: int,
    spot_details: List[SpotDetails],
    amount: float,
    stripe_session_id: str,
) -> Optional[Dict]:
    """
    Record a completed registration payment

    Args:
        database: Database handle
        user_id: Paying user
        spots: Number of spots bought
        spot_details: Contact details per spot
        amount: Amount paid in dollars
        stripe_session_id: Checkout session that produced the payment

    Returns:
        The inserted document, or None when this session was already recorded

    Raises:
        DuplicateEmail: If any spot email is already registered (nothing is inserted)
    """
    if stripe_session_id:
        existing = await database.registrations.find_one({"stripeSessionId": stripe_session_id})
        if existing:
            logger.info(f"Registration for session {stripe_session_id} already recorded, skipping")
            return None

    await ensure_emails_available(database, [spot.email for spot in spot_details])

    document = {
        "userId": user_id,
        "spots": spots,
        "spotDetails": [
            {"spotId": new_id(), **spot.model_dump()}
            for spot in spot_details
        ],
        "paymentStatus": PAYMENT_COMPLETED,
        "amount": amount,
        "createdAt": utcnow(),
        "stripeSessionId": stripe_session_id,
    }
    result = await database.registrations.insert_one(document)
    logger.info(f"✅ Inserted registration {result.inserted_id} for user {user_id} ({len(spot_details)} spots)")
    return document


async def get_completed_registrations(database: Database, user_id: str) -> List[Dict]:
    cursor = database.registrations.find({"userId": user_id, "paymentStatus": PAYMENT_COMPLETED})
    return await cursor.to_list(length=None)


async def count_paid_spots(database: Database, user_id: str) -> int:
    registrations = await get_completed_registrations(database, user_id)
    return sum(len(reg.get("spotDetails", [])) for reg in registrations)


async def find_owned_spot(database: Database, user_id: str, spot_id: str) -> Tuple[Dict, Dict]:
    """
    Locate a spot inside one of the user's completed registrations

    Returns:
        (registration, spot) pair

    Raises:
        SpotNotOwned: If no completed registration of the user holds the spot
    """
    registration = await database.registrations.find_one({
        "userId": user_id,
        "paymentStatus": PAYMENT_COMPLETED,
        "spotDetails.spotId": spot_id,
    })
    if not registration:
        raise SpotNotOwned()
    spot = next(s for s in registration["spotDetails"] if s.get("spotId") == spot_id)
    return registration, spot


async def get_user_spots(database: Database, user_id: str) -> List[Dict]:
    """All spots the user paid for, with their registration and current team"""
    registrations = await get_completed_registrations(database, user_id)
    spot_ids = [s["spotId"] for reg in registrations for s in reg.get("spotDetails", [])]

    team_by_spot = {}
    if spot_ids:
        cursor = database.teams.find({"members.spotId": {"$in": spot_ids}})
        for team in await cursor.to_list(length=None):
            for member in team.get("members", []):
                team_by_spot[member["spotId"]] = str(team["_id"])

    spots = []
    for reg in registrations:
        for spot in reg.get("spotDetails", []):
            spots.append({
                **spot,
                "registrationId": str(reg["_id"]),
                "teamId": team_by_spot.get(spot["spotId"]),
            })
    return spots


async def get_all_spots(database: Database) -> List[Dict]:
    """Spot id and display name for every registered spot"""
    cursor = database.registrations.find({})
    spots = []
    for reg in await cursor.to_list(length=None):
        for spot in reg.get("spotDetails", []):
            spots.append({"spotId": spot.get("spotId"), "name": spot.get("name", "")})
    return spots


async def edit_spot(database: Database, user_id: str, spot_id: str, updates: SpotUpdate) -> Dict:
    """
    Change contact details of a spot owned by the user

    Returns:
        The spot after the update

    Raises:
        ValidationError: If no field is given or a field is blank
        SpotNotOwned: If the spot is not the user's
        DuplicateEmail: If the new email belongs to another spot
    """
    changes = {k: v.strip() for k, v in updates.model_dump(exclude_none=True).items()}
    if not changes:
        raise ValidationError("No spot details to update")
    for field in ("name", "email"):
        if field in changes and not changes[field]:
            raise ValidationError(f"Spot {field} cannot be empty")

    _, spot = await find_owned_spot(database, user_id, spot_id)

    new_email = changes.get("email")
    if new_email and new_email != spot.get("email"):
        clash = await database.registrations.find_one({
            "spotDetails": {"$elemMatch": {"email": new_email, "spotId": {"$ne": spot_id}}}
        })
        if clash:
            raise DuplicateEmail(new_email)

    await database.registrations.update_one(
        {"userId": user_id, "spotDetails.spotId": spot_id},
        {"$set": {f"spotDetails.$.{field}": value for field, value in changes.items()}},
    )
    logger.info(f"Updated spot {spot_id} for user {user_id}: {sorted(changes)}")
    return {**spot, **changes}


async def list_registrations(database: Database) -> List[Dict]:
    return await database.registrations.find({}).to_list(length=None)
