"""
Team allocation - grouping paid spots into teams of at most four

Checks run in a fixed order: existence, authorization, capacity,
ownership/availability, whitelist. The first failing check is reported.

Membership changes are written with a compare-and-swap on the member list
that was read, so a concurrent change makes the write miss instead of
overfilling the team.
"""
import logging
from typing import Dict, Iterable, List, Optional

from fundraiser.db import Database
from fundraiser.errors import (
    ConflictError, Forbidden, InsufficientSpots, NotAuthorized,
    SpotAlreadyAssigned, SpotNotInTeam, TeamFull, TeamNotFound, ValidationError,
)
from fundraiser.models import MAX_TEAM_SIZE
from fundraiser.services.registrations import count_paid_spots, find_owned_spot
from fundraiser.utils import to_object_id, utcnow


logger = logging.getLogger(__name__)


def normalize_whitelist(entries: Iterable[str]) -> List[str]:
    """
    Strip entries, drop blanks and drop case-insensitive duplicates

    Example:
        >>> normalize_whitelist([" A@x.com", "a@x.com", "", "Jane Doe"])
        ['A@x.com', 'Jane Doe']
    """
    seen = set()
    cleaned = []
    for entry in entries:
        entry = (entry or "").strip()
        key = entry.lower()
        if not entry or key in seen:
            continue
        seen.add(key)
        cleaned.append(entry)
    return cleaned


def whitelist_allows(whitelist: Iterable[str], spot: Dict) -> bool:
    """True if the spot's email or name matches a whitelist entry, ignoring case"""
    allowed = {entry.strip().lower() for entry in whitelist if entry and entry.strip()}
    candidates = {
        (spot.get("email") or "").strip().lower(),
        (spot.get("name") or "").strip().lower(),
    }
    candidates.discard("")
    return bool(allowed & candidates)


async def list_teams(database: Database) -> List[Dict]:
    return await database.teams.find({}).to_list(length=None)


async def get_team(database: Database, team_id: str) -> Dict:
    team = await database.teams.find_one({"_id": to_object_id(team_id, "teamId")})
    if not team:
        logger.warning(f"Team not found for teamId: {team_id}")
        raise TeamNotFound()
    return team


async def find_team_with_spot(database: Database, spot_id: str) -> Optional[Dict]:
    return await database.teams.find_one({"members.spotId": spot_id})


async def create_team(
    database: Database,
    name: str,
    is_private: bool,
    creator_id: str,
    initial_spots: List[str],
) -> Dict:
    """
    Create a team seeded with some of the creator's spots

    Args:
        database: Database handle
        name: Team name
        is_private: Whether joining requires a whitelist match
        creator_id: User creating (and owning) the team
        initial_spots: Spot ids of the creator to place on the team

    Returns:
        The inserted team document

    Raises:
        ValidationError: No name or no spots
        TeamFull: More than four spots
        InsufficientSpots: Creator paid for fewer spots than requested
        SpotNotOwned: A spot is not in the creator's completed registrations
        SpotAlreadyAssigned: A spot is already on a team
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Team name is required")

    spot_ids = list(dict.fromkeys(initial_spots or []))
    if not spot_ids:
        raise ValidationError("At least one spot is required to create a team")
    if len(spot_ids) > MAX_TEAM_SIZE:
        raise TeamFull()

    if await count_paid_spots(database, creator_id) < len(spot_ids):
        raise InsufficientSpots()

    members = []
    for spot_id in spot_ids:
        registration, _ = await find_owned_spot(database, creator_id, spot_id)
        if await find_team_with_spot(database, spot_id):
            raise SpotAlreadyAssigned()
        members.append({"spotId": spot_id, "registrationId": str(registration["_id"])})

    team = {
        "name": name,
        "isPrivate": bool(is_private),
        "creatorId": creator_id,
        "members": members,
        "whitelist": [],
        "createdAt": utcnow(),
    }
    result = await database.teams.insert_one(team)
    logger.info(f"✅ Created team {result.inserted_id} '{name}' with {len(members)} members")
    return team


async def join_team(database: Database, team_id: str, spot_id: str, user_id: str) -> Dict:
    """
    Add one of the user's spots to a team

    Returns:
        The member entry that was added

    Raises:
        TeamNotFound, TeamFull, SpotNotOwned, SpotAlreadyAssigned, NotAuthorized
    """
    team = await get_team(database, team_id)
    members = team.get("members", [])

    if len(members) >= MAX_TEAM_SIZE:
        raise TeamFull()

    registration, spot = await find_owned_spot(database, user_id, spot_id)

    if await find_team_with_spot(database, spot_id):
        raise SpotAlreadyAssigned()

    if team.get("isPrivate") and not whitelist_allows(team.get("whitelist", []), spot):
        raise NotAuthorized()

    member = {"spotId": spot_id, "registrationId": str(registration["_id"])}
    result = await database.teams.update_one(
        {"_id": team["_id"], "members": members},
        {"$addToSet": {"members": member}},
    )
    if result.matched_count == 0:
        await _raise_for_changed_team(database, team["_id"], spot_id)

    logger.info(f"Added spot {spot_id} to team {team_id}")
    return member


async def _raise_for_changed_team(database: Database, team_oid, spot_id: str) -> None:
    """Report why a compare-and-swap on a team's members missed"""
    current = await database.teams.find_one({"_id": team_oid})
    if current is None:
        raise TeamNotFound()
    current_members = current.get("members", [])
    if any(m.get("spotId") == spot_id for m in current_members):
        raise SpotAlreadyAssigned()
    if len(current_members) >= MAX_TEAM_SIZE:
        raise TeamFull()
    raise ConflictError("Team was modified by another request, please retry")


async def remove_spot(database: Database, team_id: str, spot_id: str, user_id: str) -> bool:
    """
    Remove a spot from a team; a team left without members is deleted

    Returns:
        True if the team was deleted

    Raises:
        TeamNotFound, Forbidden, SpotNotInTeam
    """
    team = await get_team(database, team_id)

    if team.get("creatorId") != user_id:
        raise Forbidden("Only the team creator can remove spots")

    members = team.get("members", [])
    remaining = [m for m in members if m.get("spotId") != spot_id]
    if len(remaining) == len(members):
        raise SpotNotInTeam()

    guard = {"_id": team["_id"], "creatorId": user_id, "members": members}
    if remaining:
        result = await database.teams.update_one(guard, {"$pull": {"members": {"spotId": spot_id}}})
        if result.matched_count == 0:
            raise ConflictError("Team was modified by another request, please retry")
        logger.info(f"Removed spot {spot_id} from team {team_id}")
        return False

    result = await database.teams.delete_one(guard)
    if result.deleted_count == 0:
        raise ConflictError("Team was modified by another request, please retry")
    logger.info(f"Deleted team {team_id} as it has no members")
    return True


async def update_team_settings(
    database: Database,
    team_id: str,
    user_id: str,
    is_private: Optional[bool] = None,
    name: Optional[str] = None,
    whitelist: Optional[List[str]] = None,
) -> Dict:
    """
    Change privacy, name and/or whitelist of a team (creator only)

    Returns:
        The team after the update

    Raises:
        ValidationError: Nothing to change or a blank name
        TeamNotFound: Unknown team
        Forbidden: Caller is not the creator
    """
    changes = {}
    if is_private is not None:
        changes["isPrivate"] = is_private
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Team name cannot be empty")
        changes["name"] = name
    if whitelist is not None:
        changes["whitelist"] = normalize_whitelist(whitelist)
    if not changes:
        raise ValidationError("Invalid request: provide isPrivate, name or whitelist")

    team = await get_team(database, team_id)
    if team.get("creatorId") != user_id:
        raise Forbidden("Only the creator can update team settings")

    changes["updatedAt"] = utcnow()
    result = await database.teams.update_one(
        {"_id": team["_id"], "creatorId": user_id},
        {"$set": changes},
    )
    if result.matched_count == 0:
        raise TeamNotFound()

    logger.info(f"Updated team {team_id}: {sorted(changes)}")
    return {**team, **changes}
