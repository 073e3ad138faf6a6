"""
Team endpoints: listing, creation, joining, removal and settings,
plus the spot lookups the team screens need
"""
import logging

from fastapi import APIRouter, Depends

from fundraiser.auth import require_user
from fundraiser.db import Database
from fundraiser.dependencies import get_database
from fundraiser.errors import ValidationError
from fundraiser.models import (
    CreateTeamRequest, EditSpotRequest, JoinTeamRequest, RemoveSpotRequest,
    TeamSettingsRequest, TeamUpdateRequest, UserSpotsRequest,
)
from fundraiser.services import registrations, teams
from fundraiser.utils import serialize, serialize_many


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["teams"])


@router.get("")
async def list_teams(database: Database = Depends(get_database)):
    """All teams"""
    return serialize_many(await teams.list_teams(database))


@router.post("")
async def create_team(payload: CreateTeamRequest, database: Database = Depends(get_database)):
    """
    Create a team from some of the creator's paid spots

    Request:
        {"name": "Birdie Hunters", "isPrivate": false, "creatorId": "user_1", "initialSpots": ["<spotId>"]}
    """
    team = await teams.create_team(
        database,
        name=payload.name,
        is_private=payload.is_private,
        creator_id=payload.creator_id,
        initial_spots=payload.initial_spots,
    )
    return {"success": True, "insertedId": str(team["_id"]), "team": serialize(team)}


@router.put("/join")
async def join_team(payload: JoinTeamRequest, database: Database = Depends(get_database)):
    """Add one spot to a team"""
    member = await teams.join_team(database, payload.team_id, payload.spot_id, payload.user_id)
    return {"success": True, "member": member}


@router.put("/settings")
async def update_settings(payload: TeamSettingsRequest, database: Database = Depends(get_database)):
    """Change privacy, name and/or whitelist (creator only)"""
    team = await teams.update_team_settings(
        database,
        payload.team_id,
        payload.user_id,
        is_private=payload.is_private,
        name=payload.name,
        whitelist=payload.whitelist,
    )
    return {"success": True, "team": serialize(team)}


@router.put("")
async def update_team(payload: TeamUpdateRequest, database: Database = Depends(get_database)):
    """
    Combined update kept for older clients

    Request (join):
        {"teamId": "...", "userId": "...", "spotId": "..."}
    Request (settings):
        {"teamId": "...", "userId": "...", "isPrivate": true, "name": "...", "whitelist": [...]}
    """
    if payload.spot_id and payload.has_settings():
        raise ValidationError("Invalid request: provide either spotId or team settings, not both")

    if payload.spot_id:
        member = await teams.join_team(database, payload.team_id, payload.spot_id, payload.user_id)
        return {"success": True, "member": member}

    if payload.has_settings():
        team = await teams.update_team_settings(
            database,
            payload.team_id,
            payload.user_id,
            is_private=payload.is_private,
            name=payload.name,
            whitelist=payload.whitelist,
        )
        return {"success": True, "team": serialize(team)}

    raise ValidationError("Invalid request: provide spotId or isPrivate")


@router.patch("")
async def remove_spot(payload: RemoveSpotRequest, database: Database = Depends(get_database)):
    """Remove a spot from a team (creator only); an emptied team is deleted"""
    deleted = await teams.remove_spot(database, payload.team_id, payload.spot_id, payload.user_id)
    return {"success": True, "teamDeleted": deleted}


# ==================== SPOTS ====================

@router.post("/check-spots")
async def check_spots(payload: UserSpotsRequest, database: Database = Depends(get_database)):
    """
    Whether the user has any paid spot to manage teams with

    Request:
        {"userId": "user_1"}
    """
    return {"hasSpots": await registrations.count_paid_spots(database, payload.user_id) > 0}


@router.post("/user-spots")
async def user_spots(payload: UserSpotsRequest, database: Database = Depends(get_database)):
    """Spots the user paid for, with the team each is on"""
    spots = await registrations.get_user_spots(database, payload.user_id)
    return {"spots": serialize_many(spots)}


@router.get("/all-spots")
async def all_spots(database: Database = Depends(get_database)):
    """Names of every registered spot, for team rosters"""
    return {"spots": await registrations.get_all_spots(database)}


@router.put("/edit-spot")
async def edit_spot(payload: EditSpotRequest, database: Database = Depends(get_database)):
    spot = await registrations.edit_spot(database, payload.user_id, payload.spot_id, payload.updated_details)
    return {"success": True, "spot": spot}


@router.get("/registrations")
async def list_registrations(database: Database = Depends(get_database), _user_id: str = Depends(require_user)):
    return serialize_many(await registrations.list_registrations(database))
