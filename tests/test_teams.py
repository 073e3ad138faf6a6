"""
Tests for team allocation: capacity, spot uniqueness, whitelist and creator rights
"""
import pytest

from conftest import seed_registration, spot_ids
from fundraiser.errors import (
    Forbidden, InsufficientSpots, NotAuthorized, SpotAlreadyAssigned,
    SpotNotInTeam, SpotNotOwned, TeamFull, TeamNotFound, ValidationError,
)
from fundraiser.services import teams


FOURSOME = [
    ("Ann Lee", "ann@example.com"),
    ("Bob Ray", "bob@example.com"),
    ("Cal Fox", "cal@example.com"),
    ("Dee Poe", "dee@example.com"),
]


async def _team_with(database, creator="creator", people=FOURSOME, count=None, is_private=False):
    reg = await seed_registration(database, creator, people)
    ids = spot_ids(reg)
    team = await teams.create_team(database, "Birdies", is_private, creator, ids[:count or len(ids)])
    return team, ids


# ==================== CREATE ====================

async def test_create_team_seeds_members(database):
    """Members reference the owning registration"""
    reg = await seed_registration(database, "u1", FOURSOME[:2])
    team = await teams.create_team(database, "Birdies", False, "u1", spot_ids(reg))

    stored = await database.teams.find_one({"_id": team["_id"]})
    assert stored["name"] == "Birdies"
    assert stored["whitelist"] == []
    assert stored["creatorId"] == "u1"
    assert [m["spotId"] for m in stored["members"]] == spot_ids(reg)
    assert all(m["registrationId"] == str(reg["_id"]) for m in stored["members"])


async def test_create_team_members_from_several_registrations(database):
    first = await seed_registration(database, "u1", FOURSOME[:1])
    second = await seed_registration(database, "u1", FOURSOME[1:2])
    team = await teams.create_team(database, "Mixed", False, "u1", spot_ids(first) + spot_ids(second))

    assert [m["registrationId"] for m in team["members"]] == [str(first["_id"]), str(second["_id"])]


async def test_create_team_requires_spots(database):
    with pytest.raises(ValidationError):
        await teams.create_team(database, "Empty", False, "u1", [])


async def test_create_team_insufficient_spots(database):
    reg = await seed_registration(database, "u1", FOURSOME[:1])
    with pytest.raises(InsufficientSpots):
        await teams.create_team(database, "Greedy", False, "u1", spot_ids(reg) + ["65f000000000000000000099"])


async def test_create_team_rejects_foreign_spot(database):
    await seed_registration(database, "u1", FOURSOME[:1])
    other = await seed_registration(database, "u2", FOURSOME[1:2])
    with pytest.raises(SpotNotOwned):
        await teams.create_team(database, "Thief", False, "u1", spot_ids(other))


async def test_create_team_rejects_assigned_spot(database):
    team, ids = await _team_with(database, count=1)
    with pytest.raises(SpotAlreadyAssigned):
        await teams.create_team(database, "Again", False, "creator", ids[:1])
    assert await database.teams.count_documents({}) == 1


# ==================== JOIN ====================

async def test_join_adds_member(database):
    team, ids = await _team_with(database, count=2)
    joiner = await seed_registration(database, "u2", [("Eve Moe", "eve@example.com")])

    member = await teams.join_team(database, str(team["_id"]), spot_ids(joiner)[0], "u2")

    stored = await database.teams.find_one({"_id": team["_id"]})
    assert len(stored["members"]) == 3
    assert stored["members"][-1] == member
    assert member["registrationId"] == str(joiner["_id"])


async def test_join_full_team(database):
    """A fifth spot is rejected and the team is unchanged"""
    team, _ = await _team_with(database)
    joiner = await seed_registration(database, "u2", [("Eve Moe", "eve@example.com")])

    with pytest.raises(TeamFull):
        await teams.join_team(database, str(team["_id"]), spot_ids(joiner)[0], "u2")

    stored = await database.teams.find_one({"_id": team["_id"]})
    assert len(stored["members"]) == 4


async def test_join_unknown_team(database):
    joiner = await seed_registration(database, "u2", [("Eve Moe", "eve@example.com")])
    with pytest.raises(TeamNotFound):
        await teams.join_team(database, "65f000000000000000000001", spot_ids(joiner)[0], "u2")


async def test_join_invalid_team_id(database):
    with pytest.raises(ValidationError):
        await teams.join_team(database, "not-an-id", "spot", "u2")


async def test_join_spot_not_owned(database):
    team, _ = await _team_with(database, count=1)
    other = await seed_registration(database, "u3", [("Eve Moe", "eve@example.com")])
    with pytest.raises(SpotNotOwned):
        await teams.join_team(database, str(team["_id"]), spot_ids(other)[0], "u2")


async def test_spot_can_only_be_on_one_team(database):
    first, _ = await _team_with(database, count=1)
    second, _ = await _team_with(
        database, creator="other", people=[("Fay Orr", "fay@example.com")]
    )
    joiner = await seed_registration(database, "u2", [("Eve Moe", "eve@example.com")])
    spot = spot_ids(joiner)[0]

    await teams.join_team(database, str(first["_id"]), spot, "u2")
    with pytest.raises(SpotAlreadyAssigned):
        await teams.join_team(database, str(second["_id"]), spot, "u2")
    with pytest.raises(SpotAlreadyAssigned):
        await teams.join_team(database, str(first["_id"]), spot, "u2")

    assert await database.teams.count_documents({"members.spotId": spot}) == 1


async def test_full_check_comes_before_ownership(database):
    team, _ = await _team_with(database)
    with pytest.raises(TeamFull):
        await teams.join_team(database, str(team["_id"]), "unknown-spot", "nobody")


async def test_private_team_rejects_unlisted_email(database):
    team, _ = await _team_with(database, count=1, is_private=True)
    await teams.update_team_settings(database, str(team["_id"]), "creator", whitelist=["a@x.com"])
    joiner = await seed_registration(database, "u2", [("Bea Kim", "b@x.com")])

    with pytest.raises(NotAuthorized):
        await teams.join_team(database, str(team["_id"]), spot_ids(joiner)[0], "u2")


async def test_private_team_whitelist_ignores_case(database):
    team, _ = await _team_with(database, count=1, is_private=True)
    await teams.update_team_settings(database, str(team["_id"]), "creator", whitelist=["A@X.com"])
    joiner = await seed_registration(database, "u2", [("Amy Lo", "a@x.com")])

    await teams.join_team(database, str(team["_id"]), spot_ids(joiner)[0], "u2")


async def test_private_team_whitelist_matches_name(database):
    team, _ = await _team_with(database, count=1, is_private=True)
    await teams.update_team_settings(database, str(team["_id"]), "creator", whitelist=["jane doe"])
    joiner = await seed_registration(database, "u2", [("Jane Doe", "jane@example.com")])

    await teams.join_team(database, str(team["_id"]), spot_ids(joiner)[0], "u2")


def test_whitelist_allows():
    spot = {"name": "Jane Doe", "email": "Jane@Example.com"}
    assert teams.whitelist_allows(["jane@example.com"], spot)
    assert teams.whitelist_allows([" JANE DOE "], spot)
    assert not teams.whitelist_allows(["john@example.com", ""], spot)
    assert not teams.whitelist_allows([], spot)


def test_normalize_whitelist():
    assert teams.normalize_whitelist([" A@x.com", "a@x.com", "", "Jane Doe"]) == ["A@x.com", "Jane Doe"]


# ==================== REMOVE ====================

async def test_remove_spot(database):
    team, ids = await _team_with(database, count=2)

    deleted = await teams.remove_spot(database, str(team["_id"]), ids[0], "creator")

    assert deleted is False
    stored = await database.teams.find_one({"_id": team["_id"]})
    assert [m["spotId"] for m in stored["members"]] == [ids[1]]


async def test_removing_last_member_deletes_team(database):
    team, ids = await _team_with(database, count=1)

    deleted = await teams.remove_spot(database, str(team["_id"]), ids[0], "creator")

    assert deleted is True
    assert await database.teams.find_one({"_id": team["_id"]}) is None


async def test_remove_requires_creator(database):
    team, ids = await _team_with(database, count=2)
    with pytest.raises(Forbidden):
        await teams.remove_spot(database, str(team["_id"]), ids[0], "intruder")
    stored = await database.teams.find_one({"_id": team["_id"]})
    assert len(stored["members"]) == 2


async def test_remove_spot_not_in_team(database):
    team, ids = await _team_with(database, count=2)
    with pytest.raises(SpotNotInTeam):
        await teams.remove_spot(database, str(team["_id"]), ids[3], "creator")


# ==================== SETTINGS ====================

async def test_creator_updates_settings(database):
    team, _ = await _team_with(database, count=1)

    await teams.update_team_settings(
        database, str(team["_id"]), "creator",
        is_private=True, name="  Eagles ", whitelist=["x@y.com", "X@Y.com", " "],
    )

    stored = await database.teams.find_one({"_id": team["_id"]})
    assert stored["isPrivate"] is True
    assert stored["name"] == "Eagles"
    assert stored["whitelist"] == ["x@y.com"]


async def test_only_creator_updates_settings(database):
    team, _ = await _team_with(database, count=1)

    with pytest.raises(Forbidden):
        await teams.update_team_settings(database, str(team["_id"]), "intruder", is_private=True, name="Mine")

    stored = await database.teams.find_one({"_id": team["_id"]})
    assert stored["isPrivate"] is False
    assert stored["name"] == "Birdies"


async def test_settings_unknown_team(database):
    with pytest.raises(TeamNotFound):
        await teams.update_team_settings(database, "65f000000000000000000001", "creator", is_private=True)


async def test_settings_require_a_change(database):
    team, _ = await _team_with(database, count=1)
    with pytest.raises(ValidationError):
        await teams.update_team_settings(database, str(team["_id"]), "creator")


async def test_team_never_exceeds_four(database):
    """Sequential joins stop at four members"""
    team, _ = await _team_with(database, people=FOURSOME[:1])
    people = [(f"Player {i}", f"player{i}@example.com") for i in range(5)]
    joiner = await seed_registration(database, "u2", people)

    results = []
    for spot in spot_ids(joiner):
        try:
            await teams.join_team(database, str(team["_id"]), spot, "u2")
            results.append("ok")
        except TeamFull:
            results.append("full")

    assert results == ["ok", "ok", "ok", "full", "full"]
    stored = await database.teams.find_one({"_id": team["_id"]})
    assert len(stored["members"]) == 4
