"""
Shared fixtures: in-memory MongoDB, app client and data seeding helpers
"""
import hashlib
import hmac
import json
import time

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from mongomock_motor import AsyncMongoMockClient

from fundraiser.config import AuthSettings, Settings, StripeSettings
from fundraiser.db import Database
from fundraiser.main import create_app
from fundraiser.models import SpotDetails
from fundraiser.services import registrations


WEBHOOK_SECRET = "whsec_test_secret"
JWT_KEY = "test-signing-key"


@pytest.fixture
def settings():
    return Settings(
        stripe=StripeSettings(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET),
        auth=AuthSettings(jwt_key=JWT_KEY, jwt_algorithms=["HS256"]),
    )


@pytest.fixture
async def database():
    db = Database("mongodb://localhost:27017", "golf_fundraiser_test", client=AsyncMongoMockClient())
    await db.connect()
    return db


@pytest.fixture
async def client(settings, database):
    app = create_app(settings, database)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def make_token(user_id: str = "admin_1") -> str:
    return jwt.encode({"sub": user_id}, JWT_KEY, algorithm="HS256")


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    """Stripe-Signature header for a payload (t=<ts>,v1=<hmac>)"""
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def checkout_completed_event(metadata: dict, session_id: str = "cs_test_1", amount_total: int = 30000) -> dict:
    return {
        "id": "evt_test_1",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "amount_total": amount_total,
                "metadata": metadata,
            }
        },
    }


def registration_metadata(user_id: str, spots: list) -> dict:
    return {
        "userId": user_id,
        "spots": str(len(spots)),
        "spotDetails": json.dumps(spots),
    }


_session_counter = {"n": 0}


async def seed_registration(database: Database, user_id: str, people: list) -> dict:
    """
    Insert a completed registration for user_id

    Args:
        people: List of (name, email) tuples, one per spot

    Returns:
        The registration document (spot ids in doc["spotDetails"])
    """
    _session_counter["n"] += 1
    return await registrations.create_registration(
        database,
        user_id=user_id,
        spots=len(people),
        spot_details=[SpotDetails(name=name, phone="555-0100", email=email) for name, email in people],
        amount=150.0 * len(people),
        stripe_session_id=f"cs_seed_{_session_counter['n']}",
    )


def spot_ids(registration: dict) -> list:
    return [spot["spotId"] for spot in registration["spotDetails"]]
