"""
MongoDB access

A single Database instance is created per process by the application lifespan
and handed to routes through the get_database dependency.
"""
import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING

from fundraiser.errors import InfrastructureError


logger = logging.getLogger(__name__)

REGISTRATIONS = "registrations"
TEAMS = "teams"
SPONSORS = "sponsors"
SPONSORSHIPS = "sponsorships"


class Database:
    """
    Owns the motor client and exposes the fundraiser collections

    Args:
        uri: MongoDB connection string
        name: Database name
        client: Pre-built motor-compatible client (used instead of connecting to uri)
    """

    def __init__(self, uri: str, name: str, client=None):
        self.uri = uri
        self.name = name
        self.client = client
        self.db = None

    async def connect(self) -> None:
        """Open the client and make sure indexes exist"""
        if self.client is None:
            self.client = AsyncIOMotorClient(self.uri)
        self.db = self.client[self.name]
        await self.ensure_indexes()
        logger.info(f"✅ Connected to MongoDB database '{self.name}'")

    async def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("🛑 MongoDB connection closed")
        self.client = None
        self.db = None

    async def ensure_indexes(self) -> None:
        await self.registrations.create_index([("userId", ASCENDING), ("paymentStatus", ASCENDING)])
        await self.registrations.create_index("spotDetails.spotId")
        await self.registrations.create_index("stripeSessionId")
        await self.teams.create_index("members.spotId")
        await self.sponsors.create_index("userId", unique=True)
        await self.sponsorships.create_index("userId", unique=True)

    async def ping(self) -> bool:
        await self._get_db().command("ping")
        return True

    def _get_db(self):
        if self.db is None:
            raise InfrastructureError("Database connection failed")
        return self.db

    @property
    def registrations(self):
        return self._get_db()[REGISTRATIONS]

    @property
    def teams(self):
        return self._get_db()[TEAMS]

    @property
    def sponsors(self):
        return self._get_db()[SPONSORS]

    @property
    def sponsorships(self):
        return self._get_db()[SPONSORSHIPS]
