"""
FastAPI dependencies shared by the routers

The Database and Settings are created once by create_app and kept on
app.state; routes receive them through these functions.
"""
from fastapi import Request

from fundraiser.config import Settings
from fundraiser.db import Database
from fundraiser.errors import InfrastructureError


def get_database(request: Request) -> Database:
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise InfrastructureError("Database connection failed")
    return database


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
