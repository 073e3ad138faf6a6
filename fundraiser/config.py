"""
Configuration loader

Settings come from a YAML file (config/settings.yaml by default, or the path in
FUNDRAISER_CONFIG). Secrets and deployment-specific values are overridden from
the environment.
"""
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

# Relative to the project root, not the working directory
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "MONGODB_URI": ("mongodb", "uri"),
    "MONGODB_DATABASE": ("mongodb", "database"),
    "STRIPE_SECRET_KEY": ("stripe", "secret_key"),
    "STRIPE_WEBHOOK_SECRET": ("stripe", "webhook_secret"),
    "AUTH_JWT_KEY": ("auth", "jwt_key"),
    "LOG_LEVEL": (None, "log_level"),
}


class MongoSettings(BaseModel):
    uri: str = "mongodb://localhost:27017"
    database: str = "golf_fundraiser"


class StripeSettings(BaseModel):
    secret_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    currency: str = "usd"
    success_url: str = "http://localhost:3000/register?success=true"
    cancel_url: str = "http://localhost:3000/register?canceled=true"
    sponsorship_success_url: str = "http://localhost:3000/sponsor?success=true"
    sponsorship_cancel_url: str = "http://localhost:3000/sponsor?canceled=true"
    min_spot_price: float = 150       # dollars per spot
    min_sponsorship_amount: float = 200


class AuthSettings(BaseModel):
    jwt_key: Optional[str] = None     # shared secret or PEM public key of the identity provider
    jwt_algorithms: List[str] = ["RS256"]
    user_claim: str = "sub"


class Settings(BaseModel):
    """Top-level server settings"""
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    mongodb: MongoSettings = Field(default_factory=MongoSettings)
    stripe: StripeSettings = Field(default_factory=StripeSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)


def _apply_env_overrides(data: dict, environ) -> dict:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if not value:
            continue
        if section is None:
            data[key] = value
        else:
            data.setdefault(section, {})
            data[section][key] = value
    return data


def load_config(config_path: str = None, environ=None) -> Settings:
    """
    Load settings from YAML file and environment

    Args:
        config_path: Path to config file (defaults to FUNDRAISER_CONFIG or config/settings.yaml)
        environ: Mapping used for overrides (defaults to os.environ)

    Returns:
        Settings object
    """
    environ = os.environ if environ is None else environ
    path = Path(config_path or environ.get("FUNDRAISER_CONFIG", DEFAULT_CONFIG_PATH))

    data = {}
    if path.exists():
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    else:
        logger.warning(f"Config file not found: {path}, using defaults")

    return Settings(**_apply_env_overrides(data, environ))


@lru_cache()
def get_settings() -> Settings:
    """Settings for the running process, loaded once"""
    return load_config()
