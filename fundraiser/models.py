"""
Data models for the fundraiser API

Request bodies use the camelCase keys the web client sends; Python code
works with the snake_case field names.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


MAX_TEAM_SIZE = 4
MAX_SPOTS_PER_USER = 4
PAYMENT_COMPLETED = "completed"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==================== SPOTS / REGISTRATIONS ====================

class SpotDetails(CamelModel):
    """Contact details for one reserved spot, as carried in checkout metadata"""
    name: str
    phone: str = ""
    email: str


class SpotUpdate(CamelModel):
    """Editable contact fields of an existing spot"""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class UserSpotsRequest(CamelModel):
    user_id: str


class EditSpotRequest(CamelModel):
    user_id: str
    spot_id: str
    updated_details: SpotUpdate


# ==================== TEAMS ====================

class CreateTeamRequest(CamelModel):
    name: str
    is_private: bool = False
    creator_id: str
    initial_spots: List[str] = []


class JoinTeamRequest(CamelModel):
    team_id: str
    spot_id: str
    user_id: str


class TeamSettingsRequest(CamelModel):
    team_id: str
    user_id: str
    is_private: Optional[bool] = None
    name: Optional[str] = None
    whitelist: Optional[List[str]] = None


class TeamUpdateRequest(CamelModel):
    """
    Legacy PUT /teams body: join when spotId is present, otherwise settings

    Kept for clients that predate the explicit join/settings endpoints.
    """
    team_id: str
    user_id: str
    spot_id: Optional[str] = None
    is_private: Optional[bool] = None
    name: Optional[str] = None
    whitelist: Optional[List[str]] = None

    def has_settings(self) -> bool:
        return any(v is not None for v in (self.is_private, self.name, self.whitelist))


class RemoveSpotRequest(CamelModel):
    team_id: str
    spot_id: str
    user_id: str


# ==================== SPONSORS ====================

class SponsorRequest(CamelModel):
    """Sponsor profile as submitted by the sponsor form (all fields required)"""
    user_id: Optional[str] = None
    name: Optional[str] = None
    price: Optional[float] = None
    logo: Optional[str] = None
    website_link: Optional[str] = None


# ==================== CHECKOUT ====================

class CheckoutSpot(SpotDetails):
    email: EmailStr


class RegistrationCheckoutRequest(CamelModel):
    user_id: str
    spots: int = Field(ge=1, le=MAX_SPOTS_PER_USER)
    donation: float
    spot_details: List[CheckoutSpot]


class SponsorshipCheckoutRequest(CamelModel):
    user_id: str
    business_name: str
    amount: float
    sign_option: Literal["text", "logo", "both"]
    sign_text: str = ""
    logo_url: str = ""
