"""User profile models.

Models serialize with camelCase keys so persisted records keep the layout
used by earlier releases of the app (``airCredits``, ``lastCreditRefresh``,
``preferredRoutes`` ...). Python code uses the snake_case field names.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from pydantic.alias_generators import to_camel


class SensitivityLevel(str, Enum):
    """How strongly the user reacts to air pollution."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Location(BaseModel):
    """Geographic coordinate."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class SavedRoute(BaseModel):
    """A route the user chose to keep.

    Only ``id`` and the endpoints are interpreted here. Anything else the
    routing side attaches (distance, duration, exposure, waypoints) is kept
    as extra fields and written back untouched.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow", frozen=True)

    id: str = Field(min_length=1)
    start: Location
    end: Location
    name: str | None = None


class UserProfile(BaseModel):
    """The single user profile of this installation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    age: PositiveInt | None = None
    has_respiratory_issues: bool = False
    sensitivity_level: SensitivityLevel = SensitivityLevel.MEDIUM
    home_location: Location | None = None
    preferred_routes: tuple[SavedRoute, ...] = ()
    air_credits: int = Field(ge=0)
    last_credit_refresh: datetime

    def to_record(self) -> str:
        """Serialize for storage."""
        return self.model_dump_json(by_alias=True)


class RedemptionResult(BaseModel):
    """Outcome of a promo code redemption."""

    success: bool
    message: str
    credits: int | None = None
    balance: int | None = None
