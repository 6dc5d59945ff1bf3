"""
Defines the data models and enums for lost & found reports.

Field names are snake_case in Python and camelCase on the wire and in storage
(createdByEmail, locationBuilding, ...).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

TITLE_MAX_LENGTH = 64
DESCRIPTION_MAX_LENGTH = 1000
BUILDING_MAX_LENGTH = 64
PHONE_DIGITS = 10


class ReportType(str, Enum):
    lost = "lost"
    found = "found"


class ReportCategory(str, Enum):
    wallet_id_keys = "Wallet/ID/Keys"
    electronics = "Electronics"
    clothing_apparel = "Clothing & Apparel"
    academic_materials = "Academic Materials"
    bags = "Bags"
    other = "Other"


class ReportStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    denied = "denied"
    resolved = "resolved"
    closed = "closed"


# Statuses anyone signed in may browse.
PUBLIC_STATUSES = frozenset({ReportStatus.approved, ReportStatus.resolved})


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(BaseModel):
    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lng"))


class Report(CamelModel):
    """A stored report. Only status, updated_at and the review pair change after creation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    type: ReportType
    category: ReportCategory
    title: str
    description: Optional[str] = None
    location_building: str = ""
    location_coordinates: Optional[Coordinates] = None
    image_url: Optional[str] = None
    created_by_name: str = ""
    created_by_email: str
    created_by_phone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    status: ReportStatus = ReportStatus.pending
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    @field_validator("created_at", "updated_at", "reviewed_at")
    @classmethod
    def assume_utc(cls, v):
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def check_review_pair(self):
        if (self.reviewed_at is None) != (self.reviewed_by is None):
            raise ValueError("reviewedAt and reviewedBy must be set together")
        if self.status == ReportStatus.pending and self.reviewed_at is not None:
            raise ValueError("a pending report cannot carry review metadata")
        return self


class ReportDraft(CamelModel):
    """What a submitter sends. Server-owned fields (status, createdAt, review) are ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: Optional[str] = None  # pre-reserved by the client, e.g. for the image path
    type: Optional[str] = None
    category: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    location_building: Optional[str] = None
    location_coordinates: Optional[Coordinates] = None
    image_url: Optional[str] = None
    created_by_phone: Optional[str] = None


class TransitionRequest(BaseModel):
    status: ReportStatus


class SearchFilters(BaseModel):
    category: Optional[ReportCategory] = None
    free_text: Optional[str] = None


class ReportStats(CamelModel):
    by_category: Dict[str, int]
    by_location: Dict[str, int]


class ExpiryResult(BaseModel):
    closed: List[str]
