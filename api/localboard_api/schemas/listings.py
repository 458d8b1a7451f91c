import datetime as dt
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator

ListingKind = Literal["events", "services"]
EventCategory = Literal["family", "music", "festival", "sale", "outdoor", "active"]
ServiceCategory = Literal["labor", "home", "health", "specialized", "fitness", "kids"]
ModerationStatus = Literal["pending", "approved", "rejected"]

EVENT_CATEGORIES: tuple[str, ...] = get_args(EventCategory)
SERVICE_CATEGORIES: tuple[str, ...] = get_args(ServiceCategory)
CATEGORIES_BY_KIND: dict[str, tuple[str, ...]] = {
    "events": EVENT_CATEGORIES,
    "services": SERVICE_CATEGORIES,
}


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    date: dt.date
    neighborhood_id: int
    time: dt.time | None = None
    recurring: bool = False
    date_list: list[dt.date] = Field(default_factory=list)
    location: str | None = Field(default=None, max_length=500)
    description: str | None = None
    website: str | None = Field(default=None, max_length=500)
    categories: list[EventCategory] = Field(default_factory=list)
    image_url: str | None = Field(default=None, max_length=500)
    delete_after: dt.date | None = None
    internal_creator_contact: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _drop_dates_for_single_events(self) -> "EventCreate":
        if not self.recurring:
            self.date_list = []
        return self


class ServiceCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    owner: str = Field(min_length=1, max_length=255)
    neighborhood_id: int
    description: str | None = None
    website: str | None = Field(default=None, max_length=500)
    contact_number: str | None = Field(default=None, max_length=20)
    contact_email: str | None = Field(default=None, max_length=255)
    categories: list[ServiceCategory] = Field(default_factory=list)
    image_url: str | None = Field(default=None, max_length=500)
    delete_after: dt.date | None = None
    internal_creator_contact: str | None = Field(default=None, max_length=255)


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    date: dt.date | None = None
    time: dt.time | None = None
    recurring: bool | None = None
    date_list: list[dt.date] | None = None
    location: str | None = Field(default=None, max_length=500)
    description: str | None = None
    website: str | None = Field(default=None, max_length=500)
    categories: list[EventCategory] | None = None
    image_url: str | None = Field(default=None, max_length=500)
    delete_after: dt.date | None = None
    verified: bool | None = None
    moderation_status: ModerationStatus | None = None

    model_config = ConfigDict(extra="forbid")


class ServiceUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    owner: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    website: str | None = Field(default=None, max_length=500)
    contact_number: str | None = Field(default=None, max_length=20)
    contact_email: str | None = Field(default=None, max_length=255)
    categories: list[ServiceCategory] | None = None
    image_url: str | None = Field(default=None, max_length=500)
    delete_after: dt.date | None = None
    verified: bool | None = None
    moderation_status: ModerationStatus | None = None

    model_config = ConfigDict(extra="forbid")


class _PlaceOut(BaseModel):
    neighborhood_id: int
    neighborhood: str
    macro_neighborhood: str | None = None
    city: str
    state: str


class EventOut(_PlaceOut):
    id: int
    title: str
    date: dt.date
    time: dt.time | None = None
    recurring: bool = False
    date_list: list[dt.date] = Field(default_factory=list)
    location: str | None = None
    description: str | None = None
    website: str | None = None
    categories: list[str] = Field(default_factory=list)
    image_url: str | None = None
    verified: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class ServiceOut(_PlaceOut):
    id: int
    title: str
    owner: str
    description: str | None = None
    website: str | None = None
    contact_number: str | None = None
    contact_email: str | None = None
    categories: list[str] = Field(default_factory=list)
    image_url: str | None = None
    verified: bool
    created_at: dt.datetime
    updated_at: dt.datetime


class _InternalFields(BaseModel):
    delete_after: dt.date
    internal_id: str
    internal_creator_contact: str | None = None
    moderation_status: ModerationStatus = "pending"
    moderation_reason: str | None = None


class EventAdminOut(EventOut, _InternalFields):
    pass


class ServiceAdminOut(ServiceOut, _InternalFields):
    pass


class ListingDeletedOut(BaseModel):
    id: int
    title: str
    message: str


CREATE_MODELS: dict[str, type[BaseModel]] = {"events": EventCreate, "services": ServiceCreate}
UPDATE_MODELS: dict[str, type[BaseModel]] = {"events": EventUpdate, "services": ServiceUpdate}
PUBLIC_MODELS: dict[str, type[BaseModel]] = {"events": EventOut, "services": ServiceOut}
ADMIN_MODELS: dict[str, type[BaseModel]] = {"events": EventAdminOut, "services": ServiceAdminOut}
