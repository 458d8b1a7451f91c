from datetime import datetime

from pydantic import BaseModel, Field


class CityOut(BaseModel):
    id: int
    city: str
    state: str


class NeighborhoodOut(BaseModel):
    id: int
    neighborhood: str
    city_id: int
    macro_neighborhood: str | None = None
    city: str
    state: str
    created_at: datetime
    updated_at: datetime


class NeighborhoodCreate(BaseModel):
    neighborhood: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=255)
    state: str = Field(min_length=1, max_length=100)
    macro_neighborhood: str | None = Field(default=None, max_length=255)
