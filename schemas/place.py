from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schemas.imports import Location, MongoOut, epoch_now, stringify_object_ids

TITLE_MIN_LENGTH = 1
DESCRIPTION_MIN_LENGTH = 5
ADDRESS_MIN_LENGTH = 1


class PlaceBase(BaseModel):
    title: str = Field(min_length=TITLE_MIN_LENGTH)
    description: str = Field(min_length=DESCRIPTION_MIN_LENGTH)
    address: str = Field(min_length=ADDRESS_MIN_LENGTH)


class PlaceCreateRequest(PlaceBase):
    # Clients may send coordinates; the stored location is always resolved
    # from the address instead.
    coordinates: str | None = None


class PlaceCreate(PlaceBase):
    location: Location
    image: str
    creator: str
    date_created: int = Field(default_factory=epoch_now)
    last_updated: int = Field(default_factory=epoch_now)


class PlaceUpdate(BaseModel):
    title: str = Field(min_length=TITLE_MIN_LENGTH)
    description: str = Field(min_length=DESCRIPTION_MIN_LENGTH)

    model_config = ConfigDict(extra="ignore")


class PlaceOut(MongoOut):
    title: str
    description: str
    address: str
    location: Location
    image: str
    creator: str
    date_created: int | None = None
    last_updated: int | None = None

    @model_validator(mode="before")
    @classmethod
    def convert_creator(cls, values):
        return stringify_object_ids(values, "creator")
