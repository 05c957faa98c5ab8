from __future__ import annotations

from pydantic import Field, model_validator

from schemas.imports import MongoOut, stringify_object_ids
from schemas.place import PlaceOut


class UserOut(MongoOut):
    name: str | None = None
    email: str | None = None
    image: str | None = None
    places: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def convert_place_ids(cls, values):
        return stringify_object_ids(values, "places")


class UserWithPlacesOut(MongoOut):
    name: str | None = None
    email: str | None = None
    image: str | None = None
    places: list[PlaceOut] = Field(default_factory=list)
