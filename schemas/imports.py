from __future__ import annotations

import time
from typing import Any

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, model_validator


def epoch_now() -> int:
    return int(time.time())


def stringify_object_ids(values: Any, *fields: str) -> Any:
    if not isinstance(values, dict):
        return values
    for field in fields:
        value = values.get(field)
        if isinstance(value, ObjectId):
            values[field] = str(value)
        elif isinstance(value, list):
            values[field] = [str(item) if isinstance(item, ObjectId) else item for item in value]
    return values


class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class MongoOut(BaseModel):
    id: str | None = Field(default=None, alias="_id")

    @model_validator(mode="before")
    @classmethod
    def convert_objectid(cls, values):
        return stringify_object_ids(values, "_id")

    model_config = ConfigDict(populate_by_name=True)
