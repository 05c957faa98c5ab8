from __future__ import annotations

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.client_session import AsyncClientSession

from core.database import get_db
from schemas.place import PlaceCreate, PlaceOut


async def insert_place(place: PlaceCreate, *, session: AsyncClientSession | None = None) -> PlaceOut:
    payload = place.model_dump()
    result = await get_db().places.insert_one(payload, session=session)
    payload["_id"] = result.inserted_id
    return PlaceOut(**payload)


async def get_place_by_id(place_id: str, *, session: AsyncClientSession | None = None) -> PlaceOut | None:
    if not ObjectId.is_valid(place_id):
        return None
    row = await get_db().places.find_one({"_id": ObjectId(place_id)}, session=session)
    if row is None:
        return None
    return PlaceOut(**row)


async def get_places_by_ids(place_ids: list[str]) -> list[PlaceOut]:
    object_ids = [ObjectId(place_id) for place_id in place_ids if ObjectId.is_valid(place_id)]
    if not object_ids:
        return []

    rows: dict[str, PlaceOut] = {}
    async for doc in get_db().places.find({"_id": {"$in": object_ids}}):
        place = PlaceOut(**doc)
        rows[place.id] = place

    # $in gives no ordering guarantee; keep the caller's order.
    return [rows[place_id] for place_id in place_ids if place_id in rows]


async def update_place_fields(
    place_id: str,
    update_dict: dict,
    *,
    session: AsyncClientSession | None = None,
) -> PlaceOut | None:
    if not ObjectId.is_valid(place_id):
        return None
    row = await get_db().places.find_one_and_update(
        {"_id": ObjectId(place_id)},
        {"$set": update_dict},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if row is None:
        return None
    return PlaceOut(**row)


async def delete_place(place_id: str, *, session: AsyncClientSession | None = None) -> bool:
    if not ObjectId.is_valid(place_id):
        return False
    result = await get_db().places.delete_one({"_id": ObjectId(place_id)}, session=session)
    return bool(result.deleted_count)
