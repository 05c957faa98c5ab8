from __future__ import annotations

from bson import ObjectId
from pymongo.asynchronous.client_session import AsyncClientSession

from core.database import get_db
from repositories.place_repo import get_places_by_ids
from schemas.user import UserOut, UserWithPlacesOut


async def get_user_by_id(
    user_id: str,
    *,
    expand_places: bool = False,
) -> UserOut | UserWithPlacesOut | None:
    if not ObjectId.is_valid(user_id):
        return None
    row = await get_db().users.find_one({"_id": ObjectId(user_id)})
    if row is None:
        return None

    user = UserOut(**row)
    if not expand_places:
        return user

    places = await get_places_by_ids(user.places)
    return UserWithPlacesOut(
        _id=user.id,
        name=user.name,
        email=user.email,
        image=user.image,
        places=places,
    )


async def append_place_to_user(
    user_id: str,
    place_id: str,
    *,
    session: AsyncClientSession | None = None,
) -> bool:
    if not ObjectId.is_valid(user_id):
        return False
    result = await get_db().users.update_one(
        {"_id": ObjectId(user_id)},
        {"$push": {"places": place_id}},
        session=session,
    )
    return bool(result.matched_count)


async def remove_place_from_user(
    user_id: str,
    place_id: str,
    *,
    session: AsyncClientSession | None = None,
) -> bool:
    if not ObjectId.is_valid(user_id):
        return False
    result = await get_db().users.update_one(
        {"_id": ObjectId(user_id)},
        {"$pull": {"places": place_id}},
        session=session,
    )
    return bool(result.matched_count)
