"""Place handlers.

Each operation validates, reads or writes through the repositories, and
raises ``AppException`` for every failure so the centralized handlers in
``core.exception_handlers`` build the response. Creating and deleting a
place touch both the ``places`` and ``users`` collections and always do so
inside one transaction.
"""

from __future__ import annotations

import asyncio
from uuid import uuid4

from fastapi import status
from pymongo.errors import PyMongoError

from core.database import start_transaction
from core.errors import (
    AppException,
    ErrorCode,
    auth_not_allowed,
    invalid_input,
    resource_not_found,
    transaction_failed,
)
from core.logger import get_logger
from core.queue import QueueManager
from core.storage import FileStorageManager, ImageUpload
from core.task import DELETE_PLACE_IMAGE_TASK
from repositories.place_repo import (
    delete_place,
    get_place_by_id as get_place,
    insert_place,
    update_place_fields,
)
from repositories.user_repo import append_place_to_user, get_user_by_id, remove_place_from_user
from schemas.imports import epoch_now
from schemas.place import PlaceCreate, PlaceCreateRequest, PlaceOut, PlaceUpdate
from security.principal import AuthPrincipal
from services.geocoding_service import resolve_address

logger = get_logger(__name__)

IMAGE_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpeg",
    "image/jpg": ".jpg",
}
MAX_IMAGE_BYTES = 5 * 1024 * 1024

_pending_cleanups: set[asyncio.Task] = set()


class ReferenceUpdateError(RuntimeError):
    """A back-reference write matched no user; aborts the open transaction."""


def _validate_image(image: ImageUpload) -> str:
    extension = IMAGE_MIME_TYPES.get(image.content_type.lower())
    if extension is None:
        raise invalid_input(
            details={"field": "image", "allowedTypes": sorted(IMAGE_MIME_TYPES)},
        )
    if image.size == 0 or image.size > MAX_IMAGE_BYTES:
        raise invalid_input(
            details={"field": "image", "maxSizeBytes": MAX_IMAGE_BYTES},
        )
    return extension


def _store_image(image: ImageUpload, extension: str) -> str:
    object_key = f"images/{uuid4().hex}{extension}"
    try:
        stored = FileStorageManager.get_instance().provider.save_image(object_key=object_key, upload=image)
    except Exception as err:
        logger.exception("Storing image %s failed", image.file_name)
        raise AppException(
            code=ErrorCode.IMAGE_STORAGE_FAILED,
            message="Storing the uploaded image failed, please try again!",
        ) from err
    return stored.path


def _enqueue_image_cleanup(image_path: str) -> None:
    # Runs on a worker thread: publishing to the broker is blocking I/O.
    job = QueueManager.get_instance().enqueue(DELETE_PLACE_IMAGE_TASK, image_path=image_path)
    logger.info("Scheduled cleanup of image %s as job %s", image_path, job.task_id)


def _on_cleanup_scheduled(task: asyncio.Task) -> None:
    _pending_cleanups.discard(task)
    if task.cancelled():
        logger.warning("Scheduling image cleanup was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Could not schedule image cleanup", exc_info=exc)


def schedule_image_cleanup(image_path: str) -> asyncio.Task:
    """Hand image removal to the task queue without waiting on it.

    The broker publish runs on a thread in the background, so a slow or
    unreachable broker never delays the request. Failures are only logged.
    """
    task = asyncio.create_task(asyncio.to_thread(_enqueue_image_cleanup, image_path))
    _pending_cleanups.add(task)
    task.add_done_callback(_on_cleanup_scheduled)
    return task


async def wait_for_image_cleanups() -> None:
    """Wait until every cleanup handed off so far has reached the broker (or failed)."""
    if _pending_cleanups:
        await asyncio.gather(*_pending_cleanups, return_exceptions=True)


async def get_place_by_id(place_id: str) -> PlaceOut:
    try:
        place = await get_place(place_id)
    except PyMongoError as err:
        logger.error("Looking up place %s failed: %s", place_id, err)
        raise AppException(message=f"There is no place with id: {place_id}") from err

    if place is None:
        raise resource_not_found(
            "Place",
            place_id,
            message=f"Could not find a place for the provided id: {place_id}",
        )
    return place


async def get_places_by_user_id(user_id: str) -> list[PlaceOut]:
    try:
        user = await get_user_by_id(user_id, expand_places=True)
    except PyMongoError as err:
        logger.error("Looking up places of user %s failed: %s", user_id, err)
        raise resource_not_found(
            "Place",
            message=f"Could not find places for this user with id: {user_id}",
        ) from err

    # A missing user and a user without places look the same to the caller.
    if user is None or not user.places:
        raise resource_not_found(
            "Place",
            message=f"Could not find places for the provided user id: {user_id}",
        )
    return list(user.places)


async def create_place_for_principal(
    *,
    principal: AuthPrincipal,
    payload: PlaceCreateRequest,
    image: ImageUpload,
) -> PlaceOut:
    extension = _validate_image(image)
    location = await resolve_address(payload.address)

    try:
        user = await get_user_by_id(principal.user_id)
    except PyMongoError as err:
        logger.error("Looking up user %s failed: %s", principal.user_id, err)
        raise AppException(message=f"Could not find a user with id: {principal.user_id}") from err

    if user is None:
        raise resource_not_found(
            "User",
            principal.user_id,
            message=f"Could not find a user for id: {principal.user_id}",
        )

    image_path = _store_image(image, extension)
    place_create = PlaceCreate(
        title=payload.title,
        description=payload.description,
        address=payload.address,
        location=location,
        image=image_path,
        creator=principal.user_id,
    )

    try:
        async with start_transaction() as session:
            created = await insert_place(place_create, session=session)
            linked = await append_place_to_user(principal.user_id, created.id, session=session)
            if not linked:
                raise ReferenceUpdateError(f"user {principal.user_id} vanished before linking")
    except (PyMongoError, ReferenceUpdateError) as err:
        logger.error("Creating place for user %s rolled back: %s", principal.user_id, err)
        schedule_image_cleanup(image_path)
        raise transaction_failed("Creating a new place was unsuccessful, please try again!") from err

    logger.info("Created place %s for user %s", created.id, principal.user_id)
    return created


async def update_place_for_principal(
    *,
    principal: AuthPrincipal,
    place_id: str,
    payload: PlaceUpdate,
) -> PlaceOut:
    try:
        place = await get_place(place_id)
    except PyMongoError as err:
        logger.error("Looking up place %s failed: %s", place_id, err)
        raise AppException(
            status_code=status.HTTP_400_BAD_REQUEST,
            message=f"There is no place with id: {place_id}",
        ) from err

    if place is None:
        raise resource_not_found(
            "Place",
            place_id,
            message=f"Could not find a place for the provided id: {place_id}",
        )

    if not principal.owns(place.creator):
        raise auth_not_allowed("You are not allowed to edit this place")

    # One $set carries both fields, so the stored document never holds
    # half an update.
    try:
        updated = await update_place_fields(
            place_id,
            {
                "title": payload.title,
                "description": payload.description,
                "last_updated": epoch_now(),
            },
        )
    except PyMongoError as err:
        logger.error("Updating place %s failed: %s", place_id, err)
        raise AppException(message="Updating the place was unsuccessful, please try again!") from err

    if updated is None:
        raise resource_not_found(
            "Place",
            place_id,
            message=f"Could not find a place for the provided id: {place_id}",
        )
    return updated


async def delete_place_for_principal(*, principal: AuthPrincipal, place_id: str) -> dict[str, str]:
    try:
        place = await get_place(place_id)
    except PyMongoError as err:
        logger.error("Looking up place %s failed: %s", place_id, err)
        raise AppException(message=f"There is no place with id: {place_id}") from err

    if place is None:
        raise resource_not_found("Place", place_id, message=f"There is no place with id: {place_id}")

    # TODO: enforce creator ownership with a 401 here, as update does.
    if not principal.owns(place.creator):
        logger.warning("User %s is deleting place %s owned by %s", principal.user_id, place_id, place.creator)

    try:
        async with start_transaction() as session:
            deleted = await delete_place(place_id, session=session)
            if not deleted:
                raise ReferenceUpdateError(f"place {place_id} vanished before deletion")
            unlinked = await remove_place_from_user(place.creator, place_id, session=session)
            if not unlinked:
                raise ReferenceUpdateError(f"creator {place.creator} of place {place_id} not found")
    except (PyMongoError, ReferenceUpdateError) as err:
        logger.error("Deleting place %s rolled back: %s", place_id, err)
        raise transaction_failed("Deleting the place was unsuccessful, please try again!") from err

    schedule_image_cleanup(place.image)
    logger.info("Deleted place %s", place_id)
    return {"message": f"The Place Deleted with id: {place_id}"}
