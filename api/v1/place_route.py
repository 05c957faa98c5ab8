from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from core.error_responses import error_responses
from core.storage import ImageUpload
from schemas.place import (
    ADDRESS_MIN_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    TITLE_MIN_LENGTH,
    PlaceCreateRequest,
    PlaceUpdate,
)
from security.auth import verify_token
from security.principal import AuthPrincipal
from services.place_service import (
    create_place_for_principal,
    delete_place_for_principal,
    get_place_by_id,
    get_places_by_user_id,
    update_place_for_principal,
)

router = APIRouter(prefix="/places", tags=["Places"])

_INVALID_INPUT = "Invalid inputs passed, please check data"


@router.get(
    "/user/{uid}",
    responses=error_responses({404: "Could not find places for the provided user id"}),
)
async def list_places_by_user(uid: str):
    places = await get_places_by_user_id(uid)
    return {"places": [place.model_dump() for place in places]}


@router.get(
    "/{pid}",
    responses=error_responses(
        {
            404: "Could not find a place for the provided id",
            500: "There is no place with id",
        }
    ),
)
async def fetch_place(pid: str):
    place = await get_place_by_id(pid)
    return {"place": place.model_dump()}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(
        {
            401: "Invalid token",
            404: "Could not find a user for id",
            422: _INVALID_INPUT,
            500: "Creating a new place was unsuccessful, please try again!",
        }
    ),
)
async def create_place(
    title: str = Form(..., min_length=TITLE_MIN_LENGTH),
    description: str = Form(..., min_length=DESCRIPTION_MIN_LENGTH),
    address: str = Form(..., min_length=ADDRESS_MIN_LENGTH),
    coordinates: str | None = Form(default=None),
    image: UploadFile = File(..., description="Place image (png, jpg or jpeg)."),
    principal: AuthPrincipal = Depends(verify_token),
):
    upload = ImageUpload(
        file_name=image.filename or "",
        content_type=image.content_type or "",
        payload=await image.read(),
    )
    place = await create_place_for_principal(
        principal=principal,
        payload=PlaceCreateRequest(
            title=title,
            description=description,
            address=address,
            coordinates=coordinates,
        ),
        image=upload,
    )
    return {"place": place.model_dump()}


_UPDATE_ERRORS = error_responses(
    {
        400: "There is no place with id",
        401: "You are not allowed to edit this place",
        404: "Could not find a place for the provided id",
        422: _INVALID_INPUT,
        500: "Updating the place was unsuccessful, please try again!",
    }
)


@router.patch("/{pid}", responses=_UPDATE_ERRORS)
@router.put("/{pid}", include_in_schema=False)
async def update_place(
    pid: str,
    payload: PlaceUpdate,
    principal: AuthPrincipal = Depends(verify_token),
):
    place = await update_place_for_principal(principal=principal, place_id=pid, payload=payload)
    return {"place": place.model_dump()}


@router.delete(
    "/{pid}",
    responses=error_responses(
        {
            401: "Invalid token",
            404: "There is no place with id",
            500: "Deleting the place was unsuccessful, please try again!",
        }
    ),
)
async def remove_place(
    pid: str,
    principal: AuthPrincipal = Depends(verify_token),
):
    return await delete_place_for_principal(principal=principal, place_id=pid)
