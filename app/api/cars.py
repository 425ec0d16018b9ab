# =============================================================================
# Cars API — Owner-Scoped CRUD with Image Uploads
# =============================================================================
#
# ENDPOINTS:
#   POST   /api/cars        — Create a car (multipart: fields + up to 10 images)
#   GET    /api/cars        — List the caller's cars
#   GET    /api/cars/{id}   — Fetch one of the caller's cars
#   PUT    /api/cars/{id}   — Update fields, append images, delete images
#   DELETE /api/cars/{id}   — Delete a car and its image files
#
# Every endpoint resolves the caller through get_current_owner and passes
# that id explicitly into CarService. A car owned by someone else behaves
# exactly like a car that does not exist (404).
#
# DESIGN DECISION: Files are collected from the raw form rather than a typed
# `list[UploadFile]` parameter. Browser clients also send existing image
# references as plain-text `images` parts; those are ignored here instead of
# failing the whole request with a 422.
# =============================================================================

import logging

from fastapi import APIRouter, Depends, Form, Request
from starlette.datastructures import UploadFile

from app.api.deps import get_car_service, get_current_owner
from app.models.requests import parse_car_fields, parse_deleted_images
from app.models.responses import CarResponse, DeleteCarResponse, ErrorResponse
from app.services.cars import CarService, ImageUpload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cars", tags=["Cars"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid fields or image limit exceeded"},
    401: {"description": "Missing or invalid token"},
    404: {"model": ErrorResponse, "description": "Car not found or not owned by caller"},
    500: {"model": ErrorResponse, "description": "Storage failure"},
}


async def _collect_uploads(request: Request) -> list[ImageUpload]:
    """Read every file part named `images`, in upload order."""
    form = await request.form()
    uploads = []
    for part in form.getlist("images"):
        if not isinstance(part, UploadFile) or not part.filename:
            continue
        uploads.append(ImageUpload(filename=part.filename, content=await part.read()))
    return uploads


# ---------------------------------------------------------------------------
# POST /api/cars — Create a car
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=CarResponse,
    status_code=201,
    responses=_ERROR_RESPONSES,
    summary="Create a car",
    description=(
        "Multipart form with `title`, `description`, `tags` and up to 10 "
        "files under `images`. Returns the created car."
    ),
)
async def create_car(
    request: Request,
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    tags: str | None = Form(default=None),
    owner_id: str = Depends(get_current_owner),
    service: CarService = Depends(get_car_service),
) -> CarResponse:
    fields = parse_car_fields(title=title, description=description, tags=tags)
    uploads = await _collect_uploads(request)

    car = await service.create_car(owner_id, fields, uploads)
    request.state.audit_car_id = car.id
    return CarResponse.model_validate(car)


# ---------------------------------------------------------------------------
# GET /api/cars — List the caller's cars
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=list[CarResponse],
    responses=_ERROR_RESPONSES,
    summary="List your cars",
)
async def list_cars(
    owner_id: str = Depends(get_current_owner),
    service: CarService = Depends(get_car_service),
) -> list[CarResponse]:
    cars = await service.list_cars(owner_id)
    return [CarResponse.model_validate(car) for car in cars]


# ---------------------------------------------------------------------------
# GET /api/cars/{car_id} — Fetch one car
# ---------------------------------------------------------------------------


@router.get(
    "/{car_id}",
    response_model=CarResponse,
    responses=_ERROR_RESPONSES,
    summary="Get a car",
)
async def get_car(
    car_id: int,
    request: Request,
    owner_id: str = Depends(get_current_owner),
    service: CarService = Depends(get_car_service),
) -> CarResponse:
    request.state.audit_car_id = car_id
    car = await service.get_car(owner_id, car_id)
    return CarResponse.model_validate(car)


# ---------------------------------------------------------------------------
# PUT /api/cars/{car_id} — Update a car
# ---------------------------------------------------------------------------


@router.put(
    "/{car_id}",
    response_model=CarResponse,
    responses=_ERROR_RESPONSES,
    summary="Update a car",
    description=(
        "Multipart form. Text fields replace the stored value only when "
        "non-empty. New files under `images` are appended; `deletedImages` "
        "is a JSON array of references to remove. New uploads plus "
        "deletions may not exceed 10 per request."
    ),
)
async def update_car(
    car_id: int,
    request: Request,
    title: str | None = Form(default=None),
    description: str | None = Form(default=None),
    tags: str | None = Form(default=None),
    deleted_images: str | None = Form(default=None, alias="deletedImages"),
    owner_id: str = Depends(get_current_owner),
    service: CarService = Depends(get_car_service),
) -> CarResponse:
    request.state.audit_car_id = car_id
    fields = parse_car_fields(title=title, description=description, tags=tags)
    deletions = parse_deleted_images(deleted_images)
    uploads = await _collect_uploads(request)

    car = await service.update_car(owner_id, car_id, fields, uploads, deletions)
    return CarResponse.model_validate(car)


# ---------------------------------------------------------------------------
# DELETE /api/cars/{car_id} — Delete a car
# ---------------------------------------------------------------------------


@router.delete(
    "/{car_id}",
    response_model=DeleteCarResponse,
    responses=_ERROR_RESPONSES,
    summary="Delete a car and its images",
)
async def delete_car(
    car_id: int,
    request: Request,
    owner_id: str = Depends(get_current_owner),
    service: CarService = Depends(get_car_service),
) -> DeleteCarResponse:
    request.state.audit_car_id = car_id
    result = await service.delete_car(owner_id, car_id)
    return DeleteCarResponse(id=result.car_id, purged_images=result.purged_images)
