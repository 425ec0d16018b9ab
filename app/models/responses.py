# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API.
#
# DESIGN DECISION: Separate response models from DB models.
# CarResponse is built with from_attributes straight from the ORM row, but
# only the listed fields are ever serialised.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class CarResponse(BaseModel):
    """A car record as returned by every /api/cars endpoint."""

    id: int
    owner_id: str
    title: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(
        default_factory=list,
        description="Image references in display order; served under /uploads",
    )
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeleteCarResponse(BaseModel):
    """Response for DELETE /api/cars/{id}."""

    message: str = "Car deleted successfully"
    id: int
    purged_images: list[str] = Field(
        default_factory=list,
        description="Image files actually removed from storage",
    )


class ErrorResponse(BaseModel):
    """Body of every domain error (4xx/5xx)."""

    detail: str
    code: str
    details: dict | None = None
