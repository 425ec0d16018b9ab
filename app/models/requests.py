# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# Car create/update arrive as multipart/form-data (files + text fields), so
# FastAPI cannot bind them straight to a JSON body model. Route handlers take
# the raw Form() strings and hand them to the parsers below, which validate
# through Pydantic and re-raise failures as the service's ValidationError
# (HTTP 400, same shape as every other domain error).
#
# Accepted field encodings:
#   tags          '["sedan", "red"]'  or  'sedan, red'
#   deletedImages '["uploads/1712345678901front.jpg"]'
# =============================================================================

from __future__ import annotations

import json

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.config import settings
from app.exceptions import ValidationError


class CarFields(BaseModel):
    """
    Scalar fields of a car as submitted by the client.

    None means "not provided". On update, not-provided and empty values keep
    the existing value; on create they fall back to the column defaults.
    """

    title: str | None = Field(
        default=None,
        max_length=settings.title_max_length,
        description="Display title of the car",
        examples=["2019 Toyota Corolla"],
    )
    description: str | None = Field(
        default=None,
        max_length=settings.description_max_length,
        description="Free-text description",
    )
    tags: list[str] | None = Field(
        default=None,
        description="Ordered labels, JSON array or comma-separated text",
        examples=[["sedan", "toyota"]],
    )

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        if value is None or isinstance(value, list):
            return value
        if not isinstance(value, str):
            raise ValueError("tags must be a list or a string")
        text = value.strip()
        if text.startswith("["):
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError(f"tags is not valid JSON: {e.msg}") from e
        return text.split(",")

    @field_validator("tags")
    @classmethod
    def _drop_blank_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [tag.strip() for tag in value if tag.strip()]

    def provided(self) -> dict:
        """Fields carrying a non-empty value."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if value not in (None, "", [])
        }


def parse_car_fields(
    title: str | None = None,
    description: str | None = None,
    tags: str | list[str] | None = None,
) -> CarFields:
    """
    Validate raw form values into CarFields.

    Raises:
        ValidationError: Any field is malformed or too long.
    """
    try:
        return CarFields(title=title, description=description, tags=tags)
    except pydantic.ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError(
            "Invalid car fields.",
            details={"errors": errors},
        ) from e


def parse_deleted_images(raw: str | None) -> list[str]:
    """
    Decode the `deletedImages` form field.

    An absent or blank field means nothing to delete. References that are not
    on the car are accepted here; the reconciler ignores them.

    Raises:
        ValidationError: Not a JSON array of strings.
    """
    if raw is None or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            "deletedImages must be a JSON array of image references.",
            details={"error": e.msg},
        ) from e
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValidationError(
            "deletedImages must be a JSON array of image references.",
        )
    return value
