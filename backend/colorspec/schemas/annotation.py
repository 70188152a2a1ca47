from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from colorspec.schemas.common import APIModel, strip_or_none


class AnnotationCreate(BaseModel):
    kind: str = Field(default="color_tag", min_length=1)
    data: dict[str, Any] | None = None
    surface_type: str | None = None
    color_id: UUID | None = None
    product_line: str | None = None
    sheen: str | None = None
    notes: str | None = None
    # Defaults to the photo's room when omitted
    room_id: UUID | None = None
    # Set by importers of historical annotations; defaults to now
    created_at: datetime | None = None

    @field_validator("surface_type", "product_line", "sheen", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, v: object) -> object:
        return strip_or_none(v)


class AnnotationUpdate(BaseModel):
    """Only fields present in the body are applied; an explicit null clears the field."""

    surface_type: str | None = None
    color_id: UUID | None = None
    product_line: str | None = None
    sheen: str | None = None
    notes: str | None = None
    room_id: UUID | None = None
    data: dict[str, Any] | None = None

    @field_validator("surface_type", "product_line", "sheen", "notes", mode="before")
    @classmethod
    def _blank_to_none(cls, v: object) -> object:
        return strip_or_none(v)


class AnnotationOut(APIModel):
    id: UUID
    photo_id: UUID
    room_id: UUID | None = None
    kind: str
    data: dict[str, Any] | None = None
    surface_type: str | None = None
    color_id: UUID | None = None
    product_line: str | None = None
    sheen: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
