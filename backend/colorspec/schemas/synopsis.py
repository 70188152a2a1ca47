from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from colorspec.schemas.common import APIModel, ExportModel, strip_or_none


class SynopsisCreate(BaseModel):
    project_id: UUID
    title: str = Field(min_length=1)
    notes: str | None = None
    generate_from_annotations: bool = False


class SynopsisUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    notes: str | None = None


class SynopsisEntryCreate(BaseModel):
    room_id: UUID
    color_id: UUID
    surface_type: str = Field(min_length=1)
    product_line: str = Field(min_length=1)
    sheen: str = Field(min_length=1)
    surface_area: str | None = None
    quantity: str | None = None
    notes: str | None = None


class SynopsisEntryUpdate(BaseModel):
    room_id: UUID | None = None
    color_id: UUID | None = None
    surface_type: str | None = None
    product_line: str | None = None
    sheen: str | None = None
    surface_area: str | None = None
    quantity: str | None = None
    notes: str | None = None

    @field_validator("surface_type", "product_line", "sheen", mode="before")
    @classmethod
    def _blank_to_none(cls, v: object) -> object:
        return strip_or_none(v)


class SynopsisEntryOut(APIModel):
    id: UUID
    synopsis_id: UUID
    room_id: UUID
    color_id: UUID
    surface_type: str
    product_line: str
    sheen: str
    surface_area: str | None = None
    quantity: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class SynopsisOut(APIModel):
    id: UUID
    project_id: UUID
    title: str
    notes: str | None = None
    entries: list[SynopsisEntryOut] = []
    created_at: datetime
    updated_at: datetime


# Generated synopsis (export contract)


class SourcePhotoOut(ExportModel):
    id: UUID
    filename: str
    storage_path: str | None = None


class SpecRowOut(ExportModel):
    surface_type: str
    surface_area: str | None = None
    color_code: str
    color_name: str
    product_line: str
    sheen: str
    notes: str | None = None
    source_photos: list[SourcePhotoOut] = []


class RoomSpecOut(ExportModel):
    room_name: str
    surfaces: list[SpecRowOut] = []


class ColorSummaryEntryOut(ExportModel):
    color_code: str
    name: str
    manufacturer: str
    product_lines: list[str]
    is_universal: bool


class ColorGroupEntryOut(ExportModel):
    color_code: str
    name: str
    manufacturer: str
    product_lines: list[str]


class ColorSummaryOut(ExportModel):
    trim: list[ColorSummaryEntryOut] = []
    ceilings: list[ColorSummaryEntryOut] = []
    walls: list[ColorGroupEntryOut] = []


class ProjectIdentityOut(ExportModel):
    id: UUID
    name: str
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    address: str | None = None


class GeneratedSynopsisOut(ExportModel):
    project: ProjectIdentityOut
    color_summary: ColorSummaryOut
    room_data: list[RoomSpecOut]


class SuggestionOut(ExportModel):
    color_id: UUID
    color_code: str
    color_name: str
    manufacturer: str
    surface_type: str
    product_line: str
    sheen: str
    room_id: UUID | None = None
    room_name: str | None = None
    count: int
    last_used_at: datetime
    photo_filename: str | None = None


class SuggestionsOut(ExportModel):
    suggestions: list[SuggestionOut]
    total_annotations: int
