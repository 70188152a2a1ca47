from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from colorspec.schemas.common import APIModel


def normalize_hex_color(v: object) -> str | None:
    """Normalize '#abc123' / 'ABC123' into canonical '#ABC123'."""
    if v is None:
        return None
    if not isinstance(v, str):
        raise ValueError("hex_color must be a string")
    s = v.strip()
    if not s:
        return None
    hx = s[1:] if s.startswith("#") else s
    hx = hx.upper()
    if len(hx) != 6 or not all(c in "0123456789ABCDEF" for c in hx):
        raise ValueError("hex_color must be 6 hex digits like #FFFFFF")
    return f"#{hx}"


class AvailabilityIn(BaseModel):
    product_line: str = Field(min_length=1)
    sheen: str = Field(min_length=1)


class ColorCreate(BaseModel):
    color_code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    manufacturer: str = Field(min_length=1)
    hex_color: str | None = None
    # Stored order matters: the first entry is the default product line/sheen.
    availability: list[AvailabilityIn] = []

    @field_validator("hex_color", mode="before")
    @classmethod
    def _hex(cls, v: object) -> str | None:
        return normalize_hex_color(v)

    @model_validator(mode="after")
    def _strip(self) -> "ColorCreate":
        self.color_code = self.color_code.strip()
        self.name = self.name.strip()
        self.manufacturer = self.manufacturer.strip()
        if not (self.color_code and self.name and self.manufacturer):
            raise ValueError("color_code, name and manufacturer must not be blank")
        return self


class AvailabilityOut(APIModel):
    product_line: str
    sheen: str
    position: int


class ColorOut(APIModel):
    id: UUID
    color_code: str
    name: str
    manufacturer: str
    hex_color: str | None = None
    usage_count: int
    first_used_at: datetime | None = None
    availability: list[AvailabilityOut] = []
    created_at: datetime
    updated_at: datetime


class ColorUsageLedgerRow(APIModel):
    id: UUID
    delta: int
    reason: str
    reference_kind: str | None = None
    reference_id: UUID | None = None
    created_at: datetime


class ProductLineIn(BaseModel):
    product_line: str = Field(min_length=1)
    sheens: list[str] = []


class ColorImportItem(BaseModel):
    """Fields are optional; an incomplete item is reported in the import result."""

    color_code: str | None = None
    name: str | None = None
    manufacturer: str | None = None
    hex_color: str | None = None
    product_lines: list[ProductLineIn] = []


class ColorBulkImport(BaseModel):
    colors: list[ColorImportItem] = Field(min_length=1)
    skip_duplicates: bool = True


class ColorImportResult(APIModel):
    created: int
    skipped: int
    errors: list[str] = []
