from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class ColorRef:
    id: UUID
    color_code: str
    name: str
    manufacturer: str
    # (product_line, sheen) in stored order
    availability: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class RoomRef:
    id: UUID
    name: str


@dataclass(frozen=True)
class PhotoRef:
    id: UUID
    filename: str
    original_filename: str
    storage_path: str | None = None


@dataclass(frozen=True)
class AnnotationSnapshot:
    """
    Read-only view of one annotation joined with its color, room and photo.

    `color`/`room`/`photo` are None when the referenced row could not be loaded;
    a set `*_id` with a None object is a dangling reference.
    """

    id: UUID
    photo_id: UUID
    created_at: datetime
    room_id: UUID | None = None
    color_id: UUID | None = None
    surface_type: str | None = None
    product_line: str | None = None
    sheen: str | None = None
    notes: str | None = None
    data: dict[str, Any] | None = None
    color: ColorRef | None = None
    room: RoomRef | None = None
    photo: PhotoRef | None = None


@dataclass(frozen=True)
class ProjectIdentity:
    id: UUID
    name: str
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    address: str | None = None


@dataclass
class SourcePhoto:
    id: UUID
    filename: str
    storage_path: str | None = None


@dataclass
class SynopsisSpecRow:
    room_name: str
    surface_type: str
    color_code: str
    color_name: str
    product_line: str
    sheen: str
    surface_area: str | None = None
    notes: str | None = None
    source_photos: list[SourcePhoto] = field(default_factory=list)


@dataclass
class RoomSpec:
    room_name: str
    surfaces: list[SynopsisSpecRow] = field(default_factory=list)


@dataclass
class ColorSummaryEntry:
    color_code: str
    name: str
    manufacturer: str
    product_lines: list[str]
    is_universal: bool


@dataclass
class ColorGroupEntry:
    color_code: str
    name: str
    manufacturer: str
    product_lines: list[str]


@dataclass
class ColorSummary:
    trim: list[ColorSummaryEntry] = field(default_factory=list)
    ceilings: list[ColorSummaryEntry] = field(default_factory=list)
    walls: list[ColorGroupEntry] = field(default_factory=list)


@dataclass
class SynopsisData:
    project: ProjectIdentity
    color_summary: ColorSummary
    room_data: list[RoomSpec]


@dataclass
class Suggestion:
    color_id: UUID
    color_code: str
    color_name: str
    manufacturer: str
    surface_type: str
    product_line: str
    sheen: str
    room_id: UUID | None
    room_name: str | None
    count: int
    last_used_at: datetime
    photo_filename: str | None
