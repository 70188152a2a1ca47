from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple
from uuid import UUID

from colorspec.core.errors import IneligibleAnnotationError, MissingReferenceError
from colorspec.services.snapshot import (
    AnnotationSnapshot,
    ColorGroupEntry,
    ColorRef,
    ColorSummary,
    ColorSummaryEntry,
    PhotoRef,
    ProjectIdentity,
    RoomSpec,
    SourcePhoto,
    SynopsisData,
    SynopsisSpecRow,
)

logger = logging.getLogger(__name__)

UNASSIGNED_ROOM_LABEL = "Global/No Room Assigned"
NOTES_SEPARATOR = "; "

TRIM_KEYWORDS = ("trim", "baseboard", "molding", "door", "window", "wainscoting")
CEILING_KEYWORDS = ("ceiling",)
WALL_KEYWORDS = ("wall",)


class Classification(str, Enum):
    TRIM = "trim"
    CEILING = "ceiling"
    WALL = "wall"
    UNCLASSIFIED = "unclassified"


# Walls legitimately vary by room and are only ever listed, never promoted.
UNIVERSAL_CLASSIFICATIONS = (Classification.TRIM, Classification.CEILING)


def classify_surface(surface_type: str | None) -> Classification:
    """
    Keyword heuristic over the free-text surface type (case-insensitive substring).

    Precedence: trim-like, then ceiling, then wall. "Crown Molding" is trim,
    "Accent Wall" is wall, "Cabinet" is unclassified.
    """
    s = (surface_type or "").lower()
    if any(k in s for k in TRIM_KEYWORDS):
        return Classification.TRIM
    if any(k in s for k in CEILING_KEYWORDS):
        return Classification.CEILING
    if any(k in s for k in WALL_KEYWORDS):
        return Classification.WALL
    return Classification.UNCLASSIFIED


class ColorKey(NamedTuple):
    manufacturer: str
    color_code: str


class RowKey(NamedTuple):
    room_name: str
    surface_type: str
    color: ColorKey
    product_line: str
    sheen: str


class BucketKey(NamedTuple):
    classification: Classification
    color: ColorKey


class RoomSetKey(NamedTuple):
    classification: Classification
    room_name: str


@dataclass(frozen=True)
class ResolvedAnnotation:
    annotation: AnnotationSnapshot
    color: ColorRef
    photo: PhotoRef
    room_name: str
    surface_type: str
    product_line: str
    sheen: str


@dataclass
class ColorUsageBucket:
    classification: Classification
    color_code: str
    name: str
    manufacturer: str
    # Ordered set of "<product line> - <sheen>" strings
    product_lines: dict[str, None] = field(default_factory=dict)


@dataclass
class Aggregation:
    rooms: list[RoomSpec]
    buckets: dict[BucketKey, ColorUsageBucket]
    room_sets: dict[RoomSetKey, set[ColorKey]]


def resolve_annotation(a: AnnotationSnapshot, *, unassigned_label: str = UNASSIGNED_ROOM_LABEL) -> ResolvedAnnotation:
    """
    Validate one annotation for aggregation and fill inherited product line/sheen.

    Raises MissingReferenceError for dangling color/room/photo ids and
    IneligibleAnnotationError when a required field is absent.
    """
    if a.color_id is not None and a.color is None:
        raise MissingReferenceError("color", a.color_id, a.id)
    if a.room_id is not None and a.room is None:
        raise MissingReferenceError("room", a.room_id, a.id)
    if a.photo is None:
        raise MissingReferenceError("photo", a.photo_id, a.id)

    if a.color is None:
        raise IneligibleAnnotationError(a.id, "no color")
    if not a.surface_type:
        raise IneligibleAnnotationError(a.id, "no surface type")

    product_line = a.product_line or None
    sheen = a.sheen or None
    if (product_line is None or sheen is None) and a.color.availability:
        first_line, first_sheen = a.color.availability[0]
        product_line = product_line or first_line
        sheen = sheen or first_sheen
    if not product_line or not sheen:
        raise IneligibleAnnotationError(a.id, "no product line/sheen and no catalog availability")

    room_name = a.room.name if a.room is not None and a.room.name else unassigned_label
    return ResolvedAnnotation(
        annotation=a,
        color=a.color,
        photo=a.photo,
        room_name=room_name,
        surface_type=a.surface_type,
        product_line=product_line,
        sheen=sheen,
    )


def _surface_area(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    for k in ("label", "text"):
        v = data.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return None


def aggregate(
    annotations: Iterable[AnnotationSnapshot],
    *,
    unassigned_label: str = UNASSIGNED_ROOM_LABEL,
    notes_separator: str = NOTES_SEPARATOR,
) -> Aggregation:
    """
    Merge a project's annotations into per-room specification rows.

    Rows are unique by (room, surface type, color, product line, sheen);
    annotations collapsing into one row contribute their photos (deduplicated
    by id) and their distinct non-empty notes. Rooms and rows keep first-seen
    order, so the same input always yields the same output.
    """
    rooms: dict[str, RoomSpec] = {}
    rows: dict[RowKey, SynopsisSpecRow] = {}
    row_notes: dict[RowKey, list[str]] = {}
    row_photo_ids: dict[RowKey, set[UUID]] = {}
    buckets: dict[BucketKey, ColorUsageBucket] = {}
    room_sets: dict[RoomSetKey, set[ColorKey]] = {}

    for a in annotations:
        try:
            r = resolve_annotation(a, unassigned_label=unassigned_label)
        except MissingReferenceError as e:
            logger.warning("skipping annotation with missing reference: %s", e)
            continue
        except IneligibleAnnotationError as e:
            logger.debug("%s", e)
            continue

        code = r.color.color_code
        ckey = ColorKey(r.color.manufacturer, code)
        cls = classify_surface(r.surface_type)

        bkey = BucketKey(cls, ckey)
        bucket = buckets.get(bkey)
        if bucket is None:
            bucket = ColorUsageBucket(
                classification=cls, color_code=code, name=r.color.name, manufacturer=r.color.manufacturer
            )
            buckets[bkey] = bucket
        bucket.product_lines[f"{r.product_line} - {r.sheen}"] = None
        room_sets.setdefault(RoomSetKey(cls, r.room_name), set()).add(ckey)

        key = RowKey(r.room_name, r.surface_type, ckey, r.product_line, r.sheen)
        row = rows.get(key)
        if row is None:
            row = SynopsisSpecRow(
                room_name=r.room_name,
                surface_type=r.surface_type,
                color_code=code,
                color_name=r.color.name,
                product_line=r.product_line,
                sheen=r.sheen,
                surface_area=_surface_area(a.data),
            )
            rows[key] = row
            row_notes[key] = []
            row_photo_ids[key] = set()
            room = rooms.get(r.room_name)
            if room is None:
                room = RoomSpec(room_name=r.room_name)
                rooms[r.room_name] = room
            room.surfaces.append(row)

        if r.photo.id not in row_photo_ids[key]:
            row_photo_ids[key].add(r.photo.id)
            row.source_photos.append(
                SourcePhoto(id=r.photo.id, filename=r.photo.filename, storage_path=r.photo.storage_path)
            )

        note = (a.notes or "").strip()
        if note and note not in row_notes[key]:
            row_notes[key].append(note)
            row.notes = notes_separator.join(row_notes[key])

    return Aggregation(rooms=list(rooms.values()), buckets=buckets, room_sets=room_sets)


def detect_universal(
    classification: Classification,
    buckets: dict[BucketKey, ColorUsageBucket],
    room_sets: dict[RoomSetKey, set[ColorKey]],
) -> list[ColorSummaryEntry]:
    """
    All-or-nothing promotion of a single color for a surface classification.

    Universal iff at least one room recorded the classification and exactly
    one distinct color was seen for it across all rooms. A color is identified
    by (manufacturer, color code), since codes are only unique per
    manufacturer. One dominant color plus an outlier room is not universal;
    the per-room table is the only place such colors show up. Only trim and ceiling are ever promoted.
    """
    if classification not in UNIVERSAL_CLASSIFICATIONS:
        return []

    per_room = [colors for k, colors in room_sets.items() if k.classification == classification]
    if not per_room:
        return []
    seen: set[ColorKey] = set().union(*per_room)
    if len(seen) != 1:
        return []

    (only,) = seen
    bucket = buckets.get(BucketKey(classification, only))
    if bucket is None:
        return []
    return [
        ColorSummaryEntry(
            color_code=bucket.color_code,
            name=bucket.name,
            manufacturer=bucket.manufacturer,
            product_lines=list(bucket.product_lines),
            is_universal=True,
        )
    ]


def wall_groups(buckets: dict[BucketKey, ColorUsageBucket]) -> list[ColorGroupEntry]:
    return [
        ColorGroupEntry(
            color_code=b.color_code,
            name=b.name,
            manufacturer=b.manufacturer,
            product_lines=list(b.product_lines),
        )
        for k, b in buckets.items()
        if k.classification == Classification.WALL
    ]


def build_synopsis(
    project: ProjectIdentity,
    annotations: Iterable[AnnotationSnapshot],
    *,
    unassigned_label: str = UNASSIGNED_ROOM_LABEL,
    notes_separator: str = NOTES_SEPARATOR,
) -> SynopsisData:
    agg = aggregate(annotations, unassigned_label=unassigned_label, notes_separator=notes_separator)
    summary = ColorSummary(
        trim=detect_universal(Classification.TRIM, agg.buckets, agg.room_sets),
        ceilings=detect_universal(Classification.CEILING, agg.buckets, agg.room_sets),
        walls=wall_groups(agg.buckets),
    )
    return SynopsisData(project=project, color_summary=summary, room_data=agg.rooms)
