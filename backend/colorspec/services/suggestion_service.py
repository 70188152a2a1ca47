from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import NamedTuple
from uuid import UUID

from colorspec.services.snapshot import AnnotationSnapshot, Suggestion

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


class ComboKey(NamedTuple):
    color_id: UUID
    surface_type: str
    product_line: str
    sheen: str


def _is_complete(a: AnnotationSnapshot) -> bool:
    # No inheritance from catalog availability here: quick picks only repeat
    # what was explicitly specified.
    if a.color is None or a.color_id is None:
        return False
    if a.room_id is not None and a.room is None:
        return False
    return bool(a.surface_type and a.product_line and a.sheen)


def rank(annotations: Iterable[AnnotationSnapshot], limit: int = DEFAULT_LIMIT) -> list[Suggestion]:
    """
    Rank (color, surface, product line, sheen) combinations as quick picks.

    Sort: usage count desc, then most recent use desc. Within a group the most
    recent annotation (strictly later created_at) supplies last_used_at and the
    photo filename; room comes from the first annotation seen. Read-only.
    """
    groups: dict[ComboKey, Suggestion] = {}
    skipped = 0
    for a in annotations:
        if not _is_complete(a):
            skipped += 1
            continue
        key = ComboKey(a.color_id, a.surface_type, a.product_line, a.sheen)
        filename = a.photo.original_filename if a.photo is not None else None
        existing = groups.get(key)
        if existing is None:
            groups[key] = Suggestion(
                color_id=a.color_id,
                color_code=a.color.color_code,
                color_name=a.color.name,
                manufacturer=a.color.manufacturer,
                surface_type=a.surface_type,
                product_line=a.product_line,
                sheen=a.sheen,
                room_id=a.room_id,
                room_name=a.room.name if a.room is not None else None,
                count=1,
                last_used_at=a.created_at,
                photo_filename=filename,
            )
            continue
        existing.count += 1
        if a.created_at > existing.last_used_at:
            existing.last_used_at = a.created_at
            existing.photo_filename = filename

    if skipped:
        logger.debug("suggestion ranking skipped incomplete annotations: count=%s", skipped)

    ordered = sorted(groups.values(), key=lambda s: (s.count, s.last_used_at), reverse=True)
    return ordered[: max(0, int(limit))]
