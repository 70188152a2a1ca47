from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from colorspec.core.errors import BatchAccountingPartialFailure
from colorspec.db.models.annotation import Annotation
from colorspec.db.models.project import Photo
from colorspec.schemas.annotation import AnnotationCreate
from colorspec.services import usage_service

logger = logging.getLogger(__name__)

_UPDATABLE = ("surface_type", "color_id", "product_line", "sheen", "notes", "room_id", "data")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def create_annotation(
    session: AsyncSession,
    photo: Photo,
    body: AnnotationCreate,
) -> Annotation:
    """
    Insert an annotation and count its color reference in the same transaction.

    `body.created_at` may be given for retroactive imports; the color's
    first_used_at follows the annotation's own timestamp, not the import time.
    """
    at = body.created_at or _utcnow()
    a = Annotation(
        photo_id=photo.id,
        room_id=body.room_id or photo.room_id,
        kind=body.kind,
        data=body.data,
        surface_type=body.surface_type,
        color_id=body.color_id,
        product_line=body.product_line,
        sheen=body.sheen,
        notes=body.notes,
        created_at=at,
        updated_at=at,
    )
    session.add(a)
    await session.flush()

    if a.color_id is not None:
        await usage_service.on_color_reference_added(
            session, a.color_id, at=a.created_at, reference_kind="annotation", reference_id=a.id
        )
    return a


async def update_annotation(session: AsyncSession, a: Annotation, changes: dict[str, Any]) -> Annotation:
    """Apply a partial update; a changed color moves one reference from old to new."""
    old_color_id = a.color_id
    for k, v in changes.items():
        if k in _UPDATABLE:
            setattr(a, k, v)
    now = _utcnow()
    a.updated_at = now
    await session.flush()

    await usage_service.on_color_reference_changed(
        session, old_color_id, a.color_id, at=now, reference_kind="annotation", reference_id=a.id
    )
    return a


async def delete_annotation(session: AsyncSession, a: Annotation) -> None:
    color_id = a.color_id
    annotation_id = a.id
    await session.delete(a)
    await session.flush()
    if color_id is not None:
        await usage_service.on_color_reference_removed(
            session, color_id, reference_kind="annotation", reference_id=annotation_id
        )


async def delete_photo(session: AsyncSession, photo_id: UUID) -> list[UUID]:
    """
    Delete a photo with its annotations; returns color ids whose accounting failed.

    Usage is decremented once per distinct color with the summed count.
    """
    color_ids = (
        await session.execute(select(Annotation.color_id).where(Annotation.photo_id == photo_id))
    ).scalars().all()
    counts = usage_service.count_by_color(color_ids)

    await session.execute(
        delete(Annotation).where(Annotation.photo_id == photo_id).execution_options(synchronize_session=False)
    )
    await session.execute(delete(Photo).where(Photo.id == photo_id).execution_options(synchronize_session=False))
    logger.info("photo deleted: photo_id=%s, annotations=%s, colors=%s", photo_id, len(color_ids), len(counts))

    try:
        await usage_service.apply_batch_removals(session, counts, reference_kind="photo", reference_id=photo_id)
    except BatchAccountingPartialFailure as e:
        logger.error("photo deleted with accounting failures: photo_id=%s, %s", photo_id, e)
        return list(e.failures)
    return []
