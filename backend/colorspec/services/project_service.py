from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from colorspec.core.errors import BatchAccountingPartialFailure
from colorspec.db.models.annotation import Annotation
from colorspec.db.models.project import Photo, Project
from colorspec.db.models.synopsis import ColorSynopsis, SynopsisEntry
from colorspec.services import usage_service

logger = logging.getLogger(__name__)


async def delete_project(session: AsyncSession, project_id: UUID) -> list[UUID]:
    """
    Delete a project with its photos, annotations, synopses and entries.

    Every annotation and entry reference is released with one summed
    decrement per color. Returns color ids whose accounting failed; the
    deletion itself is kept either way.
    """
    photo_ids = select(Photo.id).where(Photo.project_id == project_id)
    synopsis_ids = select(ColorSynopsis.id).where(ColorSynopsis.project_id == project_id)

    annotation_colors = (
        await session.execute(select(Annotation.color_id).where(Annotation.photo_id.in_(photo_ids)))
    ).scalars().all()
    entry_colors = (
        await session.execute(select(SynopsisEntry.color_id).where(SynopsisEntry.synopsis_id.in_(synopsis_ids)))
    ).scalars().all()
    counts = usage_service.count_by_color(annotation_colors)
    counts.update(usage_service.count_by_color(entry_colors))

    for stmt in (
        delete(SynopsisEntry).where(SynopsisEntry.synopsis_id.in_(synopsis_ids)),
        delete(ColorSynopsis).where(ColorSynopsis.project_id == project_id),
        delete(Annotation).where(Annotation.photo_id.in_(photo_ids)),
        delete(Photo).where(Photo.project_id == project_id),
        delete(Project).where(Project.id == project_id),
    ):
        await session.execute(stmt.execution_options(synchronize_session=False))
    logger.info(
        "project deleted: project_id=%s, annotations=%s, entries=%s, colors=%s",
        project_id,
        len(annotation_colors),
        len(entry_colors),
        len(counts),
    )

    try:
        await usage_service.apply_batch_removals(session, counts, reference_kind="project", reference_id=project_id)
    except BatchAccountingPartialFailure as e:
        logger.error("project deleted with accounting failures: project_id=%s, %s", project_id, e)
        return list(e.failures)
    return []
