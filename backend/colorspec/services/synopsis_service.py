from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from colorspec.core.config import settings
from colorspec.core.errors import BatchAccountingPartialFailure, IneligibleAnnotationError, MissingReferenceError
from colorspec.db.models.project import Project
from colorspec.db.models.synopsis import ColorSynopsis, SynopsisEntry
from colorspec.schemas.synopsis import SynopsisCreate, SynopsisEntryCreate
from colorspec.services import usage_service
from colorspec.services.snapshot import SynopsisData
from colorspec.services.snapshot_service import load_project_annotations, project_identity
from colorspec.services.synopsis_engine import build_synopsis, resolve_annotation

logger = logging.getLogger(__name__)

_ENTRY_UPDATABLE = ("room_id", "color_id", "surface_type", "product_line", "sheen", "surface_area", "quantity", "notes")
_ENTRY_REQUIRED = ("room_id", "color_id", "surface_type", "product_line", "sheen")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def generate_project_synopsis(session: AsyncSession, project: Project) -> SynopsisData:
    """Aggregate a project's annotations; always returns a result, possibly sparse."""
    snapshots = await load_project_annotations(session, project.id)
    data = build_synopsis(
        project_identity(project),
        snapshots,
        unassigned_label=settings.unassigned_room_label,
        notes_separator=settings.synopsis_notes_separator,
    )
    logger.info(
        "synopsis generated: project_id=%s, annotations=%s, rooms=%s, universal_trim=%s, universal_ceilings=%s",
        project.id,
        len(snapshots),
        len(data.room_data),
        len(data.color_summary.trim),
        len(data.color_summary.ceilings),
    )
    return data


async def generate_entries(session: AsyncSession, synopsis: ColorSynopsis) -> list[SynopsisEntry]:
    """
    Persist one entry per distinct (room, color, surface, product line, sheen)
    among the project's eligible annotations. Entries need a room, so
    annotations without one are left to the generated view.
    """
    snapshots = await load_project_annotations(session, synopsis.project_id)
    now = _utcnow()
    entries: dict[tuple, SynopsisEntry] = {}
    for a in snapshots:
        if a.room_id is None:
            continue
        try:
            r = resolve_annotation(a)
        except MissingReferenceError as e:
            logger.warning("entry generation skipped annotation: %s", e)
            continue
        except IneligibleAnnotationError as e:
            logger.debug("%s", e)
            continue
        key = (a.room_id, r.color.id, r.surface_type, r.product_line, r.sheen)
        if key in entries:
            continue
        entries[key] = SynopsisEntry(
            synopsis_id=synopsis.id,
            room_id=a.room_id,
            color_id=r.color.id,
            surface_type=r.surface_type,
            product_line=r.product_line,
            sheen=r.sheen,
            notes=a.notes,
            created_at=now,
            updated_at=now,
        )

    out = list(entries.values())
    if not out:
        return out
    session.add_all(out)
    await session.flush()
    await usage_service.apply_batch_additions(
        session,
        usage_service.count_by_color(e.color_id for e in out),
        at=now,
        reference_kind="synopsis",
        reference_id=synopsis.id,
    )
    logger.info("synopsis entries generated: synopsis_id=%s, entries=%s", synopsis.id, len(out))
    return out


async def create_synopsis(session: AsyncSession, body: SynopsisCreate) -> ColorSynopsis:
    now = _utcnow()
    s = ColorSynopsis(project_id=body.project_id, title=body.title, notes=body.notes, created_at=now, updated_at=now)
    session.add(s)
    await session.flush()
    if body.generate_from_annotations:
        await generate_entries(session, s)
    return s


async def delete_synopsis(session: AsyncSession, synopsis_id: UUID) -> list[UUID]:
    """Delete a synopsis and its entries; returns color ids whose accounting failed."""
    color_ids = (
        await session.execute(select(SynopsisEntry.color_id).where(SynopsisEntry.synopsis_id == synopsis_id))
    ).scalars().all()
    counts = usage_service.count_by_color(color_ids)

    await session.execute(
        delete(SynopsisEntry)
        .where(SynopsisEntry.synopsis_id == synopsis_id)
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(ColorSynopsis).where(ColorSynopsis.id == synopsis_id).execution_options(synchronize_session=False)
    )
    logger.info("synopsis deleted: synopsis_id=%s, entries=%s", synopsis_id, len(color_ids))

    try:
        await usage_service.apply_batch_removals(
            session, counts, reference_kind="synopsis", reference_id=synopsis_id
        )
    except BatchAccountingPartialFailure as e:
        logger.error("synopsis deleted with accounting failures: synopsis_id=%s, %s", synopsis_id, e)
        return list(e.failures)
    return []


async def create_entry(session: AsyncSession, synopsis_id: UUID, body: SynopsisEntryCreate) -> SynopsisEntry:
    now = _utcnow()
    e = SynopsisEntry(
        synopsis_id=synopsis_id,
        room_id=body.room_id,
        color_id=body.color_id,
        surface_type=body.surface_type.strip(),
        product_line=body.product_line.strip(),
        sheen=body.sheen.strip(),
        surface_area=body.surface_area,
        quantity=body.quantity,
        notes=body.notes,
        created_at=now,
        updated_at=now,
    )
    session.add(e)
    await session.flush()
    await usage_service.on_color_reference_added(
        session, e.color_id, at=e.created_at, reference_kind="synopsis_entry", reference_id=e.id
    )
    return e


async def update_entry(session: AsyncSession, e: SynopsisEntry, changes: dict[str, Any]) -> SynopsisEntry:
    for k in _ENTRY_REQUIRED:
        if k in changes and changes[k] is None:
            raise ValueError(f"{k} cannot be cleared")
    old_color_id = e.color_id
    for k, v in changes.items():
        if k in _ENTRY_UPDATABLE:
            setattr(e, k, v)
    now = _utcnow()
    e.updated_at = now
    await session.flush()
    await usage_service.on_color_reference_changed(
        session, old_color_id, e.color_id, at=now, reference_kind="synopsis_entry", reference_id=e.id
    )
    return e


async def delete_entry(session: AsyncSession, e: SynopsisEntry) -> None:
    color_id = e.color_id
    entry_id = e.id
    await session.delete(e)
    await session.flush()
    await usage_service.on_color_reference_removed(
        session, color_id, reference_kind="synopsis_entry", reference_id=entry_id
    )
