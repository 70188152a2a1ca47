from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from colorspec.db.models.annotation import Annotation
from colorspec.db.models.catalog_color import CatalogColor
from colorspec.db.models.project import Photo, Project
from colorspec.services.snapshot import AnnotationSnapshot, ColorRef, PhotoRef, ProjectIdentity, RoomRef


def color_ref(c: CatalogColor) -> ColorRef:
    return ColorRef(
        id=c.id,
        color_code=c.color_code,
        name=c.name,
        manufacturer=c.manufacturer,
        availability=tuple((av.product_line, av.sheen) for av in c.availability),
    )


def annotation_snapshot(a: Annotation) -> AnnotationSnapshot:
    return AnnotationSnapshot(
        id=a.id,
        photo_id=a.photo_id,
        created_at=a.created_at,
        room_id=a.room_id,
        color_id=a.color_id,
        surface_type=a.surface_type,
        product_line=a.product_line,
        sheen=a.sheen,
        notes=a.notes,
        data=dict(a.data) if isinstance(a.data, dict) else None,
        color=color_ref(a.color) if a.color is not None else None,
        room=RoomRef(id=a.room.id, name=a.room.name) if a.room is not None else None,
        photo=(
            PhotoRef(
                id=a.photo.id,
                filename=a.photo.filename,
                original_filename=a.photo.original_filename,
                storage_path=a.photo.storage_path,
            )
            if a.photo is not None
            else None
        ),
    )


def project_identity(p: Project) -> ProjectIdentity:
    return ProjectIdentity(
        id=p.id,
        name=p.name,
        client_name=p.client_name,
        client_email=p.client_email,
        client_phone=p.client_phone,
        address=p.address,
    )


async def load_project_annotations(
    session: AsyncSession,
    project_id: UUID,
    *,
    newest_first: bool = False,
) -> list[AnnotationSnapshot]:
    """
    Load every annotation of a project with its photo, room and color in one
    joined read, so no row is observed half-written. Catalog availability
    comes from a follow-up select on immutable catalog data.

    Default order is photo upload order then annotation creation order, which
    fixes the row/room order of the generated synopsis.
    """
    order = (
        (Annotation.created_at.desc(), Annotation.id.desc())
        if newest_first
        else (Photo.created_at.asc(), Photo.id.asc(), Annotation.created_at.asc(), Annotation.id.asc())
    )
    stmt = (
        select(Annotation)
        .join(Photo, Annotation.photo_id == Photo.id)
        .where(Photo.project_id == project_id)
        .options(
            joinedload(Annotation.photo),
            joinedload(Annotation.room),
            joinedload(Annotation.color).selectinload(CatalogColor.availability),
        )
        .order_by(*order)
    )
    rows = (await session.execute(stmt)).unique().scalars().all()
    return [annotation_snapshot(a) for a in rows]
