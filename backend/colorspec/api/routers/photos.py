from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from colorspec.api.deps import get_db
from colorspec.db.models.annotation import Annotation
from colorspec.db.models.catalog_color import CatalogColor
from colorspec.db.models.project import Photo
from colorspec.db.models.room import Room
from colorspec.schemas.annotation import AnnotationCreate, AnnotationOut, AnnotationUpdate
from colorspec.schemas.common import DeleteResult
from colorspec.services.annotation_service import (
    create_annotation,
    delete_annotation,
    delete_photo,
    update_annotation,
)


router = APIRouter(prefix="/photos", tags=["photos"])


async def _get_photo(db: AsyncSession, photo_id: UUID) -> Photo:
    ph = await db.get(Photo, photo_id)
    if not ph:
        raise HTTPException(status_code=404, detail="photo not found")
    return ph


async def _get_annotation(db: AsyncSession, photo_id: UUID, annotation_id: UUID) -> Annotation:
    a = (
        await db.execute(select(Annotation).where(Annotation.id == annotation_id, Annotation.photo_id == photo_id))
    ).scalars().first()
    if not a:
        raise HTTPException(status_code=404, detail="annotation not found")
    return a


async def _check_refs(db: AsyncSession, *, color_id: UUID | None, room_id: UUID | None) -> None:
    if color_id is not None and not await db.get(CatalogColor, color_id):
        raise HTTPException(status_code=404, detail="color not found")
    if room_id is not None and not await db.get(Room, room_id):
        raise HTTPException(status_code=404, detail="room not found")


@router.delete("/{photo_id}", response_model=DeleteResult)
async def remove_photo(photo_id: UUID, db: AsyncSession = Depends(get_db)) -> DeleteResult:
    await _get_photo(db, photo_id)
    failures = await delete_photo(db, photo_id)
    await db.commit()
    return DeleteResult(id=photo_id, accounting_failures=failures)


@router.get("/{photo_id}/annotations", response_model=list[AnnotationOut])
async def list_annotations(photo_id: UUID, db: AsyncSession = Depends(get_db)) -> list[Annotation]:
    await _get_photo(db, photo_id)
    stmt = (
        select(Annotation)
        .where(Annotation.photo_id == photo_id)
        .order_by(Annotation.created_at.desc(), Annotation.id.desc())
    )
    return (await db.execute(stmt)).scalars().all()


@router.post("/{photo_id}/annotations", response_model=AnnotationOut, status_code=201)
async def add_annotation(photo_id: UUID, body: AnnotationCreate, db: AsyncSession = Depends(get_db)) -> Annotation:
    ph = await _get_photo(db, photo_id)
    await _check_refs(db, color_id=body.color_id, room_id=body.room_id)
    a = await create_annotation(db, ph, body)
    await db.commit()
    await db.refresh(a)
    return a


@router.get("/{photo_id}/annotations/{annotation_id}", response_model=AnnotationOut)
async def get_annotation(photo_id: UUID, annotation_id: UUID, db: AsyncSession = Depends(get_db)) -> Annotation:
    return await _get_annotation(db, photo_id, annotation_id)


@router.patch("/{photo_id}/annotations/{annotation_id}", response_model=AnnotationOut)
async def patch_annotation(
    photo_id: UUID,
    annotation_id: UUID,
    body: AnnotationUpdate,
    db: AsyncSession = Depends(get_db),
) -> Annotation:
    a = await _get_annotation(db, photo_id, annotation_id)
    changes = body.model_dump(exclude_unset=True)
    await _check_refs(db, color_id=changes.get("color_id"), room_id=changes.get("room_id"))
    a = await update_annotation(db, a, changes)
    await db.commit()
    await db.refresh(a)
    return a


@router.delete("/{photo_id}/annotations/{annotation_id}", response_model=DeleteResult)
async def remove_annotation(photo_id: UUID, annotation_id: UUID, db: AsyncSession = Depends(get_db)) -> DeleteResult:
    a = await _get_annotation(db, photo_id, annotation_id)
    await delete_annotation(db, a)
    await db.commit()
    return DeleteResult(id=annotation_id)
