from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from colorspec.api.deps import get_db
from colorspec.db.models.catalog_color import CatalogColor
from colorspec.db.models.project import Project
from colorspec.db.models.room import Room
from colorspec.db.models.synopsis import ColorSynopsis, SynopsisEntry
from colorspec.schemas.common import DeleteResult
from colorspec.schemas.synopsis import (
    SynopsisCreate,
    SynopsisEntryCreate,
    SynopsisEntryOut,
    SynopsisEntryUpdate,
    SynopsisOut,
    SynopsisUpdate,
)
from colorspec.services import synopsis_service


router = APIRouter(prefix="/synopses", tags=["synopses"])


async def _load_synopsis(db: AsyncSession, synopsis_id: UUID) -> ColorSynopsis:
    s = (
        await db.execute(
            select(ColorSynopsis)
            .where(ColorSynopsis.id == synopsis_id)
            .options(selectinload(ColorSynopsis.entries))
            .execution_options(populate_existing=True)
        )
    ).scalars().first()
    if not s:
        raise HTTPException(status_code=404, detail="synopsis not found")
    return s


async def _get_entry(db: AsyncSession, synopsis_id: UUID, entry_id: UUID) -> SynopsisEntry:
    e = (
        await db.execute(
            select(SynopsisEntry).where(SynopsisEntry.id == entry_id, SynopsisEntry.synopsis_id == synopsis_id)
        )
    ).scalars().first()
    if not e:
        raise HTTPException(status_code=404, detail="synopsis entry not found")
    return e


async def _check_refs(db: AsyncSession, *, color_id: UUID | None, room_id: UUID | None) -> None:
    if color_id is not None and not await db.get(CatalogColor, color_id):
        raise HTTPException(status_code=404, detail="color not found")
    if room_id is not None and not await db.get(Room, room_id):
        raise HTTPException(status_code=404, detail="room not found")


@router.get("", response_model=list[SynopsisOut])
async def list_synopses(
    project_id: UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> list[ColorSynopsis]:
    stmt = select(ColorSynopsis).options(selectinload(ColorSynopsis.entries))
    if project_id:
        stmt = stmt.where(ColorSynopsis.project_id == project_id)
    stmt = stmt.order_by(ColorSynopsis.created_at.desc())
    return (await db.execute(stmt)).scalars().all()


@router.post("", response_model=SynopsisOut, status_code=201)
async def create_synopsis(body: SynopsisCreate, db: AsyncSession = Depends(get_db)) -> ColorSynopsis:
    if not await db.get(Project, body.project_id):
        raise HTTPException(status_code=404, detail="project not found")
    s = await synopsis_service.create_synopsis(db, body)
    await db.commit()
    return await _load_synopsis(db, s.id)


@router.get("/{synopsis_id}", response_model=SynopsisOut)
async def get_synopsis(synopsis_id: UUID, db: AsyncSession = Depends(get_db)) -> ColorSynopsis:
    return await _load_synopsis(db, synopsis_id)


@router.put("/{synopsis_id}", response_model=SynopsisOut)
async def update_synopsis(synopsis_id: UUID, body: SynopsisUpdate, db: AsyncSession = Depends(get_db)) -> ColorSynopsis:
    s = await _load_synopsis(db, synopsis_id)
    changes = body.model_dump(exclude_unset=True)
    if "title" in changes:
        if not changes["title"]:
            raise HTTPException(status_code=400, detail="title cannot be empty")
        s.title = changes["title"]
    if "notes" in changes:
        s.notes = changes["notes"]
    s.updated_at = datetime.now(timezone.utc)
    await db.commit()
    return await _load_synopsis(db, synopsis_id)


@router.delete("/{synopsis_id}", response_model=DeleteResult)
async def delete_synopsis(synopsis_id: UUID, db: AsyncSession = Depends(get_db)) -> DeleteResult:
    await _load_synopsis(db, synopsis_id)
    failures = await synopsis_service.delete_synopsis(db, synopsis_id)
    await db.commit()
    return DeleteResult(id=synopsis_id, accounting_failures=failures)


@router.post("/{synopsis_id}/entries", response_model=SynopsisEntryOut, status_code=201)
async def add_entry(synopsis_id: UUID, body: SynopsisEntryCreate, db: AsyncSession = Depends(get_db)) -> SynopsisEntry:
    await _load_synopsis(db, synopsis_id)
    await _check_refs(db, color_id=body.color_id, room_id=body.room_id)
    e = await synopsis_service.create_entry(db, synopsis_id, body)
    await db.commit()
    await db.refresh(e)
    return e


@router.patch("/{synopsis_id}/entries/{entry_id}", response_model=SynopsisEntryOut)
async def patch_entry(
    synopsis_id: UUID,
    entry_id: UUID,
    body: SynopsisEntryUpdate,
    db: AsyncSession = Depends(get_db),
) -> SynopsisEntry:
    e = await _get_entry(db, synopsis_id, entry_id)
    changes = body.model_dump(exclude_unset=True)
    await _check_refs(db, color_id=changes.get("color_id"), room_id=changes.get("room_id"))
    try:
        e = await synopsis_service.update_entry(db, e, changes)
    except ValueError as ex:
        await db.rollback()
        raise HTTPException(status_code=400, detail=str(ex))
    await db.commit()
    await db.refresh(e)
    return e


@router.delete("/{synopsis_id}/entries/{entry_id}", response_model=DeleteResult)
async def delete_entry(synopsis_id: UUID, entry_id: UUID, db: AsyncSession = Depends(get_db)) -> DeleteResult:
    e = await _get_entry(db, synopsis_id, entry_id)
    await synopsis_service.delete_entry(db, e)
    await db.commit()
    return DeleteResult(id=entry_id)
