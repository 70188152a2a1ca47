from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from colorspec.api.deps import get_db
from colorspec.db.models.annotation import Annotation
from colorspec.db.models.project import Photo
from colorspec.db.models.room import Room
from colorspec.db.models.synopsis import SynopsisEntry
from colorspec.schemas.common import DeleteResult
from colorspec.schemas.room import RoomCreate, RoomOut, RoomUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])


async def _get_room(db: AsyncSession, room_id: UUID) -> Room:
    r = await db.get(Room, room_id)
    if not r:
        raise HTTPException(status_code=404, detail="room not found")
    return r


@router.get("", response_model=list[RoomOut])
async def list_rooms(db: AsyncSession = Depends(get_db)) -> list[Room]:
    return (await db.execute(select(Room).order_by(Room.name.asc(), Room.created_at.asc()))).scalars().all()


@router.post("", response_model=RoomOut, status_code=201)
async def create_room(body: RoomCreate, db: AsyncSession = Depends(get_db)) -> Room:
    r = Room(name=body.name.strip(), room_type=body.room_type)
    db.add(r)
    await db.commit()
    await db.refresh(r)
    return r


@router.patch("/{room_id}", response_model=RoomOut)
async def update_room(room_id: UUID, body: RoomUpdate, db: AsyncSession = Depends(get_db)) -> Room:
    r = await _get_room(db, room_id)
    changes = body.model_dump(exclude_unset=True)
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="name cannot be empty")
        r.name = name
    if "room_type" in changes:
        r.room_type = changes["room_type"]
    await db.commit()
    await db.refresh(r)
    return r


@router.delete("/{room_id}", response_model=DeleteResult)
async def delete_room(room_id: UUID, db: AsyncSession = Depends(get_db)) -> DeleteResult:
    """Photos and annotations in the room become unassigned; synopsis entries block deletion."""
    r = await _get_room(db, room_id)
    entries = await db.scalar(select(func.count()).select_from(SynopsisEntry).where(SynopsisEntry.room_id == room_id))
    if entries:
        raise HTTPException(
            status_code=409,
            detail={"message": "room is referenced by synopsis entries", "references": int(entries)},
        )

    for model in (Annotation, Photo):
        await db.execute(
            update(model).where(model.room_id == room_id).values(room_id=None).execution_options(synchronize_session=False)
        )
    await db.delete(r)
    await db.commit()
    logger.info("room deleted: room_id=%s, name=%s", room_id, r.name)
    return DeleteResult(id=room_id)
