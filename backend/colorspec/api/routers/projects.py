from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from colorspec.api.deps import get_db
from colorspec.core.config import settings
from colorspec.db.models.project import Photo, Project
from colorspec.db.models.room import Room
from colorspec.schemas.common import DeleteResult
from colorspec.schemas.project import PhotoCreate, PhotoOut, ProjectCreate, ProjectOut
from colorspec.schemas.synopsis import GeneratedSynopsisOut, SuggestionsOut
from colorspec.services.project_service import delete_project
from colorspec.services.snapshot_service import load_project_annotations
from colorspec.services.suggestion_service import rank
from colorspec.services.synopsis_service import generate_project_synopsis


router = APIRouter(prefix="/projects", tags=["projects"])


async def _get_project(db: AsyncSession, project_id: UUID) -> Project:
    p = await db.get(Project, project_id)
    if not p:
        raise HTTPException(status_code=404, detail="project not found")
    return p


@router.get("", response_model=list[ProjectOut])
async def list_projects(db: AsyncSession = Depends(get_db)) -> list[Project]:
    return (await db.execute(select(Project).order_by(Project.created_at.desc()))).scalars().all()


@router.post("", response_model=ProjectOut, status_code=201)
async def create_project(body: ProjectCreate, db: AsyncSession = Depends(get_db)) -> Project:
    now = datetime.now(timezone.utc)
    p = Project(
        name=body.name.strip(),
        client_name=body.client_name,
        client_email=body.client_email,
        client_phone=body.client_phone,
        address=body.address,
        created_at=now,
        updated_at=now,
    )
    db.add(p)
    await db.commit()
    await db.refresh(p)
    return p


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(project_id: UUID, db: AsyncSession = Depends(get_db)) -> Project:
    return await _get_project(db, project_id)


@router.delete("/{project_id}", response_model=DeleteResult)
async def remove_project(project_id: UUID, db: AsyncSession = Depends(get_db)) -> DeleteResult:
    await _get_project(db, project_id)
    failures = await delete_project(db, project_id)
    await db.commit()
    return DeleteResult(id=project_id, accounting_failures=failures)


@router.get("/{project_id}/synopsis", response_model=GeneratedSynopsisOut)
async def project_synopsis(project_id: UUID, db: AsyncSession = Depends(get_db)) -> GeneratedSynopsisOut:
    """
    Room-by-room color specification generated from the project's annotations,
    with universal trim/ceiling colors promoted into the summary.
    """
    p = await _get_project(db, project_id)
    data = await generate_project_synopsis(db, p)
    return GeneratedSynopsisOut.model_validate(dataclasses.asdict(data))


@router.get("/{project_id}/annotation-suggestions", response_model=SuggestionsOut)
async def annotation_suggestions(
    project_id: UUID,
    limit: int | None = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db),
) -> SuggestionsOut:
    await _get_project(db, project_id)
    n = min(int(limit or settings.suggestion_limit_default), settings.suggestion_limit_max)
    snapshots = await load_project_annotations(db, project_id, newest_first=True)
    suggestions = rank(snapshots, limit=n)
    return SuggestionsOut.model_validate(
        {"suggestions": [dataclasses.asdict(s) for s in suggestions], "total_annotations": len(snapshots)}
    )


@router.get("/{project_id}/photos", response_model=list[PhotoOut])
async def list_photos(project_id: UUID, db: AsyncSession = Depends(get_db)) -> list[Photo]:
    await _get_project(db, project_id)
    stmt = select(Photo).where(Photo.project_id == project_id).order_by(Photo.created_at.asc(), Photo.id.asc())
    return (await db.execute(stmt)).scalars().all()


@router.post("/{project_id}/photos", response_model=PhotoOut, status_code=201)
async def register_photo(project_id: UUID, body: PhotoCreate, db: AsyncSession = Depends(get_db)) -> Photo:
    """Record photo metadata; the upload itself is handled by the storage service."""
    await _get_project(db, project_id)
    if body.room_id is not None and not await db.get(Room, body.room_id):
        raise HTTPException(status_code=404, detail="room not found")
    ph = Photo(
        project_id=project_id,
        room_id=body.room_id,
        filename=body.filename,
        original_filename=body.original_filename or body.filename,
        storage_path=body.storage_path,
        created_at=datetime.now(timezone.utc),
    )
    db.add(ph)
    await db.commit()
    await db.refresh(ph)
    return ph
