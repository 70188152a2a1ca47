from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from colorspec.schemas.common import APIModel


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1)
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    address: str | None = None


class ProjectOut(APIModel):
    id: UUID
    name: str
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    address: str | None = None
    created_at: datetime
    updated_at: datetime


class PhotoCreate(BaseModel):
    filename: str = Field(min_length=1)
    original_filename: str | None = None
    storage_path: str | None = None
    room_id: UUID | None = None


class PhotoOut(APIModel):
    id: UUID
    project_id: UUID
    room_id: UUID | None = None
    filename: str
    original_filename: str
    storage_path: str | None = None
    created_at: datetime
