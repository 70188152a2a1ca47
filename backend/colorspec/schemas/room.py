from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from colorspec.schemas.common import APIModel


class RoomCreate(BaseModel):
    name: str = Field(min_length=1)
    room_type: str | None = None


class RoomOut(APIModel):
    id: UUID
    name: str
    room_type: str | None = None
    created_at: datetime


class RoomUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    room_type: str | None = None
