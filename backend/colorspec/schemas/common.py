from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ExportModel(BaseModel):
    """camelCase on the wire for structures consumed by export/quick-pick clients."""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class Health(APIModel):
    status: str
    time: datetime


class DeleteResult(APIModel):
    id: UUID
    deleted: bool = True
    # Colors whose usage decrement failed; repair with POST /colors/{id}/usage/recalculate
    accounting_failures: list[UUID] = []


def strip_or_none(v: object) -> object:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v
