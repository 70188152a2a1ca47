from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from colorspec.core.errors import BatchAccountingPartialFailure, CounterUnderflowError, MissingReferenceError
from colorspec.db.models.annotation import Annotation
from colorspec.db.models.catalog_color import CatalogColor
from colorspec.db.models.color_usage_ledger import ColorUsageLedger
from colorspec.db.models.synopsis import SynopsisEntry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UsageChange:
    color_id: UUID
    requested: int
    applied: int
    underflow: bool = False


def _ledger(
    session: AsyncSession,
    color_id: UUID,
    delta: int,
    reason: str,
    reference_kind: str | None,
    reference_id: UUID | None,
) -> None:
    session.add(
        ColorUsageLedger(
            color_id=color_id,
            delta=int(delta),
            reason=reason,
            reference_kind=reference_kind,
            reference_id=reference_id,
            created_at=_utcnow(),
        )
    )


async def on_color_reference_added(
    session: AsyncSession,
    color_id: UUID,
    *,
    at: datetime,
    count: int = 1,
    reference_kind: str | None = None,
    reference_id: UUID | None = None,
) -> UsageChange | None:
    """
    Record `count` new references to a color.

    `at` is the reference's creation time; it becomes first_used_at only when
    the color has never been used. Unknown colors are logged and ignored so the
    triggering mutation is never aborted.
    """
    n = int(count)
    if n <= 0:
        return None
    res = await session.execute(
        update(CatalogColor)
        .where(CatalogColor.id == color_id)
        .values(
            usage_count=CatalogColor.usage_count + n,
            first_used_at=func.coalesce(CatalogColor.first_used_at, at),
            updated_at=_utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if not res.rowcount:
        logger.warning(
            "usage increment skipped: %s, reference=%s:%s",
            MissingReferenceError("color", color_id),
            reference_kind,
            reference_id,
        )
        return None

    _ledger(session, color_id, n, "reference_added", reference_kind, reference_id)
    logger.info(
        "color usage incremented: color_id=%s, delta=+%s, reference=%s:%s", color_id, n, reference_kind, reference_id
    )
    return UsageChange(color_id=color_id, requested=n, applied=n)


async def on_color_reference_removed(
    session: AsyncSession,
    color_id: UUID,
    *,
    count: int = 1,
    reason: str = "reference_removed",
    reference_kind: str | None = None,
    reference_id: UUID | None = None,
) -> UsageChange | None:
    """
    Remove `count` references from a color, flooring usage_count at 0.

    An over-decrement is clamped and reported as CounterUnderflowError (logged,
    not raised). first_used_at is never touched.
    """
    n = int(count)
    if n <= 0:
        return None

    res = await session.execute(
        update(CatalogColor)
        .where(CatalogColor.id == color_id, CatalogColor.usage_count >= n)
        .values(usage_count=CatalogColor.usage_count - n, updated_at=_utcnow())
        .execution_options(synchronize_session=False)
    )
    if res.rowcount:
        _ledger(session, color_id, -n, reason, reference_kind, reference_id)
        logger.info(
            "color usage decremented: color_id=%s, delta=-%s, reference=%s:%s",
            color_id,
            n,
            reference_kind,
            reference_id,
        )
        return UsageChange(color_id=color_id, requested=n, applied=n)

    available = await session.scalar(select(CatalogColor.usage_count).where(CatalogColor.id == color_id))
    if available is None:
        logger.warning(
            "usage decrement skipped: %s, reference=%s:%s",
            MissingReferenceError("color", color_id),
            reference_kind,
            reference_id,
        )
        return None

    # Clamp in SQL so a concurrent increment since the read is not lost.
    await session.execute(
        update(CatalogColor)
        .where(CatalogColor.id == color_id)
        .values(
            usage_count=case((CatalogColor.usage_count >= n, CatalogColor.usage_count - n), else_=0),
            updated_at=_utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    applied = int(available)
    _ledger(session, color_id, -applied, "underflow_clamped", reference_kind, reference_id)
    logger.warning(
        "data integrity: %s, reference=%s:%s (an increment was missed upstream)",
        CounterUnderflowError(color_id, n, applied),
        reference_kind,
        reference_id,
    )
    return UsageChange(color_id=color_id, requested=n, applied=applied, underflow=True)


async def on_color_reference_changed(
    session: AsyncSession,
    old_color_id: UUID | None,
    new_color_id: UUID | None,
    *,
    at: datetime,
    reference_kind: str | None = None,
    reference_id: UUID | None = None,
) -> None:
    if old_color_id == new_color_id:
        return
    if old_color_id is not None:
        await on_color_reference_removed(
            session, old_color_id, reference_kind=reference_kind, reference_id=reference_id
        )
    if new_color_id is not None:
        await on_color_reference_added(
            session, new_color_id, at=at, reference_kind=reference_kind, reference_id=reference_id
        )


def count_by_color(color_ids) -> Counter:
    return Counter(cid for cid in color_ids if cid is not None)


async def apply_batch_removals(
    session: AsyncSession,
    counts: Mapping[UUID, int],
    *,
    reference_kind: str | None = None,
    reference_id: UUID | None = None,
) -> dict[UUID, UsageChange | None]:
    """
    Apply one summed decrement per distinct color.

    Same observable result as one decrement per row (clamping included). Each
    color runs in its own SAVEPOINT; failures are collected and raised as
    BatchAccountingPartialFailure once every color has been attempted, leaving
    the caller's own writes intact.
    """
    applied: dict[UUID, UsageChange | None] = {}
    failures: dict[UUID, str] = {}
    for color_id, n in counts.items():
        if not n:
            continue
        try:
            async with session.begin_nested():
                applied[color_id] = await on_color_reference_removed(
                    session,
                    color_id,
                    count=n,
                    reason="batch_removed",
                    reference_kind=reference_kind,
                    reference_id=reference_id,
                )
        except SQLAlchemyError as e:
            failures[color_id] = str(e)
            logger.error("batch usage decrement failed: color_id=%s, count=%s, error=%s", color_id, n, e)
    if failures:
        raise BatchAccountingPartialFailure(failures)
    return applied


async def apply_batch_additions(
    session: AsyncSession,
    counts: Mapping[UUID, int],
    *,
    at: datetime,
    reference_kind: str | None = None,
    reference_id: UUID | None = None,
) -> dict[UUID, UsageChange | None]:
    out: dict[UUID, UsageChange | None] = {}
    for color_id, n in counts.items():
        out[color_id] = await on_color_reference_added(
            session, color_id, at=at, count=n, reference_kind=reference_kind, reference_id=reference_id
        )
    return out


async def count_live_references(session: AsyncSession, color_id: UUID) -> int:
    annotations = await session.scalar(
        select(func.count()).select_from(Annotation).where(Annotation.color_id == color_id)
    )
    entries = await session.scalar(
        select(func.count()).select_from(SynopsisEntry).where(SynopsisEntry.color_id == color_id)
    )
    return int(annotations or 0) + int(entries or 0)


async def recalculate_usage(session: AsyncSession, color_id: UUID) -> CatalogColor:
    """
    Reset usage_count from the live annotation + synopsis entry references.

    Repair path for reported accounting failures. first_used_at is only filled
    when missing, from the earliest live reference.
    """
    c = await session.get(CatalogColor, color_id, populate_existing=True)
    if not c:
        raise MissingReferenceError("color", color_id)

    live = await count_live_references(session, color_id)
    before = int(c.usage_count)
    if c.first_used_at is None and live:
        earliest = [
            await session.scalar(select(func.min(Annotation.created_at)).where(Annotation.color_id == color_id)),
            await session.scalar(select(func.min(SynopsisEntry.created_at)).where(SynopsisEntry.color_id == color_id)),
        ]
        earliest = [e for e in earliest if e is not None]
        if earliest:
            c.first_used_at = min(earliest)

    c.usage_count = live
    c.updated_at = _utcnow()
    if live != before:
        _ledger(session, color_id, live - before, "recalculated", None, None)
        logger.warning("color usage recalculated: color_id=%s, before=%s, after=%s", color_id, before, live)
    await session.flush()
    return c
