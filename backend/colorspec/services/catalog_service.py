from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from colorspec.db.models.catalog_color import CatalogColor, ColorAvailability
from colorspec.schemas.color import ColorImportItem, normalize_hex_color

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    created: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def expand_product_lines(product_lines) -> list[tuple[str, str]]:
    """Flatten [{product_line, sheens[]}] into ordered, distinct (line, sheen) pairs."""
    out: dict[tuple[str, str], None] = {}
    for pl in product_lines:
        line = pl.product_line.strip()
        for sheen in pl.sheens:
            sheen = sheen.strip()
            if line and sheen:
                out[(line, sheen)] = None
    return list(out)


async def find_color_id(session: AsyncSession, manufacturer: str, color_code: str) -> UUID | None:
    return await session.scalar(
        select(CatalogColor.id).where(CatalogColor.manufacturer == manufacturer, CatalogColor.color_code == color_code)
    )


async def create_color(
    session: AsyncSession,
    *,
    color_code: str,
    name: str,
    manufacturer: str,
    hex_color: str | None,
    availability: Iterable[tuple[str, str]],
) -> CatalogColor:
    """Insert a color; availability positions follow the given order (0 is the default)."""
    now = datetime.now(timezone.utc)
    c = CatalogColor(
        color_code=color_code,
        name=name,
        manufacturer=manufacturer,
        hex_color=hex_color,
        usage_count=0,
        created_at=now,
        updated_at=now,
    )
    session.add(c)
    await session.flush()
    for pos, (line, sheen) in enumerate(availability):
        session.add(ColorAvailability(color_id=c.id, product_line=line, sheen=sheen, position=pos))
    await session.flush()
    return c


async def import_colors(
    session: AsyncSession,
    items: Iterable[ColorImportItem],
    *,
    skip_duplicates: bool = True,
) -> ImportReport:
    """
    Create catalog colors in bulk.

    Items missing a code, name or manufacturer, or carrying a bad hex value,
    are skipped with an error line. Existing colors (same manufacturer and
    code, in the catalog or earlier in the batch) are skipped; without
    `skip_duplicates` each one is also reported as an error.
    """
    report = ImportReport()
    seen: set[tuple[str, str]] = set()
    for item in items:
        code = (item.color_code or "").strip()
        name = (item.name or "").strip()
        manufacturer = (item.manufacturer or "").strip()
        if not (code and name and manufacturer):
            report.errors.append(f"missing required fields for {code or 'unknown'}")
            report.skipped += 1
            continue

        try:
            hex_color = normalize_hex_color(item.hex_color)
        except ValueError as e:
            report.errors.append(f"error importing {code}: {e}")
            report.skipped += 1
            continue

        key = (manufacturer, code)
        if key in seen or await find_color_id(session, manufacturer, code):
            if not skip_duplicates:
                report.errors.append(f"color {manufacturer} {code} already exists")
            report.skipped += 1
            continue

        await create_color(
            session,
            color_code=code,
            name=name,
            manufacturer=manufacturer,
            hex_color=hex_color,
            availability=expand_product_lines(item.product_lines),
        )
        seen.add(key)
        report.created += 1

    logger.info(
        "color bulk import: created=%s, skipped=%s, errors=%s", report.created, report.skipped, len(report.errors)
    )
    return report
