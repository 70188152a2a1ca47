from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from colorspec.api.deps import get_db
from colorspec.db.models.catalog_color import CatalogColor
from colorspec.db.models.color_usage_ledger import ColorUsageLedger
from colorspec.schemas.color import ColorBulkImport, ColorCreate, ColorImportResult, ColorOut, ColorUsageLedgerRow
from colorspec.services import catalog_service
from colorspec.services.usage_service import count_live_references, recalculate_usage


router = APIRouter(prefix="/colors", tags=["colors"])


async def _load_color(db: AsyncSession, color_id: UUID) -> CatalogColor:
    c = (
        await db.execute(
            select(CatalogColor)
            .where(CatalogColor.id == color_id)
            .options(selectinload(CatalogColor.availability))
            .execution_options(populate_existing=True)
        )
    ).scalars().first()
    if not c:
        raise HTTPException(status_code=404, detail="color not found")
    return c


@router.get("", response_model=list[ColorOut])
async def list_colors(
    manufacturer: str | None = Query(default=None),
    search: str | None = Query(default=None, description="Case-insensitive match on name, manufacturer or code"),
    db: AsyncSession = Depends(get_db),
) -> list[CatalogColor]:
    stmt = select(CatalogColor).options(selectinload(CatalogColor.availability))
    if manufacturer and manufacturer != "all":
        stmt = stmt.where(CatalogColor.manufacturer == manufacturer)
    if search:
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(CatalogColor.name).like(pattern),
                func.lower(CatalogColor.manufacturer).like(pattern),
                func.lower(CatalogColor.color_code).like(pattern),
            )
        )
    # Most used colors first
    stmt = stmt.order_by(
        CatalogColor.usage_count.desc(),
        CatalogColor.manufacturer.asc(),
        CatalogColor.color_code.asc(),
        CatalogColor.name.asc(),
    )
    return (await db.execute(stmt)).scalars().all()


@router.post("", response_model=ColorOut, status_code=201)
async def create_color(body: ColorCreate, db: AsyncSession = Depends(get_db)) -> CatalogColor:
    existing = await catalog_service.find_color_id(db, body.manufacturer, body.color_code)
    if existing:
        raise HTTPException(
            status_code=409,
            detail={
                "message": "color already exists for manufacturer",
                "manufacturer": body.manufacturer,
                "color_code": body.color_code,
                "color_id": str(existing),
            },
        )

    c = await catalog_service.create_color(
        db,
        color_code=body.color_code,
        name=body.name,
        manufacturer=body.manufacturer,
        hex_color=body.hex_color,
        availability=[(av.product_line.strip(), av.sheen.strip()) for av in body.availability],
    )
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"create color failed: {e.orig}")
    return await _load_color(db, c.id)


@router.post("/bulk-import", response_model=ColorImportResult)
async def bulk_import_colors(body: ColorBulkImport, db: AsyncSession = Depends(get_db)) -> ColorImportResult:
    report = await catalog_service.import_colors(db, body.colors, skip_duplicates=body.skip_duplicates)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"bulk import failed: {e.orig}")
    return ColorImportResult(created=report.created, skipped=report.skipped, errors=report.errors)


@router.get("/{color_id}", response_model=ColorOut)
async def get_color(color_id: UUID, db: AsyncSession = Depends(get_db)) -> CatalogColor:
    return await _load_color(db, color_id)


@router.delete("/{color_id}")
async def delete_color(color_id: UUID, db: AsyncSession = Depends(get_db)) -> dict:
    c = await _load_color(db, color_id)
    live = await count_live_references(db, color_id)
    if live:
        raise HTTPException(
            status_code=409,
            detail={"message": "color is referenced by annotations or synopsis entries", "references": live},
        )
    await db.delete(c)
    await db.commit()
    return {"id": str(color_id), "deleted": True, "color_code": c.color_code, "name": c.name}


@router.post("/{color_id}/usage/recalculate", response_model=ColorOut)
async def recalculate_color_usage(color_id: UUID, db: AsyncSession = Depends(get_db)) -> CatalogColor:
    await _load_color(db, color_id)
    await recalculate_usage(db, color_id)
    await db.commit()
    return await _load_color(db, color_id)


@router.get("/{color_id}/usage-ledger", response_model=list[ColorUsageLedgerRow])
async def color_usage_ledger(
    color_id: UUID,
    limit: int = Query(default=100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> list[ColorUsageLedger]:
    await _load_color(db, color_id)
    stmt = (
        select(ColorUsageLedger)
        .where(ColorUsageLedger.color_id == color_id)
        .order_by(ColorUsageLedger.created_at.desc(), ColorUsageLedger.id.desc())
        .limit(limit)
    )
    return (await db.execute(stmt)).scalars().all()
