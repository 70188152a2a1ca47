from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from colorspec.db.base import Base, utcnow


class CatalogColor(Base):
    __tablename__ = "catalog_colors"
    __table_args__ = (CheckConstraint("usage_count >= 0", name="ck_catalog_colors_usage_count_nonneg"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    color_code: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    manufacturer: Mapped[str] = mapped_column(Text, nullable=False)
    hex_color: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Maintained by usage_service only: live annotation + synopsis entry references.
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Set once, when the first reference is added; never cleared.
    first_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    availability: Mapped[list["ColorAvailability"]] = relationship(
        back_populates="color",
        order_by="[ColorAvailability.position, ColorAvailability.id]",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ColorAvailability(Base):
    __tablename__ = "color_availability"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    color_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("catalog_colors.id", ondelete="CASCADE"), nullable=False
    )
    product_line: Mapped[str] = mapped_column(Text, nullable=False)
    sheen: Mapped[str] = mapped_column(Text, nullable=False)
    # Stored order; position 0 is the default product line/sheen for the color.
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    color: Mapped[CatalogColor] = relationship(back_populates="availability")


Index("ux_catalog_colors_manufacturer_code", CatalogColor.manufacturer, CatalogColor.color_code, unique=True)
Index("ix_catalog_colors_usage_count", CatalogColor.usage_count)
Index("ix_color_availability_color_id", ColorAvailability.color_id)
