from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from colorspec.db.base import Base, utcnow
from colorspec.db.models.catalog_color import CatalogColor
from colorspec.db.models.room import Room


class ColorSynopsis(Base):
    __tablename__ = "color_synopses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    entries: Mapped[list["SynopsisEntry"]] = relationship(
        back_populates="synopsis",
        order_by="[SynopsisEntry.created_at, SynopsisEntry.id]",
        passive_deletes=True,
    )


class SynopsisEntry(Base):
    __tablename__ = "synopsis_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    synopsis_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("color_synopses.id", ondelete="CASCADE"), nullable=False
    )
    room_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False)
    color_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("catalog_colors.id", ondelete="RESTRICT"), nullable=False
    )

    surface_type: Mapped[str] = mapped_column(Text, nullable=False)
    product_line: Mapped[str] = mapped_column(Text, nullable=False)
    sheen: Mapped[str] = mapped_column(Text, nullable=False)
    surface_area: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    synopsis: Mapped[ColorSynopsis] = relationship(back_populates="entries")
    room: Mapped[Room] = relationship()
    color: Mapped[CatalogColor] = relationship()


Index("ix_synopsis_entries_synopsis_id", SynopsisEntry.synopsis_id)
Index("ix_synopsis_entries_color_id", SynopsisEntry.color_id)
