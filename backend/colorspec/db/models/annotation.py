from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from colorspec.db.base import Base, utcnow
from colorspec.db.models.catalog_color import CatalogColor
from colorspec.db.models.project import Photo
from colorspec.db.models.room import Room


class Annotation(Base):
    __tablename__ = "annotations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    photo_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("photos.id", ondelete="CASCADE"), nullable=False
    )
    room_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True
    )

    # Drawing payload from the annotator (drawing/text/color_tag)
    kind: Mapped[str] = mapped_column(Text, nullable=False, default="color_tag")
    data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    surface_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    color_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("catalog_colors.id", ondelete="RESTRICT"), nullable=True
    )
    product_line: Mapped[str | None] = mapped_column(Text, nullable=True)
    sheen: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    photo: Mapped[Photo] = relationship()
    room: Mapped[Room | None] = relationship()
    color: Mapped[CatalogColor | None] = relationship()


Index("ix_annotations_photo_id", Annotation.photo_id)
Index("ix_annotations_color_id", Annotation.color_id)
