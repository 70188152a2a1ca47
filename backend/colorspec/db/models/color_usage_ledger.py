from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from colorspec.db.base import Base, utcnow


class ColorUsageLedger(Base):
    __tablename__ = "color_usage_ledger"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    color_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("catalog_colors.id", ondelete="CASCADE"), nullable=False
    )

    # Effective change applied to usage_count (after clamping at 0)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    # reference_added / reference_removed / batch_removed / underflow_clamped / recalculated
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    # annotation / synopsis_entry / photo / synopsis / project
    reference_kind: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


Index("ix_color_usage_ledger_color_id", ColorUsageLedger.color_id)
Index("ix_color_usage_ledger_created_at", ColorUsageLedger.created_at)
