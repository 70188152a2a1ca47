"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "catalog_colors",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("color_code", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("manufacturer", sa.Text(), nullable=False),
        sa.Column("hex_color", sa.Text(), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("first_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("usage_count >= 0", name="ck_catalog_colors_usage_count_nonneg"),
    )
    op.create_index(
        "ux_catalog_colors_manufacturer_code", "catalog_colors", ["manufacturer", "color_code"], unique=True
    )
    op.create_index("ix_catalog_colors_usage_count", "catalog_colors", ["usage_count"])

    op.create_table(
        "color_availability",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("color_id", sa.Uuid(), sa.ForeignKey("catalog_colors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_line", sa.Text(), nullable=False),
        sa.Column("sheen", sa.Text(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index("ix_color_availability_color_id", "color_availability", ["color_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("room_type", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"])

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("client_name", sa.Text(), nullable=True),
        sa.Column("client_email", sa.Text(), nullable=True),
        sa.Column("client_phone", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "photos",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_id", sa.Uuid(), sa.ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("original_filename", sa.Text(), nullable=False),
        sa.Column("storage_path", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_photos_project_id", "photos", ["project_id"])

    op.create_table(
        "annotations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("photo_id", sa.Uuid(), sa.ForeignKey("photos.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_id", sa.Uuid(), sa.ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True),
        sa.Column("kind", sa.Text(), nullable=False, server_default=sa.text("'color_tag'")),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("surface_type", sa.Text(), nullable=True),
        sa.Column("color_id", sa.Uuid(), sa.ForeignKey("catalog_colors.id", ondelete="RESTRICT"), nullable=True),
        sa.Column("product_line", sa.Text(), nullable=True),
        sa.Column("sheen", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_annotations_photo_id", "annotations", ["photo_id"])
    op.create_index("ix_annotations_color_id", "annotations", ["color_id"])

    op.create_table(
        "color_synopses",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "synopsis_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "synopsis_id", sa.Uuid(), sa.ForeignKey("color_synopses.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("room_id", sa.Uuid(), sa.ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("color_id", sa.Uuid(), sa.ForeignKey("catalog_colors.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("surface_type", sa.Text(), nullable=False),
        sa.Column("product_line", sa.Text(), nullable=False),
        sa.Column("sheen", sa.Text(), nullable=False),
        sa.Column("surface_area", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_synopsis_entries_synopsis_id", "synopsis_entries", ["synopsis_id"])
    op.create_index("ix_synopsis_entries_color_id", "synopsis_entries", ["color_id"])

    op.create_table(
        "color_usage_ledger",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("color_id", sa.Uuid(), sa.ForeignKey("catalog_colors.id", ondelete="CASCADE"), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("reference_kind", sa.Text(), nullable=True),
        sa.Column("reference_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_color_usage_ledger_color_id", "color_usage_ledger", ["color_id"])
    op.create_index("ix_color_usage_ledger_created_at", "color_usage_ledger", ["created_at"])


def downgrade() -> None:
    op.drop_table("color_usage_ledger")
    op.drop_table("synopsis_entries")
    op.drop_table("color_synopses")
    op.drop_table("annotations")
    op.drop_table("photos")
    op.drop_table("projects")
    op.drop_table("rooms")
    op.drop_table("color_availability")
    op.drop_table("catalog_colors")
