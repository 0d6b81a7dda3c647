"""create events, reservations and guest entries

Revision ID: 0001_create_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_create_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("venue", sa.String(length=255), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("organizer", sa.String(length=255), nullable=True),
        sa.Column("contact_whatsapp", sa.String(length=32), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("booked_seats", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False, server_default="10"),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="AED"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("carousel_position", sa.Integer(), nullable=True),
        sa.Column("featured_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("capacity >= 1", name="ck_events_capacity_positive"),
        sa.CheckConstraint("booked_seats >= 0", name="ck_events_booked_seats_non_negative"),
        sa.CheckConstraint("booked_seats <= capacity", name="ck_events_booked_within_capacity"),
        sa.CheckConstraint("price >= 0", name="ck_events_price_non_negative"),
        sa.CheckConstraint(
            "commission_rate >= 0 AND commission_rate <= 100", name="ck_events_commission_rate_range"
        ),
        sa.CheckConstraint(
            "carousel_position IS NULL OR carousel_position >= 1", name="ck_events_carousel_position_positive"
        ),
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("ticket_count", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("net_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=8), nullable=False, server_default="AED"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="cash"),
        sa.Column("ticket_type", sa.String(length=30), nullable=False, server_default="regular"),
        sa.Column("special_requirements", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("seats_released", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("ticket_count >= 1 AND ticket_count <= 20", name="ck_reservations_ticket_count_range"),
    )

    op.create_table(
        "guest_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "reservation_id", sa.Integer(), sa.ForeignKey("reservations.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("guest_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("companions", sa.JSON(), nullable=False),
        sa.Column("group_size", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("rsvp_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("checked_in", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("source", sa.String(length=20), nullable=False, server_default="customer"),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "phone", name="uq_guest_entries_event_phone"),
        sa.CheckConstraint("group_size >= 1 AND group_size <= 10", name="ck_guest_entries_group_size_range"),
    )

    op.create_index("ix_events_starts_at", "events", ["starts_at"])
    op.create_index("ix_events_is_featured", "events", ["is_featured"])
    op.create_index("ix_reservations_event_id", "reservations", ["event_id"])
    op.create_index("ix_reservations_phone", "reservations", ["phone"])
    op.create_index("ix_guest_entries_event_id", "guest_entries", ["event_id"])


def downgrade():
    op.drop_index("ix_guest_entries_event_id", table_name="guest_entries")
    op.drop_index("ix_reservations_phone", table_name="reservations")
    op.drop_index("ix_reservations_event_id", table_name="reservations")
    op.drop_index("ix_events_is_featured", table_name="events")
    op.drop_index("ix_events_starts_at", table_name="events")
    op.drop_table("guest_entries")
    op.drop_table("reservations")
    op.drop_table("events")
