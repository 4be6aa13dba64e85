# backend/alembic/versions/001_rideshare_core.py
"""Booking core - vehicles availability, bookings, chat and notifications

Revision ID: 001_rideshare_core
Revises:
Create Date: 2026-10-19 00:00:00.000000

Vehicles are owned by the listing service; this schema only carries the
columns the booking core reads or writes. Bookings freeze their price
breakdown at creation. A chat channel shares its booking's id.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_rideshare_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create booking core tables."""
    print("Creating booking core tables...")
    is_postgres = op.get_bind().dialect.name == "postgresql"

    op.create_table(
        "vehicles",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("daily_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("total_rentals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("daily_rate > 0", name="check_vehicle_rate_positive"),
        sa.CheckConstraint("total_rentals >= 0", name="check_total_rentals_non_negative"),
    )
    op.create_index("ix_vehicles_id", "vehicles", ["id"])
    op.create_index("ix_vehicles_owner_id", "vehicles", ["owner_id"])

    booking_checks = [
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'active', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending', 'paid', 'refunded')",
            name="ck_bookings_payment_status",
        ),
        sa.CheckConstraint("rental_days >= 1", name="check_rental_days_positive"),
        sa.CheckConstraint("daily_rate > 0", name="check_booking_rate_positive"),
        sa.CheckConstraint("return_date > pickup_date", name="check_return_after_pickup"),
    ]
    if is_postgres:
        booking_checks.extend(
            [
                sa.CheckConstraint(
                    "total_price = subtotal + service_fee", name="check_total_price_identity"
                ),
                sa.CheckConstraint(
                    "owner_earnings = subtotal - commission",
                    name="check_owner_earnings_identity",
                ),
            ]
        )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("renter_id", sa.String(64), nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("vehicle_id", sa.String(26), nullable=False),
        sa.Column("vehicle_name", sa.String(200), nullable=False),
        sa.Column("pickup_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rental_days", sa.Integer(), nullable=False),
        # Pricing snapshot, never recomputed
        sa.Column("daily_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("service_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("commission", sa.Numeric(10, 2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("service_fee_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("owner_earnings", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("cancelled_by_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"]),
        *booking_checks,
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_renter_id", "bookings", ["renter_id"])
    op.create_index("ix_bookings_owner_id", "bookings", ["owner_id"])
    op.create_index("ix_bookings_vehicle_id", "bookings", ["vehicle_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_vehicle_status", "bookings", ["vehicle_id", "status"])

    op.create_table(
        "chat_channels",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("renter_id", sa.String(64), nullable=False),
        sa.Column("owner_id", sa.String(64), nullable=False),
        sa.Column("vehicle_name", sa.String(200), nullable=True),
        sa.Column("last_message", sa.Text(), nullable=True),
        sa.Column("last_message_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sender_id", sa.String(64), nullable=True),
        sa.Column("message_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["id"], ["bookings.id"]),
    )
    op.create_index("ix_chat_channels_renter_id", "chat_channels", ["renter_id"])
    op.create_index("ix_chat_channels_owner_id", "chat_channels", ["owner_id"])

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("channel_id", sa.String(26), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.String(64), nullable=False),
        sa.Column("receiver_id", sa.String(64), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["channel_id"], ["chat_channels.id"]),
        sa.UniqueConstraint("channel_id", "sequence", name="uq_chat_messages_channel_sequence"),
    )
    op.create_index(
        "ix_chat_messages_channel_sent", "chat_messages", ["channel_id", "sent_at", "sequence"]
    )
    op.create_index("ix_chat_messages_unread", "chat_messages", ["channel_id", "read", "sender_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("related_id", sa.String(26), nullable=True),
        sa.Column("related_type", sa.String(32), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "type IN ('booking_request', 'booking_confirmed', 'booking_cancelled', "
            "'booking_completed', 'message', 'payment_received')",
            name="ck_notifications_type",
        ),
    )
    op.create_index("idx_notifications_user_created", "notifications", ["user_id", "created_at"])
    op.create_index("idx_notifications_user_unread", "notifications", ["user_id", "read"])

    print("Booking core tables created successfully")


def downgrade() -> None:
    """Drop booking core tables."""
    print("Dropping booking core tables...")

    op.drop_index("idx_notifications_user_unread", table_name="notifications")
    op.drop_index("idx_notifications_user_created", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_chat_messages_unread", table_name="chat_messages")
    op.drop_index("ix_chat_messages_channel_sent", table_name="chat_messages")
    op.drop_table("chat_messages")

    op.drop_index("ix_chat_channels_owner_id", table_name="chat_channels")
    op.drop_index("ix_chat_channels_renter_id", table_name="chat_channels")
    op.drop_table("chat_channels")

    op.drop_index("ix_bookings_vehicle_status", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_vehicle_id", table_name="bookings")
    op.drop_index("ix_bookings_owner_id", table_name="bookings")
    op.drop_index("ix_bookings_renter_id", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_vehicles_owner_id", table_name="vehicles")
    op.drop_index("ix_vehicles_id", table_name="vehicles")
    op.drop_table("vehicles")
