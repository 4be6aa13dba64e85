# backend/alembic/versions/002_booking_reviews.py
"""Booking reviews and commission report index

Revision ID: 002_booking_reviews
Revises: 001_rideshare_core
Create Date: 2026-10-19 00:00:00.000000

A completed booking carries at most one renter review. The reviewed flag is
the guard for the single-review write.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_booking_reviews"
down_revision: Union[str, None] = "001_rideshare_core"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add review columns to bookings."""
    print("Adding booking review columns...")

    with op.batch_alter_table("bookings") as batch_op:
        batch_op.add_column(
            sa.Column("reviewed", sa.Boolean(), nullable=False, server_default=sa.false())
        )
        batch_op.add_column(sa.Column("review_rating", sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column("review_comment", sa.Text(), nullable=True))
        batch_op.add_column(sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True))
        batch_op.create_check_constraint(
            "check_review_rating_range",
            "review_rating IS NULL OR (review_rating >= 1 AND review_rating <= 5)",
        )

    op.create_index("ix_bookings_created_status", "bookings", ["created_at", "status"])


def downgrade() -> None:
    """Remove review columns from bookings."""
    print("Dropping booking review columns...")

    op.drop_index("ix_bookings_created_status", table_name="bookings")

    with op.batch_alter_table("bookings") as batch_op:
        batch_op.drop_constraint("check_review_rating_range", type_="check")
        batch_op.drop_column("reviewed_at")
        batch_op.drop_column("review_comment")
        batch_op.drop_column("review_rating")
        batch_op.drop_column("reviewed")
