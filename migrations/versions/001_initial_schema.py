"""Initial schema: rides and bookings with seat-ledger constraints.

Revision ID: 001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── rides ─────────────────────────────────────────────────────────
    op.create_table(
        "rides",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("driver_id", sa.String(64), nullable=False),
        sa.Column("vehicle_id", sa.String(64), nullable=True),
        sa.Column("source_lat", sa.Float, nullable=False),
        sa.Column("source_lng", sa.Float, nullable=False),
        sa.Column("source_address", sa.String(255), nullable=False),
        sa.Column("dest_lat", sa.Float, nullable=False),
        sa.Column("dest_lng", sa.Float, nullable=False),
        sa.Column("dest_address", sa.String(255), nullable=False),
        sa.Column("departure_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("seats_total", sa.Integer, nullable=False),
        sa.Column("seats_available", sa.Integer, nullable=False),
        sa.Column("cost_per_seat", sa.Integer, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column(
            "status",
            sa.Enum("scheduled", "ongoing", "completed", name="ridestatus"),
            nullable=False,
            server_default="scheduled",
        ),
        sa.Column("current_lat", sa.Float, nullable=True),
        sa.Column("current_lng", sa.Float, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("seats_total > 0", name="ck_rides_seats_total_positive"),
        sa.CheckConstraint(
            "seats_available >= 0", name="ck_rides_seats_available_non_negative"
        ),
        sa.CheckConstraint(
            "seats_available <= seats_total", name="ck_rides_seats_within_total"
        ),
    )
    op.create_index("idx_rides_driver", "rides", ["driver_id"])
    op.create_index("idx_rides_departure", "rides", ["departure_time"])
    op.create_index("idx_rides_active", "rides", ["is_active"])

    # ── bookings ──────────────────────────────────────────────────────
    # ride_id is intentionally not a foreign key (rides are hard-deleted).
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("ride_id", sa.String(36), nullable=False),
        sa.Column("passenger_id", sa.String(64), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "accepted",
                "rejected",
                "cancelled",
                name="bookingstatus",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("seats_booked", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("seats_booked > 0", name="ck_bookings_seats_positive"),
    )
    op.create_index("idx_bookings_ride", "bookings", ["ride_id"])
    op.create_index("idx_bookings_passenger", "bookings", ["passenger_id"])
    op.create_index("idx_bookings_status", "bookings", ["status"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("rides")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS ridestatus")
