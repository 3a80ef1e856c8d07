# backend/alembic/versions/001_booking_core.py
"""Booking core - users, trainers, sessions, schedules, capacity groups and bookings

Revision ID: 001_booking_core
Revises:
Create Date: 2025-03-01 00:00:00.000000

Creates the studio catalogue (trainers, sessions), the dated schedule with
its time slots, the capacity groups bookings are admitted into, bookings
themselves, cancellation requests and trainer notifications.

Occupancy is enforced in the database as well as in the allocator:
0 <= current_count <= capacity on every group, and (schedule_id,
group_number) is unique so two transactions can never open the same group.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_booking_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create booking core tables."""
    print("Creating booking core tables...")

    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="client"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("loyalty_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('admin', 'manager', 'trainer', 'client')", name="ck_users_role"),
        sa.CheckConstraint("loyalty_points >= 0", name="ck_users_loyalty_points_non_negative"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "trainers",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("specialty", sa.String(120), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_trainers_id", "trainers", ["id"])
    op.create_index("ix_trainers_user_id", "trainers", ["user_id"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("trainer_id", sa.String(26), nullable=True),
        sa.Column("category", sa.String(40), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        # NULL capacity means "use the configured default"
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["trainer_id"], ["trainers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "category IN ('yoga', 'pilates', 'strength_training')", name="ck_sessions_category"
        ),
        sa.CheckConstraint("duration_minutes > 0", name="ck_sessions_duration_positive"),
        sa.CheckConstraint("price >= 0", name="ck_sessions_price_non_negative"),
    )
    op.create_index("ix_sessions_id", "sessions", ["id"])
    op.create_index("ix_sessions_category", "sessions", ["category"])

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("status IN ('active', 'cancelled')", name="ck_schedules_status"),
    )
    op.create_index("ix_schedules_id", "schedules", ["id"])
    op.create_index("ix_schedules_date", "schedules", ["date"])

    op.create_table(
        "schedule_time_slots",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("schedule_id", sa.String(26), nullable=False),
        sa.Column("session_id", sa.String(26), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedules.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_schedule_time_slots_id", "schedule_time_slots", ["id"])
    op.create_index(
        "ix_schedule_time_slots_schedule_start", "schedule_time_slots", ["schedule_id", "start_time"]
    )

    op.create_table(
        "session_groups",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("schedule_id", sa.String(26), nullable=False),
        sa.Column("group_number", sa.Integer(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("current_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedules.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("schedule_id", "group_number", name="uq_session_groups_schedule_number"),
        sa.CheckConstraint("group_number >= 0", name="ck_session_groups_number_non_negative"),
        sa.CheckConstraint("capacity > 0", name="ck_session_groups_capacity_positive"),
        sa.CheckConstraint("current_count >= 0", name="ck_session_groups_count_non_negative"),
        sa.CheckConstraint(
            "current_count <= capacity", name="ck_session_groups_count_within_capacity"
        ),
    )
    op.create_index("ix_session_groups_id", "session_groups", ["id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=True),
        sa.Column("time_slot_id", sa.String(26), nullable=False),
        sa.Column("schedule_id", sa.String(26), nullable=False),
        sa.Column("group_id", sa.String(26), nullable=True),
        # Guest contact, used when user_id is NULL
        sa.Column("guest_name", sa.String(120), nullable=True),
        sa.Column("guest_email", sa.String(255), nullable=True),
        sa.Column("guest_phone", sa.String(30), nullable=True),
        sa.Column("payment_reference", sa.String(120), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="booked"),
        sa.Column("date_booked", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["time_slot_id"], ["schedule_time_slots.id"]),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedules.id"]),
        sa.ForeignKeyConstraint(["group_id"], ["session_groups.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('booked', 'cancelled', 'completed', 'missed')", name="ck_bookings_status"
        ),
        sa.CheckConstraint(
            "user_id IS NOT NULL OR (guest_name IS NOT NULL AND guest_phone IS NOT NULL)",
            name="ck_bookings_user_or_guest",
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_time_slot_id", "bookings", ["time_slot_id"])
    op.create_index("ix_bookings_schedule_id", "bookings", ["schedule_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_schedule_status", "bookings", ["schedule_id", "status"])

    op.create_table(
        "cancellation_requests",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("requester_id", sa.String(26), nullable=True),
        sa.Column("approver_id", sa.String(26), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["approver_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="ck_cancellation_requests_status"
        ),
    )
    op.create_index("ix_cancellation_requests_id", "cancellation_requests", ["id"])
    op.create_index("ix_cancellation_requests_booking_id", "cancellation_requests", ["booking_id"])
    op.create_index("ix_cancellation_requests_status", "cancellation_requests", ["status"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=True),
        sa.Column("type", sa.String(40), nullable=False, server_default="new_booking"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    print("Booking core tables created")


def downgrade() -> None:
    """Drop booking core tables in reverse dependency order."""
    print("Dropping booking core tables...")

    op.drop_table("notifications")
    op.drop_table("cancellation_requests")
    op.drop_table("bookings")
    op.drop_table("session_groups")
    op.drop_table("schedule_time_slots")
    op.drop_table("schedules")
    op.drop_table("sessions")
    op.drop_table("trainers")
    op.drop_table("users")
