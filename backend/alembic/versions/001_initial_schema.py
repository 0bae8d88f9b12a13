"""Initial schema - users, gyms, spaces, availability, bookings, outbox

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-01 00:00:00.000000

On PostgreSQL, bookings also get a generated ``booking_span`` tstzrange and an
exclusion constraint that rejects two confirmed bookings with overlapping
intervals on the same space.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json_type() -> sa.types.TypeEngine:
    return postgresql.JSONB(astext_type=sa.Text()).with_variant(sa.JSON(), "sqlite")


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"

    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="renter"),
        sa.Column("sms_opt_in", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("stripe_customer_id", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "gyms",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("owner_id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(50), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="America/Denver"),
        sa.Column("cancellation_policy", sa.String(20), nullable=False, server_default="moderate"),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(32), nullable=True),
        sa.Column("stripe_account_id", sa.String(255), nullable=True),
        sa.Column("stripe_onboarded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_account_id"),
        sa.CheckConstraint(
            "cancellation_policy IN ('flexible', 'moderate', 'strict')",
            name="ck_gyms_cancellation_policy",
        ),
    )
    op.create_index("ix_gyms_id", "gyms", ["id"])
    op.create_index("ix_gyms_owner_id", "gyms", ["owner_id"])

    op.create_table(
        "spaces",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("gym_id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("space_type", sa.String(20), nullable=False, server_default="other"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("hourly_rate", sa.Integer(), nullable=False, comment="Minor units (cents)"),
        sa.Column("entry_instructions", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("hourly_rate >= 1500", name="ck_spaces_min_rate"),
    )
    op.create_index("ix_spaces_id", "spaces", ["id"])

    op.create_table(
        "availability_templates",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("space_id", sa.String(26), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["space_id"], ["spaces.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_templates_dow"),
    )
    op.create_index(
        "idx_availability_templates_space_dow",
        "availability_templates",
        ["space_id", "day_of_week"],
    )

    op.create_table(
        "availability_overrides",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("space_id", sa.String(26), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("blocked", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["space_id"], ["spaces.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(start_time IS NULL) = (end_time IS NULL)",
            name="ck_availability_overrides_window_pair",
        ),
    )
    op.create_index("ix_availability_overrides_date", "availability_overrides", ["date"])
    op.create_index(
        "idx_availability_overrides_space_date",
        "availability_overrides",
        ["space_id", "date"],
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("space_id", sa.String(26), nullable=False),
        sa.Column("renter_id", sa.String(26), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="confirmed"),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("platform_fee", sa.Integer(), nullable=False),
        sa.Column("gym_payout", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="usd"),
        sa.Column("stripe_payment_intent_id", sa.String(255), nullable=True),
        sa.Column("stripe_checkout_session_id", sa.String(255), nullable=True),
        sa.Column("stripe_refund_id", sa.String(255), nullable=True),
        sa.Column("refund_amount", sa.Integer(), nullable=True),
        sa.Column("waiver_accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by", sa.String(20), nullable=True),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["space_id"], ["spaces.id"]),
        sa.ForeignKeyConstraint(["renter_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("stripe_payment_intent_id"),
        sa.CheckConstraint(
            "status IN ('confirmed', 'cancelled', 'completed')", name="ck_bookings_status"
        ),
        sa.CheckConstraint("end_at > start_at", name="ck_bookings_time_order"),
        sa.CheckConstraint("total_amount >= 0", name="ck_bookings_total_non_negative"),
        sa.CheckConstraint(
            "cancelled_by IS NULL OR cancelled_by IN ('renter', 'gym_owner')",
            name="ck_bookings_cancelled_by",
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_space_id", "bookings", ["space_id"])
    op.create_index("ix_bookings_renter_id", "bookings", ["renter_id"])
    op.create_index("ix_bookings_start_at", "bookings", ["start_at"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index(
        "idx_bookings_space_status_start", "bookings", ["space_id", "status", "start_at"]
    )

    if is_postgres:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
              ADD COLUMN booking_span tstzrange
              GENERATED ALWAYS AS (tstzrange(start_at, end_at, '[)')) STORED
            """
        )
        op.execute(
            """
            ALTER TABLE bookings
              ADD CONSTRAINT bookings_no_overlap_per_space
              EXCLUDE USING gist (
                space_id WITH =,
                booking_span WITH &&
              )
              WHERE (status = 'confirmed')
            """
        )

    op.create_table(
        "event_outbox",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("aggregate_id", sa.String(64), nullable=False),
        sa.Column("idempotency_key", sa.String(255), nullable=False),
        sa.Column("payload", _json_type(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("next_attempt_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key", name="uq_event_outbox_idempotency_key"),
    )
    op.create_index("ix_event_outbox_event_type", "event_outbox", ["event_type"])
    op.create_index("ix_event_outbox_aggregate_id", "event_outbox", ["aggregate_id"])
    op.create_index("ix_event_outbox_status", "event_outbox", ["status"])
    op.create_index("ix_event_outbox_next_attempt_at", "event_outbox", ["next_attempt_at"])

    op.create_table(
        "notification_delivery",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("idempotency_key", sa.String(255), nullable=False),
        sa.Column("payload", _json_type(), nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key", name="uq_notification_delivery_idempotency"),
    )
    op.create_index(
        "ix_notification_delivery_event_type", "notification_delivery", ["event_type"]
    )


def downgrade() -> None:
    op.drop_table("notification_delivery")
    op.drop_table("event_outbox")
    op.drop_table("bookings")
    op.drop_table("availability_overrides")
    op.drop_table("availability_templates")
    op.drop_table("spaces")
    op.drop_table("gyms")
    op.drop_table("users")
