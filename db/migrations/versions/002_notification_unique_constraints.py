"""Add unique constraints used by notification upserts.

(user_id, type, reference_id) keeps appointment reminders idempotent;
(user_id, type) backs the notification settings upsert.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from alembic import op

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_unique_constraint(
        "uq_notification_user_type_ref",
        "notifications",
        ["user_id", "type", "reference_id"],
    )
    op.create_unique_constraint(
        "uq_notification_setting_user_type",
        "notification_settings",
        ["user_id", "type"],
    )


def downgrade() -> None:
    op.drop_constraint("uq_notification_setting_user_type", "notification_settings")
    op.drop_constraint("uq_notification_user_type_ref", "notifications")
