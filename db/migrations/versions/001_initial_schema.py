"""Initial schema: profiles, contacts, history, calendar, activity, notifications.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ─── Users ───────────────────────────────────────────────────────────────

    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("full_name", sa.Text, nullable=True),
        sa.Column("email", sa.Text, nullable=True),
        sa.Column("phone", sa.Text, nullable=True),
        sa.Column("role", sa.Text, nullable=False, server_default="sales"),
        sa.Column("status", sa.Text, nullable=False, server_default="active"),
        sa.Column("manager_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("avatar_url", sa.Text, nullable=True),
        sa.Column("fcm_token", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("role IN ('admin', 'manager', 'sales')", name="ck_profile_role"),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_profile_status"),
        sa.ForeignKeyConstraint(["manager_id"], ["profiles.id"], name="fk_profile_manager", ondelete="SET NULL"),
    )

    # ─── Contacts ────────────────────────────────────────────────────────────

    op.create_table(
        "contacts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("email", sa.Text, nullable=True),
        sa.Column("phone", sa.Text, nullable=True),
        sa.Column("zalo", sa.Text, nullable=True),
        sa.Column("company", sa.Text, nullable=True),
        sa.Column("company_size", sa.Text, nullable=True),
        sa.Column("industry", sa.Text, nullable=True),
        sa.Column("data_source", sa.Text, nullable=True),
        sa.Column("life_stage", sa.Text, nullable=True, server_default="subscriber"),
        sa.Column("assigned_to", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("last_updated_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("next_appointment_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.Text), nullable=False, server_default="{}"),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("position", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "life_stage IS NULL OR life_stage IN ('subscriber', 'lead', 'opportunity', 'customer')",
            name="ck_contact_life_stage",
        ),
        sa.ForeignKeyConstraint(["assigned_to"], ["profiles.id"], name="fk_contact_assigned_to", ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], name="fk_contact_created_by", ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["last_updated_by"], ["profiles.id"], name="fk_contact_last_updated_by", ondelete="SET NULL"),
    )
    op.create_index("ix_contacts_email", "contacts", ["email"])
    op.create_index("ix_contacts_phone", "contacts", ["phone"])
    op.create_index("ix_contacts_assigned_to", "contacts", ["assigned_to"])

    op.create_table(
        "contact_history",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("action_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "type IN ('call', 'email', 'meeting', 'warranty', 'repair', 'task')",
            name="ck_history_type",
        ),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], name="fk_history_contact", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], name="fk_history_created_by", ondelete="SET NULL"),
    )

    # ─── Calendar ────────────────────────────────────────────────────────────

    op.create_table(
        "appointments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("type", sa.Text, nullable=True, server_default="meeting"),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=True),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="scheduled"),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("attendees", postgresql.ARRAY(sa.Text), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled')",
            name="ck_appointment_status",
        ),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], name="fk_appointment_contact", ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["profiles.id"], name="fk_appointment_created_by", ondelete="SET NULL"),
    )
    op.create_index("ix_appointments_scheduled_at", "appointments", ["scheduled_at"])

    # ─── Activity & notifications ────────────────────────────────────────────

    op.create_table(
        "activity_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action_type", sa.Text, nullable=False),
        sa.Column("target_id", sa.Text, nullable=True),
        sa.Column("target_type", sa.Text, nullable=True),
        sa.Column("detail", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_activity_log_created_at", "activity_log", ["created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("link", sa.Text, nullable=True),
        sa.Column("payload", sa.JSON, nullable=True),
        sa.Column("priority", sa.Text, nullable=False, server_default="medium"),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("contact_name", sa.Text, nullable=True),
        sa.Column("reference_id", sa.Text, nullable=True),
        sa.Column("reminder_stage", sa.Text, nullable=True),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("priority IN ('low', 'medium', 'high')", name="ck_notification_priority"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], name="fk_notification_user", ondelete="CASCADE"),
    )

    op.create_table(
        "notification_settings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("enabled", sa.Boolean, nullable=False, server_default="true"),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], name="fk_notification_setting_user", ondelete="CASCADE"),
    )

    # ─── Dropdown options ────────────────────────────────────────────────────

    op.create_table(
        "app_config",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("value", sa.Text, nullable=False),
        sa.Column("label_vi", sa.Text, nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean, nullable=False, server_default="true"),
        sa.CheckConstraint(
            "type IN ('industry', 'company_size', 'data_source')",
            name="ck_app_config_type",
        ),
        sa.UniqueConstraint("type", "value", name="uq_app_config_type_value"),
    )


def downgrade() -> None:
    op.drop_table("app_config")
    op.drop_table("notification_settings")
    op.drop_table("notifications")
    op.drop_table("activity_log")
    op.drop_table("appointments")
    op.drop_table("contact_history")
    op.drop_table("contacts")
    op.drop_table("profiles")
