"""Clinic core schema: users, doctors, appointments and messages.

Revision ID: 0001_clinic_core_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_clinic_core_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum("patient", "doctor", "admin", name="userrole")
appointment_status = sa.Enum(
    "pending", "confirmed", "completed", "cancelled", "rejected", name="appointmentstatus"
)

ACTIVE_SLOT_PREDICATE = sa.text("status IN ('completed', 'confirmed', 'pending')")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(length=26), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("role", user_role, nullable=False, server_default="patient"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("user_id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "departments",
        sa.Column("department_id", sa.String(length=26), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("department_id", name="pk_departments"),
        sa.UniqueConstraint("name", name="uq_departments_name"),
    )

    op.create_table(
        "doctors",
        sa.Column("doctor_id", sa.String(length=26), nullable=False),
        sa.Column("user_id", sa.String(length=26), nullable=False),
        sa.Column("department_id", sa.String(length=26)),
        sa.Column("specialization", sa.String(length=120)),
        sa.Column("consultation_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("available_from", sa.Time(), nullable=False, server_default="09:00:00"),
        sa.Column("available_to", sa.Time(), nullable=False, server_default="17:00:00"),
        sa.Column("appointment_duration_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("daily_appointment_limit", sa.Integer(), nullable=False, server_default="18"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("doctor_id", name="pk_doctors"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.user_id"], name="fk_doctors_user_id_users", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["department_id"],
            ["departments.department_id"],
            name="fk_doctors_department_id_departments",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("user_id", name="uq_doctors_user_id"),
        sa.CheckConstraint("appointment_duration_minutes > 0", name="ck_doctors_duration_positive"),
        sa.CheckConstraint("daily_appointment_limit >= 0", name="ck_doctors_daily_limit_non_negative"),
        sa.CheckConstraint("consultation_fee >= 0", name="ck_doctors_fee_non_negative"),
    )

    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(length=26), nullable=False),
        sa.Column("patient_id", sa.String(length=26), nullable=False),
        sa.Column("doctor_id", sa.String(length=26), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("appointment_time", sa.Time(), nullable=False),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", appointment_status, nullable=False, server_default="pending"),
        sa.Column("reason", sa.Text()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("appointment_id", name="pk_appointments"),
        sa.ForeignKeyConstraint(
            ["patient_id"], ["users.user_id"], name="fk_appointments_patient_id_users", ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(
            ["doctor_id"], ["doctors.doctor_id"], name="fk_appointments_doctor_id_doctors", ondelete="RESTRICT"
        ),
    )
    op.create_index(
        "uq_appointments_active_slot",
        "appointments",
        ["doctor_id", "appointment_date", "appointment_time"],
        unique=True,
        postgresql_where=ACTIVE_SLOT_PREDICATE,
        sqlite_where=ACTIVE_SLOT_PREDICATE,
    )
    op.create_index("ix_appointments_doctor_date", "appointments", ["doctor_id", "appointment_date"])
    op.create_index("ix_appointments_patient_created", "appointments", ["patient_id", "created_at"])

    op.create_table(
        "messages",
        sa.Column("message_id", sa.String(length=26), nullable=False),
        sa.Column("sender_id", sa.String(length=26), nullable=False),
        sa.Column("receiver_id", sa.String(length=26), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("message_id", name="pk_messages"),
        sa.ForeignKeyConstraint(
            ["sender_id"], ["users.user_id"], name="fk_messages_sender_id_users", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["receiver_id"], ["users.user_id"], name="fk_messages_receiver_id_users", ondelete="CASCADE"
        ),
    )
    op.create_index("ix_messages_sender_receiver", "messages", ["sender_id", "receiver_id"])
    op.create_index("ix_messages_receiver_unread", "messages", ["receiver_id", "is_read"])


def downgrade() -> None:
    op.drop_index("ix_messages_receiver_unread", table_name="messages")
    op.drop_index("ix_messages_sender_receiver", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_appointments_patient_created", table_name="appointments")
    op.drop_index("ix_appointments_doctor_date", table_name="appointments")
    op.drop_index("uq_appointments_active_slot", table_name="appointments")
    op.drop_table("appointments")
    op.drop_table("doctors")
    op.drop_table("departments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    appointment_status.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
