"""create_lessons_tables

Revision ID: 3f2a9c1d7e10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role_enum = sa.Enum("admin", "instructor", "customer", name="user_role_enum")
waitlist_status_enum = sa.Enum("active", "inactive", name="waitlist_status_enum")
coverage_status_enum = sa.Enum(
    "pending", "accepted", "declined", name="coverage_status_enum"
)


def upgrade() -> None:
    """Upgrade schema - Create lesson scheduling tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("fullname", sa.String(), nullable=True),
        sa.Column("phone_number", sa.String(), nullable=True),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column(
            "must_change_password", sa.Boolean(), server_default="false", nullable=False
        ),
        sa.Column("one_time_login_token", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("one_time_login_token"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "swimmers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("birthdate", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(), nullable=True),
        sa.Column("proficiency", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_swimmers_user_id", "swimmers", ["user_id"])

    op.create_table(
        "instructors",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_instructors_email", "instructors", ["email"], unique=True)

    op.create_table(
        "lessons",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("meeting_days", sa.JSON(), nullable=False),
        sa.Column("max_slots", sa.Integer(), nullable=False),
        sa.Column("exception_dates", sa.JSON(), server_default="[]", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("start_date <= end_date", name="ck_lesson_date_range"),
        sa.CheckConstraint("max_slots >= 1", name="ck_lesson_max_slots_positive"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "swimmer_lessons",
        sa.Column("swimmer_id", sa.Integer(), nullable=False),
        sa.Column("lesson_id", sa.Integer(), nullable=False),
        sa.Column("preferred_instructor_id", sa.Integer(), nullable=True),
        sa.Column("assigned_instructor_id", sa.Integer(), nullable=True),
        sa.Column("instructor_notes", sa.Text(), nullable=True),
        sa.Column("missing_dates", sa.JSON(), server_default="[]", nullable=False),
        sa.Column(
            "payment_status", sa.Boolean(), server_default="false", nullable=False
        ),
        sa.Column("registration_date", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["swimmer_id"], ["swimmers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["preferred_instructor_id"], ["instructors.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["assigned_instructor_id"], ["instructors.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("swimmer_id", "lesson_id"),
    )
    op.create_index(
        "ix_swimmer_lessons_assigned_instructor_id",
        "swimmer_lessons",
        ["assigned_instructor_id"],
    )

    op.create_table(
        "waitlist",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("swimmer_id", sa.Integer(), nullable=False),
        sa.Column("status", waitlist_status_enum, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("registration_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["swimmer_id"], ["swimmers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_waitlist_swimmer_id", "waitlist", ["swimmer_id"])
    op.create_index("ix_waitlist_status", "waitlist", ["status"])
    # At most one active entry per swimmer
    op.create_index(
        "uq_waitlist_active_swimmer",
        "waitlist",
        ["swimmer_id"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "coverage_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("lesson_id", sa.Integer(), nullable=False),
        sa.Column("swimmer_id", sa.Integer(), nullable=True),
        sa.Column("requesting_instructor_id", sa.Integer(), nullable=False),
        sa.Column("covering_instructor_id", sa.Integer(), nullable=True),
        sa.Column("status", coverage_status_enum, nullable=False),
        sa.Column("request_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["swimmer_id"], ["swimmers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["requesting_instructor_id"], ["instructors.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["covering_instructor_id"], ["instructors.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_coverage_requests_lesson_id", "coverage_requests", ["lesson_id"])
    op.create_index("ix_coverage_requests_swimmer_id", "coverage_requests", ["swimmer_id"])
    op.create_index(
        "ix_coverage_requests_requesting_instructor_id",
        "coverage_requests",
        ["requesting_instructor_id"],
    )
    op.create_index(
        "ix_coverage_requests_covering_instructor_id",
        "coverage_requests",
        ["covering_instructor_id"],
    )


def downgrade() -> None:
    """Downgrade schema - Drop lesson scheduling tables."""
    op.drop_table("coverage_requests")
    op.drop_index("uq_waitlist_active_swimmer", table_name="waitlist")
    op.drop_table("waitlist")
    op.drop_table("swimmer_lessons")
    op.drop_table("lessons")
    op.drop_table("instructors")
    op.drop_table("swimmers")
    op.drop_table("users")

    coverage_status_enum.drop(op.get_bind(), checkfirst=True)
    waitlist_status_enum.drop(op.get_bind(), checkfirst=True)
    user_role_enum.drop(op.get_bind(), checkfirst=True)
