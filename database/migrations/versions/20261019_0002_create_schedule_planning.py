"""create schedule planning

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


schedule_status_enum = sa.Enum("draft", "review", "published", name="schedule_status")

ACTIVE_ONLY = sa.text("deleted_at IS NULL")


def upgrade() -> None:
    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", schedule_status_enum, nullable=False, server_default="draft"),
        sa.Column("plan_document", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("published_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("client_id", "name", name="uq_schedules_client_name"),
    )
    op.create_index("ix_schedules_uid", "schedules", ["uid"], unique=True)
    op.create_index("ix_schedules_client_id", "schedules", ["client_id"])
    op.create_index("ix_schedules_status", "schedules", ["status"])

    op.create_table(
        "schedule_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=64), nullable=False),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id"), nullable=False),
        sa.Column("plan_document", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("snapshot_reason", sa.String(length=50), nullable=False),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_schedule_snapshots_uid", "schedule_snapshots", ["uid"], unique=True)
    op.create_index("ix_schedule_snapshots_schedule_id", "schedule_snapshots", ["schedule_id"])
    op.create_index("ix_schedule_snapshots_created_at", "schedule_snapshots", ["created_at"])

    op.create_table(
        "shows",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("studio_room_id", sa.Integer(), sa.ForeignKey("studio_rooms.id"), nullable=True),
        sa.Column("show_type_id", sa.Integer(), sa.ForeignKey("show_types.id"), nullable=False),
        sa.Column("show_status_id", sa.Integer(), sa.ForeignKey("show_statuses.id"), nullable=False),
        sa.Column("show_standard_id", sa.Integer(), sa.ForeignKey("show_standards.id"), nullable=False),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id"), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_shows_uid", "shows", ["uid"], unique=True)
    op.create_index("ix_shows_start_time", "shows", ["start_time"])
    op.create_index("ix_shows_client_id", "shows", ["client_id"])
    op.create_index("ix_shows_studio_room_id", "shows", ["studio_room_id"])
    op.create_index("ix_shows_schedule_id", "shows", ["schedule_id"])

    op.create_table(
        "show_mcs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=64), nullable=False),
        sa.Column("show_id", sa.Integer(), sa.ForeignKey("shows.id"), nullable=False),
        sa.Column("mc_id", sa.Integer(), sa.ForeignKey("mcs.id"), nullable=False),
        sa.Column("note", sa.String(length=500), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_show_mcs_uid", "show_mcs", ["uid"], unique=True)
    op.create_index("ix_show_mcs_show_id", "show_mcs", ["show_id"])
    op.create_index("ix_show_mcs_mc_id", "show_mcs", ["mc_id"])
    op.create_index(
        "uq_show_mcs_active",
        "show_mcs",
        ["show_id", "mc_id"],
        unique=True,
        postgresql_where=ACTIVE_ONLY,
        sqlite_where=ACTIVE_ONLY,
    )

    op.create_table(
        "show_platforms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=64), nullable=False),
        sa.Column("show_id", sa.Integer(), sa.ForeignKey("shows.id"), nullable=False),
        sa.Column("platform_id", sa.Integer(), sa.ForeignKey("platforms.id"), nullable=False),
        sa.Column("live_stream_link", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("platform_show_id", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("viewer_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_show_platforms_uid", "show_platforms", ["uid"], unique=True)
    op.create_index("ix_show_platforms_show_id", "show_platforms", ["show_id"])
    op.create_index("ix_show_platforms_platform_id", "show_platforms", ["platform_id"])
    op.create_index(
        "uq_show_platforms_active",
        "show_platforms",
        ["show_id", "platform_id"],
        unique=True,
        postgresql_where=ACTIVE_ONLY,
        sqlite_where=ACTIVE_ONLY,
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_action", table_name="activity_logs")
    op.drop_table("activity_logs")
    for table_name, column in (("show_platforms", "platform_id"), ("show_mcs", "mc_id")):
        op.drop_index(f"uq_{table_name}_active", table_name=table_name)
        op.drop_index(f"ix_{table_name}_{column}", table_name=table_name)
        op.drop_index(f"ix_{table_name}_show_id", table_name=table_name)
        op.drop_index(f"ix_{table_name}_uid", table_name=table_name)
        op.drop_table(table_name)
    for index_name in ("ix_shows_schedule_id", "ix_shows_studio_room_id", "ix_shows_client_id", "ix_shows_start_time", "ix_shows_uid"):
        op.drop_index(index_name, table_name="shows")
    op.drop_table("shows")
    for index_name in ("ix_schedule_snapshots_created_at", "ix_schedule_snapshots_schedule_id", "ix_schedule_snapshots_uid"):
        op.drop_index(index_name, table_name="schedule_snapshots")
    op.drop_table("schedule_snapshots")
    for index_name in ("ix_schedules_status", "ix_schedules_client_id", "ix_schedules_uid"):
        op.drop_index(index_name, table_name="schedules")
    op.drop_table("schedules")
    schedule_status_enum.drop(op.get_bind(), checkfirst=True)
