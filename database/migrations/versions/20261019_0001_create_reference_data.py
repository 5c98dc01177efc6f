"""create reference data

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


studio_room_type_enum = sa.Enum("small", "medium", "large", name="studio_room_type")


def _identity_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=64), nullable=False),
    ]


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now())]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True))
    columns.append(sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        *_identity_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_uid", "users", ["uid"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "clients",
        *_identity_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("contact_person", sa.String(length=200), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        *_timestamps(),
    )
    op.create_index("ix_clients_uid", "clients", ["uid"], unique=True)

    op.create_table(
        "studio_rooms",
        *_identity_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("studio_name", sa.String(length=200), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("room_type", studio_room_type_enum, nullable=False, server_default="medium"),
        *_timestamps(),
    )
    op.create_index("ix_studio_rooms_uid", "studio_rooms", ["uid"], unique=True)

    for table_name in ("show_types", "show_statuses", "show_standards"):
        op.create_table(
            table_name,
            *_identity_columns(),
            sa.Column("name", sa.String(length=100), nullable=False, unique=True),
            *_timestamps(updated=False),
        )
        op.create_index(f"ix_{table_name}_uid", table_name, ["uid"], unique=True)

    op.create_table(
        "mcs",
        *_identity_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("alias_name", sa.String(length=200), nullable=True),
        sa.Column("is_banned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        *_timestamps(),
    )
    op.create_index("ix_mcs_uid", "mcs", ["uid"], unique=True)

    op.create_table(
        "platforms",
        *_identity_columns(),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("api_config", sa.JSON(), nullable=False, server_default=sa.text("'{}'")),
        *_timestamps(),
    )
    op.create_index("ix_platforms_uid", "platforms", ["uid"], unique=True)


def downgrade() -> None:
    for table_name in ("platforms", "mcs", "show_standards", "show_statuses", "show_types", "studio_rooms", "clients"):
        op.drop_index(f"ix_{table_name}_uid", table_name=table_name)
        op.drop_table(table_name)
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_uid", table_name="users")
    op.drop_table("users")
    studio_room_type_enum.drop(op.get_bind(), checkfirst=True)
