"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00

"""
from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

from notevault.backend.models.note import POSTGRES_SEARCH_DDL, SEARCH_TABLE, SQLITE_SEARCH_DDL

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("user", "admin", name="user_role", native_enum=False),
            nullable=False,
        ),
        sa.Column("session_timeout", sa.Integer(), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("provider", sa.String(64), nullable=True),
        sa.Column("uid", sa.String(255), nullable=True),
        sa.Column("api_token_digest", sa.String(128), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("uid"),
        sa.UniqueConstraint("api_token_digest"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "notes",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("max_size", sa.Integer(), nullable=False),
        sa.Column("pinned", sa.Boolean(), nullable=False),
        sa.Column("archived", sa.Boolean(), nullable=False),
        sa.Column("trashed", sa.Boolean(), nullable=False),
        sa.Column("trashed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_notes_user_id", "notes", ["user_id"])
    op.create_index("ix_notes_trashed", "notes", ["trashed"])

    op.create_table(
        "tags",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("color", sa.String(7), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
    )
    op.create_index("ix_tags_user_id", "tags", ["user_id"])

    op.create_table(
        "note_tags",
        sa.Column(
            "note_id",
            sa.String(),
            sa.ForeignKey("notes.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "tag_id",
            sa.String(),
            sa.ForeignKey("tags.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_note_tags_tag_id", "note_tags", ["tag_id"])

    op.create_table(
        "shares",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "note_id",
            sa.String(),
            sa.ForeignKey("notes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "permission",
            sa.Enum("read_write", name="share_permission", native_enum=False),
            nullable=False,
        ),
        *_timestamps(),
        sa.UniqueConstraint("note_id", "user_id", name="uq_shares_note_user"),
    )
    op.create_index("ix_shares_note_id", "shares", ["note_id"])
    op.create_index("ix_shares_user_id", "shares", ["user_id"])

    op.create_table(
        "note_versions",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "note_id",
            sa.String(),
            sa.ForeignKey("notes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint(
            "note_id", "version_number", name="uq_note_versions_note_number"
        ),
    )
    op.create_index("ix_note_versions_note_id", "note_versions", ["note_id"])

    op.create_table(
        "attachments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "note_id",
            sa.String(),
            sa.ForeignKey("notes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("content_type", sa.String(255), nullable=False),
        sa.Column("byte_size", sa.Integer(), nullable=False),
        sa.Column("storage_key", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("storage_key"),
    )
    op.create_index("ix_attachments_note_id", "attachments", ["note_id"])

    dialect = op.get_bind().dialect.name
    if dialect == "sqlite":
        for statement in SQLITE_SEARCH_DDL:
            op.execute(statement)
        # Index notes that existed before the triggers
        op.execute(
            f"INSERT INTO {SEARCH_TABLE}(note_id, title, body) "
            "SELECT id, coalesce(title, ''), body FROM notes"
        )
    elif dialect == "postgresql":
        for statement in POSTGRES_SEARCH_DDL:
            op.execute(statement)


def downgrade() -> None:
    if op.get_bind().dialect.name == "sqlite":
        for trigger in ("notes_search_ai", "notes_search_au", "notes_search_ad"):
            op.execute(f"DROP TRIGGER IF EXISTS {trigger}")
        op.execute(f"DROP TABLE IF EXISTS {SEARCH_TABLE}")

    op.drop_table("attachments")
    op.drop_table("note_versions")
    op.drop_table("shares")
    op.drop_table("note_tags")
    op.drop_table("tags")
    op.drop_table("notes")
    op.drop_table("users")
