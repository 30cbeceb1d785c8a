"""Create documents table

Revision ID: 3c1f0a9e5d27
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from stormrocks.adapters.db.sa_types import PORTABLE_JSON, UTCDateTime

# deal with alembic stuff
# pylint: disable=no-member

# revision identifiers, used by Alembic.
revision: str = "3c1f0a9e5d27"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    dialect = op.get_context().dialect.name

    op.create_table(
        "documents",
        sa.Column(
            "collection",
            sa.String(length=100),
            nullable=False,
            comment="Collection name (e.g. 'Users').",
        ),
        sa.Column(
            "id",
            sa.String(length=64),
            nullable=False,
            comment="Document id, unique within its collection.",
        ),
        sa.Column(
            "payload",
            PORTABLE_JSON,
            nullable=False,
            comment="Entity document (JSON object keyed by PascalCase field names).",
        ),
        sa.Column(
            "created_at",
            UTCDateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the row was first written (UTC).",
        ),
        sa.Column(
            "updated_at",
            UTCDateTime(),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the row was last written (UTC).",
        ),
        sa.PrimaryKeyConstraint("collection", "id", name=op.f("pk_documents")),
        comment="Entity documents for every collection.",
    )
    op.create_index(
        op.f("ix_documents_collection_updated_at"),
        "documents",
        ["collection", "updated_at"],
        unique=False,
    )

    if dialect == "postgresql":  # pylint: disable=magic-value-comparison
        # PG-only JSONB GIN index for filtered lookups (foreign keys, keys)
        op.create_index(
            "ix_documents_payload_gin",
            "documents",
            ["payload"],
            postgresql_using="gin",
        )


def downgrade() -> None:
    """Downgrade schema."""
    if op.get_context().dialect.name == "postgresql":  # pylint: disable=magic-value-comparison
        op.drop_index("ix_documents_payload_gin", table_name="documents")
    op.drop_index(op.f("ix_documents_collection_updated_at"), table_name="documents")
    op.drop_table("documents")
