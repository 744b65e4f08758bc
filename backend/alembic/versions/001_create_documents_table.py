"""Create documents table

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  One table holds every database-backed collection; see
       met_api/models/document.py for the column meanings.
Rollback: downgrade() drops the table (all database-backed data is lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("collection", sa.String(64), nullable=False),
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("sort_key", sa.String(512), nullable=False),
        sa.Column("unique_key", sa.String(512), nullable=True),
        sa.Column("date_key", sa.String(32), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("collection", "id"),
        sa.UniqueConstraint(
            "collection", "unique_key", name="uq_documents_collection_unique_key"
        ),
    )
    op.create_index(
        "ix_documents_collection_sort_key", "documents", ["collection", "sort_key"]
    )
    op.create_index(
        "ix_documents_collection_date_key", "documents", ["collection", "date_key"]
    )


def downgrade() -> None:
    op.drop_index("ix_documents_collection_date_key", table_name="documents")
    op.drop_index("ix_documents_collection_sort_key", table_name="documents")
    op.drop_table("documents")
