"""seed categories

Revision ID: 20261019_02
Revises: 20261019_01
Create Date: 2026-10-19

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_02"
down_revision = "20261019_01"
branch_labels = None
depends_on = None

# Keep order stable: ids follow this order on a fresh database.
CATEGORIES = [
    "fashion",
    "food",
    "electronics",
    "books",
    "other",
]


def upgrade() -> None:
    conn = op.get_bind()
    for name in CATEGORIES:
        exists = conn.execute(sa.text("SELECT 1 FROM categories WHERE name=:n"), {"n": name}).fetchone()
        if not exists:
            conn.execute(sa.text("INSERT INTO categories (name) VALUES (:n)"), {"n": name})


def downgrade() -> None:
    conn = op.get_bind()
    for name in CATEGORIES:
        # only remove seeds nothing references
        conn.execute(
            sa.text(
                "DELETE FROM categories WHERE name=:n "
                "AND NOT EXISTS (SELECT 1 FROM items WHERE items.category_id = categories.id)"
            ),
            {"n": name},
        )
