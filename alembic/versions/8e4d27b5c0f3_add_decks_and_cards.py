"""add decks and cards

Revision ID: 8e4d27b5c0f3
Revises: 3c1f0a6e9b21
Create Date: 2026-10-19 10:05:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8e4d27b5c0f3"
down_revision: Union[str, Sequence[str], None] = "3c1f0a6e9b21"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "decks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("language", sa.String(length=50), nullable=False),
        sa.Column("translation_language", sa.String(length=50), nullable=False, server_default="English"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_decks_user_id", "decks", ["user_id"])
    op.create_index("ix_decks_language", "decks", ["language"])
    op.create_index("ix_decks_created_at", "decks", ["created_at"])

    op.create_table(
        "cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("deck_id", sa.Integer(), sa.ForeignKey("decks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("front", sa.String(length=255), nullable=False),
        sa.Column("back", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_reviewed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_count", sa.Integer(), nullable=True),
        sa.Column("difficulty", sa.Integer(), nullable=True),
    )
    op.create_index("ix_cards_deck_id", "cards", ["deck_id"])
    op.create_index("ix_cards_created_at", "cards", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_cards_created_at", table_name="cards")
    op.drop_index("ix_cards_deck_id", table_name="cards")
    op.drop_table("cards")
    op.drop_index("ix_decks_created_at", table_name="decks")
    op.drop_index("ix_decks_language", table_name="decks")
    op.drop_index("ix_decks_user_id", table_name="decks")
    op.drop_table("decks")
