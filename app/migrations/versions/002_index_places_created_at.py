"""Index places by creation time

The list endpoint orders by created_at DESC on every call.
"""

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_index(
        "idx_places_created_at",
        "places",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_places_created_at", table_name="places")
