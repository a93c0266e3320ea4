"""Create dishes table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `dishes` table: id, name, price, photo.
How:   Integer identity key, unique name (conflict target for
       create-or-replace), NUMERIC(10, 2) price and a nullable binary photo.

Rollback: downgrade() drops the table (all dishes and photos are lost).
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
        "dishes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "name",
            sa.String(255),
            nullable=False,
            comment="Dish name; unique business key for create-or-replace",
        ),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "photo",
            sa.LargeBinary(),
            nullable=True,
            comment="Raw bytes of the uploaded photo file",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_dishes_name"),
    )


def downgrade() -> None:
    op.drop_table("dishes")
