"""
Platebase — Dish SQLAlchemy Model
===================================

What:  ORM model representing the `dishes` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by DishService for CRUD operations.

Table Design:
    - id: integer surrogate key, assigned by the store, never reassigned
    - name: business key used by create-or-replace; unique at the store so
      the upsert can resolve conflicts atomically
    - price: NUMERIC(10, 2), no business bounds beyond column precision
    - photo: raw uploaded file bytes; NULL means "no photo"
"""

from decimal import Decimal

from sqlalchemy import Integer, LargeBinary, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from platebase.database import Base


class Dish(Base):
    """
    A dish on the menu.

    Lifecycle:
        1. Inserted by create-or-replace when no dish has that name
        2. Overwritten in place by create-or-replace on a name match
           (price and photo; photo becomes NULL when no upload is given)
        3. Partially updated by update (photo kept unless a new file arrives)
        4. Removed by delete
    """

    __tablename__ = "dishes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Dish name; unique business key for create-or-replace",
    )

    # asdecimal=True keeps Decimal values on SQLite too
    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2, asdecimal=True),
        nullable=False,
    )

    photo: Mapped[bytes | None] = mapped_column(
        LargeBinary,
        nullable=True,
        default=None,
        comment="Raw bytes of the uploaded photo file",
    )

    __table_args__ = (
        UniqueConstraint("name", name="uq_dishes_name"),
    )

    def __repr__(self) -> str:
        photo_size = len(self.photo) if self.photo is not None else None
        return f"<Dish(id={self.id}, name='{self.name}', price={self.price}, photo={photo_size})>"
