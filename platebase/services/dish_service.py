"""
Platebase — Dish Service (Business Logic Orchestrator)
========================================================

What:  Orchestrates validation → store read/write → photo encoding →
       response shaping for every dish operation.
Who:   Called by the /dishes route handlers.

Operations:
    list_dishes        GET    /dishes          price-range filter, id order
    create_or_replace  POST   /dishes          upsert by name, 201 on both branches
    get_dish           GET    /dishes/{id}     photo as data URI
    update_dish        PUT    /dishes/{id}     merge provided fields only
    delete_dish        DELETE /dishes/{id}

Photo rendering:
    list / create / update  → bare base64 (image_codec.to_wire)
    get                     → data URI    (image_codec.to_data_uri)

Upsert:
    On PostgreSQL and SQLite create_or_replace is a single
    INSERT ... ON CONFLICT (name) DO UPDATE ... RETURNING statement, relying
    on the uq_dishes_name constraint. Other dialects fall back to
    lookup-then-write, which is not atomic.

Design Decision:
    DishService is stateless; it receives the db session for each call.
    The session dependency commits or rolls back after the handler returns.
"""

import logging
from decimal import Decimal
from typing import Any, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from platebase.exceptions import (
    DatabaseError,
    NotFoundError,
    UnexpectedError,
    ValidationFailedError,
)
from platebase.models.dish import Dish
from platebase.schemas.dish import (
    DishMutationResponse,
    DishResponse,
    MessageResponse,
    PhotoUpload,
)
from platebase.services import image_codec
from platebase.services.dish_validator import (
    DishValidator,
    ValidationMode,
    dish_validator,
)

logger = logging.getLogger(__name__)

# Dialects whose insert() supports ON CONFLICT ... DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _render(dish: Dish, encode: Callable[[Optional[bytes]], Optional[str]]) -> DishResponse:
    return DishResponse(
        id=dish.id,
        name=dish.name,
        price=dish.price,
        photo=encode(dish.photo),
    )


class DishService:
    """
    Business logic layer for dish operations.

    Error Handling Strategy:
        - Input problems raise ValidationFailedError before the store is touched
        - Missing ids raise NotFoundError
        - create_or_replace converts any failure after validation into
          UnexpectedError carrying the original message
        - Store failures elsewhere are wrapped in DatabaseError
    """

    def __init__(self, validator: Optional[DishValidator] = None):
        self.validator = validator or dish_validator

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_dishes(
        self,
        db: AsyncSession,
        min_price: Any = None,
        max_price: Any = None,
    ) -> List[DishResponse]:
        """
        List dishes whose price lies within the optional inclusive bounds.

        Results are ordered by id (insertion order).
        """
        low, high = self.validator.validate_price_range(min_price, max_price)

        try:
            query = select(Dish)
            if low is not None:
                query = query.where(Dish.price >= low)
            if high is not None:
                query = query.where(Dish.price <= high)
            query = query.order_by(Dish.id.asc())

            result = await db.execute(query)
            dishes = list(result.scalars().all())
        except Exception as e:
            logger.error("Database error listing dishes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve dishes. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return [_render(dish, image_codec.to_wire) for dish in dishes]

    async def _get_or_404(self, db: AsyncSession, dish_id: int) -> Dish:
        try:
            result = await db.execute(select(Dish).where(Dish.id == dish_id))
            dish = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching dish %s: %s", dish_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the dish. Please try again.",
                context={"dish_id": dish_id},
            )

        if dish is None:
            raise NotFoundError(resource="Dish", resource_id=dish_id)
        return dish

    async def get_dish(self, db: AsyncSession, dish_id: int) -> DishResponse:
        """
        Fetch a single dish by id, with the photo as a data URI.

        Raises:
            NotFoundError: no dish with that id (→ 404)
        """
        dish = await self._get_or_404(db, dish_id)
        return _render(dish, image_codec.to_data_uri)

    # ── Create-or-replace ─────────────────────────────────────────────────

    async def _upsert(
        self,
        db: AsyncSession,
        name: str,
        price: Decimal,
        photo: Optional[bytes],
    ) -> Dish:
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)

        if insert is not None:
            stmt = insert(Dish).values(name=name, price=price, photo=photo)
            stmt = stmt.on_conflict_do_update(
                index_elements=[Dish.name],
                set_={"price": stmt.excluded.price, "photo": stmt.excluded.photo},
            )
            result = await db.scalars(
                stmt.returning(Dish),
                execution_options={"populate_existing": True},
            )
            return result.one()

        # Non-atomic fallback for dialects without ON CONFLICT support
        logger.debug("Dialect %s has no ON CONFLICT upsert; using lookup-then-write", dialect)
        result = await db.execute(select(Dish).where(Dish.name == name))
        dish = result.scalar_one_or_none()
        if dish is None:
            dish = Dish(name=name, price=price, photo=photo)
            db.add(dish)
        else:
            dish.price = price
            dish.photo = photo
        await db.flush()
        return dish

    async def create_or_replace(
        self,
        db: AsyncSession,
        name: Any = None,
        price: Any = None,
        photo: Optional[PhotoUpload] = None,
    ) -> DishMutationResponse:
        """
        Create a dish, or overwrite the dish that already has this name.

        On a name match the price is replaced and the photo is set to the new
        upload, or to NULL when no file was sent. The id is kept.

        Raises:
            ValidationFailedError: input violates the create rules (→ 422)
            UnexpectedError: anything failed after validation (→ 500)
        """
        data = self.validator.validate(
            ValidationMode.CREATE_OR_UPDATE, name=name, price=price, photo=photo
        )

        try:
            photo_bytes = (
                image_codec.decode_upload(data.photo.content) if data.photo else None
            )
            dish = await self._upsert(db, data.name, data.price, photo_bytes)
            logger.info(
                "Dish %s stored: name=%r price=%s photo=%s",
                dish.id,
                dish.name,
                dish.price,
                "%d bytes" % len(photo_bytes) if photo_bytes is not None else "none",
            )
            return DishMutationResponse(
                status=True,
                message="Dish created successfully.",
                dish=_render(dish, image_codec.to_wire),
            )
        except Exception as e:
            logger.error("Unexpected error in create_or_replace: %s", str(e), exc_info=True)
            raise UnexpectedError(
                message=str(e),
                context={"error_type": type(e).__name__},
            )

    # ── Update / delete ───────────────────────────────────────────────────

    async def update_dish(
        self,
        db: AsyncSession,
        dish_id: int,
        name: Any = None,
        price: Any = None,
        photo: Optional[PhotoUpload] = None,
    ) -> DishMutationResponse:
        """
        Apply a partial update to an existing dish.

        Only provided fields change. The stored photo is replaced only when a
        new file is uploaded; it is never cleared here.

        Raises:
            NotFoundError: no dish with that id (→ 404)
            ValidationFailedError: invalid field, or the new name is taken (→ 422)
            DatabaseError: the store rejected the write (→ 500)
        """
        dish = await self._get_or_404(db, dish_id)

        data = self.validator.validate(
            ValidationMode.PARTIAL_UPDATE, name=name, price=price, photo=photo
        )

        changed = []
        if data.name is not None:
            dish.name = data.name
            changed.append("name")
        if data.price is not None:
            dish.price = data.price
            changed.append("price")
        if data.photo is not None:
            dish.photo = image_codec.decode_upload(data.photo.content)
            changed.append("photo")

        try:
            await db.flush()
        except IntegrityError:
            raise ValidationFailedError(
                {"name": ["The name has already been taken."]},
                context={"dish_id": dish_id},
            )
        except Exception as e:
            logger.error("Database error updating dish %s: %s", dish_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the dish. Please try again.",
                context={"dish_id": dish_id, "error_type": type(e).__name__},
            )

        logger.info("Dish %s updated: %s", dish_id, ", ".join(changed) or "no changes")
        return DishMutationResponse(
            status=True,
            message="Dish updated successfully.",
            dish=_render(dish, image_codec.to_wire),
        )

    async def delete_dish(self, db: AsyncSession, dish_id: int) -> MessageResponse:
        """
        Delete a dish by id.

        Raises:
            NotFoundError: no dish with that id (→ 404)
        """
        dish = await self._get_or_404(db, dish_id)

        try:
            await db.delete(dish)
            await db.flush()
        except Exception as e:
            logger.error("Database error deleting dish %s: %s", dish_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the dish. Please try again.",
                context={"dish_id": dish_id},
            )

        logger.info("Dish %s deleted", dish_id)
        return MessageResponse(message="Dish deleted")


# Stateless; shared by all requests
dish_service = DishService()
