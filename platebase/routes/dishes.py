"""
Platebase — Dish Route Handlers
=================================

What:  The five /dishes endpoints.
How:   Extract query/form/file data, delegate to DishService, return JSON.
       Errors raised by the service are formatted by the global handlers.

Request format:
    POST and PUT take multipart/form-data (or urlencoded) fields:
        name   text
        price  text, parsed as a decimal number
        photo  file (optional)
    Form fields are received as raw strings so that DishValidator can report
    every violation in one 422 response.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from platebase.database import get_db_session
from platebase.schemas.dish import (
    DishMutationResponse,
    DishResponse,
    ErrorResponse,
    MessageResponse,
    PhotoUpload,
    ValidationErrorResponse,
)
from platebase.services.dish_service import dish_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dishes", tags=["Dishes"])


async def read_photo(photo: Optional[UploadFile]) -> Optional[PhotoUpload]:
    """Reads an uploaded file fully into memory and closes it."""
    if photo is None:
        return None
    try:
        content = await photo.read()
    finally:
        await photo.close()

    logger.debug(
        "Received photo upload: filename=%s, content_type=%s, size=%d bytes",
        photo.filename or "unknown",
        photo.content_type,
        len(content),
    )
    return PhotoUpload(
        filename=photo.filename or "",
        content_type=photo.content_type,
        content=content,
    )


@router.get(
    "",
    response_model=List[DishResponse],
    responses={
        422: {"description": "Invalid price filter", "model": ValidationErrorResponse},
    },
    summary="List dishes, optionally filtered by price",
)
async def list_dishes(
    min_price: Optional[str] = Query(
        default=None, description="Only dishes priced at or above this value"
    ),
    max_price: Optional[str] = Query(
        default=None, description="Only dishes priced at or below this value"
    ),
    db: AsyncSession = Depends(get_db_session),
) -> List[DishResponse]:
    return await dish_service.list_dishes(db, min_price=min_price, max_price=max_price)


@router.post(
    "",
    status_code=201,
    response_model=DishMutationResponse,
    responses={
        201: {"description": "Dish created or replaced", "model": DishMutationResponse},
        422: {"description": "Invalid input", "model": ValidationErrorResponse},
        500: {"description": "Unexpected failure", "model": ErrorResponse},
    },
    summary="Create a dish, or replace the dish with the same name",
)
async def create_or_replace_dish(
    name: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    photo: Optional[UploadFile] = File(
        default=None, description="Dish photo (jpeg, png, jpg or svg, max 2048 KB)"
    ),
    db: AsyncSession = Depends(get_db_session),
) -> DishMutationResponse:
    """
    Upsert by name. Returns 201 whether a new dish was inserted or an
    existing one was overwritten. Omitting the photo clears any stored photo.
    """
    upload = await read_photo(photo)
    return await dish_service.create_or_replace(db, name=name, price=price, photo=upload)


@router.get(
    "/{dish_id}",
    response_model=DishResponse,
    responses={
        404: {"description": "Dish not found", "model": MessageResponse},
    },
    summary="Get a single dish, photo as a data URI",
)
async def get_dish(
    dish_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> DishResponse:
    return await dish_service.get_dish(db, dish_id)


@router.put(
    "/{dish_id}",
    response_model=DishMutationResponse,
    responses={
        404: {"description": "Dish not found", "model": MessageResponse},
        422: {"description": "Invalid input", "model": ValidationErrorResponse},
    },
    summary="Partially update a dish",
)
async def update_dish(
    dish_id: int,
    name: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    photo: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> DishMutationResponse:
    """Fields that are not sent keep their stored values, including the photo."""
    upload = await read_photo(photo)
    return await dish_service.update_dish(
        db, dish_id, name=name, price=price, photo=upload
    )


@router.delete(
    "/{dish_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "Dish not found", "model": MessageResponse},
    },
    summary="Delete a dish",
)
async def delete_dish(
    dish_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await dish_service.delete_dish(db, dish_id)
