"""
Platebase — Dish Input Validation
===================================

What:  Checks incoming dish fields against the rules of each write mode.
How:   Every field is checked and every violated rule is collected before
       anything is raised, so one ValidationFailedError reports all problems.
Who:   Called by DishService before any store access that mutates state.

Rules:
    field   create / create-or-update       partial-update
    name    required, string, <= 255 chars  optional, string, <= 255 chars
    price   required, numeric, in range     optional, numeric, in range
    photo   optional: image, allowed type, size limit (both modes)

Prices are rounded half-up to cents, matching the NUMERIC(10, 2) column, so
the value a response reports is the value that was stored.

Photo checks, in order:
    1. Image:      non-empty, and libmagic detects an image/* type
    2. File type:  the detected type is in the MIME allow-list
    3. Size:       at most max_photo_size_kb kilobytes
    The filename and the client-declared content type are never trusted.
"""

import enum
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

import magic

from platebase.config import settings
from platebase.exceptions import UnexpectedError, ValidationFailedError
from platebase.schemas.dish import DishInput, PhotoUpload

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255

# NUMERIC(10, 2): eight integer digits, two fractional
PRICE_QUANTUM = Decimal("0.01")
MAX_PRICE = Decimal("99999999.99")

# libmagic reports some SVG files as plain XML
XML_MIME_TYPES = {"text/xml", "application/xml", "image/svg"}


class ValidationMode(str, enum.Enum):
    CREATE = "create"
    CREATE_OR_UPDATE = "create-or-update"
    PARTIAL_UPDATE = "partial-update"

    @property
    def requires_all(self) -> bool:
        return self is not ValidationMode.PARTIAL_UPDATE


def _label(field: str) -> str:
    return field.replace("_", " ")


def parse_number(value: Any) -> Optional[Decimal]:
    """
    Parse a numeric input into a Decimal.

    Accepts Decimal/int/float and numeric strings (surrounding whitespace
    allowed, exponent notation allowed). Returns None when the value is not
    a finite number.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite():
        return None
    return number


class DishValidator:
    """
    Validates dish input for create, create-or-update and partial-update.

    Limits default to the application settings; tests pass their own.
    """

    def __init__(
        self,
        max_photo_size_kb: Optional[int] = None,
        allowed_extensions: Optional[List[str]] = None,
        allowed_mime_types: Optional[List[str]] = None,
    ):
        self.max_photo_size_kb = max_photo_size_kb or settings.max_photo_size_kb
        self.allowed_extensions = allowed_extensions or settings.allowed_photo_extensions
        self.allowed_mime_types = allowed_mime_types or settings.allowed_photo_mime_types

    # ── Field rules ───────────────────────────────────────────────────────

    def _check_name(
        self, value: Any, mode: ValidationMode, errors: Dict[str, List[str]]
    ) -> Optional[str]:
        field = "name"
        if value is None:
            if mode.requires_all:
                errors.setdefault(field, []).append(f"The {field} field is required.")
            return None

        if not isinstance(value, str):
            errors.setdefault(field, []).append(f"The {field} field must be a string.")
            return None

        name = value.strip()
        if not name:
            if mode.requires_all:
                errors.setdefault(field, []).append(f"The {field} field is required.")
            else:
                errors.setdefault(field, []).append(f"The {field} field must be a string.")
            return None

        if len(name) > MAX_NAME_LENGTH:
            errors.setdefault(field, []).append(
                f"The {field} field must not be greater than {MAX_NAME_LENGTH} characters."
            )
            return None
        return name

    def _check_number(
        self,
        field: str,
        value: Any,
        required: bool,
        errors: Dict[str, List[str]],
    ) -> Optional[Decimal]:
        blank = value is None or (isinstance(value, str) and not value.strip())
        if blank:
            if required:
                errors.setdefault(field, []).append(f"The {_label(field)} field is required.")
            elif value is not None:
                errors.setdefault(field, []).append(f"The {_label(field)} field must be a number.")
            return None

        number = parse_number(value)
        if number is None:
            errors.setdefault(field, []).append(f"The {_label(field)} field must be a number.")
        return number

    def _check_price(
        self, value: Any, required: bool, errors: Dict[str, List[str]]
    ) -> Optional[Decimal]:
        field = "price"
        number = self._check_number(field, value, required, errors)
        if number is None:
            return None

        # Bound before quantizing: quantize() fails past the context precision
        price = None
        if abs(number) <= MAX_PRICE + 1:
            price = number.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
        if price is None or abs(price) > MAX_PRICE:
            errors.setdefault(field, []).append(
                f"The {field} field must be between -{MAX_PRICE} and {MAX_PRICE}."
            )
            return None
        return price

    def detect_mime_type(self, content: bytes) -> str:
        """
        Identify the photo's type from its content bytes via libmagic.

        Raises:
            UnexpectedError: libmagic itself failed (→ 500)
        """
        try:
            mime_type = magic.from_buffer(content, mime=True)
        except Exception as e:
            logger.error("Photo type detection failed: %s", str(e))
            raise UnexpectedError(
                message="Could not verify the photo type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type in XML_MIME_TYPES and b"<svg" in content[:4096].lower():
            return "image/svg+xml"
        return mime_type

    def _check_photo(
        self, photo: Optional[PhotoUpload], errors: Dict[str, List[str]]
    ) -> Optional[PhotoUpload]:
        if photo is None:
            return None

        field = "photo"
        messages: List[str] = []

        if photo.size == 0:
            messages.append(f"The {field} field must be an image.")
        else:
            mime_type = self.detect_mime_type(photo.content)
            if mime_type != photo.content_type:
                logger.debug(
                    "Photo %r declared as %s, detected as %s",
                    photo.filename, photo.content_type, mime_type,
                )
            if not mime_type.startswith("image/"):
                messages.append(f"The {field} field must be an image.")
            if mime_type not in self.allowed_mime_types:
                messages.append(
                    f"The {field} field must be a file of type: "
                    f"{', '.join(self.allowed_extensions)}."
                )

        if photo.size > self.max_photo_size_kb * 1024:
            messages.append(
                f"The {field} field must not be greater than {self.max_photo_size_kb} kilobytes."
            )

        if messages:
            errors[field] = messages
            return None
        return photo

    # ── Public API ────────────────────────────────────────────────────────

    def validate(
        self,
        mode: ValidationMode,
        name: Any = None,
        price: Any = None,
        photo: Optional[PhotoUpload] = None,
    ) -> DishInput:
        """
        Validate a write request and return the accepted field set.

        Raises:
            ValidationFailedError: with every violated rule, keyed by field
        """
        errors: Dict[str, List[str]] = {}

        accepted_name = self._check_name(name, mode, errors)
        accepted_price = self._check_price(price, mode.requires_all, errors)
        accepted_photo = self._check_photo(photo, errors)

        if errors:
            logger.info("Dish input rejected (%s): %s", mode.value, errors)
            raise ValidationFailedError(errors, context={"mode": mode.value})

        return DishInput(name=accepted_name, price=accepted_price, photo=accepted_photo)

    def validate_price_range(
        self, min_price: Any = None, max_price: Any = None
    ) -> Tuple[Optional[Decimal], Optional[Decimal]]:
        """Validate optional list filters; both bounds are inclusive."""
        errors: Dict[str, List[str]] = {}
        low = self._check_number("min_price", min_price, False, errors)
        high = self._check_number("max_price", max_price, False, errors)
        if errors:
            raise ValidationFailedError(errors, context={"mode": "list"})
        return low, high


dish_validator = DishValidator()
