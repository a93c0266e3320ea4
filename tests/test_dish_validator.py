"""
Platebase — Dish Validator Unit Tests
=======================================

What:  Tests for the field rules of each write mode and the list filters.

What we test:
    ✅ Required fields in create / create-or-update modes
    ✅ Optional fields in partial-update mode
    ✅ All violations reported together, keyed by field
    ✅ Price rounding to cents and the column range
    ✅ Photo checks on detected content type: image, allowed type, size limit
    ✅ Price range filter parsing

Photo type detection uses the real libmagic, so the payloads below carry
genuine file signatures.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from platebase.exceptions import UnexpectedError, ValidationFailedError
from platebase.schemas.dish import PhotoUpload
from platebase.services.dish_validator import (
    DishValidator,
    ValidationMode,
    parse_number,
)

JPEG_BYTES = (
    b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
    b'\xff\xd9'
)
PNG_BYTES = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01'
GIF_BYTES = b'GIF89a\x01\x00\x01\x00\x00\x00\x00;'
PDF_BYTES = b'%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n'
SVG_BYTES = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b'<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"></svg>\n'
)


def padded_jpeg(size):
    return JPEG_BYTES + b"\x00" * (size - len(JPEG_BYTES))


def make_photo(content=JPEG_BYTES, filename="dish.jpg", content_type="image/jpeg"):
    return PhotoUpload(filename=filename, content_type=content_type, content=content)


class TestCreateRules:

    def setup_method(self):
        self.validator = DishValidator()

    def test_valid_input_is_accepted(self):
        result = self.validator.validate(ValidationMode.CREATE, name="Pizza", price="12.50")
        assert result.name == "Pizza"
        assert result.price == Decimal("12.50")
        assert result.photo is None

    def test_name_is_trimmed(self):
        result = self.validator.validate(ValidationMode.CREATE, name="  Soup  ", price="3")
        assert result.name == "Soup"

    def test_missing_price_is_reported(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.CREATE, name="Pizza")
        assert exc_info.value.errors == {"price": ["The price field is required."]}

    def test_missing_price_and_long_name_reported_together(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.CREATE_OR_UPDATE, name="x" * 256)
        errors = exc_info.value.errors
        assert errors["price"] == ["The price field is required."]
        assert errors["name"] == ["The name field must not be greater than 255 characters."]

    def test_name_at_limit_passes(self):
        result = self.validator.validate(ValidationMode.CREATE, name="x" * 255, price="1")
        assert len(result.name) == 255

    def test_blank_name_is_required(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.CREATE, name="   ", price="1")
        assert exc_info.value.errors == {"name": ["The name field is required."]}

    def test_non_string_name_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.CREATE, name=42, price="1")
        assert exc_info.value.errors == {"name": ["The name field must be a string."]}

    @pytest.mark.parametrize("price", ["abc", "12,50", "NaN", "Infinity", True])
    def test_non_numeric_price_rejected(self, price):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.CREATE, name="Pizza", price=price)
        assert exc_info.value.errors == {"price": ["The price field must be a number."]}

    @pytest.mark.parametrize(
        "price, expected",
        [("10", Decimal("10")), (" 9.99 ", Decimal("9.99")), ("-3", Decimal("-3")),
         ("1e2", Decimal("100")), (7, Decimal("7")), (Decimal("1.5"), Decimal("1.5"))],
    )
    def test_numeric_price_accepted(self, price, expected):
        result = self.validator.validate(ValidationMode.CREATE, name="Pizza", price=price)
        assert result.price == expected


class TestPartialUpdateRules:

    def setup_method(self):
        self.validator = DishValidator()

    def test_everything_optional(self):
        result = self.validator.validate(ValidationMode.PARTIAL_UPDATE)
        assert result.name is None
        assert result.price is None
        assert result.photo is None

    def test_only_price(self):
        result = self.validator.validate(ValidationMode.PARTIAL_UPDATE, price="15")
        assert result.price == Decimal("15")
        assert result.name is None

    def test_present_but_invalid_fields_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.PARTIAL_UPDATE, name="", price="cheap")
        assert exc_info.value.errors == {
            "name": ["The name field must be a string."],
            "price": ["The price field must be a number."],
        }


class TestPriceRules:

    def setup_method(self):
        self.validator = DishValidator()

    @pytest.mark.parametrize(
        "price, expected",
        [("12.345", Decimal("12.35")), ("12.344", Decimal("12.34")),
         ("0.005", Decimal("0.01")), ("-1.005", Decimal("-1.01")), ("7", Decimal("7.00"))],
    )
    def test_price_rounded_to_cents(self, price, expected):
        result = self.validator.validate(ValidationMode.CREATE, name="Pizza", price=price)
        assert result.price == expected
        assert result.price.as_tuple().exponent == -2

    @pytest.mark.parametrize("price", ["99999999.99", "-99999999.99", "99999999.994"])
    def test_price_at_column_limit_passes(self, price):
        result = self.validator.validate(ValidationMode.PARTIAL_UPDATE, price=price)
        assert abs(result.price) == Decimal("99999999.99")

    @pytest.mark.parametrize("price", ["100000000", "1e8", "99999999.995", "-1e8", "1e30"])
    def test_price_out_of_range_rejected(self, price):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.CREATE, name="Pizza", price=price)
        assert exc_info.value.errors == {
            "price": ["The price field must be between -99999999.99 and 99999999.99."]
        }


class TestPhotoRules:

    def setup_method(self):
        self.validator = DishValidator(max_photo_size_kb=1)

    def test_jpeg_accepted(self):
        photo = make_photo()
        result = self.validator.validate(ValidationMode.CREATE, name="A", price="1", photo=photo)
        assert result.photo is photo

    @pytest.mark.parametrize(
        "content, filename, content_type",
        [(PNG_BYTES, "a.png", "image/png"),
         (JPEG_BYTES, "a.JPG", None),
         (SVG_BYTES, "a.svg", "image/svg+xml"),
         (PNG_BYTES, "upload", "application/octet-stream")],
    )
    def test_allowed_types(self, content, filename, content_type):
        photo = make_photo(content=content, filename=filename, content_type=content_type)
        result = self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert result.photo is photo

    def test_type_comes_from_content_not_filename(self):
        """A PNG named .jpg is still a PNG, and PNG is allowed."""
        photo = make_photo(content=PNG_BYTES, filename="photo.jpg", content_type="image/jpeg")
        assert self.validator.detect_mime_type(photo.content) == "image/png"
        result = self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert result.photo is photo

    def test_gif_rejected_as_wrong_type(self):
        photo = make_photo(content=GIF_BYTES, filename="anim.gif", content_type="image/gif")
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert exc_info.value.errors == {
            "photo": ["The photo field must be a file of type: jpeg, png, jpg, svg."]
        }

    def test_pdf_is_not_an_image(self):
        photo = make_photo(content=PDF_BYTES, filename="menu.pdf", content_type="application/pdf")
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert exc_info.value.errors["photo"] == [
            "The photo field must be an image.",
            "The photo field must be a file of type: jpeg, png, jpg, svg.",
        ]

    def test_script_disguised_as_jpeg_rejected(self):
        photo = make_photo(content=b"#!/bin/sh\necho hi\n", filename="x.jpg", content_type="image/jpeg")
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert exc_info.value.errors["photo"] == [
            "The photo field must be an image.",
            "The photo field must be a file of type: jpeg, png, jpg, svg.",
        ]

    def test_empty_file_rejected(self):
        photo = make_photo(content=b"")
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert exc_info.value.errors == {"photo": ["The photo field must be an image."]}

    def test_detection_failure_is_unexpected_error(self):
        with patch("platebase.services.dish_validator.magic.from_buffer",
                   side_effect=RuntimeError("libmagic unavailable")):
            with pytest.raises(UnexpectedError) as exc_info:
                self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=make_photo())
        assert exc_info.value.message == "Could not verify the photo type. Please try again."

    def test_size_at_limit_passes(self):
        photo = make_photo(content=padded_jpeg(1024))
        result = self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert result.photo.size == 1024

    def test_size_over_limit_rejected(self):
        photo = make_photo(content=padded_jpeg(1025))
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert exc_info.value.errors == {
            "photo": ["The photo field must not be greater than 1 kilobytes."]
        }

    def test_default_limit_is_2048_kb(self):
        validator = DishValidator()
        photo = make_photo(content=padded_jpeg(2048 * 1024 + 1))
        with pytest.raises(ValidationFailedError) as exc_info:
            validator.validate(ValidationMode.PARTIAL_UPDATE, photo=photo)
        assert exc_info.value.errors == {
            "photo": ["The photo field must not be greater than 2048 kilobytes."]
        }

    def test_photo_errors_reported_with_other_fields(self):
        photo = make_photo(content=b"plain text notes\n", filename="doc.txt", content_type="text/plain")
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate(ValidationMode.CREATE, photo=photo)
        assert set(exc_info.value.errors) == {"name", "price", "photo"}


class TestPriceRange:

    def setup_method(self):
        self.validator = DishValidator()

    def test_no_bounds(self):
        assert self.validator.validate_price_range() == (None, None)

    def test_both_bounds(self):
        assert self.validator.validate_price_range("20", "50.5") == (Decimal("20"), Decimal("50.5"))

    def test_invalid_bounds_reported_together(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            self.validator.validate_price_range("low", "")
        assert exc_info.value.errors == {
            "min_price": ["The min price field must be a number."],
            "max_price": ["The max price field must be a number."],
        }


def test_parse_number_rejects_unsupported_types():
    assert parse_number(None) is None
    assert parse_number([1]) is None
    assert parse_number(False) is None
