"""
Platebase — Dish Photo Codec
==============================

Converts between raw photo bytes (what the store keeps), bare base64 text
and a data URI (what JSON responses carry).

    decode_upload(raw)  -> bytes         identity on the uploaded file content
    to_wire(data)       -> str | None    bare base64
    to_data_uri(data)   -> str | None    "data:image/jpeg;base64," + base64

The data URI is always labelled image/jpeg, whatever format was uploaded.
Absent photos stay None in both text forms.
"""

import base64
from typing import Optional

DATA_URI_PREFIX = "data:image/jpeg;base64,"


def decode_upload(raw: bytes) -> bytes:
    """Returns the bytes to store for an uploaded file: its content, unchanged."""
    return bytes(raw)


def to_wire(data: Optional[bytes]) -> Optional[str]:
    if data is None:
        return None
    return base64.b64encode(data).decode("ascii")


def to_data_uri(data: Optional[bytes]) -> Optional[str]:
    encoded = to_wire(data)
    if encoded is None:
        return None
    return DATA_URI_PREFIX + encoded
