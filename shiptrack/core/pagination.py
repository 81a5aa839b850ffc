from __future__ import annotations

import base64
import binascii
import json
from typing import Mapping


class InvalidCursorError(ValueError):
    """The pagination token could not be decoded."""


def encode_cursor(key: Mapping[str, str]) -> str:
    """
    Wrap a store continuation key into an opaque token safe for a query string.
    """
    raw = json.dumps(dict(key), sort_keys=True, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_cursor(token: str) -> dict[str, str]:
    """
    Inverse of encode_cursor. Raises InvalidCursorError for anything it did not produce.
    """
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        key = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursorError("Malformed pagination token") from e

    if not isinstance(key, dict) or not key:
        raise InvalidCursorError("Malformed pagination token")
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in key.items()):
        raise InvalidCursorError("Malformed pagination token")
    return key
