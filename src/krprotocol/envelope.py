"""
Flat JSON envelope helpers shared by requests and responses.

Both directions carry a sum type as a flat JSON object: the shared envelope
fields sit next to a single discriminator key whose value holds the variant.
"""

import json
import logging
from typing import Any, Iterable, Optional, Tuple, Union

from .blob import decode_blob, encode_blob
from .types import FormatError

logger = logging.getLogger(__name__)

_MISSING = object()


def load_json_object(data: Union[bytes, str]) -> dict:
    """
    Parse envelope text into a JSON object.

    Args:
        data: UTF-8 JSON bytes or text (already unsealed)

    Returns:
        Parsed dictionary

    Raises:
        FormatError: If data is not valid JSON or not an object
    """
    try:
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8")
        obj = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise FormatError(f"Invalid JSON envelope: {exc}") from exc

    if not isinstance(obj, dict):
        raise FormatError(f"Envelope must be a JSON object, got {type(obj).__name__}")

    return obj


def dump_json_object(obj: dict) -> bytes:
    """Serialize an envelope compactly as UTF-8 JSON."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def select_variant(obj: dict, known_keys: Iterable[str], suffix: str) -> Tuple[str, Any]:
    """
    Find the single discriminator key of a flat envelope.

    Any key ending in ``suffix`` is treated as a discriminator; exactly one
    must be present and it must be one of ``known_keys``.

    Returns:
        Tuple of (discriminator key, variant value)

    Raises:
        FormatError: If zero, several, or unrecognized discriminators are present
    """
    known_keys = tuple(known_keys)
    unknown = [key for key in obj if key.endswith(suffix) and key not in known_keys]
    if unknown:
        logger.debug("Rejected envelope with unknown discriminator(s): %s", unknown)
        raise FormatError(f"Unrecognized variant key(s): {', '.join(sorted(unknown))}")

    present = [key for key in known_keys if key in obj]
    if not present:
        logger.debug("Rejected envelope without a discriminator")
        raise FormatError(f"Missing variant key, expected one of: {', '.join(known_keys)}")

    if len(present) > 1:
        logger.debug("Rejected envelope with several discriminators: %s", present)
        raise FormatError(f"Expected exactly one variant key, got: {', '.join(present)}")

    key = present[0]
    return key, obj[key]


def _check_type(key: str, value: Any, kind: type) -> Any:
    # bool is an int subclass but never a valid integer field
    if kind is int and isinstance(value, bool):
        raise FormatError(f"Field '{key}' must be int, got bool")
    if not isinstance(value, kind):
        raise FormatError(f"Field '{key}' must be {kind.__name__}, got {type(value).__name__}")
    return value


def require(obj: dict, key: str, kind: type) -> Any:
    """Read a required field of the given JSON type."""
    value = obj.get(key, _MISSING)
    if value is _MISSING or value is None:
        raise FormatError(f"Missing field '{key}'")
    return _check_type(key, value, kind)


def optional(obj: dict, key: str, kind: type) -> Optional[Any]:
    """Read an optional field; a missing key and null both mean absent."""
    value = obj.get(key)
    if value is None:
        return None
    return _check_type(key, value, kind)


def require_blob(obj: dict, key: str) -> bytes:
    """Read a required base64 field."""
    return decode_blob(require(obj, key, str))


def optional_blob(obj: dict, key: str) -> Optional[bytes]:
    """Read an optional base64 field."""
    value = optional(obj, key, str)
    return None if value is None else decode_blob(value)


def optional_blob_to_json(data: Optional[bytes]) -> Optional[str]:
    return None if data is None else encode_blob(data)


def has_all(obj: dict, keys: Iterable[str]) -> bool:
    """Whether every key is present with a non-null value."""
    return all(obj.get(key) is not None for key in keys)
