"""Base64 codec for binary fields carried inside the JSON envelope."""

import base64
import binascii
import hashlib

from .types import FormatError


def encode_blob(data: bytes) -> str:
    """
    Encode bytes as standard padded base64 text.

    Args:
        data: Raw bytes (challenge, signature, key, handle...)

    Returns:
        Base64 string without line breaks
    """
    return base64.b64encode(bytes(data)).decode("ascii")


def decode_blob(text: str) -> bytes:
    """
    Decode standard padded base64 text.

    Args:
        text: Base64 string from the envelope

    Returns:
        Decoded bytes

    Raises:
        FormatError: If text is not a string or not valid standard base64
    """
    if not isinstance(text, str):
        raise FormatError(f"Expected base64 string, got {type(text).__name__}")

    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise FormatError(f"Invalid base64: {exc}") from exc


def blob_fingerprint(data: bytes) -> str:
    """Short hex identifier for logging binary values without exposing them."""
    return hashlib.sha256(bytes(data)).hexdigest()[:16]
