"""Outermost transport framing: a one-byte tag in front of a sealed payload."""

import logging
from dataclasses import dataclass
from typing import ClassVar, Dict, Union

from .blob import blob_fingerprint
from .types import (
    SEALED_MESSAGE_TAG,
    SEALED_PUBLIC_KEY_TAG,
    InvalidWireProtocolError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SealedMessage:
    """Sealed request/response envelope."""
    TAG: ClassVar[int] = SEALED_MESSAGE_TAG
    payload: bytes


@dataclass(frozen=True)
class SealedPublicKey:
    """Sealed public key announcement from a pairing peer."""
    TAG: ClassVar[int] = SEALED_PUBLIC_KEY_TAG
    payload: bytes


WireMessage = Union[SealedMessage, SealedPublicKey]

_BY_TAG: Dict[int, type] = {
    SealedMessage.TAG: SealedMessage,
    SealedPublicKey.TAG: SealedPublicKey,
}


def encode_wire_message(message: WireMessage) -> bytes:
    """
    Frame a sealed payload for the transport.

    Format:
        [0]   tag (0x00 sealed message, 0x02 sealed public key)
        [1+]  payload (variable, opaque)

    Args:
        message: SealedMessage or SealedPublicKey

    Returns:
        Framed bytes
    """
    return bytes([message.TAG]) + bytes(message.payload)


def decode_wire_message(data: bytes) -> WireMessage:
    """
    Split transport bytes into tag and sealed payload.

    Args:
        data: Bytes received from the transport

    Returns:
        SealedMessage or SealedPublicKey

    Raises:
        InvalidWireProtocolError: If data is empty or the tag is unknown
    """
    if len(data) == 0:
        logger.debug("Rejected empty wire message")
        raise InvalidWireProtocolError()

    tag = data[0]
    message_type = _BY_TAG.get(tag)
    if message_type is None:
        logger.debug("Rejected wire message with tag 0x%02x (%d bytes, %s)",
                     tag, len(data), blob_fingerprint(data))
        raise InvalidWireProtocolError(tag)

    return message_type(payload=bytes(data[1:]))


def is_wire_message(data: bytes) -> bool:
    """
    Check if data starts with a known wire tag.

    Args:
        data: Bytes to check

    Returns:
        True if decode_wire_message would accept data
    """
    return len(data) > 0 and data[0] in _BY_TAG
