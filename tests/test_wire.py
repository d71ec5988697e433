"""Tests for transport wire framing."""

import os
import pytest
from krprotocol.wire import (
    SealedMessage,
    SealedPublicKey,
    decode_wire_message,
    encode_wire_message,
    is_wire_message,
)
from krprotocol.types import InvalidWireProtocolError


class TestDecodeWireMessage:
    """Tag byte selects the message kind."""

    def test_sealed_message(self) -> None:
        assert decode_wire_message(bytes([0x00, 1, 2, 3])) == SealedMessage(bytes([1, 2, 3]))

    def test_sealed_public_key(self) -> None:
        assert decode_wire_message(bytes([0x02, 9])) == SealedPublicKey(bytes([9]))

    def test_tag_only(self) -> None:
        assert decode_wire_message(b"\x00") == SealedMessage(b"")

    def test_empty(self) -> None:
        with pytest.raises(InvalidWireProtocolError) as exc_info:
            decode_wire_message(b"")
        assert exc_info.value.tag is None

    @pytest.mark.parametrize("tag", [0x01, 0x03, 0x7F, 0xFF])
    def test_reserved_and_unknown_tags(self, tag: int) -> None:
        with pytest.raises(InvalidWireProtocolError, match=f"0x{tag:02x}"):
            decode_wire_message(bytes([tag, 1, 2, 3]))

    def test_is_wire_message(self) -> None:
        assert is_wire_message(b"\x00abc")
        assert is_wire_message(b"\x02")
        assert not is_wire_message(b"\x01abc")
        assert not is_wire_message(b"")


class TestEncodeWireMessage:
    """Framing prepends the tag byte."""

    def test_sealed_message(self) -> None:
        assert encode_wire_message(SealedMessage(bytes([1, 2, 3]))) == bytes([0x00, 1, 2, 3])

    def test_sealed_public_key(self) -> None:
        assert encode_wire_message(SealedPublicKey(b"")) == b"\x02"

    @pytest.mark.parametrize("message_type", [SealedMessage, SealedPublicKey])
    @pytest.mark.parametrize("size", [0, 1, 32, 4096])
    def test_round_trip(self, message_type, size: int) -> None:
        message = message_type(os.urandom(size))
        assert decode_wire_message(encode_wire_message(message)) == message

    def test_kinds_are_distinct(self) -> None:
        assert SealedMessage(b"x") != SealedPublicKey(b"x")
