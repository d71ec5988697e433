"""Tests for announced public key parsing."""

import pytest
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey

from krprotocol.keys import announcement_payload, public_key_from_bytes
from krprotocol.types import FormatError
from krprotocol.wire import SealedPublicKey, decode_wire_message, encode_wire_message


class TestAnnouncedPublicKey:
    """Raw X25519 public keys carried by SealedPublicKey frames."""

    def test_round_trip(self) -> None:
        public_key = X25519PrivateKey.generate().public_key()
        raw = announcement_payload(public_key)

        assert len(raw) == 32
        assert announcement_payload(public_key_from_bytes(raw)) == raw

    def test_through_wire_frame(self) -> None:
        raw = announcement_payload(X25519PrivateKey.generate().public_key())
        frame = decode_wire_message(encode_wire_message(SealedPublicKey(raw)))

        # Sealing is done by the transport; the payload here stands in for the unsealed key.
        assert isinstance(frame, SealedPublicKey)
        assert announcement_payload(public_key_from_bytes(frame.payload)) == raw

    @pytest.mark.parametrize("size", [0, 31, 33, 64])
    def test_invalid_length(self, size: int) -> None:
        with pytest.raises(FormatError, match="32 bytes"):
            public_key_from_bytes(bytes(size))
