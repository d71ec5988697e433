"""Public keys announced by a pairing peer."""

from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PublicKey

from .types import X25519_PUBLIC_KEY_SIZE, FormatError


def public_key_from_bytes(data: bytes) -> X25519PublicKey:
    """
    Parse the unsealed payload of a SealedPublicKey frame.

    Args:
        data: Raw 32-byte X25519 public key

    Returns:
        X25519PublicKey

    Raises:
        FormatError: If data is not 32 bytes
    """
    if len(data) != X25519_PUBLIC_KEY_SIZE:
        raise FormatError(
            f"Public key must be {X25519_PUBLIC_KEY_SIZE} bytes, got {len(data)}"
        )
    return X25519PublicKey.from_public_bytes(bytes(data))


def announcement_payload(public_key: X25519PublicKey) -> bytes:
    """Raw key bytes to seal into a SealedPublicKey frame."""
    return public_key.public_bytes_raw()
