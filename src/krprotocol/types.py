"""Type definitions and constants for the Kr protocol."""

# Protocol constants
PROTOCOL_VERSION = "3.0.0"
REQUEST_ID_SIZE = 32

# Wire tags
SEALED_MESSAGE_TAG = 0x00
SEALED_PUBLIC_KEY_TAG = 0x02

# Envelope keys
REQUEST_ID_KEY = "request_id"
UNIX_SECONDS_KEY = "unix_seconds"
SEND_ACK_KEY = "a"
VERSION_KEY = "v"
PUSH_ID_KEY = "sns_endpoint_arn"
DEVICE_TOKEN_KEY = "device_token"
ERROR_KEY = "error"

# Discriminator keys
ID_REQUEST_KEY = "me_request"
REGISTER_REQUEST_KEY = "u2f_register_request"
AUTHENTICATE_REQUEST_KEY = "u2f_authenticate_request"

ID_RESPONSE_KEY = "me_response"
REGISTER_RESPONSE_KEY = "u2f_register_response"
AUTHENTICATE_RESPONSE_KEY = "u2f_authenticate_response"

REQUEST_SUFFIX = "_request"
RESPONSE_SUFFIX = "_response"

X25519_PUBLIC_KEY_SIZE = 32
MAX_COUNTER = 0xFFFFFFFF


# Exception types
class KrProtocolError(Exception):
    """Base exception for Kr protocol errors."""
    pass


class FormatError(KrProtocolError):
    """Malformed base64, JSON, or envelope structure."""
    pass


class InvalidWireProtocolError(KrProtocolError):
    """Unknown or missing wire tag byte."""

    def __init__(self, tag=None) -> None:
        self.tag = tag
        if tag is None:
            super().__init__("Empty wire message")
        else:
            super().__init__(f"Unknown wire tag: 0x{tag:02x}")


class DeviceError(KrProtocolError):
    """The paired device reported a failure."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnexpectedResponseError(KrProtocolError):
    """The response did not have the shape the caller expected."""

    def __init__(self, reason: str = "Unexpected response") -> None:
        self.reason = reason
        super().__init__(reason)
