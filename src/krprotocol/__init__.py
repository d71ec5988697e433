"""
krprotocol - Request/response codec for a paired phone authenticator

Python implementation of the Kr U2F/WebAuthn request protocol: JSON
envelopes, device results, and sealed transport framing.
"""

from .blob import encode_blob, decode_blob, blob_fingerprint
from .keys import public_key_from_bytes, announcement_payload
from .request import (
    RequestConfig,
    IdRequest,
    UserData,
    RegisterRequest,
    AuthenticateRequest,
    Request,
    new_request,
    request_to_dict,
    request_from_dict,
    encode_request,
    decode_request,
)
from .response import (
    IdData,
    IdResponse,
    RegisterResponse,
    AuthenticateResponse,
    ClientResult,
    ResponseKind,
    ResponseBody,
    Response,
    into_id_response,
    into_register_response,
    into_authenticate_response,
    response_to_dict,
    response_from_dict,
    encode_response,
    decode_response,
)
from .wire import (
    SealedMessage,
    SealedPublicKey,
    encode_wire_message,
    decode_wire_message,
    is_wire_message,
)
from .types import (
    PROTOCOL_VERSION,
    SEALED_MESSAGE_TAG,
    SEALED_PUBLIC_KEY_TAG,
    KrProtocolError,
    FormatError,
    InvalidWireProtocolError,
    DeviceError,
    UnexpectedResponseError,
)

__version__ = "0.1.0"

__all__ = [
    # Blob
    "encode_blob",
    "decode_blob",
    "blob_fingerprint",
    # Keys
    "public_key_from_bytes",
    "announcement_payload",
    # Requests
    "RequestConfig",
    "IdRequest",
    "UserData",
    "RegisterRequest",
    "AuthenticateRequest",
    "Request",
    "new_request",
    "request_to_dict",
    "request_from_dict",
    "encode_request",
    "decode_request",
    # Responses
    "IdData",
    "IdResponse",
    "RegisterResponse",
    "AuthenticateResponse",
    "ClientResult",
    "ResponseKind",
    "ResponseBody",
    "Response",
    "into_id_response",
    "into_register_response",
    "into_authenticate_response",
    "response_to_dict",
    "response_from_dict",
    "encode_response",
    "decode_response",
    # Wire
    "SealedMessage",
    "SealedPublicKey",
    "encode_wire_message",
    "decode_wire_message",
    "is_wire_message",
    # Constants
    "PROTOCOL_VERSION",
    "SEALED_MESSAGE_TAG",
    "SEALED_PUBLIC_KEY_TAG",
    # Errors
    "KrProtocolError",
    "FormatError",
    "InvalidWireProtocolError",
    "DeviceError",
    "UnexpectedResponseError",
]
