"""
Inbound response envelope, its payload variants, and result unwrapping.

Every response variant wraps its payload in a ClientResult: the payload
fields are flattened next to an ``error`` field, and the device fills in one
or the other. Callers narrow a ResponseBody to the payload they asked for
with ResponseBody.expect() or the into_*_response() helpers.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Generic, Optional, Tuple, Type, TypeVar, Union

from .blob import encode_blob
from .envelope import (
    dump_json_object,
    has_all,
    load_json_object,
    optional,
    optional_blob,
    optional_blob_to_json,
    require,
    require_blob,
    select_variant,
)
from .types import (
    AUTHENTICATE_RESPONSE_KEY,
    DEVICE_TOKEN_KEY,
    ERROR_KEY,
    ID_RESPONSE_KEY,
    MAX_COUNTER,
    PUSH_ID_KEY,
    REGISTER_RESPONSE_KEY,
    REQUEST_ID_KEY,
    RESPONSE_SUFFIX,
    VERSION_KEY,
    DeviceError,
    FormatError,
    UnexpectedResponseError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class IdData:
    """Identity of the paired device."""
    email: str
    device_identifier: bytes

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "device_identifier": encode_blob(self.device_identifier),
        }

    @classmethod
    def from_dict(cls, obj: dict) -> "IdData":
        return cls(
            email=require(obj, "email", str),
            device_identifier=require_blob(obj, "device_identifier"),
        )


@dataclass(frozen=True)
class IdResponse:
    """Reply to an IdRequest."""
    REQUIRED_KEYS: ClassVar[Tuple[str, ...]] = ("me",)

    data: IdData

    def to_dict(self) -> dict:
        return {"me": self.data.to_dict()}

    @classmethod
    def from_dict(cls, obj: dict) -> "IdResponse":
        return cls(data=IdData.from_dict(require(obj, "me", dict)))


@dataclass(frozen=True)
class RegisterResponse:
    """Reply to a RegisterRequest."""
    REQUIRED_KEYS: ClassVar[Tuple[str, ...]] = (
        "public_key",
        "key_handle",
        "attestation_certificate",
        "signature",
        "attestation_data",
    )

    public_key: bytes
    key_handle: bytes
    attestation_certificate: bytes
    signature: bytes
    attestation_data: bytes

    def to_dict(self) -> dict:
        return {key: encode_blob(getattr(self, key)) for key in self.REQUIRED_KEYS}

    @classmethod
    def from_dict(cls, obj: dict) -> "RegisterResponse":
        return cls(**{key: require_blob(obj, key) for key in cls.REQUIRED_KEYS})


@dataclass(frozen=True)
class AuthenticateResponse:
    """Reply to an AuthenticateRequest."""
    REQUIRED_KEYS: ClassVar[Tuple[str, ...]] = (
        "public_key",
        "counter",
        "signature",
        "key_handle",
        "authenticator_data",
    )

    public_key: bytes
    counter: int  # uint32 signature counter
    signature: bytes
    key_handle: bytes
    authenticator_data: bytes
    user_handle: Optional[bytes] = None

    def to_dict(self) -> dict:
        return {
            "public_key": encode_blob(self.public_key),
            "counter": self.counter,
            "signature": encode_blob(self.signature),
            "key_handle": encode_blob(self.key_handle),
            "user_handle": optional_blob_to_json(self.user_handle),
            "authenticator_data": encode_blob(self.authenticator_data),
        }

    @classmethod
    def from_dict(cls, obj: dict) -> "AuthenticateResponse":
        counter = require(obj, "counter", int)
        if not 0 <= counter <= MAX_COUNTER:
            raise FormatError(f"Counter out of range: {counter}")

        return cls(
            public_key=require_blob(obj, "public_key"),
            counter=counter,
            signature=require_blob(obj, "signature"),
            key_handle=require_blob(obj, "key_handle"),
            authenticator_data=require_blob(obj, "authenticator_data"),
            user_handle=optional_blob(obj, "user_handle"),
        )


Payload = Union[IdResponse, RegisterResponse, AuthenticateResponse]


@dataclass(frozen=True)
class ClientResult(Generic[T]):
    """A device result: either payload contents or an error message."""
    contents: Optional[T] = None
    error: Optional[str] = None

    def into_result(self) -> T:
        """
        Resolve to the payload, giving the error precedence.

        Returns:
            The contents when no error was reported

        Raises:
            DeviceError: If the device reported an error (even alongside contents)
            UnexpectedResponseError: If neither contents nor error are present
        """
        if self.error is not None:
            logger.debug("Device reported an error: %s", self.error)
            raise DeviceError(self.error)

        if self.contents is None:
            raise UnexpectedResponseError("Result has neither contents nor error")

        return self.contents

    def to_dict(self) -> dict:
        obj = {} if self.contents is None else self.contents.to_dict()
        obj[ERROR_KEY] = self.error
        return obj

    @classmethod
    def from_dict(cls, obj: dict, payload_type: Type[T]) -> "ClientResult[T]":
        """
        Parse a flattened result.

        Contents count as present only when every required payload key is
        there; partial contents are treated as absent. Malformed contents
        raise FormatError unless the device also reported an error, which
        then takes precedence and the contents are dropped.
        """
        error = optional(obj, ERROR_KEY, str)
        if not has_all(obj, payload_type.REQUIRED_KEYS):
            return cls(contents=None, error=error)

        try:
            contents = payload_type.from_dict(obj)
        except FormatError as exc:
            if error is None:
                raise
            logger.debug("Dropped malformed %s next to device error: %s", payload_type.__name__, exc)
            contents = None

        return cls(contents=contents, error=error)


class ResponseKind(Enum):
    """Response variants, valued by their discriminator key."""
    ID = ID_RESPONSE_KEY
    REGISTER = REGISTER_RESPONSE_KEY
    AUTHENTICATE = AUTHENTICATE_RESPONSE_KEY

    @property
    def payload_type(self) -> type:
        return _PAYLOAD_TYPES[self]


_PAYLOAD_TYPES: Dict[ResponseKind, type] = {
    ResponseKind.ID: IdResponse,
    ResponseKind.REGISTER: RegisterResponse,
    ResponseKind.AUTHENTICATE: AuthenticateResponse,
}


@dataclass(frozen=True)
class ResponseBody:
    """The variant part of a response."""
    kind: ResponseKind
    result: ClientResult

    @classmethod
    def success(cls, contents: Payload) -> "ResponseBody":
        """Body carrying a successful payload."""
        for kind, payload_type in _PAYLOAD_TYPES.items():
            if isinstance(contents, payload_type):
                return cls(kind=kind, result=ClientResult(contents=contents))
        raise TypeError(f"Unsupported response payload: {type(contents).__name__}")

    @classmethod
    def failure(cls, kind: ResponseKind, error: str) -> "ResponseBody":
        """Body carrying a device error."""
        return cls(kind=kind, result=ClientResult(error=error))

    def expect(self, payload_type: Type[T]) -> T:
        """
        Narrow to the payload type the caller asked for.

        Raises:
            UnexpectedResponseError: If the variant does not match, whether or
                not the other variant was a success
            DeviceError: If the matching variant carries a device error
        """
        if self.kind.payload_type is not payload_type:
            raise UnexpectedResponseError(
                f"Expected {payload_type.__name__}, got {self.kind.value}"
            )
        return self.result.into_result()


def into_id_response(body: ResponseBody) -> IdResponse:
    return body.expect(IdResponse)


def into_register_response(body: ResponseBody) -> RegisterResponse:
    return body.expect(RegisterResponse)


def into_authenticate_response(body: ResponseBody) -> AuthenticateResponse:
    return body.expect(AuthenticateResponse)


@dataclass(frozen=True)
class Response:
    """A reply from the paired device."""
    request_id: str
    version: str
    body: ResponseBody
    aws_push_id: Optional[str] = None
    device_token: Optional[str] = None


def response_to_dict(response: Response) -> dict:
    """Flatten a response into its JSON object form."""
    return {
        REQUEST_ID_KEY: response.request_id,
        PUSH_ID_KEY: response.aws_push_id,
        DEVICE_TOKEN_KEY: response.device_token,
        VERSION_KEY: response.version,
        response.body.kind.value: response.body.result.to_dict(),
    }


def response_from_dict(obj: dict) -> Response:
    """
    Rebuild a response from its JSON object form.

    Raises:
        FormatError: If fields are missing or mistyped, or the variant key is
            missing, repeated or unknown
    """
    key, value = select_variant(obj, (kind.value for kind in ResponseKind), RESPONSE_SUFFIX)
    if not isinstance(value, dict):
        raise FormatError(f"Variant '{key}' must be an object")

    kind = ResponseKind(key)
    return Response(
        request_id=require(obj, REQUEST_ID_KEY, str),
        version=require(obj, VERSION_KEY, str),
        body=ResponseBody(kind=kind, result=ClientResult.from_dict(value, kind.payload_type)),
        aws_push_id=optional(obj, PUSH_ID_KEY, str),
        device_token=optional(obj, DEVICE_TOKEN_KEY, str),
    )


def encode_response(response: Response) -> bytes:
    """Serialize a response to UTF-8 JSON."""
    return dump_json_object(response_to_dict(response))


def decode_response(data: Union[bytes, str]) -> Response:
    """Parse an unsealed response envelope."""
    return response_from_dict(load_json_object(data))
