"""Outbound request envelope and its payload variants."""

import copy
import os
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .blob import decode_blob, encode_blob
from .envelope import (
    dump_json_object,
    load_json_object,
    optional,
    optional_blob,
    optional_blob_to_json,
    require,
    require_blob,
    select_variant,
)
from .types import (
    AUTHENTICATE_REQUEST_KEY,
    ID_REQUEST_KEY,
    PROTOCOL_VERSION,
    REGISTER_REQUEST_KEY,
    REQUEST_ID_KEY,
    REQUEST_ID_SIZE,
    REQUEST_SUFFIX,
    SEND_ACK_KEY,
    UNIX_SECONDS_KEY,
    VERSION_KEY,
    FormatError,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RequestConfig:
    """Randomness and clock used when building requests."""
    random_bytes: Callable[[int], bytes] = os.urandom
    clock: Callable[[], datetime] = _utc_now

    @classmethod
    def deterministic(cls, id_bytes: bytes, unix_seconds: int) -> "RequestConfig":
        """Fixed id bytes and timestamp, for tests and replayable fixtures."""
        if len(id_bytes) != REQUEST_ID_SIZE:
            raise ValueError(f"Request id must be {REQUEST_ID_SIZE} bytes, got {len(id_bytes)}")

        moment = datetime.fromtimestamp(unix_seconds, tz=timezone.utc)
        return cls(
            random_bytes=lambda size: bytes(id_bytes[:size]),
            clock=lambda: moment,
        )


@dataclass(frozen=True)
class IdRequest:
    """Ask the paired device who it is."""
    KIND: ClassVar[str] = ID_REQUEST_KEY

    def to_dict(self) -> dict:
        return {}

    @classmethod
    def from_dict(cls, obj: dict) -> "IdRequest":
        return cls()


@dataclass(frozen=True)
class UserData:
    """WebAuthn user entity attached to a registration."""
    id: bytes
    display_name: str

    def to_dict(self) -> dict:
        return {"id": encode_blob(self.id), "display_name": self.display_name}

    @classmethod
    def from_dict(cls, obj: dict) -> "UserData":
        return cls(id=require_blob(obj, "id"), display_name=require(obj, "display_name", str))


@dataclass(frozen=True)
class RegisterRequest:
    """Register a new key for a relying party."""
    KIND: ClassVar[str] = REGISTER_REQUEST_KEY

    challenge: bytes
    rp_id: str
    rp_name: Optional[str] = None
    user: Optional[UserData] = None
    is_webauthn: bool = False

    def to_dict(self) -> dict:
        return {
            "challenge": encode_blob(self.challenge),
            "app_id": self.rp_id,
            "rp_name": self.rp_name,
            "user": None if self.user is None else self.user.to_dict(),
            "webauthn": self.is_webauthn,
        }

    @classmethod
    def from_dict(cls, obj: dict) -> "RegisterRequest":
        user = optional(obj, "user", dict)
        return cls(
            challenge=require_blob(obj, "challenge"),
            rp_id=require(obj, "app_id", str),
            rp_name=optional(obj, "rp_name", str),
            user=None if user is None else UserData.from_dict(user),
            is_webauthn=require(obj, "webauthn", bool),
        )


@dataclass(frozen=True, init=False, eq=False, repr=False)
class AuthenticateRequest:
    """
    Sign a challenge with a previously registered key.

    The peer may be sent either a single key handle or a list of them.
    Callers read them through get_key_handles(), which gives the list
    precedence over the single handle.
    """

    KIND: ClassVar[str] = AUTHENTICATE_REQUEST_KEY

    challenge: bytes
    rp_id: str
    extensions: Optional[Mapping[str, Any]]
    _key_handle: Optional[bytes]
    _key_handles: Optional[Tuple[bytes, ...]]

    def __init__(
        self,
        challenge: bytes,
        rp_id: str,
        extensions: Optional[Mapping[str, Any]] = None,
        key_handle: Optional[bytes] = None,
        key_handles: Optional[Sequence[bytes]] = None,
    ) -> None:
        # Detached, read-only copy of the caller's mapping
        if extensions is not None:
            extensions = MappingProxyType(copy.deepcopy(dict(extensions)))

        object.__setattr__(self, "challenge", bytes(challenge))
        object.__setattr__(self, "rp_id", rp_id)
        object.__setattr__(self, "extensions", extensions)
        object.__setattr__(self, "_key_handle", None if key_handle is None else bytes(key_handle))
        object.__setattr__(
            self,
            "_key_handles",
            None if key_handles is None else tuple(bytes(kh) for kh in key_handles),
        )

    def get_key_handles(self) -> List[bytes]:
        """Returns the key handles to try, in order."""
        if self._key_handles is not None:
            return list(self._key_handles)
        if self._key_handle is not None:
            return [self._key_handle]
        return []

    def _extensions_dict(self) -> Optional[dict]:
        return None if self.extensions is None else dict(self.extensions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AuthenticateRequest):
            return NotImplemented
        return (
            self.challenge == other.challenge
            and self.rp_id == other.rp_id
            and self._extensions_dict() == other._extensions_dict()
            and self._key_handle == other._key_handle
            and self._key_handles == other._key_handles
        )

    def __hash__(self) -> int:
        # Extension values may be unhashable JSON, so only their keys are hashed
        extension_keys = None if self.extensions is None else tuple(sorted(self.extensions))
        return hash((self.challenge, self.rp_id, extension_keys, self._key_handle, self._key_handles))

    def __repr__(self) -> str:
        return (
            f"AuthenticateRequest(rp_id={self.rp_id!r}, "
            f"key_handles={len(self.get_key_handles())}, "
            f"extensions={sorted(self.extensions) if self.extensions else None})"
        )

    def to_dict(self) -> dict:
        return {
            "challenge": encode_blob(self.challenge),
            "app_id": self.rp_id,
            "extensions": self._extensions_dict(),
            "key_handle": optional_blob_to_json(self._key_handle),
            "key_handles": (
                None if self._key_handles is None
                else [encode_blob(kh) for kh in self._key_handles]
            ),
        }

    @classmethod
    def from_dict(cls, obj: dict) -> "AuthenticateRequest":
        key_handles = optional(obj, "key_handles", list)
        return cls(
            challenge=require_blob(obj, "challenge"),
            rp_id=require(obj, "app_id", str),
            extensions=optional(obj, "extensions", dict),
            key_handle=optional_blob(obj, "key_handle"),
            key_handles=(
                None if key_handles is None
                else [decode_blob(kh) for kh in key_handles]
            ),
        )


RequestBody = Union[IdRequest, RegisterRequest, AuthenticateRequest]

_VARIANTS: Dict[str, type] = {
    ID_REQUEST_KEY: IdRequest,
    REGISTER_REQUEST_KEY: RegisterRequest,
    AUTHENTICATE_REQUEST_KEY: AuthenticateRequest,
}


@dataclass(frozen=True)
class Request:
    """A single outbound operation sent to the paired device."""
    id: str
    unix_seconds: int
    send_ack: bool
    version: str
    body: RequestBody

    def with_ack(self) -> "Request":
        """Same request, asking the peer to acknowledge delivery."""
        return replace(self, send_ack=True)


def new_request(body: RequestBody, config: Optional[RequestConfig] = None) -> Request:
    """
    Build a request with a fresh id and the current time.

    Args:
        body: One of IdRequest, RegisterRequest, AuthenticateRequest
        config: Randomness and clock capabilities (defaults to os.urandom and UTC now)

    Returns:
        New Request
    """
    if not isinstance(body, tuple(_VARIANTS.values())):
        raise TypeError(f"Unsupported request body: {type(body).__name__}")

    config = config or RequestConfig()
    return Request(
        id=encode_blob(config.random_bytes(REQUEST_ID_SIZE)),
        unix_seconds=int(config.clock().timestamp()),
        send_ack=False,
        version=PROTOCOL_VERSION,
        body=body,
    )


def request_to_dict(request: Request) -> dict:
    """Flatten a request into its JSON object form."""
    return {
        REQUEST_ID_KEY: request.id,
        UNIX_SECONDS_KEY: request.unix_seconds,
        SEND_ACK_KEY: request.send_ack,
        VERSION_KEY: request.version,
        request.body.KIND: request.body.to_dict(),
    }


def request_from_dict(obj: dict) -> Request:
    """
    Rebuild a request from its JSON object form.

    Raises:
        FormatError: If fields are missing or mistyped, or the variant key is
            missing, repeated or unknown
    """
    key, value = select_variant(obj, _VARIANTS, REQUEST_SUFFIX)
    if not isinstance(value, dict):
        raise FormatError(f"Variant '{key}' must be an object")

    return Request(
        id=require(obj, REQUEST_ID_KEY, str),
        unix_seconds=require(obj, UNIX_SECONDS_KEY, int),
        send_ack=require(obj, SEND_ACK_KEY, bool),
        version=require(obj, VERSION_KEY, str),
        body=_VARIANTS[key].from_dict(value),
    )


def encode_request(request: Request) -> bytes:
    """Serialize a request to UTF-8 JSON, ready for sealing."""
    return dump_json_object(request_to_dict(request))


def decode_request(data: Union[bytes, str]) -> Request:
    """Parse an unsealed request envelope."""
    return request_from_dict(load_json_object(data))
