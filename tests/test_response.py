"""Tests for response envelopes and result unwrapping."""

import json

import pytest
from krprotocol.response import (
    AuthenticateResponse,
    ClientResult,
    IdData,
    IdResponse,
    RegisterResponse,
    Response,
    ResponseBody,
    ResponseKind,
    decode_response,
    encode_response,
    into_authenticate_response,
    into_id_response,
    into_register_response,
    response_from_dict,
)
from krprotocol.types import DeviceError, FormatError, UnexpectedResponseError
from .test_vectors import (
    KEY_HANDLE_A,
    REQUEST_ID,
    authenticate_contents,
    b64,
    id_contents,
    register_contents,
)


def envelope(**variants) -> dict:
    obj = {
        "request_id": REQUEST_ID,
        "sns_endpoint_arn": None,
        "device_token": None,
        "v": "3.0.0",
    }
    obj.update(variants)
    return obj


@pytest.fixture
def register_response() -> RegisterResponse:
    return RegisterResponse(
        public_key=b"public-key",
        key_handle=KEY_HANDLE_A,
        attestation_certificate=b"certificate",
        signature=b"signature",
        attestation_data=b"attestation",
    )


class TestClientResult:
    """ClientResult resolution order."""

    def test_contents_only(self, register_response) -> None:
        assert ClientResult(contents=register_response).into_result() == register_response

    def test_error_only(self) -> None:
        with pytest.raises(DeviceError) as exc_info:
            ClientResult(error="boom").into_result()
        assert exc_info.value.message == "boom"

    def test_error_wins_over_contents(self, register_response) -> None:
        with pytest.raises(DeviceError, match="boom"):
            ClientResult(contents=register_response, error="boom").into_result()

    def test_empty(self) -> None:
        with pytest.raises(UnexpectedResponseError):
            ClientResult().into_result()

    def test_empty_error_string_is_still_an_error(self) -> None:
        with pytest.raises(DeviceError):
            ClientResult(error="").into_result()

    def test_parse_contents(self, register_response) -> None:
        obj = dict(register_contents(), error=None)
        assert ClientResult.from_dict(obj, RegisterResponse) == ClientResult(contents=register_response)

    def test_parse_error_with_partial_contents(self) -> None:
        obj = {"public_key": b64(b"public-key"), "error": "user rejected"}
        result = ClientResult.from_dict(obj, RegisterResponse)

        assert result.contents is None
        with pytest.raises(DeviceError, match="user rejected"):
            result.into_result()

    def test_parse_partial_contents_without_error(self) -> None:
        result = ClientResult.from_dict({"public_key": b64(b"public-key")}, RegisterResponse)
        with pytest.raises(UnexpectedResponseError):
            result.into_result()

    def test_parse_empty(self) -> None:
        assert ClientResult.from_dict({}, IdResponse) == ClientResult()

    def test_parse_malformed_contents(self) -> None:
        obj = dict(register_contents(), signature="***")
        with pytest.raises(FormatError):
            ClientResult.from_dict(obj, RegisterResponse)

    def test_error_wins_over_malformed_blob(self) -> None:
        obj = dict(register_contents(), signature="***", error="user rejected")
        result = ClientResult.from_dict(obj, RegisterResponse)

        assert result.contents is None
        with pytest.raises(DeviceError, match="user rejected"):
            result.into_result()

    def test_error_wins_over_counter_out_of_range(self) -> None:
        obj = dict(authenticate_contents(), counter=-1, error="locked")
        response = response_from_dict(envelope(u2f_authenticate_response=obj))

        with pytest.raises(DeviceError, match="locked"):
            into_authenticate_response(response.body)

    def test_error_kept_with_valid_contents(self, register_response) -> None:
        obj = dict(register_contents(), error="boom")
        result = ClientResult.from_dict(obj, RegisterResponse)

        assert result == ClientResult(contents=register_response, error="boom")
        with pytest.raises(DeviceError, match="boom"):
            result.into_result()


class TestNarrowing:
    """Narrowing a ResponseBody to the expected payload."""

    def test_matching_variant(self, register_response) -> None:
        body = ResponseBody.success(register_response)
        assert body.kind is ResponseKind.REGISTER
        assert into_register_response(body) == register_response
        assert body.expect(RegisterResponse) == register_response

    def test_mismatch_on_success(self, register_response) -> None:
        body = ResponseBody.success(register_response)
        with pytest.raises(UnexpectedResponseError):
            into_authenticate_response(body)

    def test_mismatch_on_failure(self) -> None:
        body = ResponseBody.failure(ResponseKind.REGISTER, "boom")
        with pytest.raises(UnexpectedResponseError):
            into_id_response(body)

    def test_matching_failure(self) -> None:
        body = ResponseBody.failure(ResponseKind.AUTHENTICATE, "no such key")
        with pytest.raises(DeviceError, match="no such key"):
            into_authenticate_response(body)

    def test_success_rejects_unknown_payload(self) -> None:
        with pytest.raises(TypeError):
            ResponseBody.success("not a payload")


class TestResponseDecode:
    """Parsing response envelopes."""

    def test_id_response(self) -> None:
        response = response_from_dict(envelope(me_response=dict(id_contents(), error=None)))

        assert response.request_id == REQUEST_ID
        assert response.version == "3.0.0"
        assert into_id_response(response.body) == IdResponse(
            data=IdData(email="user@example.com", device_identifier=b"device-1")
        )

    def test_authenticate_response(self) -> None:
        contents = dict(authenticate_contents(), user_handle=b64(b"user-1"))
        response = response_from_dict(envelope(u2f_authenticate_response=contents))
        auth = into_authenticate_response(response.body)

        assert auth.counter == 7
        assert auth.user_handle == b"user-1"
        assert auth.authenticator_data == b"auth-data"

    def test_push_metadata(self) -> None:
        obj = envelope(me_response={"error": "locked"})
        obj["sns_endpoint_arn"] = "arn:aws:sns:endpoint"
        obj["device_token"] = "token"
        response = response_from_dict(obj)

        assert response.aws_push_id == "arn:aws:sns:endpoint"
        assert response.device_token == "token"

    def test_optional_envelope_fields_may_be_missing(self) -> None:
        obj = {"request_id": REQUEST_ID, "v": "2.4.0", "me_response": {"error": "locked"}}
        response = response_from_dict(obj)

        assert response.aws_push_id is None
        assert response.version == "2.4.0"
        with pytest.raises(DeviceError, match="locked"):
            into_id_response(response.body)

    def test_unknown_fields_ignored(self) -> None:
        obj = envelope(u2f_register_response=dict(register_contents(), extra=1))
        obj["unknown"] = [1, 2, 3]
        assert into_register_response(response_from_dict(obj).body).key_handle == KEY_HANDLE_A

    @pytest.mark.parametrize("counter", [-1, 2**32, "7", True, 1.5])
    def test_counter_range_and_type(self, counter) -> None:
        contents = dict(authenticate_contents(), counter=counter)
        with pytest.raises(FormatError):
            response_from_dict(envelope(u2f_authenticate_response=contents))

    def test_counter_max(self) -> None:
        contents = dict(authenticate_contents(), counter=2**32 - 1)
        response = response_from_dict(envelope(u2f_authenticate_response=contents))
        assert into_authenticate_response(response.body).counter == 2**32 - 1

    def test_two_variants(self) -> None:
        obj = envelope(me_response={"error": "x"}, u2f_register_response={"error": "y"})
        with pytest.raises(FormatError, match="exactly one"):
            response_from_dict(obj)

    def test_no_variant(self) -> None:
        with pytest.raises(FormatError, match="Missing variant"):
            response_from_dict(envelope())

    def test_unknown_variant(self) -> None:
        with pytest.raises(FormatError, match="Unrecognized"):
            response_from_dict(envelope(ssh_sign_response={}))

    def test_missing_request_id(self) -> None:
        obj = envelope(me_response={"error": "x"})
        del obj["request_id"]
        with pytest.raises(FormatError, match="request_id"):
            response_from_dict(obj)


class TestResponseEncode:
    """Serializing responses mirrors what the device sends."""

    def test_shape(self, register_response) -> None:
        response = Response(
            request_id=REQUEST_ID,
            version="3.0.0",
            body=ResponseBody.success(register_response),
        )
        obj = json.loads(encode_response(response))

        assert list(obj) == ["request_id", "sns_endpoint_arn", "device_token", "v", "u2f_register_response"]
        assert obj["u2f_register_response"] == dict(register_contents(), error=None)

    def test_error_shape(self) -> None:
        response = Response(
            request_id=REQUEST_ID,
            version="3.0.0",
            body=ResponseBody.failure(ResponseKind.ID, "boom"),
        )
        assert json.loads(encode_response(response))["me_response"] == {"error": "boom"}

    def test_round_trip(self, register_response) -> None:
        response = Response(
            request_id=REQUEST_ID,
            version="3.0.0",
            body=ResponseBody.success(register_response),
            aws_push_id="arn",
            device_token="token",
        )
        assert decode_response(encode_response(response)) == response
