# tests/test_easyslip_service.py
import json

import anyio
import httpx
import pytest

from conftest import PNG_BYTES, TEST_TOKEN
from credentials import EasySlipCredentials
from errors import BinaryDataError, CredentialsError, MissingBinaryDataError, TransportError, UnsupportedOperationError
from models import (
    Base64ImageVerification,
    BinaryData,
    ImageBinaryVerification,
    ImageUrlVerification,
    InputItem,
    ItemParameters,
    MultipartFile,
    OutcomeStatus,
    PayloadVerification,
    WalletImageBinaryVerification,
)
from services.easyslip_service import build_request, resolve_verification_spec


def _recorder(status_code=200, body=None):
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code, json=body if body is not None else {"status": 200, "data": {}})

    return captured, handler


def _jpeg_part(filename="slip.jpg", content_type="image/jpeg"):
    return MultipartFile(filename=filename, content=PNG_BYTES, content_type=content_type)


def test_payload_request_is_get_with_query_string(make_service):
    captured, handler = _recorder()
    service = make_service(handler)

    spec = PayloadVerification(payload="0041000600000101030040220014&x y", check_duplicate=False)
    anyio.run(service.verify, spec)

    request = captured[0]
    assert request.method == "GET"
    assert request.url.path == "/api/v1/verify"
    assert request.url.params["payload"] == "0041000600000101030040220014&x y"
    assert request.url.params["checkDuplicate"] == "false"
    assert request.headers["authorization"] == f"Bearer {TEST_TOKEN}"
    assert request.content == b""


def test_base64_request_posts_json(make_service):
    captured, handler = _recorder()
    service = make_service(handler)

    anyio.run(service.verify, Base64ImageVerification(image="aGVsbG8=", check_duplicate=True))

    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/api/v1/verify"
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {"image": "aGVsbG8=", "checkDuplicate": True}


def test_url_request_posts_json(make_service):
    captured, handler = _recorder()
    service = make_service(handler)

    anyio.run(service.verify, ImageUrlVerification(url="https://cdn.example.com/slip.jpg"))

    assert json.loads(captured[0].content) == {"url": "https://cdn.example.com/slip.jpg", "checkDuplicate": False}


def test_bank_image_request_is_multipart_with_check_duplicate(make_service):
    captured, handler = _recorder()
    service = make_service(handler)

    anyio.run(service.verify, ImageBinaryVerification(file=_jpeg_part(), check_duplicate=False))

    request = captured[0]
    assert request.url.path == "/api/v1/verify"
    assert request.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert request.headers["authorization"] == f"Bearer {TEST_TOKEN}"
    assert b'name="file"; filename="slip.jpg"' in request.content
    assert b"Content-Type: image/jpeg" in request.content
    assert PNG_BYTES in request.content
    assert b'name="checkDuplicate"\r\n\r\nfalse' in request.content


def test_wallet_request_omits_check_duplicate_when_false(make_service):
    captured, handler = _recorder()
    service = make_service(handler)

    anyio.run(service.verify, WalletImageBinaryVerification(file=_jpeg_part(), check_duplicate=False))

    request = captured[0]
    assert request.url.path == "/api/v1/verify/truewallet"
    assert b'name="file"' in request.content
    assert b"checkDuplicate" not in request.content


def test_wallet_request_sends_check_duplicate_when_true(make_service):
    captured, handler = _recorder()
    service = make_service(handler)

    anyio.run(service.verify, WalletImageBinaryVerification(file=_jpeg_part(), check_duplicate=True))

    assert b'name="checkDuplicate"\r\n\r\ntrue' in captured[0].content


def test_json_requests_carry_content_type_header():
    credentials = EasySlipCredentials(access_token="abc")
    request = build_request(ImageUrlVerification(url="https://x"), credentials)
    assert request.headers == {
        "Accept": "application/json",
        "Authorization": "Bearer abc",
        "Content-Type": "application/json",
    }


def test_build_request_rejects_unknown_spec():
    with pytest.raises(TypeError):
        build_request(object(), EasySlipCredentials(access_token="abc"))


def test_missing_token_is_a_credentials_error(make_service):
    _, handler = _recorder()
    service = make_service(handler, token="")

    with pytest.raises(CredentialsError):
        anyio.run(service.verify, PayloadVerification(payload="0002"))


def test_credentials_repr_hides_token():
    credentials = EasySlipCredentials(access_token="super-secret")
    assert "super-secret" not in repr(credentials)
    assert credentials.get_access_token() == "super-secret"


def test_success_body_is_returned_as_is(make_service, slip_body):
    body = slip_body()
    _, handler = _recorder(200, body)
    service = make_service(handler)

    outcome = anyio.run(service.verify, PayloadVerification(payload="0002"))

    assert outcome.status == OutcomeStatus.SUCCESS
    assert outcome.body == body


def test_duplicate_slip_400_becomes_outcome(make_service, slip_body):
    body = slip_body(message="duplicate_slip")
    _, handler = _recorder(400, body)
    service = make_service(handler)

    outcome = anyio.run(service.verify, PayloadVerification(payload="0002", check_duplicate=True))

    assert outcome.status == OutcomeStatus.DUPLICATE_SLIP
    assert outcome.is_duplicate
    assert outcome.body == body


def test_other_400_raises_transport_error(make_service):
    _, handler = _recorder(400, {"status": 400, "message": "invalid_payload"})
    service = make_service(handler)

    with pytest.raises(TransportError) as exc_info:
        anyio.run(service.verify, PayloadVerification(payload="bad"))

    assert exc_info.value.status_code == 400
    assert exc_info.value.body == {"status": 400, "message": "invalid_payload"}
    assert "invalid_payload" in str(exc_info.value)


def test_duplicate_message_on_other_status_is_an_error(make_service):
    _, handler = _recorder(409, {"message": "duplicate_slip"})
    service = make_service(handler)

    with pytest.raises(TransportError) as exc_info:
        anyio.run(service.verify, PayloadVerification(payload="0002"))
    assert exc_info.value.status_code == 409


def test_non_json_server_error_keeps_text_body(make_service):
    service = make_service(lambda request: httpx.Response(502, text="Bad Gateway"))

    with pytest.raises(TransportError) as exc_info:
        anyio.run(service.verify, PayloadVerification(payload="0002"))

    assert exc_info.value.status_code == 502
    assert exc_info.value.body == "Bad Gateway"


def test_network_failure_raises_transport_error(make_service):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = make_service(handler)

    with pytest.raises(TransportError) as exc_info:
        anyio.run(service.verify, PayloadVerification(payload="0002"))

    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_non_json_success_body_passes_through_as_text(make_service):
    service = make_service(lambda request: httpx.Response(200, text="OK"))

    outcome = anyio.run(service.verify, PayloadVerification(payload="0002"))

    assert outcome.status == OutcomeStatus.SUCCESS
    assert outcome.body == "OK"


def test_resolve_image_spec_applies_default_name_and_type(png_b64):
    item = InputItem(binary={"data": BinaryData(data=png_b64)})
    spec = resolve_verification_spec(
        ItemParameters(resource="bankSlip", operation="verifyByImage", check_duplicate=True), item
    )

    assert isinstance(spec, ImageBinaryVerification)
    assert spec.file.filename == "slip.jpg"
    assert spec.file.content_type == "image/jpeg"
    assert spec.file.content == PNG_BYTES
    assert spec.check_duplicate is True


def test_resolve_image_spec_keeps_declared_name_and_type(png_b64):
    item = InputItem(binary={"slip": BinaryData(data=png_b64, fileName="transfer.png", mimeType="image/png")})
    spec = resolve_verification_spec(
        ItemParameters(resource="truemoneyWallet", imageBinaryProperty="slip"), item
    )

    assert isinstance(spec, WalletImageBinaryVerification)
    assert spec.file.filename == "transfer.png"
    assert spec.file.content_type == "image/png"


def test_resolve_image_spec_without_binary_raises():
    with pytest.raises(MissingBinaryDataError) as exc_info:
        resolve_verification_spec(ItemParameters(operation="verifyByImage", imageBinaryProperty="photo"), InputItem())

    assert exc_info.value.property_name == "photo"
    assert str(exc_info.value) == 'No binary data found in property "photo"'


def test_resolve_image_spec_with_invalid_base64_raises():
    item = InputItem(binary={"data": BinaryData(data="not base64!!")})
    with pytest.raises(BinaryDataError):
        resolve_verification_spec(ItemParameters(operation="verifyByImage"), item)


def test_wallet_only_supports_image_verification():
    with pytest.raises(UnsupportedOperationError):
        resolve_verification_spec(ItemParameters(resource="truemoneyWallet", operation="verifyByUrl"), InputItem())


def test_bank_slip_defaults_to_payload_verification():
    spec = resolve_verification_spec(ItemParameters(payload="0002"), InputItem())
    assert isinstance(spec, PayloadVerification)
    assert spec.payload == "0002"
