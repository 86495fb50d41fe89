# services/easyslip_service.py

from functools import singledispatch
from typing import Any, Optional

import httpx

from credentials import EasySlipCredentials
from errors import TransportError, UnsupportedOperationError
from logger import DebugLogger
from models import (
    Base64ImageVerification,
    ImageBinaryVerification,
    ImageUrlVerification,
    InputItem,
    ItemParameters,
    Operation,
    OutboundRequest,
    OutcomeStatus,
    PayloadVerification,
    Resource,
    VerificationOutcome,
    VerificationRequestSpec,
    WalletImageBinaryVerification,
)
from services.payment_service import SlipVerificationService
from utils.binary_data import read_binary_upload

DEFAULT_BASE_URL = "https://developer.easyslip.com/api/v1"
VERIFY_PATH = "/verify"
TRUEWALLET_VERIFY_PATH = "/verify/truewallet"
DUPLICATE_SLIP_MESSAGE = "duplicate_slip"


def _form_bool(value: bool) -> str:
    return "true" if value else "false"


def resolve_verification_spec(parameters: ItemParameters, item: InputItem) -> VerificationRequestSpec:
    resource = parameters.resource
    operation = parameters.resolved_operation

    if resource == Resource.TRUEMONEY_WALLET:
        if operation != Operation.VERIFY_BY_IMAGE:
            raise UnsupportedOperationError(resource.value, operation.value)
        return WalletImageBinaryVerification(
            file=read_binary_upload(item, parameters.image_binary_property),
            check_duplicate=parameters.check_duplicate,
        )

    filters = parameters.additional_options
    if operation == Operation.VERIFY_BY_PAYLOAD:
        return PayloadVerification(payload=parameters.payload, check_duplicate=parameters.check_duplicate, filters=filters)
    if operation == Operation.VERIFY_BY_BASE64:
        return Base64ImageVerification(image=parameters.image_data, check_duplicate=parameters.check_duplicate, filters=filters)
    if operation == Operation.VERIFY_BY_URL:
        return ImageUrlVerification(url=parameters.image_url, check_duplicate=parameters.check_duplicate, filters=filters)
    if operation == Operation.VERIFY_BY_IMAGE:
        return ImageBinaryVerification(
            file=read_binary_upload(item, parameters.image_binary_property),
            check_duplicate=parameters.check_duplicate,
            filters=filters,
        )
    raise UnsupportedOperationError(resource.value, operation.value)


def _base_headers(credentials: EasySlipCredentials) -> dict:
    return {"Accept": "application/json", **credentials.authorization_header()}


@singledispatch
def build_request(spec, credentials: EasySlipCredentials) -> OutboundRequest:
    raise TypeError(f"Unsupported verification request: {type(spec).__name__}")


@build_request.register
def _(spec: PayloadVerification, credentials: EasySlipCredentials) -> OutboundRequest:
    return OutboundRequest(
        method="GET",
        path=VERIFY_PATH,
        params={"payload": spec.payload, "checkDuplicate": _form_bool(spec.check_duplicate)},
        headers=_base_headers(credentials),
    )


@build_request.register
def _(spec: Base64ImageVerification, credentials: EasySlipCredentials) -> OutboundRequest:
    return OutboundRequest(
        method="POST",
        path=VERIFY_PATH,
        json_body={"image": spec.image, "checkDuplicate": spec.check_duplicate},
        headers={**_base_headers(credentials), "Content-Type": "application/json"},
    )


@build_request.register
def _(spec: ImageUrlVerification, credentials: EasySlipCredentials) -> OutboundRequest:
    return OutboundRequest(
        method="POST",
        path=VERIFY_PATH,
        json_body={"url": spec.url, "checkDuplicate": spec.check_duplicate},
        headers={**_base_headers(credentials), "Content-Type": "application/json"},
    )


@build_request.register
def _(spec: ImageBinaryVerification, credentials: EasySlipCredentials) -> OutboundRequest:
    return OutboundRequest(
        method="POST",
        path=VERIFY_PATH,
        files={"file": spec.file},
        data={"checkDuplicate": _form_bool(spec.check_duplicate)},
        headers=_base_headers(credentials),
    )


@build_request.register
def _(spec: WalletImageBinaryVerification, credentials: EasySlipCredentials) -> OutboundRequest:
    # the wallet endpoint only receives checkDuplicate when it is switched on
    data = {"checkDuplicate": "true"} if spec.check_duplicate else {}
    return OutboundRequest(
        method="POST",
        path=TRUEWALLET_VERIFY_PATH,
        files={"file": spec.file},
        data=data,
        headers=_base_headers(credentials),
    )


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def normalize_response(response: httpx.Response) -> VerificationOutcome:
    """
    Classifies an API response. A 400 carrying message "duplicate_slip" is a
    valid result and comes back as DUPLICATE_SLIP; every other non-2xx
    response raises TransportError.
    """
    body = _decode_body(response)

    if response.is_success:
        return VerificationOutcome(status=OutcomeStatus.SUCCESS, body=body)

    api_message = body.get("message") if isinstance(body, dict) else None
    if response.status_code == 400 and api_message == DUPLICATE_SLIP_MESSAGE:
        return VerificationOutcome(status=OutcomeStatus.DUPLICATE_SLIP, body=body)

    message = f"EasySlip API request failed with status code {response.status_code}"
    if api_message:
        message = f"{message}: {api_message}"
    raise TransportError(message, status_code=response.status_code, body=body)


class EasySlipService(SlipVerificationService):
    def __init__(
        self,
        credentials: EasySlipCredentials,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "EasySlipService":
        return cls(
            credentials=EasySlipCredentials.from_settings(settings),
            base_url=settings.easyslip_base_url,
            timeout=settings.easyslip_timeout,
            transport=transport,
        )

    @property
    def provider_name(self) -> str:
        return "easyslip"

    async def send(self, request: OutboundRequest) -> httpx.Response:
        files = {
            name: (part.filename, part.content, part.content_type)
            for name, part in request.files.items()
        }
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                return await client.request(
                    request.method,
                    request.path,
                    params=request.params or None,
                    json=request.json_body,
                    data=request.data or None,
                    files=files or None,
                    headers=request.headers,
                )
        except httpx.RequestError as e:
            raise TransportError(f"Could not connect to EasySlip API: {e}") from e

    async def verify(self, spec: VerificationRequestSpec, debug: Optional[DebugLogger] = None) -> VerificationOutcome:
        debug = debug or DebugLogger()
        request = build_request(spec, self.credentials)

        debug("Request:", {"method": request.method, "path": request.path, "params": request.params})
        debug("Check duplicate:", spec.check_duplicate)
        if request.files:
            debug("Image buffer size:", sum(len(part.content) for part in request.files.values()))

        response = await self.send(request)
        try:
            outcome = normalize_response(response)
        except TransportError as error:
            debug("EasySlip API error:", {"status": error.status_code, "data": error.body})
            raise

        if outcome.is_duplicate:
            debug("Handling duplicate_slip error as valid response")
        debug("EasySlip API response:", outcome.body)
        return outcome
