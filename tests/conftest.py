# tests/conftest.py
import base64

import httpx
import pytest

from credentials import EasySlipCredentials
from services.easyslip_service import EasySlipService

TEST_TOKEN = "test-token-123"
TEST_BASE_URL = "https://easyslip.test/api/v1"
PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-slip-image"


@pytest.fixture
def make_service():
    def _make(handler, token: str = TEST_TOKEN) -> EasySlipService:
        return EasySlipService(
            EasySlipCredentials(access_token=token),
            base_url=TEST_BASE_URL,
            transport=httpx.MockTransport(handler),
        )
    return _make


@pytest.fixture
def slip_body():
    def _body(bank_id="004", name_th="นาย สมชาย ไทยดี", message=None):
        body = {
            "status": 200,
            "data": {
                "transRef": "015073144041ATF00999",
                "amount": {"amount": 1000},
                "receiver": {
                    "bank": {"id": bank_id, "name": "ธนาคารกสิกรไทย", "short": "KBANK"},
                    "account": {"name": {"th": name_th, "en": "MR. SOMCHAI T"}},
                },
            },
        }
        if message is not None:
            body["status"] = 400
            body["message"] = message
        return body
    return _body


@pytest.fixture
def png_b64() -> str:
    return base64.b64encode(PNG_BYTES).decode("utf-8")
