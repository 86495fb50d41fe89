# models.py

import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Receiver banks selectable as a filter, keyed by the 3-digit code the API returns
BANK_CODES: Dict[str, str] = {
    "002": "ธนาคารกรุงเทพ (BBL)",
    "004": "ธนาคารกสิกรไทย (KBANK)",
    "006": "ธนาคารกรุงไทย (KTB)",
    "011": "ธนาคารทหารไทยธนชาต (TTB)",
    "014": "ธนาคารไทยพาณิชย์ (SCB)",
    "022": "ธนาคารซีไอเอ็มบีไทย (CIMBT)",
    "024": "ธนาคารยูโอบี (UOBT)",
    "025": "ธนาคารกรุงศรีอยุธยา (BAY)",
    "030": "ธนาคารออมสิน (GSB)",
    "033": "ธนาคารอาคารสงเคราะห์ (GHB)",
    "034": "ธนาคารเพื่อการเกษตรและสหกรณ์การเกษตร (BAAC)",
    "035": "ธนาคารเพื่อการส่งออกและนำเข้าแห่งประเทศไทย (EXIM)",
    "067": "ธนาคารทิสโก้ (TISCO)",
    "069": "ธนาคารเกียรตินาคินภัทร (KKP)",
    "070": "ธนาคารไอซีบีซี (ไทย) (ICBCT)",
    "071": "ธนาคารไทยเครดิตเพื่อรายย่อย (TCD)",
    "073": "ธนาคารแลนด์ แอนด์ เฮ้าส์ (LHFG)",
    "098": "ธนาคารพัฒนาวิสาหกิจขนาดกลางและขนาดย่อยแห่งประเทศไทย (SME)",
}

_BANK_CODE_PATTERN = re.compile(r"\d{3}")


class Resource(str, Enum):
    BANK_SLIP = "bankSlip"
    TRUEMONEY_WALLET = "truemoneyWallet"


class Operation(str, Enum):
    VERIFY_BY_PAYLOAD = "verifyByPayload"
    VERIFY_BY_IMAGE = "verifyByImage"
    VERIFY_BY_BASE64 = "verifyByBase64"
    VERIFY_BY_URL = "verifyByUrl"


DEFAULT_OPERATIONS = {
    Resource.BANK_SLIP: Operation.VERIFY_BY_PAYLOAD,
    Resource.TRUEMONEY_WALLET: Operation.VERIFY_BY_IMAGE,
}


# Host-facing models accept both camelCase (workflow host) and snake_case keys
class HostModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BankOption(BaseModel):
    code: str
    name: str


class FilterSpec(HostModel):
    receiver_bank_code: Optional[str] = None
    receiver_name: Optional[str] = None
    enable_debug_logging: bool = False

    @field_validator("receiver_bank_code", mode="before")
    @classmethod
    def blank_code_means_unset(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value)
        return value if value.strip() else None

    # a whitespace-only name is still an active filter; only an empty string is unset
    @field_validator("receiver_name", mode="before")
    @classmethod
    def empty_name_means_unset(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value)
        return value if value else None

    @field_validator("receiver_bank_code")
    @classmethod
    def three_digit_bank_code(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _BANK_CODE_PATTERN.fullmatch(value):
            raise ValueError("receiver bank code must be a 3-digit numeric code, e.g. 004")
        return value

    @property
    def has_filters(self) -> bool:
        return bool(self.receiver_bank_code or self.receiver_name)


class BinaryData(HostModel):
    data: str  # base64 encoded file content
    file_name: Optional[str] = None
    mime_type: Optional[str] = None


class ItemParameters(HostModel):
    resource: Resource = Resource.BANK_SLIP
    operation: Optional[Operation] = None
    payload: str = ""
    image_data: str = ""
    image_url: str = ""
    image_binary_property: str = "data"
    check_duplicate: bool = False
    additional_options: FilterSpec = Field(default_factory=FilterSpec)

    @property
    def resolved_operation(self) -> Operation:
        return self.operation or DEFAULT_OPERATIONS[self.resource]


class InputItem(HostModel):
    json_data: Dict[str, Any] = Field(default_factory=dict, alias="json")
    binary: Dict[str, BinaryData] = Field(default_factory=dict)
    parameters: Optional[ItemParameters] = None


class MultipartFile(BaseModel):
    filename: str
    content: bytes
    content_type: str


# Verification request variants, one per API mode
class PayloadVerification(BaseModel):
    kind: Literal["payload"] = "payload"
    payload: str
    check_duplicate: bool = False
    filters: FilterSpec = Field(default_factory=FilterSpec)


class Base64ImageVerification(BaseModel):
    kind: Literal["base64_image"] = "base64_image"
    image: str
    check_duplicate: bool = False
    filters: FilterSpec = Field(default_factory=FilterSpec)


class ImageUrlVerification(BaseModel):
    kind: Literal["image_url"] = "image_url"
    url: str
    check_duplicate: bool = False
    filters: FilterSpec = Field(default_factory=FilterSpec)


class ImageBinaryVerification(BaseModel):
    kind: Literal["image_binary"] = "image_binary"
    file: MultipartFile
    check_duplicate: bool = False
    filters: FilterSpec = Field(default_factory=FilterSpec)


class WalletImageBinaryVerification(BaseModel):
    kind: Literal["wallet_image_binary"] = "wallet_image_binary"
    file: MultipartFile
    check_duplicate: bool = False


VerificationRequestSpec = Annotated[
    Union[
        PayloadVerification,
        Base64ImageVerification,
        ImageUrlVerification,
        ImageBinaryVerification,
        WalletImageBinaryVerification,
    ],
    Field(discriminator="kind"),
]


class OutboundRequest(BaseModel):
    method: str
    path: str
    params: Dict[str, str] = Field(default_factory=dict)
    json_body: Optional[Dict[str, Any]] = None
    data: Dict[str, str] = Field(default_factory=dict)
    files: Dict[str, MultipartFile] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    DUPLICATE_SLIP = "duplicate_slip"


class VerificationOutcome(BaseModel):
    status: OutcomeStatus
    body: Any = None

    @property
    def is_duplicate(self) -> bool:
        return self.status == OutcomeStatus.DUPLICATE_SLIP


class OutputChannel(str, Enum):
    MATCHED = "matched"
    NOT_MATCHED = "notMatched"


class RoutedItem(HostModel):
    body: Any = Field(default=None, alias="json")
    original_index: int
    output: OutputChannel = OutputChannel.MATCHED


class ExecutionResult(HostModel):
    matched: List[RoutedItem] = Field(default_factory=list)
    not_matched: List[RoutedItem] = Field(default_factory=list)
    filters_requested: bool = False

    def append(self, item: RoutedItem) -> None:
        if item.output == OutputChannel.NOT_MATCHED:
            self.not_matched.append(item)
        else:
            self.matched.append(item)

    def outputs(self) -> List[List[RoutedItem]]:
        return [self.matched, self.not_matched]


# Input model for the batch endpoint
class ExecuteRequest(HostModel):
    items: List[InputItem] = Field(default_factory=lambda: [InputItem()])
    parameters: Optional[ItemParameters] = None
    continue_on_fail: Optional[bool] = None
