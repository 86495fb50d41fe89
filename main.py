# main.py (FastAPI entry point for the EasySlip connector)

from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.cors import CORSMiddleware

from config import settings
from errors import CredentialsError, ItemProcessingError, TransportError
from logger import log_middleware
from models import (
    BANK_CODES,
    BankOption,
    ExecuteRequest,
    ExecutionResult,
    FilterSpec,
    InputItem,
    ItemParameters,
    Operation,
    Resource,
)
from services.easyslip_service import EasySlipService
from services.slip_router import SlipConnector
from utils.binary_data import encode_upload

app = FastAPI(
    title="EasySlip Connector",
    description="Verifies Thai bank slips and TrueMoney wallet slips with the EasySlip API and routes each result to a matched or not-matched output."
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_middleware)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error_details = []
    for error in exc.errors():
        field = ".".join(map(str, error["loc"])) if error["loc"] else "unknown"
        error_details.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"]
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": error_details,
            "message": "Validation Error: The provided data does not match the expected format.",
        },
    )

@app.exception_handler(ItemProcessingError)
async def item_processing_exception_handler(request: Request, exc: ItemProcessingError):
    cause = exc.__cause__
    if isinstance(cause, TransportError):
        status_code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(cause, CredentialsError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    return JSONResponse(
        status_code=status_code,
        content={"detail": {"item_index": exc.item_index, "message": str(exc)}},
    )

easyslip_service = EasySlipService.from_settings(settings)
slip_connector = SlipConnector(easyslip_service, continue_on_fail=settings.continue_on_fail)

def get_slip_connector() -> SlipConnector:
    return slip_connector

async def _item_from_upload(image_file: UploadFile) -> InputItem:
    try:
        image_bytes = await image_file.read()
    except Exception as e:
        raise HTTPException(
            status_code=400,
            detail={
                "status": "Failed",
                "message": f"Could not read uploaded image file: {e}",
            }
        )
    binary = encode_upload(image_bytes, image_file.filename, image_file.content_type)
    return InputItem(binary={"data": binary})

@app.post("/execute", response_model=ExecutionResult)
async def execute(execute_request: ExecuteRequest, connector: SlipConnector = Depends(get_slip_connector)):
    parameters: List[ItemParameters] = []
    for index, item in enumerate(execute_request.items):
        item_parameters = item.parameters or execute_request.parameters
        if item_parameters is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "item_index": index,
                    "message": "No verification parameters were given for this item or for the request.",
                }
            )
        parameters.append(item_parameters)

    return await connector.execute(execute_request.items, parameters, continue_on_fail=execute_request.continue_on_fail)

@app.post("/verify_bank_slip_from_image", response_model=ExecutionResult)
async def verify_bank_slip_from_image(
    image_file: UploadFile = File(...),
    check_duplicate: bool = Form(False),
    receiver_bank_code: Optional[str] = Form(None),
    receiver_name: Optional[str] = Form(None),
    enable_debug_logging: bool = Form(False),
    connector: SlipConnector = Depends(get_slip_connector),
):
    try:
        filters = FilterSpec(
            receiver_bank_code=receiver_bank_code,
            receiver_name=receiver_name,
            enable_debug_logging=enable_debug_logging,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    item = await _item_from_upload(image_file)
    parameters = ItemParameters(
        resource=Resource.BANK_SLIP,
        operation=Operation.VERIFY_BY_IMAGE,
        check_duplicate=check_duplicate,
        additional_options=filters,
    )
    return await connector.execute([item], [parameters])

@app.post("/verify_truewallet_from_image", response_model=ExecutionResult)
async def verify_truewallet_from_image(
    image_file: UploadFile = File(...),
    check_duplicate: bool = Form(False),
    connector: SlipConnector = Depends(get_slip_connector),
):
    item = await _item_from_upload(image_file)
    parameters = ItemParameters(
        resource=Resource.TRUEMONEY_WALLET,
        operation=Operation.VERIFY_BY_IMAGE,
        check_duplicate=check_duplicate,
    )
    return await connector.execute([item], [parameters])

@app.get("/banks", response_model=List[BankOption])
async def list_banks():
    return [BankOption(code=code, name=name) for code, name in BANK_CODES.items()]

@app.get("/")
async def root():
    return {"message": "EasySlip Connector API. Use /docs for API documentation."}
