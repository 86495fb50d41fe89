# utils/binary_data.py

import base64
import binascii
from typing import Optional

from errors import BinaryDataError, MissingBinaryDataError
from models import BinaryData, InputItem, MultipartFile

DEFAULT_FILENAME = "slip.jpg"
DEFAULT_CONTENT_TYPE = "image/jpeg"


def get_binary_data(item: InputItem, property_name: str) -> BinaryData:
    binary_data = item.binary.get(property_name)
    if binary_data is None:
        raise MissingBinaryDataError(property_name)
    return binary_data


def get_binary_data_buffer(binary_data: BinaryData, property_name: str = "data") -> bytes:
    try:
        return base64.b64decode(binary_data.data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise BinaryDataError(f'Binary data in property "{property_name}" is not valid base64: {e}') from e


def read_binary_upload(item: InputItem, property_name: str) -> MultipartFile:
    """Resolves the named attachment into a multipart file part, applying slip.jpg / image/jpeg defaults."""
    binary_data = get_binary_data(item, property_name)
    return MultipartFile(
        filename=binary_data.file_name or DEFAULT_FILENAME,
        content=get_binary_data_buffer(binary_data, property_name),
        content_type=binary_data.mime_type or DEFAULT_CONTENT_TYPE,
    )


def encode_upload(image_bytes: bytes, file_name: Optional[str] = None, mime_type: Optional[str] = None) -> BinaryData:
    return BinaryData(
        data=base64.b64encode(image_bytes).decode("utf-8"),
        file_name=file_name or None,
        mime_type=mime_type or None,
    )
