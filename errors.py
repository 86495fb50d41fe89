# errors.py

from typing import Any, Optional


class EasySlipError(Exception):
    """Base class for every failure raised while verifying a slip."""


class CredentialsError(EasySlipError):
    pass


class BinaryDataError(EasySlipError):
    pass


class MissingBinaryDataError(BinaryDataError):
    def __init__(self, property_name: str):
        self.property_name = property_name
        super().__init__(f'No binary data found in property "{property_name}"')


class UnsupportedOperationError(EasySlipError):
    def __init__(self, resource: str, operation: Optional[str]):
        self.resource = resource
        self.operation = operation
        super().__init__(f'The operation "{operation}" is not supported for resource "{resource}"')


class TransportError(EasySlipError):
    """
    Non-2xx answer from the EasySlip API (other than a duplicate slip) or a
    network-level failure. status_code is None when no response was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ItemProcessingError(EasySlipError):
    def __init__(self, message: str, item_index: int):
        self.item_index = item_index
        super().__init__(message)
