# services/payment_service.py
from abc import ABC, abstractmethod
from typing import Optional

from logger import DebugLogger
from models import VerificationOutcome, VerificationRequestSpec


class SlipVerificationService(ABC):
    """
    Abstract base class for slip verification providers.
    Defines the interface the slip router depends on.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Returns the name of the verification provider."""
        pass

    @abstractmethod
    async def verify(self, spec: VerificationRequestSpec, debug: Optional[DebugLogger] = None) -> VerificationOutcome:
        """
        Sends one verification request and classifies the answer.

        Args:
            spec (VerificationRequestSpec): The verification mode and its input.
            debug (DebugLogger): Per-item debug channel.

        Returns:
            VerificationOutcome: SUCCESS or DUPLICATE_SLIP with the raw response body.

        Raises:
            TransportError: For any other non-2xx response or a network failure.
        """
        pass
