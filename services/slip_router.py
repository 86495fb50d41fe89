# services/slip_router.py

import json
from typing import Any, Optional, Sequence

from errors import ItemProcessingError
from logger import DebugLogger, logger
from models import (
    ExecutionResult,
    FilterSpec,
    InputItem,
    ItemParameters,
    OutputChannel,
    Resource,
    RoutedItem,
    VerificationOutcome,
    VerificationRequestSpec,
    WalletImageBinaryVerification,
)
from services.easyslip_service import resolve_verification_spec
from services.payment_service import SlipVerificationService


def _dig(value: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def matches_filters(body: Any, filters: FilterSpec, debug: Optional[DebugLogger] = None) -> bool:
    """
    Checks a verification body against the receiver filters. Both filters must
    pass when both are set. A body without a data section cannot be inspected
    and always matches.
    """
    debug = debug or DebugLogger()

    data = body.get("data") if isinstance(body, dict) else None
    # an empty data object is still inspected; only absent or scalar-empty data passes through
    if data is None or data is False or data == "" or data == 0:
        debug("No response data or data property - returning true", body)
        return True

    bank_code = filters.receiver_bank_code
    receiver_name = filters.receiver_name
    actual_bank_id = _dig(data, "receiver", "bank", "id")
    actual_name = _dig(data, "receiver", "account", "name", "th")

    debug("Filter criteria:", {"receiverBankCode": bank_code, "receiverName": receiver_name})
    debug(
        "Response data structure:",
        {
            "hasReceiver": bool(_dig(data, "receiver")),
            "hasReceiverBank": bool(_dig(data, "receiver", "bank")),
            "receiverBankId": actual_bank_id,
            "receiverName": actual_name,
        },
    )

    if bank_code:
        if actual_bank_id is None or actual_bank_id == "":
            debug("Receiver bank code filter failed - no receiver bank id in response")
            return False
        expected = str(bank_code)
        actual = str(actual_bank_id)
        debug("Receiver bank code comparison:", {"expected": expected, "actual": actual, "match": actual == expected})
        if actual != expected:
            debug("Receiver bank code filter failed - no match")
            return False

    if receiver_name:
        if not actual_name:
            debug("Receiver name filter failed - no receiver name in response")
            return False
        expected = receiver_name.strip().casefold()
        actual = str(actual_name).strip().casefold()
        debug("Receiver name comparison:", {"expected": expected, "actual": actual, "match": expected in actual})
        if expected not in actual:
            debug("Receiver name filter failed - no match")
            return False

    debug("All filters passed - returning true")
    return True


def route_outcome(outcome: VerificationOutcome, spec: VerificationRequestSpec, debug: Optional[DebugLogger] = None) -> OutputChannel:
    debug = debug or DebugLogger()

    # wallet slips carry no receiver filters
    if isinstance(spec, WalletImageBinaryVerification):
        return OutputChannel.MATCHED

    if not spec.filters.has_filters:
        debug("No filters applied - using single output")
        return OutputChannel.MATCHED

    matches = matches_filters(outcome.body, spec.filters, debug)
    debug("Filtering applied - matches:", matches)
    if matches:
        return OutputChannel.MATCHED

    if outcome.is_duplicate:
        debug("Filter does not match - routing duplicate slip to second output")
    else:
        debug("Filter does not match - routing to second output")
    return OutputChannel.NOT_MATCHED


def filters_requested(parameters: Sequence[ItemParameters]) -> bool:
    return any(
        p.resource == Resource.BANK_SLIP and p.additional_options.has_filters
        for p in parameters
    )


class SlipConnector:
    """
    Runs a batch of items through verification and routes each result to the
    matched or not-matched output, one item at a time and in input order.
    """

    def __init__(self, service: SlipVerificationService, continue_on_fail: bool = False):
        self.service = service
        self.continue_on_fail = continue_on_fail

    async def process_item(self, index: int, item: InputItem, parameters: ItemParameters, debug: DebugLogger) -> RoutedItem:
        debug("Additional options:", parameters.additional_options.model_dump(by_alias=True))
        spec = resolve_verification_spec(parameters, item)
        outcome = await self.service.verify(spec, debug)
        output = route_outcome(outcome, spec, debug)
        return RoutedItem(body=outcome.body, original_index=index, output=output)

    async def execute(
        self,
        items: Sequence[InputItem],
        parameters: Sequence[ItemParameters],
        continue_on_fail: Optional[bool] = None,
    ) -> ExecutionResult:
        if len(items) != len(parameters):
            raise ValueError(f"Got {len(items)} items but {len(parameters)} parameter sets")
        if continue_on_fail is None:
            continue_on_fail = self.continue_on_fail

        result = ExecutionResult(filters_requested=filters_requested(parameters))

        for index, (item, item_parameters) in enumerate(zip(items, parameters)):
            debug = DebugLogger(item_parameters.additional_options.enable_debug_logging, index)
            debug(
                f"Processing item {index + 1}/{len(items)}: "
                f"{item_parameters.resource.value} - {item_parameters.resolved_operation.value}"
            )
            try:
                routed = await self.process_item(index, item, item_parameters, debug)
            except Exception as error:
                if not continue_on_fail:
                    if isinstance(error, ItemProcessingError):
                        raise
                    raise ItemProcessingError(str(error), item_index=index) from error
                logger.warning(json.dumps({"item_index": index, "error": str(error)}, ensure_ascii=False))
                # errors go to the first output
                routed = RoutedItem(body={"error": str(error)}, original_index=index, output=OutputChannel.MATCHED)
            result.append(routed)

        summary = DebugLogger(any(p.additional_options.enable_debug_logging for p in parameters))
        if result.filters_requested:
            summary(f"Execution completed - Matched: {len(result.matched)}, Not Matched: {len(result.not_matched)}")
        else:
            summary(f"Execution completed - Total items: {len(result.matched)}, No filters applied")
        return result
