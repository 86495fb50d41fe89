# logger.py

import json
import logging
import time
from typing import Any, Callable, Optional

from fastapi import Request

from config import settings

logger = logging.getLogger("easyslip")
logger.setLevel(settings.log_level.upper())
_handler = logging.StreamHandler()
_formatter = logging.Formatter("%(message)s")
_handler.setFormatter(_formatter)
logger.addHandler(_handler)

DEBUG_PREFIX = "[EasySlip Debug]"


async def log_middleware(request: Request, call_next: Callable):
    t0 = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - t0) * 1000
    record = {
        "route": request.url.path,
        "status": response.status_code,
        "latency_ms": round(latency_ms, 2),
        "method": request.method,
    }
    logger.info(json.dumps(record))
    return response


class DebugLogger:
    """
    Per-item debug channel. Does nothing unless the item enabled debug logging;
    otherwise each call becomes one INFO record on the "easyslip" logger with
    the event name and payload attached as structured attributes.
    """

    def __init__(self, enabled: bool = False, item_index: Optional[int] = None, target: logging.Logger = logger):
        self.enabled = enabled
        self.item_index = item_index
        self._target = target

    def __call__(self, message: str, data: Any = None) -> None:
        if not self.enabled:
            return
        record = {"event": f"{DEBUG_PREFIX} {message}"}
        if self.item_index is not None:
            record["item_index"] = self.item_index
        if data is not None:
            record["data"] = data
        self._target.info(
            json.dumps(record, ensure_ascii=False, default=str),
            extra={"debug_event": message, "debug_data": data, "item_index": self.item_index},
        )
