"""Error type and step tracing shared by the backend functions."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class FunctionError(RuntimeError):
    """A backend function failed; the message is returned to the caller as-is."""


class StepLogger:
    """Logs ``[FUNCTION-NAME] step - {details}`` lines."""

    def __init__(self, function_name: str):
        self.prefix = f"[{function_name.upper()}]"

    def __call__(self, step: str, details: Optional[Any] = None) -> None:
        suffix = f" - {json.dumps(details, default=str)}" if details else ""
        logger.info(f"{self.prefix} {step}{suffix}")
