"""Closed set of outcomes for a face2face status query.

The service answers with a top-level ``code`` and, for accepted jobs, a
nested ``data.status``. ``parse_status`` folds both into one variant so the
scheduler can dispatch on type instead of nesting conditionals.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

SUCCESS_CODE = 10000
TERMINAL_ERROR_CODES = (9999, 10002, 10003)

STATUS_PROCESSING = 1
STATUS_COMPLETE = 2
STATUS_FAILED = 3


@dataclass(frozen=True)
class TerminalFailure:
    """The service rejected the job outright (9999 / 10002 / 10003)."""
    code: int
    message: Optional[str]


@dataclass(frozen=True)
class InProgress:
    message: Optional[str]
    progress: Any


@dataclass(frozen=True)
class Completed:
    result: str
    message: Optional[str]
    progress: Any


@dataclass(frozen=True)
class RemoteFailure:
    """Accepted earlier, then reported as failed by the worker."""
    message: Optional[str]


@dataclass(frozen=True)
class Unrecognized:
    payload: Dict[str, Any]


StatusOutcome = Union[TerminalFailure, InProgress, Completed, RemoteFailure, Unrecognized]


def parse_status(payload: Dict[str, Any]) -> StatusOutcome:
    code = payload.get("code")
    if code in TERMINAL_ERROR_CODES:
        return TerminalFailure(code=code, message=payload.get("msg"))
    if code != SUCCESS_CODE:
        return Unrecognized(payload)

    data = payload.get("data") or {}
    status = data.get("status")
    if status == STATUS_PROCESSING:
        return InProgress(message=data.get("msg"), progress=data.get("progress"))
    if status == STATUS_COMPLETE:
        if not data.get("result"):
            return RemoteFailure(message="completed without a result file")
        return Completed(
            result=data["result"],
            message=data.get("msg"),
            progress=data.get("progress"),
        )
    if status == STATUS_FAILED:
        return RemoteFailure(message=data.get("msg") or payload.get("msg"))
    return Unrecognized(payload)
