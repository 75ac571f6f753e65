# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
FSM Errors — Unified error structure.

Every error carries a stable ``code`` (for programmatic matching),
a human ``message`` and a ``details`` dict with the offending
state / event / handler / return code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from table_fsm.kernel.table import Table


class FSMError(Exception):
    """Base FSM error with structured details."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        # Partially built table, set by the sanity / reachability passes
        self.table: Optional[Table] = None
        super().__init__(message)


# ── Build-time errors ───────────────────────────────────────────


class StateEventConflictError(FSMError):
    def __init__(self, state: str, event: str, old_handler: str, new_handler: str):
        self.state = state
        self.event = event
        self.old_handler = old_handler
        self.new_handler = new_handler
        super().__init__(
            code="STATE_EVENT_CONFLICT",
            message=(
                f"conflict handle: State={state}, Event={event}, "
                f"Old Func={old_handler}, New Func={new_handler}"
            ),
            details={
                "state": state,
                "event": event,
                "old_handler": old_handler,
                "new_handler": new_handler,
            },
        )


class ReturnCodeRangeError(FSMError):
    def __init__(self, state: str, event: str, handler: str, ret_code: int):
        self.state = state
        self.event = event
        self.handler = handler
        self.ret_code = ret_code
        super().__init__(
            code="RETURN_CODE_RANGE",
            message=(
                f"return code out of range: Code={ret_code}, State={state}, "
                f"Event={event}, Func={handler}"
            ),
            details={"state": state, "event": event, "handler": handler, "ret_code": ret_code},
        )


class ReturnCodeDupError(FSMError):
    def __init__(self, state: str, event: str, handler: str, ret_code: int):
        self.state = state
        self.event = event
        self.handler = handler
        self.ret_code = ret_code
        super().__init__(
            code="RETURN_CODE_DUP",
            message=(
                f"duplicated return code: Code={ret_code}, State={state}, "
                f"Event={event}, Func={handler}"
            ),
            details={"state": state, "event": event, "handler": handler, "ret_code": ret_code},
        )


class HandleEmptyReturnCodeError(FSMError):
    def __init__(self, state: str, event: str, handler: str):
        self.state = state
        self.event = event
        self.handler = handler
        super().__init__(
            code="HANDLE_EMPTY_RETURN_CODE",
            message=(
                f"handle has no return code: State={state}, "
                f"Event={event}, Func={handler}"
            ),
            details={"state": state, "event": event, "handler": handler},
        )


# ── Build-time or engine errors ─────────────────────────────────


class UndefinedHandleError(FSMError):
    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(
            code="UNDEFINED_HANDLE",
            message=f"handle not exists: State={state}, Event={event}",
            details={"state": state, "event": event},
        )


class UndefinedReturnCodeError(FSMError):
    def __init__(self, state: str, event: str, handler: str, ret_code: int):
        self.state = state
        self.event = event
        self.handler = handler
        self.ret_code = ret_code
        super().__init__(
            code="UNDEFINED_RETURN_CODE",
            message=(
                f"invalid return code: Code={ret_code}, State={state}, "
                f"Event={event}, Handle={handler}"
            ),
            details={"state": state, "event": event, "handler": handler, "ret_code": ret_code},
        )


# ── Engine errors ───────────────────────────────────────────────


class InvalidEventError(FSMError):
    def __init__(self, event: str):
        self.event = event
        super().__init__(
            code="INVALID_EVENT",
            message=f"invalid event: Event={event}",
            details={"event": event},
        )


# ── Loader errors ───────────────────────────────────────────────


class DescriptorLoadError(FSMError):
    """Raised when a YAML descriptor cannot be parsed or its handlers resolved."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code="DESCRIPTOR_LOAD_ERROR",
            message=message,
            details=details,
        )
