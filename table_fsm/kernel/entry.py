# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Entry Engine — one running machine over a shared Table.

An entry owns its current state, a scratch store for cooperating
handlers and a bounded transition log. ``transit`` performs one step:

    event -> rule(state, event) -> handler -> return code -> next state -> log

Engine errors are returned in the TransitResult, not raised; only
exceptions raised by a handler itself propagate.

An entry must not be driven by more than one caller at a time.
"""

from __future__ import annotations

import logging
import sys
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import (
    TYPE_CHECKING,
    Any,
    Deque,
    Dict,
    Generic,
    List,
    NamedTuple,
    Optional,
    TextIO,
    Tuple,
    TypeVar,
)

from table_fsm.core.config import settings
from table_fsm.core.errors import (
    FSMError,
    InvalidEventError,
    UndefinedHandleError,
    UndefinedReturnCodeError,
)

if TYPE_CHECKING:
    from table_fsm.kernel.table import Rule, Table

logger = logging.getLogger("fsm.entry")

OwnerT = TypeVar("OwnerT")
DataT = TypeVar("DataT")


class TransitResult(NamedTuple):
    """Outcome of one ``transit`` step; unpacks as (state, eot, error)."""

    state: Optional[str]
    end_of_transition: bool
    error: Optional[BaseException]

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


@dataclass(frozen=True)
class TransitLog:
    """One audit record of a transition."""

    timestamp: datetime
    state: str
    event: str
    handler: str
    ret_code: int
    next_state: str
    error: Optional[BaseException] = None

    def format(self, time_format: Optional[str] = None) -> str:
        stamp = self.timestamp.strftime(time_format or settings.FSM_LOG_TIME_FORMAT)
        line = (
            f"{stamp} State=[{self.state}] Event=[{self.event}] Func=[{self.handler}] "
            f"RetCode=[{self.ret_code}] NextState=[{self.next_state}]"
        )
        if self.error is not None:
            line += f" Err=[{self.error}]"
        return line


def _split_result(result: Any, rule: Rule) -> Tuple[int, Optional[BaseException]]:
    """Accept ``code`` or ``(code, error)`` from a handler."""
    if isinstance(result, tuple):
        if len(result) != 2:
            raise TypeError(
                f"Handler {rule.name} must return code or (code, error), got {result!r}"
            )
        code, err = result
    else:
        code, err = result, None
    if isinstance(code, bool) or not isinstance(code, int):
        raise TypeError(f"Handler {rule.name} returned non-integer code {code!r}")
    if err is not None and not isinstance(err, BaseException):
        raise TypeError(f"Handler {rule.name} returned non-exception error {err!r}")
    return int(code), err


class Entry(Generic[OwnerT, DataT]):
    """
    A running machine: (table, owner, current state, scratch, log).

    Create through ``Table.new_entry(owner)``.
    """

    def __init__(self, table: Table[OwnerT, DataT], owner: OwnerT) -> None:
        self.owner = owner
        self._table = table
        self._state: str = table.initial_state
        self._log_max: int = table.log_max
        self._logs: Deque[TransitLog] = deque(maxlen=self._log_max or None)
        self._data: Dict[str, Any] = {}
        if table.metrics is not None:
            table.metrics.entry_created(self._state)

    # ── Properties ──────────────────────────────────────────────

    @property
    def table(self) -> Table[OwnerT, DataT]:
        return self._table

    @property
    def state(self) -> str:
        return self._state

    @property
    def log_max(self) -> int:
        return self._log_max

    @property
    def logs(self) -> List[TransitLog]:
        return list(self._logs)

    # ── Scratch store ───────────────────────────────────────────

    def set(self, key: str, value: Any) -> None:
        """Store per-entry data for later handlers."""
        self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Return data stored by an earlier handler, or ``default``."""
        return self._data.get(key, default)

    # ── Core Transition Logic ───────────────────────────────────

    def transit(self, event: str) -> TransitResult:
        return self.transit_with_data(event, None)

    def transit_with_data(self, event: str, user_data: Optional[DataT]) -> TransitResult:
        """
        Feed ``event`` to the entry.

        Returns (next state, end of transition, error). ``state`` is None
        when the event is unknown or the current state has no rule for it.
        """
        table = self._table
        if event not in table.events:
            error = InvalidEventError(event)
            logger.warning("FSM invalid event: %s", event, extra={"state": self._state, "event": event})
            self._record(error, end=True)
            return TransitResult(None, True, error)

        rule = table.rule(self._state, event)
        if rule is None:
            error = UndefinedHandleError(self._state, event)
            logger.warning(
                "FSM no handle: %s -[%s]->", self._state, event,
                extra={"state": self._state, "event": event},
            )
            self._record(error, end=True)
            return TransitResult(None, True, error)

        prev = self._state
        started = time.perf_counter()
        ret_code, error = _split_result(rule.handler(self.owner, event, user_data), rule)
        if table.metrics is not None:
            table.metrics.observe("handler_ms", (time.perf_counter() - started) * 1000)

        next_state = rule.next_state(ret_code)
        if next_state is None:
            end = True
            error = UndefinedReturnCodeError(prev, event, rule.name, ret_code)
            logger.warning(
                "FSM undefined return code %d: %s -[%s]-> via %s",
                ret_code, prev, event, rule.name,
                extra={"state": prev, "event": event, "handler": rule.name, "ret_code": ret_code},
            )
        else:
            self._state = next_state
            end = table.is_final(next_state)
            if table.metrics is not None:
                table.metrics.moved(prev, event, next_state)
            logger.debug(
                "FSM transition: %s -[%s]-> %s",
                prev, event, next_state,
                extra={
                    "state": prev, "event": event, "handler": rule.name,
                    "ret_code": ret_code, "next_state": next_state,
                },
            )

        if self._log_max > 0:
            self._logs.append(TransitLog(
                timestamp=datetime.now().astimezone(),
                state=prev,
                event=event,
                handler=rule.name,
                ret_code=ret_code,
                next_state=self._state,
                error=error,
            ))

        self._record(error, end=end)
        return TransitResult(self._state, end, error)

    def _record(self, error: Optional[BaseException], end: bool) -> None:
        metrics = self._table.metrics
        if metrics is None:
            return
        metrics.inc("transit.total")
        if end:
            metrics.inc("transit.end")
        if error is not None:
            kind = error.code.lower() if isinstance(error, FSMError) else "handler"
            metrics.inc(f"transit.error.{kind}")

    # ── Transition log ──────────────────────────────────────────

    def format_log(self, last: int = 0, time_format: Optional[str] = None) -> List[str]:
        """Format the latest ``last`` records, or all of them if ``last <= 0``."""
        records = list(self._logs)
        if last > 0:
            records = records[-last:]
        return [record.format(time_format) for record in records]

    def print_log(self, last: int = 0, sink: Optional[TextIO] = None) -> None:
        out = sink or sys.stdout
        for line in self.format_log(last):
            out.write(line + "\n")

    def __repr__(self) -> str:
        return f"Entry(owner={self.owner!r}, state={self._state!r}, logs={len(self._logs)})"
