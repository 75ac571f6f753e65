# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Table Builder — turns a declarative descriptor into an indexed,
pre-checked transition table.

    descriptor ──> TableBuilder ──> Table (shared, read-only)
                                      └── new_entry(owner) ──> Entry ×N

Build passes, in order:
  1. seed the state index with the initial and final states
  2. discover every state / event / candidate next state
  3. allocate a handler slot per source state
  4. install rules (return-code range, duplicates, empty mapping, conflicts)
  5. sanity: every non-final state has at least one usable rule
  6. forward reachability: a non-final candidate next state must handle
     the event that led into it
  7. optional return-code validators
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    TextIO,
    Tuple,
    TypeVar,
    Union,
)

from table_fsm.core.config import settings
from table_fsm.core.errors import (
    DescriptorLoadError,
    FSMError,
    HandleEmptyReturnCodeError,
    ReturnCodeDupError,
    ReturnCodeRangeError,
    StateEventConflictError,
    UndefinedHandleError,
    UndefinedReturnCodeError,
)
from table_fsm.core.metrics import Metrics
from table_fsm.kernel.entry import Entry
from table_fsm.kernel.handler_registry import Handler, HandlerRegistry, handler_name
from table_fsm.protocols.codes import is_valid_return_code
from table_fsm.protocols.schema import EventDescriptor, TableDescriptor, coerce_descriptor

logger = logging.getLogger("fsm.builder")

OwnerT = TypeVar("OwnerT")
DataT = TypeVar("DataT")

# handler name -> return codes the handler is expected to emit
Validators = Mapping[str, Iterable[int]]

ANY_EVENT = "any"


@dataclass(frozen=True)
class Rule(Generic[OwnerT, DataT]):
    """One (state, event) cell of the table."""

    state: str
    event: str
    handler: Handler
    name: str
    next_states: Mapping[int, str]

    def next_state(self, ret_code: int) -> Optional[str]:
        return self.next_states.get(ret_code)

    def signature(self) -> Tuple[str, str, str, Tuple[Tuple[int, str], ...]]:
        return (self.state, self.event, self.name, tuple(sorted(self.next_states.items())))


class Table(Generic[OwnerT, DataT]):
    """
    Immutable, indexed transition table. Build with ``build_table``.

    A table may be shared by any number of entries; only entries
    carry mutable state.
    """

    def __init__(
        self,
        initial_state: str,
        final_states: Iterable[str],
        states: Iterable[str],
        events: Iterable[str],
        rules: Mapping[str, Mapping[str, Rule[OwnerT, DataT]]],
        log_max: int,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self._initial_state = initial_state
        self._final_list: Tuple[str, ...] = tuple(dict.fromkeys(final_states))
        self._final_states = frozenset(self._final_list)
        self._state_list: Tuple[str, ...] = tuple(dict.fromkeys(states))
        self._states = frozenset(self._state_list)
        self._event_list: Tuple[str, ...] = tuple(dict.fromkeys(events))
        self._events = frozenset(self._event_list)
        self._rules: Mapping[str, Mapping[str, Rule[OwnerT, DataT]]] = MappingProxyType(
            {state: MappingProxyType(dict(cells)) for state, cells in rules.items()}
        )
        self._log_max = log_max
        self._metrics = metrics

    # ── Properties ──────────────────────────────────────────────

    @property
    def initial_state(self) -> str:
        return self._initial_state

    @property
    def final_states(self) -> frozenset:
        return self._final_states

    @property
    def states(self) -> frozenset:
        return self._states

    @property
    def events(self) -> frozenset:
        return self._events

    @property
    def log_max(self) -> int:
        return self._log_max

    @property
    def metrics(self) -> Optional[Metrics]:
        return self._metrics

    # ── Lookup ──────────────────────────────────────────────────

    def rule(self, state: str, event: str) -> Optional[Rule[OwnerT, DataT]]:
        """Return the rule for (state, event), or None."""
        cells = self._rules.get(state)
        if cells is None:
            return None
        return cells.get(event)

    def rules(self) -> Iterator[Rule[OwnerT, DataT]]:
        for cells in self._rules.values():
            yield from cells.values()

    def valid_events(self, state: str) -> List[str]:
        """Return all events that have a rule under the given state."""
        return list(self._rules.get(state, {}).keys())

    def is_final(self, state: str) -> bool:
        return state in self._final_states

    def handler_names(self) -> List[str]:
        return sorted({rule.name for rule in self.rules()})

    def signature(self) -> Tuple[Any, ...]:
        """Structural identity: equal for tables built from the same descriptor."""
        return (
            self._initial_state,
            tuple(sorted(self._final_states)),
            tuple(sorted(self._states)),
            tuple(sorted(self._events)),
            tuple(sorted(rule.signature() for rule in self.rules())),
            self._log_max,
        )

    # ── Entries ─────────────────────────────────────────────────

    def new_entry(self, owner: OwnerT) -> Entry[OwnerT, DataT]:
        """Create an entry bound to ``owner``, starting at the initial state."""
        return Entry(self, owner)

    # ── Dump ────────────────────────────────────────────────────

    def describe(self) -> List[str]:
        """Human-readable table summary, one line per item."""
        lines = [f"InitState[{self._initial_state}]", "FinalStates"]
        lines.extend(f"  [{state}]" for state in self._final_list)
        lines.append("All States")
        lines.extend(f"  [{state}]" for state in self._state_list)
        lines.append("All Events")
        lines.extend(f"  [{event}]" for event in self._event_list)
        for state, cells in self._rules.items():
            lines.append(f"State[{state}]")
            for event, rule in cells.items():
                codes = sorted(rule.next_states)
                if not codes:
                    lines.append(f"  Event[{event}] Func[{rule.name}] Return code[-] Next State[-]")
                    continue
                for i, code in enumerate(codes):
                    if i == 0:
                        lines.append(
                            f"  Event[{event}] Func[{rule.name}] "
                            f"Return code[{code}] Next State[{rule.next_states[code]}]"
                        )
                    else:
                        lines.append(f"    Return code[{code}] Next State[{rule.next_states[code]}]")
        return lines

    def dump(self, sink: Optional[TextIO] = None) -> None:
        """Write the table summary to ``sink`` (stdout by default)."""
        out = sink or sys.stdout
        for line in self.describe():
            out.write(line + "\n")

    def __repr__(self) -> str:
        return (
            f"Table(init={self._initial_state!r}, states={len(self._states)}, "
            f"events={len(self._events)}, final={sorted(self._final_states)!r})"
        )


class TableBuilder:
    """
    Runs the build passes over one descriptor.

    Use ``build_table``; the builder is single-use.
    """

    def __init__(
        self,
        descriptor: TableDescriptor,
        validators: Optional[Validators] = None,
        metrics: Optional[Metrics] = None,
        registry: Optional[HandlerRegistry] = None,
    ) -> None:
        self._desc = descriptor
        self._validators = validators or {}
        self._metrics = metrics
        self._registry = registry or HandlerRegistry()
        self._log_max = (
            descriptor.log_max if descriptor.log_max is not None
            else settings.FSM_DEFAULT_LOG_MAX
        )

        # dicts used as insertion-ordered sets
        self._states: Dict[str, None] = {}
        self._events: Dict[str, None] = {}
        self._finals: Dict[str, None] = {}
        self._rules: Dict[str, Dict[str, Rule]] = {}

    def build(self) -> Table:
        self._seed()
        self._discover()
        self._allocate()
        self._install()
        self._check_sanity()
        self._check_reachability()
        self._check_validators()

        table = self._freeze()
        logger.info(
            "Built FSM table: init=%s states=%d events=%d rules=%d final=%s",
            table.initial_state, len(table.states), len(table.events),
            sum(1 for _ in table.rules()), sorted(table.final_states),
        )
        return table

    # ── Passes ──────────────────────────────────────────────────

    def _seed(self) -> None:
        self._states[self._desc.init_state] = None
        for state in self._desc.final_states:
            self._states[state] = None
            self._finals[state] = None

    def _discover(self) -> None:
        for block in self._desc.states:
            self._states[block.state] = None
            for ev in block.events:
                self._events[ev.event] = None
                for nstate in ev.candidate_states():
                    self._states[nstate] = None

    def _allocate(self) -> None:
        for block in self._desc.states:
            self._rules.setdefault(block.state, {})

    def _install(self) -> None:
        for block in self._desc.states:
            for ev in block.events:
                fn, name = self._resolve_handler(block.state, ev)
                next_states = self._next_state_mapping(block.state, ev, name)

                if not next_states and block.state not in self._finals:
                    raise HandleEmptyReturnCodeError(block.state, ev.event, name)

                cells = self._rules[block.state]
                old = cells.get(ev.event)
                if old is not None and (old.name != name or old.handler != fn):
                    # one handler per (state, event) cell; names may collide (lambdas, closures)
                    raise StateEventConflictError(block.state, ev.event, old.name, name)

                cells[ev.event] = Rule(
                    state=block.state,
                    event=ev.event,
                    handler=fn,
                    name=name,
                    next_states=MappingProxyType(next_states),
                )
                logger.debug(
                    "Installed rule: %s -[%s]-> %s via %s",
                    block.state, ev.event, dict(next_states), name,
                )

    def _check_sanity(self) -> None:
        for state in self._states:
            final = state in self._finals
            cells = self._rules.get(state)
            if cells is None or not cells:
                if not final:
                    self._fail(UndefinedHandleError(state, ANY_EVENT))
                continue
            for event, rule in cells.items():
                if not rule.next_states and not final:
                    self._fail(UndefinedHandleError(state, event))

    def _check_reachability(self) -> None:
        for block in self._desc.states:
            for ev in block.events:
                rule = self._rules[block.state][ev.event]
                for nstate in rule.next_states.values():
                    if nstate in self._finals:
                        continue
                    if ev.event not in self._rules.get(nstate, {}):
                        self._fail(UndefinedHandleError(nstate, ev.event))

    def _check_validators(self) -> None:
        if not self._validators:
            return
        for cells in self._rules.values():
            for rule in cells.values():
                required = self._validator_for(rule)
                if required is None:
                    continue
                for code in sorted(set(required)):
                    if code not in rule.next_states:
                        raise UndefinedReturnCodeError(rule.state, rule.event, rule.name, code)

    # ── Helpers ─────────────────────────────────────────────────

    def _resolve_handler(self, state: str, ev: EventDescriptor) -> Tuple[Handler, str]:
        if isinstance(ev.handler, str):
            try:
                fn = self._registry.resolve(ev.handler)
            except LookupError as exc:
                raise DescriptorLoadError(
                    str(exc),
                    details={"state": state, "event": ev.event, "handler": ev.handler},
                ) from exc
            return fn, ev.name or ev.handler
        return ev.handler, ev.name or handler_name(ev.handler)

    def _next_state_mapping(self, state: str, ev: EventDescriptor, name: str) -> Dict[int, str]:
        """Merge cand_list (index = code) and cand_map into one code -> state map."""
        next_states: Dict[int, str] = {}
        for code, nstate in enumerate(ev.cand_list):
            if not is_valid_return_code(code):
                raise ReturnCodeRangeError(state, ev.event, name, code)
            next_states[code] = nstate
        for code, nstate in ev.cand_map:
            if not is_valid_return_code(code):
                raise ReturnCodeRangeError(state, ev.event, name, code)
            if code in next_states:
                raise ReturnCodeDupError(state, ev.event, name, code)
            next_states[code] = nstate
        return next_states

    def _validator_for(self, rule: Rule) -> Optional[Iterable[int]]:
        keys = [rule.name]
        for attr in ("__qualname__", "__name__"):
            alias = getattr(rule.handler, attr, None)
            if alias and alias not in keys:
                keys.append(alias)
        for key in keys:
            if key in self._validators:
                return self._validators[key]
        return None

    def _freeze(self) -> Table:
        return Table(
            initial_state=self._desc.init_state,
            final_states=self._finals,
            states=self._states,
            events=self._events,
            rules=self._rules,
            log_max=self._log_max,
            metrics=self._metrics,
        )

    def _fail(self, error: FSMError) -> None:
        """Raise ``error`` with the partially built table attached for diagnostics."""
        error.table = self._freeze()
        raise error


def build_table(
    descriptor: Union[TableDescriptor, Dict[str, Any]],
    validators: Optional[Validators] = None,
    metrics: Optional[Metrics] = None,
    registry: Optional[HandlerRegistry] = None,
) -> Table:
    """
    Validate ``descriptor`` and build a Table.

    ``validators`` maps a handler name to the return codes that handler
    is expected to emit; each must have a next state in the rule.
    ``registry`` resolves handlers given by name.

    Raises pydantic.ValidationError for a malformed descriptor and an
    FSMError subclass for a semantically invalid one.
    """
    desc = coerce_descriptor(descriptor)
    return TableBuilder(desc, validators=validators, metrics=metrics, registry=registry).build()
