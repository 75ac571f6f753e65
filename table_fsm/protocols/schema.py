# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Table Descriptor Schema — the declarative input of ``build_table``.

Shape checks (names, types, bounds) happen here; table-level semantics
(return-code ranges, duplicates, conflicts, reachability) are checked
by the builder so they surface as FSM errors.

Design decisions:
  - ``cand_map`` is kept as an ordered list of (code, state) pairs so a
    code repeated inside the map is still visible to the builder.
  - ``handler`` is a callable or the name of a registered handler.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

HandlerRef = Union[str, Callable[..., Any]]


class EventDescriptor(BaseModel):
    """One (event, handler, next-state mapping) block under a state."""

    model_config = ConfigDict(extra="forbid")

    event: str = Field(..., min_length=1, description="Event name")
    handler: HandlerRef = Field(
        ...,
        description="Handler callable, or a name resolved by a HandlerRegistry",
    )
    name: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Explicit handler name; defaults to the function's qualified name",
    )
    cand_list: List[str] = Field(
        default_factory=list,
        description="Next state per return code, indexed by code",
    )
    cand_map: List[Tuple[int, str]] = Field(
        default_factory=list,
        description="Explicit (return code, next state) pairs",
    )

    # ── Validators ──────────────────────────────────────────────

    @field_validator("handler")
    @classmethod
    def handler_name_not_blank(cls, v: HandlerRef) -> HandlerRef:
        if isinstance(v, str) and not v.strip():
            raise ValueError("handler name must not be blank")
        return v

    @field_validator("cand_list")
    @classmethod
    def cand_list_names_not_blank(cls, v: List[str]) -> List[str]:
        for state in v:
            if not state:
                raise ValueError("cand_list contains an empty state name")
        return v

    @field_validator("cand_map", mode="before")
    @classmethod
    def cand_map_as_pairs(cls, v: Any) -> Any:
        """Accept ``{code: state}`` as well as ``[(code, state), ...]``."""
        if v is None:
            return []
        if isinstance(v, Mapping):
            return list(v.items())
        return v

    @field_validator("cand_map")
    @classmethod
    def cand_map_names_not_blank(cls, v: List[Tuple[int, str]]) -> List[Tuple[int, str]]:
        for code, state in v:
            if not state:
                raise ValueError(f"cand_map code {code} maps to an empty state name")
        return v

    def candidate_states(self) -> List[str]:
        """All next states named by this block, list first then map."""
        return list(self.cand_list) + [state for _, state in self.cand_map]


class StateDescriptor(BaseModel):
    """A source state and the events it handles."""

    model_config = ConfigDict(extra="forbid")

    state: str = Field(..., min_length=1, description="Source state name")
    events: List[EventDescriptor] = Field(default_factory=list)


class TableDescriptor(BaseModel):
    """
    Complete declarative description of a transition table.

        init_state: Closed
        final_states: [Opened]
        log_max: 20
        states:
          - state: Closed
            events:
              - {event: Open, handler: open_door, cand_list: [Opened]}
    """

    model_config = ConfigDict(extra="forbid")

    init_state: str = Field(..., min_length=1, description="Initial state of every entry")
    final_states: List[str] = Field(default_factory=list)
    log_max: Optional[int] = Field(
        default=None,
        ge=0,
        description="Transition log bound (None = FSM_DEFAULT_LOG_MAX)",
    )
    states: List[StateDescriptor] = Field(default_factory=list)

    @field_validator("final_states")
    @classmethod
    def final_state_names_not_blank(cls, v: List[str]) -> List[str]:
        for state in v:
            if not state:
                raise ValueError("final_states contains an empty state name")
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableDescriptor:
        return cls.model_validate(data)


def coerce_descriptor(descriptor: Union[TableDescriptor, Dict[str, Any]]) -> TableDescriptor:
    """Return ``descriptor`` as a validated TableDescriptor."""
    if isinstance(descriptor, TableDescriptor):
        return descriptor
    return TableDescriptor.model_validate(descriptor)
