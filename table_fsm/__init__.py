# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
TableFSM — table-driven finite state machines.

Describe states, events, handlers and next-state candidates once,
build a validated Table, then drive any number of independent entries.
"""

from table_fsm.core.errors import (
    DescriptorLoadError,
    FSMError,
    HandleEmptyReturnCodeError,
    InvalidEventError,
    ReturnCodeDupError,
    ReturnCodeRangeError,
    StateEventConflictError,
    UndefinedHandleError,
    UndefinedReturnCodeError,
)
from table_fsm.core.metrics import Metrics
from table_fsm.kernel.entry import Entry, TransitLog, TransitResult
from table_fsm.kernel.handler_registry import HandlerRegistry, handler_name
from table_fsm.kernel.loader import (
    DescriptorDocument,
    load_descriptor_from_string,
    load_descriptor_from_yaml,
    load_table_from_yaml,
)
from table_fsm.kernel.table import Rule, Table, build_table
from table_fsm.protocols.codes import EXIT_END, EXIT_FAIL, EXIT_OK, EXIT_START
from table_fsm.protocols.schema import EventDescriptor, StateDescriptor, TableDescriptor

__version__ = "2.0.0"

__all__ = [
    "EXIT_END",
    "EXIT_FAIL",
    "EXIT_OK",
    "EXIT_START",
    "DescriptorDocument",
    "DescriptorLoadError",
    "Entry",
    "EventDescriptor",
    "FSMError",
    "HandleEmptyReturnCodeError",
    "HandlerRegistry",
    "InvalidEventError",
    "Metrics",
    "ReturnCodeDupError",
    "ReturnCodeRangeError",
    "Rule",
    "StateDescriptor",
    "StateEventConflictError",
    "Table",
    "TableDescriptor",
    "TransitLog",
    "TransitResult",
    "UndefinedHandleError",
    "UndefinedReturnCodeError",
    "build_table",
    "handler_name",
    "load_descriptor_from_string",
    "load_descriptor_from_yaml",
    "load_table_from_yaml",
]
