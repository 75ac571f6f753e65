# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Descriptor Loader — Load table descriptors from YAML.

    name: door
    init_state: Closed
    final_states: [Opened, Locked]
    log_max: 20
    states:
      - state: Closed
        events:
          - {event: Open, handler: open_door, cand_list: [Opened]}
          - {event: Lock, handler: lock_door, cand_list: [Locked, Closed]}
    validators:
      lock_door: [0, 1]

Handlers are names, resolved through a HandlerRegistry at build time.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from table_fsm.core.errors import DescriptorLoadError
from table_fsm.core.metrics import Metrics
from table_fsm.kernel.handler_registry import HandlerRegistry
from table_fsm.kernel.table import Table, build_table
from table_fsm.protocols.schema import TableDescriptor

logger = logging.getLogger("fsm.loader")

# Top-level keys that are not part of TableDescriptor
_DOCUMENT_KEYS = ("name", "description", "validators")


class DescriptorDocument:
    """Parsed YAML document: a table descriptor plus optional validators."""

    def __init__(self, config: Dict[str, Any]) -> None:
        if not isinstance(config, dict):
            raise DescriptorLoadError(
                f"Descriptor document must be a mapping, got {type(config).__name__}"
            )
        self.name: str = config.get("name", "unnamed")
        self.description: str = config.get("description", "")
        self.validators: Dict[str, List[int]] = _parse_validators(config.get("validators") or {})

        body = {k: v for k, v in config.items() if k not in _DOCUMENT_KEYS}
        try:
            self.descriptor = TableDescriptor.model_validate(body)
        except ValidationError as exc:
            raise DescriptorLoadError(
                f"Descriptor '{self.name}' has validation errors",
                details={"errors": [_format_error(e) for e in exc.errors()]},
            ) from exc

    def handler_refs(self) -> List[str]:
        """All handler names referenced by the descriptor."""
        refs = []
        for block in self.descriptor.states:
            for ev in block.events:
                if isinstance(ev.handler, str) and ev.handler not in refs:
                    refs.append(ev.handler)
        return refs

    def build(
        self,
        registry: Optional[HandlerRegistry] = None,
        metrics: Optional[Metrics] = None,
    ) -> Table:
        """Resolve handlers and build the table."""
        table = build_table(
            self.descriptor,
            validators=self.validators or None,
            metrics=metrics,
            registry=registry,
        )
        logger.info("Loaded FSM table '%s'", self.name)
        return table


def _parse_validators(raw: Any) -> Dict[str, List[int]]:
    if not isinstance(raw, dict):
        raise DescriptorLoadError("validators must map handler names to lists of return codes")
    validators: Dict[str, List[int]] = {}
    for name, codes in raw.items():
        if not isinstance(codes, list) or not all(
            isinstance(c, int) and not isinstance(c, bool) for c in codes
        ):
            raise DescriptorLoadError(
                f"validators['{name}'] must be a list of integer return codes",
                details={"handler": name, "codes": codes},
            )
        validators[str(name)] = codes
    return validators


def _format_error(error: Dict[str, Any]) -> str:
    loc = ".".join(str(part) for part in error.get("loc", ()))
    return f"{loc}: {error.get('msg', '')}" if loc else error.get("msg", "")


def load_descriptor_from_string(yaml_content: str) -> DescriptorDocument:
    """Load a descriptor document from a YAML string."""
    try:
        config = yaml.safe_load(yaml_content)
    except yaml.YAMLError as exc:
        raise DescriptorLoadError(f"Invalid YAML: {exc}") from exc
    return DescriptorDocument(config)


def load_descriptor_from_yaml(path: str | Path) -> DescriptorDocument:
    """Load a descriptor document from a YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    return load_descriptor_from_string(content)


def load_table_from_yaml(
    path: str | Path,
    registry: Optional[HandlerRegistry] = None,
    metrics: Optional[Metrics] = None,
) -> Table:
    """Load a YAML descriptor and build its table in one step."""
    return load_descriptor_from_yaml(path).build(registry=registry, metrics=metrics)
