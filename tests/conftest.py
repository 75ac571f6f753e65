# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Shared test fixtures for all TableFSM tests.

The door table used throughout:

    Closed --Open-->  Opened        Opened --Open-->  Opened
    Closed --Close--> Closed        Opened --Close--> Closed
    Closed --Lock-->  Locked (ok) | Closed (fail)

    Locked is final.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

import pytest

from table_fsm import EXIT_FAIL, EXIT_OK, build_table


@dataclass
class Key:
    id: str


@dataclass
class Door:
    name: str
    entry: Any = None
    actions: List[str] = field(default_factory=list)


class NoKeyError(Exception):
    """Raised by lock_door when no key is supplied."""


def open_door(door: Door, event: str, _key: Optional[Key]):
    door.actions.append("open")
    return EXIT_OK, None


def close_door(door: Door, event: str, _key: Optional[Key]):
    door.actions.append("close")
    return EXIT_OK


def lock_door(door: Door, event: str, key: Optional[Key]):
    if key is None:
        door.actions.append("lock-failed")
        return EXIT_FAIL, NoKeyError(f"door {door.name} has no key")
    door.actions.append("lock")
    door.entry.set("key", key)
    return EXIT_OK, None


def door_descriptor(log_max: int = 20) -> dict:
    return {
        "init_state": "Closed",
        "final_states": ["Locked"],
        "log_max": log_max,
        "states": [
            {
                "state": "Closed",
                "events": [
                    {"event": "Open", "handler": open_door, "cand_list": ["Opened"]},
                    {"event": "Close", "handler": close_door, "cand_list": ["Closed"]},
                    {"event": "Lock", "handler": lock_door, "cand_list": ["Locked", "Closed"]},
                ],
            },
            {
                "state": "Opened",
                "events": [
                    {"event": "Open", "handler": open_door, "cand_list": ["Opened"]},
                    {"event": "Close", "handler": close_door, "cand_list": ["Closed"]},
                ],
            },
        ],
    }


@pytest.fixture
def door_table():
    """A built door table with a log bound of 20."""
    return build_table(door_descriptor())


@pytest.fixture
def door(door_table) -> Door:
    """A door bound to a fresh entry of ``door_table``."""
    d = Door(name="myDoor")
    d.entry = door_table.new_entry(d)
    return d
