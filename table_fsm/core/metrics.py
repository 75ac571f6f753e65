# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Metrics — In-memory transition metrics for FSM tables.

A collector is optional: pass one to ``build_table(metrics=...)`` and
every entry of that table records into it:

  - counters: ``transit.total``, ``transit.end``, ``transit.error.<kind>``
  - occupancy: how many entries currently sit in each state
  - edges: how often each ``state -[event]-> next`` step was taken
  - histograms: handler latency (``handler_ms``)
"""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Any, Deque, Dict, Tuple

HISTOGRAM_WINDOW = 1000

Edge = Tuple[str, str, str]


class Metrics:
    """In-memory collector shared by the entries of one or more tables."""

    def __init__(self):
        self._counters: Dict[str, int] = defaultdict(int)
        self._occupancy: Dict[str, int] = defaultdict(int)
        self._edges: Dict[Edge, int] = defaultdict(int)
        self._histograms: Dict[str, Deque[float]] = defaultdict(
            lambda: deque(maxlen=HISTOGRAM_WINDOW)
        )
        self._start_time = time.time()

    # ── Counters ────────────────────────────────────────────────

    def inc(self, name: str, amount: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] += amount

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    # ── State occupancy ─────────────────────────────────────────

    def entry_created(self, state: str) -> None:
        """Count a new entry in its initial state."""
        self._occupancy[state] += 1

    def moved(self, state: str, event: str, next_state: str) -> None:
        """Record a completed step from ``state`` to ``next_state``."""
        self._edges[(state, event, next_state)] += 1
        if state != next_state:
            self._occupancy[state] -= 1
            self._occupancy[next_state] += 1

    def occupancy(self, state: str) -> int:
        """Number of entries currently in ``state``."""
        return self._occupancy.get(state, 0)

    def edge_count(self, state: str, event: str, next_state: str) -> int:
        return self._edges.get((state, event, next_state), 0)

    # ── Histograms (for handler latency) ────────────────────────

    def observe(self, name: str, value: float) -> None:
        """Record an observation (e.g. handler time in ms)."""
        self._histograms[name].append(value)

    # ── Export ──────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        """Export all metrics as a dict."""
        result = {
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "counters": dict(self._counters),
            "occupancy": {s: n for s, n in self._occupancy.items() if n},
            "edges": {
                f"{state} -[{event}]-> {nstate}": n
                for (state, event, nstate), n in self._edges.items()
            },
        }
        for name, values in self._histograms.items():
            if values:
                result[f"histogram_{name}"] = {
                    "count": len(values),
                    "avg": round(sum(values) / len(values), 2),
                    "max": round(max(values), 2),
                    "min": round(min(values), 2),
                }
        return result

    def reset(self) -> None:
        """Clear counters, edges and histograms; occupancy of live entries is kept."""
        self._counters.clear()
        self._edges.clear()
        self._histograms.clear()
        self._start_time = time.time()
