# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
Handler Registry — Named handlers for YAML-described tables.

YAML cannot carry functions, so descriptors loaded from text name
their handlers. Names resolve to:
        registered name          → the registered callable
        `pkg.module.func`        → imported with importlib
        `pkg.module:Class.meth`  → imported with importlib
"""

from __future__ import annotations

import functools
import importlib
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("fsm.registry")

Handler = Callable[..., Any]


def handler_name(fn: Handler) -> str:
    """
    Caller-visible symbol name of a handler: ``module.qualname``.

    Partials report the wrapped function; objects without a
    qualified name fall back to their type's.
    """
    while isinstance(fn, functools.partial):
        fn = fn.func
    qualname = getattr(fn, "__qualname__", None) or type(fn).__qualname__
    module = getattr(fn, "__module__", None)
    return f"{module}.{qualname}" if module else qualname


class HandlerRegistry:
    """
    Central registry of handler callables, keyed by short name.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    # ── Registration ────────────────────────────────────────────

    def register(self, name: str, fn: Handler) -> None:
        """Register a handler by name. Overwrites if already registered."""
        if not callable(fn):
            raise TypeError(f"Handler '{name}' is not callable: {fn!r}")
        self._handlers[name] = fn
        logger.info("Registered handler: %s -> %s", name, handler_name(fn))

    def handler(self, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        """Decorator form of ``register``; defaults to the function name."""

        def decorator(fn: Handler) -> Handler:
            self.register(name or fn.__name__, fn)
            return fn

        return decorator

    # ── Lookup ──────────────────────────────────────────────────

    def get(self, name: str) -> Optional[Handler]:
        """Retrieve a handler by name."""
        return self._handlers.get(name)

    def resolve(self, ref: str) -> Handler:
        """
        Resolve a handler reference: registered name first, then a
        dotted Python path.

        Raises LookupError if the reference cannot be resolved.
        """
        fn = self._handlers.get(ref)
        if fn is not None:
            return fn

        if ":" in ref:
            module_path, _, attr_path = ref.partition(":")
        else:
            module_path, _, attr_path = ref.rpartition(".")
        if not module_path or not attr_path:
            raise LookupError(f"Handler '{ref}' is not registered")

        try:
            obj: Any = importlib.import_module(module_path)
        except ImportError as exc:
            raise LookupError(f"Handler '{ref}' is not registered and '{module_path}' cannot be imported") from exc
        for attr in attr_path.split("."):
            try:
                obj = getattr(obj, attr)
            except AttributeError as exc:
                raise LookupError(f"Handler '{ref}' not found in module '{module_path}'") from exc
        if not callable(obj):
            raise LookupError(f"Handler '{ref}' is not callable")
        return obj

    def names(self) -> List[str]:
        return list(self._handlers.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
