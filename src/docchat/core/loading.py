"""Resolve pluggable backends named by settings."""

from __future__ import annotations

import importlib
import logging
from typing import Any

log = logging.getLogger(__name__)


def import_dotted_path(dotted: str) -> Any:
    """Import ``module.path:ClassName`` or ``module.path.attr``."""
    if ":" in dotted:
        module_path, obj_name = dotted.rsplit(":", 1)
    elif "." in dotted:
        module_path, obj_name = dotted.rsplit(".", 1)
    else:
        return importlib.import_module(dotted)

    mod = importlib.import_module(module_path)
    return getattr(mod, obj_name)


def load_backend(spec: str, *args: Any) -> Any:
    """Instantiate the class at dotted path *spec* with *args*.

    Raises:
        ImportError: If the dotted-path module cannot be found.
        TypeError: If the resolved object is not callable.
    """
    log.info("Loading external backend: %s", spec)
    cls = import_dotted_path(spec)
    if not callable(cls):
        raise TypeError(f"Backend {spec!r} resolved to {cls!r}, which is not callable")
    return cls(*args)
