from __future__ import annotations

import logging
import os as _os
from typing import Optional

from .types import (
    ObjBool,
    ObjNull,
    ObjNumber,
    ObjString,
    ObjValue,
)

DEBUG_PY_TRACE_ENV = "MOBJC_DEBUG_PY_TRACE"
LOG_LEVEL_ENV = "MOBJC_LOG_LEVEL"


def envvar_value_by_name(name: str) -> Optional[str]:
    """Get the current value of an env var by name, or None if missing."""
    return _os.environ.get(name)


def debug_py_trace_enabled() -> bool:
    return envvar_value_by_name(DEBUG_PY_TRACE_ENV) == "1"


def configured_log_level() -> int:
    """Level named by MOBJC_LOG_LEVEL (a name like DEBUG or a number), default WARNING."""
    raw = envvar_value_by_name(LOG_LEVEL_ENV)
    if not raw:
        return logging.WARNING

    if raw.isdigit():
        return int(raw)

    level = logging.getLevelName(raw.upper())
    return level if isinstance(level, int) else logging.WARNING


def format_number(num: float) -> str:
    """Shortest text for a number: `3`, `2.5`, `inf`."""
    return repr(ObjNumber(num))


def obj_equals(lhs: ObjValue, rhs: ObjValue) -> bool:
    """Numbers and strings compare by value, null only equals null,
    anything else compares by truthiness."""
    match (lhs, rhs):
        case (ObjNull(), ObjNull()):
            return True
        case (ObjNull(), _) | (_, ObjNull()):
            return False
        case (ObjNumber(value=a), ObjNumber(value=b)):
            return a == b
        case (ObjString(value=a), ObjString(value=b)):
            return a == b
        case _:
            return is_truthy(lhs) == is_truthy(rhs)


def is_truthy(val: ObjValue) -> bool:
    """Only null and NO are falsy; 0 and "" are truthy."""
    match val:
        case ObjBool(value=b):
            return b
        case ObjNull():
            return False
        case _:
            return True


def stringify(value: Optional[ObjValue]) -> str:
    if value is None:
        return "nil"

    return repr(value)
