"""Built-in globals (clock, array, readLine, ...) registered via mobjc runtime."""

from __future__ import annotations

import math
import re
import time
from typing import List

from .runtime import (
    Builtins, Environment, MobjcRuntimeError, ObjNull, ObjNumber, ObjString, ObjValue,
    make_array, make_class, register_class, register_stdlib,
)
from .utils import stringify

# Largest cell count `array(n)` will allocate
MAX_ARRAY_CELLS = 1 << 24

# Decimal with optional exponent, or inf/infinity/nan; no blanks or digit separators
_NUMBER_RE = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|(?i:inf|infinity|nan))")

@register_stdlib("clock", arity=0)
def std_clock(_interp, args: List[ObjValue]) -> ObjNumber:
    return ObjNumber(time.time())

@register_stdlib("array", arity=1)
def std_array(_interp, args: List[ObjValue]) -> ObjValue:
    size = args[0] if args else None

    if not isinstance(size, ObjNumber) or not math.isfinite(size.value) or size.value <= 0:
        return make_array([])

    if size.value > MAX_ARRAY_CELLS:
        raise MobjcRuntimeError(f"array({stringify(size)}) exceeds {MAX_ARRAY_CELLS} cells")

    return make_array([ObjNull() for _ in range(int(size.value))])

@register_stdlib("readLine", arity=0)
def std_read_line(interp, args: List[ObjValue]) -> ObjValue:
    line = interp.stdin.readline()
    if not line:
        return ObjNull()

    return ObjString(line.rstrip("\n"))

@register_stdlib("printLine", arity=1)
def std_print_line(interp, args: List[ObjValue]) -> ObjNull:
    if not args or isinstance(args[0], ObjNull):
        interp.stdout.write("\n")
        return ObjNull()

    interp.stdout.write(stringify(args[0]).replace("\\n", "\n") + "\n")
    return ObjNull()

@register_stdlib("Int", arity=1)
def std_int(_interp, args: List[ObjValue]) -> ObjValue:
    text = args[0] if args else None

    if isinstance(text, ObjString):
        if _NUMBER_RE.fullmatch(text.value) is None:
            return ObjNull()
        return ObjNumber(float(text.value))

    return ObjNumber(0.0)

register_class("NSObject")

def make_globals() -> Environment:
    """Fresh global frame: shared native functions plus per-interpreter root classes."""
    env = Environment()

    for name, fn in Builtins.stdlib_functions.items():
        env.define(name, fn)

    for name in Builtins.stdlib_classes:
        env.define(name, make_class(name))

    return env
