from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from ..runtime import MobjcTypeError, ObjBool, ObjNull, ObjNumber, ObjString, ObjValue, expect_number
from ..token_types import TT, Tok
from ..tree import Expr
from ..utils import format_number, obj_equals

if TYPE_CHECKING:
    from ..evaluator import Interpreter

log = logging.getLogger(__name__)

# ---------- Variables ----------

def lookup_variable(interp: 'Interpreter', name: str, node: Expr) -> ObjValue:
    """Read through the resolved depth, else from the current frame outward."""
    depth = interp.locals.get(node)

    if depth is not None:
        return interp.environment.get_at(depth, name)

    return interp.environment.get(name)

def assign_variable(interp: 'Interpreter', name: str, node: Expr, value: ObjValue) -> None:
    depth = interp.locals.get(node)

    if depth is not None:
        interp.environment.assign_at(depth, name, value)
        return

    if not interp.environment.assign(name, value):
        log.debug("assignment to undeclared %r dropped", name)

# ---------- Operators ----------

def is_compound(op: Tok) -> bool:
    return op.type in (TT.PLUSEQ, TT.INCR)

def add_values(left: ObjValue, right: ObjValue, op: Tok) -> ObjValue:
    """
    `+`: numbers add, strings concatenate, and a number meeting a string is
    written in its shortest form. Null takes part as the text "nil".
    """
    if isinstance(left, ObjNull):
        left = ObjString("nil")
    if isinstance(right, ObjNull):
        right = ObjString("nil")

    match (left, right):
        case (ObjNumber(value=a), ObjNumber(value=b)):
            return ObjNumber(a + b)
        case (ObjString(value=a), ObjString(value=b)):
            return ObjString(a + b)
        case (ObjNumber(value=a), ObjString(value=b)):
            return ObjString(format_number(a) + b)
        case (ObjString(value=a), ObjNumber(value=b)):
            return ObjString(a + format_number(b))
        case _:
            raise MobjcTypeError(
                f"Cannot add {type(left).__name__} and {type(right).__name__}",
                op.line, op.column,
            )

def _divide(a: float, b: float) -> float:
    if b != 0:
        return a / b

    if a == 0 or math.isnan(a):
        return math.nan

    return math.copysign(math.inf, a) * math.copysign(1.0, b)

def _remainder(a: float, b: float) -> float:
    # C fmod; Python's raises where IEEE gives nan
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan

    return math.fmod(a, b)

def apply_binary(op: Tok, left: ObjValue, right: ObjValue) -> ObjValue:
    match op.type:
        case TT.PLUS:
            return add_values(left, right, op)
        case TT.EQ:
            return ObjBool(obj_equals(left, right))
        case TT.NEQ:
            return ObjBool(not obj_equals(left, right))

    try:
        a = expect_number(left, op.value)
        b = expect_number(right, op.value)
    except MobjcTypeError as exc:
        exc.line, exc.column = op.line, op.column
        raise

    match op.type:
        case TT.MINUS:
            return ObjNumber(a - b)
        case TT.STAR:
            return ObjNumber(a * b)
        case TT.SLASH:
            return ObjNumber(_divide(a, b))
        case TT.MOD:
            return ObjNumber(_remainder(a, b))
        case TT.LT:
            return ObjBool(a < b)
        case TT.LTE:
            return ObjBool(a <= b)
        case TT.GT:
            return ObjBool(a > b)
        case TT.GTE:
            return ObjBool(a >= b)
        case _:
            return ObjNull()
