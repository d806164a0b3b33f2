from __future__ import annotations

from typing import TYPE_CHECKING

from ..runtime import MobjcTypeError, ObjBool, ObjNull, ObjNumber, ObjString, ObjValue
from ..token_types import TT
from ..tree import Assign, Binary, Grouping, Literal, Logical, Selfy, Supery, Ternary, Unary, Variable
from ..utils import is_truthy
from .helpers import add_values, apply_binary, assign_variable, is_compound, lookup_variable

if TYPE_CHECKING:
    from ..evaluator import Interpreter

def eval_literal(n: Literal, interp: 'Interpreter') -> ObjValue:
    value = n.value

    if value is None:
        return ObjNull()
    if isinstance(value, bool):
        return ObjBool(value)
    if isinstance(value, float):
        return ObjNumber(value)

    return ObjString(value)

def eval_grouping(n: Grouping, interp: 'Interpreter') -> ObjValue:
    return interp.evaluate(n.expr)

def eval_unary(n: Unary, interp: 'Interpreter') -> ObjValue:
    rhs = interp.evaluate(n.right)

    match n.op.type:
        case TT.BANG:
            return ObjBool(not is_truthy(rhs))
        case TT.MINUS:
            if not isinstance(rhs, ObjNumber):
                raise MobjcTypeError(
                    f"Operand of unary '-' must be a number, got {type(rhs).__name__}",
                    n.op.line, n.op.column,
                )
            return ObjNumber(-rhs.value)
        case _:
            return ObjNull()

def eval_binary(n: Binary, interp: 'Interpreter') -> ObjValue:
    left = interp.evaluate(n.left)
    right = interp.evaluate(n.right)

    return apply_binary(n.op, left, right)

def eval_logical(n: Logical, interp: 'Interpreter') -> ObjBool:
    left = is_truthy(interp.evaluate(n.left))

    if n.op.type is TT.OR and left:
        return ObjBool(True)
    if n.op.type is TT.AND and not left:
        return ObjBool(False)

    return ObjBool(is_truthy(interp.evaluate(n.right)))

def eval_ternary(n: Ternary, interp: 'Interpreter') -> ObjValue:
    if is_truthy(interp.evaluate(n.condition)):
        return interp.evaluate(n.then_expr)

    return interp.evaluate(n.else_expr)

def eval_variable(n: Variable, interp: 'Interpreter') -> ObjValue:
    return lookup_variable(interp, n.name.value, n)

def eval_self_or_super(n: Selfy | Supery, interp: 'Interpreter') -> ObjValue:
    return lookup_variable(interp, n.keyword.value, n)

def eval_assign(n: Assign, interp: 'Interpreter') -> ObjValue:
    """`=` stores the value; `+=` and `++` add it to the current value first."""
    name = n.name.value
    value = interp.evaluate(n.value)

    if is_compound(n.op):
        value = add_values(lookup_variable(interp, name, n), value, n.op)

    assign_variable(interp, name, n, value)
    return value
