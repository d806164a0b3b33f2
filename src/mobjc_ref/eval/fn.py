from __future__ import annotations

from typing import TYPE_CHECKING

from ..runtime import ObjBlock, ObjFunction, ObjValue, call_value
from ..tree import BlockLiteral, Call, Function

if TYPE_CHECKING:
    from ..evaluator import Interpreter

def eval_call(n: Call, interp: 'Interpreter') -> ObjValue:
    callee = interp.evaluate(n.callee)
    args = [interp.evaluate(arg) for arg in n.args]

    return call_value(interp, callee, args)

def eval_fn_def(n: Function, interp: 'Interpreter') -> None:
    fn = ObjFunction(n, interp.environment, n.is_static)
    interp.environment.define(n.name.value, fn)

def eval_block_literal(n: BlockLiteral, interp: 'Interpreter') -> ObjBlock:
    # Captured by value up to the built-ins: later changes in any enclosing frame stay invisible
    return ObjBlock(n, interp.environment.snapshot(interp.globals))
