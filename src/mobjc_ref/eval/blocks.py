from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..runtime import Environment, ObjNull, Returned
from ..tree import Block, Expression, Print, Return, TypeDef, Var
from ..utils import stringify

if TYPE_CHECKING:
    from ..evaluator import Interpreter

def eval_block_stmt(n: Block, interp: 'Interpreter') -> Optional[Returned]:
    return interp.execute_statements(n.statements, Environment(interp.environment))

def eval_expression_stmt(n: Expression, interp: 'Interpreter') -> None:
    interp.evaluate(n.expression)

def eval_var_stmt(n: Var, interp: 'Interpreter') -> None:
    value = interp.evaluate(n.initializer) if n.initializer is not None else ObjNull()
    interp.environment.define(n.name.value, value)

def eval_print_stmt(n: Print, interp: 'Interpreter') -> None:
    value = interp.evaluate(n.value)

    if isinstance(value, ObjNull):
        return

    interp.printed += stringify(value) + "\n"

def eval_return_stmt(n: Return, interp: 'Interpreter') -> Returned:
    value = interp.evaluate(n.value) if n.value is not None else ObjNull()
    return Returned(value)

def eval_typedef_stmt(n: TypeDef, interp: 'Interpreter') -> None:
    # Typedefs only matter to the parser
    return None
