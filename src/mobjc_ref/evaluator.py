from __future__ import annotations

import logging
import sys
from typing import Callable, Dict, List, Optional, TextIO

from .runtime import (
    Environment,
    MobjcRuntimeError,
    ObjNull,
    ObjValue,
    Returned,
    init_stdlib,
)
from .stdlib import make_globals
from .tree import (
    Array, ArrayGet, ArraySet, Assign, Binary, Block, BlockLiteral, BlockSignature,
    Call, ClassDef, ClassImpl, Expr, Expression, For, Function, Get, Grouping, If,
    Literal, Logical, Print, Return, Selfy, Set, Stmt, Supery, Ternary,
    TypeAnnotation, TypeDef, Unary, Var, Variable, While,
)

from .eval.blocks import (
    eval_block_stmt,
    eval_expression_stmt,
    eval_print_stmt,
    eval_return_stmt,
    eval_typedef_stmt,
    eval_var_stmt,
)
from .eval.expr import (
    eval_assign,
    eval_binary,
    eval_grouping,
    eval_literal,
    eval_logical,
    eval_self_or_super,
    eval_ternary,
    eval_unary,
    eval_variable,
)
from .eval.fn import eval_block_literal, eval_call, eval_fn_def
from .eval.loops import eval_for_stmt, eval_if_stmt, eval_while_stmt
from .eval.objects import (
    eval_array,
    eval_array_get,
    eval_array_set,
    eval_class_def,
    eval_class_impl,
    eval_get,
    eval_set,
)

log = logging.getLogger(__name__)

ERROR_MARKER = "\nERROR"

class Interpreter:
    """
    Tree-walking interpreter.

    `environment` is the frame code currently runs in; it starts as a child of
    `globals` (the built-ins) and is swapped and restored around every block
    and call. `locals` is the resolver's depth table keyed by node identity.
    Output of `print` accumulates in `printed`.
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        init_stdlib()
        self.globals = make_globals()
        self.environment = Environment(self.globals)
        self.locals: Dict[Expr, int] = {}
        self.printed = ""
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.last_error: Optional[BaseException] = None

    # ---------------- Public API ----------------

    def resolve(self, node: Expr, depth: int) -> None:
        self.locals[node] = depth

    def interpret(self, stmts: List[Stmt]) -> None:
        """Run a program. A runtime failure stops it and leaves the ERROR
        marker in the output; it is never raised to the caller."""
        try:
            for stmt in stmts:
                if self.execute(stmt) is not None:
                    self._fail(MobjcRuntimeError("'return' outside of a function or block"))
                    return
        except (MobjcRuntimeError, RecursionError, MemoryError) as exc:
            self._fail(exc)

    def get_string(self, stmts: List[Stmt]) -> str:
        """Interpret and return everything printed, with `\\n` escapes expanded."""
        self.interpret(stmts)
        return self.printed.replace("\\n", "\n")

    def execute_statements(self, stmts: List[Stmt], env: Environment) -> Optional[Returned]:
        previous = self.environment
        self.environment = env

        try:
            for stmt in stmts:
                outcome = self.execute(stmt)
                if outcome is not None:
                    return outcome
            return None
        finally:
            self.environment = previous

    # ---------------- Dispatch ----------------

    def execute(self, stmt: Stmt) -> Optional[Returned]:
        handler = _STMT_DISPATCH.get(type(stmt))

        if handler is None:
            raise MobjcRuntimeError(f"Unhandled statement {type(stmt).__name__}")

        return handler(stmt, self)

    def evaluate(self, expr: Expr) -> ObjValue:
        handler = _EXPR_DISPATCH.get(type(expr))

        if handler is None:
            raise MobjcRuntimeError(f"Unhandled expression {type(expr).__name__}")

        return handler(expr, self)

    def _fail(self, exc: BaseException) -> None:
        self.last_error = exc
        log.warning("runtime error: %s", exc)
        self.printed += ERROR_MARKER

_STMT_DISPATCH: Dict[type, Callable[..., Optional[Returned]]] = {
    Block: eval_block_stmt,
    Expression: eval_expression_stmt,
    If: eval_if_stmt,
    While: eval_while_stmt,
    For: eval_for_stmt,
    Return: eval_return_stmt,
    Var: eval_var_stmt,
    Function: eval_fn_def,
    Print: eval_print_stmt,
    ClassDef: eval_class_def,
    ClassImpl: eval_class_impl,
    TypeDef: eval_typedef_stmt,
}

_EXPR_DISPATCH: Dict[type, Callable[..., ObjValue]] = {
    Assign: eval_assign,
    Ternary: eval_ternary,
    Logical: eval_logical,
    Binary: eval_binary,
    Unary: eval_unary,
    Grouping: eval_grouping,
    Literal: eval_literal,
    Variable: eval_variable,
    Array: eval_array,
    ArrayGet: eval_array_get,
    ArraySet: eval_array_set,
    Get: eval_get,
    Set: eval_set,
    Call: eval_call,
    Selfy: eval_self_or_super,
    Supery: eval_self_or_super,
    BlockLiteral: eval_block_literal,
    # Type nodes carry no runtime value
    TypeAnnotation: lambda n, interp: ObjNull(),
    BlockSignature: lambda n, interp: ObjNull(),
}
