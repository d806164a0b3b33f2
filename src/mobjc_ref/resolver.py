"""
Static resolver for mobjc

One pass over the AST that works out, for every variable reference, how
many enclosing frames lie between the reference and the frame declaring
the name. The interpreter receives each depth through `resolve(node,
depth)`; references left unrecorded are looked up from the current frame
outward at runtime, which ends at the global frame.

Scopes mirror the frames the interpreter creates:
- the top level (the interpreter's starting frame)
- every `{ }` block, function body and block-literal body
- an @implementation, standing for the frame a bound method runs on
  (self, super, the class's properties and methods)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set
from typing_extensions import Protocol

from .tree import (
    Array, ArrayGet, ArraySet, Assign, Binary, Block, BlockLiteral, BlockSignature,
    Call, ClassDef, ClassImpl, Expr, Expression, For, Function, Get, Grouping, If,
    Literal, Logical, Param, Print, Return, Selfy, Set as SetExpr, Stmt, Supery,
    Ternary, TypeAnnotation, TypeDef, Unary, Var, Variable, While,
)

class DepthSink(Protocol):
    def resolve(self, node: Expr, depth: int) -> None: ...

@dataclass
class ClassInfo:
    """What an @interface makes implicitly visible inside its @implementation."""
    superclass: Optional[str] = None
    properties: List[str] = field(default_factory=list)
    methods: List[str] = field(default_factory=list)

class Resolver:
    def __init__(self, interpreter: DepthSink):
        self.interpreter = interpreter
        self.scopes: List[Set[str]] = [set()]
        self.classes: Dict[str, ClassInfo] = {}

    # ========================================================================
    # Entry points
    # ========================================================================

    def resolve(self, stmts: List[Stmt]) -> None:
        for stmt in stmts:
            self.resolve_stmt(stmt)

    def resolve_stmt(self, stmt: Optional[Stmt]) -> None:
        if stmt is None:
            return

        handler = _STMT_DISPATCH.get(type(stmt))
        if handler is not None:
            handler(self, stmt)

    def resolve_expr(self, expr: Optional[Expr]) -> None:
        if expr is None:
            return

        handler = _EXPR_DISPATCH.get(type(expr))
        if handler is not None:
            handler(self, expr)

    # ========================================================================
    # Scopes
    # ========================================================================

    def begin_scope(self) -> None:
        self.scopes.append(set())

    def end_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: str) -> None:
        # Idempotent; sets make re-declaration a no-op
        self.scopes[-1].add(name)

    def resolve_local(self, node: Expr, name: str) -> None:
        for depth, scope in enumerate(reversed(self.scopes)):
            if name in scope:
                self.interpreter.resolve(node, depth)
                return

    def class_members(self, name: str) -> Set[str]:
        """Property and method names of a class, inherited ones included."""
        members: Set[str] = set()
        seen: Set[str] = set()
        cur: Optional[str] = name

        while cur is not None and cur not in seen:
            seen.add(cur)
            info = self.classes.get(cur)
            if info is None:
                break
            members.update(info.properties)
            members.update(info.methods)
            cur = info.superclass

        return members

    def resolve_function(self, params: List[Param], body: List[Stmt]) -> None:
        self.begin_scope()

        for _, name in params:
            self.declare(name.value)

        self.resolve(body)
        self.end_scope()

    # ========================================================================
    # Statements
    # ========================================================================

    def _block(self, stmt: Block) -> None:
        self.begin_scope()
        self.resolve(stmt.statements)
        self.end_scope()

    def _expression(self, stmt: Expression) -> None:
        self.resolve_expr(stmt.expression)

    def _if(self, stmt: If) -> None:
        self.resolve_expr(stmt.condition)
        self.resolve_stmt(stmt.then_branch)
        self.resolve_stmt(stmt.else_branch)

    def _var(self, stmt: Var) -> None:
        self.declare(stmt.name.value)
        self.resolve_expr(stmt.initializer)

    def _return(self, stmt: Return) -> None:
        self.resolve_expr(stmt.value)

    def _while(self, stmt: While) -> None:
        self.resolve_expr(stmt.condition)
        self.resolve_stmt(stmt.body)

    def _for(self, stmt: For) -> None:
        # No scope of its own: the loop shares the enclosing frame
        self.resolve_stmt(stmt.initializer)
        self.resolve_expr(stmt.condition)
        self.resolve_expr(stmt.change)
        self.resolve_stmt(stmt.body)

    def _print(self, stmt: Print) -> None:
        self.resolve_expr(stmt.value)

    def _function(self, stmt: Function) -> None:
        # Declared first so the body can recurse
        self.declare(stmt.name.value)
        self.resolve_function(stmt.params, stmt.body)

    def _class_def(self, stmt: ClassDef) -> None:
        self.declare(stmt.name.value)
        self.resolve_expr(stmt.superclass)

        info = self.classes.setdefault(stmt.name.value, ClassInfo())
        if stmt.superclass is not None:
            info.superclass = stmt.superclass.name.value

        for prop in stmt.properties:
            info.properties.append(prop.name.value)
            self.resolve_expr(prop.initializer)

        for method in stmt.methods:
            info.methods.append(method.name.value)

    def _class_impl(self, stmt: ClassImpl) -> None:
        info = self.classes.setdefault(stmt.name.value, ClassInfo())
        info.methods.extend(method.name.value for method in stmt.methods)

        self.begin_scope()
        self.declare("self")
        self.declare("super")
        for member in self.class_members(stmt.name.value):
            self.declare(member)

        for method in stmt.methods:
            self.resolve_function(method.params, method.body)

        self.end_scope()

    def _typedef(self, stmt: TypeDef) -> None:
        pass

    # ========================================================================
    # Expressions
    # ========================================================================

    def _assign(self, expr: Assign) -> None:
        self.resolve_expr(expr.value)
        self.resolve_local(expr, expr.name.value)

    def _binary(self, expr: Binary | Logical) -> None:
        self.resolve_expr(expr.left)
        self.resolve_expr(expr.right)

    def _ternary(self, expr: Ternary) -> None:
        self.resolve_expr(expr.condition)
        self.resolve_expr(expr.then_expr)
        self.resolve_expr(expr.else_expr)

    def _unary(self, expr: Unary) -> None:
        self.resolve_expr(expr.right)

    def _grouping(self, expr: Grouping) -> None:
        self.resolve_expr(expr.expr)

    def _variable(self, expr: Variable) -> None:
        self.resolve_local(expr, expr.name.value)

    def _selfy(self, expr: Selfy | Supery) -> None:
        self.resolve_local(expr, expr.keyword.value)

    def _array(self, expr: Array) -> None:
        for item in expr.contents:
            self.resolve_expr(item)

    def _array_get(self, expr: ArrayGet) -> None:
        self.resolve_expr(expr.obj)
        self.resolve_expr(expr.index)

    def _array_set(self, expr: ArraySet) -> None:
        self.resolve_expr(expr.value)
        self.resolve_expr(expr.obj)
        self.resolve_expr(expr.index)

    def _get(self, expr: Get) -> None:
        self.resolve_expr(expr.obj)

    def _set(self, expr: SetExpr) -> None:
        self.resolve_expr(expr.value)
        self.resolve_expr(expr.obj)

    def _call(self, expr: Call) -> None:
        self.resolve_expr(expr.callee)
        for arg in expr.args:
            self.resolve_expr(arg)

    def _block_literal(self, expr: BlockLiteral) -> None:
        self.resolve_function(expr.params, expr.body)

    def _literal(self, expr: Literal | TypeAnnotation | BlockSignature) -> None:
        pass

_STMT_DISPATCH: Dict[type, Callable[[Resolver, Stmt], None]] = {
    Block: Resolver._block,
    Expression: Resolver._expression,
    If: Resolver._if,
    Var: Resolver._var,
    Return: Resolver._return,
    While: Resolver._while,
    For: Resolver._for,
    Print: Resolver._print,
    Function: Resolver._function,
    ClassDef: Resolver._class_def,
    ClassImpl: Resolver._class_impl,
    TypeDef: Resolver._typedef,
}

_EXPR_DISPATCH: Dict[type, Callable[[Resolver, Expr], None]] = {
    Assign: Resolver._assign,
    Binary: Resolver._binary,
    Logical: Resolver._binary,
    Ternary: Resolver._ternary,
    Unary: Resolver._unary,
    Grouping: Resolver._grouping,
    Literal: Resolver._literal,
    Variable: Resolver._variable,
    Selfy: Resolver._selfy,
    Supery: Resolver._selfy,
    Array: Resolver._array,
    ArrayGet: Resolver._array_get,
    ArraySet: Resolver._array_set,
    Get: Resolver._get,
    SetExpr: Resolver._set,
    Call: Resolver._call,
    BlockLiteral: Resolver._block_literal,
    BlockSignature: Resolver._literal,
    TypeAnnotation: Resolver._literal,
}
