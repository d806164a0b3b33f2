"""AST node set produced by the parser and consumed by the resolver, printer
and interpreter.

Nodes compare and hash by identity (``eq=False``): the resolver keys its depth
table by node, so two structurally equal references must stay distinct.
Nodes are built once by the parser and never mutated afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
from typing_extensions import TypeAlias

from .token_types import Tok

# ---------- Expressions ----------

@dataclass(eq=False)
class Expr:
    pass

@dataclass(eq=False)
class Assign(Expr):
    name: Tok
    op: Tok  # `=`, `+=` or `++`
    value: Expr

@dataclass(eq=False)
class Ternary(Expr):
    condition: Expr
    then_expr: Expr
    else_expr: Expr

@dataclass(eq=False)
class Logical(Expr):
    left: Expr
    op: Tok
    right: Expr

@dataclass(eq=False)
class Binary(Expr):
    left: Expr
    op: Tok
    right: Expr

@dataclass(eq=False)
class Unary(Expr):
    op: Tok
    right: Expr

@dataclass(eq=False)
class Grouping(Expr):
    expr: Expr

@dataclass(eq=False)
class Literal(Expr):
    value: Any  # None, bool, float or str

@dataclass(eq=False)
class Variable(Expr):
    name: Tok

@dataclass(eq=False)
class Array(Expr):
    contents: List[Expr]

@dataclass(eq=False)
class ArrayGet(Expr):
    obj: Expr
    index: Expr

@dataclass(eq=False)
class ArraySet(Expr):
    obj: Expr
    index: Expr
    value: Expr
    op: Tok

@dataclass(eq=False)
class Get(Expr):
    obj: Expr
    name: Tok

@dataclass(eq=False)
class Set(Expr):
    obj: Expr
    name: Tok
    value: Expr
    op: Tok

@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    args: List[Expr]

@dataclass(eq=False)
class Selfy(Expr):
    keyword: Tok

@dataclass(eq=False)
class Supery(Expr):
    keyword: Tok

@dataclass(eq=False)
class TypeAnnotation(Expr):
    """A declared type: either a type token or a block signature."""
    type: Optional[Tok] = None
    block: Optional[BlockSignature] = None

@dataclass(eq=False)
class BlockSignature(Expr):
    """`ret (^name)(params)`; the return type may itself be a block type."""
    return_type: TypeAnnotation
    name: Optional[Tok] = None
    params: List[TypeAnnotation] = field(default_factory=list)

Param: TypeAlias = Tuple[TypeAnnotation, Tok]

@dataclass(eq=False)
class BlockLiteral(Expr):
    return_type: Optional[TypeAnnotation]
    params: List[Param]
    body: List[Stmt]

# ---------- Statements ----------

@dataclass(eq=False)
class Stmt:
    pass

@dataclass(eq=False)
class Block(Stmt):
    statements: List[Stmt]

@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None

@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt

@dataclass(eq=False)
class For(Stmt):
    initializer: Optional[Stmt]
    condition: Optional[Expr]
    change: Optional[Expr]
    body: Stmt

@dataclass(eq=False)
class Return(Stmt):
    value: Optional[Expr]

@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr

@dataclass(eq=False)
class Var(Stmt):
    type: TypeAnnotation
    name: Tok
    initializer: Optional[Expr] = None

@dataclass(eq=False)
class Function(Stmt):
    name: Tok
    params: List[Param]
    body: List[Stmt]
    is_static: bool = False

@dataclass(eq=False)
class Print(Stmt):
    value: Expr

@dataclass(eq=False)
class ClassDef(Stmt):
    name: Tok
    superclass: Optional[Variable]
    methods: List[Function]
    properties: List[Var]

@dataclass(eq=False)
class ClassImpl(Stmt):
    name: Tok
    methods: List[Function]

@dataclass(eq=False)
class TypeDef(Stmt):
    name: Tok
    new_type: TypeAnnotation


Node: TypeAlias = Expr | Stmt


def block_name(annotation: Optional[TypeAnnotation]) -> Optional[Tok]:
    """Name carried by a block-typed annotation (`int (^name)(int)`), if any."""
    if annotation is None or annotation.block is None:
        return None

    return annotation.block.name
