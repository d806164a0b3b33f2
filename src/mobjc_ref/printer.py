"""
AST printers

`AstPrinter` renders statements in a compact parenthesized form, e.g.
`(varStmt int x (+ 1 2))`; tests compare parses against it. `to_tree`
converts the AST into a lark Tree so `Tree.pretty()` gives an indented dump
for the CLI and REPL.
"""

from __future__ import annotations

import math
import re
from dataclasses import fields
from typing import Any, List, Optional, Sequence

from lark import Token, Tree

from .token_types import Tok
from .tree import (
    Array, ArrayGet, ArraySet, Assign, Binary, Block, BlockLiteral, BlockSignature,
    Call, ClassDef, ClassImpl, Expr, Expression, For, Function, Get, Grouping, If,
    Literal, Logical, Print, Return, Selfy, Set, Stmt, Supery, Ternary,
    TypeAnnotation, TypeDef, Unary, Var, Variable, While,
)

def literal_text(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return "%.0f" % value
        return repr(value)

    return str(value)

class AstPrinter:
    def print_program(self, stmts: Sequence[Stmt]) -> str:
        """One rendered statement per line"""
        return "\n".join(self.render(stmt) for stmt in stmts)

    def render_program(self, stmts: Sequence[Stmt]) -> str:
        """Rendered statements back to back; the form tests compare against"""
        return "".join(self.render(stmt) for stmt in stmts)

    def render(self, node: Optional[Expr | Stmt | Tok]) -> str:
        match node:
            case None:
                return ""
            case Tok(value=value):
                return value

            # Expressions
            case Assign(name=name, op=op, value=value):
                extra = [name] if op.value == "=" else [name, op]
                return self.paren("assign", extra, value)
            case Ternary(condition=c, then_expr=t, else_expr=e):
                return self.paren("ternary", [], c, t, e)
            case ArrayGet(obj=obj, index=index):
                return self.paren("arrayGet", [], obj, index)
            case ArraySet(obj=obj, index=index, value=value):
                return self.paren("arraySet", [], obj, index, value)
            case Get(obj=obj, name=name):
                return self.paren("get", [name], obj)
            case Set(obj=obj, name=name, value=value, op=op):
                return self.paren("set", [name, op], obj, value)
            case Selfy():
                return "self"
            case Supery():
                return "super"
            case Logical(left=left, op=op, right=right) | Binary(left=left, op=op, right=right):
                return self.paren(op.value, [], left, right)
            case Array(contents=contents):
                return self.paren("array", [], *contents)
            case Grouping(expr=expr):
                return self.paren("group", [], expr)
            case Literal(value=value):
                return literal_text(value)
            case Unary(op=op, right=right):
                return self.paren(op.value, [], right)
            case Variable(name=name):
                return name.value
            case Call(callee=callee, args=args):
                return self.paren(f"call.{self.render(callee)}", [], *args)
            case TypeAnnotation(type=tok, block=block):
                return tok.value if tok is not None else self.render(block)
            case BlockSignature(return_type=ret, params=params):
                return self.paren("blockType", [], ret, *params)
            case BlockLiteral(return_type=ret, params=params, body=body):
                return self.paren("blockExpr", [], ret, *[name for _, name in params], *body)

            # Statements
            case Block(statements=statements):
                return self.paren("block", [], *statements)
            case If(condition=c, then_branch=t, else_branch=e):
                return self.paren("if", [], c, t, e)
            case Return(value=value):
                return self.paren("return", [], value)
            case Expression(expression=expr):
                return self.render(expr)
            case Var(type=type_, name=name, initializer=init):
                return self.paren("varStmt", [], type_, name, init)
            case While(condition=c, body=body):
                return self.paren("while", [], c, body)
            case For(initializer=init, condition=c, change=change, body=body):
                return self.paren("for", [], init, c, change, body)
            case Function(name=name, params=params, body=body):
                return self.paren(f"function.{name.value}", [p for _, p in params], *body)
            case ClassDef(name=name, methods=methods, properties=props):
                return self.paren(f"define {name.value}", [], *methods, *props)
            case ClassImpl(name=name, methods=methods):
                return self.paren(f"implement {name.value}", [], *methods)
            case Print(value=value):
                return self.paren("print", [], value)
            case TypeDef(name=name, new_type=new_type):
                return self.paren("typedef", [], name, new_type)

        return ""

    def paren(self, name: str, tokens: List[Tok], *parts: Optional[Expr | Stmt | Tok]) -> str:
        """`(name tok... part...)`; absent parts are skipped"""
        out = "(" + name

        for tok in tokens:
            out += " " + tok.value

        for part in parts:
            if part is not None:
                out += " " + self.render(part)

        return out + ")"

# ---------- lark Tree view ----------

def _label(node: Expr | Stmt) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", type(node).__name__).lower()

def _children(value: Any) -> List[Tree | Token]:
    if value is None:
        return []
    if isinstance(value, Tok):
        return [Token(value.type.name, value.value)]
    if isinstance(value, (Expr, Stmt)):
        return [node_to_tree(value)]
    if isinstance(value, (list, tuple)):
        out: List[Tree | Token] = []
        for item in value:
            out.extend(_children(item))
        return out
    if isinstance(value, bool):
        # Function.is_static
        return [Token("STATIC", "+")] if value else []

    return [Token("LITERAL", literal_text(value))]

def node_to_tree(node: Expr | Stmt) -> Tree:
    if isinstance(node, Literal):
        return Tree("literal", [Token("LITERAL", literal_text(node.value))])

    children: List[Tree | Token] = []
    for f in fields(node):
        children.extend(_children(getattr(node, f.name)))

    return Tree(_label(node), children)

def to_tree(stmts: Sequence[Stmt]) -> Tree:
    return Tree("program", [node_to_tree(stmt) for stmt in stmts])
