"""
Recursive Descent Parser for mobjc

Structure:
- Lexer: Token stream from source (lexer_rd)
- Parser: Recursive descent, one precedence level per method
- AST: Expr/Stmt dataclasses from tree.py

Failure policy: the parser never raises. An unexpected token records a
ParseError, a placeholder node or token is substituted, and parsing winds
down at the next statement boundary. The unconsumed tail is kept in
`remaining` and logged for diagnosis.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .lexer_rd import tokenize
from .token_types import TT, VARIABLE_TYPES, Tok
from .tree import (
    Array, ArrayGet, ArraySet, Assign, Binary, Block, BlockLiteral, BlockSignature,
    Call, ClassDef, ClassImpl, Expr, Expression, For, Function, Get, Grouping, If,
    Literal, Logical, Param, Print, Return, Selfy, Set, Stmt, Supery, Ternary,
    TypeAnnotation, TypeDef, Unary, Var, Variable, While, block_name,
)

log = logging.getLogger(__name__)

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

@dataclass
class _PendingBlock:
    """A block type opened by `(^` whose name and parameters are not read yet."""
    name: Optional[Tok] = None
    params: List[TypeAnnotation] = field(default_factory=list)

class Parser:
    """
    Recursive descent parser for mobjc.

    Expression precedence (loosest to tightest):
    1. ternary (? :)
    2. assignment (=, +=)
    3. postfix increment (++)
    4. or (||)
    5. and (&&)
    6. equality (==, !=)
    7. comparison (<, >, <=, >=)
    8. additive (+, -)
    9. multiplicative (*, /, %)
    10. array index ([i][j]...)
    11. unary (!, -)
    12. block literal (^ret(params) { ... })
    13. call / member access ((args), .name)
    14. message send ([recv sel: a key: b])
    15. primary (literals, identifiers, parens, @[...])

    At a statement boundary a type is tried first; when one parses the
    statement is a declaration, otherwise an ordinary statement.
    """

    def __init__(self, tokens: Optional[List[Tok]] = None):
        self.tokens: List[Tok] = tokens if tokens is not None else [Tok(TT.EOF, '')]
        self.pos = 0
        self.errors: List[ParseError] = []
        self.remaining: List[Tok] = []
        # Typedef names are only known once their typedef has been parsed
        self.type_defs: set[str] = set()

    @property
    def had_error(self) -> bool:
        return bool(self.errors)

    # ========================================================================
    # Token Navigation
    # ========================================================================

    @property
    def current(self) -> Tok:
        return self.peek()

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token; the stream never runs past its EOF"""
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def previous(self) -> Tok:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.peek().type is TT.EOF

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        tok = self.peek()
        if not self.at_end():
            self.pos += 1
        return tok

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        if self.at_end():
            return False
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def maybe(self, *types: TT) -> Optional[Tok]:
        """Consume and return the current token if it matches, else None"""
        if self.check(*types):
            return self.advance()
        return None

    def expect(self, *types: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type; on mismatch record an error and
        hand back a placeholder token"""
        if self.check(*types):
            return self.advance()

        names = " or ".join(t.name for t in types)
        self.error(message or f"Expected {names}, got {self.current.type.name}")
        cur = self.current
        return Tok(TT.IDENT, "ERROR", cur.line, cur.column)

    def error(self, message: str) -> None:
        # Only the first error is reported; parsing unwinds after it
        if self.errors:
            return
        self.errors.append(ParseError(message, self.current))

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse_tokens(self, tokens: List[Tok]) -> List[Stmt]:
        """Parse another token stream, keeping the typedefs seen so far"""
        self.tokens = tokens
        self.pos = 0
        self.errors = []
        self.remaining = []
        return self.parse()

    def parse(self) -> List[Stmt]:
        """Parse entire program"""
        statements: List[Stmt] = []

        while not self.at_end() and not self.had_error:
            statements.append(self.parse_start())

        if self.had_error:
            self.remaining = self.tokens[self.pos:]
            log.warning(
                "%s; remaining tokens after error: %s",
                self.errors[0],
                ", ".join(f"[{tok.type.name}: {tok.value}]" for tok in self.remaining),
            )

        return statements

    def parse_start(self) -> Stmt:
        type_ = self.parse_type()
        if type_ is not None:
            return self.parse_declaration(type_)

        return self.parse_statement()

    # ========================================================================
    # Declarations
    # ========================================================================

    def parse_declaration(self, type_: TypeAnnotation) -> Stmt:
        if type_.block is not None:
            name = type_.block.name or self.expect(TT.IDENT, message="Block type needs a name")
        else:
            name = self.expect(TT.IDENT)

        if self.match(TT.LPAR):
            return self.parse_function_declaration(name)

        return self.parse_var_declaration(name, type_)

    def parse_function_declaration(self, name: Tok) -> Function:
        params = self.parse_param_list()
        self.expect(TT.RPAR)

        # Prototype without a body
        if self.match(TT.SEMI):
            return Function(name, params, [])

        self.expect(TT.LBRACE)
        return Function(name, params, self.parse_block_statements())

    def parse_var_declaration(self, name: Tok, type_: TypeAnnotation) -> Var:
        initializer = None
        if self.match(TT.ASSIGN):
            initializer = self.parse_expression()

        self.expect(TT.SEMI)
        return Var(type_, name, initializer)

    def parse_param_list(self) -> List[Param]:
        """Comma separated `type name` pairs, up to (not including) `)`"""
        params: List[Param] = []
        if self.check(TT.RPAR):
            return params

        while True:
            param = self.parse_function_param()
            if param is not None:
                params.append(param)
            if not self.match(TT.COMMA):
                break

        return params

    def parse_function_param(self) -> Optional[Param]:
        type_ = self.parse_type()
        if type_ is None:
            return None

        name = block_name(type_)
        if name is not None:
            return (type_, name)

        name = self.maybe(TT.IDENT)
        if name is None:
            # `f(void)`
            if type_.type is not None and type_.type.type is TT.VOID:
                return None
            name = self.expect(TT.IDENT)

        return (type_, name)

    # ========================================================================
    # Types
    # ========================================================================

    def parse_type(self) -> Optional[TypeAnnotation]:
        """Value type keyword, typedef name or class name, optionally a pointer,
        optionally followed by block-pointer syntax"""
        if not self.is_variable_type():
            return None

        base = TypeAnnotation(type=self.previous())
        self.maybe(TT.STAR)

        if self.check(TT.LPAR) and self.peek(1).type is TT.CARET:
            return self.parse_block_type(base)

        return base

    def is_variable_type(self) -> bool:
        if self.match(*VARIABLE_TYPES):
            return True

        if self.check(TT.IDENT) and self.current.value in self.type_defs:
            self.advance()
            return True

        return False

    def parse_block_type(self, return_type: TypeAnnotation) -> TypeAnnotation:
        """
        Parse `(^name)(params)` after a return type, including block types
        whose return type is itself a block: `int (^(^make)(int))(int)`.

        Every `(^` opens a pending record; a `)` followed by a parameter list
        closes the innermost one. The record opened first describes the
        innermost return type, so records are folded in opening order.
        """
        opened: List[_PendingBlock] = [_PendingBlock()]
        pending: List[_PendingBlock] = [opened[0]]
        self.expect(TT.LPAR)
        self.expect(TT.CARET)

        while pending and not self.had_error:
            if self.check(TT.LPAR) and self.peek(1).type is TT.CARET:
                self.advance()
                self.advance()
                record = _PendingBlock()
                opened.append(record)
                pending.append(record)

            name = self.maybe(TT.IDENT)
            if not self.match(TT.RPAR):
                self.error("Malformed block type")
                break

            self.expect(TT.LPAR)
            params: List[TypeAnnotation] = []
            while True:
                param = self.parse_type()
                if param is not None:
                    params.append(param)
                if not self.match(TT.COMMA):
                    break
            self.expect(TT.RPAR)

            record = pending.pop()
            record.name = name
            record.params = params

        signature: Optional[BlockSignature] = None
        for record in opened:
            ret = return_type if signature is None else TypeAnnotation(block=signature)
            signature = BlockSignature(ret, record.name, record.params)

        return TypeAnnotation(block=signature)

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Stmt:
        if self.match(TT.LBRACE):
            return self.parse_block()
        if self.match(TT.IF):
            return self.parse_if_stmt()
        if self.match(TT.RETURN):
            return self.parse_return_stmt()
        if self.match(TT.WHILE):
            return self.parse_while_stmt()
        if self.match(TT.FOR):
            return self.parse_for_stmt()
        if self.match(TT.PRINT):
            return self.parse_print_stmt()
        if self.match(TT.INTERFACE):
            return self.parse_class_declaration()
        if self.match(TT.IMPLEMENTATION):
            return self.parse_class_implementation()
        if self.match(TT.TYPEDEF):
            return self.parse_typedef()

        return self.parse_expression_stmt()

    def parse_block(self) -> Block:
        """Block body after its `{`; a trailing `;` is allowed"""
        statements = self.parse_block_statements()
        self.maybe(TT.SEMI)
        return Block(statements)

    def parse_block_statements(self) -> List[Stmt]:
        statements: List[Stmt] = []

        while not self.check(TT.RBRACE) and not self.at_end() and not self.had_error:
            statements.append(self.parse_start())

        self.expect(TT.RBRACE)
        return statements

    def parse_body(self) -> Stmt:
        """Loop or branch body: a braced block or a single statement"""
        if self.match(TT.LBRACE):
            return self.parse_block()
        return self.parse_statement()

    def parse_if_stmt(self) -> If:
        self.expect(TT.LPAR)
        condition = self.parse_expression()
        self.expect(TT.RPAR)
        then_branch = self.parse_body()

        else_branch = None
        if self.match(TT.ELSE):
            # `else if` falls out of parse_statement seeing `if`
            else_branch = self.parse_body()

        return If(condition, then_branch, else_branch)

    def parse_while_stmt(self) -> While:
        self.expect(TT.LPAR)
        condition = self.parse_expression()
        self.expect(TT.RPAR)
        return While(condition, self.parse_body())

    def parse_for_stmt(self) -> For:
        self.expect(TT.LPAR)

        initializer: Optional[Stmt] = None
        if self.match(TT.SEMI):
            initializer = None
        else:
            type_ = self.parse_type()
            if type_ is not None:
                initializer = self.parse_declaration(type_)
            else:
                initializer = self.parse_expression_stmt()

        condition: Optional[Expr] = None
        if not self.match(TT.SEMI):
            condition = self.parse_expression()
            self.expect(TT.SEMI)

        change: Optional[Expr] = None
        if not self.check(TT.RPAR):
            change = self.parse_expression()
        self.expect(TT.RPAR)

        return For(initializer, condition, change, self.parse_body())

    def parse_return_stmt(self) -> Return:
        value = None
        if not self.check(TT.SEMI):
            value = self.parse_expression()

        self.expect(TT.SEMI)
        return Return(value)

    def parse_print_stmt(self) -> Print:
        value = self.parse_expression()
        self.expect(TT.SEMI)
        return Print(value)

    def parse_expression_stmt(self) -> Expression:
        expr = self.parse_expression()
        self.maybe(TT.SEMI)
        return Expression(expr)

    def parse_typedef(self) -> TypeDef:
        type_ = self.parse_type()
        if type_ is None:
            self.error("Expected a type after typedef")
            return TypeDef(self.expect(TT.IDENT), TypeAnnotation())

        if type_.block is not None and type_.block.name is not None:
            name = type_.block.name
        else:
            # Plain alias: `typedef int Count;`
            name = self.expect(TT.IDENT)

        self.expect(TT.SEMI)
        self.type_defs.add(name.value)
        return TypeDef(name, type_)

    # ========================================================================
    # Classes
    # ========================================================================

    def parse_class_declaration(self) -> ClassDef:
        name = self.expect(TT.CLASS_IDENT)

        superclass = None
        if self.match(TT.COLON):
            superclass = Variable(self.expect(TT.CLASS_IDENT))

        methods: List[Function] = []
        properties: List[Var] = []
        while not self.check(TT.END) and not self.at_end() and not self.had_error:
            if self.match(TT.MINUS, TT.PLUS):
                methods.append(self.parse_class_function())
            elif self.match(TT.PROPERTY):
                properties.append(self.parse_property())
            else:
                self.error("Expected method or @property in @interface")

        self.expect(TT.END)
        return ClassDef(name, superclass, methods, properties)

    def parse_class_implementation(self) -> ClassImpl:
        name = self.expect(TT.CLASS_IDENT)

        # Category: `@implementation Foo (Extras)`
        if self.match(TT.LPAR):
            self.maybe(TT.IDENT)
            self.maybe(TT.CLASS_IDENT)
            self.expect(TT.RPAR)

        methods: List[Function] = []
        while not self.check(TT.END) and not self.at_end() and not self.had_error:
            if self.match(TT.MINUS, TT.PLUS):
                methods.append(self.parse_class_function())
            else:
                self.error("Expected method in @implementation")

        self.expect(TT.END)
        return ClassImpl(name, methods)

    def parse_class_function(self) -> Function:
        """`- (type) name[: (type) a [key: (type) b ...]]` then `;` or a body;
        `+` marks a static method"""
        is_static = self.previous().type is TT.PLUS
        _, name = self.parse_selector_part()

        params: List[Param] = []
        if self.match(TT.COLON):
            params.append(self.parse_selector_part())
            while self.match(TT.IDENT):
                self.expect(TT.COLON)
                params.append(self.parse_selector_part())

        body: List[Stmt] = []
        if self.match(TT.LBRACE):
            body = self.parse_block_statements()
        else:
            self.expect(TT.SEMI)

        return Function(name, params, body, is_static)

    def parse_selector_part(self) -> Param:
        """`(type) name`"""
        self.expect(TT.LPAR)
        type_ = self.parse_type()
        if type_ is None:
            self.error("Expected a type")
            type_ = TypeAnnotation()
        self.expect(TT.RPAR)
        return (type_, self.expect(TT.IDENT))

    def parse_property(self) -> Var:
        self.skip_property_attributes()

        type_ = self.parse_type()
        if type_ is None:
            self.error("Expected a property type")
            type_ = TypeAnnotation()

        self.maybe(TT.STAR)
        name = self.expect(TT.IDENT, TT.CLASS_IDENT)
        return self.parse_var_declaration(name, type_)

    def skip_property_attributes(self) -> None:
        """`(nonatomic, weak)`; attributes carry no semantics"""
        if not self.match(TT.LPAR):
            return

        while True:
            self.maybe(TT.IDENT, TT.WEAK)
            if not self.match(TT.COMMA):
                break

        self.expect(TT.RPAR)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expression(self) -> Expr:
        expr = self.parse_assignment()

        if self.match(TT.QMARK):
            then_expr = self.parse_expression()
            self.expect(TT.COLON)
            else_expr = self.parse_expression()
            return Ternary(expr, then_expr, else_expr)

        return expr

    def parse_assignment(self) -> Expr:
        expr = self.parse_increment()

        if self.match(TT.ASSIGN, TT.PLUSEQ):
            op = self.previous()
            value = self.parse_assignment()
            return self.make_assignment(expr, op, value, "Invalid assignment target")

        return expr

    def parse_increment(self) -> Expr:
        """`x++` becomes an assignment that adds literal 1"""
        expr = self.parse_or()

        if self.match(TT.INCR):
            op = self.previous()
            return self.make_assignment(expr, op, Literal(1.0), "Invalid increment target")

        return expr

    def make_assignment(self, target: Expr, op: Tok, value: Expr, message: str) -> Expr:
        match target:
            case Variable(name=name):
                return Assign(name, op, value)
            case Get(obj=obj, name=name):
                return Set(obj, name, value, op)
            case ArrayGet(obj=obj, index=index):
                return ArraySet(obj, index, value, op)

        self.error(message)
        return Literal("ERROR")

    def parse_or(self) -> Expr:
        expr = self.parse_and()

        while self.match(TT.OR):
            op = self.previous()
            expr = Logical(expr, op, self.parse_and())

        return expr

    def parse_and(self) -> Expr:
        expr = self.parse_equality()

        while self.match(TT.AND):
            op = self.previous()
            expr = Logical(expr, op, self.parse_equality())

        return expr

    def parse_equality(self) -> Expr:
        return self._parse_binary_level(self.parse_comparison, (TT.EQ, TT.NEQ))

    def parse_comparison(self) -> Expr:
        return self._parse_binary_level(self.parse_term, (TT.LT, TT.GT, TT.GTE, TT.LTE))

    def parse_term(self) -> Expr:
        return self._parse_binary_level(self.parse_factor, (TT.PLUS, TT.MINUS))

    def parse_factor(self) -> Expr:
        return self._parse_binary_level(self.parse_index, (TT.SLASH, TT.STAR, TT.MOD))

    def _parse_binary_level(self, operand, ops: Iterable[TT]) -> Expr:
        expr = operand()

        while self.match(*ops):
            op = self.previous()
            expr = Binary(expr, op, operand())

        return expr

    def parse_index(self) -> Expr:
        """`a[i][j]` nests ArrayGet left to right"""
        expr = self.parse_unary()

        while self.match(TT.LSQB):
            index = self.parse_expression()
            self.expect(TT.RSQB)
            expr = ArrayGet(expr, index)

        return expr

    def parse_unary(self) -> Expr:
        if self.match(TT.BANG, TT.MINUS):
            op = self.previous()
            return Unary(op, self.parse_unary())

        return self.parse_block_literal()

    def parse_block_literal(self) -> Expr:
        if not self.match(TT.CARET):
            return self.parse_call()

        return_type = self.parse_type()
        params: List[Param] = []
        if self.match(TT.LPAR):
            params = self.parse_param_list()
            self.expect(TT.RPAR)

        self.expect(TT.LBRACE)
        return BlockLiteral(return_type, params, self.parse_block_statements())

    def parse_call(self) -> Expr:
        expr = self.parse_message_send()

        while True:
            if self.match(TT.LPAR):
                expr = self.finish_call(expr)
            elif self.match(TT.DOT):
                expr = Get(expr, self.expect(TT.IDENT))
            else:
                break

        return expr

    def parse_message_send(self) -> Expr:
        """`[recv sel: a key: b]` desugars to `recv.sel(a, b)`; only the first
        selector keyword names the method"""
        if not self.match(TT.LSQB):
            return self.parse_primary()

        receiver = self.parse_factor()
        selector = self.expect(TT.IDENT)

        args: List[Expr] = []
        if self.match(TT.COLON):
            args.append(self.parse_expression())
            while not self.check(TT.RSQB) and not self.at_end() and not self.had_error:
                self.expect(TT.IDENT)
                self.expect(TT.COLON)
                args.append(self.parse_expression())

        self.expect(TT.RSQB)
        return Call(Get(receiver, selector), args)

    def finish_call(self, callee: Expr) -> Call:
        args: List[Expr] = []

        if not self.check(TT.RPAR):
            while True:
                args.append(self.parse_expression())
                if not self.match(TT.COMMA):
                    break

        self.expect(TT.RPAR)
        return Call(callee, args)

    def parse_primary(self) -> Expr:
        if self.match(TT.NUMBER):
            return Literal(float(self.previous().value))
        if self.match(TT.STRING):
            return Literal(self.previous().value)
        if self.match(TT.LPAR):
            expr = self.parse_expression()
            self.expect(TT.RPAR)
            return Grouping(expr)
        if self.match(TT.ARRAY_START):
            return self.parse_array()
        if self.match(TT.YES):
            return Literal(True)
        if self.match(TT.NO):
            return Literal(False)
        if self.match(TT.NIL):
            return Literal(None)
        if self.match(TT.CLASS_IDENT, TT.IDENT):
            return Variable(self.previous())
        if self.match(TT.SELF):
            return Selfy(self.previous())
        if self.match(TT.SUPER):
            return Supery(self.previous())

        self.error(f"Expected expression, got {self.current.type.name}")
        return Literal(None)

    def parse_array(self) -> Array:
        contents: List[Expr] = []

        if not self.check(TT.RSQB):
            while True:
                contents.append(self.parse_expression())
                if not self.match(TT.COMMA):
                    break

        self.expect(TT.RSQB)
        return Array(contents)

# ============================================================================
# Convenience
# ============================================================================

def parse_source(source: str) -> List[Stmt]:
    """Tokenize and parse source in one step"""
    return Parser(tokenize(source)).parse()
