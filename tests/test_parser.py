from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import TT, Parser, parse_program, render
from mobjc_ref.lexer_rd import tokenize
from mobjc_ref.tree import (
    Assign, BlockLiteral, Call, ClassDef, Expression, For, Function, Get, Literal, TypeDef, Var,
)

AST_CASES = [
    pytest.param("int x = 1 + 2;", "(varStmt int x (+ 1 2))", id="var-initializer"),
    pytest.param("int x;", "(varStmt int x)", id="var-no-initializer"),
    pytest.param("BOOL ok = YES;", "(varStmt BOOL ok true)", id="var-bool"),
    pytest.param("x = 3;", "(assign x 3)", id="assign"),
    pytest.param("x += 2;", "(assign x += 2)", id="assign-compound"),
    pytest.param("x++;", "(assign x ++ 1)", id="increment-desugared"),
    pytest.param("a = b = 1;", "(assign a (assign b 1))", id="assign-right-assoc"),
    pytest.param("print 1 + 2 * 3;", "(print (+ 1 (* 2 3)))", id="precedence-mul-over-add"),
    pytest.param("print 1 - 2 - 3;", "(print (- (- 1 2) 3))", id="left-assoc-minus"),
    pytest.param("print a * b[1];", "(print (* a (arrayGet b 1)))", id="index-right-operand"),
    pytest.param("print a[0][1];", "(print (arrayGet (arrayGet a 0) 1))", id="index-chain"),
    pytest.param("print a[i + 1];", "(print (arrayGet a (+ i 1)))", id="index-expression"),
    pytest.param("a[0] = 1;", "(arraySet a 0 1)", id="array-set"),
    pytest.param("(1 + 2) * 3;", "(* (group (+ 1 2)) 3)", id="grouping"),
    pytest.param("a || b && c;", "(|| a (&& b c))", id="and-binds-tighter"),
    pytest.param("a == b < c;", "(== a (< b c))", id="comparison-over-equality"),
    pytest.param("!YES;", "(! true)", id="unary-not"),
    pytest.param("- -x;", "(- (- x))", id="unary-nested"),
    pytest.param("c ? 1 : 2;", "(ternary c 1 2)", id="ternary"),
    pytest.param("print 2.5;", "(print 2.5)", id="fractional-literal"),
    pytest.param('print @"hi";', "(print hi)", id="string-literal"),
    pytest.param("print nil;", "(print nil)", id="nil-literal"),
    pytest.param("@[1, nil, @\"s\"];", "(array 1 nil s)", id="array-literal"),
    pytest.param("@[];", "(array)", id="array-empty"),
    pytest.param("f(1, 2);", "(call.f 1 2)", id="call"),
    pytest.param("f()(3);", "(call.(call.f) 3)", id="call-chain"),
    pytest.param("obj.name;", "(get name obj)", id="get"),
    pytest.param("obj.name = 5;", "(set name = obj 5)", id="set"),
    pytest.param("obj.n += 1;", "(set n += obj 1)", id="set-compound"),
    pytest.param("[obj run];", "(call.(get run obj))", id="message-no-args"),
    pytest.param(
        "[obj doThing: 1 with: 2];",
        "(call.(get doThing obj) 1 2)",
        id="message-keywords",
    ),
    pytest.param(
        "[[Foo alloc] init];",
        "(call.(get init (call.(get alloc Foo))))",
        id="message-nested",
    ),
    pytest.param("self.x;", "(get x self)", id="self-get"),
    pytest.param("[super init];", "(call.(get init super))", id="super-send"),
    pytest.param(
        "if (x < 1) print x; else print 2;",
        "(if (< x 1) (print x) (print 2))",
        id="if-else",
    ),
    pytest.param(
        "if (a) print 1; else if (b) print 2;",
        "(if a (print 1) (if b (print 2)))",
        id="else-if",
    ),
    pytest.param("while (YES) { x = 1; }", "(while true (block (assign x 1)))", id="while-block"),
    pytest.param(
        "for (int i = 0; i < 3; i++) print i;",
        "(for (varStmt int i 0) (< i 3) (assign i ++ 1) (print i))",
        id="for-full",
    ),
    pytest.param("for (;;) {}", "(for (block))", id="for-empty-clauses"),
    pytest.param(
        "for (i = 0; i < 2;) print i;",
        "(for (assign i 0) (< i 2) (print i))",
        id="for-expression-initializer",
    ),
    pytest.param(
        "int add(int a, int b) { return a + b; }",
        "(function.add a b (return (+ a b)))",
        id="function",
    ),
    pytest.param("void f(void) { }", "(function.f)", id="function-void-params"),
    pytest.param("int g(int a);", "(function.g a)", id="function-prototype"),
    pytest.param("return;", "(return)", id="bare-return"),
    pytest.param("{ int y = 1; };", "(block (varStmt int y 1))", id="block-trailing-semi"),
    pytest.param("x = 1", "(assign x 1)", id="expression-semi-optional"),
    pytest.param(
        dedent(
            """\
            @interface Foo : NSObject
            @property int count;
            @property (nonatomic, weak) NSString *label;
            - (int) value;
            + (Foo *) make;
            @end
            """
        ),
        "(define Foo (function.value) (function.make) (varStmt int count) (varStmt NSString label))",
        id="interface",
    ),
    pytest.param(
        dedent(
            """\
            @implementation Foo
            - (int) value { return 1; }
            - (void) setA: (int) a b: (int) b { x = a + b; }
            @end
            """
        ),
        "(implement Foo (function.value (return 1)) (function.setA a b (assign x (+ a b))))",
        id="implementation",
    ),
    pytest.param(
        "@implementation Foo (Extras)\n- (int) one { return 1; }\n@end",
        "(implement Foo (function.one (return 1)))",
        id="implementation-category",
    ),
    pytest.param(
        "int (^add)(int, int) = ^int(int a, int b) { return a + b; };",
        "(varStmt (blockType int int int) add (blockExpr int a b (return (+ a b))))",
        id="block-variable",
    ),
    pytest.param(
        "void (^show)(void) = ^void(void) { print 1; };",
        "(varStmt (blockType void void) show (blockExpr void (print 1)))",
        id="block-void",
    ),
    pytest.param(
        "f(^{ print 1; });",
        "(call.f (blockExpr (print 1)))",
        id="block-literal-bare",
    ),
    pytest.param(
        "int (^(^make)(int))(int) = nil;",
        "(varStmt (blockType (blockType int int) int) make nil)",
        id="block-returning-block",
    ),
    pytest.param(
        "typedef int (^Op)(int, int);\nOp f = ^int(int a, int b) { return a * b; };",
        "(typedef Op (blockType int int int))"
        "(varStmt Op f (blockExpr int a b (return (* a b))))",
        id="typedef-block",
    ),
    pytest.param(
        "typedef int Count;\nCount c = 3;",
        "(typedef Count int)(varStmt Count c 3)",
        id="typedef-alias",
    ),
    pytest.param(
        "int apply(int (^fn)(int), int v) { return fn(v); }",
        "(function.apply fn v (return (call.fn v)))",
        id="block-parameter",
    ),
]


@pytest.mark.parametrize("source, expected", AST_CASES)
def test_printed_ast(source: str, expected: str) -> None:
    assert render(source) == expected


ERROR_CASES = [
    pytest.param("int = 5;", "Expected IDENT", (1, 5), id="declaration-missing-name"),
    pytest.param("print ;", "Expected expression", (1, 7), id="missing-expression"),
    pytest.param("1 = 2;", "Invalid assignment target", (1, 6), id="bad-assign-target"),
    pytest.param("3++;", "Invalid increment target", (1, 4), id="bad-increment-target"),
    pytest.param("{ x = 1;", "Expected RBRACE", (1, 9), id="unterminated-block"),
    pytest.param("if (x print 1;", "Expected RPAR", (1, 7), id="if-missing-paren"),
    pytest.param("@interface Foo\nint x;\n@end", "Expected method or @property", (2, 1), id="interface-junk"),
    pytest.param("[obj 1];", "Expected IDENT", (1, 6), id="message-missing-selector"),
]


@pytest.mark.parametrize("source, message, position", ERROR_CASES)
def test_parse_errors_are_recorded(source: str, message: str, position) -> None:
    stmts, parser = parse_program(source)

    assert parser.had_error
    err = parser.errors[0]
    assert message in str(err)
    assert (err.line, err.column) == position
    assert isinstance(stmts, list)


TRUNCATED_SOURCES = [
    pytest.param("int", id="lone-type"),
    pytest.param("int f(", id="open-params"),
    pytest.param("while (", id="open-while"),
    pytest.param("@interface Foo", id="open-interface"),
    pytest.param("@implementation Foo - (int) a {", id="open-method"),
    pytest.param("int (^", id="open-block-type"),
    pytest.param("@[1, 2", id="open-array"),
    pytest.param("[a b: 1 c:", id="open-message"),
    pytest.param("^int(int a) {", id="open-block-literal"),
    pytest.param("x ? 1", id="open-ternary"),
]


@pytest.mark.parametrize("source", TRUNCATED_SOURCES)
def test_truncated_input_terminates_with_error(source: str) -> None:
    _, parser = parse_program(source)
    assert parser.had_error


def test_parse_stops_at_first_error_and_keeps_remaining() -> None:
    stmts, parser = parse_program("print 1; int = 2; print 3;")

    assert len(parser.errors) == 1
    assert len(stmts) == 2
    assert [tok.value for tok in parser.remaining][:2] == ["print", "3"]
    assert parser.remaining[-1].type is TT.EOF


def test_valid_program_has_no_remaining_tokens() -> None:
    _, parser = parse_program("int x = 1; print x;")
    assert not parser.had_error
    assert parser.remaining == []


def test_increment_becomes_assignment_with_literal_one() -> None:
    stmts, _ = parse_program("n++;")
    (stmt,) = stmts

    assert isinstance(stmt, Expression)
    assign = stmt.expression
    assert isinstance(assign, Assign)
    assert assign.op.type is TT.INCR
    assert isinstance(assign.value, Literal) and assign.value.value == 1.0


def test_message_send_uses_first_selector_keyword() -> None:
    stmts, _ = parse_program("[list insert: 1 at: 0];")
    call = stmts[0].expression

    assert isinstance(call, Call)
    assert isinstance(call.callee, Get)
    assert call.callee.name.value == "insert"
    assert [arg.value for arg in call.args] == [1.0, 0.0]


def test_static_method_flag() -> None:
    stmts, _ = parse_program("@interface A\n+ (A *) shared;\n- (int) v;\n@end")
    (klass,) = stmts

    assert isinstance(klass, ClassDef)
    assert [(m.name.value, m.is_static) for m in klass.methods] == [("shared", True), ("v", False)]
    assert klass.superclass is None


def test_for_initializer_kinds() -> None:
    stmts, _ = parse_program("for (int i = 0; i < 1; i++) {}")
    loop = stmts[0]

    assert isinstance(loop, For)
    assert isinstance(loop.initializer, Var)
    assert loop.condition is not None and loop.change is not None


def test_block_literal_without_return_type() -> None:
    stmts, _ = parse_program("b = ^(int v) { return v; };")
    literal = stmts[0].expression.value

    assert isinstance(literal, BlockLiteral)
    assert literal.return_type is None
    assert [name.value for _, name in literal.params] == ["v"]


def test_typedef_names_persist_across_parse_calls() -> None:
    parser = Parser()
    first = parser.parse_tokens(tokenize("typedef int (^Op)(int);"))
    assert isinstance(first[0], TypeDef)
    assert "Op" in parser.type_defs

    second = parser.parse_tokens(tokenize("Op f = nil;"))
    assert not parser.had_error
    assert isinstance(second[0], Var)
    assert second[0].type.type.value == "Op"


def test_unknown_typedef_is_not_a_type() -> None:
    stmts, _ = parse_program("Op f = nil;")
    # `Op` reads as an expression; `f` then starts a new statement
    assert not isinstance(stmts[0], Var)


def test_function_prototype_has_empty_body() -> None:
    stmts, _ = parse_program("int f(int a);")
    fn = stmts[0]

    assert isinstance(fn, Function)
    assert fn.body == []
    assert [name.value for _, name in fn.params] == ["a"]
