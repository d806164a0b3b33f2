from __future__ import annotations

import pytest
from lark import Token, Tree

from tests.support.harness import parse_program
from mobjc_ref.parser_rd import parse_source
from mobjc_ref.printer import AstPrinter, literal_text, to_tree

LITERAL_CASES = [
    pytest.param(None, "nil", id="none"),
    pytest.param(True, "true", id="true"),
    pytest.param(False, "false", id="false"),
    pytest.param(3.0, "3", id="integral"),
    pytest.param(-0.5, "-0.5", id="fraction"),
    pytest.param(1e20, "100000000000000000000", id="large-integral"),
    pytest.param(float("inf"), "inf", id="infinity"),
    pytest.param("text", "text", id="string"),
]


@pytest.mark.parametrize("value, expected", LITERAL_CASES)
def test_literal_text(value, expected: str) -> None:
    assert literal_text(value) == expected


def test_print_program_one_statement_per_line() -> None:
    stmts, _ = parse_program("int x = 1; print x;")
    assert AstPrinter().print_program(stmts) == "(varStmt int x 1)\n(print x)"


def test_printing_is_stable_across_reparses() -> None:
    source = "int f(int a) { if (a) { return a + 1; } return 0; } print f(2);"
    printer = AstPrinter()

    first, _ = parse_program(source)
    second = parse_source(source)

    rendered = printer.render_program(first)
    assert rendered == printer.render_program(second)
    assert rendered == printer.render_program(first)


def test_to_tree_root_and_labels() -> None:
    stmts, _ = parse_program("int x = 1; x = x + 2;")
    tree = to_tree(stmts)

    assert isinstance(tree, Tree)
    assert tree.data == "program"
    assert [child.data for child in tree.children] == ["var", "expression"]

    var = tree.children[0]
    assert var.children[0].data == "type_annotation"
    assert var.children[1] == Token("IDENT", "x")
    assert var.children[2] == Tree("literal", [Token("LITERAL", "1")])


def test_to_tree_nested_nodes() -> None:
    stmts, _ = parse_program("a[0] = b.c;")
    (expression,) = to_tree(stmts).children
    array_set = expression.children[0]

    assert array_set.data == "array_set"
    labels = [child.data for child in array_set.children if isinstance(child, Tree)]
    assert labels == ["variable", "literal", "get"]


def test_to_tree_marks_static_methods() -> None:
    stmts, _ = parse_program("@interface K\n+ (int) one;\n- (int) two;\n@end")
    class_def = to_tree(stmts).children[0]
    methods = [child for child in class_def.children if isinstance(child, Tree) and child.data == "function"]

    static_flags = [Token("STATIC", "+") in m.children for m in methods]
    assert static_flags == [True, False]


def test_tree_pretty_renders_text() -> None:
    stmts, _ = parse_program("print 1;")
    text = to_tree(stmts).pretty()

    assert text.startswith("program")
    assert "print" in text
    assert "1" in text
