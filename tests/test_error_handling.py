from __future__ import annotations

import pytest

from tests.support.harness import ERROR_MARKER, Session, fresh_interpreter, parse_program, run_case
from mobjc_ref.runtime import MobjcRuntimeError, MobjcTypeError

SCENARIOS = [
    pytest.param("print 1; print 1 - @\"a\"; print 2;", "1\n" + ERROR_MARKER, id="error-stops-program"),
    pytest.param("print -nil;", ERROR_MARKER, id="negate-nil"),
    pytest.param('print @"a" * 2;', ERROR_MARKER, id="multiply-string"),
    pytest.param("print YES > NO;", ERROR_MARKER, id="compare-bools"),
    pytest.param("int x = 3; print x(1) == nil;", "YES\n", id="call-non-callable"),
    pytest.param("print nil() == nil;", "YES\n", id="call-nil"),
    pytest.param("print undefinedThing == nil;", "YES\n", id="undefined-read-is-nil"),
    pytest.param("ghost = 5; print ghost == nil;", "YES\n", id="undeclared-assign-dropped"),
    pytest.param("print 1; print ; print 2;", "1\n", id="parse-error-runs-earlier-statements"),
    pytest.param(
        "int f(int n) { return f(n + 1); } f(0); print 1;",
        ERROR_MARKER,
        id="runaway-recursion",
    ),
]


@pytest.mark.parametrize("source, expected", SCENARIOS)
def test_error_scenarios(source: str, expected: str) -> None:
    run_case(source, expected)


def test_last_error_carries_operator_position() -> None:
    session = Session()
    session.execute("print 1 +\n YES;")

    err = session.interpreter.last_error
    assert isinstance(err, MobjcTypeError)
    assert (err.line, err.column) == (1, 9)
    assert "Cannot add" in str(err)
    assert "line 1, col 9" in str(err)


def test_unary_error_position() -> None:
    session = Session()
    session.execute('int a = 0;\nprint -@"x";')

    err = session.interpreter.last_error
    assert isinstance(err, MobjcTypeError)
    assert (err.line, err.column) == (2, 7)


def test_stray_return_is_a_runtime_error() -> None:
    session = Session()
    assert session.execute("return 3;") == ERROR_MARKER
    assert isinstance(session.interpreter.last_error, MobjcRuntimeError)


def test_session_keeps_running_after_error() -> None:
    session = Session()

    assert session.execute("print 1 - nil;") == ERROR_MARKER
    assert session.execute("print 2;") == "2\n"


def test_interpret_never_raises() -> None:
    interp = fresh_interpreter()
    stmts, _ = parse_program('print @"a" < 1;')

    interp.interpret(stmts)

    assert interp.printed == ERROR_MARKER
    assert isinstance(interp.last_error, MobjcTypeError)


def test_get_string_expands_escapes_on_retrieval() -> None:
    interp = fresh_interpreter()
    stmts, _ = parse_program('print @"a\\nb";')

    assert interp.get_string(stmts) == "a\nb\n"
    assert interp.printed == "a\\nb\n"


def test_clean_run_leaves_no_error() -> None:
    session = Session()
    session.execute("int x = 1; print x;")
    assert session.interpreter.last_error is None
    assert session.errors == []


def test_parse_errors_are_kept_on_session() -> None:
    session = Session()
    session.execute("print 1; int = 2;")

    assert len(session.errors) == 1
    assert "Expected IDENT" in str(session.errors[0])
