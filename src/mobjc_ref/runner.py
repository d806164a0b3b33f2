from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path
from typing import List, Optional, Set, TextIO

from .evaluator import Interpreter
from .lexer_rd import Lexer, convert_class_identifiers
from .parser_rd import ParseError, Parser
from .printer import AstPrinter, to_tree
from .resolver import Resolver
from .token_types import Tok
from .tree import Stmt
from .utils import configured_log_level, debug_py_trace_enabled

logging.getLogger("mobjc_ref").addHandler(logging.NullHandler())

log = logging.getLogger(__name__)

class Session:
    """
    One interpreter with its resolver and parser, fed source chunk by chunk.

    Class names and typedef names seen in earlier chunks stay known, so a
    class declared in one REPL entry can be used in the next. A chunk that
    fails to parse still runs the statements parsed before the error.
    """

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.interpreter = Interpreter(stdin=stdin, stdout=stdout)
        self.resolver = Resolver(self.interpreter)
        self.parser = Parser()
        self.class_names: Set[str] = set()
        self.unhandled: List[str] = []
        self.errors: List[ParseError] = []

    def tokenize(self, source: str) -> List[Tok]:
        lexer = Lexer(source)
        tokens = lexer.tokenize()
        self.unhandled = lexer.unhandled
        return convert_class_identifiers(tokens, self.class_names)

    def parse(self, source: str) -> List[Stmt]:
        stmts = self.parser.parse_tokens(self.tokenize(source))
        self.errors = list(self.parser.errors)
        return stmts

    def execute(self, source: str) -> str:
        """Run a chunk and return only the output it produced."""
        stmts = self.parse(source)
        mark = len(self.interpreter.printed)

        self.resolver.resolve(stmts)
        self.interpreter.interpret(stmts)

        return self.interpreter.printed[mark:].replace("\\n", "\n")

def run(source: str, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> str:
    """Lex, parse, resolve and interpret `source`; return what it printed."""
    return Session(stdin=stdin, stdout=stdout).execute(source)

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.exists():
        return candidate.read_text(encoding="utf-8")

    return arg

def report_diagnostics(session: Session, stream: Optional[TextIO] = None) -> None:
    stream = stream or sys.stderr

    if session.unhandled:
        print(f"Unhandled characters: {' '.join(session.unhandled)}", file=stream)

    for err in session.errors:
        print(f"Parse error: {err}", file=stream)

def report_runtime_error(session: Session, stream: Optional[TextIO] = None) -> None:
    exc = session.interpreter.last_error
    if exc is None:
        return

    stream = stream or sys.stderr

    print(f"Runtime error: {exc}", file=stream)
    if debug_py_trace_enabled():
        print("\nPython traceback:", file=stream)
        print("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), file=stream, end="")

def main() -> None:
    logging.basicConfig(level=configured_log_level())

    mode = "run"
    arg = None

    for token in sys.argv[1:]:
        if token in ("--ast", "--tree", "--tokens"):
            mode = token[2:]
            continue

        if token.startswith("--"):
            raise SystemExit(f"Unknown flag: {token}")

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    if arg is None and mode == "run" and sys.stdin.isatty():
        from .repl import repl

        repl()
        return

    source = _load_source(arg)
    session = Session()

    if mode == "tokens":
        for tok in session.tokenize(source):
            print(tok)
        report_diagnostics(session)
        return

    if mode in ("ast", "tree"):
        stmts = session.parse(source)
        if mode == "ast":
            print(AstPrinter().print_program(stmts))
        else:
            print(to_tree(stmts).pretty(), end="")
        report_diagnostics(session)
        return

    output = session.execute(source)
    report_diagnostics(session)
    print(output, end="")
    report_runtime_error(session)

    if session.interpreter.last_error is not None:
        log.debug("program stopped on %r", session.interpreter.last_error)
        raise SystemExit(1)

if __name__ == "__main__":
    main()
