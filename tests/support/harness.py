from __future__ import annotations

import io
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from mobjc_ref.evaluator import ERROR_MARKER, Interpreter
from mobjc_ref.lexer_rd import Lexer, tokenize
from mobjc_ref.parser_rd import ParseError, Parser
from mobjc_ref.printer import AstPrinter
from mobjc_ref.resolver import Resolver
from mobjc_ref.runner import Session, run as run_source
from mobjc_ref.token_types import TT, Tok
from mobjc_ref.tree import Assign, Expr, Selfy, Stmt, Supery, Variable

KEYWORDS = Lexer.KEYWORDS


def run_program(source: str, stdin: str = "") -> str:
    """Run a program and return what its `print` statements produced."""
    return run_source(source, stdin=io.StringIO(stdin), stdout=io.StringIO())


def run_with_stdout(source: str, stdin: str = "") -> Tuple[str, str]:
    """Run a program; return (printed output, text written by printLine)."""
    out = io.StringIO()
    printed = run_source(source, stdin=io.StringIO(stdin), stdout=out)
    return printed, out.getvalue()


def parse_program(source: str) -> Tuple[List[Stmt], Parser]:
    parser = Parser(tokenize(source))
    return parser.parse(), parser


def render(source: str) -> str:
    """Compact printed form of the parsed program."""
    stmts, parser = parse_program(source)
    assert not parser.errors, f"unexpected parse errors: {parser.errors}"
    return AstPrinter().render_program(stmts)


def token_pairs(source: str) -> List[Tuple[TT, str]]:
    return [(tok.type, tok.value) for tok in tokenize(source) if tok.type is not TT.EOF]


@dataclass
class DepthRecorder:
    """Stands in for the interpreter to capture resolver output in order."""

    depths: Dict[Expr, int] = field(default_factory=dict)

    def resolve(self, node: Expr, depth: int) -> None:
        self.depths[node] = depth

    def named(self) -> List[Tuple[str, int]]:
        out: List[Tuple[str, int]] = []
        for node, depth in self.depths.items():
            match node:
                case Variable(name=name) | Assign(name=name):
                    out.append((name.value, depth))
                case Selfy(keyword=kw) | Supery(keyword=kw):
                    out.append((kw.value, depth))
        return out


def resolve_depths(source: str) -> List[Tuple[str, int]]:
    stmts, _ = parse_program(source)
    recorder = DepthRecorder()
    Resolver(recorder).resolve(stmts)
    return recorder.named()


def run_case(source: str, expected: str, stdin: str = "") -> None:
    """Execute one scenario and compare its full printed output."""
    actual = run_program(source, stdin=stdin)
    assert actual == expected, f"expected {expected!r}, got {actual!r}"


def fresh_interpreter(stdin: Optional[str] = None) -> Interpreter:
    return Interpreter(
        stdin=io.StringIO(stdin or ""),
        stdout=io.StringIO(),
    )


__all__ = [
    "ERROR_MARKER",
    "KEYWORDS",
    "DepthRecorder",
    "Interpreter",
    "ParseError",
    "Parser",
    "Resolver",
    "Session",
    "TT",
    "Tok",
    "fresh_interpreter",
    "parse_program",
    "render",
    "resolve_depths",
    "run_case",
    "run_program",
    "run_with_stdout",
    "token_pairs",
]
