"""prompt_toolkit front end: multiline entry, slash commands, live highlighting."""

from __future__ import annotations

import os
import re
import sys
from typing import Callable, Dict, List, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import tokenize
from .printer import to_tree
from .repl_highlight import MobjcLexer
from .runner import Session, report_diagnostics, report_runtime_error
from .token_types import TT
from .utils import DEBUG_PY_TRACE_ENV, debug_py_trace_enabled

# Pasted text often carries these; the scanner would report them as unhandled.
_STRIP_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

_OPENERS = frozenset({TT.LPAR, TT.LSQB, TT.LBRACE, TT.ARRAY_START})
_CLOSERS = frozenset({TT.RPAR, TT.RSQB, TT.RBRACE})
_CLASS_OPENERS = frozenset({TT.INTERFACE, TT.IMPLEMENTATION})

_TRUTHY_ARGS = ("on", "1", "true", "yes")
_FALSY_ARGS = ("off", "0", "false", "no")

SessionBox = List[Session]


def _net_depth(text: str, openers: frozenset, closers: frozenset) -> int:
    depth = 0
    for tok in tokenize(text):
        if tok.type in openers:
            depth += 1
        elif tok.type in closers and depth:
            depth -= 1
    return depth


def bracket_depth(text: str) -> int:
    """Brackets of *text* still waiting for their closing partner."""
    return _net_depth(text, _OPENERS, _CLOSERS)


def awaits_more(text: str) -> bool:
    """Whether the entry continues: an open bracket or an unterminated class section."""
    if bracket_depth(text):
        return True
    return _net_depth(text, _CLASS_OPENERS, frozenset({TT.END})) > 0


def _set_py_trace(enabled: bool) -> None:
    if enabled:
        os.environ[DEBUG_PY_TRACE_ENV] = "1"
    else:
        os.environ.pop(DEBUG_PY_TRACE_ENV, None)


def _cmd_clear(arg: str, box: SessionBox) -> None:
    clear()


def _cmd_py_traceback(arg: str, box: SessionBox) -> None:
    choice = arg.lower()
    if choice in _TRUTHY_ARGS:
        _set_py_trace(True)
    elif choice in _FALSY_ARGS:
        _set_py_trace(False)
    elif not choice:
        _set_py_trace(not debug_py_trace_enabled())
    else:
        print("Usage: /py-traceback [on|off]", file=sys.stderr)
        return

    print("Python traceback: " + ("on" if debug_py_trace_enabled() else "off"))


def _cmd_ast(arg: str, box: SessionBox) -> None:
    if not arg:
        print("Usage: /ast <source>", file=sys.stderr)
        return

    # The live session knows the class and typedef names declared so far
    current = box[0]
    print(to_tree(current.parse(arg)).pretty(), end="")
    report_diagnostics(current)


def _cmd_reset(arg: str, box: SessionBox) -> None:
    box[0] = Session()
    print("Environment reset.")


# name -> (handler, help text)
_COMMANDS: Dict[str, Tuple[Callable[[str, SessionBox], None], str]] = {
    "/ast": (_cmd_ast, "Show the syntax tree of a snippet"),
    "/clear": (_cmd_clear, "Clear the terminal screen"),
    "/py-traceback": (_cmd_py_traceback, "Toggle Python traceback on errors"),
    "/reset": (_cmd_reset, "Start over with a fresh interpreter"),
}


class _CommandCompleter(Completer):
    def get_completions(self, document, complete_event):
        typed = document.text_before_cursor
        if not typed.startswith("/"):
            return

        for name, (_, help_text) in _COMMANDS.items():
            if name.startswith(typed):
                yield Completion(name, start_position=-len(typed), display_meta=help_text)


def _handle_slash(line: str, session_box: SessionBox) -> bool:
    """Run *line* as a slash command; False when it is ordinary source."""
    line = line.strip()
    if not line.startswith("/"):
        return False

    name, _, arg = line.partition(" ")
    entry = _COMMANDS.get(name)
    if entry is None:
        print(f"Unknown command: {name}", file=sys.stderr)
    else:
        entry[0](arg.strip(), session_box)
    return True


def _normalize(text: str) -> str:
    return _STRIP_RE.sub("", text)


def _compute_indent(text: str) -> str:
    return "    " * bracket_depth(text)


def _key_bindings() -> KeyBindings:
    kb = KeyBindings()

    @kb.add("enter")
    def _submit_or_newline(event):
        buf = event.app.current_buffer
        entry = buf.text
        if entry.lstrip().startswith("/") or not awaits_more(entry):
            buf.validate_and_handle()
        else:
            buf.insert_text("\n" + _compute_indent(entry))

    @kb.add("backspace")
    def _erase(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        # Keep the command menu open while editing a slash command
        if buf.text.startswith("/"):
            buf.start_completion()

    return kb


def _evaluate(current: Session, text: str) -> None:
    current.interpreter.last_error = None
    output = current.execute(text)

    report_diagnostics(current)
    if output:
        sys.stdout.write(output if output.endswith("\n") else output + "\n")
    report_runtime_error(current)


def repl() -> None:
    box: SessionBox = [Session()]
    prompt: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=MobjcLexer(),
        completer=_CommandCompleter(),
        complete_while_typing=True,
        key_bindings=_key_bindings(),
        multiline=True,
        prompt_continuation="... ",
    )

    print("mobjc repl - Ctrl-D to exit, / for commands")

    while True:
        try:
            entry = _normalize(prompt.prompt(">>> "))
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue
        except EOFError:
            print()
            return

        if entry.strip() and not _handle_slash(entry, box):
            _evaluate(box[0], entry)
