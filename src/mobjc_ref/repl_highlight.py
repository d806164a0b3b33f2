"""Syntax colouring for the REPL prompt, driven by the mobjc scanner."""

from __future__ import annotations

from typing import Callable, Dict, List

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as MobjcScanner
from .token_types import TT, Tok

GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "directive": "bold ansimagenta",
    "boolean": "ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "type": "bold ansiblue",
}

# Operators, punctuation and plain identifiers stay unstyled.
_GROUP_MEMBERS = {
    "keyword": (
        TT.IF, TT.ELSE, TT.WHILE, TT.FOR, TT.RETURN, TT.PRINT,
        TT.TYPEDEF, TT.SELF, TT.SUPER, TT.WEAK,
    ),
    "directive": (TT.INTERFACE, TT.IMPLEMENTATION, TT.PROPERTY, TT.END),
    "boolean": (TT.YES, TT.NO),
    "constant": (TT.NIL,),
    "number": (TT.NUMBER,),
    "string": (TT.STRING,),
    "type": (TT.INT, TT.BOOL, TT.VOID, TT.STRING_TYPE, TT.ID, TT.CLASS_IDENT),
}

_STYLE_BY_TYPE: Dict[TT, str] = {
    tt: GROUP_STYLE[group] for group, members in _GROUP_MEMBERS.items() for tt in members
}


def _style_for(tok: Tok) -> str:
    # Every #-directive token type carries the PP_ prefix
    if tok.type.name.startswith("PP_"):
        return GROUP_STYLE["directive"]
    return _STYLE_BY_TYPE.get(tok.type, "")


def _source_extent(line: str, tok: Tok, floor: int) -> tuple[int, int]:
    """Slice bounds covering *tok* in *line*, never starting before *floor*.

    The token's column marks its first source character, which for strings
    and directives is the `@`/`#` sigil rather than the stored value. A
    string runs through its closing quote, or to the end of an unterminated
    line. (-1, -1) means the value could not be located.
    """
    begin = max(floor, tok.column - 1)

    if tok.type is TT.STRING:
        close = line.find('"', line.find('"', begin) + 1)
        return begin, (close + 1 if close >= 0 else len(line))

    found = line.find(tok.value, begin)
    if found == -1:
        return -1, -1
    return begin, found + len(tok.value)


def highlight_line(line: str) -> StyleAndTextTuples:
    if line == "":
        return [("", "")]

    fragments: StyleAndTextTuples = []
    cursor = 0

    for tok in MobjcScanner(line).tokenize():
        if tok.type is TT.EOF or tok.value == "":
            continue

        begin, end = _source_extent(line, tok, cursor)
        if begin == -1:
            continue

        if begin > cursor:
            # whitespace, comments
            fragments.append(("", line[cursor:begin]))
        fragments.append((_style_for(tok), line[begin:end]))
        cursor = end

    if cursor < len(line):
        fragments.append(("", line[cursor:]))

    return fragments or [("", line)]


class MobjcLexer(Lexer):
    """Colours each document line on first request and remembers the result."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines: List[str] = document.lines
        seen: Dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno >= len(lines):
                return [("", "")]
            if lineno not in seen:
                seen[lineno] = highlight_line(lines[lineno])
            return seen[lineno]

        return get_line
