"""
Token Types for the mobjc Parser

Shared between lexer and parser to avoid circular dependencies.
"""

from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - one per lexeme class the scanner produces"""

    # Single character
    PLUS = auto()
    ASSIGN = auto()  # =
    SEMI = auto()
    BANG = auto()
    SLASH = auto()
    LPAR = auto()
    RPAR = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    COMMA = auto()
    LT = auto()
    GT = auto()
    LSQB = auto()
    RSQB = auto()
    STAR = auto()
    MINUS = auto()
    AMP = auto()
    PIPE = auto()
    QMARK = auto()
    COLON = auto()
    AT = auto()
    MOD = auto()
    UNDERLINE = auto()
    CARET = auto()

    # Double character
    EQ = auto()
    NEQ = auto()
    LTE = auto()
    GTE = auto()
    AND = auto()
    OR = auto()
    PLUSEQ = auto()
    INCR = auto()  # ++
    ARRAY_START = auto()  # @[

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()
    CLASS_IDENT = auto()

    # Keywords
    INT = auto()
    IF = auto()
    ELSE = auto()
    RETURN = auto()
    BOOL = auto()
    WHILE = auto()
    FOR = auto()
    PRINT = auto()
    VOID = auto()
    STRING_TYPE = auto()
    INTERFACE = auto()
    PROPERTY = auto()
    END = auto()
    IMPLEMENTATION = auto()
    YES = auto()
    NO = auto()
    NIL = auto()
    SELF = auto()
    SUPER = auto()
    WEAK = auto()
    ID = auto()
    TYPEDEF = auto()

    # Preprocessor
    PP_INCLUDE = auto()
    PP_DEFINE = auto()
    PP_UNDEF = auto()
    PP_IFDEF = auto()
    PP_ELSE = auto()
    PP_ENDIF = auto()
    PP_ELSEIF = auto()
    PP_PRAGMA = auto()
    PP_ERROR = auto()
    PP_WARNING = auto()
    PP_IMPORT = auto()

    # Special
    EOF = auto()


# Kinds that may open a type in a declaration
VARIABLE_TYPES = (TT.INT, TT.BOOL, TT.VOID, TT.STRING_TYPE, TT.CLASS_IDENT, TT.ID)


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: str
    line: int = 0
    column: int = 0

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
