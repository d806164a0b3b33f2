"""
Lexer for mobjc - Recursive Descent Parser

Tokenizes mobjc source code into a stream of tokens.

Features:
- Single-pass tokenization
- Position tracking (line, column)
- Objective-C literals (@"...", @[...], @interface, ...)
- Never fails: unrecognised input is collected in `unhandled`
- Post-pass that reclassifies class names as CLASS_IDENT
"""

from typing import Callable, List, Optional, Set

from .token_types import TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    mobjc lexer.

    Scanning always completes: characters that start no token are appended
    to `unhandled` and skipped, and an EOF token always terminates the
    stream.
    """

    # Keyword mapping
    KEYWORDS = {
        'int': TT.INT,
        'if': TT.IF,
        'else': TT.ELSE,
        'return': TT.RETURN,
        'BOOL': TT.BOOL,
        'while': TT.WHILE,
        'for': TT.FOR,
        'print': TT.PRINT,
        'void': TT.VOID,
        'string': TT.STRING_TYPE,
        'interface': TT.INTERFACE,
        'end': TT.END,
        'implementation': TT.IMPLEMENTATION,
        'property': TT.PROPERTY,
        'YES': TT.YES,
        'NO': TT.NO,
        'nil': TT.NIL,
        'self': TT.SELF,
        'super': TT.SUPER,
        'weak': TT.WEAK,
        'id': TT.ID,
        'typedef': TT.TYPEDEF,
    }

    PREPROCESSOR = {
        'include': TT.PP_INCLUDE,
        'define': TT.PP_DEFINE,
        'undef': TT.PP_UNDEF,
        'ifdef': TT.PP_IFDEF,
        'else': TT.PP_ELSE,
        'endif': TT.PP_ENDIF,
        'elseif': TT.PP_ELSEIF,
        'pragma': TT.PP_PRAGMA,
        'error': TT.PP_ERROR,
        'warning': TT.PP_WARNING,
        'import': TT.PP_IMPORT,
    }

    # Foundation classes that are always class names
    KNOWN_CLASSES = ("NSString", "NSInteger", "NSObject", "NSArray", "NSMutableString")

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('+=', TT.PLUSEQ),
        ('++', TT.INCR),

        # Single-character operators
        ('^', TT.CARET),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (';', TT.SEMI),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('*', TT.STAR),
        ('-', TT.MINUS),
        ('?', TT.QMARK),
        (':', TT.COLON),
        ('%', TT.MOD),
        ('+', TT.PLUS),
        ('&', TT.AMP),
        ('|', TT.PIPE),
        ('=', TT.ASSIGN),
        ('!', TT.BANG),
        ('<', TT.LT),
        ('>', TT.GT),
        ('/', TT.SLASH),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        # Position of the first character of the token being scanned
        self.start_line = 1
        self.start_column = 1
        self.tokens: List[Tok] = []
        self.unhandled: List[str] = []

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        while not self.at_end():
            self.scan_token()

        self.mark_start()
        self.emit(TT.EOF, '')
        self.tokens = convert_class_identifiers(self.tokens)
        return self.tokens

    def scan_token(self):
        """Consume one lexeme, or a run of whitespace, from the current position."""
        if self.take_while(str.isspace):
            return

        self.mark_start()
        ch = self.peek()

        if self.source.startswith('//', self.pos):
            self.take_while(lambda c: c != '\n')
        elif ch == '@':
            self.scan_at()
        elif ch == '"':
            self.scan_string()
        elif ch == '#':
            self.scan_preprocessor()
        elif ch == '_':
            self.scan_underscore()
        elif ch.isdigit():
            self.scan_number()
        elif ch.isalpha():
            self.scan_identifier()
        else:
            self.scan_operator()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_at(self):
        """`@"..."`, `@[`, `@keyword`, or a lone `@`."""
        self.advance()
        nxt = self.peek()

        if nxt == '"':
            self.scan_string()
        elif nxt == '[':
            self.advance()
            self.emit(TT.ARRAY_START, '@[')
        elif nxt.isalpha():
            self.scan_identifier()
        else:
            self.emit(TT.AT, '@')

    def scan_string(self):
        # Escapes stay as written; an unterminated string runs to end of input
        self.advance()
        body = self.take_while(lambda c: c != '"')
        if not self.at_end():
            self.advance()
        self.emit(TT.STRING, body)

    def scan_preprocessor(self):
        self.advance()
        word = self.take_while(str.isalpha)

        kind = self.PREPROCESSOR.get(word)
        if kind is None:
            self.unhandled.append(word)
        else:
            self.emit(kind, word)

    def scan_underscore(self):
        # `__weak` and friends lose both underscores; a single `_` is its own token
        self.advance()
        if self.peek() != '_':
            self.emit(TT.UNDERLINE, '_')
            return
        self.advance()
        self.scan_identifier()

    def scan_number(self):
        text = self.take_while(str.isdigit)
        if self.peek() == '.' and self.peek(1).isdigit():
            text += self.advance() + self.take_while(str.isdigit)
        self.emit(TT.NUMBER, text)

    def scan_identifier(self):
        word = self.take_while(lambda c: c.isalnum() or c == '_')
        self.emit(self.KEYWORDS.get(word, TT.IDENT), word)

    def scan_operator(self):
        hit = next(
            ((text, kind) for text, kind in self.OPERATORS if self.source.startswith(text, self.pos)),
            None,
        )
        if hit is None:
            self.unhandled.append(self.advance())
            return

        text, kind = hit
        self.advance(len(text))
        self.emit(kind, text)

    # ========================================================================
    # Cursor
    # ========================================================================

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Character *offset* places ahead, or NUL past the end."""
        idx = self.pos + offset
        return self.source[idx] if idx < len(self.source) else '\0'

    def advance(self, n: int = 1) -> str:
        """Consume up to *n* characters, keeping line and column in step."""
        taken = self.source[self.pos:self.pos + n]
        self.pos += len(taken)

        newlines = taken.count('\n')
        if newlines:
            self.line += newlines
            self.column = len(taken) - taken.rfind('\n')
        else:
            self.column += len(taken)
        return taken

    def take_while(self, pred: Callable[[str], bool]) -> str:
        """Consume characters while *pred* holds and return them."""
        end = self.pos
        while end < len(self.source) and pred(self.source[end]):
            end += 1
        return self.advance(end - self.pos)

    def mark_start(self):
        self.start_line = self.line
        self.start_column = self.column

    def emit(self, token_type: TT, value: str):
        self.tokens.append(Tok(type=token_type, value=value, line=self.start_line, column=self.start_column))


def convert_class_identifiers(tokens: List[Tok], known: Optional[Set[str]] = None) -> List[Tok]:
    """
    Reclassify class names as CLASS_IDENT across the whole stream.

    A name is a class name when it follows `interface`/`implementation`,
    when it directly precedes `*` `)` (a cast or pointer parameter), or when
    it is a foundation class.
    """
    class_names: Set[str] = set(Lexer.KNOWN_CLASSES)
    class_names |= {tok.value for tok in tokens if tok.type is TT.CLASS_IDENT}
    if known:
        class_names |= known

    for i in range(1, len(tokens) - 1):
        tok = tokens[i]
        if tok.type is not TT.IDENT:
            continue

        if tokens[i - 1].type in (TT.INTERFACE, TT.IMPLEMENTATION):
            class_names.add(tok.value)

        if tokens[i + 1].type is TT.STAR and i + 2 < len(tokens) and tokens[i + 2].type is TT.RPAR:
            class_names.add(tok.value)

    if known is not None:
        known |= class_names

    return [
        Tok(TT.CLASS_IDENT, tok.value, tok.line, tok.column)
        if tok.type is TT.IDENT and tok.value in class_names
        else tok
        for tok in tokens
    ]

# ============================================================================
# Convenience
# ============================================================================

def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
