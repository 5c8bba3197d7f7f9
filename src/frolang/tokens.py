"""FroLang scanner: pull-based lexer producing positioned tokens."""

from __future__ import annotations


# Token type constants
TK_IDENT = "IDENT"
TK_INT = "INT"
TK_FLOAT = "FLOAT"
TK_STRING = "STRING"
TK_TRUE = "TRUE"
TK_FALSE = "FALSE"

TK_PLUS = "+"
TK_MINUS = "-"
TK_STAR = "*"
TK_SLASH = "/"
TK_BANG = "!"
TK_ASSIGN = "="
TK_EQ = "=="
TK_NOT_EQ = "!="
TK_LT = "<"
TK_LT_EQ = "<="
TK_GT = ">"
TK_GT_EQ = ">="
TK_AND = "&"
TK_OR = "|"

TK_LPAREN = "("
TK_RPAREN = ")"
TK_LBRACE = "{"
TK_RBRACE = "}"
TK_LBRACKET = "["
TK_RBRACKET = "]"
TK_COMMA = ","
TK_SEMICOLON = ";"
TK_COLON = ":"

TK_COMMENT_START = "/*"
TK_COMMENT_END = "*/"

TK_LET = "LET"
TK_IF = "IF"
TK_ELSE = "ELSE"
TK_FOR = "FOR"
TK_WHILE = "WHILE"
TK_FN = "FN"
TK_RETURN = "RETURN"
TK_IN = "IN"
TK_BREAK = "BREAK"
TK_CONTINUE = "CONTINUE"
TK_TRY = "TRY"
TK_CATCH = "CATCH"
TK_FINALLY = "FINALLY"

TK_EOF = "EOF"
TK_ILLEGAL = "ILLEGAL"

KEYWORDS: dict[str, str] = {
    "let": TK_LET,
    "if": TK_IF,
    "else": TK_ELSE,
    "for": TK_FOR,
    "while": TK_WHILE,
    "fn": TK_FN,
    "return": TK_RETURN,
    "in": TK_IN,
    "break": TK_BREAK,
    "continue": TK_CONTINUE,
    "try": TK_TRY,
    "catch": TK_CATCH,
    "finally": TK_FINALLY,
    "true": TK_TRUE,
    "false": TK_FALSE,
}

# Two-character operators, checked before the single-character table
DOUBLE_OPS: dict[str, str] = {
    "==": TK_EQ,
    "!=": TK_NOT_EQ,
    "<=": TK_LT_EQ,
    ">=": TK_GT_EQ,
    "/*": TK_COMMENT_START,
    "*/": TK_COMMENT_END,
}

SINGLE_OPS: dict[str, str] = {
    "+": TK_PLUS,
    "-": TK_MINUS,
    "*": TK_STAR,
    "/": TK_SLASH,
    "!": TK_BANG,
    "=": TK_ASSIGN,
    "<": TK_LT,
    ">": TK_GT,
    "&": TK_AND,
    "|": TK_OR,
    "(": TK_LPAREN,
    ")": TK_RPAREN,
    "{": TK_LBRACE,
    "}": TK_RBRACE,
    "[": TK_LBRACKET,
    "]": TK_RBRACKET,
    ",": TK_COMMA,
    ";": TK_SEMICOLON,
    ":": TK_COLON,
}

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
}

# Inverse of ESCAPE_MAP, used when rendering string literals back to source
UNESCAPE_MAP: dict[str, str] = {v: "\\" + k for k, v in ESCAPE_MAP.items()}


class Token:
    """A token with type, literal value, and position."""

    __slots__ = ("type", "value", "line", "col")

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )

    def location(self) -> str:
        return "line " + str(self.line) + " col " + str(self.col)


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def escape_string(value: str) -> str:
    """Render a string value as a double-quoted literal."""
    out = '"'
    for ch in value:
        out += UNESCAPE_MAP.get(ch, ch)
    return out + '"'


class Lexer:
    """Produces one token per next_token() call; never raises.

    Malformed input (stray characters, unterminated strings, unknown escapes)
    becomes an ILLEGAL token so the parser can report it with a location.
    Once the input is exhausted every further call returns EOF.
    """

    def __init__(self, source: str):
        self.source: str = source
        self.pos: int = 0
        self.line: int = 1
        self.col: int = 1

    def _char(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx >= len(self.source):
            return ""
        return self.source[idx]

    def _bump(self) -> str:
        c = self.source[self.pos]
        self.pos += 1
        if c == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return c

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.source) and self._char() in " \t\r\n":
            self._bump()

    def next_token(self) -> Token:
        self._skip_whitespace()
        line = self.line
        col = self.col
        if self.pos >= len(self.source):
            return Token(TK_EOF, "", line, col)

        c = self._char()
        pair = c + self._char(1)
        if pair in DOUBLE_OPS:
            self._bump()
            self._bump()
            return Token(DOUBLE_OPS[pair], pair, line, col)
        if c in SINGLE_OPS:
            self._bump()
            return Token(SINGLE_OPS[c], c, line, col)
        if c == '"':
            return self._read_string(line, col)
        if _is_digit(c):
            return self._read_number(line, col)
        if _is_alpha(c):
            start = self.pos
            while self.pos < len(self.source) and _is_alnum(self._char()):
                self._bump()
            word = self.source[start : self.pos]
            return Token(KEYWORDS.get(word, TK_IDENT), word, line, col)

        self._bump()
        return Token(TK_ILLEGAL, c, line, col)

    def _read_number(self, line: int, col: int) -> Token:
        # Validity (e.g. "1.2.3") is left to the parser
        start = self.pos
        is_float = False
        while self.pos < len(self.source):
            c = self._char()
            if c == ".":
                is_float = True
            elif not _is_digit(c):
                break
            self._bump()
        raw = self.source[start : self.pos]
        return Token(TK_FLOAT if is_float else TK_INT, raw, line, col)

    def _read_string(self, line: int, col: int) -> Token:
        start = self.pos
        self._bump()  # opening quote
        value = ""
        bad = False
        while self.pos < len(self.source) and self._char() != '"':
            c = self._bump()
            if c != "\\":
                value += c
                continue
            esc = self._char()
            if esc in ESCAPE_MAP:
                value += ESCAPE_MAP[esc]
                self._bump()
            else:
                bad = True
        if self.pos >= len(self.source):
            return Token(TK_ILLEGAL, self.source[start:], line, col)
        self._bump()  # closing quote
        if bad:
            return Token(TK_ILLEGAL, self.source[start : self.pos], line, col)
        return Token(TK_STRING, value, line, col)


def tokenize(source: str) -> list[Token]:
    """Tokenize FroLang source into a flat list ending with TK_EOF."""
    lexer = Lexer(source)
    tokens: list[Token] = []
    while True:
        tok = lexer.next_token()
        tokens.append(tok)
        if tok.type == TK_EOF:
            return tokens
