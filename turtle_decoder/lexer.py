"""Pull-based Turtle tokenizer.

The lexer turns the characters of a :class:`RuneSource` into :class:`Token`
values, one per call to :meth:`Lexer.next_token`. Escapes are resolved here:
``\\u``/``\\U`` escapes in IRIs and strings, string ``ECHAR`` escapes and the
backslash escapes of local names. Percent escapes in local names are kept
verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, NoReturn

from .source import RuneSource


class TokenKind(Enum):
    IRIREF = "IRI reference"
    PNAME_NS = "prefix name"
    PNAME_LN = "prefixed name"
    BLANK_NODE_LABEL = "blank node label"
    LBRACKET = "'['"
    RBRACKET = "']'"
    LPAREN = "'('"
    RPAREN = "')'"
    STRING_QUOTE = "string literal"
    STRING_SINGLE_QUOTE = "single-quoted string literal"
    STRING_LONG_QUOTE = "long string literal"
    STRING_LONG_SINGLE_QUOTE = "long single-quoted string literal"
    LANGTAG = "language tag"
    DATATYPE = "'^^'"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    A = "'a'"
    DOT = "'.'"
    SEMICOLON = "';'"
    COMMA = "','"
    AT_PREFIX = "'@prefix'"
    AT_BASE = "'@base'"
    SPARQL_PREFIX = "'PREFIX'"
    SPARQL_BASE = "'BASE'"
    EOF = "end of input"


STRING_KINDS = frozenset(
    {
        TokenKind.STRING_QUOTE,
        TokenKind.STRING_SINGLE_QUOTE,
        TokenKind.STRING_LONG_QUOTE,
        TokenKind.STRING_LONG_SINGLE_QUOTE,
    }
)
NUMERIC_KINDS = frozenset({TokenKind.INTEGER, TokenKind.DECIMAL, TokenKind.DOUBLE})

PUNCTUATION = {
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ";": TokenKind.SEMICOLON,
    ",": TokenKind.COMMA,
}

ECHAR_MAP = {
    "t": "\t",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "f": "\f",
    '"': '"',
    "'": "'",
    "\\": "\\",
}

LOCAL_ESCAPES = "_~.-!$&'()*+,;=/?#@%"

IRI_EXCLUDED = '<>"{}|^`\\'


@dataclass(frozen=True)
class Token:
    """One lexical token with its decoded text and source span."""
    kind: TokenKind
    text: str
    line: int
    column: int
    start: int
    end: int

    def describe(self) -> str:
        """Return a short human-readable rendering for error messages."""
        if self.kind is TokenKind.EOF:
            return "end of input"
        if self.kind is TokenKind.IRIREF:
            return f"<{self.text}>"
        if self.kind in STRING_KINDS:
            return f"literal {self.text!r}"
        if self.kind.value.startswith("'"):
            return self.kind.value
        return f"{self.kind.value} {self.text!r}"


def is_space(ch: str) -> bool:
    """Return whether a character is Turtle whitespace."""
    return ch != "" and ch in " \t\r\n"


def _in_ranges(cp: int, ranges: Iterable[tuple[int, int]]) -> bool:
    """Internal helper for in ranges."""
    for lo, hi in ranges:
        if lo <= cp <= hi:
            return True
    return False


PN_BASE_RANGES = (
    (0x00C0, 0x00D6),
    (0x00D8, 0x00F6),
    (0x00F8, 0x02FF),
    (0x0370, 0x037D),
    (0x037F, 0x1FFF),
    (0x200C, 0x200D),
    (0x2070, 0x218F),
    (0x2C00, 0x2FEF),
    (0x3001, 0xD7FF),
    (0xF900, 0xFDCF),
    (0xFDF0, 0xFFFD),
    (0x10000, 0xEFFFF),
)


def is_pn_chars_base(ch: str) -> bool:
    """Return whether a character is a valid `PN_CHARS_BASE` code point."""
    if len(ch) != 1:
        return False
    if "A" <= ch <= "Z" or "a" <= ch <= "z":
        return True
    return _in_ranges(ord(ch), PN_BASE_RANGES)


def is_pn_chars_u(ch: str) -> bool:
    """Return whether a character is a valid `PN_CHARS_U` code point."""
    return ch == "_" or is_pn_chars_base(ch)


def is_pn_chars(ch: str) -> bool:
    """Return whether a character is a valid `PN_CHARS` code point."""
    if len(ch) != 1:
        return False
    if is_pn_chars_u(ch) or ch in "-0123456789":
        return True
    cp = ord(ch)
    return cp == 0x00B7 or 0x0300 <= cp <= 0x036F or 0x203F <= cp <= 0x2040


def is_digit(ch: str) -> bool:
    """Return whether a character is an ASCII digit."""
    return len(ch) == 1 and "0" <= ch <= "9"


def is_hex(ch: str) -> bool:
    """Return whether a character is a hexadecimal digit."""
    return is_digit(ch) or ("A" <= ch <= "F") or ("a" <= ch <= "f")


def is_ascii_alpha(ch: str) -> bool:
    return len(ch) == 1 and ("A" <= ch <= "Z" or "a" <= ch <= "z")


class Lexer:
    """Produces Turtle tokens on demand from a :class:`RuneSource`."""

    def __init__(self, source: RuneSource):
        self.source = source
        self._after_string = False

    def next_token(self) -> Token:
        """Scan and return the next token; `EOF` once the input is exhausted."""
        self._skip_ws_comments()
        line, column, start = self.source.position
        kind, text = self._scan(line, column)
        self._after_string = kind in STRING_KINDS
        return Token(kind, text, line, column, start, self.source.offset)

    def __iter__(self):
        while True:
            token = self.next_token()
            yield token
            if token.kind is TokenKind.EOF:
                return

    def error(
        self, message: str, line: int | None = None, column: int | None = None
    ) -> NoReturn:
        self.source.error(message, line, column)

    def _skip_ws_comments(self) -> None:
        """Skip whitespace and `#` comments."""
        src = self.source
        while True:
            ch = src.peek()
            if is_space(ch):
                src.advance()
                continue
            if ch == "#":
                while not src.eof() and src.peek() not in "\r\n":
                    src.advance()
                continue
            break

    def _scan(self, line: int, column: int) -> tuple[TokenKind, str]:
        src = self.source
        ch = src.peek()
        if ch == "":
            return TokenKind.EOF, ""
        if ch == "<":
            return TokenKind.IRIREF, self._scan_iri_ref()
        if ch == '"' or ch == "'":
            return self._scan_string(ch, line, column)
        if ch == "@":
            return self._scan_at()
        if ch == "^":
            if src.consume("^^"):
                return TokenKind.DATATYPE, "^^"
            self.error("unexpected character '^'")
        if ch in PUNCTUATION:
            src.advance()
            return PUNCTUATION[ch], ch
        if ch == ".":
            if is_digit(src.peek(1)):
                return self._scan_number()
            src.advance()
            return TokenKind.DOT, "."
        if ch == "+" or ch == "-" or is_digit(ch):
            return self._scan_number()
        if ch == "_" and src.peek(1) == ":":
            return TokenKind.BLANK_NODE_LABEL, self._scan_blank_node_label()
        if ch == ":":
            src.advance()
            return self._scan_pname("")
        if is_pn_chars_base(ch):
            return self._scan_word()
        self.error(f"unexpected character {ch!r}")

    def _read_hex(self, width: int, message: str) -> int:
        """Read ``width`` hexadecimal digits and return their value."""
        digits = []
        for _ in range(width):
            ch = self.source.peek()
            if not is_hex(ch):
                self.error(message)
            digits.append(self.source.advance())
        return int("".join(digits), 16)

    def _decode_uchar(self, short_message: str, long_message: str) -> str:
        """Decode a `\\u` or `\\U` escape at the current position."""
        src = self.source
        src.advance()
        marker = src.advance()
        if marker == "u":
            codepoint = self._read_hex(4, short_message)
            if 0xD800 <= codepoint <= 0xDBFF:
                # A high surrogate is allowed only when a \u low surrogate follows.
                if not src.consume("\\u"):
                    self.error("high surrogate must be followed by low surrogate")
                low = self._read_hex(4, short_message)
                if not 0xDC00 <= low <= 0xDFFF:
                    self.error("invalid low surrogate in pair")
                return chr(0x10000 + ((codepoint - 0xD800) << 10) + (low - 0xDC00))
            if 0xDC00 <= codepoint <= 0xDFFF:
                self.error("lone low surrogate is not allowed")
            return chr(codepoint)
        codepoint = self._read_hex(8, long_message)
        if codepoint > 0x10FFFF:
            self.error("code point out of range")
        if 0xD800 <= codepoint <= 0xDFFF:
            self.error("surrogate code points are not allowed")
        return chr(codepoint)

    def _scan_iri_ref(self) -> str:
        """Scan an `IRIREF`, decoding numeric escapes."""
        src = self.source
        line, column = src.line, src.column
        src.advance()
        chars: list[str] = []
        while True:
            ch = src.peek()
            if ch == "":
                self.error("bad IRI: unterminated IRI reference", line, column)
            if ch == ">":
                src.advance()
                return "".join(chars)
            if ch == "\\":
                marker = src.peek(1)
                if marker != "u" and marker != "U":
                    self.error("bad IRI: character escapes not allowed")
                esc_line, esc_column = src.line, src.column
                decoded = self._decode_uchar(
                    "bad IRI: bad escape", "bad IRI: bad long escape"
                )
                if decoded in IRI_EXCLUDED or ord(decoded) <= 0x20:
                    self.error(
                        f"bad IRI: escaped {decoded!r} not allowed", esc_line, esc_column
                    )
                chars.append(decoded)
                continue
            if ch == " ":
                self.error("bad IRI: space")
            if ord(ch) < 0x20:
                self.error("bad IRI: control character")
            if ch in IRI_EXCLUDED:
                self.error(f"bad IRI: '{ch}' not allowed")
            chars.append(src.advance())

    def _scan_echar(self) -> str:
        """Decode one backslash escape inside a string literal."""
        src = self.source
        marker = src.peek(1)
        if marker == "u" or marker == "U":
            return self._decode_uchar("bad string escape", "bad string escape")
        if marker == "" or marker not in ECHAR_MAP:
            self.error("bad string escape")
        src.advance()
        src.advance()
        return ECHAR_MAP[marker]

    def _scan_string(self, quote: str, line: int, column: int) -> tuple[TokenKind, str]:
        """Scan one of the four string quoting forms."""
        src = self.source
        double = quote == '"'
        delim = quote * 3
        out: list[str] = []
        if src.consume(delim):
            while True:
                if src.eof():
                    self.error("long literal with missing end", line, column)
                if src.consume(delim):
                    break
                if src.peek() == "\\":
                    out.append(self._scan_echar())
                    continue
                out.append(src.advance())
            kind = (
                TokenKind.STRING_LONG_QUOTE
                if double
                else TokenKind.STRING_LONG_SINGLE_QUOTE
            )
            return kind, "".join(out)

        src.advance()
        while True:
            ch = src.peek()
            if ch == "":
                self.error("unterminated string literal", line, column)
            if ch == quote:
                src.advance()
                break
            if ch == "\n" or ch == "\r":
                self.error("newline in short string literal")
            if ch == "\\":
                out.append(self._scan_echar())
                continue
            out.append(src.advance())
        kind = TokenKind.STRING_QUOTE if double else TokenKind.STRING_SINGLE_QUOTE
        return kind, "".join(out)

    def _scan_at(self) -> tuple[TokenKind, str]:
        """Scan a language tag or an `@prefix`/`@base` directive keyword."""
        src = self.source
        src.advance()
        if self._after_string:
            return TokenKind.LANGTAG, self._scan_langtag()
        word = []
        while is_ascii_alpha(src.peek()):
            word.append(src.advance())
        text = "".join(word)
        if text == "prefix":
            return TokenKind.AT_PREFIX, "@prefix"
        if text == "base":
            return TokenKind.AT_BASE, "@base"
        if not text:
            self.error("unexpected character '@'")
        # Anything else is handed to the parser, which reports it as an
        # unknown directive.
        return TokenKind.LANGTAG, text

    def _scan_langtag(self) -> str:
        """Scan `[a-zA-Z]+ ('-' [a-zA-Z0-9]+)*` after the `@`."""
        src = self.source
        chars = []
        while is_ascii_alpha(src.peek()):
            chars.append(src.advance())
        if not chars:
            self.error("langString with bad lang")
        while src.peek() == "-" and (
            is_ascii_alpha(src.peek(1)) or is_digit(src.peek(1))
        ):
            chars.append(src.advance())
            while is_ascii_alpha(src.peek()) or is_digit(src.peek()):
                chars.append(src.advance())
        return "".join(chars)

    def _digits(self) -> str:
        src = self.source
        out = []
        while is_digit(src.peek()):
            out.append(src.advance())
        return "".join(out)

    def _exponent_follows(self, offset: int) -> bool:
        """Return whether `[eE][+-]?[0-9]` starts at ``offset``."""
        src = self.source
        if src.peek(offset) not in ("e", "E"):
            return False
        nxt = src.peek(offset + 1)
        if nxt == "+" or nxt == "-":
            nxt = src.peek(offset + 2)
        return is_digit(nxt)

    def _scan_number(self) -> tuple[TokenKind, str]:
        """Scan an integer, decimal or double; longest match wins."""
        src = self.source
        text = []
        if src.peek() in ("+", "-"):
            text.append(src.advance())
        whole = self._digits()
        text.append(whole)
        kind = TokenKind.INTEGER
        if src.peek() == "." and is_digit(src.peek(1)):
            text.append(src.advance())
            text.append(self._digits())
            kind = TokenKind.DECIMAL
        elif src.peek() == "." and whole and self._exponent_follows(1):
            text.append(src.advance())
            kind = TokenKind.DECIMAL
        elif not whole:
            self.error("bad number format")
        if src.peek() in ("e", "E"):
            if not self._exponent_follows(0):
                self.error("bad number format")
            text.append(src.advance())
            if src.peek() in ("+", "-"):
                text.append(src.advance())
            text.append(self._digits())
            kind = TokenKind.DOUBLE
        nxt = src.peek()
        if is_pn_chars(nxt) or nxt == ":":
            self.error("bad number format")
        if nxt == "." and is_pn_chars(src.peek(1)):
            # `123.abc` is one malformed number, not `123` and a new statement.
            self.error("bad number format")
        return kind, "".join(text)

    def _scan_blank_node_label(self) -> str:
        """Scan `_:label`; a trailing `.` is not part of the label."""
        src = self.source
        src.advance()
        src.advance()
        ch = src.peek()
        if not (is_pn_chars_u(ch) or is_digit(ch)):
            self.error("bad blank node label")
        chars = [src.advance()]
        self._scan_name_tail(chars)
        return "".join(chars)

    def _scan_name_tail(self, chars: list[str]) -> None:
        """Consume `(PN_CHARS | '.')* PN_CHARS` without a trailing dot."""
        src = self.source
        while True:
            ch = src.peek()
            if is_pn_chars(ch):
                chars.append(src.advance())
                continue
            if ch == ".":
                k = 1
                while src.peek(k) == ".":
                    k += 1
                if is_pn_chars(src.peek(k)):
                    for _ in range(k):
                        chars.append(src.advance())
                    continue
            return

    def _scan_word(self) -> tuple[TokenKind, str]:
        """Scan a prefixed name or one of the bare keywords."""
        src = self.source
        chars = [src.advance()]
        self._scan_name_tail(chars)
        word = "".join(chars)
        if src.peek() == ":":
            src.advance()
            return self._scan_pname(word)
        if word == "a":
            return TokenKind.A, word
        if word == "true" or word == "false":
            return TokenKind.BOOLEAN, word
        if word.upper() == "PREFIX":
            return TokenKind.SPARQL_PREFIX, word
        if word.upper() == "BASE":
            return TokenKind.SPARQL_BASE, word
        if src.peek() == ".":
            self.error("prefix must not end in dot")
        self.error(f"'{word}' is not a keyword")

    def _scan_pname(self, prefix: str) -> tuple[TokenKind, str]:
        """Scan the local part after `prefix:`."""
        local = self._scan_pn_local()
        if local is None:
            return TokenKind.PNAME_NS, f"{prefix}:"
        return TokenKind.PNAME_LN, f"{prefix}:{local}"

    def _scan_percent(self, first: bool) -> str:
        src = self.source
        src.advance()
        if not (is_hex(src.peek()) and is_hex(src.peek(1))):
            if first:
                self.error("bad hex escape at start of local name")
            self.error("bad hex escape in local name")
        return "%" + src.advance() + src.advance()

    def _scan_local_escape(self) -> str:
        src = self.source
        src.advance()
        ch = src.peek()
        if ch != "" and ch in LOCAL_ESCAPES:
            return src.advance()
        if ch == "u" or ch == "U":
            self.error("bad unicode escape in pname")
        self.error("bad escape in local name")

    def _scan_pn_local(self) -> str | None:
        """Scan `PN_LOCAL`; return ``None`` when no local part follows."""
        src = self.source
        ch = src.peek()
        out: list[str] = []
        if ch == "-":
            self.error("local name must not begin with dash")
        if is_pn_chars_u(ch) or is_digit(ch) or ch == ":":
            out.append(src.advance())
        elif ch == "%":
            out.append(self._scan_percent(first=True))
        elif ch == "\\":
            out.append(self._scan_local_escape())
        else:
            return None

        while True:
            ch = src.peek()
            if is_pn_chars(ch) or ch == ":":
                out.append(src.advance())
            elif ch == "%":
                out.append(self._scan_percent(first=False))
            elif ch == "\\":
                out.append(self._scan_local_escape())
            elif ch == ".":
                k = 1
                while src.peek(k) == ".":
                    k += 1
                nxt = src.peek(k)
                if not (is_pn_chars(nxt) or nxt in (":", "%", "\\")):
                    break
                for _ in range(k):
                    out.append(src.advance())
            else:
                break
        return "".join(out)
