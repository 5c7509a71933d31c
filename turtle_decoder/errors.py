"""Exceptions raised while decoding Turtle documents."""

from __future__ import annotations


class ParseError(ValueError):
    """Raised on deterministic syntax/semantic parse errors."""

    def __init__(self, source: str, line: int, column: int, message: str):
        """Initialize a parse error with source location details."""
        super().__init__(f"{source}:{line}:{column}: {message}")
        self.source = source
        self.line = line
        self.column = column
        self.message = message


class LexicalError(ParseError):
    """Malformed token: bad escape, unterminated literal, illegal character."""


class GrammarError(ParseError):
    """Token sequence that violates the Turtle grammar."""
