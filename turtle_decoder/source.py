"""Character source with lookahead and line/column tracking over a stream."""

from __future__ import annotations

import codecs
from typing import IO, NoReturn

from .errors import LexicalError

CHUNK_SIZE = 8192

Readable = str | bytes | IO[str] | IO[bytes]


class RuneSource:
    """Stateful character scanner with line and column tracking.

    The input may be a ``str``, ``bytes`` or a text/binary stream. Streams are
    read lazily in chunks, so the only point at which the decoder waits is a
    ``read`` on the underlying stream. Bytes are decoded as UTF-8.
    """

    def __init__(self, stream: Readable, source: str = "<string>"):
        """Initialize scanner state for the provided input."""
        self.source = source
        self.line = 1
        self.column = 1
        self.offset = 0
        self._buffer = ""
        self._index = 0
        self._stream: IO[str] | IO[bytes] | None = None
        self._decoder: codecs.IncrementalDecoder | None = None
        self._exhausted = False
        self._started = False

        if isinstance(stream, str):
            self._buffer = stream
            self._exhausted = True
        elif isinstance(stream, (bytes, bytearray)):
            self._buffer = self._decode(bytes(stream), final=True)
            self._exhausted = True
        else:
            self._stream = stream

    def _decode(self, data: bytes, final: bool) -> str:
        """Decode a chunk of UTF-8 input."""
        if self._decoder is None:
            self._decoder = codecs.getincrementaldecoder("utf-8")()
        try:
            return self._decoder.decode(data, final)
        except UnicodeDecodeError as exc:
            raise LexicalError(
                self.source, self.line, self.column, f"invalid UTF-8 input: {exc.reason}"
            ) from exc

    def _fill(self, needed: int) -> bool:
        """Read from the stream until ``needed`` characters are buffered."""
        while len(self._buffer) - self._index < needed and not self._exhausted:
            if self._stream is None:
                self._exhausted = True
                break
            chunk = self._stream.read(CHUNK_SIZE)
            if isinstance(chunk, (bytes, bytearray)):
                text = self._decode(bytes(chunk), final=not chunk)
            else:
                text = chunk
            if not chunk:
                self._exhausted = True
            if self._index > CHUNK_SIZE:
                self._buffer = self._buffer[self._index :]
                self._index = 0
            self._buffer += text
        if not self._started:
            self._started = True
            if self._buffer.startswith("\ufeff", self._index):
                self._index += 1
                return self._fill(needed)
        return len(self._buffer) - self._index >= needed

    def eof(self) -> bool:
        """Return `True` when the scanner reached the end of input."""
        return not self._fill(1)

    def peek(self, offset: int = 0) -> str:
        """Return the character at the current position plus an optional offset."""
        if not self._fill(offset + 1):
            return ""
        return self._buffer[self._index + offset]

    def startswith(self, token: str) -> bool:
        """Return `True` if the remaining input starts with `token`."""
        self._fill(len(token))
        return self._buffer.startswith(token, self._index)

    def advance(self) -> str:
        """Consume and return one character while updating line/column counters."""
        if self.eof():
            self.error("unexpected end of input")
        ch = self._buffer[self._index]
        self._index += 1
        self.offset += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def consume(self, token: str) -> bool:
        """Consume `token` if present and return whether it matched."""
        if not self.startswith(token):
            return False
        for _ in token:
            self.advance()
        return True

    def expect(self, token: str, message: str | None = None) -> None:
        """Consume `token` or raise a lexical error with a helpful message."""
        if not self.consume(token):
            self.error(message or f"expected '{token}'")

    @property
    def position(self) -> tuple[int, int, int]:
        """Return the current ``(line, column, offset)``."""
        return self.line, self.column, self.offset

    def error(
        self, message: str, line: int | None = None, column: int | None = None
    ) -> NoReturn:
        """Raise `LexicalError` at the current (or given) position."""
        raise LexicalError(
            self.source,
            self.line if line is None else line,
            self.column if column is None else column,
            message,
        )
