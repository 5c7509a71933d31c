"""Recursive-descent Turtle parser that hands out triples one at a time."""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterator, Mapping, NoReturn

from .errors import GrammarError, ParseError
from .lexer import (
    NUMERIC_KINDS,
    STRING_KINDS,
    Lexer,
    Token,
    TokenKind,
    is_pn_chars_base,
)
from .source import Readable, RuneSource
from .state import DocumentState
from .terms import (
    IRI,
    RDF_FIRST,
    RDF_NIL,
    RDF_REST,
    RDF_TYPE,
    XSD_BOOLEAN_IRI,
    XSD_DECIMAL_IRI,
    XSD_DOUBLE_IRI,
    XSD_INTEGER_IRI,
    BNode,
    Literal,
    Subject,
    Term,
    Triple,
)
from .utils import logger

PNAME_KINDS = frozenset({TokenKind.PNAME_LN, TokenKind.PNAME_NS})
IRI_KINDS = PNAME_KINDS | {TokenKind.IRIREF}
LITERAL_KINDS = STRING_KINDS | NUMERIC_KINDS | {TokenKind.BOOLEAN}

NUMERIC_DATATYPES = {
    TokenKind.INTEGER: XSD_INTEGER_IRI,
    TokenKind.DECIMAL: XSD_DECIMAL_IRI,
    TokenKind.DOUBLE: XSD_DOUBLE_IRI,
}

# (subject, predicate) that a nested construct's node is the object of.
Link = tuple[Subject, IRI] | None


class TurtleDecoder:
    """Decode a Turtle document into a stream of triples.

    Each call to :meth:`decode_next` returns one :class:`Triple`, or ``None``
    once the document is exhausted. A statement can expand into many triples
    (object lists, blank node property lists, collections); they are queued
    and handed out in order before the next statement is read.

    :param stream: Turtle text, UTF-8 bytes, or a text/binary stream.
    :type stream: str | bytes | IO
    :param base_iri: Absolute IRI that relative references resolve against.
    :type base_iri: str | None
    :param prefixes: Prefix bindings in effect before the first statement.
    :type prefixes: Mapping[str, str] | None
    :param source: Name used in error messages and log lines.
    :type source: str
    :param logging_lvl: Defaults to logging.INFO. Use logging.DEBUG to log
        directives and document totals.
    :type logging_lvl: str | int
    """

    def __init__(
        self,
        stream: Readable,
        base_iri: str | None = None,
        prefixes: Mapping[str, str] | None = None,
        source: str = "<string>",
        logging_lvl: str | int = logging.INFO,
    ):
        self.set_logging(logging_lvl)
        self.source = source
        self.state = DocumentState(base_iri, prefixes)
        self.lexer = Lexer(RuneSource(stream, source))
        self._lookahead: deque[Token] = deque()
        self._queue: deque[Triple] = deque()
        self._last: Token | None = None
        self._previous: Token | None = None
        self._done = False
        self._error: ParseError | None = None
        self._emitted = 0

    def set_logging(self, level: str | int) -> None:
        logger.setLevel(level)

    def __iter__(self) -> Iterator[Triple]:
        while True:
            triple = self.decode_next()
            if triple is None:
                return
            yield triple

    def decode_all(self) -> list[Triple]:
        """Decode every remaining triple and return them in document order."""
        return list(self)

    def decode_next(self) -> Triple | None:
        """Return the next triple, or ``None`` at the end of the document.

        Any :class:`ParseError` finishes the session: later calls raise
        ``ParseError("decoder is in a failed state")``.
        """
        if self._error is not None:
            error = self._error
            raise ParseError(
                self.source, error.line, error.column, "decoder is in a failed state"
            ) from error
        while not self._queue:
            if self._done:
                return None
            try:
                self._parse_statement()
            except ParseError as exc:
                self._fail(exc)
                raise
            except RecursionError:
                token = self._last or self._peek_safe()
                exc = GrammarError(
                    self.source, token.line, token.column, "nesting too deep"
                )
                self._fail(exc)
                raise exc from None
        self._emitted += 1
        return self._queue.popleft()

    def _fail(self, exc: ParseError) -> None:
        logger.debug(f"Decoding {self.source} failed: {exc}")
        self._error = exc
        self._queue.clear()
        self._lookahead.clear()

    def _peek_safe(self) -> Token:
        if self._lookahead:
            return self._lookahead[0]
        src = self.lexer.source
        return Token(TokenKind.EOF, "", src.line, src.column, src.offset, src.offset)

    # -- token plumbing ------------------------------------------------------

    def _peek(self, n: int = 0) -> Token:
        while len(self._lookahead) <= n:
            self._lookahead.append(self.lexer.next_token())
        return self._lookahead[n]

    def _next(self) -> Token:
        token = self._peek()
        self._lookahead.popleft()
        self._previous, self._last = self._last, token
        return token

    def _error_at(self, token: Token, message: str) -> NoReturn:
        raise GrammarError(self.source, token.line, token.column, message)

    def _emit(self, subject: Subject, predicate: IRI, obj: Term) -> None:
        """Append one triple to the emission queue."""
        self._queue.append(Triple(subject, predicate, obj))

    # -- statements ----------------------------------------------------------

    def _parse_statement(self) -> None:
        """Parse one directive or triples statement."""
        token = self._peek()
        kind = token.kind
        if kind is TokenKind.EOF:
            self._done = True
            logger.debug(f"Decoded {self._emitted} triples from {self.source}")
        elif kind is TokenKind.AT_PREFIX:
            self._prefix_directive(sparql=False)
        elif kind is TokenKind.SPARQL_PREFIX:
            self._prefix_directive(sparql=True)
        elif kind is TokenKind.AT_BASE:
            self._base_directive(sparql=False)
        elif kind is TokenKind.SPARQL_BASE:
            self._base_directive(sparql=True)
        elif kind is TokenKind.LANGTAG:
            self._unknown_directive(token)
        else:
            self._triples_statement()

    def _prefix_directive(self, sparql: bool) -> None:
        keyword = self._next()
        name = self._next()
        if name.kind is not TokenKind.PNAME_NS:
            if name.kind is TokenKind.DOT:
                self._misplaced_dot(name)
            if name.kind is TokenKind.PNAME_LN:
                self._error_at(name, f"prefix name '{name.text}' must end in ':'")
            self._error_at(name, f"{keyword.text} without prefix name")
        reference = self._next()
        if reference.kind is not TokenKind.IRIREF:
            self._error_at(reference, f"{keyword.text} without URI")
        prefix = name.text[:-1]
        try:
            namespace = self.state.bind_prefix(prefix, reference.text)
        except ValueError as exc:
            raise GrammarError(
                self.source, reference.line, reference.column, str(exc)
            ) from exc
        logger.debug(f"Bound prefix '{prefix}:' to <{namespace}>")
        self._directive_end(keyword, sparql)

    def _base_directive(self, sparql: bool) -> None:
        keyword = self._next()
        reference = self._next()
        if reference.kind is not TokenKind.IRIREF:
            self._error_at(reference, f"{keyword.text} without URI")
        try:
            base = self.state.set_base(reference.text)
        except ValueError as exc:
            raise GrammarError(
                self.source, reference.line, reference.column, str(exc)
            ) from exc
        logger.debug(f"Base IRI set to <{base}>")
        self._directive_end(keyword, sparql)

    def _directive_end(self, keyword: Token, sparql: bool) -> None:
        """`@prefix`/`@base` end with '.'; `PREFIX`/`BASE` must not."""
        token = self._peek()
        if sparql:
            if token.kind is TokenKind.DOT:
                self._error_at(
                    token, f"'.' not allowed after {keyword.text.upper()} directive"
                )
            return
        self._next()
        if token.kind is TokenKind.EOF:
            self._error_at(token, "missing '.'")
        if token.kind is not TokenKind.DOT:
            self._error_at(
                token,
                f"found {token.describe()} where '.' was expected after {keyword.text}",
            )

    def _unknown_directive(self, token: Token) -> None:
        if token.text.lower() in ("prefix", "base"):
            self._error_at(token, f"@{token.text.lower()} in wrong case")
        self._error_at(token, f"@{token.text} is not a Turtle directive")

    def _triples_statement(self) -> None:
        """Parse `subject predicateObjectList '.'` or `[ ... ] predicateObjectList? '.'`."""
        token = self._peek()
        if token.kind is TokenKind.LBRACKET:
            self._next()
            subject, has_contents = self._blank_node_property_list(None, token)
            if not (has_contents and self._peek().kind is TokenKind.DOT):
                self._predicate_object_list(subject)
        else:
            subject = self._subject()
            self._predicate_object_list(subject)

        end = self._next()
        if end.kind is TokenKind.DOT:
            return
        if end.kind is TokenKind.EOF:
            self._error_at(end, "missing '.'")
        self._error_at(end, f"found {end.describe()} where '.' was expected")

    # -- terms -----------------------------------------------------------------

    def _subject(self) -> Subject:
        token = self._next()
        kind = token.kind
        if kind in IRI_KINDS:
            return self._iri(token)
        if kind is TokenKind.BLANK_NODE_LABEL:
            return self.state.labelled_bnode(token.text)
        if kind is TokenKind.LPAREN:
            return self._collection(None, token)
        if kind in LITERAL_KINDS:
            self._error_at(token, "literal as subject")
        if kind is TokenKind.A:
            self._error_at(token, "'a' cannot be used as subject")
        if kind is TokenKind.DOT:
            self._misplaced_dot(token)
            self._error_at(token, "extra '.'")
        self._error_at(token, f"found {token.describe()} where a subject was expected")

    def _predicate(self) -> IRI:
        token = self._next()
        kind = token.kind
        if kind in IRI_KINDS:
            return self._iri(token)
        if kind is TokenKind.A:
            return RDF_TYPE
        if kind in LITERAL_KINDS:
            self._error_at(token, "literal as predicate")
        if kind is TokenKind.LBRACKET:
            self._error_at(token, "bnode as predicate")
        if kind is TokenKind.BLANK_NODE_LABEL:
            self._error_at(token, "labeled bnode as predicate")
        if kind is TokenKind.LPAREN:
            self._error_at(token, "collection as predicate")
        if kind is TokenKind.DOT:
            previous = self._previous
            if (
                previous is not None
                and previous.kind is TokenKind.BLANK_NODE_LABEL
                and previous.end == token.start
            ):
                self._error_at(previous, "blank node label must not end in dot")
            self._misplaced_dot(token)
        if kind is TokenKind.EOF:
            self._error_at(token, "missing predicate")
        self._error_at(token, f"found {token.describe()} where a predicate was expected")

    def _predicate_object_list(self, subject: Subject) -> None:
        """Parse `verb objectList (';' (verb objectList)?)*`."""
        while True:
            predicate = self._predicate()
            self._object_list(subject, predicate)
            if self._peek().kind is not TokenKind.SEMICOLON:
                return
            while self._peek().kind is TokenKind.SEMICOLON:
                self._next()
            token = self._peek()
            if token.kind is TokenKind.DOT or token.kind is TokenKind.RBRACKET:
                return
            if token.kind is TokenKind.EOF:
                self._error_at(token, "trailing ';' no '.'")

    def _object_list(self, subject: Subject, predicate: IRI) -> None:
        self._object(subject, predicate)
        while self._peek().kind is TokenKind.COMMA:
            self._next()
            self._object(subject, predicate)

    def _object(self, subject: Subject, predicate: IRI) -> None:
        """Parse one object and emit ``(subject, predicate, object)``.

        The linking triple is queued before any triples that describe the
        object's own contents.
        """
        token = self._next()
        if token.kind is TokenKind.LBRACKET:
            self._blank_node_property_list((subject, predicate), token)
        elif token.kind is TokenKind.LPAREN:
            self._collection((subject, predicate), token)
        else:
            self._emit(subject, predicate, self._term(token))

    def _term(self, token: Token) -> Term:
        """Resolve an object token to its term.

        Triples describing a nested property list or collection are queued
        before this returns.
        """
        kind = token.kind
        if kind in IRI_KINDS:
            return self._iri(token)
        if kind is TokenKind.BLANK_NODE_LABEL:
            return self.state.labelled_bnode(token.text)
        if kind is TokenKind.LBRACKET:
            return self._blank_node_property_list(None, token)[0]
        if kind is TokenKind.LPAREN:
            return self._collection(None, token)
        if kind in STRING_KINDS:
            return self._rdf_literal(token)
        if kind in NUMERIC_KINDS:
            return Literal(token.text, datatype=NUMERIC_DATATYPES[kind])
        if kind is TokenKind.BOOLEAN:
            return Literal(token.text, datatype=XSD_BOOLEAN_IRI)
        if kind is TokenKind.A:
            self._error_at(token, "'a' cannot be used as object")
        if kind is TokenKind.EOF:
            self._error_at(token, "subject, predicate, no object")
        if kind is TokenKind.DOT:
            self._misplaced_dot(token)
        self._error_at(token, f"found {token.describe()} where an object was expected")

    def _misplaced_dot(self, token: Token) -> None:
        """Report `.name` as a prefix starting with a dot.

        Looks at the raw character after the dot so that the malformed name
        is never handed to the lexer.
        """
        if self._lookahead:
            following = self._lookahead[0]
            adjacent = following.start == token.end and following.kind in PNAME_KINDS
        else:
            src = self.lexer.source
            ch = src.peek()
            adjacent = src.offset == token.end and (is_pn_chars_base(ch) or ch == ":")
        if adjacent:
            self._error_at(token, "prefix must not start with dot")

    def _blank_node_property_list(self, link: Link, opening: Token) -> tuple[BNode, bool]:
        """Parse the rest of `[ predicateObjectList? ]` after the `[`.

        Returns the fresh blank node and whether the brackets had contents.
        """
        node = self.state.new_bnode()
        if link is not None:
            self._emit(link[0], link[1], node)
        if self._peek().kind is TokenKind.RBRACKET:
            self._next()
            return node, False
        self._predicate_object_list(node)
        token = self._next()
        if token.kind is TokenKind.RBRACKET:
            return node, True
        if token.kind is TokenKind.DOT:
            self._error_at(token, "dot delimiter may not appear in anonymous nodes")
        if token.kind is TokenKind.EOF:
            self._error_at(opening, "unterminated blank node property list")
        self._error_at(token, f"found {token.describe()} where ']' was expected")

    def _collection(self, link: Link, opening: Token) -> Subject:
        """Parse the rest of `( object* )` after the `(`.

        ``()`` is ``rdf:nil``; otherwise one fresh cell per item is chained
        with ``rdf:first``/``rdf:rest`` and the first cell is returned. Each
        item is resolved, nested triples included, before its cell's
        ``rdf:first`` and ``rdf:rest`` triples are queued.
        """
        if self._peek().kind is TokenKind.RPAREN:
            self._next()
            if link is not None:
                self._emit(link[0], link[1], RDF_NIL)
            return RDF_NIL

        head = cell = self.state.new_bnode()
        if link is not None:
            self._emit(link[0], link[1], head)
        while True:
            if self._peek().kind is TokenKind.EOF:
                self._error_at(opening, "unterminated collection")
            item = self._term(self._next())
            self._emit(cell, RDF_FIRST, item)
            if self._peek().kind is TokenKind.RPAREN:
                self._next()
                self._emit(cell, RDF_REST, RDF_NIL)
                return head
            following = self.state.new_bnode()
            self._emit(cell, RDF_REST, following)
            cell = following

    def _rdf_literal(self, token: Token) -> Literal:
        """Combine a string token with an optional language tag or datatype."""
        annotation = self._peek()
        if annotation.kind is TokenKind.LANGTAG:
            self._next()
            if self._peek().kind is TokenKind.DATATYPE:
                self._error_at(
                    self._peek(), "literal cannot have both a language tag and a datatype"
                )
            return Literal(token.text, lang=annotation.text)
        if annotation.kind is TokenKind.DATATYPE:
            self._next()
            datatype = self._next()
            if datatype.kind not in IRI_KINDS:
                self._error_at(datatype, "expected datatype IRI after '^^'")
            return Literal(token.text, datatype=self._iri(datatype).value)
        return Literal(token.text)

    def _iri(self, token: Token) -> IRI:
        """Turn an IRI reference or prefixed name token into an absolute IRI."""
        if token.kind is TokenKind.IRIREF:
            try:
                return IRI(self.state.resolve(token.text))
            except ValueError as exc:
                raise GrammarError(self.source, token.line, token.column, str(exc)) from exc
        prefix, _, local = token.text.partition(":")
        namespace = self.state.namespace(prefix)
        if namespace is None:
            self._error_at(token, f"undeclared prefix '{prefix}:'")
        return IRI(namespace + local)


def parse_turtle(
    text: Readable,
    base_iri: str | None = None,
    source: str = "<string>",
    prefixes: Mapping[str, str] | None = None,
) -> list[Triple]:
    """Decode a whole Turtle document and return its triples."""
    return TurtleDecoder(text, base_iri=base_iri, prefixes=prefixes, source=source).decode_all()
