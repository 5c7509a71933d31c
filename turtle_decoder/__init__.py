"""Pull-based decoder for the Turtle RDF syntax."""

from .errors import GrammarError, LexicalError, ParseError
from .iri import is_absolute_iri, resolve_iri
from .parser import TurtleDecoder, parse_turtle
from .terms import (
    IRI,
    RDF_FIRST,
    RDF_NIL,
    RDF_REST,
    RDF_TYPE,
    BNode,
    Literal,
    Subject,
    Term,
    Triple,
)

__version__ = "0.1.0"

__all__ = [
    "BNode",
    "GrammarError",
    "IRI",
    "LexicalError",
    "Literal",
    "ParseError",
    "RDF_FIRST",
    "RDF_NIL",
    "RDF_REST",
    "RDF_TYPE",
    "Subject",
    "Term",
    "Triple",
    "TurtleDecoder",
    "is_absolute_iri",
    "parse_turtle",
    "resolve_iri",
]
