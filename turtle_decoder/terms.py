"""RDF term values produced by the Turtle decoder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
XSD_NS = "http://www.w3.org/2001/XMLSchema#"

RDF_TYPE_IRI = f"{RDF_NS}type"
RDF_FIRST_IRI = f"{RDF_NS}first"
RDF_REST_IRI = f"{RDF_NS}rest"
RDF_NIL_IRI = f"{RDF_NS}nil"
RDF_LANG_STRING_IRI = f"{RDF_NS}langString"

XSD_STRING_IRI = f"{XSD_NS}string"
XSD_BOOLEAN_IRI = f"{XSD_NS}boolean"
XSD_INTEGER_IRI = f"{XSD_NS}integer"
XSD_DECIMAL_IRI = f"{XSD_NS}decimal"
XSD_DOUBLE_IRI = f"{XSD_NS}double"


@dataclass(frozen=True)
class IRI:
    """Absolute IRI term."""
    value: str


@dataclass(frozen=True)
class BNode:
    """Blank node scoped to one decode session."""
    label: str


@dataclass(frozen=True)
class Literal:
    """RDF literal with either a language tag, a datatype, or neither."""
    value: str
    lang: str | None = None
    datatype: str | None = None

    def __post_init__(self) -> None:
        """Reject literals that carry both a language tag and a datatype."""
        if self.lang is not None and self.datatype is not None:
            raise ValueError("literal cannot have both a language tag and a datatype")

    @property
    def effective_datatype(self) -> str:
        """Return the datatype IRI implied by the annotation."""
        if self.lang is not None:
            return RDF_LANG_STRING_IRI
        if self.datatype is not None:
            return self.datatype
        return XSD_STRING_IRI


Subject = IRI | BNode
Term = IRI | BNode | Literal


class Triple(NamedTuple):
    subject: Subject
    predicate: IRI
    object: Term


RDF_TYPE = IRI(RDF_TYPE_IRI)
RDF_FIRST = IRI(RDF_FIRST_IRI)
RDF_REST = IRI(RDF_REST_IRI)
RDF_NIL = IRI(RDF_NIL_IRI)
