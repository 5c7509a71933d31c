from typing import Any, List, Tuple

from turtle_decoder import IRI, BNode, Literal, Term, Triple, parse_turtle

BASE = "http://example/base/"
EX = "http://example/"
PREFIX = f"@prefix : <{EX}> .\n"
XSD = "http://www.w3.org/2001/XMLSchema#"
RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"


def decode(text: Any, base_iri: str | None = BASE, **kwargs: Any) -> List[Triple]:
    return parse_turtle(text, base_iri=base_iri, **kwargs)


def ex(local: str) -> IRI:
    return IRI(EX + local)


def b(label: str) -> BNode:
    return BNode(label)


def typed(value: str, local: str) -> Literal:
    return Literal(value, datatype=XSD + local)


def rdf(local: str) -> IRI:
    return IRI(RDF + local)


def triples(*rows: Tuple[Term, Term, Term]) -> List[Triple]:
    return [Triple(*row) for row in rows]  # type: ignore[arg-type]
