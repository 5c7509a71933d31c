import io
import logging
from typing import List

import pytest

from turtle_decoder import (
    IRI,
    RDF_NIL,
    GrammarError,
    Literal,
    ParseError,
    Triple,
    TurtleDecoder,
)

from .conftest import BASE, EX, PREFIX, b, decode, ex, rdf, triples, typed

FIRST = rdf("first")
REST = rdf("rest")


@pytest.mark.parametrize(
    "text, expected",
    [
        (
            "<http://a/s> <http://a/p> <http://a/o> .",
            triples((IRI("http://a/s"), IRI("http://a/p"), IRI("http://a/o"))),
        ),
        (
            "<s> <p> <o> .",
            triples((IRI(BASE + "s"), IRI(BASE + "p"), IRI(BASE + "o"))),
        ),
        (PREFIX + ":s :p :o .", triples((ex("s"), ex("p"), ex("o")))),
        (f"PREFIX : <{EX}>\n:s :p :o .", triples((ex("s"), ex("p"), ex("o")))),
        (f"prefix : <{EX}>\n:s :p :o .", triples((ex("s"), ex("p"), ex("o")))),
        (
            "@base <http://other/> .\n<s> <p> <o> .",
            triples(
                (IRI("http://other/s"), IRI("http://other/p"), IRI("http://other/o"))
            ),
        ),
        (
            "BASE <http://other/dir/>\n<../s> <p> <#o> .",
            triples(
                (
                    IRI("http://other/s"),
                    IRI("http://other/dir/p"),
                    IRI("http://other/dir/#o"),
                )
            ),
        ),
        (
            "@prefix : <sub/> .\n:s :p :o .",
            triples(
                (IRI(BASE + "sub/s"), IRI(BASE + "sub/p"), IRI(BASE + "sub/o"))
            ),
        ),
        (
            PREFIX + ":s :p :o1, :o2 .",
            triples((ex("s"), ex("p"), ex("o1")), (ex("s"), ex("p"), ex("o2"))),
        ),
        (
            PREFIX + ":s :p1 :o1 ;\n  :p2 :o2 ;\n.",
            triples((ex("s"), ex("p1"), ex("o1")), (ex("s"), ex("p2"), ex("o2"))),
        ),
        (
            PREFIX + ":s :p1 :o1 ;; :p2 :o2 .",
            triples((ex("s"), ex("p1"), ex("o1")), (ex("s"), ex("p2"), ex("o2"))),
        ),
        (PREFIX + ":s a :C .", triples((ex("s"), rdf("type"), ex("C")))),
        (
            PREFIX + "# comment\n:s :p :o . # trailing\n",
            triples((ex("s"), ex("p"), ex("o"))),
        ),
        (PREFIX + "::s ::p ::o .", triples((ex(":s"), ex(":p"), ex(":o")))),
        (PREFIX + ": : : .", triples((ex(""), ex(""), ex("")))),
        (PREFIX + ":s.1 :p.1 :o.1 .", triples((ex("s.1"), ex("p.1"), ex("o.1")))),
        (PREFIX + ":s :p :o.", triples((ex("s"), ex("p"), ex("o")))),
        (PREFIX + r":s :p :a\-b\~c .", triples((ex("s"), ex("p"), ex("a-b~c")))),
        (PREFIX + ":s :p :a%20b .", triples((ex("s"), ex("p"), ex("a%20b")))),
        (PREFIX + ":s :p :123 .", triples((ex("s"), ex("p"), ex("123")))),
        (
            r"<http://a/s> <http://a/\U00000070> <http://a/o> .",
            triples((IRI("http://a/s"), IRI("http://a/p"), IRI("http://a/o"))),
        ),
    ],
)
def test_iris_and_structure(text: str, expected: List[Triple]) -> None:
    assert decode(text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ('"plain"', Literal("plain")),
        ("'single'", Literal("single")),
        ('"""long\n"quoted" text"""', Literal('long\n"quoted" text')),
        ("'''a''b'''", Literal("a''b")),
        ('"""John said: "Hello World!\\""""', Literal('John said: "Hello World!"')),
        ('"chat"@en', Literal("chat", lang="en")),
        ('"chat"@en-US', Literal("chat", lang="en-US")),
        ('"x"^^<http://a/dt>', Literal("x", datatype="http://a/dt")),
        ('"x"^^:dt', Literal("x", datatype=EX + "dt")),
        ('"a\\tb\\n\\"c\\\\"', Literal('a\tb\n"c\\')),
        ('"\\u00e9\\U0001F600"', Literal("é\U0001F600")),
        ('"\\uD83D\\uDE00"', Literal("\U0001F600")),
        ("1", typed("1", "integer")),
        ("-2", typed("-2", "integer")),
        ("+3.5", typed("+3.5", "decimal")),
        (".5", typed(".5", "decimal")),
        ("1e3", typed("1e3", "double")),
        ("1.E3", typed("1.E3", "double")),
        ("-.5E-2", typed("-.5E-2", "double")),
        ("000000", typed("000000", "integer")),
        ("true", typed("true", "boolean")),
        ("false", typed("false", "boolean")),
    ],
)
def test_literal_objects(text: str, expected: Literal) -> None:
    assert decode(f"{PREFIX}:s :p {text} .") == triples((ex("s"), ex("p"), expected))


def test_integer_followed_by_statement_dot() -> None:
    assert decode(PREFIX + ":s :p 123.") == triples(
        (ex("s"), ex("p"), typed("123", "integer"))
    )


@pytest.mark.parametrize(
    "text, expected",
    [
        (
            "_:a :p _:b .\n_:a :q :o .",
            triples((b("a"), ex("p"), b("b")), (b("a"), ex("q"), ex("o"))),
        ),
        ("[] :p :o .", triples((b("b1"), ex("p"), ex("o")))),
        ("[ :q :o ] .", triples((b("b1"), ex("q"), ex("o")))),
        (":s :p [] .", triples((ex("s"), ex("p"), b("b1")))),
        (
            ":s :p [ :q :o ] .",
            triples((ex("s"), ex("p"), b("b1")), (b("b1"), ex("q"), ex("o"))),
        ),
        (
            ":s :p [ :q :o ; ] .",
            triples((ex("s"), ex("p"), b("b1")), (b("b1"), ex("q"), ex("o"))),
        ),
        (
            "[ :q :o ] :p :o2 .",
            triples((b("b1"), ex("q"), ex("o")), (b("b1"), ex("p"), ex("o2"))),
        ),
        (
            ":s :p [ :q [ :r :o ] ], :o2 .",
            triples(
                (ex("s"), ex("p"), b("b1")),
                (b("b1"), ex("q"), b("b2")),
                (b("b2"), ex("r"), ex("o")),
                (ex("s"), ex("p"), ex("o2")),
            ),
        ),
        ("[] : [] .", triples((b("b1"), ex(""), b("b2")))),
        ("[] :p _:b1 .", triples((b("b1"), ex("p"), b("b2")))),
        ("_:b1 :p [] .", triples((b("b1"), ex("p"), b("b2")))),
        ("_:b.0 :p :o .", triples((b("b.0"), ex("p"), ex("o")))),
    ],
)
def test_blank_nodes(text: str, expected: List[Triple]) -> None:
    assert decode(PREFIX + text) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        (":s :p () .", triples((ex("s"), ex("p"), RDF_NIL))),
        (
            ":s :p (1) .",
            triples(
                (ex("s"), ex("p"), b("b1")),
                (b("b1"), FIRST, typed("1", "integer")),
                (b("b1"), REST, RDF_NIL),
            ),
        ),
        (
            ":s :p (1 :a) .",
            triples(
                (ex("s"), ex("p"), b("b1")),
                (b("b1"), FIRST, typed("1", "integer")),
                (b("b1"), REST, b("b2")),
                (b("b2"), FIRST, ex("a")),
                (b("b2"), REST, RDF_NIL),
            ),
        ),
        (
            "(:a) :p :o .",
            triples(
                (b("b1"), FIRST, ex("a")),
                (b("b1"), REST, RDF_NIL),
                (b("b1"), ex("p"), ex("o")),
            ),
        ),
        ("() :p :o .", triples((RDF_NIL, ex("p"), ex("o")))),
        (
            ":s :p ([ :q :o ] ()) .",
            triples(
                (ex("s"), ex("p"), b("b1")),
                (b("b2"), ex("q"), ex("o")),
                (b("b1"), FIRST, b("b2")),
                (b("b1"), REST, b("b3")),
                (b("b3"), FIRST, RDF_NIL),
                (b("b3"), REST, RDF_NIL),
            ),
        ),
        (
            ":s :p ((1)) .",
            triples(
                (ex("s"), ex("p"), b("b1")),
                (b("b2"), FIRST, typed("1", "integer")),
                (b("b2"), REST, RDF_NIL),
                (b("b1"), FIRST, b("b2")),
                (b("b1"), REST, RDF_NIL),
            ),
        ),
        (
            "([ :q :o ]) :p :o2 .",
            triples(
                (b("b2"), ex("q"), ex("o")),
                (b("b1"), FIRST, b("b2")),
                (b("b1"), REST, RDF_NIL),
                (b("b1"), ex("p"), ex("o2")),
            ),
        ),
    ],
)
def test_collections(text: str, expected: List[Triple]) -> None:
    assert decode(PREFIX + text) == expected


def test_prefix_redeclaration_affects_later_statements_only() -> None:
    text = (
        "@prefix : <http://a/> .\n:s :p :o .\n"
        "@prefix : <http://b/> .\n:s :p :o .\n"
    )
    result = decode(text)
    assert result[0].subject == IRI("http://a/s")
    assert result[1].subject == IRI("http://b/s")


def test_seeded_prefixes() -> None:
    result = decode("ex:s ex:p ex:o .", prefixes={"ex": EX})
    assert result == triples((ex("s"), ex("p"), ex("o")))


@pytest.mark.parametrize(
    "stream",
    [
        PREFIX + ":s :p :o1, :o2 .",
        (PREFIX + ":s :p :o1, :o2 .").encode("utf-8"),
        io.StringIO(PREFIX + ":s :p :o1, :o2 ."),
        io.BytesIO((PREFIX + ":s :p :o1, :o2 .").encode("utf-8")),
    ],
)
def test_decode_next_pulls_one_triple_at_a_time(stream: object) -> None:
    decoder = TurtleDecoder(stream, base_iri=BASE)  # type: ignore[arg-type]
    assert decoder.decode_next() == Triple(ex("s"), ex("p"), ex("o1"))
    assert decoder.decode_next() == Triple(ex("s"), ex("p"), ex("o2"))
    assert decoder.decode_next() is None
    assert decoder.decode_next() is None


def test_iteration_and_decode_all_agree() -> None:
    text = PREFIX + ":s :p (1 2) ; :q [ :r :o ] ."
    assert list(TurtleDecoder(text)) == TurtleDecoder(text).decode_all()


def test_independent_sessions_yield_identical_sequences() -> None:
    text = PREFIX + "[] :p [ :q () ], (_:x) ."
    assert decode(text) == decode(text)


def test_empty_document() -> None:
    assert decode("") == []
    assert decode("# only a comment\n") == []
    assert decode(PREFIX) == []


def test_triples_before_an_error_are_delivered() -> None:
    decoder = TurtleDecoder(PREFIX + ":s :p :o .\n:s :p")
    assert decoder.decode_next() == Triple(ex("s"), ex("p"), ex("o"))
    with pytest.raises(GrammarError):
        decoder.decode_next()


def test_failed_decoder_stays_failed() -> None:
    decoder = TurtleDecoder(PREFIX + ":s :p :o1, 'x' :o2 .")
    with pytest.raises(GrammarError):
        decoder.decode_next()
    with pytest.raises(ParseError) as excinfo:
        decoder.decode_next()
    assert str(excinfo.value).endswith("decoder is in a failed state")


def test_deep_nesting_is_a_grammar_error() -> None:
    depth = 5000
    text = PREFIX + ":s :p " + "[ :p " * depth + ":o" + " ]" * depth + " ."
    with pytest.raises(GrammarError) as excinfo:
        decode(text)
    assert str(excinfo.value).endswith("nesting too deep")


def test_directives_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    text = PREFIX + "@base <http://other/> .\n:s :p :o ."
    with caplog.at_level(logging.DEBUG, logger="turtle_decoder"):
        decoder = TurtleDecoder(text, logging_lvl=logging.DEBUG)
        assert len(decoder.decode_all()) == 1
    assert f"Bound prefix ':' to <{EX}>" in caplog.text
    assert "Base IRI set to <http://other/>" in caplog.text
    assert "Decoded 1 triples from <string>" in caplog.text
    decoder.set_logging(logging.INFO)
