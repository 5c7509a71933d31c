"""Per-session decoding state: base IRI, prefix bindings and blank nodes."""

from __future__ import annotations

from typing import Mapping

from .iri import is_absolute_iri, resolve_iri
from .terms import BNode


class DocumentState:
    """Mutable state owned by exactly one decode session.

    ``base_iri`` is replaced by base directives, ``prefixes`` is updated by
    prefix directives (last write wins) and the blank node registry hands out
    session-unique identities.
    """

    def __init__(
        self,
        base_iri: str | None = None,
        prefixes: Mapping[str, str] | None = None,
    ):
        if base_iri is not None and not is_absolute_iri(base_iri):
            raise ValueError(f"base IRI <{base_iri}> is not absolute")
        self.base_iri = base_iri
        self.prefixes: dict[str, str] = {}
        for name, namespace in (prefixes or {}).items():
            if not is_absolute_iri(namespace):
                raise ValueError(
                    f"namespace <{namespace}> for prefix '{name}:' is not absolute"
                )
            self.prefixes[name] = namespace
        self._bnode_counter = 0
        self._labels: dict[str, BNode] = {}
        self._taken: set[str] = set()

    def resolve(self, reference: str) -> str:
        """Resolve an IRI reference against the current base."""
        return resolve_iri(self.base_iri, reference)

    def set_base(self, reference: str) -> str:
        """Replace the base IRI with ``reference`` resolved against the old base."""
        self.base_iri = self.resolve(reference)
        return self.base_iri

    def bind_prefix(self, name: str, reference: str) -> str:
        """Bind ``name`` to ``reference`` resolved against the current base."""
        namespace = self.resolve(reference)
        self.prefixes[name] = namespace
        return namespace

    def namespace(self, name: str) -> str | None:
        return self.prefixes.get(name)

    def new_bnode(self) -> BNode:
        """Create a fresh generated blank node that avoids explicit labels."""
        while True:
            self._bnode_counter += 1
            label = f"b{self._bnode_counter}"
            if label not in self._taken:
                self._taken.add(label)
                return BNode(label)

    def labelled_bnode(self, label: str) -> BNode:
        """Return the stable blank node for an explicit ``_:label``."""
        node = self._labels.get(label)
        if node is None:
            # A generated node already owns this name; the label gets its own.
            node = self.new_bnode() if label in self._taken else BNode(label)
            self._taken.add(node.label)
            self._labels[label] = node
        return node
