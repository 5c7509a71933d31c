"""Relative IRI reference resolution (RFC 3986, section 5.2)."""

from __future__ import annotations

import re
from typing import NamedTuple, cast

# RFC 3986, Appendix B. Unmatched groups are None, so an empty query or
# fragment ("?" / "#" with nothing after) stays distinguishable from an
# absent one.
_IRI_RE = re.compile(
    r"^(?:([^:/?#]+):)?(?://([^/?#]*))?([^?#]*)(?:\?([^#]*))?(?:#(.*))?$", re.S
)


class IRIParts(NamedTuple):
    scheme: str | None
    authority: str | None
    path: str
    query: str | None
    fragment: str | None


def split_iri(value: str) -> IRIParts:
    """Split an IRI reference into its five components."""
    # Every string matches the Appendix B pattern.
    match = cast(re.Match[str], _IRI_RE.match(value))
    scheme, authority, path, query, fragment = match.groups()
    return IRIParts(scheme, authority, path, query, fragment)


def unsplit_iri(parts: IRIParts) -> str:
    """Recompose components following RFC 3986, section 5.3."""
    out: list[str] = []
    if parts.scheme is not None:
        out.append(f"{parts.scheme}:")
    if parts.authority is not None:
        out.append(f"//{parts.authority}")
    out.append(parts.path)
    if parts.query is not None:
        out.append(f"?{parts.query}")
    if parts.fragment is not None:
        out.append(f"#{parts.fragment}")
    return "".join(out)


def is_absolute_iri(value: str) -> bool:
    """Return whether ``value`` carries a scheme."""
    return split_iri(value).scheme is not None


def remove_dot_segments(path: str) -> str:
    """Normalize a path by removing `.` and `..` dot segments."""
    input_buffer = path
    output_buffer = ""

    def remove_last_segment(buf: str) -> str:
        """Drop the final path segment while preserving leading slash semantics."""
        idx = buf.rfind("/")
        if idx < 0:
            return ""
        return buf[:idx]

    while input_buffer:
        if input_buffer.startswith("../"):
            input_buffer = input_buffer[3:]
        elif input_buffer.startswith("./"):
            input_buffer = input_buffer[2:]
        elif input_buffer.startswith("/./"):
            input_buffer = "/" + input_buffer[3:]
        elif input_buffer == "/.":
            input_buffer = "/"
        elif input_buffer.startswith("/../"):
            input_buffer = "/" + input_buffer[4:]
            output_buffer = remove_last_segment(output_buffer)
        elif input_buffer == "/..":
            input_buffer = "/"
            output_buffer = remove_last_segment(output_buffer)
        elif input_buffer in (".", ".."):
            input_buffer = ""
        else:
            next_slash = input_buffer.find("/", 1 if input_buffer.startswith("/") else 0)
            if next_slash < 0:
                output_buffer += input_buffer
                input_buffer = ""
            else:
                output_buffer += input_buffer[:next_slash]
                input_buffer = input_buffer[next_slash:]

    return output_buffer


def _merge_paths(base: IRIParts, ref_path: str) -> str:
    """Merge a relative-path reference with the base path."""
    if base.authority is not None and base.path == "":
        return "/" + ref_path
    slash = base.path.rfind("/")
    if slash < 0:
        return ref_path
    return base.path[: slash + 1] + ref_path


def resolve_iri(base_iri: str | None, reference: str) -> str:
    """Resolve ``reference`` against ``base_iri`` and return an absolute IRI.

    A reference that already has a scheme is returned with only its dot
    segments removed. Raises ``ValueError`` if the reference is relative and
    there is no base to resolve it against.
    """
    ref = split_iri(reference)
    if ref.scheme is not None:
        return unsplit_iri(ref._replace(path=remove_dot_segments(ref.path)))

    if base_iri is None:
        raise ValueError(f"cannot resolve relative IRI <{reference}> without a base IRI")
    base = split_iri(base_iri)
    if base.scheme is None:
        raise ValueError(f"base IRI <{base_iri}> is not absolute")

    if ref.authority is not None:
        target = ref._replace(scheme=base.scheme, path=remove_dot_segments(ref.path))
    elif ref.path == "":
        query = ref.query if ref.query is not None else base.query
        target = IRIParts(base.scheme, base.authority, base.path, query, ref.fragment)
    elif ref.path.startswith("/"):
        target = IRIParts(
            base.scheme,
            base.authority,
            remove_dot_segments(ref.path),
            ref.query,
            ref.fragment,
        )
    else:
        target = IRIParts(
            base.scheme,
            base.authority,
            remove_dot_segments(_merge_paths(base, ref.path)),
            ref.query,
            ref.fragment,
        )
    return unsplit_iri(target)
