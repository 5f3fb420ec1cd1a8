"""Helpers for documentation ids such as ``T:Ns.Type`` and ``M:Ns.Type.Go(System.String)``."""

from __future__ import annotations

import re

from docweave.graph.entities import MemberKind, SymbolKind

# Documentation id prefixes and the symbol kind each one denotes.
_PREFIX_KINDS: dict[str, SymbolKind] = {
    "A": SymbolKind.ASSEMBLY,
    "N": SymbolKind.NAMESPACE,
    "T": SymbolKind.TYPE,
    "F": SymbolKind.FIELD,
    "P": SymbolKind.PROPERTY,
    "M": SymbolKind.METHOD,
    "E": SymbolKind.EVENT,
}

MEMBER_PREFIXES: dict[MemberKind, str] = {
    MemberKind.FIELD: "F",
    MemberKind.PROPERTY: "P",
    MemberKind.METHOD: "M",
    MemberKind.CONSTRUCTOR: "M",
    MemberKind.EVENT: "E",
}

_PREFIX_RE = re.compile(r"^([A-Z]):")
# Generic argument lists in either source (<T>) or id ({T}) syntax.
_GENERIC_ARGS_RE = re.compile(r"[<{][^<>{}]*[>}]")
# Generic arity suffix: List`1, Func``2.
_ARITY_RE = re.compile(r"``?(\d+)")


def has_prefix(reference: str) -> bool:
    return _PREFIX_RE.match(reference) is not None


def strip_prefix(reference: str) -> str:
    """Drop a leading ``X:`` documentation id prefix."""
    return _PREFIX_RE.sub("", reference, count=1)


def symbol_kind(reference: str) -> SymbolKind:
    match = _PREFIX_RE.match(reference)
    if match is None:
        return SymbolKind.UNKNOWN
    return _PREFIX_KINDS.get(match.group(1), SymbolKind.UNKNOWN)


def strip_parameters(reference: str) -> str:
    """``M:Ns.T.Go(System.String)`` -> ``M:Ns.T.Go``."""
    paren = reference.find("(")
    return reference[:paren] if paren >= 0 else reference


def simple_name(name: str) -> str:
    """Last dotted segment of a (possibly prefixed, possibly generic) name."""
    name = strip_parameters(strip_prefix(name))
    # Drop generic arguments first so dots inside them do not count.
    while True:
        stripped = _GENERIC_ARGS_RE.sub("", name)
        if stripped == name:
            break
        name = stripped
    return name.rsplit(".", 1)[-1]


def normalize_type_name(name: str) -> str:
    """Canonical form of a type name used to match extended types.

    ``System.Collections.Generic.List<T>``, ``List`1`` and ``List{T}`` forms
    all collapse to ``System.Collections.Generic.List``.
    """
    name = strip_prefix(name.strip())
    while True:
        stripped = _GENERIC_ARGS_RE.sub("", name)
        if stripped == name:
            break
        name = stripped
    name = _ARITY_RE.sub("", name)
    return name.replace("+", ".").strip()


def split_namespace(full_name: str) -> tuple[str, str]:
    """Split a normalized type name into ``(namespace, simple name)``."""
    if "." not in full_name:
        return "", full_name
    namespace, _, name = full_name.rpartition(".")
    return namespace, name


def is_external_name(name: str, external_namespaces: tuple[str, ...]) -> bool:
    return any(name.startswith(prefix) for prefix in external_namespaces)


def external_docs_url(type_name: str, base_url: str) -> str:
    """Build an external API documentation URL for a framework type.

    Generic arity ``List`1`` becomes ``list-1``, nested ``+`` becomes ``.``
    and generic argument lists are dropped.
    """
    name = strip_parameters(strip_prefix(type_name))
    if "<" in name or "{" in name:
        # ``List<T>`` / ``List{T}`` -> ``List`1`` so the arity survives.
        def _arity(match: re.Match[str]) -> str:
            args = match.group(0)[1:-1]
            return f"`{args.count(',') + 1}"

        name = _GENERIC_ARGS_RE.sub(_arity, name)
    name = re.sub(r"`+(\d+)", r"-\1", name)
    name = name.replace("+", ".").lower()
    return f"{base_url.rstrip('/')}/{name}"
