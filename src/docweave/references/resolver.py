"""Cross-reference index and resolver.

The index maps documentation ids (``T:Ns.Type``, ``M:Ns.Type.Go`` ...) and
their short aliases to link targets.  It is built once over the final graph
and is read-only afterwards, so rewrite workers share it without locking.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from docweave.config import DocsConfig
from docweave.graph.entities import (
    Assembly,
    DocReference,
    DocType,
    Member,
    MemberKind,
    Namespace,
    ReferenceKind,
    ResolutionState,
    SymbolKind,
    TypeKind,
)
from docweave.references.keywords import keyword_url
from docweave.references.symbols import (
    MEMBER_PREFIXES,
    external_docs_url,
    has_prefix,
    is_external_name,
    normalize_type_name,
    simple_name,
    strip_parameters,
    strip_prefix,
    symbol_kind,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from docweave.graph.entities import DocGraph

logger = logging.getLogger(__name__)

GLOBAL_NAMESPACE = "Global"
DEFAULT_LINK_LABEL = "link"

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_ARITY_RE = re.compile(r"`+\d+")
_KEYWORD_PREFIX = "langword:"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LinkTarget:
    """Where an indexed entity's documentation lives."""

    entity_id: str
    path: str
    display_name: str
    symbol_kind: SymbolKind
    anchor: str | None = None

    @property
    def href(self) -> str:
        return f"{self.path}#{self.anchor}" if self.anchor else self.path


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one reference token."""

    raw: str
    kind: ReferenceKind
    state: ResolutionState
    display_name: str
    target: str | None = None
    target_id: str | None = None
    symbol_kind: SymbolKind = SymbolKind.UNKNOWN

    @property
    def is_resolved(self) -> bool:
        return self.state is not ResolutionState.UNRESOLVED

    def to_markdown(self) -> str:
        """Render as a Markdown link, or as inline code when there is no target."""
        if self.kind is ReferenceKind.KEYWORD:
            code = f"`{self.display_name}`"
            return f"[{code}]({self.target})" if self.target else code
        if not self.is_resolved or not self.target:
            return f"`{self.display_name}`"
        return f"[{self.display_name}]({self.target})"


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class ReferenceIndex:
    """Case-insensitive, immutable map of documentation ids to link targets."""

    def __init__(self, entries: Mapping[str, LinkTarget] | None = None) -> None:
        folded = {key.casefold(): value for key, value in (entries or {}).items()}
        self._entries: Mapping[str, LinkTarget] = MappingProxyType(folded)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._entries

    def lookup(self, key: str) -> LinkTarget | None:
        return self._entries.get(key.casefold())

    @classmethod
    def build(cls, graph: DocGraph, config: DocsConfig | None = None) -> ReferenceIndex:
        """Index every assembly, namespace, type, and member reachable in *graph*.

        Primary ids and aliases are registered first-come; later entities
        never overwrite an existing key.
        """
        if config is None:
            config = DocsConfig()
        builder = _IndexBuilder(config)

        for assembly in graph.assemblies():
            builder.add_assembly(assembly)
            for ns_id in assembly.namespace_ids:
                namespace = graph.namespace(ns_id)
                builder.add_namespace(namespace)
                for type_id in namespace.type_ids:
                    doc_type = graph.doc_type(type_id)
                    builder.add_type(doc_type, namespace)
                    for member_id in doc_type.member_ids:
                        builder.add_member(graph.member(member_id), doc_type, namespace)

        logger.debug("Built reference index with %d keys", len(builder.entries))
        return cls(builder.entries)


class _IndexBuilder:
    def __init__(self, config: DocsConfig) -> None:
        self.config = config
        self.entries: dict[str, LinkTarget] = {}

    def _register(self, key: str, target: LinkTarget) -> None:
        if key and key.casefold() not in self.entries:
            self.entries[key.casefold()] = target

    def add_assembly(self, assembly: Assembly) -> None:
        target = LinkTarget(
            entity_id=assembly.id,
            path=self._href(""),
            display_name=assembly.name,
            symbol_kind=SymbolKind.ASSEMBLY,
        )
        self._register(f"A:{assembly.name}", target)

    def add_namespace(self, namespace: Namespace) -> None:
        target = LinkTarget(
            entity_id=namespace.id,
            path=self._href(self.namespace_page(namespace.name)),
            display_name=namespace.name or GLOBAL_NAMESPACE,
            symbol_kind=SymbolKind.NAMESPACE,
        )
        self._register(f"N:{namespace.name}", target)

    def add_type(self, doc_type: DocType, namespace: Namespace) -> None:
        target = LinkTarget(
            entity_id=doc_type.id,
            path=self._href(self.type_page(doc_type, namespace)),
            display_name=display_type_name(doc_type.name),
            symbol_kind=SymbolKind.TYPE,
        )
        self._register(f"T:{doc_type.full_name}", target)
        self._register(doc_type.full_name, target)
        normalized = normalize_type_name(doc_type.full_name)
        if normalized != doc_type.full_name:
            self._register(f"T:{normalized}", target)
            self._register(normalized, target)
        self._register(doc_type.name, target)

    def add_member(self, member: Member, doc_type: DocType, namespace: Namespace) -> None:
        prefix = MEMBER_PREFIXES.get(member.member_kind, "M")
        target = LinkTarget(
            entity_id=member.id,
            path=self._href(self.type_page(doc_type, namespace)),
            display_name=f"{display_type_name(doc_type.name)}.{member.name}",
            symbol_kind=symbol_kind(f"{prefix}:"),
            anchor=member.name.lower(),
        )
        qualified = f"{doc_type.full_name}.{member.name}"
        self._register(f"{prefix}:{qualified}", target)
        self._register(qualified, target)
        if member.member_kind is MemberKind.CONSTRUCTOR:
            self._register(f"M:{doc_type.full_name}.#ctor", target)
        if member.member_kind is MemberKind.FIELD and doc_type.type_kind is TypeKind.ENUM:
            enum_field = f"{doc_type.name}.{member.name}"
            self._register(enum_field, target)
            self._register(f"F:{enum_field}", target)

    # --- pages ---

    def namespace_page(self, name: str) -> str:
        name = name or GLOBAL_NAMESPACE
        if self.config.namespace_mode == "folder":
            return f"{name.replace('.', '/')}/index"
        return name.replace(".", self.config.namespace_separator)

    def type_page(self, doc_type: DocType, namespace: Namespace) -> str:
        if self.config.namespace_mode == "folder":
            folder = (namespace.name or GLOBAL_NAMESPACE).replace(".", "/")
            return f"{folder}/{doc_type.name}"
        return doc_type.name

    def _href(self, page: str) -> str:
        root = self.config.api_reference_path.replace("\\", "/").strip("/")
        page = page.replace("\\", "/").lstrip("/")
        if not page:
            return f"/{root}"
        return f"/{root}/{page}"


def display_type_name(name: str) -> str:
    """``List`1`` -> ``List``; names without arity pass through."""
    return _ARITY_RE.sub("", name)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class CrossReferenceResolver:
    """Resolves symbol, link, and keyword tokens against a :class:`ReferenceIndex`."""

    def __init__(self, index: ReferenceIndex | None = None, config: DocsConfig | None = None) -> None:
        self.index = index if index is not None else ReferenceIndex()
        self.config = config if config is not None else DocsConfig()

    @classmethod
    def from_graph(cls, graph: DocGraph, config: DocsConfig | None = None) -> CrossReferenceResolver:
        return cls(ReferenceIndex.build(graph, config), config)

    def resolve_symbol(self, payload: str) -> Resolution:
        """Resolve an opaque documentation id such as ``T:Ns.Type``.

        Lookup order: exact id, id without parameter list, id without
        prefix, normalized type name; then the external namespace
        heuristic; otherwise unresolved.
        """
        raw = payload.strip()
        kind = symbol_kind(raw)
        if not raw:
            return Resolution(
                raw=payload,
                kind=ReferenceKind.INTERNAL_SYMBOL,
                state=ResolutionState.UNRESOLVED,
                display_name="",
            )
        if _URL_RE.match(raw):
            return self.resolve_link(raw)

        target = self._lookup(raw)
        if target is not None:
            return Resolution(
                raw=payload,
                kind=ReferenceKind.INTERNAL_SYMBOL,
                state=ResolutionState.RESOLVED_INTERNAL,
                display_name=target.display_name,
                target=target.href,
                target_id=target.entity_id,
                symbol_kind=target.symbol_kind if kind is SymbolKind.UNKNOWN else kind,
            )

        bare = strip_parameters(strip_prefix(raw))
        if is_external_name(bare, self.config.external_namespaces):
            return Resolution(
                raw=payload,
                kind=ReferenceKind.INTERNAL_SYMBOL,
                state=ResolutionState.RESOLVED_EXTERNAL,
                display_name=display_type_name(simple_name(bare)),
                target=external_docs_url(bare, self.config.external_docs_base_url),
                symbol_kind=kind,
            )

        logger.debug("Unresolved symbol reference %s", raw)
        return Resolution(
            raw=payload,
            kind=ReferenceKind.INTERNAL_SYMBOL,
            state=ResolutionState.UNRESOLVED,
            display_name=display_type_name(simple_name(raw)),
            symbol_kind=kind,
        )

    def resolve_link(self, url: str, label: str | None = None) -> Resolution:
        """A literal URL always resolves; a missing label becomes ``link``."""
        label = label.strip() if label else ""
        return Resolution(
            raw=url,
            kind=ReferenceKind.EXTERNAL_RESOURCE,
            state=ResolutionState.RESOLVED_EXTERNAL,
            display_name=label or DEFAULT_LINK_LABEL,
            target=url.strip(),
        )

    def resolve_keyword(self, keyword: str) -> Resolution:
        word = keyword.strip().lower()
        url = keyword_url(word)
        return Resolution(
            raw=keyword,
            kind=ReferenceKind.KEYWORD,
            state=ResolutionState.RESOLVED_EXTERNAL if url else ResolutionState.UNRESOLVED,
            display_name=word,
            target=url,
        )

    def resolve_record(self, record: DocReference) -> DocReference:
        """Return a resolved copy of an explicit "see also" record.

        The record's own ``kind`` wins when the loader set one; otherwise it
        is classified from the raw token.
        """
        raw = record.raw.strip()
        kind = record.kind or classify_reference(raw)
        if kind is ReferenceKind.EXTERNAL_RESOURCE:
            resolution = self.resolve_link(raw, record.display_name)
        elif kind is ReferenceKind.KEYWORD:
            word = raw[len(_KEYWORD_PREFIX):] if raw.lower().startswith(_KEYWORD_PREFIX) else raw
            resolution = self.resolve_keyword(word)
        else:
            resolution = self.resolve_symbol(raw)

        return replace(
            record,
            kind=resolution.kind,
            state=resolution.state,
            target=resolution.target,
            display_name=resolution.display_name,
            target_id=resolution.target_id,
            symbol_kind=resolution.symbol_kind,
        )

    def _lookup(self, raw: str) -> LinkTarget | None:
        candidates = [raw, strip_parameters(raw)]
        bare = strip_parameters(strip_prefix(raw))
        candidates.append(bare)
        kind = symbol_kind(raw)
        if kind in (SymbolKind.TYPE, SymbolKind.UNKNOWN):
            candidates.append(normalize_type_name(bare))
        for key in candidates:
            target = self.index.lookup(key)
            if target is not None:
                return target
        return None


def classify_reference(raw: str) -> ReferenceKind:
    """Guess what a bare reference token points at."""
    if _URL_RE.match(raw):
        return ReferenceKind.EXTERNAL_RESOURCE
    if raw.lower().startswith(_KEYWORD_PREFIX):
        return ReferenceKind.KEYWORD
    if not has_prefix(raw) and "." not in raw and keyword_url(raw) is not None:
        return ReferenceKind.KEYWORD
    return ReferenceKind.INTERNAL_SYMBOL
