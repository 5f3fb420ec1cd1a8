"""YAML graph reader and writer.

A graph file nests assemblies -> namespaces -> types -> members ->
parameters.  Ids are optional and default to documentation-id style tokens
(``A:Acme``, ``N:Acme.Core``, ``T:Acme.Core.Widget``, ``M:Acme.Core.Widget.Spin``).

Example::

    assemblies:
      - name: Acme.Core
        namespaces:
          - name: Acme.Core.Extensions
            types:
              - name: ListExtensions
                members:
                  - name: Shuffle
                    kind: method
                    extension: true
                    extends: System.Collections.Generic.List<T>
                    summary: Shuffles the list in place.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import yaml

from docweave.errors import GraphLoadError
from docweave.graph.entities import (
    ANNOTATION_FIELDS,
    Assembly,
    DocGraph,
    DocReference,
    DocType,
    Entity,
    ExceptionDoc,
    Member,
    MemberKind,
    Namespace,
    Parameter,
    ReferenceKind,
    ResolutionState,
    SymbolKind,
    TypeKind,
)
from docweave.references.symbols import MEMBER_PREFIXES

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


def load_graph(path: Path) -> DocGraph:
    """Read a YAML graph file into a :class:`DocGraph`.

    Raises
    ------
    GraphLoadError
        If the file cannot be read or parsed, or describes an invalid graph
        (missing names, unknown kinds, duplicate ids).
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read graph file {path}: {exc}"
        raise GraphLoadError(msg) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {path}: {exc}"
        raise GraphLoadError(msg) from exc

    if data is None:
        return DocGraph()
    if not isinstance(data, dict):
        msg = f"{path}: top level must be a mapping with an 'assemblies' list"
        raise GraphLoadError(msg)

    graph = graph_from_dict(data)
    logger.debug("Loaded %d entities from %s", len(graph), path)
    return graph


def graph_from_dict(data: dict[str, Any]) -> DocGraph:
    """Build a graph from the nested mapping form used by graph files."""
    graph = DocGraph()
    try:
        for asm_data in data.get("assemblies") or []:
            _load_assembly(graph, asm_data)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        msg = f"Invalid graph: {exc}"
        raise GraphLoadError(msg) from exc
    return graph


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _name(data: dict[str, Any], what: str) -> str:
    name = data.get("name")
    if not isinstance(name, str) or not name:
        msg = f"{what} without a name"
        raise ValueError(msg)
    return name


def _enum(enum_cls: type, value: Any, default: Any) -> Any:
    if value is None:
        return default
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        msg = f"Unknown {enum_cls.__name__} '{value}'"
        raise ValueError(msg) from None


def _common(data: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {key: data.get(key) for key in ANNOTATION_FIELDS}
    fields["references"] = [_reference(item) for item in data.get("references") or []]
    fields["exceptions"] = [
        ExceptionDoc(type_name=str(item.get("type", "")), description=item.get("description"))
        for item in data.get("exceptions") or []
    ]
    return fields


def _reference(item: Any) -> DocReference:
    if isinstance(item, str):
        return DocReference(raw=item)
    return DocReference(
        raw=str(item.get("raw", "")),
        kind=_enum(ReferenceKind, item.get("kind"), None),
        state=_enum(ResolutionState, item.get("state"), None),
        target=item.get("target"),
        display_name=item.get("display_name"),
        target_id=item.get("target_id"),
        symbol_kind=_enum(SymbolKind, item.get("symbol_kind"), SymbolKind.UNKNOWN),
    )


def _load_assembly(graph: DocGraph, data: dict[str, Any]) -> None:
    name = _name(data, "Assembly")
    assembly = Assembly(id=data.get("id") or f"A:{name}", name=name, **_common(data))
    graph.add(assembly)
    for ns_data in data.get("namespaces") or []:
        _load_namespace(graph, ns_data, assembly)


def _load_namespace(graph: DocGraph, data: dict[str, Any], assembly: Assembly) -> None:
    # The global namespace has an empty name.
    name = str(data.get("name") or "")
    namespace = Namespace(
        id=data.get("id") or f"N:{name}",
        name=name,
        assembly_id=assembly.id,
        **_common(data),
    )
    graph.add(namespace)
    for type_data in data.get("types") or []:
        _load_type(graph, type_data, namespace)


def _load_type(graph: DocGraph, data: dict[str, Any], namespace: Namespace) -> None:
    name = _name(data, "Type")
    full_name = data.get("full_name") or (f"{namespace.name}.{name}" if namespace.name else name)
    doc_type = DocType(
        id=data.get("id") or f"T:{full_name}",
        name=name,
        full_name=full_name,
        namespace_id=namespace.id,
        type_kind=_enum(TypeKind, data.get("kind"), TypeKind.CLASS),
        is_external=bool(data.get("external", False)),
        **_common(data),
    )
    graph.add(doc_type)
    for member_data in data.get("members") or []:
        _load_member(graph, member_data, doc_type)


def _load_member(graph: DocGraph, data: dict[str, Any], doc_type: DocType) -> None:
    name = _name(data, "Member")
    member_kind = _enum(MemberKind, data.get("kind"), MemberKind.METHOD)
    prefix = MEMBER_PREFIXES[member_kind]
    member = Member(
        id=data.get("id") or f"{prefix}:{doc_type.full_name}.{name}",
        name=name,
        member_kind=member_kind,
        owner_id=doc_type.id,
        declaring_type_id=data.get("declaring_type"),
        is_extension=bool(data.get("extension", False)),
        extended_type=data.get("extends"),
        **_common(data),
    )
    graph.add(member)
    for param_data in data.get("parameters") or []:
        param_name = _name(param_data, "Parameter")
        graph.add(
            Parameter(
                id=param_data.get("id") or f"{member.id}/{param_name}",
                name=param_name,
                member_id=member.id,
                type_name=param_data.get("type"),
                **_common(param_data),
            )
        )


# ---------------------------------------------------------------------------
# Dumping
# ---------------------------------------------------------------------------


def dump_graph(graph: DocGraph) -> dict[str, Any]:
    """Return the nested mapping form of *graph*, suitable for ``yaml.safe_dump``."""
    return {
        "assemblies": [
            _dump_assembly(graph, assembly) for assembly in graph.assemblies()
        ]
    }


def _dump_common(entity: Entity) -> dict[str, Any]:
    out: dict[str, Any] = {"id": entity.id, "name": entity.name}
    for key in ANNOTATION_FIELDS:
        value = getattr(entity, key)
        if value is not None:
            out[key] = value
    if entity.references:
        out["references"] = [_dump_reference(ref) for ref in entity.references]
    if entity.exceptions:
        out["exceptions"] = [
            {"type": exc.type_name, "description": exc.description} for exc in entity.exceptions
        ]
    return out


def _dump_reference(ref: DocReference) -> dict[str, Any]:
    out: dict[str, Any] = {"raw": ref.raw}
    if ref.kind is not None:
        out["kind"] = ref.kind.value
    if ref.state is not None:
        out["state"] = ref.state.value
    for key in ("target", "display_name", "target_id"):
        value = getattr(ref, key)
        if value is not None:
            out[key] = value
    if ref.symbol_kind is not SymbolKind.UNKNOWN:
        out["symbol_kind"] = ref.symbol_kind.value
    return out


def _dump_assembly(graph: DocGraph, assembly: Assembly) -> dict[str, Any]:
    out = _dump_common(assembly)
    out["namespaces"] = [_dump_namespace(graph, ns) for ns in graph.children(assembly)]
    return out


def _dump_namespace(graph: DocGraph, namespace: Entity) -> dict[str, Any]:
    out = _dump_common(namespace)
    out["types"] = [_dump_type(graph, t) for t in graph.children(namespace)]
    return out


def _dump_type(graph: DocGraph, doc_type: Entity) -> dict[str, Any]:
    assert isinstance(doc_type, DocType)
    out = _dump_common(doc_type)
    out["full_name"] = doc_type.full_name
    out["kind"] = doc_type.type_kind.value
    if doc_type.is_external:
        out["external"] = True
    out["members"] = [_dump_member(graph, m) for m in graph.children(doc_type)]
    return out


def _dump_member(graph: DocGraph, member: Entity) -> dict[str, Any]:
    assert isinstance(member, Member)
    out = _dump_common(member)
    out["kind"] = member.member_kind.value
    if member.is_extension:
        out["extension"] = True
    if member.extended_type:
        out["extends"] = member.extended_type
    if member.declaring_type_id and member.declaring_type_id != member.owner_id:
        out["declaring_type"] = member.declaring_type_id
    params = []
    for param in graph.children(member):
        assert isinstance(param, Parameter)
        param_out = _dump_common(param)
        if param.type_name:
            param_out["type"] = param.type_name
        params.append(param_out)
    if params:
        out["parameters"] = params
    return out
