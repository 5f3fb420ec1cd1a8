"""Extension member relocation.

Moves members flagged as extensions from their helper container onto the
type they extend.  Extended types missing from the graph get a single
external placeholder type each (when enabled), and helper containers left
empty by the move are dropped from their namespace.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docweave.config import DocsConfig
from docweave.graph.entities import DocType, Member, Namespace, TypeKind
from docweave.references.symbols import (
    external_docs_url,
    is_external_name,
    normalize_type_name,
    split_namespace,
)

if TYPE_CHECKING:
    from docweave.graph.entities import DocGraph

logger = logging.getLogger(__name__)


@dataclass
class RelocationResult:
    """Summary of one relocation pass."""

    relocated: int = 0
    placeholders_created: int = 0
    namespaces_created: int = 0
    containers_removed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def relocate_extension_members(
    graph: DocGraph,
    config: DocsConfig | None = None,
) -> RelocationResult:
    """Reshape member ownership so extension members sit on their extended type.

    Must run before the reference index is built.  Re-running on an already
    relocated graph moves nothing and creates nothing.

    Parameters
    ----------
    graph:
        Graph as produced by the loader; mutated in place.
    config:
        ``create_external_type_references`` decides whether members whose
        extended type is absent get a placeholder type or stay put.

    Returns
    -------
    RelocationResult
        Counts plus the ids of removed containers and skipped members.
    """
    if config is None:
        config = DocsConfig()
    result = RelocationResult()

    candidates = [m for m in graph.members() if m.is_extension and m.extended_type]
    if not candidates:
        return result

    # Normalized full name -> type.  Placeholders are added as they are made,
    # which keeps it to one placeholder per extended type name.
    types_by_name: dict[str, DocType] = {}
    for doc_type in graph.types():
        types_by_name.setdefault(normalize_type_name(doc_type.full_name), doc_type)

    emptied: list[str] = []
    for member in candidates:
        target_name = normalize_type_name(member.extended_type or "")
        if not target_name:
            result.skipped.append(member.id)
            continue

        target = types_by_name.get(target_name)
        if target is None:
            if not config.create_external_type_references:
                logger.debug(
                    "Extended type %s not in graph, leaving %s in place", target_name, member.id
                )
                result.skipped.append(member.id)
                continue
            target = _create_placeholder(graph, member, target_name, config, result)
            types_by_name[target_name] = target

        previous_owners = [t for t in graph.owners_of(member.id) if t.id != target.id]
        if not previous_owners and member.id in target.member_ids:
            continue

        for owner in previous_owners:
            owner.member_ids = [mid for mid in owner.member_ids if mid != member.id]
            if owner.id not in emptied:
                emptied.append(owner.id)
        if member.id not in target.member_ids:
            target.member_ids.append(member.id)
        if member.declaring_type_id is None:
            member.declaring_type_id = member.owner_id
        member.owner_id = target.id
        result.relocated += 1
        logger.debug("Relocated %s -> %s", member.id, target.full_name)

    for container_id in emptied:
        container = graph.get(container_id)
        if isinstance(container, DocType) and not container.member_ids:
            graph.remove(container_id)
            result.containers_removed.append(container_id)

    logger.info(
        "Relocated %d extension members (%d placeholders, %d containers removed, %d skipped)",
        result.relocated,
        result.placeholders_created,
        len(result.containers_removed),
        len(result.skipped),
    )
    return result


def _create_placeholder(
    graph: DocGraph,
    member: Member,
    target_name: str,
    config: DocsConfig,
    result: RelocationResult,
) -> DocType:
    """Create the external placeholder for *target_name* in its namespace."""
    ns_name, type_name = split_namespace(target_name)
    assembly_id = _assembly_of(graph, member)

    namespace = graph.find_namespace(assembly_id, ns_name)
    if namespace is None:
        namespace = Namespace(
            id=_free_id(graph, f"N:{ns_name}"),
            name=ns_name,
            assembly_id=assembly_id,
        )
        graph.add(namespace)
        result.namespaces_created += 1

    remarks = None
    if is_external_name(target_name, config.external_namespaces):
        url = external_docs_url(member.extended_type or target_name, config.external_docs_base_url)
        remarks = (
            f"`{type_name}` is defined outside this documentation set. "
            f"See the [external documentation]({url}) for its full API."
        )

    placeholder = DocType(
        id=_free_id(graph, f"T:{target_name}"),
        name=type_name,
        full_name=target_name,
        namespace_id=namespace.id,
        type_kind=TypeKind.CLASS,
        is_external=True,
        remarks=remarks,
    )
    graph.add(placeholder)
    result.placeholders_created += 1
    logger.debug("Created placeholder type %s in namespace '%s'", target_name, ns_name)
    return placeholder


def _assembly_of(graph: DocGraph, member: Member) -> str | None:
    """Assembly of the member's current container, else the first assembly."""
    owner = graph.get(member.owner_id) if member.owner_id else None
    if isinstance(owner, DocType):
        namespace = graph.namespace_of(owner)
        if namespace is not None and namespace.assembly_id is not None:
            return namespace.assembly_id
    assemblies = graph.assemblies()
    return assemblies[0].id if assemblies else None


def _free_id(graph: DocGraph, preferred: str) -> str:
    candidate = f"external:{preferred}"
    return candidate if candidate not in graph else graph.new_id(candidate)
