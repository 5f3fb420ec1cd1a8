"""Documentation entity graph: closed entity kinds stored in an id-keyed arena.

Containers reference their children by id, so moving a member between types
is a matter of removing an id from one list and appending it to another.
"""

from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Iterator

_E = TypeVar("_E", bound="Entity")

# Free-text slots rewritten by the markup rewriter, in rewrite order.
ANNOTATION_FIELDS: tuple[str, ...] = (
    "summary",
    "remarks",
    "returns",
    "value",
    "usage",
    "examples",
    "best_practices",
    "patterns",
    "considerations",
)


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class EntityKind(enum.Enum):
    """Concrete entity variants."""

    ASSEMBLY = "assembly"
    NAMESPACE = "namespace"
    TYPE = "type"
    MEMBER = "member"
    PARAMETER = "parameter"


class TypeKind(enum.Enum):
    CLASS = "class"
    INTERFACE = "interface"
    STRUCT = "struct"
    ENUM = "enum"
    DELEGATE = "delegate"


class MemberKind(enum.Enum):
    CONSTRUCTOR = "constructor"
    METHOD = "method"
    PROPERTY = "property"
    FIELD = "field"
    EVENT = "event"


class ReferenceKind(enum.Enum):
    """What a reference token points at."""

    INTERNAL_SYMBOL = "internal-symbol"
    EXTERNAL_RESOURCE = "external-resource"
    KEYWORD = "keyword"


class ResolutionState(enum.Enum):
    RESOLVED_INTERNAL = "resolved-internal"
    RESOLVED_EXTERNAL = "resolved-external"
    UNRESOLVED = "unresolved"


class SymbolKind(enum.Enum):
    """Fine-grained target kind taken from a ``X:`` documentation id prefix."""

    ASSEMBLY = "assembly"
    NAMESPACE = "namespace"
    TYPE = "type"
    FIELD = "field"
    PROPERTY = "property"
    METHOD = "method"
    EVENT = "event"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class DocReference:
    """An explicit "see also" reference attached to an entity.

    ``state`` stays ``None`` until the resolver has classified the record.
    ``target`` is a root-relative page path (with optional ``#anchor``) for
    internal targets and an absolute URL for external ones.
    """

    raw: str
    kind: ReferenceKind | None = None
    state: ResolutionState | None = None
    target: str | None = None
    display_name: str | None = None
    target_id: str | None = None
    symbol_kind: SymbolKind = SymbolKind.UNKNOWN

    @property
    def is_resolved(self) -> bool:
        return self.state in (
            ResolutionState.RESOLVED_INTERNAL,
            ResolutionState.RESOLVED_EXTERNAL,
        )


@dataclass
class ExceptionDoc:
    """A documented exception: the thrown type and when it is thrown."""

    type_name: str
    description: str | None = None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass
class Entity:
    """Fields shared by every node in the graph."""

    id: str
    name: str
    summary: str | None = None
    remarks: str | None = None
    returns: str | None = None
    value: str | None = None
    usage: str | None = None
    examples: str | None = None
    best_practices: str | None = None
    patterns: str | None = None
    considerations: str | None = None
    references: list[DocReference] = field(default_factory=list)
    exceptions: list[ExceptionDoc] = field(default_factory=list)

    kind: EntityKind = field(init=False)


@dataclass
class Assembly(Entity):
    namespace_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.kind = EntityKind.ASSEMBLY


@dataclass
class Namespace(Entity):
    assembly_id: str | None = None
    type_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.kind = EntityKind.NAMESPACE


@dataclass
class DocType(Entity):
    """A type node.  ``is_external`` marks synthesized placeholders."""

    namespace_id: str | None = None
    full_name: str = ""
    type_kind: TypeKind = TypeKind.CLASS
    member_ids: list[str] = field(default_factory=list)
    is_external: bool = False

    def __post_init__(self) -> None:
        self.kind = EntityKind.TYPE
        if not self.full_name:
            self.full_name = self.name


@dataclass
class Member(Entity):
    """A member node.

    ``declaring_type_id`` is the container the member was declared in and
    never changes; ``owner_id`` is the type currently listing the member.
    """

    member_kind: MemberKind = MemberKind.METHOD
    owner_id: str | None = None
    declaring_type_id: str | None = None
    is_extension: bool = False
    extended_type: str | None = None
    parameter_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.kind = EntityKind.MEMBER
        if self.declaring_type_id is None:
            self.declaring_type_id = self.owner_id


@dataclass
class Parameter(Entity):
    member_id: str | None = None
    type_name: str | None = None

    def __post_init__(self) -> None:
        self.kind = EntityKind.PARAMETER


# ---------------------------------------------------------------------------
# Arena
# ---------------------------------------------------------------------------


class DocGraph:
    """Id-keyed store of every entity produced by the loader."""

    def __init__(self) -> None:
        self.entities: dict[str, Entity] = {}
        self._synthetic = itertools.count(1)

    def __len__(self) -> int:
        return len(self.entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self.entities

    # --- construction ---

    def add(self, entity: Entity) -> Entity:
        """Register *entity* and link it into its parent container."""
        if entity.id in self.entities:
            msg = f"Duplicate entity id '{entity.id}'"
            raise ValueError(msg)

        parent_list: list[str] | None = None
        if isinstance(entity, Namespace) and entity.assembly_id is not None:
            parent_list = self.assembly(entity.assembly_id).namespace_ids
        elif isinstance(entity, DocType) and entity.namespace_id is not None:
            parent_list = self.namespace(entity.namespace_id).type_ids
        elif isinstance(entity, Member) and entity.owner_id is not None:
            parent_list = self.doc_type(entity.owner_id).member_ids
        elif isinstance(entity, Parameter) and entity.member_id is not None:
            parent_list = self.member(entity.member_id).parameter_ids

        self.entities[entity.id] = entity
        if parent_list is not None and entity.id not in parent_list:
            parent_list.append(entity.id)
        return entity

    def new_id(self, prefix: str) -> str:
        """Return an unused id for a synthesized node."""
        while True:
            candidate = f"{prefix}#{next(self._synthetic)}"
            if candidate not in self.entities:
                return candidate

    def remove(self, entity_id: str) -> None:
        """Drop a node, unlink it from its parent, and drop its subtree."""
        entity = self.entities.get(entity_id)
        if entity is None:
            return
        for child_id in list(self.child_ids(entity)):
            self.remove(child_id)

        if isinstance(entity, Namespace) and entity.assembly_id in self.entities:
            _discard(self.assembly(entity.assembly_id).namespace_ids, entity_id)
        elif isinstance(entity, DocType) and entity.namespace_id in self.entities:
            _discard(self.namespace(entity.namespace_id).type_ids, entity_id)
        elif isinstance(entity, Member) and entity.owner_id in self.entities:
            _discard(self.doc_type(entity.owner_id).member_ids, entity_id)
        elif isinstance(entity, Parameter) and entity.member_id in self.entities:
            _discard(self.member(entity.member_id).parameter_ids, entity_id)
        del self.entities[entity_id]

    # --- typed access ---

    def get(self, entity_id: str) -> Entity | None:
        return self.entities.get(entity_id)

    def assembly(self, entity_id: str) -> Assembly:
        return _expect(self.entities.get(entity_id), Assembly, entity_id)

    def namespace(self, entity_id: str) -> Namespace:
        return _expect(self.entities.get(entity_id), Namespace, entity_id)

    def doc_type(self, entity_id: str) -> DocType:
        return _expect(self.entities.get(entity_id), DocType, entity_id)

    def member(self, entity_id: str) -> Member:
        return _expect(self.entities.get(entity_id), Member, entity_id)

    def assemblies(self) -> list[Assembly]:
        return [e for e in self.entities.values() if isinstance(e, Assembly)]

    def namespaces(self) -> list[Namespace]:
        return [e for e in self.entities.values() if isinstance(e, Namespace)]

    def types(self) -> list[DocType]:
        return [e for e in self.entities.values() if isinstance(e, DocType)]

    def members(self) -> list[Member]:
        return [e for e in self.entities.values() if isinstance(e, Member)]

    # --- traversal ---

    def child_ids(self, entity: Entity) -> list[str]:
        if isinstance(entity, Assembly):
            return entity.namespace_ids
        if isinstance(entity, Namespace):
            return entity.type_ids
        if isinstance(entity, DocType):
            return entity.member_ids
        if isinstance(entity, Member):
            return entity.parameter_ids
        return []

    def children(self, entity: Entity) -> list[Entity]:
        return [self.entities[cid] for cid in self.child_ids(entity) if cid in self.entities]

    def walk(self) -> Iterator[Entity]:
        """Yield every reachable entity, assemblies first, in pre-order."""
        stack: list[Entity] = list(reversed(self.assemblies()))
        seen: set[str] = set()
        while stack:
            entity = stack.pop()
            if entity.id in seen:
                continue
            seen.add(entity.id)
            yield entity
            stack.extend(reversed(self.children(entity)))

    # --- lookup ---

    def find_namespace(self, assembly_id: str | None, name: str) -> Namespace | None:
        """Find a namespace by name, scoped to an assembly when given."""
        for ns in self.namespaces():
            if ns.name == name and (assembly_id is None or ns.assembly_id == assembly_id):
                return ns
        return None

    def find_type(self, full_name: str) -> DocType | None:
        for doc_type in self.types():
            if doc_type.full_name == full_name:
                return doc_type
        return None

    def namespace_of(self, doc_type: DocType) -> Namespace | None:
        if doc_type.namespace_id is None:
            return None
        ns = self.entities.get(doc_type.namespace_id)
        return ns if isinstance(ns, Namespace) else None

    def owners_of(self, member_id: str) -> list[DocType]:
        """Every type whose member list contains *member_id*."""
        return [t for t in self.types() if member_id in t.member_ids]


def _discard(ids: list[str], entity_id: str) -> None:
    while entity_id in ids:
        ids.remove(entity_id)


def _expect(entity: Entity | None, cls: type[_E], entity_id: str) -> _E:
    if not isinstance(entity, cls):
        msg = f"Entity '{entity_id}' is not a {cls.__name__}"
        raise KeyError(msg)
    return entity
