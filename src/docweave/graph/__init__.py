"""Graph domain: entity model, YAML graph files, extension relocation."""

# entities must load before the relocator, which pulls in docweave.references.
from docweave.graph.entities import (
    ANNOTATION_FIELDS,
    Assembly,
    DocGraph,
    DocReference,
    DocType,
    Entity,
    EntityKind,
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
from docweave.graph.loader import dump_graph, graph_from_dict, load_graph
from docweave.graph.relocator import RelocationResult, relocate_extension_members

__all__ = [
    "ANNOTATION_FIELDS",
    "Assembly",
    "DocGraph",
    "DocReference",
    "DocType",
    "Entity",
    "EntityKind",
    "ExceptionDoc",
    "Member",
    "MemberKind",
    "Namespace",
    "Parameter",
    "ReferenceKind",
    "RelocationResult",
    "ResolutionState",
    "SymbolKind",
    "TypeKind",
    "dump_graph",
    "graph_from_dict",
    "load_graph",
    "relocate_extension_members",
]
