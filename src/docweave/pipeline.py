"""Transformation pipeline: relocate, index, then rewrite every entity.

Phases run strictly in order.  Only the last one is parallel: workers read
the frozen index and return new field values, and the calling thread writes
them back, so a worker that fails or times out leaves its entity untouched.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docweave.config import DocsConfig
from docweave.graph.entities import ANNOTATION_FIELDS, DocReference, ExceptionDoc
from docweave.graph.relocator import RelocationResult, relocate_extension_members
from docweave.markup.rewriter import MarkupRewriter
from docweave.references.resolver import CrossReferenceResolver, ReferenceIndex

if TYPE_CHECKING:
    from concurrent.futures import Future

    from docweave.graph.entities import DocGraph, Entity
    from docweave.references.resolver import Resolution

logger = logging.getLogger(__name__)

_START_POLL_INTERVAL = 0.01


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class EntityRewrite:
    """New content for one entity, computed off the calling thread."""

    entity_id: str
    fields: dict[str, str | None] = field(default_factory=dict)
    exceptions: list[ExceptionDoc] = field(default_factory=list)
    references: list[DocReference] = field(default_factory=list)
    resolutions: list[Resolution] = field(default_factory=list)


@dataclass(frozen=True)
class EntityFailure:
    entity_id: str
    error: str
    timed_out: bool = False


@dataclass(frozen=True)
class UnresolvedReference:
    entity_id: str
    raw: str


@dataclass
class TransformResult:
    """Summary of a full :func:`transform_graph` run."""

    relocation: RelocationResult = field(default_factory=RelocationResult)
    entities_processed: int = 0
    fields_rewritten: int = 0
    references_resolved: int = 0
    references_unresolved: int = 0
    unresolved: list[UnresolvedReference] = field(default_factory=list)
    failures: list[EntityFailure] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures


# ---------------------------------------------------------------------------
# Per-entity work
# ---------------------------------------------------------------------------


def rewrite_entity(
    entity: Entity,
    rewriter: MarkupRewriter,
    resolver: CrossReferenceResolver,
) -> EntityRewrite:
    """Compute rewritten fields and resolved records for *entity*.

    Reads *entity* but never writes to it.
    """
    result = EntityRewrite(entity_id=entity.id)
    for name in ANNOTATION_FIELDS:
        original = getattr(entity, name)
        rewritten = rewriter.rewrite(original, result.resolutions)
        if rewritten != original:
            result.fields[name] = rewritten

    result.exceptions = [
        ExceptionDoc(exc.type_name, rewriter.rewrite(exc.description, result.resolutions))
        for exc in entity.exceptions
    ]
    result.references = [resolver.resolve_record(ref) for ref in entity.references]
    return result


def _timed_rewrite(
    entity: Entity,
    rewriter: MarkupRewriter,
    resolver: CrossReferenceResolver,
    started: dict[str, float],
) -> EntityRewrite:
    started[entity.id] = time.monotonic()
    return rewrite_entity(entity, rewriter, resolver)


def _wait_for(
    future: Future[EntityRewrite],
    entity_id: str,
    started: dict[str, float],
    timeout: float | None,
) -> EntityRewrite:
    """Result of *future*, timing out *timeout* seconds after its worker started.

    A queued entity never times out: the deadline only exists once a worker
    has picked it up.
    """
    if timeout is None:
        return future.result()
    while entity_id not in started:
        wait([future], timeout=_START_POLL_INTERVAL)
    remaining = started[entity_id] + timeout - time.monotonic()
    return future.result(timeout=max(remaining, 0.0))


def _apply(entity: Entity, rewrite: EntityRewrite, result: TransformResult) -> None:
    for name, value in rewrite.fields.items():
        setattr(entity, name, value)
    entity.exceptions = rewrite.exceptions
    entity.references = rewrite.references

    result.entities_processed += 1
    result.fields_rewritten += len(rewrite.fields)
    for resolution in rewrite.resolutions:
        _count(result, entity.id, resolution.raw, resolved=resolution.is_resolved)
    for ref in rewrite.references:
        _count(result, entity.id, ref.raw, resolved=ref.is_resolved)


def _count(result: TransformResult, entity_id: str, raw: str, *, resolved: bool) -> None:
    if resolved:
        result.references_resolved += 1
    else:
        result.references_unresolved += 1
        result.unresolved.append(UnresolvedReference(entity_id, raw))


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def transform_graph(graph: DocGraph, config: DocsConfig | None = None) -> TransformResult:
    """Run relocation, index construction, and the parallel rewrite pass.

    Parameters
    ----------
    graph:
        Graph fresh from the loader.  Mutated in place.
    config:
        Run configuration; defaults to :class:`DocsConfig` defaults.

    Returns
    -------
    TransformResult
        Counts, unresolved references, and per-entity failures.  A failing
        entity keeps its original content; the others are still processed.
    """
    if config is None:
        config = DocsConfig()
    start = time.monotonic()
    result = TransformResult()

    # Phase 1: single-threaded reshape.
    result.relocation = relocate_extension_members(graph, config)

    # Phase 2: read-only index over the final shape.
    index = ReferenceIndex.build(graph, config)
    resolver = CrossReferenceResolver(index, config)
    rewriter = MarkupRewriter(resolver, config)
    logger.info("Indexed %d reference keys", len(index))

    # Phase 3: fan out per entity.
    entities = list(graph.walk())
    with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
        started: dict[str, float] = {}
        futures: list[tuple[Entity, Future[EntityRewrite]]] = [
            (entity, pool.submit(_timed_rewrite, entity, rewriter, resolver, started))
            for entity in entities
        ]
        for entity, future in futures:
            try:
                rewrite = _wait_for(future, entity.id, started, config.entity_timeout)
            except FutureTimeoutError:
                logger.warning("Rewrite of %s timed out, keeping original content", entity.id)
                result.failures.append(
                    EntityFailure(entity.id, f"timed out after {config.entity_timeout}s", timed_out=True)
                )
                continue
            except Exception as exc:  # noqa: BLE001
                logger.warning("Rewrite of %s failed: %s", entity.id, exc)
                result.failures.append(EntityFailure(entity.id, f"{type(exc).__name__}: {exc}"))
                continue
            _apply(entity, rewrite, result)

    result.elapsed = time.monotonic() - start
    logger.info(
        "Rewrote %d entities (%d fields, %d references resolved, %d unresolved, %d failures)",
        result.entities_processed,
        result.fields_rewritten,
        result.references_resolved,
        result.references_unresolved,
        len(result.failures),
    )
    return result
