"""Shared test fixtures for docweave."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from docweave.graph.entities import (
    Assembly,
    DocGraph,
    DocType,
    Member,
    MemberKind,
    Namespace,
    Parameter,
    TypeKind,
)

if TYPE_CHECKING:
    from pathlib import Path


SAMPLE_GRAPH_YAML = """\
assemblies:
  - name: Acme.Core
    namespaces:
      - name: Acme.Core
        types:
          - name: Widget
            summary: A <b>spinning</b> widget.
            members:
              - name: Spin
                kind: method
                summary: Spins the widget. See <see cref="T:Acme.Core.Color"/>.
                parameters:
                  - name: speed
                    type: System.Int32
                    usage: Use <c>0</c> to stop.
          - name: Color
            kind: enum
            members:
              - name: Red
                kind: field
      - name: Acme.Core.Extensions
        types:
          - name: ListExtensions
            members:
              - name: Shuffle
                kind: method
                extension: true
                extends: System.Collections.Generic.List<T>
                summary: Shuffles the list.
"""


@pytest.fixture()
def graph() -> DocGraph:
    """Small graph: one real type, one enum, one helper with an extension method."""
    g = DocGraph()
    g.add(Assembly(id="A:Acme.Core", name="Acme.Core"))
    g.add(Namespace(id="N:Acme.Core", name="Acme.Core", assembly_id="A:Acme.Core"))
    g.add(
        Namespace(
            id="N:Acme.Core.Extensions",
            name="Acme.Core.Extensions",
            assembly_id="A:Acme.Core",
        )
    )
    g.add(
        DocType(
            id="T:Acme.Core.Widget",
            name="Widget",
            full_name="Acme.Core.Widget",
            namespace_id="N:Acme.Core",
            summary="A <b>spinning</b> widget.",
        )
    )
    g.add(
        Member(
            id="M:Acme.Core.Widget.Spin",
            name="Spin",
            member_kind=MemberKind.METHOD,
            owner_id="T:Acme.Core.Widget",
            summary='Spins the widget. See <see cref="T:Acme.Core.Color"/>.',
        )
    )
    g.add(
        Parameter(
            id="M:Acme.Core.Widget.Spin/speed",
            name="speed",
            member_id="M:Acme.Core.Widget.Spin",
            type_name="System.Int32",
            usage="Use <c>0</c> to stop.",
        )
    )
    g.add(
        DocType(
            id="T:Acme.Core.Color",
            name="Color",
            full_name="Acme.Core.Color",
            namespace_id="N:Acme.Core",
            type_kind=TypeKind.ENUM,
        )
    )
    g.add(
        Member(
            id="F:Acme.Core.Color.Red",
            name="Red",
            member_kind=MemberKind.FIELD,
            owner_id="T:Acme.Core.Color",
        )
    )
    g.add(
        DocType(
            id="T:Acme.Core.Extensions.ListExtensions",
            name="ListExtensions",
            full_name="Acme.Core.Extensions.ListExtensions",
            namespace_id="N:Acme.Core.Extensions",
        )
    )
    g.add(
        Member(
            id="M:Acme.Core.Extensions.ListExtensions.Shuffle",
            name="Shuffle",
            owner_id="T:Acme.Core.Extensions.ListExtensions",
            is_extension=True,
            extended_type="System.Collections.Generic.List<T>",
            summary="Shuffles the list.",
        )
    )
    return g


@pytest.fixture()
def graph_file(tmp_path: Path) -> Path:
    """The same graph as :func:`graph`, written as YAML."""
    path = tmp_path / "graph.yml"
    path.write_text(SAMPLE_GRAPH_YAML, encoding="utf-8")
    return path
