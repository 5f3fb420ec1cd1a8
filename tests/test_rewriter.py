"""Tests for docweave.markup.rewriter — XML doc tags to CommonMark."""

from __future__ import annotations

import re

import pytest

from docweave.config import DocsConfig
from docweave.graph.entities import DocGraph, ResolutionState
from docweave.markup.rewriter import (
    MarkupRewriter,
    dedent_code,
    escape_fences,
    rewrite_markup,
    strip_cdata,
)
from docweave.references.keywords import KEYWORD_URLS
from docweave.references.resolver import CrossReferenceResolver, Resolution


@pytest.fixture()
def rewriter() -> MarkupRewriter:
    return MarkupRewriter()


@pytest.fixture()
def linked(graph: DocGraph) -> MarkupRewriter:
    """Rewriter resolving against the shared sample graph."""
    return MarkupRewriter(CrossReferenceResolver.from_graph(graph))


# --- scenarios ---


class TestScenarios:
    def test_inline_code(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<c>Foo</c> bar") == "`Foo` bar"

    def test_code_block_default_language(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<code>\nvar x=1;\n</code>") == "```csharp\nvar x=1;\n```"

    def test_langword_null(self, rewriter: MarkupRewriter) -> None:
        result = rewriter.rewrite('<see langword="null"/>')
        assert result == f"[`null`]({KEYWORD_URLS['null']})"

    def test_numbered_list_skips_empty_items(self, rewriter: MarkupRewriter) -> None:
        text = (
            '<list type="number">'
            "<item><description>A</description></item>"
            "<item><description></description></item>"
            "<item><description>B</description></item>"
            "</list>"
        )
        assert rewriter.rewrite(text) == "1. A\n2. B"


# --- pass-through ---


class TestPassThrough:
    @pytest.mark.parametrize("text", [None, "", "   ", "\n\n"])
    def test_absent_or_blank(self, rewriter: MarkupRewriter, text: str | None) -> None:
        assert rewriter.rewrite(text) == text

    def test_plain_text_unchanged(self, rewriter: MarkupRewriter) -> None:
        text = "Nothing to do here.\n\n\n\nNot even   spacing."
        assert rewriter.rewrite(text) == text

    def test_module_function(self) -> None:
        assert rewrite_markup("<b>x</b>") == "**x**"


# --- paragraphs, emphasis, breaks ---


class TestFormatting:
    def test_paragraphs(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<para>First</para><para>Second</para>") == "First\n\nSecond"

    def test_empty_paragraph_is_a_break(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("A<para/>B") == "A\n\nB"
        assert rewriter.rewrite("A<para></para>B") == "A\n\nB"

    def test_paragraph_tags_are_case_insensitive(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<PARA>Loud</PARA>") == "Loud"

    def test_bold_and_italic(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<b>bold</b> and <i>italic</i>") == "**bold** and *italic*"

    def test_italic_inside_bold(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<b>text <i>inner</i>  more</b>") == "**text *inner*  more**"

    def test_bold_inside_italic(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<i><b>x</b></i>") == "***x***"

    def test_empty_emphasis_collapses(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<b></b>") == "****"
        assert rewriter.rewrite("a<i></i>b") == "a**b"

    def test_emphasis_whitespace_moves_outside_markers(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("a<b> word </b>b") == "a **word** b"

    @pytest.mark.parametrize(
        "text",
        ["a<br/>b", "a<br />b", "a <br/>b", "a<br>b", "a<BR/>b", "a<br/>\nb"],
    )
    def test_line_break_variants(self, rewriter: MarkupRewriter, text: str) -> None:
        assert rewriter.rewrite(text) == "a  \nb"


# --- code ---


class TestCode:
    def test_inline_code_trims(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("Call <c>  Run()  </c> now") == "Call `Run()` now"

    def test_inline_code_keeps_tag_like_text(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<c>List<T></c>") == "`List<T>`"

    def test_empty_inline_code_disappears(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("a <c></c>b") == "a b"

    def test_inline_code_with_backtick(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<c>a`b</c>") == "`` a`b ``"

    def test_language_attribute(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite('<code language="python">print(1)</code>') == "```python\nprint(1)\n```"
        assert rewriter.rewrite('<code lang="js">f()</code>') == "```js\nf()\n```"

    def test_language_attribute_after_other_attributes(self, rewriter: MarkupRewriter) -> None:
        text = '<code title="Example" language="python">print(1)</code>'
        assert rewriter.rewrite(text) == "```python\nprint(1)\n```"
        assert rewriter.rewrite('<code data-lang="js">f()</code>') == "```csharp\nf()\n```"

    def test_configured_default_language(self) -> None:
        rewriter = MarkupRewriter(config=DocsConfig(default_code_language="vb"))
        assert rewriter.rewrite("<code>Dim x</code>") == "```vb\nDim x\n```"

    def test_code_is_dedented_verbatim(self, rewriter: MarkupRewriter) -> None:
        text = "<code>\n    if (x)\n    {\n        y();\n    }\n</code>"
        assert rewriter.rewrite(text) == "```csharp\nif (x)\n{\n    y();\n}\n```"

    def test_code_is_not_rewritten(self, rewriter: MarkupRewriter) -> None:
        text = "<code>var a = b < c && <b>d</b>;</code>"
        assert rewriter.rewrite(text) == "```csharp\nvar a = b < c && <b>d</b>;\n```"

    def test_cdata_wrapper_stripped(self, rewriter: MarkupRewriter) -> None:
        text = "<code><![CDATA[if (a < b) { }]]></code>"
        assert rewriter.rewrite(text) == "```csharp\nif (a < b) { }\n```"

    def test_embedded_fence_escaped(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite('<code>var s = "```";</code>') == '```csharp\nvar s = "\\`\\`\\`";\n```'

    def test_empty_code_block_disappears(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("Before <code>\n\n</code>After") == "Before After"

    def test_code_block_separated_from_text(self, rewriter: MarkupRewriter) -> None:
        result = rewriter.rewrite("Example:<code>Run();</code>Done.")
        assert result == "Example:\n\n```csharp\nRun();\n```\n\nDone."

    def test_existing_fence_kept(self, rewriter: MarkupRewriter) -> None:
        text = "Text\n```js\nlet a = <b>1</b>;\n```\nafter <b>x</b>"
        assert rewriter.rewrite(text) == "Text\n```js\nlet a = <b>1</b>;\n```\nafter **x**"

    def test_backtick_span_exempt_from_escaping(self, rewriter: MarkupRewriter) -> None:
        text = "Returns `Container<T>` always <b>now</b>"
        assert rewriter.rewrite(text) == "Returns `Container<T>` always **now**"


class TestNoescape:
    def test_fence_markers_removed(self, rewriter: MarkupRewriter) -> None:
        text = "Intro\n```noescape\n<Tabs>\n  <Tab/>\n</Tabs>\n```\nAfter"
        assert rewriter.rewrite(text) == "Intro\n<Tabs>\n  <Tab/>\n</Tabs>\nAfter"

    def test_code_element(self, rewriter: MarkupRewriter) -> None:
        text = 'See <code language="noescape"><Badge /></code> here'
        assert rewriter.rewrite(text) == "See <Badge /> here"

    def test_content_byte_for_byte(self, rewriter: MarkupRewriter) -> None:
        body = "  <b>raw</b>\n\n\n```inner```  "
        text = f"```noescape\n{body}\n```"
        assert rewriter.rewrite(text) == body


# --- cross references ---


class TestCrossReferences:
    def test_href_default_label(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite('<see href="https://example.com/a_b"/>') == "[link](https://example.com/a_b)"

    def test_href_with_label(self, rewriter: MarkupRewriter) -> None:
        text = '<see href="https://example.com">Example <b>site</b></see>'
        assert rewriter.rewrite(text) == "[Example **site**](https://example.com)"

    def test_unknown_keyword_is_plain_code(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite('<see langword="whatever"/>') == "`whatever`"

    def test_keyword_case_insensitive(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite('<see langword="True"/>') == f"[`true`]({KEYWORD_URLS['true']})"

    def test_unresolved_symbol(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite('<see cref="T:Acme.Missing"/>') == "`Missing`"

    def test_external_symbol(self, rewriter: MarkupRewriter) -> None:
        result = rewriter.rewrite('<see cref="T:System.String"/>')
        assert result == "[String](https://learn.microsoft.com/dotnet/api/system.string)"

    def test_internal_type(self, linked: MarkupRewriter) -> None:
        result = linked.rewrite('See <see cref="T:Acme.Core.Color"/>.')
        assert result == "See [Color](/api-reference/Color)."

    def test_internal_method_with_parameters(self, linked: MarkupRewriter) -> None:
        result = linked.rewrite('<see cref="M:Acme.Core.Widget.Spin(System.Int32)"/>')
        assert result == "[Widget.Spin](/api-reference/Widget#spin)"

    def test_enum_field_alias(self, linked: MarkupRewriter) -> None:
        assert linked.rewrite('<see cref="Color.Red"/>') == "[Color.Red](/api-reference/Color#red)"

    def test_cref_with_label(self, linked: MarkupRewriter) -> None:
        result = linked.rewrite('<see cref="T:Acme.Core.Widget">the widget</see>')
        assert result == "[the widget](/api-reference/Widget)"

    def test_seealso_inline(self, linked: MarkupRewriter) -> None:
        assert linked.rewrite('<seealso cref="T:Acme.Core.Widget"/>') == "[Widget](/api-reference/Widget)"

    @pytest.mark.parametrize("tag", ["paramref", "typeparamref"])
    def test_parameter_references(self, rewriter: MarkupRewriter, tag: str) -> None:
        assert rewriter.rewrite(f'Uses <{tag} name="count"/>.') == "Uses *count*."

    def test_unsupported_see_variant_escaped(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite('<see foo="x"/>') == '&lt;see foo="x"/&gt;'

    def test_resolutions_collected(self, linked: MarkupRewriter) -> None:
        sink: list[Resolution] = []
        linked.rewrite(
            '<see cref="T:Acme.Core.Color"/> <see cref="T:Acme.Nope"/> <see langword="null"/>',
            sink,
        )
        assert [r.state for r in sink] == [
            ResolutionState.RESOLVED_INTERNAL,
            ResolutionState.UNRESOLVED,
            ResolutionState.RESOLVED_EXTERNAL,
        ]


# --- escaping ---


class TestEscaping:
    def test_stray_angle_brackets(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("a < b and c > d") == "a &lt; b and c &gt; d"

    def test_unknown_tags(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<unknown>tag</unknown>") == "&lt;unknown&gt;tag&lt;/unknown&gt;"

    def test_unbalanced_tag(self, rewriter: MarkupRewriter) -> None:
        assert rewriter.rewrite("<b>never closed") == "&lt;b&gt;never closed"

    def test_no_raw_markup_outside_code(self, rewriter: MarkupRewriter) -> None:
        text = "<para>x <foo> <b>y</b> <c>List<T></c></para><list><item>z<bar/></item></list>"
        result = rewriter.rewrite(text)
        assert result is not None
        outside_code = re.sub(r"`[^`]*`", "", result)
        assert "<" not in outside_code
        assert ">" not in outside_code


# --- idempotence ---

SAMPLES = [
    "<c>Foo</c> bar",
    "<code>\nvar x=1;\n</code>",
    '<see langword="null"/>',
    "<para>First</para><para>Second <b>bold <i>it</i></b></para>",
    "a<br/>b <b></b> <i></i>",
    "a < b > c",
    "Returns `Container<T>` <c>a`b</c>",
    '<code>var s = "```";\n  indented</code>trailing',
    "Text\n```js\nlet a = <b>1</b>;\n```\nafter <b>x</b>",
    '<see href="https://example.com"/> and <see cref="T:System.Collections.Generic.List`1"/>',
    '<list type="table"><listheader><term>Name</term><description>Use</description></listheader>'
    "<item><term>a|b</term><description>c</description></item></list>",
    '<list type="table"><item><term>T</term><description>D</description></item>'
    "<item><term>only</term></item></list>",
    '<list type="bullet"><item><term>x</term></item><item></item></list>',
    "&lt;already&gt; escaped",
]


class TestIdempotence:
    @pytest.mark.parametrize("text", SAMPLES)
    def test_rewrite_twice_is_rewrite_once(self, rewriter: MarkupRewriter, text: str) -> None:
        once = rewriter.rewrite(text)
        assert rewriter.rewrite(once) == once


# --- helpers ---


class TestHelpers:
    def test_dedent_code_drops_blank_edges(self) -> None:
        assert dedent_code("\n\n   a\n     b\n\n") == "a\n  b"

    def test_strip_cdata_requires_both_markers(self) -> None:
        assert strip_cdata("<![CDATA[x]]>") == "x"
        assert strip_cdata("<![CDATA[x") == "<![CDATA[x"

    def test_escape_fences_only_exact_triples(self) -> None:
        assert escape_fences("``` ```` ``") == "\\`\\`\\` ```` ``"
