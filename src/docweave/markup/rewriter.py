"""XML documentation markup -> CommonMark rewriter.

One annotation string goes in, one Markdown-safe string comes out.  Code
regions (fenced blocks, ``<code>`` elements, inline backtick spans and
``<c>`` tags) are moved into a stash first and replaced by placeholder
tokens, so the tag conversions and the final escape pass never see them.
The stash is restored as the very last step.

Conversion order:

1. code regions -> stash (``noescape`` content passes through untouched)
2. cross-reference tags (``see``/``seealso``, ``paramref``)
3. inline code -> stash
4. paragraphs, emphasis, hard breaks
5. lists
6. escape any remaining ``<``/``>``
7. collapse blank-line runs, trim, restore the stash
"""

from __future__ import annotations

import re
import textwrap
from typing import TYPE_CHECKING

from docweave.config import DocsConfig
from docweave.markup.lists import list_type, parse_list, render_list
from docweave.references.resolver import CrossReferenceResolver

if TYPE_CHECKING:
    from collections.abc import Callable

    from docweave.references.resolver import Resolution

NOESCAPE = "noescape"

_FLAGS = re.IGNORECASE | re.DOTALL

# Placeholder tokens use control characters, which annotation text never holds.
_STASH_OPEN = "\x02"
_STASH_CLOSE = "\x03"
_STASH_RE = re.compile(f"{_STASH_OPEN}(\\d+){_STASH_CLOSE}")

_NEEDS_WORK_RE = re.compile(r"<|```")

# Existing triple-backtick fence; both markers must start a line.
_FENCE = (
    r"(?P<fence>^[ \t]*```(?P<fence_lang>[^\s`]*)[^\n]*\n"
    r"(?P<fence_body>.*?)(?:\n|^)[ \t]*```[ \t]*(?=\n|\Z))"
)
_CODE_ELEMENT = (
    r"(?P<element><code(?=[\s>])(?P<element_attrs>[^>]*)>"
    r"(?P<element_body>.*?)</code\s*>)"
)
_CODE_LANGUAGE_ATTR_RE = re.compile(
    r"""(?<![\w-])(?:language|lang)\s*=\s*["']([^"']*)["']""", re.IGNORECASE
)
_CODE_REGION_RE = re.compile(f"{_FENCE}|{_CODE_ELEMENT}", _FLAGS | re.MULTILINE)
_CDATA_OPEN_RE = re.compile(r"^\s*<!\[CDATA\[")
_CDATA_CLOSE_RE = re.compile(r"\]\]>\s*$")
_TRIPLE_BACKTICK_RE = re.compile(r"(?<!`)```(?!`)")

_BACKTICK_SPAN_RE = re.compile(r"(?<!`)(`+)(?!`)(.+?)(?<!`)\1(?!`)")
_INLINE_CODE_RE = re.compile(r"<c\s*>(.*?)</c\s*>", _FLAGS)

_ATTR = r"\s*=\s*(?P<q>[\"'])(?P<value>.*?)(?P=q)"
_SEE_CREF_RE = re.compile(
    rf"<(?P<tag>see|seealso)\s+cref{_ATTR}\s*(?:/>|>(?P<label>.*?)</(?P=tag)\s*>)", _FLAGS
)
_SEE_HREF_RE = re.compile(
    rf"<(?P<tag>see|seealso)\s+href{_ATTR}\s*(?:/>|>(?P<label>.*?)</(?P=tag)\s*>)", _FLAGS
)
_SEE_LANGWORD_RE = re.compile(
    rf"<see\s+langword{_ATTR}\s*(?:/>|>\s*</see\s*>)", _FLAGS
)
_PARAMREF_RE = re.compile(
    rf"<(?P<tag>(?:type)?paramref)\s+name{_ATTR}\s*(?:/>|>\s*</(?P=tag)\s*>)", _FLAGS
)

_EMPTY_PARA_RE = re.compile(r"<para\s*/>", re.IGNORECASE)
_PARA_RE = re.compile(r"<para\s*>((?:(?!<para\s*>).)*?)</para\s*>", _FLAGS)
_BOLD_RE = re.compile(r"<b\s*>((?:(?!<b\s*>).)*?)</b\s*>", _FLAGS)
_ITALIC_RE = re.compile(r"<i\s*>((?:(?!<i\s*>).)*?)</i\s*>", _FLAGS)
_BR_RE = re.compile(r" ?<br\s*/?>[ \t]*\n?", re.IGNORECASE)
_LIST_RE = re.compile(r"<list(?P<attrs>[^>]*)>(?P<body>(?:(?!<list[\s>]).)*?)</list\s*>", _FLAGS)

_BLANK_RUN_RE = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")
_WS_NEWLINE_RE = re.compile(r"\s*\n\s*")


# ---------------------------------------------------------------------------
# Stash
# ---------------------------------------------------------------------------


class _Stash:
    """Holds protected text while the rest of the string is rewritten."""

    def __init__(self) -> None:
        self.items: list[str] = []

    def put(self, text: str) -> str:
        self.items.append(text)
        return f"{_STASH_OPEN}{len(self.items) - 1}{_STASH_CLOSE}"

    def restore(self, text: str) -> str:
        # Stashed text can itself hold placeholders (a link label with code).
        previous = None
        while previous != text:
            previous = text
            text = _STASH_RE.sub(lambda m: self.items[int(m.group(1))], text)
        return text


# ---------------------------------------------------------------------------
# Code helpers
# ---------------------------------------------------------------------------


def strip_cdata(code: str) -> str:
    """Remove a ``<![CDATA[ ... ]]>`` wrapper around code content."""
    if _CDATA_OPEN_RE.match(code) and _CDATA_CLOSE_RE.search(code):
        code = _CDATA_OPEN_RE.sub("", code, count=1)
        code = _CDATA_CLOSE_RE.sub("", code, count=1)
    return code


def _trim_blank_lines(code: str) -> list[str]:
    lines = code.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def dedent_code(code: str) -> str:
    """Drop leading/trailing blank lines and the indentation all lines share."""
    return textwrap.dedent("\n".join(_trim_blank_lines(code)))


def escape_fences(code: str) -> str:
    """Escape every run of exactly three backticks inside code content."""
    return _TRIPLE_BACKTICK_RE.sub(r"\\`\\`\\`", code)


def escape_angle_brackets(text: str) -> str:
    return text.replace("<", "&lt;").replace(">", "&gt;")


# ---------------------------------------------------------------------------
# Rewriter
# ---------------------------------------------------------------------------


class MarkupRewriter:
    """Rewrites annotation fields, resolving cross-references through *resolver*.

    The rewriter keeps no per-call state, so one instance can be shared by
    worker threads as long as the resolver's index is not mutated.
    """

    def __init__(
        self,
        resolver: CrossReferenceResolver | None = None,
        config: DocsConfig | None = None,
    ) -> None:
        self.config = config if config is not None else DocsConfig()
        self.resolver = resolver if resolver is not None else CrossReferenceResolver(config=self.config)

    def rewrite(self, text: str | None, resolutions: list[Resolution] | None = None) -> str | None:
        """Rewrite one annotation string.

        Parameters
        ----------
        text:
            Raw annotation text.  ``None`` and blank strings are returned
            unchanged, as is text without any tag or fence.
        resolutions:
            When given, every cross-reference resolved along the way is
            appended to it, so callers can report unresolved tokens.

        Returns
        -------
        str | None
            Markdown with no raw ``<``/``>`` outside code.
        """
        if text is None or not text.strip():
            return text
        if _NEEDS_WORK_RE.search(text) is None:
            return text

        sink: list[Resolution] = resolutions if resolutions is not None else []
        stash = _Stash()
        work = text.replace(_STASH_OPEN, "").replace(_STASH_CLOSE, "")

        work = _CODE_REGION_RE.sub(lambda m: self._code_region(m, stash), work)
        # Before backtick spans: generic ids such as T:List`1 carry backticks.
        work = self._cross_references(work, stash, sink)
        work = _BACKTICK_SPAN_RE.sub(lambda m: stash.put(m.group(0)), work)
        work = _INLINE_CODE_RE.sub(lambda m: _inline_code(m.group(1), stash), work)

        work = _formatting(work)
        work = _lists(work)

        work = escape_angle_brackets(work)
        work = _BLANK_RUN_RE.sub("\n\n", work).strip()
        return stash.restore(work)

    # --- code ---

    def _code_region(self, match: re.Match[str], stash: _Stash) -> str:
        if match.group("fence") is not None:
            if match.group("fence_lang").lower() == NOESCAPE:
                return stash.put(match.group("fence_body"))
            return stash.put(match.group("fence"))

        lang_match = _CODE_LANGUAGE_ATTR_RE.search(match.group("element_attrs"))
        language = lang_match.group(1).strip() if lang_match else ""
        body = strip_cdata(match.group("element_body"))
        if language.lower() == NOESCAPE:
            return stash.put("\n".join(_trim_blank_lines(body)))

        code = escape_fences(dedent_code(body))
        if not code.strip():
            return ""
        language = language or self.config.default_code_language
        return "\n\n" + stash.put(f"```{language}\n{code}\n```") + "\n\n"

    # --- references ---

    def _cross_references(self, text: str, stash: _Stash, sink: list[Resolution]) -> str:
        def _cref(match: re.Match[str]) -> str:
            resolution = self.resolver.resolve_symbol(match.group("value"))
            sink.append(resolution)
            label = (match.group("label") or "").strip()
            if label and resolution.target:
                return f"[{label}]({stash.put(resolution.target)})"
            return stash.put(resolution.to_markdown())

        def _href(match: re.Match[str]) -> str:
            label = (match.group("label") or "").strip()
            resolution = self.resolver.resolve_link(match.group("value"), label)
            sink.append(resolution)
            return f"[{resolution.display_name}]({stash.put(resolution.target or '')})"

        def _langword(match: re.Match[str]) -> str:
            resolution = self.resolver.resolve_keyword(match.group("value"))
            sink.append(resolution)
            return stash.put(resolution.to_markdown())

        text = _SEE_CREF_RE.sub(_cref, text)
        text = _SEE_HREF_RE.sub(_href, text)
        text = _SEE_LANGWORD_RE.sub(_langword, text)
        return _PARAMREF_RE.sub(lambda m: f"*{m.group('value').strip()}*", text)


def _inline_code(inner: str, stash: _Stash) -> str:
    code = _WS_NEWLINE_RE.sub(" ", inner).strip()
    if not code:
        return ""
    # Restore first so a backtick span already stashed inside is measured.
    code = stash.restore(code)
    if "`" in code:
        return stash.put(f"`` {code} ``")
    return stash.put(f"`{code}`")


def _emphasis(marker: str) -> Callable[[re.Match[str]], str]:
    def _replace(match: re.Match[str]) -> str:
        inner = match.group(1)
        core = inner.strip()
        if not core:
            return marker * 2
        lead = inner[: len(inner) - len(inner.lstrip())]
        trail = inner[len(inner.rstrip()):]
        return f"{lead}{marker}{core}{marker}{trail}"

    return _replace


_BOLD = _emphasis("**")
_ITALIC = _emphasis("*")


def _paragraph(match: re.Match[str]) -> str:
    content = match.group(1).strip()
    return f"\n\n{content}\n\n" if content else "\n\n"


def _formatting(text: str) -> str:
    text = _EMPTY_PARA_RE.sub("\n\n", text)
    # Innermost first: each pattern refuses to span a nested tag of its kind.
    previous = None
    while previous != text:
        previous = text
        text = _PARA_RE.sub(_paragraph, text)
        text = _BOLD_RE.sub(_BOLD, text)
        text = _ITALIC_RE.sub(_ITALIC, text)
    return _BR_RE.sub("  \n", text)


def _lists(text: str) -> str:
    def _replace(match: re.Match[str]) -> str:
        header, items = parse_list(match.group("body"))
        rendered = render_list(list_type(match.group("attrs")), header, items)
        return f"\n\n{rendered}\n\n" if rendered else "\n\n"

    previous = None
    while previous != text:
        previous = text
        text = _LIST_RE.sub(_replace, text)
    return text


def rewrite_markup(
    text: str | None,
    resolver: CrossReferenceResolver | None = None,
    config: DocsConfig | None = None,
) -> str | None:
    """Rewrite *text* with a throwaway :class:`MarkupRewriter`."""
    return MarkupRewriter(resolver, config).rewrite(text)
