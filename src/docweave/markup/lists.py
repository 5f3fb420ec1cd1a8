"""``<list>`` conversion: bullet, numbered, and table lists to Markdown."""

from __future__ import annotations

import re
from dataclasses import dataclass

LIST_TYPES = frozenset({"bullet", "number", "table"})

_TYPE_ATTR_RE = re.compile(r"""\btype\s*=\s*["']\s*(\w+)\s*["']""", re.IGNORECASE)
_ITEM_RE = re.compile(r"<item\s*>(.*?)</item\s*>", re.IGNORECASE | re.DOTALL)
_HEADER_RE = re.compile(r"<listheader\s*>(.*?)</listheader\s*>", re.IGNORECASE | re.DOTALL)
_TERM_RE = re.compile(r"<term\s*>(.*?)</term\s*>", re.IGNORECASE | re.DOTALL)
_DESCRIPTION_RE = re.compile(r"<description\s*>(.*?)</description\s*>", re.IGNORECASE | re.DOTALL)
_PART_TAG_RE = re.compile(r"</?(?:term|description)\s*>", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ListItem:
    """One ``<item>`` (or ``<listheader>``) with its optional parts."""

    term: str = ""
    description: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.term and not self.description

    @property
    def text(self) -> str:
        """Bullet/number rendering: description if present, else term."""
        return self.description or self.term


def list_type(attrs: str) -> str:
    """Read the ``type`` attribute; a missing or unknown type means bullet."""
    match = _TYPE_ATTR_RE.search(attrs)
    if match is None:
        return "bullet"
    value = match.group(1).lower()
    return value if value in LIST_TYPES else "bullet"


def _clean(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def parse_item(body: str) -> ListItem:
    """Split an item body into term and description.

    An item with neither ``<term>`` nor ``<description>`` uses its whole
    text as the description.
    """
    term_match = _TERM_RE.search(body)
    desc_match = _DESCRIPTION_RE.search(body)
    if term_match is None and desc_match is None:
        return ListItem(description=_clean(_PART_TAG_RE.sub("", body)))
    return ListItem(
        term=_clean(term_match.group(1)) if term_match else "",
        description=_clean(desc_match.group(1)) if desc_match else "",
    )


def parse_list(body: str) -> tuple[ListItem | None, list[ListItem]]:
    """Return ``(header, items)`` for the inside of a ``<list>`` element."""
    header_match = _HEADER_RE.search(body)
    header = parse_item(header_match.group(1)) if header_match else None
    if header_match is not None:
        body = body[: header_match.start()] + body[header_match.end():]
    items = [parse_item(m.group(1)) for m in _ITEM_RE.finditer(body)]
    return header, items


def _cell(text: str) -> str:
    return text.replace("|", "\\|")


def render_list(kind: str, header: ListItem | None, items: list[ListItem]) -> str:
    """Render parsed list parts as Markdown.

    Empty items contribute nothing, and numbered lists count only the items
    that were rendered.  Returns ``""`` when nothing renders.
    """
    rendered = [item for item in items if not item.is_empty]
    if not rendered:
        return ""

    if kind == "number":
        lines = [f"{n}. {item.text}" for n, item in enumerate(rendered, 1)]
        return "\n".join(lines)

    if kind == "table":
        if header is not None:
            lines = [
                f"| {_cell(header.term or 'Term')} | {_cell(header.description or 'Description')} |",
                "| --- | --- |",
            ]
            lines.extend(f"| {_cell(item.term)} | {_cell(item.description)} |" for item in rendered)
            return "\n".join(lines)

        blocks: list[str] = []
        for item in rendered:
            if item.term and item.description:
                blocks.append(f"**{item.term}**\n{item.description}")
            elif item.term:
                blocks.append(f"**{item.term}**")
            else:
                blocks.append(item.description)
        return "\n\n".join(blocks)

    return "\n".join(f"- {item.text}" for item in rendered)
