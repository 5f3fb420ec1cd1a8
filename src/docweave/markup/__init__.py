"""Markup domain: XML documentation tags to CommonMark."""

from docweave.markup.lists import ListItem, parse_list, render_list
from docweave.markup.rewriter import (
    MarkupRewriter,
    dedent_code,
    escape_angle_brackets,
    escape_fences,
    rewrite_markup,
    strip_cdata,
)

__all__ = [
    "ListItem",
    "MarkupRewriter",
    "dedent_code",
    "escape_angle_brackets",
    "escape_fences",
    "parse_list",
    "render_list",
    "rewrite_markup",
    "strip_cdata",
]
