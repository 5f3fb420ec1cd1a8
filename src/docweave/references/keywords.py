"""Language keyword -> reference page URL table for ``<see langword="..."/>``."""

from __future__ import annotations

_KEYWORDS_URL = "https://learn.microsoft.com/dotnet/csharp/language-reference/keywords"
_BUILTIN_URL = "https://learn.microsoft.com/dotnet/csharp/language-reference/builtin-types"
_OPERATORS_URL = "https://learn.microsoft.com/dotnet/csharp/language-reference/operators"
_STATEMENTS_URL = "https://learn.microsoft.com/dotnet/csharp/language-reference/statements"

KEYWORD_URLS: dict[str, str] = {
    "null": f"{_KEYWORDS_URL}/null",
    "true": f"{_BUILTIN_URL}/bool",
    "false": f"{_BUILTIN_URL}/bool",
    "void": f"{_BUILTIN_URL}/void",
    "async": f"{_KEYWORDS_URL}/async",
    "await": f"{_OPERATORS_URL}/await",
    "static": f"{_KEYWORDS_URL}/static",
    "abstract": f"{_KEYWORDS_URL}/abstract",
    "virtual": f"{_KEYWORDS_URL}/virtual",
    "override": f"{_KEYWORDS_URL}/override",
    "sealed": f"{_KEYWORDS_URL}/sealed",
    "new": f"{_OPERATORS_URL}/new-operator",
    "this": f"{_KEYWORDS_URL}/this",
    "base": f"{_KEYWORDS_URL}/base",
    "ref": f"{_KEYWORDS_URL}/ref",
    "out": f"{_KEYWORDS_URL}/out-parameter-modifier",
    "in": f"{_KEYWORDS_URL}/in-parameter-modifier",
    "params": f"{_KEYWORDS_URL}/params",
    "readonly": f"{_KEYWORDS_URL}/readonly",
    "const": f"{_KEYWORDS_URL}/const",
    "default": f"{_OPERATORS_URL}/default",
    "is": f"{_OPERATORS_URL}/is",
    "as": f"{_OPERATORS_URL}/type-testing-and-cast#as-operator",
    "typeof": f"{_OPERATORS_URL}/type-testing-and-cast#typeof-operator",
    "nameof": f"{_OPERATORS_URL}/nameof",
    "using": f"{_STATEMENTS_URL}/using",
    "yield": f"{_STATEMENTS_URL}/yield",
    "lock": f"{_STATEMENTS_URL}/lock",
    "volatile": f"{_KEYWORDS_URL}/volatile",
    "internal": f"{_KEYWORDS_URL}/internal",
    "public": f"{_KEYWORDS_URL}/public",
    "private": f"{_KEYWORDS_URL}/private",
    "protected": f"{_KEYWORDS_URL}/protected",
    "interface": f"{_KEYWORDS_URL}/interface",
    "class": f"{_KEYWORDS_URL}/class",
    "struct": f"{_BUILTIN_URL}/struct",
    "enum": f"{_BUILTIN_URL}/enum",
    "delegate": f"{_BUILTIN_URL}/reference-types#the-delegate-type",
    "event": f"{_KEYWORDS_URL}/event",
}


def keyword_url(keyword: str) -> str | None:
    """Return the reference URL for *keyword* (case-insensitive), or ``None``."""
    return KEYWORD_URLS.get(keyword.strip().lower())
