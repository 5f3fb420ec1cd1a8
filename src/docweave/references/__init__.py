"""References domain: documentation ids, keyword table, index and resolver."""

from docweave.references.keywords import KEYWORD_URLS, keyword_url
from docweave.references.resolver import (
    CrossReferenceResolver,
    LinkTarget,
    ReferenceIndex,
    Resolution,
    classify_reference,
    display_type_name,
)

__all__ = [
    "KEYWORD_URLS",
    "CrossReferenceResolver",
    "LinkTarget",
    "ReferenceIndex",
    "Resolution",
    "classify_reference",
    "display_type_name",
    "keyword_url",
]
