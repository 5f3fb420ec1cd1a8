"""Exceptions raised at docweave's I/O boundaries.

The transformation core itself never raises for bad input: malformed markup,
unresolved references and missing extension targets all degrade gracefully.
"""

from __future__ import annotations


class DocweaveError(Exception):
    """Base class for all docweave errors."""


class ConfigError(DocweaveError):
    """Raised when a configuration file contains invalid values."""


class GraphLoadError(DocweaveError):
    """Raised when a graph file cannot be read or has an invalid shape."""
