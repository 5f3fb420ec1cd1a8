"""Docweave - turns XML documentation comments into link-resolved Markdown."""

__version__ = "0.1.0"
