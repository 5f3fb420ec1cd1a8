"""Run configuration: link layout, external references, and worker settings.

Configurable via a YAML file, either at the top level or under a
``docweave`` section.  Missing keys fall back to the defaults below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

import yaml

from docweave.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

NAMESPACE_MODES = frozenset({"file", "folder"})

DEFAULT_EXTERNAL_NAMESPACES = ("System.", "Microsoft.", "Windows.")
DEFAULT_EXTERNAL_DOCS_URL = "https://learn.microsoft.com/dotnet/api/"


@dataclass(frozen=True)
class DocsConfig:
    """Settings shared by the relocator, resolver, and rewriter."""

    # Link layout
    api_reference_path: str = "api-reference"
    namespace_mode: str = "file"
    namespace_separator: str = "-"
    # Extension relocation
    create_external_type_references: bool = True
    # Markup
    default_code_language: str = "csharp"
    # External documentation heuristic
    external_namespaces: tuple[str, ...] = DEFAULT_EXTERNAL_NAMESPACES
    external_docs_base_url: str = DEFAULT_EXTERNAL_DOCS_URL
    # Rewrite phase
    max_workers: int = 4
    entity_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.namespace_mode not in NAMESPACE_MODES:
            msg = (
                f"namespace_mode must be one of {sorted(NAMESPACE_MODES)}, "
                f"got {self.namespace_mode!r}"
            )
            raise ConfigError(msg)
        if len(self.namespace_separator) != 1:
            msg = f"namespace_separator must be a single character, got {self.namespace_separator!r}"
            raise ConfigError(msg)
        if self.max_workers < 1:
            msg = f"max_workers must be at least 1, got {self.max_workers}"
            raise ConfigError(msg)
        if self.entity_timeout is not None and self.entity_timeout <= 0:
            msg = f"entity_timeout must be positive, got {self.entity_timeout}"
            raise ConfigError(msg)


def config_from_dict(data: dict[str, Any]) -> DocsConfig:
    """Build a :class:`DocsConfig` from a mapping, ignoring unknown keys."""
    known = {f.name for f in fields(DocsConfig)}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.debug("Ignoring unknown config key %r", key)
            continue
        kwargs[key] = value

    try:
        if "external_namespaces" in kwargs:
            kwargs["external_namespaces"] = tuple(str(ns) for ns in kwargs["external_namespaces"])
        if "max_workers" in kwargs:
            kwargs["max_workers"] = int(kwargs["max_workers"])
        if kwargs.get("entity_timeout") is not None:
            kwargs["entity_timeout"] = float(kwargs["entity_timeout"])
        if "create_external_type_references" in kwargs:
            kwargs["create_external_type_references"] = bool(
                kwargs["create_external_type_references"]
            )
        for str_key in (
            "api_reference_path",
            "namespace_mode",
            "namespace_separator",
            "default_code_language",
            "external_docs_base_url",
        ):
            if str_key in kwargs:
                kwargs[str_key] = str(kwargs[str_key])
    except (TypeError, ValueError) as exc:
        msg = f"Invalid configuration value: {exc}"
        raise ConfigError(msg) from exc

    return DocsConfig(**kwargs)


def load_config(config_path: Path | None) -> DocsConfig:
    """Load a :class:`DocsConfig` from a YAML file.

    Falls back to defaults for a missing path, a missing file, an unreadable
    file, or a file without a mapping at the top.  Invalid values raise
    :class:`~docweave.errors.ConfigError`.
    """
    if config_path is None or not config_path.is_file():
        return DocsConfig()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using default configuration", config_path)
        return DocsConfig()

    if not isinstance(data, dict):
        return DocsConfig()

    section = data.get("docweave", data)
    if not isinstance(section, dict):
        return DocsConfig()

    return config_from_dict(section)
