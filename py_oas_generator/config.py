"""
Generation options and the YAML configuration file.

A configuration file mirrors the command line::

    package: petstore
    generate: [types, client, server]
    output: petstore.py
    exclude-schemas: [Error]
    templates: ./my-templates

Command-line flags override values read from the file.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import yaml

from py_oas_generator.errors import ConfigurationError
from py_oas_generator.utils.string_case import camelcase

logger = logging.getLogger(__name__)

GENERATE_TARGETS: Final = ("types", "client", "server", "skip-fmt")
DEFAULT_GENERATE_TARGETS: Final = ("types", "client", "server")

_CONFIG_KEYS: Final = frozenset({"package", "generate", "output", "exclude-schemas", "templates"})


@dataclass
class GenerationOptions:
    """Options of one generation run.

    Attributes:
        generate_types: Emit the constants and type definition sections.
        generate_client: Emit the client and client-with-responses sections.
        generate_server_stubs: Emit the server scaffold.
        exclude_schema_names: Component schemas to leave out of the output.
        package_name: Name used in the generated module docstring.
        skip_format: Return the raw rendered text without formatting.
        template_dir: Directory overriding the bundled templates.
    """

    generate_types: bool = True
    generate_client: bool = True
    generate_server_stubs: bool = True
    exclude_schema_names: list[str] = field(default_factory=list)
    package_name: str = "api"
    skip_format: bool = False
    template_dir: Path | None = None

    @classmethod
    def from_targets(cls, targets: Iterable[str], **kwargs: Any) -> GenerationOptions:  # noqa: ANN401
        """Build options from generate targets such as ``["types", "client"]``.

        Raises:
            ConfigurationError: For an unknown target.
        """
        selected = set()
        for target in targets:
            name = target.strip()
            if not name:
                continue
            if name not in GENERATE_TARGETS:
                msg = f"unknown generate option {name!r}; valid options: {', '.join(GENERATE_TARGETS)}"
                raise ConfigurationError(msg)
            selected.add(name)
        return cls(
            generate_types="types" in selected,
            generate_client="client" in selected,
            generate_server_stubs="server" in selected,
            skip_format="skip-fmt" in selected,
            **kwargs,
        )


@dataclass
class Configuration:
    """Contents of a configuration file; unset keys are None."""

    package: str | None = None
    generate: list[str] | None = None
    output: Path | None = None
    exclude_schemas: list[str] | None = None
    templates: Path | None = None


def _string_list(value: Any, key: str) -> list[str]:  # noqa: ANN401
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    msg = f"configuration key {key!r} must be a list of strings"
    raise ConfigurationError(msg)


def load_configuration(path: Path) -> Configuration:
    """Read a YAML configuration file.

    Raises:
        ConfigurationError: If the file is unreadable, not a mapping, or
            carries unknown keys.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        msg = f"cannot load configuration {path}: {e}"
        raise ConfigurationError(msg) from e

    if not isinstance(data, dict):
        msg = f"configuration {path} must be a mapping"
        raise ConfigurationError(msg)
    unknown = sorted(set(data) - _CONFIG_KEYS)
    if unknown:
        msg = f"unknown configuration keys in {path}: {', '.join(unknown)}"
        raise ConfigurationError(msg)

    logger.debug("Loaded configuration from %s", path)
    return Configuration(
        package=str(data["package"]) if data.get("package") else None,
        generate=_string_list(data["generate"], "generate") if "generate" in data else None,
        output=Path(data["output"]) if data.get("output") else None,
        exclude_schemas=_string_list(data["exclude-schemas"], "exclude-schemas") if "exclude-schemas" in data else None,
        templates=Path(data["templates"]) if data.get("templates") else None,
    )


def default_package_name(document_path: Path) -> str:
    """Package name derived from the document file name.

    Example:
        >>> default_package_name(Path("petstore-expanded.v1.yaml"))
        'petstoreExpanded'
    """
    stem = document_path.name.split(".")[0]
    return camelcase(stem) or "api"
