"""
File utilities for the OAS generator.

This module reads API description documents and writes generated source
with proper type annotations and documentation.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from py_oas_generator.errors import DocumentLoadError

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def load_document(file_path: str | Path) -> dict[str, Any]:
    """Load an OpenAPI document from a JSON or YAML file.

    Files ending in ``.yaml``/``.yml`` are read with PyYAML, everything else
    as JSON.

    Args:
        file_path: Path to the document.

    Returns:
        The parsed document.

    Raises:
        DocumentLoadError: If the file cannot be read, does not parse, or
            does not hold a mapping at the top level.
    """
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        msg = f"cannot read {path}: {e.strerror or e}"
        raise DocumentLoadError(msg) from e

    try:
        document = yaml.safe_load(text) if path.suffix.lower() in _YAML_SUFFIXES else json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        msg = f"invalid document {path}: {e}"
        raise DocumentLoadError(msg) from e

    if not isinstance(document, dict):
        msg = f"document {path} must contain a mapping at the top level"
        raise DocumentLoadError(msg)

    logger.debug("Loaded %s", path)
    return document


def write_output(content: str, output_path: Path | None = None) -> None:
    """Write generated source to ``output_path``, or to stdout when None.

    Args:
        content: The generated source text.
        output_path: Target file; parent directories are created.
    """
    if output_path is None:
        sys.stdout.write(content)
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    logger.debug("Wrote %d bytes to %s", len(content), output_path)
