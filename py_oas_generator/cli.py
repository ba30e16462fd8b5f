#!/usr/bin/env python3
"""Command-line interface for the Python OAS Generator."""

import argparse
import logging
import sys
import traceback
from pathlib import Path

from py_oas_generator.config import (
    DEFAULT_GENERATE_TARGETS,
    GENERATE_TARGETS,
    Configuration,
    GenerationOptions,
    default_package_name,
    load_configuration,
)
from py_oas_generator.errors import (
    ConfigurationError,
    DocumentLoadError,
    FormatterSyntaxError,
    GeneratorError,
)
from py_oas_generator.generator.template_engine import PythonCodeGenerator, PythonTemplateEngine
from py_oas_generator.parser.oas_parser import OASParser
from py_oas_generator.utils.file_utils import write_output
from py_oas_generator.utils.log import configure_logging

logger = logging.getLogger(__name__)

# Exit codes for better error reporting
EXIT_SUCCESS = 0
EXIT_LOAD_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_GENERATION_ERROR = 3
EXIT_FORMAT_ERROR = 4


def _comma_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_command_line_args(args: list[str] | None = None) -> argparse.Namespace:
    """Create and configure the command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="py-oas-generator",
        description="Generate a typed Python module from an OpenAPI 3 document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s petstore.yaml
  %(prog)s petstore.yaml -o petstore.py --generate types,client
  %(prog)s petstore.yaml --config codegen.yaml --verbose
        """,
    )
    parser.add_argument(
        "spec_file",
        type=Path,
        help="Path to OpenAPI document (JSON or YAML)",
        metavar="SPEC_FILE",
    )
    parser.add_argument(
        "--package",
        "-p",
        help="Package name for the generated module (default: derived from SPEC_FILE)",
        dest="package_name",
    )
    parser.add_argument(
        "--generate",
        "-g",
        type=_comma_list,
        help=f"Comma-separated list of code to generate; valid options: {', '.join(GENERATE_TARGETS)} "
        f"(default: {','.join(DEFAULT_GENERATE_TARGETS)})",
        dest="generate",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Where to write generated code; stdout is the default",
        dest="output",
    )
    parser.add_argument(
        "--exclude-schemas",
        type=_comma_list,
        help="Comma-separated component schema names to leave out",
        dest="exclude_schemas",
    )
    parser.add_argument(
        "--templates",
        "-t",
        type=Path,
        help="Custom template directory (optional)",
        dest="template_dir",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="YAML configuration file; command-line flags take precedence",
        dest="config",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    return parser.parse_args(args)


def build_options(parsed_args: argparse.Namespace) -> tuple[GenerationOptions, Path | None]:
    """Merge the configuration file and flags into generation options.

    Returns:
        The options and the output file (None for stdout).
    """
    config = load_configuration(parsed_args.config) if parsed_args.config else Configuration()

    targets = parsed_args.generate or config.generate or list(DEFAULT_GENERATE_TARGETS)
    options = GenerationOptions.from_targets(
        targets,
        exclude_schema_names=parsed_args.exclude_schemas or config.exclude_schemas or [],
        package_name=parsed_args.package_name or config.package or default_package_name(parsed_args.spec_file),
        template_dir=parsed_args.template_dir or config.templates,
    )
    return options, parsed_args.output or config.output


def generate_from_spec(spec_file: Path, options: GenerationOptions) -> str:
    """Generate Python source from an OpenAPI document file."""
    parsed_spec = OASParser(options.exclude_schema_names).parse_file(spec_file)
    generator = PythonCodeGenerator(PythonTemplateEngine(options.template_dir))
    return generator.generate(parsed_spec, options)


def main(args: list[str] | None = None) -> int:
    """Generate a Python module from an OpenAPI document."""
    parsed_args = parse_command_line_args(args)
    configure_logging(logging.DEBUG if parsed_args.verbose else logging.WARNING)

    try:
        options, output = build_options(parsed_args)
        code = generate_from_spec(parsed_args.spec_file, options)
        write_output(code, output)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except DocumentLoadError as e:
        print(f"Error loading OpenAPI document: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR
    except FormatterSyntaxError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FORMAT_ERROR
    except (GeneratorError, OSError) as e:
        print(f"Error generating code: {e}", file=sys.stderr)
        if parsed_args.verbose:
            traceback.print_exc()
        return EXIT_GENERATION_ERROR

    if output is not None:
        logger.info("Python module generated successfully in %s", output)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
