# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import json
import sys
from typing import Any

import click

from tarolas.errors import StorageError

VALUE_FORMAT = "value"
JSON_FORMAT = "json"
JSON_INDENT_FORMAT = "json-indent"
TABLE_FORMAT = "table"

ROOT_ENV = "TAROLAS_ROOT_DIRECTORY"

click_option_format = click.option(
    "-f",
    "--format",
    default=JSON_FORMAT,
    type=click.Choice([VALUE_FORMAT, JSON_FORMAT, JSON_INDENT_FORMAT]),
    help="Output format",
)
click_option_root = click.option(
    "--root",
    envvar=ROOT_ENV,
    required=True,
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help=f"Root directory of the file server (default: ${ROOT_ENV})",
)


def echo_json(payload: Any, format: str) -> None:
    """Print a payload as JSON, indented for the json-indent format."""
    indent = 2 if format == JSON_INDENT_FORMAT else None
    click.echo(json.dumps(payload, indent=indent))


def fail(error: StorageError) -> None:
    """Report an engine error and exit with code 1."""
    click.echo(f"{error.title}: {error.detail}", err=True)
    sys.exit(1)
