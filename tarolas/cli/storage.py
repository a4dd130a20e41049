# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging

import click
import prettytable

from tarolas import directory, files
from tarolas.cli.common import (
    JSON_FORMAT,
    JSON_INDENT_FORMAT,
    TABLE_FORMAT,
    VALUE_FORMAT,
    click_option_format,
    click_option_root,
    echo_json,
    fail,
)
from tarolas.errors import StorageError
from tarolas.models import Directory

logger = logging.getLogger(__name__)


def _print_tree(node: Directory, depth: int = 0) -> None:
    click.echo("  " * depth + node.name + "/")
    for child in node.directories:
        _print_tree(child, depth + 1)
    for file in node.files:
        click.echo("  " * (depth + 1) + f"{file.name} ({file.size} bytes)")


@click.command("tree")
@click_option_root
@click_option_format
def tree(root: str, format: str):
    """Print the whole directory tree below the root directory."""
    try:
        result = directory.tree(root)
    except StorageError as e:
        fail(e)
    if format == VALUE_FORMAT:
        _print_tree(result)
    else:
        echo_json(result.to_payload(), format)


@click.command("list")
@click_option_root
@click_option_format
@click.argument("name", default="/")
def list_directories(root: str, format: str, name: str):
    """List every directory below NAME, relative to NAME."""
    try:
        result = directory.list_directories(root, name)
    except StorageError as e:
        fail(e)
    logger.debug("Found %s directories below %s", len(result) - 1, name)
    if format == VALUE_FORMAT:
        for path in result:
            click.echo(path)
    else:
        echo_json(result, format)


@click.command("content")
@click_option_root
@click.option(
    "-f",
    "--format",
    default=TABLE_FORMAT,
    type=click.Choice([VALUE_FORMAT, TABLE_FORMAT, JSON_FORMAT, JSON_INDENT_FORMAT]),
    help="Output format",
)
@click.argument("name", default="/")
def content(root: str, format: str, name: str):
    """Show the directories and files directly inside NAME."""
    try:
        result = directory.content(root, name)
    except StorageError as e:
        fail(e)
    if format in (VALUE_FORMAT, TABLE_FORMAT):
        table = prettytable.PrettyTable()
        table.title = result.name
        table.field_names = ["Name", "Type", "Size"]
        for child in result.directories:
            table.add_row([child.name, "directory", ""])
        for file in result.files:
            table.add_row([file.name, "file", file.size])
        click.echo(table)
    else:
        echo_json(result.to_payload(), format)


@click.command("checksum")
@click_option_root
@click_option_format
@click.argument("name")
def checksum(root: str, format: str, name: str):
    """Print the SHA-256 checksum of the file NAME."""
    try:
        result = files.checksum(root, name)
    except StorageError as e:
        fail(e)
    if format == VALUE_FORMAT:
        click.echo(f"{result.checksum}  {result.name}")
    else:
        echo_json(result.to_payload(), format)


@click.command("exists")
@click_option_root
@click_option_format
@click.argument("name")
def exists(root: str, format: str, name: str):
    """Tell whether the file NAME exists."""
    try:
        result = files.exists(root, name)
    except StorageError as e:
        fail(e)
    if format == VALUE_FORMAT:
        click.echo("yes" if result.exists else "no")
    else:
        echo_json(result.to_payload(), format)
