# SPDX-FileCopyrightText: 2025 - Canonical Ltd
# SPDX-License-Identifier: Apache-2.0

import logging

import click

from tarolas.cli.log import setup_root_logging
from tarolas.cli.storage import checksum, content, exists, list_directories, tree

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group("tarolas", context_settings=CONTEXT_SETTINGS)
@click.option("-v", "--verbose", is_flag=True, help="Increase output verbosity")
def cli(verbose: bool):
    """Set of utilities for inspecting a file server root directory."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


cli.add_command(tree)
cli.add_command(list_directories)
cli.add_command(content)
cli.add_command(checksum)
cli.add_command(exists)


def main():
    """Set up logging and run the CLI."""
    setup_root_logging()
    cli()


if __name__ == "__main__":
    main()
