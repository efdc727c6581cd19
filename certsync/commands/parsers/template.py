"""
Parser for the certificate template reconciliation command.
"""

import argparse
from typing import Callable, Tuple

from . import target

NAME = "template"


def entry(options: argparse.Namespace) -> None:
    from certsync.commands import template

    template.entry(options)


def add_subparser(subparsers: argparse._SubParsersAction) -> Tuple[str, Callable]:  # type: ignore
    """
    Add the template command subparser to the main parser.

    Returns:
        Tuple of (command_name, entry_function) for command registration
    """
    subparser = subparsers.add_parser(
        NAME,
        help="Reconcile a certificate template with a desired configuration",
        description=(
            "Compare a certificate template in Active Directory with a desired "
            "configuration (JSON) and apply the attribute changes needed to match it."
        ),
    )

    subparser.add_argument(
        "-template",
        action="store",
        metavar="template name",
        required=True,
        help="Name of the certificate template to operate on (CN or display name)",
    )

    config_group = subparser.add_argument_group("configuration options")
    config_group.add_argument(
        "-desired",
        action="store",
        metavar="configuration file",
        help=(
            "JSON file with the desired template attributes. Attributes missing from "
            "the file are cleared on the template."
        ),
    )
    config_group.add_argument(
        "-save-configuration",
        action="store",
        metavar="configuration file",
        help="Save the current template configuration to a JSON file",
    )
    config_group.add_argument(
        "-dry-run",
        action="store_true",
        help="Show the changes without applying them",
    )
    config_group.add_argument(
        "-force",
        action="store_true",
        help="Don't prompt for confirmation before applying changes",
    )

    target.add_argument_group(subparser)

    return NAME, entry
