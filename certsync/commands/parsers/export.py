"""
Parser for the enrollment policy export command.
"""

import argparse
from typing import Callable, Tuple

from . import target

NAME = "export"


def entry(options: argparse.Namespace) -> None:
    from certsync.commands import export

    export.entry(options)


def add_subparser(subparsers: argparse._SubParsersAction) -> Tuple[str, Callable]:  # type: ignore
    """
    Add the export command subparser to the main parser.

    Returns:
        Tuple of (command_name, entry_function) for command registration
    """
    subparser = subparsers.add_parser(
        NAME,
        help="Export certificate templates as an enrollment policy document",
        description=(
            "Serialize one or more certificate templates into an enrollment policy "
            "(GetPoliciesResponse) XML document."
        ),
    )

    subparser.add_argument(
        "-template",
        action="append",
        metavar="template name",
        required=True,
        help="Certificate template to export. Repeat to export several, in order",
    )

    output_group = subparser.add_argument_group("output options")
    output_group.add_argument(
        "-output",
        action="store",
        metavar="file",
        default="policy.xml",
        help="Output file (default: policy.xml)",
    )
    output_group.add_argument(
        "-policy-id",
        action="store",
        metavar="id",
        default="",
        help="Value of the policyID element",
    )

    target.add_argument_group(subparser)

    return NAME, entry
