"""
Domain controller options shared by the template and export commands.
"""

import argparse


def add_argument_group(parser: argparse.ArgumentParser) -> None:
    """
    Add the connection, authentication and LDAP option groups to a sub-command.
    """
    conn_group = parser.add_argument_group("connection options")

    _ = conn_group.add_argument(
        "-dc-ip",
        action="store",
        metavar="ip address",
        help=(
            "IP address of the domain controller. If omitted, the domain part (FQDN) "
            "of the username is used"
        ),
    )
    _ = conn_group.add_argument(
        "-dc-host",
        action="store",
        metavar="hostname",
        help="Hostname of the domain controller",
    )
    _ = conn_group.add_argument(
        "-timeout",
        action="store",
        metavar="seconds",
        help="Seconds to wait when connecting (default: 10)",
        default=10,
        type=int,
    )

    auth_group = parser.add_argument_group("authentication options")

    _ = auth_group.add_argument(
        "-u",
        "-username",
        metavar="username@domain",
        dest="username",
        action="store",
        help="Account to bind as, including its domain",
    )
    _ = auth_group.add_argument(
        "-p",
        "-password",
        metavar="password",
        dest="password",
        action="store",
        help="Password of the account. Prompted for when omitted",
    )
    _ = auth_group.add_argument(
        "-hashes",
        action="store",
        metavar="[lmhash:]nthash",
        help="NT hash of the account, for NTLM binds",
    )
    _ = auth_group.add_argument(
        "-no-pass",
        action="store_true",
        help="Do not prompt for a password",
    )

    ldap_group = parser.add_argument_group("ldap options")
    _ = ldap_group.add_argument(
        "-ldap-scheme",
        action="store",
        metavar="ldap scheme",
        choices=["ldap", "ldaps"],
        default="ldaps",
        help="Connect over ldap or ldaps (default: ldaps)",
    )
    _ = ldap_group.add_argument(
        "-ldap-port",
        action="store",
        metavar="port",
        type=int,
        help="Override the LDAP port (default: 636 for ldaps, 389 for ldap)",
    )
    _ = ldap_group.add_argument(
        "-ldap-simple-auth",
        action="store_true",
        dest="do_simple",
        help="Bind with SIMPLE authentication (user@domain) instead of NTLM",
    )
