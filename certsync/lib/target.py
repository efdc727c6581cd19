"""
Target management module for certsync.

A Target holds everything needed to reach and authenticate to a domain
controller over LDAP: domain, credentials, address, scheme and timeout.
"""

import argparse
import getpass
from typing import Optional

from certsync.lib.logger import logging


class Target:
    """
    Connection parameters for a domain controller.
    """

    def __init__(
        self,
        domain: str = "",
        username: str = "",
        password: Optional[str] = None,
        hashes: Optional[str] = None,
        lmhash: str = "",
        nthash: str = "",
        do_simple: bool = False,
        dc_ip: Optional[str] = None,
        dc_host: Optional[str] = None,
        timeout: int = 10,
        ldap_scheme: str = "ldaps",
        ldap_port: Optional[int] = None,
    ) -> None:
        self.domain: str = domain
        self.username: str = username
        self.password: Optional[str] = password
        self.hashes: Optional[str] = hashes
        self.lmhash: str = lmhash
        self.nthash: str = nthash
        self.do_simple: bool = do_simple
        self.dc_ip: Optional[str] = dc_ip
        self.dc_host: Optional[str] = dc_host
        self.timeout: int = timeout
        self.ldap_scheme: str = ldap_scheme
        self.ldap_port: Optional[int] = ldap_port

    @property
    def address(self) -> str:
        """Host to connect to: DC address, DC hostname, then the domain itself."""
        return self.dc_ip or self.dc_host or self.domain

    @staticmethod
    def from_options(
        options: argparse.Namespace, require_username: bool = True
    ) -> "Target":
        """
        Create a Target from command line options.

        The username may carry the domain ("user@corp.local").

        Raises:
            ValueError: If no username or no domain is given
        """
        username = options.username or ""
        domain = ""
        if "@" in username:
            username, domain = username.rsplit("@", 1)

        if require_username and not username:
            raise ValueError("A username (-u/-username) is required")

        if not domain:
            raise ValueError("A domain is required, use -u user@domain")

        hashes = getattr(options, "hashes", None)
        lmhash, nthash = "", ""
        if hashes:
            lmhash, _, nthash = hashes.rpartition(":")
            if not lmhash:
                lmhash = "aad3b435b51404eeaad3b435b51404ee"

        password = options.password
        if password is None and not hashes and not getattr(options, "no_pass", False):
            password = getpass.getpass()

        target = Target(
            domain=domain,
            username=username,
            password=password,
            hashes=hashes,
            lmhash=lmhash,
            nthash=nthash,
            do_simple=getattr(options, "do_simple", False),
            dc_ip=getattr(options, "dc_ip", None),
            dc_host=getattr(options, "dc_host", None),
            timeout=int(getattr(options, "timeout", 10)),
            ldap_scheme=getattr(options, "ldap_scheme", "ldaps"),
            ldap_port=getattr(options, "ldap_port", None),
        )

        logging.debug(f"Target: {target!r}")

        return target

    def __repr__(self) -> str:
        return (
            f"<Target (domain={self.domain!r}, username={self.username!r}, "
            f"address={self.address!r}, scheme={self.ldap_scheme!r})>"
        )
