"""
Directory access for certsync.

LDAPConnection binds to a domain controller with ldap3 (NTLM or SIMPLE, over
ldap or ldaps), finds certificate templates in the configuration partition and
writes attribute modifications back. Search results are wrapped in LDAPEntry,
a dictionary with shortcuts for the "attributes" member.
"""

import ssl
from typing import Any, Dict, List, Optional, Union

import ldap3
from ldap3.core.results import RESULT_SUCCESS
from ldap3.utils.conv import escape_filter_chars

from certsync.lib.errors import NotFoundError
from certsync.lib.logger import logging
from certsync.lib.target import Target

DEFAULT_PORTS = {"ldap": 389, "ldaps": 636}

TEMPLATES_CONTAINER = "CN=Certificate Templates,CN=Public Key Services,CN=Services"

TEMPLATE_CLASS = "pKICertificateTemplate"


class LDAPEntry(Dict[str, Any]):
    """
    A search result entry: {"dn": ..., "attributes": {...}}.
    """

    @property
    def attributes(self) -> Dict[str, Any]:
        return self["attributes"]

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute value, or the default when it is absent or empty."""
        value = self.attributes.get(key)
        if value is None or value == []:
            return default
        return value

    def set(self, key: str, value: Any) -> None:
        self.attributes[key] = value


class LDAPConnection:
    """
    Bound connection to a domain controller.
    """

    def __init__(self, target: Target) -> None:
        self.target = target
        self.port = (
            int(target.ldap_port)
            if target.ldap_port is not None
            else DEFAULT_PORTS.get(target.ldap_scheme, 636)
        )

        self.default_path: Optional[str] = None
        self.configuration_path: Optional[str] = None
        self._conn: Optional[ldap3.Connection] = None

    def _server(self) -> ldap3.Server:
        kwargs: Dict[str, Any] = {}
        if self.target.ldap_scheme == "ldaps":
            # Domain controller certificates are commonly issued by a private CA
            kwargs["tls"] = ldap3.Tls(
                validate=ssl.CERT_NONE, version=ssl.PROTOCOL_TLS_CLIENT
            )

        return ldap3.Server(
            self.target.address,
            port=self.port,
            use_ssl=self.target.ldap_scheme == "ldaps",
            get_info=ldap3.ALL,
            connect_timeout=self.target.timeout,
            **kwargs,
        )

    def _credentials(self) -> Dict[str, Any]:
        if self.target.do_simple:
            return {
                "user": f"{self.target.username}@{self.target.domain}",
                "password": self.target.password,
                "authentication": ldap3.SIMPLE,
            }

        # NTLM accepts "LM:NT" in place of the password
        password = (
            f"{self.target.lmhash}:{self.target.nthash}"
            if self.target.hashes
            else self.target.password
        )
        return {
            "user": f"{self.target.domain}\\{self.target.username}",
            "password": password,
            "authentication": ldap3.NTLM,
        }

    def connect(self) -> None:
        """
        Bind and read the naming contexts from the root DSE.

        Raises:
            Exception: If the bind fails
        """
        server = self._server()
        credentials = self._credentials()

        logging.debug(
            f"Binding to {self.target.ldap_scheme}://{self.target.address}:{self.port} "
            f"as {credentials['user']!r} ({credentials['authentication']})"
        )

        conn = ldap3.Connection(
            server,
            auto_referrals=False,
            receive_timeout=self.target.timeout * 10,
            **credentials,
        )
        if not conn.bind():
            raise Exception(f"Failed to bind to LDAP: {conn.result['message']}")

        self._conn = conn
        self.default_path = server.info.other["defaultNamingContext"][0]
        self.configuration_path = server.info.other["configurationNamingContext"][0]

        logging.debug(f"Configuration naming context: {self.configuration_path}")

    @property
    def connection(self) -> ldap3.Connection:
        if self._conn is None:
            raise Exception("Not connected to LDAP, call connect() first")
        return self._conn

    @property
    def templates_path(self) -> str:
        return f"{TEMPLATES_CONTAINER},{self.configuration_path}"

    def get_certificate_template(self, template_name: str) -> LDAPEntry:
        """
        Find a certificate template by CN, or by display name if no CN matches.

        Raises:
            NotFoundError: If no template, or more than one, matches
        """
        escaped = escape_filter_chars(template_name)

        results: List[LDAPEntry] = []
        for attribute in ("cn", "displayName"):
            results = self.search(
                f"(&({attribute}={escaped})(objectClass={TEMPLATE_CLASS}))",
                search_base=self.templates_path,
            )
            if results:
                break

        if not results:
            raise NotFoundError(f"Certificate template {template_name!r} not found")
        if len(results) > 1:
            raise NotFoundError(
                f"Certificate template {template_name!r} is ambiguous "
                f"({len(results)} matches)"
            )

        logging.debug(f"Found certificate template {results[0]['dn']!r}")
        return results[0]

    def modify(self, dn: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send one modify request.

        Returns:
            The ldap3 result dictionary; callers check result["result"]
        """
        self.connection.modify(dn, changes)
        return self.connection.result

    def search(
        self,
        search_filter: str,
        attributes: Union[str, List[str]] = ldap3.ALL_ATTRIBUTES,
        search_base: Optional[str] = None,
        **kwargs: Any,
    ) -> List[LDAPEntry]:
        """
        Paged subtree search. A failed search is logged and yields no entries.
        """
        entries = self.connection.extend.standard.paged_search(
            search_base=search_base or self.default_path,
            search_filter=search_filter,
            attributes=attributes,
            paged_size=200,
            generator=False,
            **kwargs,
        )

        result = self.connection.result
        if result["result"] != RESULT_SUCCESS:
            logging.warning(
                f"Search {search_filter!r} failed: {result['description']} "
                f"({result['message']})"
            )
            return []

        return [
            LDAPEntry(dn=entry["dn"], attributes=entry["attributes"])
            for entry in entries
            if entry["type"] == "searchResEntry"
        ]
