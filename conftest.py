from typing import Any, Dict, List

import pytest
from ldap3.core.results import RESULT_SUCCESS

from certsync.lib.errors import NotFoundError
from certsync.lib.ldap import LDAPEntry
from certsync.lib.target import Target
from certsync.lib.time import SECONDS_PER_WEEK, SECONDS_PER_YEAR, span_to_filetime

TEMPLATE_DN = (
    "CN=WebServer,CN=Certificate Templates,CN=Public Key Services,"
    "CN=Services,CN=Configuration,DC=corp,DC=local"
)


class FakeConnection:
    """Stands in for LDAPConnection, records modify requests."""

    def __init__(self, entries: Dict[str, LDAPEntry], result: int = RESULT_SUCCESS):
        self.entries = entries
        self.result = result
        self.modifications: List[Any] = []

    def get_certificate_template(self, template_name: str) -> LDAPEntry:
        if template_name not in self.entries:
            raise NotFoundError(f"Could not find any certificate template for {template_name!r}")
        return self.entries[template_name]

    def modify(self, dn: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        self.modifications.append((dn, changes))
        return {"result": self.result, "message": "", "description": ""}


@pytest.fixture
def target() -> Target:
    return Target(domain="corp.local", username="admin", password="Passw0rd")


@pytest.fixture
def web_server_entry() -> LDAPEntry:
    return LDAPEntry(
        dn=TEMPLATE_DN,
        type="searchResEntry",
        attributes={
            "cn": "WebServer",
            "name": "WebServer",
            "displayName": "Web Server",
            "objectClass": ["top", "pKICertificateTemplate"],
            "flags": 131649,
            "revision": 100,
            "msPKI-Cert-Template-OID": "1.3.6.1.4.1.311.21.8.1000.1.2",
            "msPKI-Template-Schema-Version": 2,
            "msPKI-Template-Minor-Revision": 4,
            "msPKI-Minimal-Key-Size": 2048,
            "msPKI-Certificate-Name-Flag": 1,
            "msPKI-Enrollment-Flag": 0,
            "msPKI-Private-Key-Flag": 16,
            "msPKI-RA-Signature": 0,
            "pKIDefaultKeySpec": 1,
            "pKIMaxIssuingDepth": 0,
            "pKIKeyUsage": [b"\xa0\x00"],
            "pKIExpirationPeriod": [span_to_filetime(2 * SECONDS_PER_YEAR)],
            "pKIOverlapPeriod": [span_to_filetime(6 * SECONDS_PER_WEEK)],
            "pKIExtendedKeyUsage": ["1.3.6.1.5.5.7.3.1"],
            "pKICriticalExtensions": ["2.5.29.15"],
            "pKIDefaultCSPs": [
                "2,Microsoft DH SChannel Cryptographic Provider",
                "1,Microsoft RSA SChannel Cryptographic Provider",
            ],
            "msPKI-Certificate-Application-Policy": ["1.3.6.1.5.5.7.3.1"],
            "whenChanged": "20240101000000.0Z",
        },
    )


@pytest.fixture
def connection(web_server_entry: LDAPEntry) -> FakeConnection:
    return FakeConnection({"WebServer": web_server_entry})
