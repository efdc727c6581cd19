import pytest

from certsync.lib.errors import NotFoundError
from certsync.lib.ldap import LDAPConnection, LDAPEntry
from certsync.lib.target import Target


class SearchRecorder(LDAPConnection):
    def __init__(self, target, results):
        super().__init__(target)
        self.configuration_path = "CN=Configuration,DC=corp,DC=local"
        self.results = results
        self.filters = []

    def search(self, search_filter, attributes=None, search_base=None, **kwargs):
        self.filters.append((search_filter, search_base))
        return self.results.pop(0)


def entry(name):
    return LDAPEntry(dn=f"CN={name}", attributes={"cn": name})


def test_default_ports():
    assert LDAPConnection(Target(ldap_scheme="ldaps")).port == 636
    assert LDAPConnection(Target(ldap_scheme="ldap")).port == 389
    assert LDAPConnection(Target(ldap_scheme="ldap", ldap_port=3268)).port == 3268


def test_template_found_by_cn():
    connection = SearchRecorder(Target(), [[entry("WebServer")]])

    assert connection.get_certificate_template("WebServer")["dn"] == "CN=WebServer"
    assert connection.filters == [
        (
            "(&(cn=WebServer)(objectClass=pKICertificateTemplate))",
            "CN=Certificate Templates,CN=Public Key Services,CN=Services,"
            "CN=Configuration,DC=corp,DC=local",
        )
    ]


def test_template_found_by_display_name():
    connection = SearchRecorder(Target(), [[], [entry("WebServer")]])

    assert connection.get_certificate_template("Web Server*").get("cn") == "WebServer"
    assert connection.filters[1][0] == (
        "(&(displayName=Web Server\\2a)(objectClass=pKICertificateTemplate))"
    )


def test_template_not_found():
    with pytest.raises(NotFoundError):
        SearchRecorder(Target(), [[], []]).get_certificate_template("Missing")


def test_ambiguous_template():
    connection = SearchRecorder(Target(), [[entry("A"), entry("B")]])

    with pytest.raises(NotFoundError):
        connection.get_certificate_template("A")


def test_entry_access():
    item = LDAPEntry(dn="CN=x", attributes={"cn": "x", "pKIDefaultCSPs": []})
    item.set("flags", 1)

    assert item.get("cn") == "x"
    assert item.get("pKIDefaultCSPs", "none") == "none"
    assert item.get("missing") is None
    assert item.attributes["flags"] == 1


def test_not_connected():
    with pytest.raises(Exception):
        LDAPConnection(Target()).modify("CN=x", {})
