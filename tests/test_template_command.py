import json

import ldap3
import pytest
from ldap3.core.results import RESULT_INSUFFICIENT_ACCESS_RIGHTS

from certsync.commands.template import Template, compute_changes, writable_attributes
from certsync.lib.attributes import decode_document, encode_document
from certsync.lib.errors import MissingInputError, NotFoundError
from certsync.lib.time import SECONDS_PER_YEAR, span_to_filetime
from certsync.reconcile import to_modifications
from conftest import TEMPLATE_DN, FakeConnection


def write_desired(tmp_path, document) -> str:
    path = tmp_path / "desired.json"
    path.write_text(json.dumps(document))
    return str(path)


def test_writable_attributes():
    assert writable_attributes(
        {"cn": "x", "objectClass": ["top"], "msPKI-Cert-Template-OID": "1.2", "flags": 1}
    ) == {"flags": 1}


def test_compute_changes_ignores_directory_attributes():
    change_set = compute_changes(
        {"name": "WebServer", "objectClass": ["top"], "flags": 1},
        {"flags": "2"},
    )

    assert change_set.replace == {"flags": 2}
    assert change_set.clear == []


def test_compute_changes_with_differently_cased_names():
    current = {
        "flags": 131680,
        "pKIExtendedKeyUsage": ["1.3.6.1.5.5.7.3.1"],
        "msPKI-Certificate-Name-Flag": 1,
    }
    desired = {
        "Flags": "131680",
        "pkiextendedkeyusage": ["1.3.6.1.5.5.7.3.1"],
        "mspki-certificate-name-flag": 1,
    }

    change_set = compute_changes(current, desired)

    assert change_set.is_empty
    assert to_modifications(change_set) == []


def test_saved_configuration_needs_no_changes(tmp_path, target, connection):
    template = Template(
        target=target,
        template="WebServer",
        save_configuration=str(tmp_path / "webserver"),
        connection=connection,
    )
    path = template.save_configuration()

    assert path == str(tmp_path / "webserver.json")
    document = json.loads((tmp_path / "webserver.json").read_text())
    assert document["pKIExpirationPeriod"] == "2 years"
    assert document["pKIKeyUsage"] == "HEX:a000"
    assert "cn" not in document
    assert "whenChanged" not in document

    template.desired_file = path
    assert template.write_configuration() is False
    assert connection.modifications == []


def test_write_configuration(tmp_path, target, connection, web_server_entry):
    current = Template(target=target, connection=connection).current_attributes(
        web_server_entry
    )
    desired = {
        "displayName": "Web Server",
        "flags": "131680",
        "revision": 100,
        "msPKI-Template-Schema-Version": 2,
        "msPKI-Template-Minor-Revision": 4,
        "msPKI-Minimal-Key-Size": 2048,
        "msPKI-Certificate-Name-Flag": 0,
        "msPKI-Enrollment-Flag": 0,
        "msPKI-Private-Key-Flag": 16,
        "msPKI-RA-Signature": 0,
        "pKIDefaultKeySpec": 1,
        "pKIMaxIssuingDepth": 0,
        "pKIKeyUsage": "HEX:a000",
        "pKIExpirationPeriod": "1 years",
        "pKIOverlapPeriod": "6 weeks",
        "pKICriticalExtensions": ["2.5.29.15"],
        "pKIDefaultCSPs": [
            "1,Microsoft RSA SChannel Cryptographic Provider",
            "2,Microsoft DH SChannel Cryptographic Provider",
        ],
        "msPKI-Certificate-Application-Policy": ["1.3.6.1.5.5.7.3.1"],
    }
    assert set(current) - set(desired) == {"name", "objectClass", "pKIExtendedKeyUsage"}

    template = Template(
        target=target,
        template="WebServer",
        desired=write_desired(tmp_path, desired),
        force=True,
        connection=connection,
    )

    assert template.write_configuration() is True
    assert connection.modifications == [
        (
            TEMPLATE_DN,
            {
                "flags": [(ldap3.MODIFY_REPLACE, [131680])],
                "msPKI-Certificate-Name-Flag": [(ldap3.MODIFY_REPLACE, [0])],
                "pKIExpirationPeriod": [
                    (ldap3.MODIFY_REPLACE, [span_to_filetime(SECONDS_PER_YEAR)])
                ],
            },
        ),
        (TEMPLATE_DN, {"pKIExtendedKeyUsage": [(ldap3.MODIFY_DELETE, [])]}),
    ]


def test_dry_run_writes_nothing(tmp_path, target, connection):
    template = Template(
        target=target,
        template="WebServer",
        desired=write_desired(tmp_path, {"displayName": "Renamed"}),
        dry_run=True,
        connection=connection,
    )

    assert template.write_configuration() is False
    assert connection.modifications == []


def test_declined_confirmation_writes_nothing(tmp_path, target, connection, monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    template = Template(
        target=target,
        template="WebServer",
        desired=write_desired(tmp_path, {"displayName": "Renamed"}),
        connection=connection,
    )

    assert template.write_configuration() is False
    assert connection.modifications == []


def test_insufficient_rights_stops_after_first_request(
    tmp_path, target, web_server_entry
):
    connection = FakeConnection(
        {"WebServer": web_server_entry}, result=RESULT_INSUFFICIENT_ACCESS_RIGHTS
    )
    template = Template(
        target=target,
        template="WebServer",
        desired=write_desired(tmp_path, {"displayName": "Renamed"}),
        force=True,
        connection=connection,
    )

    assert template.write_configuration() is False
    assert len(connection.modifications) == 1


def test_missing_inputs(tmp_path, target, connection):
    with pytest.raises(MissingInputError):
        Template(target=target, template="WebServer", connection=connection).write_configuration()

    with pytest.raises(MissingInputError):
        Template(
            target=target, desired=write_desired(tmp_path, {}), connection=connection
        ).write_configuration()


def test_unknown_template(tmp_path, target, connection):
    template = Template(
        target=target,
        template="Missing",
        desired=write_desired(tmp_path, {}),
        connection=connection,
    )

    with pytest.raises(NotFoundError):
        template.write_configuration()


def test_desired_document_shape_matches_saved_configuration(target, connection, web_server_entry):
    template = Template(target=target, connection=connection)
    current = writable_attributes(template.current_attributes(web_server_entry))

    assert decode_document(json.loads(encode_document(current))) == current


def test_flag_values_are_described():
    from certsync.commands.template import _describe

    assert _describe("msPKI-Certificate-Name-Flag", 1) == "1 (EnrolleeSuppliesSubject)"
    assert _describe("revision", 100) == "100"
    assert _describe("pKIKeyUsage", b"\xa0\x00") == "a000"
