import xml.etree.ElementTree as ET

import pytest

from certsync.commands.export import Export
from certsync.lib.errors import MissingInputError, NotFoundError
from certsync.xcep import NS_EP


def q(tag: str) -> str:
    return f"{{{NS_EP}}}{tag}"


def test_export(tmp_path, target, connection):
    output = tmp_path / "policy.xml"
    export = Export(
        target=target,
        template=["WebServer"],
        output=str(output),
        policy_id="{corp}",
        connection=connection,
    )

    assert export.export() == str(output)

    root = ET.fromstring(output.read_bytes())
    policies = root.find(q("response")).find(q("policies"))
    attributes = policies[0].find(q("attributes"))

    assert root.find(q("response")).findtext(q("policyID")) == "{corp}"
    assert len(policies) == 1
    assert attributes.findtext(q("commonName")) == "WebServer"
    assert attributes.findtext(f"{q('certificateValidity')}/{q('validityPeriodSeconds')}") == str(
        2 * 8760 * 3600
    )
    assert [
        o.findtext(q("value")) for o in root.find(q("oIDs"))
    ] == [
        "1.3.6.1.4.1.311.21.8.1000.1.2",
        "1.3.6.1.4.1.311.21.7",
        "2.5.29.37",
        "2.5.29.15",
        "1.3.6.1.4.1.311.21.10",
    ]


def test_export_does_not_overwrite(tmp_path, target, connection):
    output = tmp_path / "policy.xml"
    output.write_text("keep")

    path = Export(
        target=target, template=["WebServer"], output=str(output), connection=connection
    ).export()

    assert path != str(output)
    assert output.read_text() == "keep"


def test_export_requires_templates(target, connection):
    with pytest.raises(MissingInputError):
        Export(target=target, connection=connection).build()


def test_export_unknown_template(target, connection):
    with pytest.raises(NotFoundError):
        Export(target=target, template=["Missing"], connection=connection).build()
