from asn1crypto import x509

from certsync.lib.attributes import decode_entry
from certsync.lib.constants import DEFAULT_HASH_ALGORITHM_OID, DEFAULT_KEY_ALGORITHM_OID
from certsync.lib.model import CertificateTemplate, encode_key_usage
from certsync.lib.structs import CertificateTemplateInfo


def test_from_attributes(web_server_entry):
    template = CertificateTemplate.from_attributes(
        decode_entry(web_server_entry.attributes)
    )

    assert template.name == "WebServer"
    assert template.common_name == "WebServer"
    assert template.display_name == "Web Server"
    assert template.oid == "1.3.6.1.4.1.311.21.8.1000.1.2"
    assert template.schema_version == 2
    assert template.major_revision == 100
    assert template.minor_revision == 4
    assert template.minimal_key_length == 2048
    assert template.validity_period == "2 years"
    assert template.renewal_period == "6 weeks"
    assert template.general_flags == 131649
    assert template.subject_name_flags == 1
    assert template.private_key_flags == 16
    assert template.crypto_providers == [
        "Microsoft RSA SChannel Cryptographic Provider",
        "Microsoft DH SChannel Cryptographic Provider",
    ]
    assert template.key_algorithm == DEFAULT_KEY_ALGORITHM_OID
    assert template.hash_algorithm == DEFAULT_HASH_ALGORITHM_OID
    assert template.ra_application_policy is None


def test_extensions(web_server_entry):
    template = CertificateTemplate.from_attributes(
        decode_entry(web_server_entry.attributes)
    )
    extensions = {extension.oid: extension for extension in template.extensions}

    assert [extension.oid for extension in template.extensions] == [
        "1.3.6.1.4.1.311.21.7",
        "2.5.29.37",
        "2.5.29.15",
        "1.3.6.1.4.1.311.21.10",
    ]
    assert [extension.critical for extension in template.extensions] == [
        False,
        False,
        True,
        False,
    ]
    assert extensions["2.5.29.37"].name == "Enhanced Key Usage"

    info = CertificateTemplateInfo.load(extensions["1.3.6.1.4.1.311.21.7"].value)
    assert info["template_id"].dotted == "1.3.6.1.4.1.311.21.8.1000.1.2"
    assert info["major_version"].native == 100
    assert info["minor_version"].native == 4

    ekus = x509.ExtKeyUsageSyntax.load(extensions["2.5.29.37"].value)
    assert [eku.dotted for eku in ekus] == ["1.3.6.1.5.5.7.3.1"]

    key_usage = x509.KeyUsage.load(extensions["2.5.29.15"].value)
    assert key_usage.native == {"digital_signature", "key_encipherment"}

    policies = x509.CertificatePolicies.load(extensions["1.3.6.1.4.1.311.21.10"].value)
    assert [policy["policy_identifier"].dotted for policy in policies] == [
        "1.3.6.1.5.5.7.3.1"
    ]


def test_schema_version_1_has_no_template_information():
    template = CertificateTemplate.from_attributes(
        {
            "cn": "User",
            "msPKI-Cert-Template-OID": "1.3.6.1.4.1.311.21.8.1000.1.1",
            "pKIExtendedKeyUsage": ["1.3.6.1.5.5.7.3.2"],
            "msPKI-Certificate-Application-Policy": ["1.3.6.1.5.5.7.3.2"],
        }
    )

    assert template.schema_version == 1
    assert template.display_name == "User"
    assert [extension.oid for extension in template.extensions] == ["2.5.29.37"]


def test_enrollment_agent_policy():
    template = CertificateTemplate.from_attributes(
        {
            "cn": "SmartcardUser",
            "msPKI-Cert-Template-OID": "1.3.6.1.4.1.311.21.8.1000.1.3",
            "msPKI-RA-Signature": 1,
            "msPKI-RA-Application-Policies": ["1.3.6.1.4.1.311.20.2.1"],
            "msPKI-RA-Policies": ["1.3.6.1.4.1.311.21.8.1000.2.1"],
            "msPKI-Certificate-Policy": ["1.3.6.1.4.1.311.21.8.1000.2.1"],
        }
    )

    assert template.ra_signatures == 1
    assert template.ra_application_policy == "1.3.6.1.4.1.311.20.2.1"
    assert template.ra_certificate_policies == ["1.3.6.1.4.1.311.21.8.1000.2.1"]
    assert template.extensions[-1].oid == "2.5.29.32"


def test_schema_version_4_settings():
    template = CertificateTemplate.from_attributes(
        {
            "cn": "Archival",
            "msPKI-Cert-Template-OID": "1.3.6.1.4.1.311.21.8.1000.1.4",
            "msPKI-Template-Schema-Version": 4,
            "msPKI-Private-Key-Flag": 0x00000001,
            "msPKI-RA-Application-Policies": [
                "msPKI-Asymmetric-Algorithm`PZPWSTR`ECDH_P384`"
                "msPKI-Hash-Algorithm`PZPWSTR`SHA384`"
                "msPKI-Key-Usage`DWORD`16777215`"
                "msPKI-Symmetric-Algorithm`PZPWSTR`AES`"
                "msPKI-Symmetric-Key-Length`DWORD`256`"
            ],
        }
    )

    assert template.key_algorithm == "1.2.840.10045.2.1"
    assert template.hash_algorithm == "2.16.840.1.101.3.4.2.2"
    assert template.key_usage == 16777215
    assert template.key_archival_algorithm == "2.16.840.1.101.3.4.1.42"
    assert template.key_archival_key_length == 256
    assert template.ra_application_policy is None


def test_key_archival_requires_archival_flag():
    template = CertificateTemplate.from_attributes(
        {
            "cn": "NoArchival",
            "msPKI-Template-Schema-Version": 4,
            "msPKI-RA-Application-Policies": [
                "msPKI-Symmetric-Algorithm`PZPWSTR`3DES`"
                "msPKI-Symmetric-Key-Length`DWORD`168`"
            ],
        }
    )

    assert template.key_archival_algorithm is None


def test_encode_key_usage():
    assert x509.KeyUsage.load(encode_key_usage(b"\x86\x00")).native == {
        "digital_signature",
        "key_cert_sign",
        "crl_sign",
    }
