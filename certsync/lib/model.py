"""
Certificate template object graph.

CertificateTemplate carries the cryptographic and enrollment settings of a
template in the shape the enrollment policy serializer needs. It is built
either directly or from a template's directory attributes with
CertificateTemplate.from_attributes(), which also encodes the certificate
extensions a template implies using asn1crypto.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from asn1crypto import x509

from certsync.lib.attributes import to_bytes, to_int, to_string_list, to_text
from certsync.lib.constants import (
    DEFAULT_HASH_ALGORITHM_OID,
    DEFAULT_KEY_ALGORITHM_OID,
    HASH_ALGORITHM_OIDS,
    OID_APPLICATION_POLICIES,
    OID_CERTIFICATE_POLICIES,
    OID_CERTIFICATE_TEMPLATE,
    OID_EXTENDED_KEY_USAGE,
    OID_KEY_USAGE,
    OID_TO_STR_MAP,
    PUBLIC_KEY_ALGORITHM_OIDS,
    SYMMETRIC_ALGORITHM_OIDS,
    PrivateKeyFlag,
)
from certsync.lib.logger import logging
from certsync.lib.structs import CertificateTemplateInfo
from certsync.lib.time import filetime_to_str

# Bit order of the KeyUsage BIT STRING stored in pKIKeyUsage
KEY_USAGE_BITS = [
    "digital_signature",
    "non_repudiation",
    "key_encipherment",
    "data_encipherment",
    "key_agreement",
    "key_cert_sign",
    "crl_sign",
    "encipher_only",
    "decipher_only",
]

# Separator of the name`type`value triplets in schema version 4 templates
V4_SEPARATOR = "`"


@dataclass
class TemplateExtension:
    oid: str
    critical: bool
    value: bytes
    name: str = ""


@dataclass
class CertificateTemplate:
    """
    Settings of one certificate template.

    Periods are duration strings ("1 years", "6 weeks"); algorithms are OIDs.
    """

    name: str
    oid: str
    display_name: str = ""
    schema_version: int = 2
    major_revision: int = 100
    minor_revision: int = 0
    validity_period: str = "1 years"
    renewal_period: str = "6 weeks"

    # Enrollment permissions of the requesting client
    enroll: bool = True
    auto_enroll: bool = False

    # Private key attributes
    minimal_key_length: int = 2048
    key_spec: int = 1
    key_usage: int = 0
    private_key_permissions: str = ""
    key_algorithm: str = DEFAULT_KEY_ALGORITHM_OID
    crypto_providers: List[str] = field(default_factory=list)

    superseded_templates: List[str] = field(default_factory=list)

    private_key_flags: int = 0
    subject_name_flags: int = 0
    enrollment_flags: int = 0
    general_flags: int = 0

    hash_algorithm: str = DEFAULT_HASH_ALGORITHM_OID

    # Registration authority (enrollment agent) requirements
    ra_signatures: int = 0
    ra_application_policy: Optional[str] = None
    ra_certificate_policies: List[str] = field(default_factory=list)

    # Key archival
    key_archival_algorithm: Optional[str] = None
    key_archival_key_length: int = 0

    extensions: List[TemplateExtension] = field(default_factory=list)

    @property
    def common_name(self) -> str:
        return self.name

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, Any]) -> "CertificateTemplate":
        """
        Build a template from its directory attributes.

        Args:
            attributes: Decoded attribute map, including msPKI-Cert-Template-OID

        Returns:
            CertificateTemplate with extensions encoded from the attributes
        """
        name = to_text("cn", attributes.get("cn") or attributes.get("name") or "")

        def get_int(key: str, default: int = 0) -> int:
            value = attributes.get(key)
            return default if value is None else to_int(key, value)

        template = cls(
            name=name,
            oid=to_text(
                "msPKI-Cert-Template-OID", attributes.get("msPKI-Cert-Template-OID", "")
            ),
            display_name=to_text("displayName", attributes.get("displayName", name)),
            schema_version=get_int("msPKI-Template-Schema-Version", 1),
            major_revision=get_int("revision"),
            minor_revision=get_int("msPKI-Template-Minor-Revision"),
            minimal_key_length=get_int("msPKI-Minimal-Key-Size"),
            key_spec=get_int("pKIDefaultKeySpec", 1),
            crypto_providers=_parse_csps(attributes.get("pKIDefaultCSPs")),
            superseded_templates=to_string_list(
                "msPKI-Supersede-Templates", attributes.get("msPKI-Supersede-Templates")
            ),
            private_key_flags=get_int("msPKI-Private-Key-Flag"),
            subject_name_flags=get_int("msPKI-Certificate-Name-Flag"),
            enrollment_flags=get_int("msPKI-Enrollment-Flag"),
            general_flags=get_int("flags"),
            ra_signatures=get_int("msPKI-RA-Signature"),
            ra_certificate_policies=to_string_list(
                "msPKI-RA-Policies", attributes.get("msPKI-RA-Policies")
            ),
        )

        expiration = attributes.get("pKIExpirationPeriod")
        if expiration is not None:
            template.validity_period = filetime_to_str(
                to_bytes("pKIExpirationPeriod", expiration)
            )

        overlap = attributes.get("pKIOverlapPeriod")
        if overlap is not None:
            template.renewal_period = filetime_to_str(
                to_bytes("pKIOverlapPeriod", overlap)
            )

        _apply_ra_application_policies(
            template, attributes.get("msPKI-RA-Application-Policies")
        )

        template.extensions = _build_extensions(template, attributes)

        return template


def _parse_csps(value: Any) -> List[str]:
    """
    Order "priority,provider name" entries of pKIDefaultCSPs by priority.
    """
    providers = []
    for entry in to_string_list("pKIDefaultCSPs", value):
        priority, sep, provider = entry.partition(",")
        if sep and priority.strip().isdigit():
            providers.append((int(priority), provider.strip()))
        else:
            providers.append((len(providers) + 1, entry.strip()))

    return [provider for _, provider in sorted(providers, key=lambda item: item[0])]


def _parse_v4_settings(values: List[str]) -> Dict[str, str]:
    """
    Parse schema version 4 name`type`value triplets.

    Example:
        >>> _parse_v4_settings(["msPKI-Hash-Algorithm`PZPWSTR`SHA256`"])
        {'msPKI-Hash-Algorithm': 'SHA256'}
    """
    settings: Dict[str, str] = {}
    for value in values:
        parts = value.split(V4_SEPARATOR)
        for i in range(0, len(parts) - 2, 3):
            settings[parts[i]] = parts[i + 2]
    return settings


def _apply_ra_application_policies(template: CertificateTemplate, value: Any) -> None:
    values = to_string_list("msPKI-RA-Application-Policies", value)
    if not values:
        return

    if not any(V4_SEPARATOR in item for item in values):
        # Schema version 2 and 3 store the enrollment agent application policy
        template.ra_application_policy = values[0]
        return

    settings = _parse_v4_settings(values)

    ra_policy = settings.get("msPKI-RA-Application-Policies")
    if ra_policy:
        template.ra_application_policy = ra_policy

    algorithm = settings.get("msPKI-Asymmetric-Algorithm")
    if algorithm:
        template.key_algorithm = PUBLIC_KEY_ALGORITHM_OIDS.get(
            algorithm.upper(), template.key_algorithm
        )

    hash_algorithm = settings.get("msPKI-Hash-Algorithm")
    if hash_algorithm:
        template.hash_algorithm = HASH_ALGORITHM_OIDS.get(
            hash_algorithm.upper(), template.hash_algorithm
        )

    key_usage = settings.get("msPKI-Key-Usage")
    if key_usage:
        template.key_usage = to_int("msPKI-Key-Usage", key_usage)

    symmetric = settings.get("msPKI-Symmetric-Algorithm")
    if symmetric and template.private_key_flags & PrivateKeyFlag.REQUIRE_PRIVATE_KEY_ARCHIVAL:
        key_length = to_int(
            "msPKI-Symmetric-Key-Length", settings.get("msPKI-Symmetric-Key-Length", 0)
        )
        # AES is stored without its key size
        name = symmetric.upper()
        oid = SYMMETRIC_ALGORITHM_OIDS.get(name) or SYMMETRIC_ALGORITHM_OIDS.get(
            f"{name}{key_length}"
        )
        if oid is None:
            logging.warning(f"Unknown symmetric algorithm {symmetric!r}")
        else:
            template.key_archival_algorithm = oid
            template.key_archival_key_length = key_length


def encode_key_usage(key_usage: bytes) -> bytes:
    """
    Encode the pKIKeyUsage bits as a DER KeyUsage extension value.
    """
    names = set()
    for index, name in enumerate(KEY_USAGE_BITS):
        byte, bit = divmod(index, 8)
        if byte < len(key_usage) and key_usage[byte] & (0x80 >> bit):
            names.add(name)

    return x509.KeyUsage(names).dump()


def _encode_policies(oids: List[str]) -> bytes:
    return x509.CertificatePolicies(
        [x509.PolicyInformation({"policy_identifier": oid}) for oid in oids]
    ).dump()


def _build_extensions(
    template: CertificateTemplate, attributes: Mapping[str, Any]
) -> List[TemplateExtension]:
    critical = set(
        to_string_list("pKICriticalExtensions", attributes.get("pKICriticalExtensions"))
    )

    encoded: List[tuple] = []

    if template.schema_version >= 2 and template.oid:
        info = CertificateTemplateInfo(
            {
                "template_id": template.oid,
                "major_version": template.major_revision,
                "minor_version": template.minor_revision,
            }
        )
        encoded.append((OID_CERTIFICATE_TEMPLATE, info.dump()))

    ekus = to_string_list("pKIExtendedKeyUsage", attributes.get("pKIExtendedKeyUsage"))
    if ekus:
        encoded.append((OID_EXTENDED_KEY_USAGE, x509.ExtKeyUsageSyntax(ekus).dump()))

    key_usage = attributes.get("pKIKeyUsage")
    if key_usage is not None:
        encoded.append(
            (OID_KEY_USAGE, encode_key_usage(to_bytes("pKIKeyUsage", key_usage)))
        )

    application_policies = to_string_list(
        "msPKI-Certificate-Application-Policy",
        attributes.get("msPKI-Certificate-Application-Policy"),
    )
    if application_policies and template.schema_version >= 2:
        encoded.append((OID_APPLICATION_POLICIES, _encode_policies(application_policies)))

    issuance_policies = to_string_list(
        "msPKI-Certificate-Policy", attributes.get("msPKI-Certificate-Policy")
    )
    if issuance_policies:
        encoded.append((OID_CERTIFICATE_POLICIES, _encode_policies(issuance_policies)))

    return [
        TemplateExtension(
            oid=oid,
            critical=oid in critical,
            value=value,
            name=OID_TO_STR_MAP.get(oid, ""),
        )
        for oid, value in encoded
    ]

