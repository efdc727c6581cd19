"""
Enrollment policy (MS-XCEP) document builder.

build_get_policies_response() turns certificate templates into a
GetPoliciesResponse document: one policy per template and a trailing table of
every OID the policies reference. OIDs are referenced by number; the numbers
come from an OIDRegistry owned by the caller and depend on the order the
templates are walked in, so templates are processed one after the other.

Fields that hold their protocol default are written as xsi:nil="true"
elements rather than values. Each field has its own default.
"""

import base64
import struct
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Optional, Sequence
from xml.dom import minidom

from certsync.lib.constants import (
    DEFAULT_HASH_ALGORITHM_OID,
    DEFAULT_KEY_ALGORITHM_OID,
    OID_TO_STR_MAP,
)
from certsync.lib.errors import MissingInputError
from certsync.lib.logger import logging
from certsync.lib.model import CertificateTemplate
from certsync.lib.oid import OIDGroup, OIDRegistry
from certsync.lib.time import parse_duration

NS_EP = "http://schemas.microsoft.com/windows/pki/2009/01/enrollmentpolicy"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

NEXT_UPDATE_HOURS = 8

# Every policy is issued by the single CA of the document
CA_REFERENCE = 0

_TRUE = "true"
_FALSE = "false"


def tbool(v: bool) -> str:
    return _TRUE if bool(v) else _FALSE


def _q(tag: str) -> ET.QName:
    return ET.QName(NS_EP, tag)


def sub(parent: ET.Element, tag: str, value: Any = None) -> ET.Element:
    elem = ET.SubElement(parent, _q(tag))
    if value is not None:
        elem.text = str(value)
    return elem


def nil(parent: ET.Element, tag: str) -> ET.Element:
    elem = ET.SubElement(parent, _q(tag))
    elem.set(f"{{{NS_XSI}}}nil", _TRUE)
    return elem


def pack_subject_name_flags(value: int) -> int:
    """
    Re-encode msPKI-Certificate-Name-Flag for the policy document.

    The directory stores the flags as a signed 32-bit integer; the document
    wants the unsigned value of the same four big-endian bytes.

    Example:
        >>> pack_subject_name_flags(-2113929216)
        2181038080
    """
    packed = struct.pack(">I", value & 0xFFFFFFFF)
    return int.from_bytes(packed, "big")


@dataclass
class PolicyDocument:
    root: ET.Element
    registry: OIDRegistry

    def to_xml(self, pretty: bool = True) -> bytes:
        """
        Serialize the document as UTF-8 XML.
        """
        raw = ET.tostring(
            self.root, encoding="utf-8", xml_declaration=True, default_namespace=NS_EP
        )
        if not pretty:
            return raw
        return minidom.parseString(raw).toprettyxml(indent="  ", encoding="utf-8")


class PolicySerializer:
    """
    Builds the policy elements of a GetPoliciesResponse.

    OIDs are interned into the registry in the order they are met: the
    template itself, key algorithm, hash algorithm, enrollment agent
    application policy and issuance policies, key archival algorithm, then
    each extension.
    """

    def __init__(self, registry: OIDRegistry) -> None:
        self.registry = registry

    def intern(self, value: str, group: OIDGroup, name: str = "") -> int:
        return self.registry.intern(value, group, name or OID_TO_STR_MAP.get(value, ""))

    def add_policy(self, policies: ET.Element, template: CertificateTemplate) -> ET.Element:
        logging.debug(f"Serializing template {template.name!r}")

        # Periods are checked before anything is interned or emitted
        validity_seconds = parse_duration(template.validity_period)
        renewal_seconds = parse_duration(template.renewal_period)

        policy_reference = self.intern(
            template.oid, OIDGroup.ENROLLMENT, template.display_name or template.name
        )

        policy = sub(policies, "policy")
        sub(policy, "policyOIDReference", policy_reference)

        cas = sub(policy, "cAs")
        sub(cas, "cAReference", CA_REFERENCE)

        attrs = sub(policy, "attributes")
        sub(attrs, "commonName", template.name)
        sub(attrs, "policySchema", template.schema_version)

        validity = sub(attrs, "certificateValidity")
        sub(validity, "validityPeriodSeconds", validity_seconds)
        sub(validity, "renewalPeriodSeconds", renewal_seconds)

        permission = sub(attrs, "permission")
        sub(permission, "enroll", tbool(template.enroll))
        sub(permission, "autoEnroll", tbool(template.auto_enroll))

        self._add_private_key_attributes(attrs, template)

        revision = sub(attrs, "revision")
        sub(revision, "majorRevision", template.major_revision)
        sub(revision, "minorRevision", template.minor_revision)

        if template.superseded_templates:
            superseded = sub(attrs, "supersededPolicies")
            for name in template.superseded_templates:
                sub(superseded, "commonName", name)
        else:
            nil(attrs, "supersededPolicies")

        sub(attrs, "privateKeyFlags", template.private_key_flags)
        sub(attrs, "subjectNameFlags", pack_subject_name_flags(template.subject_name_flags))
        sub(attrs, "enrollmentFlags", template.enrollment_flags)
        sub(attrs, "generalFlags", template.general_flags)

        if template.hash_algorithm == DEFAULT_HASH_ALGORITHM_OID:
            nil(attrs, "hashAlgorithmOIDReference")
        else:
            sub(
                attrs,
                "hashAlgorithmOIDReference",
                self.intern(template.hash_algorithm, OIDGroup.HASH),
            )

        self._add_ra_requirements(attrs, template)
        self._add_key_archival_attributes(attrs, template)

        extensions = sub(attrs, "extensions")
        for extension in template.extensions:
            element = sub(extensions, "extension")
            sub(
                element,
                "oIDReference",
                self.intern(extension.oid, OIDGroup.EXTENSION, extension.name),
            )
            sub(element, "critical", tbool(extension.critical))
            sub(element, "value", base64.b64encode(extension.value).decode())

        return policy

    def _add_private_key_attributes(
        self, attrs: ET.Element, template: CertificateTemplate
    ) -> None:
        pka = sub(attrs, "privateKeyAttributes")
        sub(pka, "minimalKeyLength", template.minimal_key_length)
        sub(pka, "keySpec", template.key_spec)

        if template.key_usage == 0:
            nil(pka, "keyUsageProperty")
        else:
            sub(pka, "keyUsageProperty", template.key_usage)

        if template.private_key_permissions:
            sub(pka, "permissions", template.private_key_permissions)
        else:
            nil(pka, "permissions")

        if template.key_algorithm == DEFAULT_KEY_ALGORITHM_OID:
            nil(pka, "algorithmOIDReference")
        else:
            sub(
                pka,
                "algorithmOIDReference",
                self.intern(template.key_algorithm, OIDGroup.PUBLIC_KEY),
            )

        if template.crypto_providers:
            providers = sub(pka, "cryptoProviders")
            for provider in template.crypto_providers:
                sub(providers, "provider", provider)
        else:
            nil(pka, "cryptoProviders")

    def _add_ra_requirements(self, attrs: ET.Element, template: CertificateTemplate) -> None:
        if template.ra_signatures == 0:
            nil(attrs, "rARequirements")
            return

        ra = sub(attrs, "rARequirements")
        sub(ra, "rASignatures", template.ra_signatures)

        if template.ra_application_policy:
            ekus = sub(ra, "rAEKUs")
            sub(
                ekus,
                "oIDReference",
                self.intern(template.ra_application_policy, OIDGroup.EKU),
            )
        else:
            nil(ra, "rAEKUs")

        if template.ra_certificate_policies:
            policies = sub(ra, "rAPolicies")
            for oid in template.ra_certificate_policies:
                sub(
                    policies,
                    "oIDReference",
                    self.intern(oid, OIDGroup.CERTIFICATE_POLICY),
                )
        else:
            nil(ra, "rAPolicies")

    def _add_key_archival_attributes(
        self, attrs: ET.Element, template: CertificateTemplate
    ) -> None:
        if not template.key_archival_algorithm:
            nil(attrs, "keyArchivalAttributes")
            return

        kaa = sub(attrs, "keyArchivalAttributes")
        sub(
            kaa,
            "symmetricAlgorithmOIDReference",
            self.intern(template.key_archival_algorithm, OIDGroup.ENCRYPTION),
        )
        sub(kaa, "symmetricAlgorithmKeyLength", template.key_archival_key_length)


def build_get_policies_response(
    templates: Sequence[CertificateTemplate],
    registry: Optional[OIDRegistry] = None,
    policy_id: str = "",
    next_update_hours: int = NEXT_UPDATE_HOURS,
) -> PolicyDocument:
    """
    Build a GetPoliciesResponse document for a list of templates.

    Args:
        templates: Templates to include, in document order
        registry: OID registry to intern into; a new one is created if omitted
        policy_id: Value of the policyID element
        next_update_hours: Value of the nextUpdateHours element

    Returns:
        PolicyDocument holding the element tree and the registry used

    Raises:
        MissingInputError: If no templates are given
        FormatError: If a period or OID of a template is malformed
        RangeError: If a period overflows a 32-bit integer
    """
    if not templates:
        raise MissingInputError("No certificate templates to serialize")

    if registry is None:
        registry = OIDRegistry()

    serializer = PolicySerializer(registry)

    gpr = ET.Element(_q("GetPoliciesResponse"))

    response = sub(gpr, "response")
    sub(response, "policyID", policy_id)
    sub(response, "policyFriendlyName")
    sub(response, "nextUpdateHours", next_update_hours)
    nil(response, "policiesNotChanged")

    policies = sub(response, "policies")
    for template in templates:
        serializer.add_policy(policies, template)

    nil(gpr, "cAs")

    oids = sub(gpr, "oIDs")
    for entry in registry.entries:
        oid = sub(oids, "oID")
        sub(oid, "value", entry.value)
        sub(oid, "group", int(entry.group))
        sub(oid, "oIDReferenceID", entry.reference_id)
        sub(oid, "defaultName", entry.name)

    logging.debug(
        f"Built policy document with {len(templates)} template(s) and {len(registry)} OID(s)"
    )

    return PolicyDocument(root=gpr, registry=registry)
