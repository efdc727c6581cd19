"""
Comparison policies for certificate template attributes.

Every template attribute is compared according to one of four policies,
decided by its name. The table is static; attribute names not listed fall back
to ComparisonPolicy.DEFAULT.
"""

import enum
from typing import Dict, List


class ComparisonPolicy(enum.Enum):
    """How two values of an attribute are compared."""

    SCALAR_INT = "scalar_int"  # 32-bit integers, textual input coerced
    MULTI_OID = "multi_oid"  # unordered multi-valued strings
    BYTE_SEQ = "byte_seq"  # raw bytes, compared only when both sides exist
    DEFAULT = "default"  # trimmed case-sensitive strings, otherwise equality


SCALAR_INT_ATTRIBUTES: List[str] = [
    "flags",
    "msPKI-Certificate-Name-Flag",
    "msPKI-Enrollment-Flag",
    "msPKI-Minimal-Key-Size",
    "msPKI-Private-Key-Flag",
    "msPKI-Template-Minor-Revision",
    "msPKI-Template-Schema-Version",
    "msPKI-RA-Signature",
    "pKIMaxIssuingDepth",
    "pKIDefaultKeySpec",
    "revision",
]

MULTI_OID_ATTRIBUTES: List[str] = [
    "msPKI-Certificate-Application-Policy",
    "pKICriticalExtensions",
    "pKIDefaultCSPs",
    "pKIExtendedKeyUsage",
    "msPKI-Certificate-Policy",
]

BYTE_SEQ_ATTRIBUTES: List[str] = [
    "pKIExpirationPeriod",
    "pKIKeyUsage",
    "pKIOverlapPeriod",
]

# Period attributes hold a FILETIME span
PERIOD_ATTRIBUTES: List[str] = ["pKIExpirationPeriod", "pKIOverlapPeriod"]


def _build_table() -> Dict[str, ComparisonPolicy]:
    table: Dict[str, ComparisonPolicy] = {}
    # Checked in priority order: the first class listing a name wins
    for names, policy in (
        (SCALAR_INT_ATTRIBUTES, ComparisonPolicy.SCALAR_INT),
        (MULTI_OID_ATTRIBUTES, ComparisonPolicy.MULTI_OID),
        (BYTE_SEQ_ATTRIBUTES, ComparisonPolicy.BYTE_SEQ),
    ):
        for name in names:
            table.setdefault(name.lower(), policy)
    return table


# Keyed by lowercase name, directory attribute names are case-insensitive
ATTRIBUTE_POLICIES: Dict[str, ComparisonPolicy] = _build_table()


def policy_for(attribute: str) -> ComparisonPolicy:
    """
    Return the comparison policy of an attribute.

    Example:
        >>> policy_for("pKIExtendedKeyUsage")
        <ComparisonPolicy.MULTI_OID: 'multi_oid'>
        >>> policy_for("displayName")
        <ComparisonPolicy.DEFAULT: 'default'>
    """
    return ATTRIBUTE_POLICIES.get(attribute.lower(), ComparisonPolicy.DEFAULT)


def is_period_attribute(attribute: str) -> bool:
    return attribute.lower() in (name.lower() for name in PERIOD_ATTRIBUTES)
