"""
Shared structure definitions.

This module provides an IntFlag with readable string output and the ASN.1
structures, built on asn1crypto, for the Microsoft certificate template
extensions that are not part of asn1crypto itself.
"""

import enum
from typing import List

from asn1crypto import core

from certsync.lib.formatting import to_pascal_case


class IntFlag(enum.IntFlag):
    """
    IntFlag whose str() lists the set members in PascalCase.
    """

    def to_list(self) -> List["IntFlag"]:
        """Single-bit members set in this value."""
        if not self._value_:
            return []

        return [
            flag for flag in self.__class__ if flag.value and flag.value & self._value_
        ]

    def __str__(self) -> str:
        # Composite values are named "A|B" on recent interpreters
        if self.name is not None and "|" not in self.name:
            return to_pascal_case(self.name)

        if not self._value_:
            return ""

        flags = self.to_list()

        # Only unknown bits are set
        if not flags:
            return repr(self._value_)

        return ", ".join(
            to_pascal_case(flag.name) for flag in flags if flag.name is not None
        )

    def __repr__(self) -> str:
        return str(self)


# =========================================================================
# Certificate template extensions
# =========================================================================


class CertificateTemplateInfo(core.Sequence):
    """
    szOID_CERTIFICATE_TEMPLATE (1.3.6.1.4.1.311.21.7) extension value.

    Identifies the template a certificate was issued from, by template OID and
    revision.
    """

    _fields = [
        ("template_id", core.ObjectIdentifier),
        ("major_version", core.Integer),
        ("minor_version", core.Integer, {"optional": True}),
    ]
