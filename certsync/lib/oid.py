"""
Object identifier interning for enrollment policy documents.

An enrollment policy document references every OID through a small integer
(oIDReferenceID) and lists the OIDs once, in a trailing table. OIDRegistry
assigns those integers in first-seen order.

A registry lives for one serialization call. Create a new one per call; never
share one between unrelated documents.
"""

import enum
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from certsync.lib.errors import FormatError

_OID_RE = re.compile(r"^[0-2](\.(0|[1-9]\d*))+$")


class OIDGroup(enum.IntEnum):
    """
    Semantic role of an OID, numbered as in MS-XCEP.
    """

    HASH = 1
    ENCRYPTION = 2
    PUBLIC_KEY = 3
    SIGNING = 4
    RDN = 5
    EXTENSION = 6
    EKU = 7
    CERTIFICATE_POLICY = 8
    ENROLLMENT = 9


@dataclass(frozen=True)
class OIDEntry:
    value: str
    group: OIDGroup
    name: str
    reference_id: int


def validate_oid(value: str) -> str:
    """
    Check that a value is a dotted-decimal object identifier.

    Raises:
        FormatError: If the value is not a valid OID
    """
    if not isinstance(value, str) or not _OID_RE.match(value):
        raise FormatError(f"Malformed OID {value!r}")
    return value


class OIDRegistry:
    """
    Deduplicating table mapping OID values to stable reference numbers.

    Lookup is by value only: a later intern() of a known value returns the
    existing reference and ignores the group and name it was given.
    """

    def __init__(self) -> None:
        self._entries: List[OIDEntry] = []
        self._by_value: Dict[str, OIDEntry] = {}

    def intern(self, value: str, group: OIDGroup, name: str = "") -> int:
        """
        Return the reference number of an OID, registering it if needed.

        Args:
            value: Dotted-decimal OID
            group: Semantic role, used only on first registration
            name: Friendly name, used only on first registration

        Returns:
            1-based reference number

        Raises:
            FormatError: If the value is not a valid OID
        """
        entry = self._by_value.get(value)
        if entry is not None:
            return entry.reference_id

        validate_oid(value)

        entry = OIDEntry(
            value=value,
            group=OIDGroup(group),
            name=name,
            reference_id=len(self._entries) + 1,
        )
        self._entries.append(entry)
        self._by_value[value] = entry

        return entry.reference_id

    def get(self, value: str) -> Optional[OIDEntry]:
        return self._by_value.get(value)

    @property
    def entries(self) -> List[OIDEntry]:
        """Entries ordered by reference number."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, value: object) -> bool:
        return value in self._by_value

    def __iter__(self) -> Iterator[OIDEntry]:
        return iter(self._entries)
