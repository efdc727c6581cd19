"""
Turns attribute differences into directory write operations.

The directory cannot set and remove attribute values in one request, so a
set of differences is split into attributes to replace and attributes to
clear, applied as two separate modify operations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

import ldap3


@dataclass
class ChangeSet:
    replace: Dict[str, Any] = field(default_factory=dict)
    clear: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.replace and not self.clear

    def __bool__(self) -> bool:
        return not self.is_empty

    def __len__(self) -> int:
        return len(self.replace) + len(self.clear)


def is_zero_value(value: Any) -> bool:
    """
    Check whether a recorded value means "clear the attribute".

    None, empty or blank strings and empty collections are zero values.
    Integers, including 0, are not.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset, bytes, bytearray)):
        return len(value) == 0
    return False


def reconcile(differences: Mapping[str, Any]) -> ChangeSet:
    """
    Partition differences into attributes to replace and attributes to clear.

    Every key ends up in exactly one of the two collections.

    Args:
        differences: Output of certsync.diff.diff

    Returns:
        ChangeSet with the replace mapping and the clear list
    """
    change_set = ChangeSet()

    for key, value in differences.items():
        if is_zero_value(value):
            change_set.clear.append(key)
        else:
            change_set.replace[key] = value

    return change_set


def to_modifications(change_set: ChangeSet) -> List[Dict[str, Any]]:
    """
    Build the ldap3 modify requests for a change set.

    Returns:
        Up to two change dictionaries, replace first then clear. Empty
        collections produce no request.
    """
    modifications = []

    if change_set.replace:
        modifications.append(
            {
                key: [(ldap3.MODIFY_REPLACE, value if isinstance(value, list) else [value])]
                for key, value in change_set.replace.items()
            }
        )

    if change_set.clear:
        modifications.append(
            {key: [(ldap3.MODIFY_DELETE, [])] for key in change_set.clear}
        )

    return modifications
