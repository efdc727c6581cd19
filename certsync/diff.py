"""
Attribute differ for certificate templates.

diff() compares the live attribute map of a template with a desired one and
returns only the attributes that differ in meaning, each mapped to the value
to write. How two values compare depends on the attribute's
ComparisonPolicy (see certsync.lib.schema).

A recorded value that is empty (None, "" or []) means the attribute should be
cleared; certsync.reconcile turns the result into replace and clear sets.
"""

from typing import Any, Dict, List, Mapping, Optional

from certsync.lib.attributes import (
    oid_collection,
    to_bytes,
    to_int,
    to_string_list,
)
from certsync.lib.logger import logging
from certsync.lib.schema import ComparisonPolicy, policy_for

# Marker for "no value on this side"
_MISSING = object()

Differences = Dict[str, Any]


def _diff_scalar_int(attribute: str, current: Any, desired: Any) -> Any:
    current_value = to_int(attribute, None if current is _MISSING else current)
    desired_value = to_int(attribute, None if desired is _MISSING else desired)

    if current_value == desired_value:
        return _MISSING

    if desired is _MISSING:
        return None

    return desired_value


def _diff_multi_oid(attribute: str, current: Any, desired: Any) -> Any:
    current_values = to_string_list(
        attribute, oid_collection(None if current is _MISSING else current)
    )
    desired_collection = oid_collection(None if desired is _MISSING else desired)
    desired_values = to_string_list(attribute, desired_collection)

    if set(current_values) == set(desired_values):
        return _MISSING

    return desired_collection


def _diff_byte_seq(attribute: str, current: Any, desired: Any) -> Any:
    # Partially populated inputs are not treated as a change
    if current is _MISSING or desired is _MISSING:
        return _MISSING

    desired_value = to_bytes(attribute, desired)
    if to_bytes(attribute, current) == desired_value:
        return _MISSING

    return desired_value


def _diff_default(attribute: str, current: Any, desired: Any) -> Any:
    if isinstance(current, str) or isinstance(desired, str):
        current_value = "" if current is _MISSING else current
        desired_value = "" if desired is _MISSING else desired

        if isinstance(current_value, str) and isinstance(desired_value, str):
            # Trim directory padding; case differences are real changes
            if current_value.strip() == desired_value.strip():
                return _MISSING
            return desired_value

    if desired is _MISSING:
        return None

    if current is _MISSING:
        if isinstance(desired, (list, tuple, bytes)) and len(desired) == 0:
            return _MISSING
        return desired

    if current == desired:
        return _MISSING

    return desired


_DIFFERS = {
    ComparisonPolicy.SCALAR_INT: _diff_scalar_int,
    ComparisonPolicy.MULTI_OID: _diff_multi_oid,
    ComparisonPolicy.BYTE_SEQ: _diff_byte_seq,
    ComparisonPolicy.DEFAULT: _diff_default,
}


def diff_attribute(attribute: str, current: Any, desired: Any) -> Optional[Any]:
    """
    Compare one attribute.

    Args:
        attribute: Attribute name, selects the comparison policy
        current: Live value, or None when absent
        desired: Desired value, or None when absent

    Returns:
        A one-element dictionary {attribute: value} when the values differ,
        otherwise None

    Raises:
        TypeCoercionError: If a value cannot be coerced to the attribute's type
    """
    differ = _DIFFERS[policy_for(attribute)]
    result = differ(
        attribute,
        _MISSING if current is None else current,
        _MISSING if desired is None else desired,
    )
    if result is _MISSING:
        return None
    return {attribute: result}


def diff(current: Mapping[str, Any], desired: Mapping[str, Any]) -> Differences:
    """
    Compute the changes needed to move a template from its current to its
    desired attributes.

    Keys are the union of both maps (current order first), matched
    case-insensitively; a change is recorded under the current map's
    spelling of the name when it has one. An attribute is
    recorded only when the values differ under its comparison policy:

    - Integer attributes compare as integers; the desired integer is recorded
    - OID list attributes compare as sets; the desired list is recorded as given
    - Byte attributes compare as bytes, and only when both sides are present
    - Other strings compare after trimming, case-sensitively

    An attribute absent from the desired map is recorded with an empty value
    (None, "" or []) meaning it should be cleared.

    Args:
        current: Live attribute map
        desired: Desired attribute map

    Returns:
        Mapping of attribute name to the value to write

    Raises:
        TypeCoercionError: If a value cannot be coerced to its attribute's type
    """
    # Directory attribute names are case-insensitive
    desired_names = {key.lower(): key for key in desired.keys()}
    current_names = {key.lower() for key in current.keys()}

    keys: List[str] = list(current.keys())
    keys.extend(key for key in desired.keys() if key.lower() not in current_names)

    differences: Differences = {}
    for key in keys:
        desired_key = desired_names.get(key.lower())
        desired_value = None if desired_key is None else desired[desired_key]
        change = diff_attribute(key, current.get(key), desired_value)
        if change is None:
            continue

        logging.debug(f"Attribute {key!r} differs: {current.get(key)!r} -> {change[key]!r}")
        differences.update(change)

    return differences
