"""
Attribute bags of certificate templates.

Templates are handled as flat attribute maps keyed by directory attribute
name. Values are one of four shapes: int, str, list of str, or bytes. This
module decodes the two inputs into that shape (an ldap3 entry for the live
template and a JSON document for the desired state), encodes a map back to
JSON, and holds the coercion helpers used when comparing values.
"""

import datetime
import fnmatch
import json
from typing import Any, Dict, List, Mapping, Union

from certsync.lib.errors import FormatError, TypeCoercionError
from certsync.lib.schema import (
    ComparisonPolicy,
    is_period_attribute,
    policy_for,
)
from certsync.lib.time import (
    filetime_to_str,
    parse_duration,
    span_to_filetime,
)

AttributeValue = Union[int, str, List[str], bytes]
AttributeMap = Dict[str, AttributeValue]

HEX_PREFIX = "HEX:"

# Attributes always read from a template, next to the PKI wildcard below
PROJECTED_ATTRIBUTES = ["name", "displayName", "objectClass", "flags", "revision"]
PROJECTION_INCLUDE = "*pki*"
PROJECTION_EXCLUDE = "*oid*"

# =========================================================================
# Coercion
# =========================================================================


def to_int(attribute: str, value: Any) -> int:
    """
    Coerce a value of an integer attribute, accepting numeric text.

    Missing values coerce to 0.

    Raises:
        TypeCoercionError: If the value is not an integer or integer-like text
    """
    if value is None:
        return 0
    if isinstance(value, (list, tuple)) and len(value) == 1:
        return to_int(attribute, value[0])
    if isinstance(value, bool):
        raise TypeCoercionError(attribute, value, "integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (bytes, bytearray)):
        try:
            value = bytes(value).decode("ascii")
        except UnicodeDecodeError:
            raise TypeCoercionError(attribute, value, "integer")
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            raise TypeCoercionError(attribute, value, "integer")

    raise TypeCoercionError(attribute, value, "integer")


def to_bytes(attribute: str, value: Any) -> bytes:
    """
    Coerce a value of a byte-sequence attribute.

    Accepts bytes, "HEX:" prefixed text, and lists of integers in 0..255 (the
    shape byte arrays take in JSON).

    Raises:
        TypeCoercionError: If the value cannot be read as bytes
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and value.startswith(HEX_PREFIX):
        try:
            return bytes.fromhex(value[len(HEX_PREFIX) :])
        except ValueError:
            raise TypeCoercionError(attribute, value, "bytes")
    if isinstance(value, (list, tuple)):
        if len(value) == 1 and isinstance(value[0], (bytes, bytearray, str)):
            return to_bytes(attribute, value[0])
        if all(isinstance(item, int) and not isinstance(item, bool) for item in value):
            try:
                return bytes(value)
            except ValueError:
                raise TypeCoercionError(attribute, value, "bytes")

    raise TypeCoercionError(attribute, value, "bytes")


def to_text(attribute: str, value: Any) -> str:
    """Render a single value as text, decoding bytes as UTF-8."""
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            raise TypeCoercionError(attribute, value, "string")
    return str(value)


def to_string_list(attribute: str, value: Any) -> List[str]:
    """
    Map a single or multi-valued attribute to the string form of its values.

    Missing values map to an empty list.
    """
    return [to_text(attribute, item) for item in as_collection(value)]


def as_collection(value: Any) -> List[Any]:
    """Wrap a single value in a list, keeping collections in their order."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return [value]


def oid_collection(value: Any) -> List[Any]:
    """
    as_collection() without blank strings; "" stands for an empty OID list.
    """
    return [
        item
        for item in as_collection(value)
        if not (isinstance(item, str) and not item.strip())
    ]


# =========================================================================
# Decoding
# =========================================================================


def _decode_entry_value(attribute: str, value: Any) -> Any:
    if isinstance(value, bytearray):
        return bytes(value)
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    return value


def decode_entry(attributes: Mapping[str, Any]) -> AttributeMap:
    """
    Decode the attributes of an ldap3 search result into an attribute map.

    Single-element lists are unwrapped except for multi-valued OID attributes,
    empty values are dropped, and integer attributes returned as text are
    converted.

    Args:
        attributes: The "attributes" dictionary of an ldap3 entry

    Returns:
        Decoded attribute map
    """
    output: AttributeMap = {}

    for key, value in attributes.items():
        if value is None or (isinstance(value, (list, tuple)) and len(value) == 0):
            continue

        policy = policy_for(key)

        if isinstance(value, (list, tuple)):
            value = [_decode_entry_value(key, item) for item in value]
            if policy == ComparisonPolicy.MULTI_OID:
                output[key] = to_string_list(key, value)
                continue
            if len(value) == 1:
                value = value[0]
        else:
            value = _decode_entry_value(key, value)
            if policy == ComparisonPolicy.MULTI_OID:
                output[key] = to_string_list(key, value)
                continue

        if policy == ComparisonPolicy.SCALAR_INT:
            value = to_int(key, value)
        elif policy == ComparisonPolicy.BYTE_SEQ:
            value = to_bytes(key, value)

        output[key] = value

    return output


def _decode_hex(value: Any) -> Any:
    if isinstance(value, list):
        return [_decode_hex(item) for item in value]
    if isinstance(value, str) and value.startswith(HEX_PREFIX):
        return bytes.fromhex(value[len(HEX_PREFIX) :])
    return value


def _decode_period(attribute: str, value: Any) -> bytes:
    if isinstance(value, bool) or (isinstance(value, int) and value < 0):
        raise TypeCoercionError(attribute, value, "period")
    if isinstance(value, int):
        return span_to_filetime(value)
    if isinstance(value, str) and not value.startswith(HEX_PREFIX):
        return span_to_filetime(parse_duration(value))
    return to_bytes(attribute, value)


def decode_document(document: Any) -> AttributeMap:
    """
    Decode a desired-state JSON object into an attribute map.

    - "HEX:" strings become bytes
    - Periods accept a duration ("6 weeks"), seconds, or bytes
    - Byte attributes accept lists of integers
    - Single OID strings become one-element lists, blank strings are dropped
    - null values are dropped

    Integer attributes are kept as supplied; the differ coerces them.

    Raises:
        TypeCoercionError: If the document is not an object or a byte value is invalid
        FormatError: If a period string is malformed
    """
    if not isinstance(document, dict):
        raise TypeCoercionError("<document>", document, "JSON object")

    output: AttributeMap = {}

    for key, value in document.items():
        if value is None:
            continue

        policy = policy_for(key)

        if policy == ComparisonPolicy.BYTE_SEQ:
            if is_period_attribute(key):
                output[key] = _decode_period(key, value)
            else:
                output[key] = to_bytes(key, value)
        elif policy == ComparisonPolicy.MULTI_OID:
            output[key] = oid_collection(value)
        else:
            try:
                output[key] = _decode_hex(value)
            except ValueError:
                raise TypeCoercionError(key, value, "bytes")

    return output


def load_document(path: str) -> AttributeMap:
    """
    Read and decode a desired-state JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        TypeCoercionError: If the file is not valid JSON or not an object
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as e:
            raise TypeCoercionError("<document>", path, f"JSON object ({e})")

    return decode_document(document)


# =========================================================================
# Encoding
# =========================================================================


def _encode_value(attribute: str, value: Any) -> Any:
    if isinstance(value, list):
        return [_encode_value(attribute, item) for item in value]
    if isinstance(value, bytes):
        if is_period_attribute(attribute):
            try:
                return filetime_to_str(value)
            except FormatError:
                pass
        return HEX_PREFIX + value.hex()
    return value


def encode_document(attributes: Mapping[str, Any]) -> str:
    """
    Encode an attribute map as a JSON document accepted by decode_document.

    Bytes are written as "HEX:" strings and periods as duration strings.
    """
    output = {key: _encode_value(key, value) for key, value in attributes.items()}
    return json.dumps(output, indent=2, ensure_ascii=False)


# =========================================================================
# Projection
# =========================================================================


def is_projected(attribute: str) -> bool:
    name = attribute.lower()
    if name in (projected.lower() for projected in PROJECTED_ATTRIBUTES):
        return True
    return fnmatch.fnmatch(name, PROJECTION_INCLUDE) and not fnmatch.fnmatch(
        name, PROJECTION_EXCLUDE
    )


def project_attributes(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Restrict a template's attributes to the ones that are reconciled.

    Keeps name, displayName, objectClass, flags and revision, plus every
    attribute whose name contains "pki" and does not contain "oid"
    (case-insensitive).
    """
    return {key: value for key, value in attributes.items() if is_projected(key)}
