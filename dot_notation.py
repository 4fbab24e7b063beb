"""
DOT NOTATION FILE

PURPOSE: Flatten nested documents into dot-notation keys for partial
         updates ($set) on document databases

Author: Edward Toledo Lopez <edward_tl@hotmail.com>
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import date, time
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Primary key of a document, never flattened
ID_FIELD = "_id"

# Joins the path segments of a flattened key
SEPARATOR = "."


class _Unset:
    """Marker type for a field that must not be written."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    # copy and pickle give back the module level UNSET
    def __reduce__(self):
        return "UNSET"


UNSET = _Unset()


class ValueKind(Enum):
    """How a single value is treated while flattening."""

    IDENTIFIER = "identifier"
    UNREPRESENTABLE = "unrepresentable"
    PRIMITIVE = "primitive"
    NULL = "null"
    TEMPORAL = "temporal"
    SEQUENCE = "sequence"
    RECORD = "record"


# Kinds copied as they are under their own key
LEAF_KINDS = (ValueKind.PRIMITIVE, ValueKind.NULL, ValueKind.TEMPORAL)


def classify(value: Any) -> ValueKind:
    """
    Return the kind of a value.

    Text and bytes are sequences for Python but atomic for the database,
    so they are checked before any container. Values that are neither
    mappings nor sequences are opaque primitives (Decimal, UUID, ...)
    unless they are callable.

    Args:
        value: Any node of a document tree

    Returns:
        The ValueKind of the value. IDENTIFIER is never returned here,
        it depends on the key and is decided by flatten_record.

    Example:
        >>> classify([1, 2])
        <ValueKind.SEQUENCE: 'sequence'>
    """
    if value is UNSET or type(value) is object:
        return ValueKind.UNREPRESENTABLE
    if value is None:
        return ValueKind.NULL
    if isinstance(value, (date, time)):
        return ValueKind.TEMPORAL
    if isinstance(value, (str, bytes, bytearray)):
        return ValueKind.PRIMITIVE
    if isinstance(value, Mapping):
        return ValueKind.RECORD
    if isinstance(value, Sequence):
        return ValueKind.SEQUENCE
    if callable(value):
        return ValueKind.UNREPRESENTABLE
    return ValueKind.PRIMITIVE


def _add_entry(result: dict, key: Any, value: Any) -> None:
    """Write one key/value pair into result, descending into containers."""
    kind = classify(value)

    if kind in LEAF_KINDS:
        result[key] = value
    elif kind is ValueKind.SEQUENCE:
        for sub_key, sub_value in flatten_sequence(value).items():
            result[f"{key}{SEPARATOR}{sub_key}"] = sub_value
    elif kind is ValueKind.RECORD:
        for sub_key, sub_value in flatten_record(value).items():
            result[f"{key}{SEPARATOR}{sub_key}"] = sub_value
    # Unrepresentable values are ignored by the database, skip them


def flatten_record(record: Mapping) -> dict:
    """
    Flattens a nested document into a single-level dictionary.

    Keys are joined with dots, list items use their index:
    - parent.child for nested documents
    - parent.0 for list items

    The _id field is copied as it is, whatever its value. Functions,
    UNSET and bare object() sentinels are dropped without a trace.
    Empty documents and lists produce no keys.

    Args:
        record: The document to flatten

    Returns:
        A new flat dictionary, ready to be used as a $set payload

    Raises:
        TypeError: If record is not a mapping

    Example:
        >>> flatten_record({"_id": 7, "tags": ["x", "y"]})
        {"_id": 7, "tags.0": "x", "tags.1": "y"}
    """
    if not isinstance(record, Mapping):
        logger.debug("flatten_record rejected %s", type(record).__name__)
        raise TypeError(f"Expected a mapping, got {type(record).__name__}")

    result = {}

    for key, value in record.items():
        # Always keep the primary key as it is
        if key == ID_FIELD:
            result[key] = value
            continue

        _add_entry(result, key, value)

    return result


def flatten_sequence(sequence: Sequence) -> dict:
    """
    Flattens a list into a dictionary keyed by item index.

    A document is never a list, this exists to reach the items of
    (multidimensional) lists found inside a document. Indices are
    strings and keep the position of the item in the list, even when
    earlier items were dropped.

    Args:
        sequence: The list or tuple to flatten

    Returns:
        A new flat dictionary with "0", "1", "0.name", ... keys

    Raises:
        TypeError: If sequence is text or not a sequence
    """
    if classify(sequence) is not ValueKind.SEQUENCE:
        logger.debug("flatten_sequence rejected %s", type(sequence).__name__)
        raise TypeError(f"Expected a sequence, got {type(sequence).__name__}")

    result = {}

    for idx, item in enumerate(sequence):
        _add_entry(result, str(idx), item)

    return result
