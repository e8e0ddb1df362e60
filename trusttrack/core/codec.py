"""
Field codec - dynamic stage fields to and from the contract's flat string array.

Each pair is stored on chain as ``key||value``. Decoding is forgiving:
malformed entries are dropped so the rest of a stage still renders.
"""

import json
from typing import Dict, Iterable, List, Mapping

from .errors import ValidationError
from .schema import FieldPair
from ..util.logging import logger

SEP = "||"


def encode(pairs: Iterable[FieldPair]) -> List[str]:
    """Encode field pairs as ``key||value`` strings, trimming both sides."""
    return [f"{pair.key.strip()}{SEP}{pair.value.strip()}" for pair in pairs]


def decode(entries: Iterable[str]) -> Dict[str, str]:
    """
    Decode ``key||value`` strings into a mapping.

    Splits on the first separator only. Entries without a separator or with
    an empty key are omitted; values are returned verbatim.
    """
    fields: Dict[str, str] = {}
    for entry in entries:
        if not isinstance(entry, str):
            continue
        key, sep, value = entry.partition(SEP)
        if not sep or not key:
            continue
        fields[key] = value
    return fields


def validate_pairs(pairs: Iterable[FieldPair]) -> None:
    """Reject pairs that would not survive an encode/decode round-trip."""
    for index, pair in enumerate(pairs):
        key = pair.key.strip()
        value = pair.value.strip()
        if not key:
            raise ValidationError(f"Field {index} has an empty key")
        if key.endswith("|"):
            # key| + || would decode with the trailing pipe moved into the value
            raise ValidationError(
                f"Field key '{key}' must not end with '|'",
                details=f"trailing pipe in field {index}"
            )
        if SEP in key or SEP in value:
            raise ValidationError(
                f"Field '{key}' must not contain the sequence '{SEP}'",
                details=f"separator found in field {index}"
            )


def pairs_from_mapping(mapping: Mapping[str, str]) -> List[FieldPair]:
    return [FieldPair(key=k, value=v) for k, v in mapping.items()]


def parse_dynamic_fields(raw: str) -> List[FieldPair]:
    """
    Parse the JSON ``dynamicFields`` form value into field pairs.

    Unparsable JSON yields an empty list; well-formed JSON with the wrong
    shape is a ValidationError.
    """
    if not raw:
        return []

    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Failed to parse dynamic fields, using empty array")
        return []

    if not isinstance(items, list):
        raise ValidationError("dynamicFields must be a JSON array")

    pairs = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"dynamicFields[{index}] must be an object with key and value")
        key = item.get("key")
        value = item.get("value", "")
        if not isinstance(key, str) or not isinstance(value, str):
            raise ValidationError(f"dynamicFields[{index}] key and value must be strings")
        pairs.append(FieldPair(key=key, value=value))
    return pairs
