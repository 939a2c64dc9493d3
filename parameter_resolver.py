"""Attribute resolution and writes with instance -> type fallback."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from prosched.models import (
    INVALID_ELEMENT_ID,
    Attribute,
    AttributeId,
    Element,
    StorageKind,
    is_intrinsic,
)
from prosched.results import (
    NOT_FOUND,
    NOT_FOUND_KIND,
    READ_ONLY_KIND,
    TYPE_MISMATCH_KIND,
    UNSUPPORTED_KIND,
    Found,
    WriteError,
    WriteOk,
)


TIER_INTRINSIC = 1
TIER_NAME = 2
TIER_SCAN = 3
TIER_TYPE = 4


@dataclass(frozen=True)
class Lookup:
    attribute: Attribute
    owner: Element
    is_type: bool
    tier: int


def format_number(value: Any) -> str:
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


_INT_RE = re.compile(r"[+-]?[0-9]+")
_REAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def parse_int(text: str) -> int | None:
    # ASCII digits only, no "_" grouping
    if text is None:
        return None
    raw = str(text).strip()
    if not _INT_RE.fullmatch(raw):
        return None
    return int(raw)


def parse_real(text: str) -> float | None:
    if text is None:
        return None
    raw = str(text).strip()
    if not _REAL_RE.fullmatch(raw):
        return None
    number = float(raw)
    if not math.isfinite(number):
        return None
    return number


class ParameterResolver:
    """Maps an attribute reference onto a concrete attribute of one element.

    Tiers are tried in order and the first hit wins:

    1. intrinsic lookup (negative ids) on the instance
    2. definition name lookup on the instance
    3. linear id scan over the instance attributes
    4. tiers 1-3 against the companion type (``is_type=True``)
    """

    def __init__(self, host) -> None:
        self._host = host

    def _find_on(self, element: Element, attribute_id: AttributeId) -> tuple[Attribute, int] | None:
        host = self._host
        if is_intrinsic(attribute_id):
            attr = host.get_intrinsic(element, attribute_id)
            if attr is not None:
                return attr, TIER_INTRINSIC
        else:
            definition = host.get_attribute_definition(attribute_id)
            if definition is not None:
                attr = host.lookup_attribute(element, definition.name)
                if attr is not None:
                    return attr, TIER_NAME
        for attr in host.iter_attributes(element):
            if attr.attribute_id == attribute_id:
                return attr, TIER_SCAN
        return None

    def find(self, element: Element, attribute_id: AttributeId) -> Lookup | None:
        hit = self._find_on(element, attribute_id)
        if hit is not None:
            return Lookup(attribute=hit[0], owner=element, is_type=False, tier=hit[1])
        type_elem = self._companion_type(element)
        if type_elem is None:
            return None
        hit = self._find_on(type_elem, attribute_id)
        if hit is None:
            return None
        return Lookup(attribute=hit[0], owner=type_elem, is_type=True, tier=TIER_TYPE)

    def _companion_type(self, element: Element) -> Element | None:
        if element.type_id == INVALID_ELEMENT_ID:
            return None
        return self._host.get_type(element)

    def resolve(self, element: Element, attribute_id: AttributeId):
        lookup = self.find(element, attribute_id)
        if lookup is None:
            return NOT_FOUND
        return Found(value=self.read(lookup.attribute), is_type=lookup.is_type, tier=lookup.tier)

    def read(self, attribute: Attribute) -> str:
        value = attribute.value
        storage = attribute.storage
        if storage == StorageKind.TEXT:
            return "" if value is None else str(value)
        if storage == StorageKind.INTEGER:
            return "" if value is None else str(int(value))
        if storage == StorageKind.REAL:
            formatted = self._host.format_value(attribute)
            if formatted is not None:
                return formatted
            return "" if value is None else format_number(value)
        if storage == StorageKind.REFERENCE:
            if value is None or value == INVALID_ELEMENT_ID:
                return ""
            return self._host.element_name(value) or ""
        return "" if value is None else str(value)

    def set_value(self, element: Element, attribute_id: AttributeId, text: str):
        lookup = self.find(element, attribute_id)
        if lookup is None:
            return WriteError(NOT_FOUND_KIND, f"Attribute {attribute_id} not found on element {element.element_id}")
        return self.write(lookup.attribute, text, is_type=lookup.is_type)

    def set_value_by_name(self, element: Element, name: str, text: str, prefer_type: bool = False):
        attr = self._host.lookup_attribute(element, name)
        is_type = False
        if attr is None or prefer_type:
            type_elem = self._companion_type(element)
            if type_elem is not None:
                type_attr = self._host.lookup_attribute(type_elem, name)
                if type_attr is not None:
                    attr = type_attr
                    is_type = True
        if attr is None:
            return WriteError(NOT_FOUND_KIND, f"Parameter '{name}' not found on element {element.element_id}")
        return self.write(attr, text, is_type=is_type)

    def write(self, attribute: Attribute, text: str, is_type: bool = False):
        if attribute.read_only:
            return WriteError(READ_ONLY_KIND, f"Parameter '{attribute.name}' is read-only")
        storage = attribute.storage
        if storage == StorageKind.TEXT:
            self._host.set_value(attribute, "" if text is None else str(text))
            return WriteOk(is_type=is_type)
        if storage == StorageKind.INTEGER:
            number = parse_int(text)
            if number is None:
                return WriteError(TYPE_MISMATCH_KIND, f"'{text}' is not an integer")
            self._host.set_value(attribute, number)
            return WriteOk(is_type=is_type)
        if storage == StorageKind.REAL:
            if self._host.set_value_string(attribute, text):
                return WriteOk(is_type=is_type)
            number = parse_real(text)
            if number is None:
                return WriteError(TYPE_MISMATCH_KIND, f"'{text}' is not a number")
            self._host.set_value(attribute, number)
            return WriteOk(is_type=is_type)
        return WriteError(UNSUPPORTED_KIND, f"Parameter '{attribute.name}' stores an element reference")
