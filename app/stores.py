"""In-memory host document, transactions and settings store."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

from parameter_resolver import format_number, parse_real
from prosched.models import (
    INVALID_ELEMENT_ID,
    MULTI_CATEGORY,
    Attribute,
    AttributeDefinition,
    Element,
    SchedulableField,
    ScheduleDefinition,
    ScheduleField,
    SortCriterion,
    StorageKind,
    ViewSettings,
    is_intrinsic,
)


class InMemoryTx:
    def __init__(self, on_commit: Callable[[], None] | None = None, on_rollback: Callable[[], None] | None = None) -> None:
        self.committed = False
        self.rolled_back = False
        self._on_commit = on_commit
        self._on_rollback = on_rollback

    @property
    def active(self) -> bool:
        return not self.committed and not self.rolled_back

    def commit(self) -> None:
        if not self.active:
            raise RuntimeError("Transaction is not active")
        self.committed = True
        if self._on_commit:
            self._on_commit()

    def rollback(self) -> None:
        if not self.active:
            return
        self.rolled_back = True
        if self._on_rollback:
            self._on_rollback()


class MemoryHostDocument:
    """Host document kept in memory.

    Only one transaction may be open at a time and every write must happen
    inside it; rollback restores attribute values and field lists in place.
    """

    def __init__(self) -> None:
        self._elements: Dict[int, Element] = {}
        self._definitions: Dict[int, AttributeDefinition] = {}
        self._categories: Dict[int, dict] = {}
        self._schedules: Dict[int, ScheduleDefinition] = {}
        self._next_field_id = 1
        self._tx: InMemoryTx | None = None

    # -- population -------------------------------------------------------

    def add_definition(self, attribute_id: int, name: str) -> AttributeDefinition:
        definition = AttributeDefinition(attribute_id, name)
        self._definitions[attribute_id] = definition
        return definition

    def add_category(
        self,
        category_id: int,
        name: str,
        filterable: set[int] | None = None,
        schedulable: List[SchedulableField] | None = None,
    ) -> None:
        self._categories[category_id] = {
            "name": name,
            "filterable": set(filterable) if filterable is not None else None,
            "schedulable": list(schedulable or []),
        }

    def add_element(self, element: Element) -> Element:
        self._elements[element.element_id] = element
        return element

    def add_schedule(
        self,
        schedule_id: int,
        name: str,
        category_id: int = MULTI_CATEGORY,
        fields: List[Tuple[int, str]] | None = None,
        hidden: set[str] | None = None,
    ) -> ScheduleDefinition:
        definition = ScheduleDefinition(schedule_id=schedule_id, name=name, category_id=category_id)
        for attribute_id, field_name in fields or []:
            definition.fields.append(
                ScheduleField(
                    field_id=self._mint_field_id(),
                    attribute_id=attribute_id,
                    name=field_name,
                    hidden=field_name in (hidden or set()),
                )
            )
        self._schedules[schedule_id] = definition
        return definition

    def _mint_field_id(self) -> int:
        field_id = self._next_field_id
        self._next_field_id += 1
        return field_id

    # -- transactions -----------------------------------------------------

    def begin(self) -> InMemoryTx:
        if self._tx is not None and self._tx.active:
            raise RuntimeError("A transaction is already open on this document")
        values = {
            (eid, aid): copy.deepcopy(attr.value)
            for eid, element in self._elements.items()
            for aid, attr in element.attributes.items()
        }
        fields = {sid: list(d.fields) for sid, d in self._schedules.items()}
        next_field_id = self._next_field_id

        def _restore() -> None:
            for (eid, aid), value in values.items():
                self._elements[eid].attributes[aid].value = value
            for sid, saved in fields.items():
                self._schedules[sid].fields[:] = saved
            self._next_field_id = next_field_id
            self._tx = None

        def _close() -> None:
            self._tx = None

        self._tx = InMemoryTx(on_commit=_close, on_rollback=_restore)
        return self._tx

    def _require_tx(self) -> None:
        if self._tx is None or not self._tx.active:
            raise RuntimeError("Attempt to modify the document outside of a transaction")

    # -- elements and attributes ------------------------------------------

    def get_element(self, element_id: int) -> Element | None:
        return self._elements.get(element_id)

    def get_type(self, element: Element) -> Element | None:
        if element.type_id == INVALID_ELEMENT_ID:
            return None
        return self._elements.get(element.type_id)

    def element_name(self, element_id: int) -> str | None:
        element = self._elements.get(element_id)
        return element.name if element is not None else None

    def get_attribute_definition(self, attribute_id: int) -> AttributeDefinition | None:
        return self._definitions.get(attribute_id)

    def get_intrinsic(self, element: Element, attribute_id: int) -> Attribute | None:
        if not is_intrinsic(attribute_id):
            return None
        return element.attributes.get(attribute_id)

    def lookup_attribute(self, element: Element, name: str) -> Attribute | None:
        for attr in element.attributes.values():
            if attr.name == name:
                return attr
        return None

    def iter_attributes(self, element: Element) -> list[Attribute]:
        return list(element.attributes.values())

    def format_value(self, attribute: Attribute) -> str | None:
        if attribute.storage != StorageKind.REAL or not attribute.unit or attribute.value is None:
            return None
        return f"{format_number(attribute.value)} {attribute.unit}"

    def set_value_string(self, attribute: Attribute, text: str) -> bool:
        if attribute.storage != StorageKind.REAL or not attribute.unit or text is None:
            return False
        raw = str(text).strip()
        if raw.endswith(attribute.unit):
            raw = raw[: -len(attribute.unit)].strip()
        number = parse_real(raw)
        if number is None:
            return False
        self.set_value(attribute, number)
        return True

    def set_value(self, attribute: Attribute, value: Any) -> None:
        self._require_tx()
        if attribute.read_only:
            raise PermissionError(f"Parameter '{attribute.name}' is read-only")
        attribute.value = value

    # -- categories -------------------------------------------------------

    def category_name(self, category_id: int) -> str | None:
        category = self._categories.get(category_id)
        return category["name"] if category else None

    def filterable_attributes(self, category_id: int) -> set[int] | None:
        category = self._categories.get(category_id)
        if not category or category["filterable"] is None:
            return None
        return set(category["filterable"])

    def schedulable_fields(self, category_id: int) -> list[SchedulableField]:
        category = self._categories.get(category_id)
        return list(category["schedulable"]) if category else []

    def sample_elements(self, category_id: int) -> tuple[Element | None, Element | None]:
        for element in self._elements.values():
            if element.is_type or element.category_id != category_id:
                continue
            return element, self.get_type(element)
        for element in self._elements.values():
            if element.is_type and element.category_id == category_id:
                return None, element
        return None, None

    # -- schedules --------------------------------------------------------

    def list_schedules(self) -> list[ScheduleDefinition]:
        return sorted(self._schedules.values(), key=lambda d: d.name.casefold())

    def get_schedule(self, schedule_id: int) -> ScheduleDefinition | None:
        return self._schedules.get(schedule_id)

    def elements_for_schedule(self, definition: ScheduleDefinition) -> list[Element]:
        return [
            e for e in self._elements.values()
            if not e.is_type and (definition.category_id == MULTI_CATEGORY or e.category_id == definition.category_id)
        ]

    def get_field(self, definition: ScheduleDefinition, field_id: int) -> ScheduleField | None:
        for f in definition.fields:
            if f.field_id == field_id:
                return f
        return None

    def add_field(self, definition: ScheduleDefinition, schedulable: SchedulableField) -> int:
        self._require_tx()
        field_id = self._mint_field_id()
        definition.fields.append(ScheduleField(field_id=field_id, attribute_id=schedulable.attribute_id, name=schedulable.name))
        return field_id

    def remove_field(self, definition: ScheduleDefinition, field_id: int) -> None:
        self._require_tx()
        existing = self.get_field(definition, field_id)
        if existing is None:
            raise KeyError(f"Field {field_id} not found")
        definition.fields.remove(existing)

    def set_field_order(self, definition: ScheduleDefinition, order: List[int]) -> None:
        self._require_tx()
        by_id = {f.field_id: f for f in definition.fields}
        if sorted(order) != sorted(by_id):
            raise ValueError("Field order must list every field of the schedule exactly once")
        definition.fields[:] = [by_id[fid] for fid in order]


def _attribute_from_dict(data: dict) -> Attribute:
    return Attribute(
        attribute_id=int(data["id"]),
        name=data["name"],
        storage=StorageKind(data.get("storage", "text")),
        value=data.get("value"),
        read_only=bool(data.get("read_only", False)),
        unit=data.get("unit"),
    )


def document_from_dict(data: dict) -> MemoryHostDocument:
    doc = MemoryHostDocument()
    for item in data.get("attribute_definitions") or []:
        doc.add_definition(int(item["id"]), item["name"])
    for item in data.get("categories") or []:
        filterable = item.get("filterable")
        doc.add_category(
            int(item["id"]),
            item["name"],
            filterable=set(filterable) if isinstance(filterable, list) else None,
            schedulable=[SchedulableField(int(s["attribute_id"]), s["name"]) for s in item.get("schedulable") or []],
        )
    for item in data.get("elements") or []:
        attributes = [_attribute_from_dict(a) for a in item.get("attributes") or []]
        doc.add_element(
            Element(
                element_id=int(item["id"]),
                name=item.get("name", ""),
                category_id=int(item.get("category_id", MULTI_CATEGORY)),
                type_id=int(item.get("type_id", INVALID_ELEMENT_ID)),
                is_type=bool(item.get("is_type", False)),
                attributes={a.attribute_id: a for a in attributes},
            )
        )
    for item in data.get("schedules") or []:
        fields = [(int(f["attribute_id"]), f["name"]) for f in item.get("fields") or []]
        hidden = {f["name"] for f in item.get("fields") or [] if f.get("hidden")}
        doc.add_schedule(
            int(item["id"]),
            item["name"],
            category_id=int(item.get("category_id", MULTI_CATEGORY)),
            fields=fields,
            hidden=hidden,
        )
    return doc


def load_document(path: str | Path) -> MemoryHostDocument:
    return document_from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


class MemorySettingsStore:
    def __init__(self) -> None:
        self._settings: Dict[int, ViewSettings] = {}

    def load(self, schedule_id: int) -> ViewSettings:
        settings = self._settings.get(schedule_id)
        return copy.deepcopy(settings) if settings else ViewSettings()

    def save(self, schedule_id: int, settings: ViewSettings) -> None:
        self._settings[schedule_id] = ViewSettings(
            criteria=[SortCriterion(c.column, c.ascending) for c in settings.criteria],
            itemize=settings.itemize,
        )

    def list(self) -> list[tuple[int, ViewSettings]]:
        return [(sid, copy.deepcopy(s)) for sid, s in self._settings.items()]

    def delete(self, schedule_id: int) -> bool:
        return self._settings.pop(schedule_id, None) is not None
