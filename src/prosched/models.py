"""Schedule data model shared by the engine components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union


ElementId = int
AttributeId = int
CategoryId = int
FieldId = int

INVALID_ELEMENT_ID = -1
INVALID_ATTRIBUTE_ID = -1
MULTI_CATEGORY = -1

ELEMENT_ID_COLUMN = "ElementId"
TYPE_NAME_COLUMN = "TypeName"
COUNT_COLUMN = "Count"
SYNTHETIC_COLUMNS = (ELEMENT_ID_COLUMN, TYPE_NAME_COLUMN)
NONE_COLUMN = "(none)"


def is_intrinsic(attribute_id: AttributeId) -> bool:
    return attribute_id < 0 and attribute_id != INVALID_ATTRIBUTE_ID


class StorageKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    REAL = "real"
    REFERENCE = "reference"


@dataclass
class Attribute:
    attribute_id: AttributeId
    name: str
    storage: StorageKind
    value: Any = None
    read_only: bool = False
    unit: str | None = None


@dataclass
class Element:
    element_id: ElementId
    name: str = ""
    category_id: CategoryId = MULTI_CATEGORY
    type_id: ElementId = INVALID_ELEMENT_ID
    is_type: bool = False
    attributes: Dict[AttributeId, Attribute] = field(default_factory=dict)


@dataclass(frozen=True)
class AttributeDefinition:
    attribute_id: AttributeId
    name: str


@dataclass(frozen=True)
class SchedulableField:
    attribute_id: AttributeId
    name: str


@dataclass(frozen=True)
class ScheduleField:
    field_id: FieldId
    attribute_id: AttributeId
    name: str
    hidden: bool = False


@dataclass(frozen=True)
class NewField:
    descriptor: SchedulableField


@dataclass(frozen=True)
class ExistingField:
    field_id: FieldId


FieldEntry = Union[NewField, ExistingField]


@dataclass(frozen=True)
class ParameterItem:
    entry: FieldEntry
    name: str
    is_scheduled: bool

    @classmethod
    def new(cls, descriptor: SchedulableField) -> "ParameterItem":
        return cls(entry=NewField(descriptor), name=descriptor.name, is_scheduled=False)

    @classmethod
    def existing(cls, scheduled: ScheduleField) -> "ParameterItem":
        return cls(entry=ExistingField(scheduled.field_id), name=scheduled.name, is_scheduled=True)


@dataclass
class ScheduleDefinition:
    schedule_id: ElementId
    name: str
    category_id: CategoryId = MULTI_CATEGORY
    fields: List[ScheduleField] = field(default_factory=list)

    def field_order(self) -> List[FieldId]:
        return [f.field_id for f in self.fields]

    def scheduled_attribute_ids(self) -> set[AttributeId]:
        return {f.attribute_id for f in self.fields}


@dataclass
class ScheduleTable:
    """Rectangular string table projected from a schedule.

    ``type_columns`` flags field columns where at least one cell was read
    from the companion type; ``attribute_ids`` is parallel to ``columns``
    and holds ``None`` for synthetic columns.
    """

    columns: List[str]
    rows: List[List[str]] = field(default_factory=list)
    type_columns: Dict[str, bool] = field(default_factory=dict)
    attribute_ids: List[AttributeId | None] = field(default_factory=list)
    schedule_id: ElementId = INVALID_ELEMENT_ID

    def column_index(self, name: str) -> int:
        try:
            return self.columns.index(name)
        except ValueError:
            return -1

    def column_values(self, name: str) -> List[str]:
        idx = self.column_index(name)
        if idx < 0:
            return []
        return [row[idx] for row in self.rows]

    def is_rectangular(self) -> bool:
        width = len(self.columns)
        return all(len(row) == width for row in self.rows)

    def copy(self, rows: List[List[str]] | None = None) -> "ScheduleTable":
        return ScheduleTable(
            columns=list(self.columns),
            rows=[list(r) for r in (self.rows if rows is None else rows)],
            type_columns=dict(self.type_columns),
            attribute_ids=list(self.attribute_ids),
            schedule_id=self.schedule_id,
        )


@dataclass
class RenameItem:
    element_id: ElementId
    attribute_name: str
    original: str
    new: str
    is_type_attribute: bool = False
    element_name: str = ""

    @property
    def changed(self) -> bool:
        return self.original != self.new


@dataclass(frozen=True)
class SortCriterion:
    column: str
    ascending: bool = True

    @property
    def active(self) -> bool:
        return bool(self.column) and self.column != NONE_COLUMN


@dataclass
class ViewSettings:
    criteria: List[SortCriterion] = field(default_factory=list)
    itemize: bool = True
