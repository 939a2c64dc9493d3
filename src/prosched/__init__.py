"""ProSchedules kernel types."""

from .models import (
    COUNT_COLUMN,
    ELEMENT_ID_COLUMN,
    INVALID_ATTRIBUTE_ID,
    INVALID_ELEMENT_ID,
    MULTI_CATEGORY,
    NONE_COLUMN,
    TYPE_NAME_COLUMN,
    Attribute,
    AttributeDefinition,
    Element,
    ExistingField,
    NewField,
    ParameterItem,
    RenameItem,
    SchedulableField,
    ScheduleDefinition,
    ScheduleField,
    ScheduleTable,
    SortCriterion,
    StorageKind,
    ViewSettings,
    is_intrinsic,
)
from .results import (
    NOT_FOUND,
    FieldUpdateError,
    Found,
    MutationResult,
    ScheduleError,
    WriteError,
    WriteOk,
)

__all__ = [
    "COUNT_COLUMN",
    "ELEMENT_ID_COLUMN",
    "INVALID_ATTRIBUTE_ID",
    "INVALID_ELEMENT_ID",
    "MULTI_CATEGORY",
    "NONE_COLUMN",
    "TYPE_NAME_COLUMN",
    "Attribute",
    "AttributeDefinition",
    "Element",
    "ExistingField",
    "NewField",
    "ParameterItem",
    "RenameItem",
    "SchedulableField",
    "ScheduleDefinition",
    "ScheduleField",
    "ScheduleTable",
    "SortCriterion",
    "StorageKind",
    "ViewSettings",
    "is_intrinsic",
    "NOT_FOUND",
    "FieldUpdateError",
    "Found",
    "MutationResult",
    "ScheduleError",
    "WriteError",
    "WriteOk",
]
