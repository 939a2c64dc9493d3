"""Find/replace/prefix/suffix rename previews built from a schedule table."""

from __future__ import annotations

import re
from typing import Iterable, List

from prosched.models import (
    COUNT_COLUMN,
    ELEMENT_ID_COLUMN,
    TYPE_NAME_COLUMN,
    ElementId,
    RenameItem,
    ScheduleTable,
)
from prosched.results import ScheduleError


_SKIP_COLUMNS = {ELEMENT_ID_COLUMN, TYPE_NAME_COLUMN, COUNT_COLUMN}
_SUFFIX = re.compile(r"^(?P<base>.+) \((?P<n>\d+)\)$")


def apply_transform(original: str | None, find: str = "", replace: str = "", prefix: str = "", suffix: str = "") -> str:
    result = original or ""
    if find:
        result = result.replace(find, replace or "")
    if prefix:
        result = prefix + result
    if suffix:
        result = result + suffix
    return result


def source_attribute_name(table: ScheduleTable, column: str) -> str:
    match = _SUFFIX.match(column)
    if match and match.group("base") in table.columns:
        return match.group("base")
    return column


def renameable_columns(table: ScheduleTable) -> List[str]:
    return [c for c in table.columns if c not in _SKIP_COLUMNS]


def build_rename_items(
    table: ScheduleTable,
    element_ids: Iterable[ElementId],
    column: str,
    find: str = "",
    replace: str = "",
    prefix: str = "",
    suffix: str = "",
) -> List[RenameItem]:
    if column not in renameable_columns(table):
        raise ScheduleError("COLUMN_INVALID", f"Column cannot be renamed: {column}", "column")
    col_idx = table.column_index(column)
    id_idx = table.column_index(ELEMENT_ID_COLUMN)
    type_idx = table.column_index(TYPE_NAME_COLUMN)
    rows_by_id = {}
    for row in table.rows:
        rows_by_id.setdefault(row[id_idx], row)

    attribute_name = source_attribute_name(table, column)
    is_type = bool(table.type_columns.get(column))
    items: List[RenameItem] = []
    for element_id in element_ids:
        row = rows_by_id.get(str(element_id))
        if row is None:
            continue
        original = row[col_idx]
        items.append(
            RenameItem(
                element_id=int(element_id),
                attribute_name=attribute_name,
                original=original,
                new=apply_transform(original, find, replace, prefix, suffix),
                is_type_attribute=is_type,
                element_name=row[type_idx] or f"Element {element_id}",
            )
        )
    return items


def changed_items(items: Iterable[RenameItem]) -> List[RenameItem]:
    return [item for item in items if item.changed]


def has_type_items(items: Iterable[RenameItem]) -> bool:
    return any(item.is_type_attribute for item in items)
