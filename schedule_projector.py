"""Projects schedule fields and elements into a rectangular string table."""

from __future__ import annotations

from typing import Iterable, List

from parameter_resolver import ParameterResolver, parse_real
from prosched.models import (
    INVALID_ELEMENT_ID,
    SYNTHETIC_COLUMNS,
    Element,
    ScheduleDefinition,
    ScheduleField,
    ScheduleTable,
)


NUMBER = "number"
TEXT = "text"


def _unique_name(name: str, taken: set[str]) -> str:
    if name not in taken:
        return name
    idx = 1
    while f"{name} ({idx})" in taken:
        idx += 1
    return f"{name} ({idx})"


class ScheduleProjector:
    def __init__(self, host, resolver: ParameterResolver | None = None) -> None:
        self._host = host
        self._resolver = resolver or ParameterResolver(host)

    def visible_fields(self, definition: ScheduleDefinition) -> List[ScheduleField]:
        return [f for f in definition.fields if not f.hidden]

    def _type_name(self, element: Element) -> str:
        if element.type_id == INVALID_ELEMENT_ID:
            return ""
        type_elem = self._host.get_type(element)
        return type_elem.name if type_elem is not None else ""

    def project(self, definition: ScheduleDefinition, elements: Iterable[Element]) -> ScheduleTable:
        columns = list(SYNTHETIC_COLUMNS)
        attribute_ids: list = [None, None]
        fields: List[ScheduleField] = []
        taken = set(columns)
        for f in self.visible_fields(definition):
            if f.name in SYNTHETIC_COLUMNS:
                continue
            name = _unique_name(f.name, taken)
            taken.add(name)
            columns.append(name)
            attribute_ids.append(f.attribute_id)
            fields.append(f)

        field_columns = columns[len(SYNTHETIC_COLUMNS):]
        type_columns = {name: False for name in field_columns}
        rows: List[List[str]] = []
        for element in elements:
            row = [str(element.element_id), self._type_name(element)]
            for name, f in zip(field_columns, fields):
                found = self._resolver.resolve(element, f.attribute_id)
                if not found:
                    row.append("")
                    continue
                row.append(found.value)
                if found.is_type:
                    type_columns[name] = True
            rows.append(row)

        return ScheduleTable(
            columns=columns,
            rows=rows,
            type_columns=type_columns,
            attribute_ids=attribute_ids,
            schedule_id=definition.schedule_id,
        )


def is_numeric_column(table: ScheduleTable, column: str) -> bool:
    idx = table.column_index(column)
    if idx < 0:
        return False
    has_value = False
    for row in table.rows:
        cell = row[idx]
        if not cell or not cell.strip():
            continue
        has_value = True
        if parse_real(cell) is None:
            return False
    return has_value


def column_kinds(table: ScheduleTable) -> dict[str, str]:
    return {name: NUMBER if is_numeric_column(table, name) else TEXT for name in table.columns}
