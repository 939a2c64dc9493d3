"""Itemized / grouped-by-type views of a projected schedule table."""

from __future__ import annotations

from typing import Dict, List

from prosched.models import COUNT_COLUMN, TYPE_NAME_COLUMN, ScheduleTable


def group_by_type(table: ScheduleTable) -> ScheduleTable:
    """One row per distinct TypeName with a Count column.

    Groups keep first-appearance order and take the first row's cells
    verbatim. The source table is not modified.
    """
    type_idx = table.column_index(TYPE_NAME_COLUMN)
    if type_idx < 0:
        raise KeyError(f"Missing column: {TYPE_NAME_COLUMN}")

    groups: Dict[str, List[List[str]]] = {}
    for row in table.rows:
        groups.setdefault(row[type_idx], []).append(row)

    out = table.copy(rows=[])
    count_idx = out.column_index(COUNT_COLUMN)
    if count_idx < 0:
        out.columns.append(COUNT_COLUMN)
        out.attribute_ids.append(None)
    for members in groups.values():
        first = list(members[0])
        if count_idx < 0:
            first.append(str(len(members)))
        else:
            first[count_idx] = str(len(members))
        out.rows.append(first)
    return out


def apply_itemization(table: ScheduleTable, itemize: bool) -> ScheduleTable:
    if itemize:
        return table
    return group_by_type(table)


def total_count(table: ScheduleTable) -> int:
    """Elements represented by the table.

    A grouped view carries a per-row count; an itemized table (including one
    whose schedule has a blank intrinsic Count field) is one element per row.
    """
    idx = table.column_index(COUNT_COLUMN)
    if idx < 0:
        return len(table.rows)
    cells = [row[idx] for row in table.rows]
    if not all(_is_count(cell) for cell in cells):
        return len(table.rows)
    return sum(int(cell) for cell in cells)


def _is_count(cell) -> bool:
    return isinstance(cell, str) and cell.isascii() and cell.isdigit()
