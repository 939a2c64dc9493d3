"""Multi-level sorting of schedule tables and record lists."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Sequence

from parameter_resolver import parse_real
from prosched.models import (
    COUNT_COLUMN,
    ELEMENT_ID_COLUMN,
    NONE_COLUMN,
    ScheduleTable,
    SortCriterion,
)
from schedule_projector import is_numeric_column


logger = logging.getLogger("proschedules.sort")

# Display names that map onto record attributes when sorting object lists.
RECORD_ALIASES = {
    "Sheet Number": "sheet_number",
    "Sheet Name": "name",
}
_UNSORTABLE_COLUMNS = {ELEMENT_ID_COLUMN, COUNT_COLUMN}


def _text_key(value: Any) -> str:
    return "" if value is None else str(value).casefold()


def _number_key(value: Any) -> tuple:
    number = parse_real(value) if value is not None and str(value).strip() else None
    if number is None:
        return (0, 0.0)
    return (1, number)


def _stable_sort(items: List[Any], levels: Sequence[tuple[Callable[[Any], Any], bool]]) -> List[Any]:
    out = list(items)
    # Sort by the least significant level first; stability keeps earlier passes as tie-breakers.
    for key, ascending in reversed(levels):
        out.sort(key=key, reverse=not ascending)
    return out


def active_criteria(criteria: Iterable[SortCriterion]) -> List[SortCriterion]:
    return [c for c in criteria if c.active]


def sort(table: ScheduleTable, criteria: Iterable[SortCriterion]) -> ScheduleTable:
    levels = []
    for criterion in active_criteria(criteria):
        idx = table.column_index(criterion.column)
        if idx < 0:
            logger.warning("sort_column_missing column=%s schedule_id=%s", criterion.column, table.schedule_id)
            continue
        if is_numeric_column(table, criterion.column):
            levels.append((lambda row, i=idx: _number_key(row[i]), criterion.ascending))
        else:
            levels.append((lambda row, i=idx: _text_key(row[i]), criterion.ascending))
    if not levels:
        return table.copy()
    return table.copy(rows=_stable_sort(table.rows, levels))


def _record_value(record: Any, column: str) -> Any:
    name = RECORD_ALIASES.get(column, column)
    if isinstance(record, dict):
        if name in record:
            return record[name]
        return record.get(column)
    if hasattr(record, name):
        return getattr(record, name)
    return getattr(record, column, None)


def sort_records(records: Iterable[Any], criteria: Iterable[SortCriterion]) -> List[Any]:
    items = list(records)
    levels = []
    for criterion in active_criteria(criteria):
        values = [_record_value(r, criterion.column) for r in items]
        present = [v for v in values if v is not None and str(v).strip()]
        numeric = bool(present) and all(parse_real(v) is not None for v in present)
        if numeric:
            levels.append((lambda r, c=criterion.column: _number_key(_record_value(r, c)), criterion.ascending))
        else:
            levels.append((lambda r, c=criterion.column: _text_key(_record_value(r, c)), criterion.ascending))
    return _stable_sort(items, levels)


def available_sort_columns(table: ScheduleTable) -> List[str]:
    return [NONE_COLUMN] + [c for c in table.columns if c not in _UNSORTABLE_COLUMNS]
