"""Request layer: every document operation runs on the document queue."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Iterable, List

from batch_mutation import BatchMutationEngine
from document_queue import DocumentQueue
from field_catalog import ParameterData, SchedulableFieldCatalog
from field_order import FieldOrderManager
from itemization import apply_itemization
from parameter_resolver import ParameterResolver
from rename_preview import build_rename_items
from schedule_projector import ScheduleProjector
import sort_engine
from prosched.models import (
    ExistingField,
    NewField,
    ParameterItem,
    RenameItem,
    SchedulableField,
    ScheduleDefinition,
    ScheduleTable,
    SortCriterion,
    ViewSettings,
)
from prosched.results import FieldUpdateError, MutationResult, ScheduleError

logger = logging.getLogger("proschedules.service")


def _entry_id(raw: dict, key: str) -> int:
    value = raw[key]
    if isinstance(value, bool):
        raise ScheduleError("INVALID_ENTRY", f"{key} must be an integer", "entries", {key: value})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ScheduleError("INVALID_ENTRY", f"{key} must be an integer", "entries", {key: value}) from None


@dataclass
class FieldUpdateResult:
    new_field_count: int
    error: str | None = None


@dataclass
class ValueUpdateResult:
    success: bool
    error: str | None = None
    success_count: int = 0
    fail_count: int = 0


class ScheduleService:
    def __init__(self, host, queue: DocumentQueue, settings) -> None:
        self._host = host
        self._queue = queue
        self._settings = settings
        self._resolver = ParameterResolver(host)
        self._catalog = SchedulableFieldCatalog(host)
        self._projector = ScheduleProjector(host, self._resolver)
        self._fields = FieldOrderManager(host)
        self._batch = BatchMutationEngine(host, self._resolver)

    # -- helpers (run on the document thread) ------------------------------

    def _schedule(self, schedule_id: int) -> ScheduleDefinition:
        definition = self._host.get_schedule(schedule_id)
        if definition is None:
            raise ScheduleError("SCHEDULE_NOT_FOUND", f"Schedule {schedule_id} not found", "schedule_id")
        return definition

    def _entry(self, definition: ScheduleDefinition, raw: Any):
        if isinstance(raw, (ParameterItem, ExistingField, NewField)):
            return raw
        if not isinstance(raw, dict):
            raise ScheduleError("INVALID_ENTRY", "Field entry must be an object", "entries")
        if raw.get("field_id") is not None:
            return ExistingField(_entry_id(raw, "field_id"))
        if raw.get("attribute_id") is None:
            raise ScheduleError("INVALID_ENTRY", "Field entry needs field_id or attribute_id", "entries")
        attribute_id = _entry_id(raw, "attribute_id")
        name = raw.get("name")
        for candidate in self._host.schedulable_fields(definition.category_id):
            if candidate.attribute_id != attribute_id:
                continue
            if name and candidate.name != name:
                continue
            return NewField(candidate)
        if name:
            return NewField(SchedulableField(attribute_id, name))
        raise ScheduleError(
            "FIELD_NOT_FOUND",
            f"Attribute {attribute_id} cannot be scheduled on {definition.name}",
            "entries",
        )

    def _update_fields(self, schedule_id: int, entries: Iterable[Any]) -> FieldUpdateResult:
        definition = self._schedule(schedule_id)
        try:
            resolved = [self._entry(definition, e) for e in entries]
            order = self._fields.apply_field_list(definition, resolved)
        except FieldUpdateError as exc:
            return FieldUpdateResult(new_field_count=0, error=exc.message)
        except ScheduleError as exc:
            if exc.code in ("SCHEDULE_NOT_FOUND", "INVALID_ENTRY"):
                raise
            return FieldUpdateResult(new_field_count=0, error=exc.message)
        return FieldUpdateResult(new_field_count=len(order))

    def _update_value(self, element_ids: List[int], attribute_id: int, value: str) -> ValueUpdateResult:
        result = self._batch.update_value(element_ids, attribute_id, value)
        return ValueUpdateResult(
            success=result.success_count > 0,
            error=result.last_error or None,
            success_count=result.success_count,
            fail_count=result.fail_count,
        )

    def _load_table(self, schedule_id: int, itemize: bool | None, criteria: List[SortCriterion] | None) -> ScheduleTable:
        definition = self._schedule(schedule_id)
        table = self._projector.project(definition, self._host.elements_for_schedule(definition))
        if itemize is None or criteria is None:
            stored = self._settings.load(schedule_id)
            if itemize is None:
                itemize = stored.itemize
            if criteria is None:
                criteria = stored.criteria
        table = apply_itemization(table, itemize)
        return sort_engine.sort(table, criteria)

    def _preview_rename(
        self,
        schedule_id: int,
        element_ids: List[int],
        column: str,
        find: str,
        replace: str,
        prefix: str,
        suffix: str,
    ) -> List[RenameItem]:
        definition = self._schedule(schedule_id)
        table = self._projector.project(definition, self._host.elements_for_schedule(definition))
        return build_rename_items(table, element_ids, column, find, replace, prefix, suffix)

    # -- public API --------------------------------------------------------

    def update_fields(self, schedule_id: int, entries: Iterable[Any]) -> Future:
        return self._queue.submit("update_fields", self._update_fields, schedule_id, list(entries))

    def rename_batch(self, items: Iterable[RenameItem]) -> "Future[MutationResult]":
        return self._queue.submit("rename_batch", self._batch.rename, list(items))

    def update_value(self, element_ids: Iterable[int], attribute_id: int, value: str) -> Future:
        return self._queue.submit("update_value", self._update_value, list(element_ids), attribute_id, value)

    def load_parameter_data(self, schedule_id: int) -> "Future[ParameterData]":
        return self._queue.submit(
            "load_parameter_data",
            lambda: self._catalog.load_parameter_data(self._schedule(schedule_id)),
        )

    def load_table(
        self,
        schedule_id: int,
        itemize: bool | None = None,
        criteria: List[SortCriterion] | None = None,
    ) -> "Future[ScheduleTable]":
        return self._queue.submit("load_table", self._load_table, schedule_id, itemize, criteria)

    def preview_rename(
        self,
        schedule_id: int,
        element_ids: Iterable[int],
        column: str,
        find: str = "",
        replace: str = "",
        prefix: str = "",
        suffix: str = "",
    ) -> Future:
        return self._queue.submit(
            "preview_rename",
            self._preview_rename,
            schedule_id,
            list(element_ids),
            column,
            find,
            replace,
            prefix,
            suffix,
        )

    def list_schedules(self) -> "Future[List[ScheduleDefinition]]":
        return self._queue.submit("list_schedules", self._host.list_schedules)

    def get_view_settings(self, schedule_id: int) -> "Future[ViewSettings]":
        def _load() -> ViewSettings:
            self._schedule(schedule_id)
            return self._settings.load(schedule_id)

        return self._queue.submit("get_view_settings", _load)

    def save_view_settings(self, schedule_id: int, settings: ViewSettings) -> Future:
        def _save() -> ViewSettings:
            self._schedule(schedule_id)
            self._settings.save(schedule_id, settings)
            logger.info("view_settings_saved schedule_id=%s itemize=%s", schedule_id, settings.itemize)
            return settings

        return self._queue.submit("save_view_settings", _save)

    def shutdown(self, wait: bool = True) -> None:
        self._queue.shutdown(wait=wait)
