"""Field-list changes for a schedule (add, remove, reorder), all-or-nothing."""

from __future__ import annotations

import logging
from typing import Iterable, List

from prosched.models import (
    ExistingField,
    FieldId,
    NewField,
    ParameterItem,
    ScheduleDefinition,
)
from prosched.results import FieldUpdateError, ScheduleError


logger = logging.getLogger("proschedules.fields")


def _entry_of(item) -> ExistingField | NewField:
    if isinstance(item, ParameterItem):
        return item.entry
    if isinstance(item, (ExistingField, NewField)):
        return item
    raise ScheduleError("INVALID_ENTRY", f"Unsupported field entry: {type(item).__name__}")


def is_unchanged(definition: ScheduleDefinition, entries: List[ExistingField | NewField]) -> bool:
    if any(not isinstance(e, ExistingField) for e in entries):
        return False
    return [e.field_id for e in entries] == definition.field_order()


class FieldOrderManager:
    def __init__(self, host) -> None:
        self._host = host

    def apply_field_list(self, definition: ScheduleDefinition, desired_entries: Iterable) -> List[FieldId]:
        entries = [_entry_of(item) for item in desired_entries]
        current = definition.field_order()
        tx = self._host.begin()
        try:
            if is_unchanged(definition, entries):
                tx.commit()
                return list(current)

            new_order: List[FieldId] = []
            attached = set(current)
            added = 0
            for entry in entries:
                if isinstance(entry, ExistingField):
                    if entry.field_id in new_order:
                        continue
                    if entry.field_id not in attached:
                        raise ScheduleError(
                            "FIELD_NOT_FOUND",
                            f"Field {entry.field_id} is not part of schedule {definition.schedule_id}",
                        )
                    new_order.append(entry.field_id)
                else:
                    field_id = self._host.add_field(definition, entry.descriptor)
                    new_order.append(field_id)
                    added += 1

            removed = 0
            for old_id in current:
                if old_id in new_order:
                    continue
                if self._host.get_field(definition, old_id) is None:
                    continue
                self._host.remove_field(definition, old_id)
                removed += 1

            self._host.set_field_order(definition, new_order)
            tx.commit()
        except Exception as exc:
            tx.rollback()
            logger.warning("field_update_failed schedule_id=%s error=%s", definition.schedule_id, exc)
            if isinstance(exc, FieldUpdateError):
                raise
            if isinstance(exc, ScheduleError):
                code, message = exc.code, exc.message
            else:
                code, message = "FIELD_UPDATE_FAILED", str(exc)
            raise FieldUpdateError(code, message, detail={"schedule_id": definition.schedule_id}) from exc

        logger.info(
            "field_update schedule_id=%s fields=%s added=%s removed=%s",
            definition.schedule_id,
            len(new_order),
            added,
            removed,
        )
        return new_order
