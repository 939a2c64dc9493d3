"""Schedulable field catalog: which attributes may be added to a schedule."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from prosched.models import (
    INVALID_ATTRIBUTE_ID,
    MULTI_CATEGORY,
    AttributeId,
    CategoryId,
    ParameterItem,
    SchedulableField,
    ScheduleDefinition,
    is_intrinsic,
)


MULTI_CATEGORY_NAME = "Multi-Category"


@dataclass
class ParameterData:
    available: List[ParameterItem]
    scheduled: List[ParameterItem]
    category_name: str


class SchedulableFieldCatalog:
    def __init__(self, host) -> None:
        self._host = host

    def _carries(self, element, attribute_id: AttributeId) -> bool:
        if element is None:
            return False
        return any(attr.attribute_id == attribute_id for attr in self._host.iter_attributes(element))

    def is_eligible(
        self,
        candidate: SchedulableField,
        category_id: CategoryId,
        already_scheduled: set[AttributeId],
        filterable: set[AttributeId] | None,
        samples: tuple | None,
    ) -> bool:
        attribute_id = candidate.attribute_id
        if attribute_id == INVALID_ATTRIBUTE_ID:
            return True
        if attribute_id in already_scheduled:
            return False
        if category_id == MULTI_CATEGORY:
            return True
        if is_intrinsic(attribute_id):
            if filterable is None:
                return True
            return attribute_id in filterable
        instance, type_elem = samples or (None, None)
        if self._carries(instance, attribute_id) or self._carries(type_elem, attribute_id):
            return True
        return filterable is not None and attribute_id in filterable

    def available_fields(
        self,
        category_id: CategoryId,
        already_scheduled: Iterable[AttributeId],
        candidates: Iterable[SchedulableField] | None = None,
    ) -> List[SchedulableField]:
        scheduled = set(already_scheduled)
        if candidates is None:
            candidates = self._host.schedulable_fields(category_id)
        filterable = None
        samples = None
        if category_id != MULTI_CATEGORY:
            filterable = self._host.filterable_attributes(category_id)
            samples = self._host.sample_elements(category_id)
        out = [
            c for c in candidates
            if self.is_eligible(c, category_id, scheduled, filterable, samples)
        ]
        return sorted(out, key=lambda c: c.name.casefold())

    def available_items(self, definition: ScheduleDefinition) -> List[ParameterItem]:
        fields = self.available_fields(definition.category_id, definition.scheduled_attribute_ids())
        return [ParameterItem.new(f) for f in fields]

    def scheduled_fields(self, definition: ScheduleDefinition) -> List[ParameterItem]:
        return [ParameterItem.existing(f) for f in definition.fields]

    def category_name(self, category_id: CategoryId) -> str:
        if category_id == MULTI_CATEGORY:
            return MULTI_CATEGORY_NAME
        return self._host.category_name(category_id) or MULTI_CATEGORY_NAME

    def load_parameter_data(self, definition: ScheduleDefinition) -> ParameterData:
        return ParameterData(
            available=self.available_items(definition),
            scheduled=self.scheduled_fields(definition),
            category_name=self.category_name(definition.category_id),
        )
