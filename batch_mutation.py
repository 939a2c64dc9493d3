"""Batch rename / value update engine (transactional, count-based reporting)."""

from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, List

from parameter_resolver import ParameterResolver
from prosched.models import AttributeId, ElementId, RenameItem
from prosched.results import MutationResult


logger = logging.getLogger("proschedules.batch")

UPDATE_FAILED_MESSAGE = "Failed to set parameter value"


def group_by_element(items: Iterable[RenameItem]) -> Dict[ElementId, List[RenameItem]]:
    grouped: Dict[ElementId, List[RenameItem]] = {}
    for item in items:
        if not item.changed:
            continue
        grouped.setdefault(item.element_id, []).append(item)
    return grouped


class BatchMutationEngine:
    """Applies many attribute writes inside one host transaction.

    Rename commits whatever succeeded; update commits only when at least
    one target succeeded. A failure outside the per-item scope rolls the
    whole transaction back and is reported as the only failure.
    """

    def __init__(self, host, resolver: ParameterResolver | None = None) -> None:
        self._host = host
        self._resolver = resolver or ParameterResolver(host)

    def rename(self, items: Iterable[RenameItem]) -> MutationResult:
        start = time.perf_counter()
        result = MutationResult()
        tx = self._host.begin()
        try:
            for element_id, group in group_by_element(items).items():
                element = self._host.get_element(element_id)
                if element is None:
                    result.fail_count += len(group)
                    result.last_error = f"Element with ID {element_id} not found"
                    continue
                for item in group:
                    try:
                        outcome = self._resolver.set_value_by_name(
                            element,
                            item.attribute_name,
                            item.new,
                            prefer_type=item.is_type_attribute,
                        )
                    except Exception as exc:
                        result.fail_count += 1
                        result.last_error = str(exc)
                        continue
                    if outcome:
                        result.success_count += 1
                    else:
                        result.fail_count += 1
                        result.last_error = (
                            f"Failed to set parameter '{item.attribute_name}' on element {element_id}: {outcome.message}"
                        )
            tx.commit()
        except Exception as exc:
            tx.rollback()
            logger.warning("rename_batch_critical error=%s", exc)
            return MutationResult(success_count=0, fail_count=1, last_error=f"Critical Error: {exc}", critical=True)

        logger.info(
            "rename_batch success=%s fail=%s ms=%.1f",
            result.success_count,
            result.fail_count,
            (time.perf_counter() - start) * 1000,
        )
        return result

    def update_value(self, element_ids: Iterable[ElementId], attribute_id: AttributeId, value: str) -> MutationResult:
        start = time.perf_counter()
        result = MutationResult()
        any_success = False
        tx = self._host.begin()
        try:
            for element_id in dict.fromkeys(element_ids):
                element = self._host.get_element(element_id)
                if element is None:
                    result.fail_count += 1
                    result.last_error = f"Element with ID {element_id} not found"
                    continue
                try:
                    outcome = self._resolver.set_value(element, attribute_id, value)
                except Exception as exc:
                    result.fail_count += 1
                    result.last_error = str(exc)
                    continue
                if outcome:
                    result.success_count += 1
                    any_success = True
                else:
                    result.fail_count += 1
                    result.last_error = outcome.message

            if any_success:
                tx.commit()
            else:
                tx.rollback()
                detail = f": {result.last_error}" if result.last_error else ""
                result = MutationResult(
                    success_count=0,
                    fail_count=result.fail_count,
                    last_error=f"{UPDATE_FAILED_MESSAGE}{detail}",
                )
        except Exception as exc:
            tx.rollback()
            logger.warning("value_update_critical attribute_id=%s error=%s", attribute_id, exc)
            return MutationResult(success_count=0, fail_count=1, last_error=f"Critical Error: {exc}", critical=True)

        logger.info(
            "value_update attribute_id=%s success=%s fail=%s committed=%s ms=%.1f",
            attribute_id,
            result.success_count,
            result.fail_count,
            any_success,
            (time.perf_counter() - start) * 1000,
        )
        return result
