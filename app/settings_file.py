"""JSON file store for per-schedule sort and itemize settings."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from prosched.models import SortCriterion, ViewSettings

logger = logging.getLogger("proschedules.settings")


def _record(schedule_id: int, settings: ViewSettings) -> dict:
    return {
        "schedule_id": schedule_id,
        "itemize": settings.itemize,
        "items": [{"column": c.column, "ascending": c.ascending} for c in settings.criteria],
    }


def _settings(record: dict) -> ViewSettings:
    items = record.get("items") or []
    return ViewSettings(
        criteria=[
            SortCriterion(str(item.get("column") or ""), bool(item.get("ascending", True)))
            for item in items
            if isinstance(item, dict)
        ],
        itemize=bool(record.get("itemize", True)),
    )


class FileSettingsStore:
    """Settings kept as an ordered JSON list, rewritten whole on every save."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> list[dict]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("settings_file_unreadable path=%s error=%s", self._path, exc)
            return []
        if not isinstance(data, list):
            logger.warning("settings_file_invalid path=%s", self._path)
            return []
        records = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                item["schedule_id"] = int(item.get("schedule_id"))
            except (TypeError, ValueError):
                continue
            records.append(item)
        return records

    def _write(self, records: list[dict]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self._path.parent), prefix=".settings-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(records, handle, indent=2)
            os.replace(tmp, self._path)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def load(self, schedule_id: int) -> ViewSettings:
        with self._lock:
            for record in self._read():
                if record["schedule_id"] == schedule_id:
                    return _settings(record)
        return ViewSettings()

    def save(self, schedule_id: int, settings: ViewSettings) -> None:
        with self._lock:
            records = self._read()
            replaced = False
            for idx, record in enumerate(records):
                if record["schedule_id"] == schedule_id:
                    records[idx] = _record(schedule_id, settings)
                    replaced = True
                    break
            if not replaced:
                records.append(_record(schedule_id, settings))
            self._write(records)
        logger.info("settings_saved schedule_id=%s criteria=%s itemize=%s", schedule_id, len(settings.criteria), settings.itemize)

    def list(self) -> list[tuple[int, ViewSettings]]:
        with self._lock:
            return [(r["schedule_id"], _settings(r)) for r in self._read()]

    def delete(self, schedule_id: int) -> bool:
        with self._lock:
            records = self._read()
            kept = [r for r in records if r["schedule_id"] != schedule_id]
            if len(kept) == len(records):
                return False
            self._write(kept)
            return True
