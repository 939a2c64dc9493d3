"""DB-backed store for per-schedule view settings."""

from __future__ import annotations

import json
import logging

from app.db import execute, fetch_all, fetch_one, get_conn
from prosched.models import SortCriterion, ViewSettings

logger = logging.getLogger("proschedules.settings")


_SCHEMA = """
create table if not exists schedule_view_settings (
  schedule_id bigint primary key,
  itemize boolean not null default true,
  items jsonb not null default '[]'::jsonb,
  updated_at timestamptz not null default now()
)
"""


def _items_json(settings: ViewSettings) -> str:
    return json.dumps([{"column": c.column, "ascending": c.ascending} for c in settings.criteria])


def _settings_from_row(row: dict) -> ViewSettings:
    items = row.get("items") or []
    if isinstance(items, str):
        items = json.loads(items)
    return ViewSettings(
        criteria=[SortCriterion(i.get("column") or "", bool(i.get("ascending", True))) for i in items if isinstance(i, dict)],
        itemize=bool(row.get("itemize", True)),
    )


class DbSettingsStore:
    def __init__(self, ensure_schema: bool = True) -> None:
        if ensure_schema:
            with get_conn() as conn:
                execute(conn, _SCHEMA, query_name="schedule_view_settings.ensure_schema")

    def load(self, schedule_id: int) -> ViewSettings:
        with get_conn() as conn:
            row = fetch_one(
                conn,
                "select itemize, items from schedule_view_settings where schedule_id=%s",
                [schedule_id],
                query_name="schedule_view_settings.get",
            )
        return _settings_from_row(row) if row else ViewSettings()

    def save(self, schedule_id: int, settings: ViewSettings) -> None:
        with get_conn() as conn:
            execute(
                conn,
                """
                insert into schedule_view_settings (schedule_id, itemize, items, updated_at)
                values (%s,%s,%s,now())
                on conflict (schedule_id)
                do update set itemize=excluded.itemize, items=excluded.items, updated_at=now()
                """,
                [schedule_id, settings.itemize, _items_json(settings)],
                query_name="schedule_view_settings.upsert",
            )
        logger.info("settings_saved schedule_id=%s criteria=%s itemize=%s", schedule_id, len(settings.criteria), settings.itemize)

    def list(self) -> list[tuple[int, ViewSettings]]:
        with get_conn() as conn:
            rows = fetch_all(
                conn,
                "select schedule_id, itemize, items from schedule_view_settings order by schedule_id",
                query_name="schedule_view_settings.list",
            )
        return [(int(r["schedule_id"]), _settings_from_row(r)) for r in rows]

    def delete(self, schedule_id: int) -> bool:
        with get_conn() as conn:
            count = execute(
                conn,
                "delete from schedule_view_settings where schedule_id=%s",
                [schedule_id],
                query_name="schedule_view_settings.delete",
            )
        return count > 0
