"""FastAPI app for the schedule editing engine."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, List

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


_load_env_file(ROOT / "app" / ".env")

import time
import anyio
import logging
from concurrent.futures import Future

from app.schedule_service import ScheduleService
from app.settings_file import FileSettingsStore
from app.stores import MemoryHostDocument, MemorySettingsStore, load_document
from document_queue import DocumentQueue
from schedule_projector import column_kinds
from sort_engine import available_sort_columns
from prosched.models import RenameItem, SortCriterion, ViewSettings
from prosched.results import ScheduleError


app = FastAPI(title="ProSchedules")
logger = logging.getLogger("proschedules")
logging.basicConfig(level=logging.INFO)

USE_DB = os.getenv("USE_DB", "").strip() == "1"
SETTINGS_PATH = os.getenv("PROSCHED_SETTINGS_PATH", "").strip()
DOCUMENT_PATH = os.getenv("PROSCHED_DOCUMENT_PATH", "").strip()
REQ_SLOW_MS = float(os.getenv("PROSCHED_REQ_SLOW_MS", "250"))


def _build_settings_store():
    if USE_DB:
        from app.stores_db import DbSettingsStore

        return DbSettingsStore()
    if SETTINGS_PATH:
        return FileSettingsStore(SETTINGS_PATH)
    return MemorySettingsStore()


def _build_host():
    if DOCUMENT_PATH:
        logger.info("document_load path=%s", DOCUMENT_PATH)
        return load_document(DOCUMENT_PATH)
    return MemoryHostDocument()


def build_service(host=None, settings=None) -> ScheduleService:
    return ScheduleService(
        host if host is not None else _build_host(),
        DocumentQueue("document"),
        settings if settings is not None else _build_settings_store(),
    )


service = build_service()


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    total_ms = (time.perf_counter() - start) * 1000
    route = request.scope.get("route")
    route_name = getattr(route, "name", None) or "unknown"
    logger.info(
        "%s %s %s route=%s total_ms=%.1f",
        request.method,
        request.url.path,
        response.status_code,
        route_name,
        total_ms,
    )
    if total_ms >= REQ_SLOW_MS:
        logger.warning(
            "slow_request method=%s path=%s route=%s total_ms=%.1f status=%s",
            request.method,
            request.url.path,
            route_name,
            total_ms,
            response.status_code,
        )
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error path=%s", request.url.path)
    return _error_response("INTERNAL_ERROR", "Unexpected server error", detail={"error": str(exc)}, status=500)


def _error_response(code: str, message: str, path: str | None = None, detail: dict | None = None, status: int = 400) -> JSONResponse:
    body = {
        "ok": False,
        "errors": [{"code": code, "message": message, "path": path, "detail": detail}],
        "warnings": [],
    }
    return JSONResponse(jsonable_encoder(body), status_code=status)


def _ok_response(payload: dict, warnings: list | None = None, status: int = 200) -> JSONResponse:
    body = {"ok": True, **payload, "errors": [], "warnings": warnings or []}
    return JSONResponse(jsonable_encoder(body), status_code=status)


def _schedule_error_response(exc: ScheduleError) -> JSONResponse:
    status = 404 if exc.code == "SCHEDULE_NOT_FOUND" else 400
    detail = exc.detail if isinstance(exc.detail, dict) else None
    return _error_response(exc.code, exc.message, exc.path, detail, status=status)


async def _safe_json(request: Request) -> dict:
    try:
        body = await request.json()
    except Exception:
        return {}
    return body if isinstance(body, dict) else {}


async def _wait(future: Future):
    return await anyio.to_thread.run_sync(future.result)


def _parse_sort(values: List[str] | None) -> List[SortCriterion] | None:
    if not values:
        return None
    criteria = []
    for raw in values:
        column, _, direction = raw.rpartition(":")
        if not column:
            column, direction = raw, "asc"
        criteria.append(SortCriterion(column, direction.strip().lower() != "desc"))
    return criteria


def _criteria_from_body(items: Any) -> List[SortCriterion]:
    if not isinstance(items, list):
        raise ScheduleError("INVALID_SETTINGS", "items must be a list", "items")
    criteria = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict) or not isinstance(item.get("column"), str):
            raise ScheduleError("INVALID_SETTINGS", "Each item needs a column", f"items[{idx}]")
        criteria.append(SortCriterion(item["column"], bool(item.get("ascending", True))))
    return criteria


def _settings_payload(schedule_id: int, settings: ViewSettings) -> dict:
    return {
        "schedule_id": schedule_id,
        "itemize": settings.itemize,
        "items": [{"column": c.column, "ascending": c.ascending} for c in settings.criteria],
    }


def _table_payload(table) -> dict:
    return {
        "schedule_id": table.schedule_id,
        "columns": table.columns,
        "rows": table.rows,
        "type_columns": table.type_columns,
        "column_kinds": column_kinds(table),
        "sort_columns": available_sort_columns(table),
    }


def _parameter_item_payload(item) -> dict:
    entry = item.entry
    payload = {"name": item.name, "is_scheduled": item.is_scheduled}
    if item.is_scheduled:
        payload["field_id"] = entry.field_id
    else:
        payload["attribute_id"] = entry.descriptor.attribute_id
    return payload


def _rename_item_payload(item: RenameItem) -> dict:
    return {
        "element_id": item.element_id,
        "element_name": item.element_name,
        "attribute_name": item.attribute_name,
        "original": item.original,
        "new": item.new,
        "is_type_attribute": item.is_type_attribute,
        "changed": item.changed,
    }


def _rename_item_from_dict(raw: dict, idx: int) -> RenameItem:
    try:
        element_id = int(raw["element_id"])
    except (KeyError, TypeError, ValueError):
        raise ScheduleError("INVALID_ITEM", "element_id required", f"items[{idx}].element_id")
    name = raw.get("attribute_name")
    if not isinstance(name, str) or not name:
        raise ScheduleError("INVALID_ITEM", "attribute_name required", f"items[{idx}].attribute_name")
    return RenameItem(
        element_id=element_id,
        attribute_name=name,
        original=str(raw.get("original") or ""),
        new=str(raw.get("new") or ""),
        is_type_attribute=bool(raw.get("is_type_attribute", False)),
        element_name=str(raw.get("element_name") or ""),
    )


@app.get("/health")
async def health() -> dict:
    return {"ok": True}


@app.get("/schedules")
async def list_schedules():
    schedules = await _wait(service.list_schedules())
    return _ok_response(
        {
            "schedules": [
                {"schedule_id": s.schedule_id, "name": s.name, "category_id": s.category_id, "field_count": len(s.fields)}
                for s in schedules
            ]
        }
    )


@app.get("/schedules/{schedule_id}/table")
async def get_table(schedule_id: int, request: Request, itemize: bool | None = None):
    criteria = _parse_sort(request.query_params.getlist("sort"))
    try:
        table = await _wait(service.load_table(schedule_id, itemize=itemize, criteria=criteria))
    except ScheduleError as exc:
        return _schedule_error_response(exc)
    return _ok_response({"table": _table_payload(table)})


@app.get("/schedules/{schedule_id}/parameters")
async def get_parameters(schedule_id: int):
    try:
        data = await _wait(service.load_parameter_data(schedule_id))
    except ScheduleError as exc:
        return _schedule_error_response(exc)
    return _ok_response(
        {
            "category_name": data.category_name,
            "available": [_parameter_item_payload(i) for i in data.available],
            "scheduled": [_parameter_item_payload(i) for i in data.scheduled],
        }
    )


@app.put("/schedules/{schedule_id}/fields")
async def update_fields(schedule_id: int, request: Request):
    body = await _safe_json(request)
    entries = body.get("entries")
    if not isinstance(entries, list):
        return _error_response("ENTRIES_REQUIRED", "entries must be a list", "entries", status=400)
    try:
        result = await _wait(service.update_fields(schedule_id, entries))
    except ScheduleError as exc:
        return _schedule_error_response(exc)
    if result.error:
        return _error_response("FIELD_UPDATE_FAILED", result.error, "entries", status=400)
    return _ok_response({"new_field_count": result.new_field_count})


@app.post("/schedules/{schedule_id}/rename/preview")
async def preview_rename(schedule_id: int, request: Request):
    body = await _safe_json(request)
    column = body.get("column")
    if not isinstance(column, str) or not column:
        return _error_response("COLUMN_REQUIRED", "column required", "column", status=400)
    element_ids = body.get("element_ids")
    if not isinstance(element_ids, list):
        return _error_response("ELEMENTS_REQUIRED", "element_ids must be a list", "element_ids", status=400)
    try:
        items = await _wait(
            service.preview_rename(
                schedule_id,
                [int(e) for e in element_ids],
                column,
                find=body.get("find") or "",
                replace=body.get("replace") or "",
                prefix=body.get("prefix") or "",
                suffix=body.get("suffix") or "",
            )
        )
    except ScheduleError as exc:
        return _schedule_error_response(exc)
    warnings = []
    if any(i.is_type_attribute and i.changed for i in items):
        warnings.append({"code": "TYPE_PARAMETER", "message": "Changes affect type parameters shared by other elements"})
    return _ok_response({"items": [_rename_item_payload(i) for i in items]}, warnings=warnings)


@app.post("/rename")
async def rename(request: Request):
    body = await _safe_json(request)
    raw_items = body.get("items")
    if not isinstance(raw_items, list):
        return _error_response("ITEMS_REQUIRED", "items must be a list", "items", status=400)
    try:
        items = [_rename_item_from_dict(raw if isinstance(raw, dict) else {}, idx) for idx, raw in enumerate(raw_items)]
    except ScheduleError as exc:
        return _schedule_error_response(exc)
    result = await _wait(service.rename_batch(items))
    return _ok_response({"result": result.to_dict()})


@app.post("/values")
async def update_values(request: Request):
    body = await _safe_json(request)
    element_ids = body.get("element_ids")
    if not isinstance(element_ids, list) or not element_ids:
        return _error_response("ELEMENTS_REQUIRED", "element_ids must be a non-empty list", "element_ids", status=400)
    try:
        attribute_id = int(body.get("attribute_id"))
        ids = [int(e) for e in element_ids]
    except (TypeError, ValueError):
        return _error_response("INVALID_REQUEST", "attribute_id and element_ids must be integers", None, status=400)
    value = body.get("value")
    result = await _wait(service.update_value(ids, attribute_id, "" if value is None else str(value)))
    if not result.success:
        return _error_response(
            "VALUE_UPDATE_FAILED",
            result.error or "Failed to set parameter value",
            "value",
            detail={"fail_count": result.fail_count},
            status=400,
        )
    return _ok_response(
        {"success_count": result.success_count, "fail_count": result.fail_count},
        warnings=[{"code": "PARTIAL_UPDATE", "message": result.error}] if result.fail_count else None,
    )


@app.get("/schedules/{schedule_id}/settings")
async def get_settings(schedule_id: int):
    try:
        settings = await _wait(service.get_view_settings(schedule_id))
    except ScheduleError as exc:
        return _schedule_error_response(exc)
    return _ok_response({"settings": _settings_payload(schedule_id, settings)})


@app.put("/schedules/{schedule_id}/settings")
async def put_settings(schedule_id: int, request: Request):
    body = await _safe_json(request)
    try:
        criteria = _criteria_from_body(body.get("items", []))
        settings = ViewSettings(criteria=criteria, itemize=bool(body.get("itemize", True)))
        saved = await _wait(service.save_view_settings(schedule_id, settings))
    except ScheduleError as exc:
        return _schedule_error_response(exc)
    return _ok_response({"settings": _settings_payload(schedule_id, saved)})
