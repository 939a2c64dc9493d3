import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from app.schedule_service import ScheduleService
from app.stores import MemorySettingsStore, document_from_dict
from document_queue import DocumentQueue
from prosched.models import RenameItem, SortCriterion, ViewSettings
from prosched.results import ScheduleError


def _door(eid: int, type_id: int, mark: str, height: int) -> dict:
    return {
        "id": eid,
        "name": f"Door {eid}",
        "category_id": 5,
        "type_id": type_id,
        "attributes": [
            {"id": 10, "name": "Mark", "storage": "text", "value": mark},
            {"id": 30, "name": "Height", "storage": "integer", "value": height},
        ],
    }


def _snapshot() -> dict:
    return {
        "attribute_definitions": [{"id": 10, "name": "Mark"}, {"id": 30, "name": "Height"}],
        "categories": [
            {
                "id": 5,
                "name": "Doors",
                "filterable": [10, 30, 40],
                "schedulable": [
                    {"attribute_id": 10, "name": "Mark"},
                    {"attribute_id": 30, "name": "Height"},
                    {"attribute_id": 40, "name": "Fire Rating"},
                ],
            }
        ],
        "elements": [
            {"id": 100, "name": "TypeA", "category_id": 5, "is_type": True, "attributes": []},
            {"id": 200, "name": "TypeB", "category_id": 5, "is_type": True, "attributes": []},
            _door(1, 100, "D1", 7),
            _door(2, 100, "D2", 9),
            _door(3, 200, "D3", 8),
        ],
        "schedules": [
            {
                "id": 1000,
                "name": "Door Schedule",
                "category_id": 5,
                "fields": [{"attribute_id": 10, "name": "Mark"}, {"attribute_id": 30, "name": "Height"}],
            }
        ],
    }


class TestScheduleService(unittest.TestCase):
    def setUp(self) -> None:
        self.doc = document_from_dict(_snapshot())
        self.queue = DocumentQueue("service-test")
        self.settings = MemorySettingsStore()
        self.service = ScheduleService(self.doc, self.queue, self.settings)

    def tearDown(self) -> None:
        self.queue.shutdown()

    def test_load_table_itemized_by_default(self) -> None:
        table = self.service.load_table(1000).result(timeout=5)
        self.assertEqual(table.columns, ["ElementId", "TypeName", "Mark", "Height"])
        self.assertEqual(len(table.rows), 3)

    def test_load_table_uses_stored_settings(self) -> None:
        self.settings.save(1000, ViewSettings(criteria=[SortCriterion("Height", False)], itemize=True))
        table = self.service.load_table(1000).result(timeout=5)
        self.assertEqual([r[0] for r in table.rows], ["2", "3", "1"])

    def test_load_table_grouped(self) -> None:
        table = self.service.load_table(1000, itemize=False, criteria=[]).result(timeout=5)
        self.assertEqual([(r[1], r[-1]) for r in table.rows], [("TypeA", "2"), ("TypeB", "1")])

    def test_missing_schedule(self) -> None:
        with self.assertRaises(ScheduleError) as ctx:
            self.service.load_table(1).result(timeout=5)
        self.assertEqual(ctx.exception.code, "SCHEDULE_NOT_FOUND")

    def test_update_fields_from_json_entries(self) -> None:
        definition = self.doc.get_schedule(1000)
        mark_id, height_id = definition.field_order()
        result = self.service.update_fields(1000, [{"field_id": height_id}, {"attribute_id": 40}]).result(timeout=5)
        self.assertIsNone(result.error)
        self.assertEqual(result.new_field_count, 2)
        self.assertEqual([f.name for f in definition.fields], ["Height", "Fire Rating"])

    def test_update_fields_reports_error(self) -> None:
        result = self.service.update_fields(1000, [{"field_id": 999}]).result(timeout=5)
        self.assertEqual(result.new_field_count, 0)
        self.assertIn("999", result.error)

    def test_update_fields_rejects_non_numeric_ids(self) -> None:
        definition = self.doc.get_schedule(1000)
        before = definition.field_order()
        for entry in ({"field_id": "abc"}, {"attribute_id": "forty"}, {"field_id": [1]}):
            with self.assertRaises(ScheduleError) as ctx:
                self.service.update_fields(1000, [entry]).result(timeout=5)
            self.assertEqual(ctx.exception.code, "INVALID_ENTRY")
            self.assertEqual(ctx.exception.path, "entries")
        self.assertEqual(definition.field_order(), before)

    def test_update_value(self) -> None:
        result = self.service.update_value([1, 2], 30, "11").result(timeout=5)
        self.assertTrue(result.success)
        self.assertIsNone(result.error)
        table = self.service.load_table(1000, itemize=True, criteria=[]).result(timeout=5)
        self.assertEqual(table.column_values("Height"), ["11", "11", "8"])

    def test_update_value_failure(self) -> None:
        result = self.service.update_value([1, 2], 30, "x").result(timeout=5)
        self.assertFalse(result.success)
        self.assertTrue(result.error.startswith("Failed to set parameter value"))

    def test_preview_then_rename(self) -> None:
        items = self.service.preview_rename(1000, [1, 3], "Mark", prefix="L1-").result(timeout=5)
        self.assertEqual([i.new for i in items], ["L1-D1", "L1-D3"])
        result = self.service.rename_batch(items).result(timeout=5)
        self.assertEqual((result.success_count, result.fail_count), (2, 0))
        self.assertEqual(self.doc.get_element(3).attributes[10].value, "L1-D3")

    def test_rename_batch_direct_items(self) -> None:
        result = self.service.rename_batch([RenameItem(2, "Mark", "D2", "X")]).result(timeout=5)
        self.assertEqual(result.status, "ok")

    def test_parameter_data(self) -> None:
        data = self.service.load_parameter_data(1000).result(timeout=5)
        self.assertEqual(data.category_name, "Doors")
        self.assertEqual([i.name for i in data.available], ["Fire Rating"])

    def test_view_settings_round_trip(self) -> None:
        settings = ViewSettings(criteria=[SortCriterion("Mark")], itemize=False)
        self.service.save_view_settings(1000, settings).result(timeout=5)
        self.assertEqual(self.service.get_view_settings(1000).result(timeout=5), settings)

    def test_view_settings_unknown_schedule(self) -> None:
        with self.assertRaises(ScheduleError) as ctx:
            self.service.get_view_settings(1).result(timeout=5)
        self.assertEqual(ctx.exception.code, "SCHEDULE_NOT_FOUND")

    def test_list_schedules(self) -> None:
        schedules = self.service.list_schedules().result(timeout=5)
        self.assertEqual([s.schedule_id for s in schedules], [1000])


if __name__ == "__main__":
    unittest.main()
