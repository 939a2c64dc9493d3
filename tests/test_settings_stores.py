import json
import os
import sys
import tempfile
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from app.settings_file import FileSettingsStore
from app.stores import MemorySettingsStore
from prosched.models import SortCriterion, ViewSettings


def _settings() -> ViewSettings:
    return ViewSettings(criteria=[SortCriterion("Mark", True), SortCriterion("Width", False)], itemize=False)


class TestMemorySettingsStore(unittest.TestCase):
    def test_defaults_when_missing(self) -> None:
        settings = MemorySettingsStore().load(1)
        self.assertEqual(settings.criteria, [])
        self.assertTrue(settings.itemize)

    def test_save_load_list_delete(self) -> None:
        store = MemorySettingsStore()
        store.save(1, _settings())
        self.assertEqual(store.load(1), _settings())
        self.assertEqual([sid for sid, _ in store.list()], [1])
        self.assertTrue(store.delete(1))
        self.assertFalse(store.delete(1))

    def test_saved_copy_is_isolated(self) -> None:
        store = MemorySettingsStore()
        settings = _settings()
        store.save(1, settings)
        settings.criteria.append(SortCriterion("Extra"))
        self.assertEqual(len(store.load(1).criteria), 2)


class TestFileSettingsStore(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "settings.json")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_loads_defaults(self) -> None:
        store = FileSettingsStore(self.path)
        self.assertEqual(store.load(5), ViewSettings())
        self.assertEqual(store.list(), [])

    def test_round_trip_through_new_instance(self) -> None:
        FileSettingsStore(self.path).save(1000, _settings())
        reloaded = FileSettingsStore(self.path).load(1000)
        self.assertEqual(reloaded, _settings())

    def test_file_layout(self) -> None:
        store = FileSettingsStore(self.path)
        store.save(2, ViewSettings())
        store.save(1, _settings())
        store.save(2, ViewSettings(itemize=False))
        with open(self.path, encoding="utf-8") as fh:
            data = json.load(fh)
        self.assertEqual([r["schedule_id"] for r in data], [2, 1])
        self.assertEqual(data[0], {"schedule_id": 2, "itemize": False, "items": []})
        self.assertEqual(data[1]["items"][1], {"column": "Width", "ascending": False})

    def test_unreadable_file_loads_empty(self) -> None:
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write("{not json")
        store = FileSettingsStore(self.path)
        self.assertEqual(store.load(1), ViewSettings())
        store.save(1, _settings())
        self.assertEqual(store.load(1), _settings())

    def test_delete(self) -> None:
        store = FileSettingsStore(self.path)
        store.save(1, _settings())
        self.assertTrue(store.delete(1))
        self.assertFalse(store.delete(1))
        self.assertEqual(store.list(), [])


if __name__ == "__main__":
    unittest.main()
