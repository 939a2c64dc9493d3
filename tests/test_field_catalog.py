import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from app.stores import MemoryHostDocument
from field_catalog import MULTI_CATEGORY_NAME, SchedulableFieldCatalog
from prosched.models import MULTI_CATEGORY, Attribute, Element, SchedulableField, StorageKind


DOORS = 5
MARK = SchedulableField(10, "Mark")
WIDTH = SchedulableField(20, "Width")
FIRE = SchedulableField(30, "Fire Rating")
COMMENTS = SchedulableField(-1001, "Comments")
PHASE = SchedulableField(-2002, "Phase Created")
COUNT = SchedulableField(-1, "Count")


def _doc() -> MemoryHostDocument:
    doc = MemoryHostDocument()
    doc.add_category(
        DOORS,
        "Doors",
        filterable={30, -1001},
        schedulable=[MARK, WIDTH, FIRE, COMMENTS, PHASE, COUNT],
    )
    doc.add_element(
        Element(
            element_id=100,
            name="Type A",
            category_id=DOORS,
            is_type=True,
            attributes={20: Attribute(20, "Width", StorageKind.REAL, 3.0)},
        )
    )
    doc.add_element(
        Element(
            element_id=1,
            name="Door",
            category_id=DOORS,
            type_id=100,
            attributes={10: Attribute(10, "Mark", StorageKind.TEXT, "D1")},
        )
    )
    doc.add_schedule(1000, "Door Schedule", DOORS, fields=[(10, "Mark")])
    doc.add_schedule(2000, "Everything", MULTI_CATEGORY, fields=[])
    return doc


class TestFieldCatalog(unittest.TestCase):
    def setUp(self) -> None:
        self.doc = _doc()
        self.catalog = SchedulableFieldCatalog(self.doc)

    def test_available_excludes_scheduled_and_sorts(self) -> None:
        fields = self.catalog.available_fields(DOORS, {10})
        self.assertEqual([f.name for f in fields], ["Comments", "Count", "Fire Rating", "Width"])

    def test_intrinsic_requires_filterable(self) -> None:
        fields = self.catalog.available_fields(DOORS, set())
        names = [f.name for f in fields]
        self.assertIn("Comments", names)
        self.assertNotIn("Phase Created", names)

    def test_type_sample_makes_field_eligible(self) -> None:
        fields = self.catalog.available_fields(DOORS, set(), candidates=[WIDTH])
        self.assertEqual(fields, [WIDTH])

    def test_invalid_id_is_always_eligible(self) -> None:
        self.assertTrue(self.catalog.is_eligible(COUNT, DOORS, {-1}, set(), None))

    def test_multi_category_accepts_everything_unscheduled(self) -> None:
        fields = self.catalog.available_fields(MULTI_CATEGORY, {10}, candidates=[MARK, PHASE, WIDTH])
        self.assertEqual([f.name for f in fields], ["Phase Created", "Width"])

    def test_load_parameter_data(self) -> None:
        data = self.catalog.load_parameter_data(self.doc.get_schedule(1000))
        self.assertEqual(data.category_name, "Doors")
        self.assertEqual([i.name for i in data.scheduled], ["Mark"])
        self.assertTrue(all(i.is_scheduled for i in data.scheduled))
        self.assertTrue(all(not i.is_scheduled for i in data.available))
        self.assertNotIn("Mark", [i.name for i in data.available])

    def test_multi_category_name(self) -> None:
        data = self.catalog.load_parameter_data(self.doc.get_schedule(2000))
        self.assertEqual(data.category_name, MULTI_CATEGORY_NAME)
        self.assertEqual(data.available, [])


if __name__ == "__main__":
    unittest.main()
