import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from rename_preview import (
    apply_transform,
    build_rename_items,
    changed_items,
    has_type_items,
    renameable_columns,
    source_attribute_name,
)
from prosched.models import ScheduleTable
from prosched.results import ScheduleError


def _table() -> ScheduleTable:
    return ScheduleTable(
        columns=["ElementId", "TypeName", "Mark", "Width", "Count"],
        rows=[["1", "Type A", "D-01", "3", "1"], ["2", "Type A", "W-01", "3", "1"], ["3", "", "D-02", "4", "1"]],
        type_columns={"Mark": False, "Width": True},
    )


class TestRenamePreview(unittest.TestCase):
    def test_transform_order(self) -> None:
        self.assertEqual(apply_transform("D-01", find="D", replace="Door", prefix="L1 ", suffix="!"), "L1 Door-01!")
        self.assertEqual(apply_transform(None, prefix="x"), "x")
        self.assertEqual(apply_transform("abc"), "abc")

    def test_renameable_columns(self) -> None:
        self.assertEqual(renameable_columns(_table()), ["Mark", "Width"])

    def test_build_items(self) -> None:
        items = build_rename_items(_table(), [1, 2, 3, 99], "Mark", find="D", replace="DR")
        self.assertEqual([i.element_id for i in items], [1, 2, 3])
        self.assertEqual([i.new for i in items], ["DR-01", "W-01", "DR-02"])
        self.assertEqual(items[0].element_name, "Type A")
        self.assertEqual(items[2].element_name, "Element 3")
        self.assertEqual([i.element_id for i in changed_items(items)], [1, 3])
        self.assertFalse(has_type_items(items))

    def test_type_column_flags_items(self) -> None:
        items = build_rename_items(_table(), [1], "Width", suffix=" ft")
        self.assertTrue(items[0].is_type_attribute)
        self.assertTrue(has_type_items(items))

    def test_disambiguated_column_maps_to_attribute(self) -> None:
        table = ScheduleTable(columns=["ElementId", "TypeName", "Mark", "Mark (1)"], rows=[["1", "", "A", "A"]])
        self.assertEqual(source_attribute_name(table, "Mark (1)"), "Mark")
        self.assertEqual(source_attribute_name(table, "Size (2)"), "Size (2)")
        items = build_rename_items(table, [1], "Mark (1)", suffix="x")
        self.assertEqual(items[0].attribute_name, "Mark")

    def test_synthetic_column_rejected(self) -> None:
        with self.assertRaises(ScheduleError) as ctx:
            build_rename_items(_table(), [1], "TypeName", prefix="x")
        self.assertEqual(ctx.exception.code, "COLUMN_INVALID")


if __name__ == "__main__":
    unittest.main()
