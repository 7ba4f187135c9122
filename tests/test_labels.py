"""Tests for route categories and service labels."""

import unittest
import sys
from pathlib import Path

# Add src to path so we can import bustrack
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bustrack.labels import route_category, service_label, short_name_number
from bustrack.models import ServiceCalendar


class TestRouteCategory(unittest.TestCase):
    """Test the short-name range classification."""

    def test_corridor_range_is_inclusive(self):
        for name in ("1", "2", "5", "10"):
            self.assertEqual(route_category(name), "Corridor", name)

    def test_express_range(self):
        self.assertEqual(route_category("100"), "Express")
        self.assertEqual(route_category("150"), "Express")
        self.assertEqual(route_category("199"), "Express")
        self.assertEqual(route_category("200"), "Local")

    def test_regional_express_range(self):
        self.assertEqual(route_category("300"), "Regional Express")
        self.assertEqual(route_category("350"), "Regional Express")
        self.assertEqual(route_category("400"), "Local")

    def test_everything_else_is_local(self):
        for name in ("0", "11", "99", "250", "abc", "", None):
            self.assertEqual(route_category(name), "Local", name)

    def test_leading_digits_decide(self):
        """Suffixed short names use their leading number."""
        self.assertEqual(short_name_number("159A"), 159)
        self.assertEqual(route_category("159A"), "Express")
        self.assertIsNone(short_name_number("FRW"))


class TestServiceLabel(unittest.TestCase):
    """Test calendar labels shown on timetables."""

    def test_weekdays(self):
        calendar = ServiceCalendar(
            "WKDY", monday=True, tuesday=True, wednesday=True, thursday=True, friday=True
        )
        self.assertEqual(service_label(calendar), "Weekdays")

    def test_every_day(self):
        calendar = ServiceCalendar(
            "ALL",
            monday=True,
            tuesday=True,
            wednesday=True,
            thursday=True,
            friday=True,
            saturday=True,
            sunday=True,
        )
        self.assertEqual(service_label(calendar), "Every Day")

    def test_single_weekend_days(self):
        self.assertEqual(service_label(ServiceCalendar("SAT", saturday=True)), "Saturday")
        self.assertEqual(service_label(ServiceCalendar("SUN", sunday=True)), "Sunday")

    def test_other_combinations_list_days(self):
        self.assertEqual(service_label(ServiceCalendar("MW", monday=True, wednesday=True)), "Mon, Wed")
        self.assertEqual(
            service_label(ServiceCalendar("WKND", saturday=True, sunday=True)), "Sat, Sun"
        )
        self.assertEqual(
            service_label(
                ServiceCalendar("MF", monday=True, tuesday=True, wednesday=True, thursday=True)
            ),
            "Mon, Tue, Wed, Thu",
        )

    def test_missing_calendar_is_special(self):
        self.assertEqual(service_label(None), "Special")


if __name__ == "__main__":
    unittest.main()
