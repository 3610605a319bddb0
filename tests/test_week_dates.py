import unittest
from datetime import date

from services.week_dates import (
    date_for_offset,
    initial_week_start,
    parse_date,
    shift_week,
    to_monday,
    upcoming_monday,
)

WEDNESDAY = date(2024, 1, 3)


class TestWeekDates(unittest.TestCase):
    def test_upcoming_monday(self):
        self.assertEqual(upcoming_monday(date(2024, 1, 1)), "2024-01-01")
        self.assertEqual(upcoming_monday(WEDNESDAY), "2024-01-08")
        self.assertEqual(upcoming_monday(date(2024, 1, 7)), "2024-01-08")

    def test_to_monday_moves_back_within_week(self):
        self.assertEqual(to_monday("2024-01-03"), "2024-01-01")
        self.assertEqual(to_monday("2024-01-07"), "2024-01-01")
        self.assertEqual(to_monday("2024-01-01"), "2024-01-01")

    def test_to_monday_accepts_datetime_text(self):
        self.assertEqual(to_monday("2024-01-03T18:30:00"), "2024-01-01")

    def test_to_monday_is_idempotent(self):
        for value in ("2024-02-29", "2023-12-31", "2024-01-08"):
            once = to_monday(value)
            self.assertEqual(to_monday(once), once)
            self.assertEqual(parse_date(once).weekday(), 0)

    def test_to_monday_is_idempotent_for_unparseable_keys(self):
        for value in ("ikke en dato", "", None, "2024-13-45", "uke-3"):
            once = to_monday(value, WEDNESDAY)
            self.assertEqual(once, "2024-01-08")
            self.assertEqual(to_monday(once, WEDNESDAY), once)

    def test_invalid_input_gives_upcoming_monday(self):
        self.assertEqual(to_monday("ikke en dato", WEDNESDAY), "2024-01-08")
        self.assertEqual(to_monday(None, WEDNESDAY), "2024-01-08")
        self.assertEqual(to_monday("2024-13-45", WEDNESDAY), "2024-01-08")

    def test_shift_week(self):
        self.assertEqual(shift_week("2024-01-01", 1), "2024-01-08")
        self.assertEqual(shift_week("2024-01-01", -1), "2023-12-25")

    def test_date_for_offset(self):
        self.assertEqual(date_for_offset("2024-01-01", 1), date(2024, 1, 2))
        self.assertEqual(date_for_offset("2024-01-01", 6), date(2024, 1, 7))

    def test_initial_week_start(self):
        weeks = ["2024-01-08", "2024-01-01"]
        self.assertEqual(initial_week_start("2024-01-03", weeks, WEDNESDAY), "2024-01-01")
        self.assertEqual(initial_week_start(None, weeks, WEDNESDAY), "2024-01-08")
        self.assertEqual(initial_week_start(None, [], WEDNESDAY), "2024-01-08")


if __name__ == "__main__":
    unittest.main()
