"""
Tests for relative date resolution.
"""

from datetime import date

import pytest

from nexmind.utils.dates import extract_due_date, next_weekday, parse_relative_date

# Wednesday
TODAY = date(2025, 1, 15)


class TestParseRelativeDate:
    """Test due-date expression parsing."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("heute", "2025-01-15"),
            ("today", "2025-01-15"),
            ("morgen", "2025-01-16"),
            ("Tomorrow", "2025-01-16"),
            ("übermorgen", "2025-01-17"),
            ("day after tomorrow", "2025-01-17"),
        ],
    )
    def test_relative_tokens(self, expression, expected):
        assert parse_relative_date(expression, TODAY) == expected

    def test_weekday_is_next_occurrence(self):
        assert parse_relative_date("Freitag", TODAY) == "2025-01-17"
        assert parse_relative_date("monday", TODAY) == "2025-01-20"

    def test_same_weekday_is_never_today(self):
        """Naming today's weekday means the one a week later."""
        assert parse_relative_date("Mittwoch", TODAY) == "2025-01-22"

    def test_weekday_inside_phrase(self):
        assert parse_relative_date("am Donnerstag", TODAY) == "2025-01-16"

    def test_next_week_is_next_monday(self):
        assert parse_relative_date("nächste Woche", TODAY) == "2025-01-20"
        assert parse_relative_date("next week", TODAY) == "2025-01-20"

    def test_in_n_days_and_weeks(self):
        assert parse_relative_date("in 3 Tagen", TODAY) == "2025-01-18"
        assert parse_relative_date("in 10 days", TODAY) == "2025-01-25"
        assert parse_relative_date("in 2 Wochen", TODAY) == "2025-01-29"
        assert parse_relative_date("in 1 week", TODAY) == "2025-01-22"

    def test_iso_passthrough(self):
        assert parse_relative_date("2025-02-01", TODAY) == "2025-02-01"

    def test_invalid_iso_date(self):
        assert parse_relative_date("2025-13-45", TODAY) is None

    @pytest.mark.parametrize("expression", ["not-a-date", "", None, "irgendwann"])
    def test_unknown_expressions(self, expression):
        assert parse_relative_date(expression, TODAY) is None

    def test_defaults_to_current_date(self):
        tomorrow = parse_relative_date("morgen")
        assert date.fromisoformat(tomorrow) > date.today()


class TestNextWeekday:
    def test_later_this_week(self):
        assert next_weekday(TODAY, 4) == date(2025, 1, 17)

    def test_wraps_to_next_week(self):
        assert next_weekday(TODAY, 1) == date(2025, 1, 21)


class TestExtractDueDate:
    """Test scanning free text for date keywords."""

    def test_uebermorgen_wins_over_morgen(self):
        assert extract_due_date("Bis übermorgen fertig machen", TODAY) == "2025-01-17"

    def test_morgen_in_sentence(self):
        assert extract_due_date("Maria morgen anrufen", TODAY) == "2025-01-16"

    def test_weekday_in_sentence(self):
        assert extract_due_date("Report bis Freitag abgeben", TODAY) == "2025-01-17"

    def test_in_days_in_sentence(self):
        assert extract_due_date("Rechnung in 5 Tagen bezahlen", TODAY) == "2025-01-20"

    def test_no_date(self):
        assert extract_due_date("Milch kaufen", TODAY) is None
