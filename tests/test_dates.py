"""Tests for expiration date extraction."""

from datetime import date

import pytest

from pantryscan.dates import expand_two_digit_year, parse_first_date


class TestIsoPattern:
    def test_plain_iso(self):
        assert parse_first_date("2025-06-30") == date(2025, 6, 30)

    @pytest.mark.parametrize(
        "text",
        [
            "EXP 2026-01-15",
            "use by: 2026-01-15 lot A12",
            "2026-01-15\n",
            "(2026-01-15)",
        ],
    )
    def test_iso_anywhere_in_text(self, text):
        assert parse_first_date(text) == date(2026, 1, 15)

    def test_iso_beats_earlier_slash_date(self):
        """Priority order wins, not position in the string."""
        assert parse_first_date("Packed 3/4/25 exp 2025-01-01") == date(2025, 1, 1)

    def test_iso_before_slash(self):
        assert parse_first_date("Exp 2025-01-01 or 3/4/25") == date(2025, 1, 1)

    def test_invalid_iso_falls_through_to_next_pattern(self):
        assert parse_first_date("2025-13-45 Best by March 5, 2026") == date(2026, 3, 5)

    def test_requires_word_boundary(self):
        assert parse_first_date("LOT12025-01-015") is None


class TestSlashPattern:
    def test_two_digit_year(self):
        assert parse_first_date("EXP 3/4/25") == date(2025, 3, 4)

    def test_four_digit_year(self):
        assert parse_first_date("EXP 12/31/2026") == date(2026, 12, 31)

    def test_single_digit_month_four_digit_year(self):
        assert parse_first_date("3/4/2026") == date(2026, 3, 4)

    def test_month_first(self):
        assert parse_first_date("01/02/2026") == date(2026, 1, 2)

    def test_three_digit_year_is_a_miss(self):
        assert parse_first_date("3/4/202") is None

    def test_impossible_day(self):
        assert parse_first_date("2/30/2026") is None


class TestBestByPattern:
    def test_full_month_name(self):
        assert parse_first_date("Best by March 5, 2026") == date(2026, 3, 5)

    def test_abbreviated_month(self):
        assert parse_first_date("BEST BY Mar 5, 2026") == date(2026, 3, 5)

    def test_colon_separator(self):
        assert parse_first_date("Best by: September 10, 2026") == date(2026, 9, 10)

    def test_hyphen_separator(self):
        assert parse_first_date("best by - Jan 2, 2027") == date(2027, 1, 2)

    def test_no_space_after_comma(self):
        assert parse_first_date("Best by June 1,2026") == date(2026, 6, 1)

    def test_unknown_month_name(self):
        assert parse_first_date("Best by Smarch 5, 2026") is None

    def test_month_name_without_label_is_not_matched(self):
        assert parse_first_date("March 5, 2026") is None


class TestMisses:
    @pytest.mark.parametrize(
        "text",
        ["random text", "", "   ", "Best by tomorrow", "12345", "2025-1-1"],
    )
    def test_no_date(self, text):
        assert parse_first_date(text) is None

    def test_non_string_input(self):
        assert parse_first_date(None) is None  # type: ignore[arg-type]


class TestTwoDigitYears:
    def test_pivot_low(self):
        assert expand_two_digit_year(0) == 2000
        assert expand_two_digit_year(68) == 2068

    def test_pivot_high(self):
        assert expand_two_digit_year(69) == 1969
        assert expand_two_digit_year(99) == 1999

    def test_slash_dates_use_pivot(self):
        assert parse_first_date("1/2/68") == date(2068, 1, 2)
        assert parse_first_date("1/2/69") == date(1969, 1, 2)
