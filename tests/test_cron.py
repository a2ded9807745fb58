"""Tests for the cron evaluator: field parsing, validation, occurrence search."""

from datetime import datetime

import pytest

from scheduler.cron import (
    DAY_OF_MONTH,
    DAY_OF_WEEK,
    FIELD_DOMAINS,
    HOUR,
    MINUTE,
    MONTH,
    CronSchedule,
    ParsedField,
    Wildcard,
    cron_matches,
    format_occurrence,
    next_occurrences,
    next_run_times,
    parse_field,
    validate_cron_expression,
)


class TestParseField:
    """Test parse_field() resolution rules."""

    @pytest.mark.parametrize("domain", FIELD_DOMAINS, ids=lambda d: d.name)
    def test_wildcard_is_full_domain(self, domain):
        parsed = domain.parse("*")
        assert parsed == set(range(domain.minimum, domain.maximum + 1))
        assert parsed.wildcard

    def test_explicit_full_range_is_not_wildcard(self):
        parsed = parse_field("0-6", 0, 6)
        assert parsed == parse_field("*", 0, 6)
        assert not parsed.wildcard

    def test_step_from_wildcard(self):
        assert parse_field("*/15", 0, 59) == {0, 15, 30, 45}

    def test_step_starts_at_domain_minimum(self):
        assert parse_field("*/10", 1, 31) == {1, 11, 21, 31}

    def test_step_with_start_value(self):
        assert parse_field("5/20", 0, 59) == {5, 25, 45}

    def test_step_with_range(self):
        assert parse_field("10-20/5", 0, 59) == {10, 15, 20}

    @pytest.mark.parametrize("token", ["*/0", "*/-5", "*/x", "*/", "a/5", "1-x/5"])
    def test_bad_step_is_empty(self, token):
        assert parse_field(token, 0, 59) == set()

    def test_list_drops_out_of_range(self):
        assert parse_field("1,5,61", 0, 59) == {1, 5}

    def test_list_drops_malformed_members(self):
        assert parse_field("1,x,3,,", 0, 59) == {1, 3}

    def test_list_collapses_duplicates(self):
        assert parse_field("5,5,5", 0, 59) == {5}

    def test_range(self):
        assert parse_field("10-12", 0, 23) == {10, 11, 12}

    def test_range_reversed_is_empty(self):
        assert parse_field("12-10", 0, 23) == set()

    def test_range_clipped_to_domain(self):
        assert parse_field("20-30", 0, 23) == {20, 21, 22, 23}

    def test_range_malformed(self):
        assert parse_field("a-b", 0, 23) == set()

    def test_single_value(self):
        assert parse_field("7", 0, 23) == {7}

    @pytest.mark.parametrize("token", ["24", "abc", "7.5"])
    def test_single_value_invalid(self, token):
        assert parse_field(token, 0, 23) == set()

    def test_huge_number_is_dropped(self):
        assert parse_field("1," + "9" * 5000, 0, 59) == {1}
        assert parse_field("9" * 5000, 0, 59) == set()

    @pytest.mark.parametrize(
        "token, expected",
        [("\u0665", set()), ("1,\u0665", {1}), ("\u0661-\u0663", set()), ("*/\u0665", set())],
    )
    def test_non_ascii_digits_rejected(self, token, expected):
        assert parse_field(token, 0, 59) == expected

    def test_parsed_field_is_immutable_set(self):
        parsed = parse_field("1,2", 0, 59)
        assert isinstance(parsed, ParsedField)
        assert isinstance(parsed, frozenset)
        assert isinstance(parse_field("*", 0, 59), Wildcard)


class TestValidate:
    """Test validate_cron_expression()."""

    def test_valid(self):
        result = validate_cron_expression("0 9 * * *")
        assert result.is_valid
        assert result.message == "Valid CRON expression"

    @pytest.mark.parametrize("expression", ["0 9 * *", "0 9 * * * *", "", "   "])
    def test_wrong_part_count(self, expression):
        result = validate_cron_expression(expression)
        assert not result.is_valid
        assert result.message == "CRON expression must have exactly 5 parts"

    @pytest.mark.parametrize(
        "expression, message",
        [
            ("70 9 * * *", "Invalid minute: 70"),
            ("0 24 * * *", "Invalid hour: 24"),
            ("0 9 0 * *", "Invalid day: 0"),
            ("0 9 * 13 *", "Invalid month: 13"),
            ("0 9 * * 7", "Invalid weekday: 7"),
            ("x 9 * * *", "Invalid minute: x"),
        ],
    )
    def test_out_of_domain(self, expression, message):
        result = validate_cron_expression(expression)
        assert not result.is_valid
        assert result.message == message

    def test_huge_number_is_invalid(self):
        huge = "9" * 5000
        result = validate_cron_expression(huge + " 9 * * *")
        assert not result.is_valid
        assert result.message == f"Invalid minute: {huge}"

    def test_non_ascii_digit_is_invalid(self):
        assert validate_cron_expression("0 9 * * \u0665").message == "Invalid weekday: \u0665"

    def test_first_bad_field_is_reported(self):
        assert validate_cron_expression("99 99 * * *").message == "Invalid minute: 99"

    def test_complex_fields_are_trusted(self):
        # Only the separator is checked here; parse_field() decides later.
        assert validate_cron_expression("*/0 1-99 1,x * *").is_valid

    def test_extra_whitespace(self):
        assert validate_cron_expression("  0   9 *\t* 1-5 ").is_valid

    def test_serialises_with_camel_case(self):
        result = validate_cron_expression("0 9 * * *")
        assert result.model_dump(by_alias=True) == {
            "isValid": True,
            "message": "Valid CRON expression",
        }


class TestSchedule:
    """Test CronSchedule matching and the day-field rule."""

    def test_wrong_field_count_raises(self):
        with pytest.raises(ValueError):
            CronSchedule.from_expression("* * *")

    def test_matches(self):
        assert cron_matches("30 14 * * 1-5", datetime(2024, 1, 3, 14, 30))
        assert not cron_matches("30 14 * * 1-5", datetime(2024, 1, 6, 14, 30))

    def test_sunday_is_zero(self):
        assert cron_matches("0 9 * * 0", datetime(2024, 1, 7, 9, 0))

    def test_both_day_fields_use_or(self):
        schedule = CronSchedule.from_expression("0 0 1 * 1")
        assert schedule.day_matches(datetime(2024, 2, 1))  # Thursday, 1st
        assert schedule.day_matches(datetime(2024, 2, 5))  # Monday
        assert not schedule.day_matches(datetime(2024, 2, 6))

    def test_only_day_of_month(self):
        schedule = CronSchedule.from_expression("0 0 15 * *")
        assert schedule.day_matches(datetime(2024, 2, 15))
        assert not schedule.day_matches(datetime(2024, 2, 12))

    def test_only_day_of_week(self):
        schedule = CronSchedule.from_expression("0 0 * * 1")
        assert schedule.day_matches(datetime(2024, 2, 12))
        assert not schedule.day_matches(datetime(2024, 2, 15))

    def test_explicit_full_day_list_still_uses_or(self):
        # "1-31" is constrained, so with a weekday it ORs and matches every day.
        schedule = CronSchedule.from_expression("0 0 1-31 * 1")
        assert schedule.day_matches(datetime(2024, 2, 6))


class TestNextRunTimes:
    """Test next_run_times() and next_occurrences()."""

    def test_daily(self):
        runs = next_run_times("0 9 * * *", datetime(2024, 1, 1, 8, 0), count=3)
        assert runs == [
            datetime(2024, 1, 1, 9, 0),
            datetime(2024, 1, 2, 9, 0),
            datetime(2024, 1, 3, 9, 0),
        ]

    def test_strictly_after_reference(self):
        # 2024-01-01 is a Monday.
        runs = next_run_times("0 0 * * 1", datetime(2024, 1, 1, 0, 0), count=1)
        assert runs == [datetime(2024, 1, 8, 0, 0)]

    def test_seconds_are_truncated(self):
        runs = next_run_times("* * * * *", datetime(2024, 1, 1, 8, 0, 59, 999), count=2)
        assert runs == [datetime(2024, 1, 1, 8, 1), datetime(2024, 1, 1, 8, 2)]

    def test_day_fields_or(self):
        # Feb 1 2024 is a Thursday; Mondays in Feb are 5, 12, 19, 26.
        runs = next_run_times("0 0 1 * 1", datetime(2024, 1, 31, 12, 0), count=3)
        assert runs == [
            datetime(2024, 2, 1),
            datetime(2024, 2, 5),
            datetime(2024, 2, 12),
        ]

    def test_ascending_and_after_reference(self):
        reference = datetime(2024, 3, 10, 17, 42, 13)
        runs = next_run_times("*/7 */3 * * *", reference, count=5)
        assert len(runs) == 5
        assert all(run > reference for run in runs)
        assert runs == sorted(runs)

    def test_step_minutes(self):
        runs = next_run_times("*/15 * * * *", datetime(2024, 1, 1, 10, 7), count=3)
        assert runs == [
            datetime(2024, 1, 1, 10, 15),
            datetime(2024, 1, 1, 10, 30),
            datetime(2024, 1, 1, 10, 45),
        ]

    def test_month_boundary(self):
        runs = next_run_times("0 0 1 * *", datetime(2024, 1, 15), count=2)
        assert runs == [datetime(2024, 2, 1), datetime(2024, 3, 1)]

    def test_leap_day(self):
        runs = next_run_times("0 0 29 2 *", datetime(2024, 3, 1), count=1)
        assert runs == [datetime(2028, 2, 29)]

    def test_impossible_date_returns_empty(self):
        assert next_run_times("0 0 30 2 *", datetime(2024, 1, 1)) == []

    def test_search_limit_truncates(self):
        # Only 2 days of search for a daily schedule.
        runs = next_run_times("0 9 * * *", datetime(2024, 1, 1, 8, 0), count=5, search_limit=2 * 24 * 60)
        assert runs == [datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 2, 9, 0)]

    def test_empty_field_never_matches(self):
        assert next_run_times("*/0 * * * *", datetime(2024, 1, 1)) == []
        assert next_run_times("0 9 * 13 *", datetime(2024, 1, 1)) == []

    def test_wrong_field_count_is_empty(self):
        assert next_run_times("0 9 * *", datetime(2024, 1, 1)) == []

    @pytest.mark.parametrize("count", [0, -1])
    def test_non_positive_count(self, count):
        assert next_run_times("* * * * *", datetime(2024, 1, 1), count=count) == []

    def test_default_count_is_five(self):
        assert len(next_run_times("* * * * *", datetime(2024, 1, 1))) == 5

    def test_idempotent(self):
        reference = datetime(2024, 6, 1, 12, 0)
        first = next_occurrences("0 */6 * * 1-5", reference)
        second = next_occurrences("0 */6 * * 1-5", reference)
        assert first == second

    def test_formatted(self):
        assert next_occurrences("30 14 * * *", datetime(2024, 1, 1, 8, 0), count=1) == [
            "Mon, Jan 1, 2:30 PM",
        ]


class TestFormatOccurrence:

    @pytest.mark.parametrize(
        "dt, expected",
        [
            (datetime(2024, 1, 1, 0, 0), "Mon, Jan 1, 12:00 AM"),
            (datetime(2024, 1, 1, 9, 5), "Mon, Jan 1, 9:05 AM"),
            (datetime(2024, 12, 29, 12, 0), "Sun, Dec 29, 12:00 PM"),
            (datetime(2024, 7, 4, 23, 59), "Thu, Jul 4, 11:59 PM"),
        ],
    )
    def test_format(self, dt, expected):
        assert format_occurrence(dt) == expected


def test_domains():
    assert (MINUTE.minimum, MINUTE.maximum) == (0, 59)
    assert (HOUR.minimum, HOUR.maximum) == (0, 23)
    assert (DAY_OF_MONTH.minimum, DAY_OF_MONTH.maximum) == (1, 31)
    assert (MONTH.minimum, MONTH.maximum) == (1, 12)
    assert (DAY_OF_WEEK.minimum, DAY_OF_WEEK.maximum) == (0, 6)
    assert 0 in DAY_OF_WEEK and 7 not in DAY_OF_WEEK
