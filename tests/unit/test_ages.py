"""Tests for child age brackets."""

from datetime import date

import pytest

from carematch.core.schemas import AgeRange, ChildProfile
from carematch.matching.ages import age_in_years, age_range_for, children_age_ranges

TODAY = date(2026, 10, 19)


class TestAgeInYears:
    def test_whole_years(self) -> None:
        assert age_in_years(date(2020, 1, 1), TODAY) == 6.0

    def test_birthday_not_reached(self) -> None:
        assert age_in_years(date(2020, 10, 20), TODAY) == 5.0

    def test_first_year_is_fractional(self) -> None:
        assert age_in_years(date(2026, 4, 1), TODAY) == pytest.approx(0.5)


class TestAgeRangeFor:
    @pytest.mark.parametrize(
        ("age", "expected"),
        [
            (0.0, AgeRange.NEWBORN),
            (0.2, AgeRange.NEWBORN),
            (0.25, AgeRange.BABY),
            (1.0, AgeRange.TODDLER),
            (3.0, AgeRange.PRESCHOOL),
            (6.0, AgeRange.SCHOOL_AGE),
            (12.0, AgeRange.SCHOOL_AGE),
            (13.0, AgeRange.TEENAGER),
        ],
    )
    def test_brackets(self, age: float, expected: AgeRange) -> None:
        assert age_range_for(age) is expected


class TestChildrenAgeRanges:
    def test_sorted_youngest_first(self) -> None:
        children = [
            ChildProfile(id=1, birth_date=date(2016, 5, 1)),
            ChildProfile(id=2, birth_date=date(2024, 1, 1)),
            ChildProfile(id=3, birth_date=date(2026, 3, 1)),
        ]
        assert children_age_ranges(children, TODAY) == (
            AgeRange.BABY, AgeRange.TODDLER, AgeRange.SCHOOL_AGE,
        )

    def test_unborn_counts_as_newborn_first(self) -> None:
        children = [
            ChildProfile(id=1, birth_date=date(2016, 5, 1)),
            ChildProfile(id=2, unborn=True, expected_birth_date=date(2027, 1, 1)),
        ]
        assert children_age_ranges(children, TODAY) == (AgeRange.NEWBORN, AgeRange.SCHOOL_AGE)

    def test_missing_birth_date_skipped(self) -> None:
        assert children_age_ranges([ChildProfile(id=1)], TODAY) == ()

    def test_no_children(self) -> None:
        assert children_age_ranges([], TODAY) == ()
