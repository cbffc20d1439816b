"""Child age brackets used by the age-range filter and score."""

from collections.abc import Iterable
from datetime import date

from carematch.core.schemas import AgeRange, ChildProfile


def age_in_years(birth_date: date, today: date) -> float:
    """Age at ``today``; under one year it is fractional (months / 12)."""
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    if years == 0:
        months = (today.year - birth_date.year) * 12 + today.month - birth_date.month
        return months / 12
    return float(years)


def age_range_for(age: float) -> AgeRange:
    if age < 0.25:
        return AgeRange.NEWBORN
    if age < 1:
        return AgeRange.BABY
    if age < 3:
        return AgeRange.TODDLER
    if age < 6:
        return AgeRange.PRESCHOOL
    if age < 13:
        return AgeRange.SCHOOL_AGE
    return AgeRange.TEENAGER


def children_age_ranges(children: Iterable[ChildProfile], today: date) -> tuple[AgeRange, ...]:
    """Age brackets of the children, youngest first.

    Unborn children count as newborns. Children without a birth date are
    skipped.
    """
    unborn = 0
    aged: list[tuple[float, AgeRange]] = []
    for child in children:
        if child.unborn:
            unborn += 1
            continue
        if child.birth_date is None:
            continue
        age = age_in_years(child.birth_date, today)
        aged.append((age, age_range_for(age)))
    aged.sort(key=lambda pair: pair[0])
    return (AgeRange.NEWBORN,) * unborn + tuple(r for _, r in aged)
