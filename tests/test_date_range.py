from datetime import date, datetime

import pytest

from core.domain.dates import as_date, date_range, day_count


def test_date_range_is_inclusive_and_ordered():
    days = date_range(date(2025, 1, 30), date(2025, 2, 2))

    assert days == (
        date(2025, 1, 30),
        date(2025, 1, 31),
        date(2025, 2, 1),
        date(2025, 2, 2),
    )
    assert isinstance(days, tuple)


def test_single_day_range_has_one_entry():
    assert date_range(date(2025, 3, 5), date(2025, 3, 5)) == (date(2025, 3, 5),)
    assert day_count(date(2025, 3, 5), date(2025, 3, 5)) == 1


def test_reversed_range_is_empty():
    assert date_range(date(2025, 2, 10), date(2025, 2, 1)) == ()
    assert day_count(date(2025, 2, 10), date(2025, 2, 1)) == 0


def test_range_crosses_leap_day():
    days = date_range(date(2024, 2, 28), date(2024, 3, 1))

    assert date(2024, 2, 29) in days
    assert len(days) == 3


def test_datetimes_are_normalized_to_dates():
    stamp = datetime(2025, 1, 1, 17, 45)

    assert as_date(stamp) == date(2025, 1, 1)
    assert date_range(stamp, datetime(2025, 1, 2, 0, 1)) == (date(2025, 1, 1), date(2025, 1, 2))


def test_range_is_immutable():
    days = date_range(date(2025, 1, 1), date(2025, 1, 3))

    with pytest.raises(TypeError):
        days[0] = date(2030, 1, 1)  # type: ignore[index]
