from datetime import date, datetime, timedelta

import pytest

from lending.errors import InvalidInputError, OutOfRangeError
from lending.loan_date import LoanDate


def test_today_is_accepted():
    assert LoanDate(date.today()).to_date() == date.today()


def test_yesterday_is_rejected():
    with pytest.raises(OutOfRangeError, match="past"):
        LoanDate(date.today() - timedelta(days=1))


def test_more_than_a_year_ahead_is_rejected():
    with pytest.raises(OutOfRangeError, match="one year"):
        LoanDate(date.today() + timedelta(days=366))


def test_a_year_ahead_is_accepted():
    LoanDate(date.today() + timedelta(days=365))


def test_out_of_range_is_an_input_error():
    with pytest.raises(InvalidInputError) as exc_info:
        LoanDate(date(2000, 1, 1))
    assert exc_info.value.errors[0]["field"] == "loan_date"
    assert isinstance(exc_info.value, ValueError)


def test_explicit_today_anchors_the_range():
    anchor = date(2024, 2, 29)
    assert LoanDate(date(2024, 3, 1), today=anchor).to_date() == date(2024, 3, 1)
    with pytest.raises(OutOfRangeError):
        LoanDate(date(2024, 2, 28), today=anchor)


def test_datetime_is_truncated_to_date():
    now = datetime.now()
    assert LoanDate(now).to_date() == now.date()


def test_equality_hash_and_ordering():
    today = date.today()
    a = LoanDate(today)
    b = LoanDate(today)
    later = LoanDate(today + timedelta(days=3))
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b, later}) == 2
    assert a < later
    assert later >= a
    assert a != today


def test_restore_skips_range_check():
    past = date(2001, 9, 1)
    assert LoanDate.restore(past).to_date() == past


def test_iso_round_trip():
    original = LoanDate(date.today() + timedelta(days=10))
    assert LoanDate.from_iso(original.isoformat()) == original
    assert str(original) == original.to_date().isoformat()
