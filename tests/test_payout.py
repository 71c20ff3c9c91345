import pytest

from app.services.payout import estimate_payout_ratio


def test_eps_based():
    assert estimate_payout_ratio(1.0, trailing_eps=2.0) == pytest.approx(50.0)


def test_pe_fallback_when_eps_missing():
    assert estimate_payout_ratio(1.0, trailing_eps=None, price=100.0, trailing_pe=20.0) == pytest.approx(20.0)


def test_eps_wins_over_pe():
    assert estimate_payout_ratio(1.0, trailing_eps=4.0, price=100.0, trailing_pe=20.0) == pytest.approx(25.0)


def test_negative_eps_falls_back():
    assert estimate_payout_ratio(1.0, trailing_eps=-1.0, price=50.0, trailing_pe=10.0) == pytest.approx(20.0)


def test_nothing_usable():
    assert estimate_payout_ratio(1.0) == 0
    assert estimate_payout_ratio(0, trailing_eps=2.0) == 0
    assert estimate_payout_ratio(1.0, price=0, trailing_pe=20.0) == 0
