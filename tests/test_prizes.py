import pytest

from game.prizes import DEFAULT_PRIZE_TABLE, PrizeTable
from utils.errors import ConfigurationError


def test_default_table():
    table = DEFAULT_PRIZE_TABLE
    assert len(table.prizes) == 15
    assert table.max_level == 14
    assert table.top_prize == 1_000_000
    assert table.fireproof_levels == (3, 8, 13)


@pytest.mark.parametrize('answered_level, prize', [
    (-1, 0),
    (0, 0),
    (2, 0),
    (3, 500),
    (4, 500),
    (7, 500),
    (8, 16_000),
    (12, 16_000),
    (13, 1_000_000 // 2),
    (14, 500_000),
])
def test_fireproof_prize(answered_level, prize):
    assert DEFAULT_PRIZE_TABLE.fireproof_prize(answered_level) == prize


def test_fireproof_prize_is_monotonic():
    values = [DEFAULT_PRIZE_TABLE.fireproof_prize(level) for level in range(-1, 15)]
    assert values == sorted(values)
    assert set(values) <= set(DEFAULT_PRIZE_TABLE.prizes) | {0}


def test_prize_for():
    assert DEFAULT_PRIZE_TABLE.prize_for(-1) == 0
    assert DEFAULT_PRIZE_TABLE.prize_for(1) == 200
    assert DEFAULT_PRIZE_TABLE.prize_for(14) == 1_000_000


def test_custom_table():
    table = PrizeTable(prizes=(10, 20, 30), fireproof_levels=(1,))
    assert table.max_level == 2
    assert table.fireproof_prize(0) == 0
    assert table.fireproof_prize(2) == 20
    assert table.is_fireproof(1)
    assert not table.is_fireproof(2)


@pytest.mark.parametrize('prizes, fireproof', [
    ((), ()),
    ((100, 100, 200), (1,)),
    ((300, 200, 100), (1,)),
    ((100, 200, 300), (2, 1)),
    ((100, 200, 300), (3,)),
    ((100, 200, 300), (-1,)),
])
def test_invalid_tables_rejected(prizes, fireproof):
    with pytest.raises(ConfigurationError):
        PrizeTable(prizes=prizes, fireproof_levels=fireproof)
