import random
import pytest

from errors import ValidationError
from money import parse_amount, split_amount


def test_split_amount_gives_drift_to_last_installment():
    assert split_amount(10_000, 3) == [3_333, 3_333, 3_334]
    assert split_amount(20_000, 3) == [6_667, 6_667, 6_666]
    assert split_amount(1_000, 4) == [250, 250, 250, 250]


def test_split_amount_rounds_half_up():
    # 0.25 / 2 = 0.125 -> 0.13
    assert split_amount(25, 2) == [13, 12]


def test_split_amount_sums_to_total_for_random_amounts():
    rng = random.Random(20240131)
    for count in range(2, 49):
        totals = [count, count + 1, max(count, count * (count - 1) // 2)]
        totals += [rng.randint(count, 5_000_000) for _ in range(25)]
        for total in totals:
            parts = split_amount(total, count)
            assert len(parts) == count
            assert sum(parts) == total
            assert all(part > 0 for part in parts)
            assert max(parts) - min(parts) <= count


def test_split_amount_rounds_down_when_last_part_would_be_empty():
    assert split_amount(6, 4) == [1, 1, 1, 3]
    assert split_amount(9, 6) == [1, 1, 1, 1, 1, 4]
    parts = split_amount(504, 48)
    assert parts[:-1] == [10] * 47
    assert parts[-1] == 34


def test_split_amount_rejects_less_than_a_cent_per_installment():
    with pytest.raises(ValidationError):
        split_amount(3, 4)
    with pytest.raises(ValidationError):
        split_amount(1, 2)
    with pytest.raises(ValidationError):
        split_amount(0, 1)


def test_parse_amount_accepts_common_formats():
    assert parse_amount("1234.56") == 123_456
    assert parse_amount("1.234,56") == 123_456
    assert parse_amount("R$ 10,5") == 1_050
    assert parse_amount("0.005") == 1


def test_parse_amount_rejects_garbage_and_negatives():
    with pytest.raises(ValidationError):
        parse_amount("ten")
    with pytest.raises(ValidationError):
        parse_amount("-5")
    assert parse_amount("-5", allow_negative=True) == -500
