import math

import pytest

from dmlcio.strtonum import atof, atol, parse_pair, strtof, strtoint, strtouint


def test_strtof_simple():
    assert strtof("1.5") == (1.5, 3)


def test_strtof_stops_at_garbage_and_skips_space():
    value, end = strtof("  -2.25e1x")
    assert value == -22.5
    assert end == len("  -2.25e1")


def test_strtof_negative_exponent():
    assert atof("25e-1") == 2.5


def test_strtof_exponent_is_clamped():
    assert atof("1e50") == atof("1e38")
    assert math.isfinite(atof("1e50"))


def test_strtof_no_digits():
    assert strtof("abc") == (0.0, 0)


@pytest.mark.parametrize("text", ["0.25", "-3.5", "128", "0.125"])
def test_atof_round_trip_exact_values(text):
    assert atof(text) == float(text)


def test_strtoint():
    assert strtoint("-42abc") == (-42, 3)
    assert atol("+17") == 17


def test_strtouint():
    assert strtouint(" 99 ") == (99, 3)
    with pytest.raises(ValueError):
        strtouint("-1")


def test_parse_pair_two_values():
    assert parse_pair("1:0.5", int, float) == (2, 1, 0.5, 5)


def test_parse_pair_single_value():
    count, first, second, end = parse_pair("  7 rest", int, float)
    assert (count, first, second) == (1, 7, None)
    assert end == len("  7 ")


def test_parse_pair_nothing():
    assert parse_pair("   ", int, float) == (0, None, None, 3)


def test_parse_pair_blank_before_colon():
    count, first, second, _ = parse_pair("3 :2", int, int)
    assert (count, first, second) == (2, 3, 2)


def test_parse_pair_custom_converter():
    def unsigned(s):
        return strtouint(s)[0]

    assert parse_pair("12:4", unsigned, unsigned)[:3] == (2, 12, 4)
    with pytest.raises(ValueError):
        parse_pair("-12", unsigned, unsigned)