"""Test Σ and μ row construction from variable stats."""

from clonotable.stats import VariableStats, parse_number
from clonotable.table.aggregate import build_mean_row, build_sum_row


def test_sum_row_integer_rounding():
    stats = VariableStats([("n", ["4", "6"]), ("umis", ["2.4", "3.7"])])

    row = build_sum_row(["n", "umis"], stats, cvar_count=3)

    assert row == ["Σ", "10", "6", "", "", ""]


def test_sum_row_rounds_half_up():
    stats = VariableStats([("x", ["1.25", "1.25"])])

    assert build_sum_row(["x"], stats, 0) == ["Σ", "3"]


def test_sum_row_percentage_two_decimals():
    stats = VariableStats([("IGHV3-7_g_%", ["1.5", "2.125"])])

    row = build_sum_row(["IGHV3-7_g_%"], stats, 0)

    assert row == ["Σ", "3.62"]


def test_missing_stat_gives_empty_cell():
    stats = VariableStats([("n", ["4", "6"])])

    assert build_sum_row(["gex", "n"], stats, 1) == ["Σ", "", "10", ""]
    assert build_mean_row(["gex", "n"], stats, 2, 1) == ["μ", "", "5.0", ""]


def test_colon_qualifier_is_stripped_for_lookup():
    stats = VariableStats([("n", ["4", "6"])])

    assert build_sum_row(["n:cells"], stats, 0) == ["Σ", "10"]


def test_non_numeric_values_are_ignored():
    stats = VariableStats([("n", ["4", "", "abc", "6"])])

    assert build_sum_row(["n"], stats, 0) == ["Σ", "10"]
    assert build_mean_row(["n"], stats, 4, 0) == ["μ", "2.5"]


def test_repeated_stat_names_are_combined():
    stats = VariableStats([("n", ["4"]), ("n", ["6"])])

    assert build_sum_row(["n"], stats, 0) == ["Σ", "10"]


def test_stat_with_no_numeric_values_sums_to_zero():
    stats = VariableStats([("const", ["IGHM", "IGHG1"])])

    assert build_sum_row(["const"], stats, 0) == ["Σ", "0"]
    assert build_mean_row(["const"], stats, 2, 0) == ["μ", "0.0"]


def test_mean_row_divides_by_row_count():
    stats = VariableStats([("n", ["4", "6"]), ("gex_%", ["10", "20.5"])])

    row = build_mean_row(["n", "gex_%"], stats, 2, cvar_count=2)

    assert row == ["μ", "5.0", "15.25", "", ""]


def test_mean_row_with_zero_rows():
    stats = VariableStats([("n", [])])

    assert build_mean_row(["n"], stats, 0, 0) == ["μ", ""]


def test_stats_from_rows_strips_qualifier():
    stats = VariableStats.from_rows(["n:x", "umed"], [["4", "1"], ["6", "2"]])

    assert "n" in stats
    assert stats.total("n") == 10.0
    assert stats.total("umed") == 3.0
    assert stats.total("gex") is None


def test_parse_number():
    assert parse_number("4") == 4.0
    assert parse_number("-2.5") == -2.5
    assert parse_number("") is None
    assert parse_number("IGHM") is None


def test_sum_row_saturates_on_infinite_total():
    stats = VariableStats([("n", ["4", "inf"]), ("big", ["1e400"]), ("umis", ["1e30"])])

    row = build_sum_row(["n", "big", "umis"], stats, 0)

    assert row == ["Σ", str(2 ** 64 - 1), str(2 ** 64 - 1), str(2 ** 64 - 1)]


def test_sum_row_nan_total_is_zero():
    stats = VariableStats([("n", ["inf", "-inf"])])

    assert build_sum_row(["n"], stats, 0) == ["Σ", "0"]


def test_infinite_percentage_and_mean_are_printed_as_floats():
    stats = VariableStats([("gex_%", ["inf"]), ("n", ["inf"])])

    assert build_sum_row(["gex_%"], stats, 0) == ["Σ", "inf"]
    assert build_mean_row(["n"], stats, 2, 0) == ["μ", "inf"]


def test_parse_number_rejects_padding_and_underscores():
    assert parse_number("1_000") is None
    assert parse_number(" 4") is None
    assert parse_number("4\n") is None
    assert parse_number("inf") == float("inf")

    stats = VariableStats([("n", ["4", " 6", "1_000"])])
    assert build_sum_row(["n"], stats, 0) == ["Σ", "4"]
