"""Test number -> text rendering."""
import pytest

from numeric_mask.formatting.grouping import group_by_pattern, group_integer
from numeric_mask.formatting.number_format import compose, format_number
from numeric_mask.formatting.number_parsing import parse_number
from tests.factories import make_options, make_usd_options


class TestGrouping:
    def test_standard_thousands(self):
        assert format_number(1234567, make_options(group=".", digits=0)) == "1.234.567"

    def test_indian(self):
        opts = make_options(decimal=".", group=",", group_style="indian")
        assert format_number(1234567, opts) == "12,34,567"
        assert format_number(999, opts) == "999"

    def test_custom_pattern(self):
        assert group_by_pattern("1234567", ",", [3, 2]) == "12,34,567"
        opts = make_options(decimal=".", group=",", group_pattern="3,2")
        assert format_number(1234567, opts) == "12,34,567"

    def test_no_separator(self):
        assert format_number(1234567, make_options(group="")) == "1234567"

    def test_group_integer_keeps_sign(self):
        assert group_integer("-1234", make_options(group=".")) == "-1.234"


class TestDecimals:
    def test_fixed_digits(self):
        assert format_number(1234.5, make_options(digits=2)) == "1.234,50"

    def test_rounds_half_up(self):
        assert format_number(1.005, make_usd_options()) == "$ 1.01"

    def test_rounds_at_zero_digits(self):
        assert format_number(2.5, make_options(digits=0)) == "3"

    def test_non_numeric_renders_zero(self):
        assert format_number(None, make_options(digits=2)) == "0,00"


class TestSigns:
    def test_negatives_disallowed_render_magnitude(self):
        assert format_number(-5, make_options()) == "5"

    def test_sign_after_prefix(self):
        assert format_number(-5, make_usd_options(allow_negative=True)) == "$ -5.00"

    def test_sign_before_prefix(self):
        opts = make_usd_options(allow_negative=True, sign_position="beforePrefix")
        assert format_number(-5, opts) == "-$ 5.00"

    def test_parens(self):
        opts = make_options(decimal=".", group=",", digits=2, allow_negative=True, negative_style="parens")
        assert format_number(-1234.56, opts) == "(1,234.56)"

    def test_custom_parens_pair(self):
        opts = make_options(allow_negative=True, negative_style="parens", negative_parens="[,]")
        assert format_number(-3, opts) == "[3]"

    def test_positive_sign(self):
        assert format_number(5, make_options(show_positive_sign=True)) == "+5"

    def test_zero_has_no_sign_by_default(self):
        opts = make_options(digits=2, allow_negative=True, show_positive_sign=True)
        assert format_number(0, opts) == "0,00"
        assert format_number(-0.004, opts) == "0,00"

    def test_negative_zero_with_zero_sign(self):
        opts = make_options(digits=2, allow_negative=True, show_zero_sign=True)
        assert format_number(-0.004, opts) == "-0,00"

    def test_custom_negative_glyph(self):
        opts = make_options(allow_negative=True, negative_sign_symbol="−")
        assert format_number(-5, opts) == "−5"


class TestUnits:
    def test_percent_unit(self):
        opts = make_options(unit="percent")
        assert opts.suffix == "%"
        assert format_number(0.25, opts) == "25%"

    def test_basis_points(self):
        assert format_number(0.0025, make_options(unit="bp")) == "25 bp"

    def test_permille(self):
        assert format_number(0.015, make_options(unit="permille")) == "15‰"


class TestCompose:
    def test_undecorated(self):
        opts = make_usd_options()
        assert compose("-", "5.00", opts, decorated=False) == "-5.00"
        assert compose("", "5.00", opts) == "$ 5.00"


class TestRoundTrip:
    @pytest.mark.parametrize("value", [0, 1, 12.34, 1234.5, 999999.99, 1234567.891, 0.005])
    def test_parse_format_matches_rounded_value(self, value):
        opts = make_options(prefix="€ ", digits=2)
        text = format_number(value, opts)
        assert parse_number(text, opts) == pytest.approx(round(value + 1e-9, 2))

    @pytest.mark.parametrize("value", [-1234.5, -0.5, 42, 7.125])
    def test_negative_round_trip_with_parens(self, value):
        opts = make_usd_options(allow_negative=True, negative_style="parens")
        text = format_number(value, opts)
        assert parse_number(text, opts) == pytest.approx(round(value + 1e-9, 2))

    @pytest.mark.parametrize("value", [0.1, 0.25, 0.333])
    def test_percent_round_trip(self, value):
        opts = make_options(unit="percent", digits=1)
        assert parse_number(format_number(value, opts), opts) == pytest.approx(round(value * 100 + 1e-9, 1) / 100)

    @pytest.mark.parametrize("value", [0, 3.14159, -2.5, 1e6, 123456.789])
    def test_idempotent(self, value):
        opts = make_options(digits=2, allow_negative=True)
        once = format_number(value, opts)
        assert format_number(parse_number(once, opts), opts) == once
