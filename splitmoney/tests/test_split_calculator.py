"""
Unit Tests for the Split Calculator

Tests cover:
- Equal, custom and percentage splits
- Rounding residual placement
- Error aggregation (every violated rule reported)
- Strategy dispatch and stored-split validation
"""

import pytest
from decimal import Decimal
from splitmoney.schemas.split_schema import (
    EqualSplit, CustomSplit, PercentageSplit, SplitErrorCode, SplitLine
)
from splitmoney.utils.split_calculator import (
    calculate_equal_split,
    calculate_custom_split,
    calculate_percentage_split,
    compute_splits,
    strategy_member_ids,
    validate_splits
)


def amounts(result):
    return {split.member_id: split.amount for split in result.splits}


@pytest.mark.unit
class TestEqualSplit:
    """Test calculate_equal_split."""

    def test_residual_goes_to_first_member(self):
        result = calculate_equal_split(Decimal("100"), ["a", "b", "c"], "e1")

        assert result.is_valid
        assert result.errors == []
        assert sum(s.amount for s in result.splits) == Decimal("100")
        assert amounts(result) == {"a": Decimal("33.34"), "b": Decimal("33.33"), "c": Decimal("33.33")}
        for split in result.splits:
            assert Decimal("33") <= split.amount <= Decimal("34")

    def test_shares_truncated_before_residual(self):
        # 2 / 3 truncates to 0.66, the first member takes the remaining 0.02
        result = calculate_equal_split(Decimal("2"), ["a", "b", "c"], "e1")

        assert sum(s.amount for s in result.splits) == Decimal("2")
        assert amounts(result) == {"a": Decimal("0.68"), "b": Decimal("0.66"), "c": Decimal("0.66")}

    def test_small_amount_many_members_never_negative(self):
        members = [f"m{i}" for i in range(15)]
        result = calculate_equal_split(Decimal("0.10"), members, "e1")

        assert result.is_valid
        assert all(s.amount >= 0 for s in result.splits)
        assert sum(s.amount for s in result.splits) == Decimal("0.10")
        assert result.splits[0].amount == Decimal("0.10")

    def test_seven_way_split(self):
        members = [f"m{i}" for i in range(7)]
        result = calculate_equal_split(Decimal("100"), members, "e1")

        assert all(s.amount >= 0 for s in result.splits)
        assert sum(s.amount for s in result.splits) == Decimal("100")
        assert result.splits[0].amount == Decimal("14.32")
        assert {s.amount for s in result.splits[1:]} == {Decimal("14.28")}

    def test_duplicate_members_rejected(self):
        result = calculate_equal_split(Decimal("30"), ["a", "a", "b"], "e1")

        assert not result.is_valid
        assert result.splits == []
        assert result.errors == ["Member a is selected more than once"]
        assert result.error_codes == [SplitErrorCode.duplicate_member]

    def test_even_division(self):
        result = calculate_equal_split(Decimal("90"), ["A", "B", "C"], "e1")
        assert amounts(result) == {"A": Decimal("30.00"), "B": Decimal("30.00"), "C": Decimal("30.00")}
        assert result.total == Decimal("90")

    def test_split_ids_and_flags(self):
        result = calculate_equal_split(Decimal("10"), ["x"], "exp-9")

        split = result.splits[0]
        assert split.id == "exp-9-x"
        assert split.expense_id == "exp-9"
        assert split.settled is False
        assert split.percentage is None
        assert split.amount == Decimal("10")

    def test_accepts_non_decimal_amounts(self):
        result = calculate_equal_split(10.5, ["a", "b"], "e1")
        assert sum(s.amount for s in result.splits) == Decimal("10.5")

    def test_empty_member_set(self):
        result = calculate_equal_split(Decimal("100"), [], "e1")

        assert not result.is_valid
        assert result.splits == []
        assert result.total == Decimal("0")
        assert result.errors == ["At least one member must be selected"]
        assert result.error_codes == [SplitErrorCode.empty_member_set]


@pytest.mark.unit
class TestCustomSplit:
    """Test calculate_custom_split."""

    def test_exact_amounts_used_as_given(self):
        result = calculate_custom_split(
            Decimal("100"), {"a": Decimal("50.125"), "b": Decimal("49.875")}, "e1"
        )

        assert result.is_valid
        assert amounts(result) == {"a": Decimal("50.125"), "b": Decimal("49.875")}
        assert result.total == Decimal("100")

    def test_within_tolerance(self):
        result = calculate_custom_split(Decimal("100"), {"a": Decimal("60"), "b": Decimal("39.995")}, "e1")
        assert result.is_valid

    def test_sum_mismatch(self):
        result = calculate_custom_split(
            Decimal("100"), {"a": Decimal("40"), "b": Decimal("35"), "c": Decimal("20")}, "e1"
        )

        assert not result.is_valid
        assert result.error_codes == [SplitErrorCode.amount_mismatch]
        assert "95.00" in result.errors[0]
        assert "100.00" in result.errors[0]

    def test_negative_amount_names_member(self):
        result = calculate_custom_split(
            Decimal("100"), {"a": Decimal("50"), "b": Decimal("-10"), "c": Decimal("60")}, "e1"
        )

        assert not result.is_valid
        assert any("b" in error and "negative" in error for error in result.errors)
        assert SplitErrorCode.negative_amount in result.error_codes
        # The negative amount is left out of the splits
        assert set(amounts(result)) == {"a", "c"}

    def test_all_violations_reported(self):
        result = calculate_custom_split(
            Decimal("100"), {"a": Decimal("-1"), "b": Decimal("-2"), "c": Decimal("10")}, "e1"
        )

        assert result.error_codes == [
            SplitErrorCode.negative_amount,
            SplitErrorCode.negative_amount,
            SplitErrorCode.amount_mismatch,
        ]
        assert len(result.errors) == 3


@pytest.mark.unit
class TestPercentageSplit:
    """Test calculate_percentage_split."""

    def test_basic_percentages(self):
        result = calculate_percentage_split(
            Decimal("100"), {"a": Decimal("50"), "b": Decimal("30"), "c": Decimal("20")}, "e1"
        )

        assert result.is_valid
        assert amounts(result) == {"a": Decimal("50.00"), "b": Decimal("30.00"), "c": Decimal("20.00")}
        assert [s.percentage for s in result.splits] == [Decimal("50"), Decimal("30"), Decimal("20")]

    def test_residual_to_first_member(self):
        percentages = {"a": Decimal("33.33"), "b": Decimal("33.33"), "c": Decimal("33.34")}
        result = calculate_percentage_split(Decimal("10"), percentages, "e1")

        assert result.is_valid
        assert sum(s.amount for s in result.splits) == Decimal("10")
        assert amounts(result)["b"] == Decimal("3.33")
        assert amounts(result)["c"] == Decimal("3.33")
        assert amounts(result)["a"] == Decimal("3.34")

    def test_many_small_percentages_never_negative(self):
        percentages = {f"m{i}": Decimal("6.6667") for i in range(15)}
        result = calculate_percentage_split(Decimal("0.10"), percentages, "e1")

        assert result.is_valid
        assert all(s.amount >= 0 for s in result.splits)
        assert sum(s.amount for s in result.splits) == Decimal("0.10")

    def test_overshoot_within_tolerance_taken_from_first_member(self):
        result = calculate_percentage_split(
            Decimal("1000"), {"a": Decimal("50.005"), "b": Decimal("50.005")}, "e1"
        )

        assert result.is_valid
        assert amounts(result) == {"a": Decimal("499.95"), "b": Decimal("500.05")}

    def test_sum_mismatch(self):
        result = calculate_percentage_split(
            Decimal("100"), {"a": Decimal("50"), "b": Decimal("30"), "c": Decimal("15")}, "e1"
        )

        assert not result.is_valid
        assert result.splits == []
        assert result.error_codes == [SplitErrorCode.percentage_sum_mismatch]
        assert "95.00%" in result.errors[0]

    def test_out_of_range_reported_per_member(self):
        result = calculate_percentage_split(
            Decimal("100"), {"a": Decimal("120"), "b": Decimal("-20"), "c": Decimal("100")}, "e1"
        )

        assert not result.is_valid
        out_of_range = [e for e in result.errors if "between 0 and 100" in e]
        assert len(out_of_range) == 2
        assert any("member a" in e for e in out_of_range)
        assert any("member b" in e for e in out_of_range)
        # Only c is in range, and it sums to exactly 100
        assert SplitErrorCode.percentage_sum_mismatch not in result.error_codes


@pytest.mark.unit
class TestComputeSplits:
    """Test strategy dispatch."""

    def test_dispatch_matches_direct_calls(self):
        equal = compute_splits(EqualSplit(member_ids=["a", "b"]), Decimal("10"), "e1")
        custom = compute_splits(CustomSplit(amounts={"a": Decimal("7"), "b": Decimal("3")}), Decimal("10"), "e1")
        percentage = compute_splits(
            PercentageSplit(percentages={"a": Decimal("70"), "b": Decimal("30")}), Decimal("10"), "e1"
        )

        assert amounts(equal) == {"a": Decimal("5.00"), "b": Decimal("5.00")}
        assert amounts(custom) == {"a": Decimal("7"), "b": Decimal("3")}
        assert amounts(percentage) == {"a": Decimal("7.00"), "b": Decimal("3.00")}

    def test_unknown_strategy(self):
        with pytest.raises(TypeError):
            compute_splits(object(), Decimal("10"), "e1")

    def test_strategy_member_ids(self):
        assert strategy_member_ids(EqualSplit(member_ids=["b", "a"])) == ["b", "a"]
        assert strategy_member_ids(CustomSplit(amounts={"c": Decimal("1")})) == ["c"]
        assert strategy_member_ids(PercentageSplit(percentages={"d": Decimal("100")})) == ["d"]


@pytest.mark.unit
class TestValidateSplits:
    """Test validate_splits on stored or edited splits."""

    def line(self, member_id, amount, percentage=None):
        return SplitLine(
            id=f"e1-{member_id}", expense_id="e1", member_id=member_id,
            amount=Decimal(amount), percentage=None if percentage is None else Decimal(percentage)
        )

    def test_valid_splits(self):
        validation = validate_splits(Decimal("50"), [self.line("a", "25"), self.line("b", "25")])
        assert validation.valid
        assert validation.errors == []

    def test_total_mismatch(self):
        validation = validate_splits(Decimal("50"), [self.line("a", "25"), self.line("b", "20")])
        assert not validation.valid
        assert "45.00" in validation.errors[0]

    def test_every_rule_reported(self):
        splits = [self.line("a", "-5", "120"), self.line("b", "60")]
        validation = validate_splits(Decimal("50"), splits)

        assert not validation.valid
        assert len(validation.errors) == 3
        assert any("member a cannot be negative" in e for e in validation.errors)
        assert any("percentage for member a" in e for e in validation.errors)
