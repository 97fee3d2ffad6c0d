"""
NetWorth Pro - Test Suite
=========================
Tests for currency formatting, models, the aggregation engine and the
step flow.
"""

import os
import sys

import pytest
from pydantic import ValidationError

# Import modules to test
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from currency import (
    Currency,
    CURRENCY_SYMBOLS,
    CURRENCY_OPTIONS,
    format_currency,
    format_number,
    get_currency_symbol,
    parse_currency,
)
from models import (
    ASSET_CATEGORIES,
    LIABILITY_CATEGORIES,
    Assets,
    Liabilities,
    MonthlyFinancials,
    InsertNetWorthCalculation,
    normalize_keys,
)
from calculator import (
    ASSET_FIELDS,
    LIABILITY_FIELDS,
    asset_breakdown,
    calculate_totals,
    category_breakdown,
    coerce_amount,
    debt_to_asset_ratio,
    liability_breakdown,
    non_zero_categories,
    round_half_up,
)
from flow import Step, StepFlow, StepStatus


# =============================================================================
# CURRENCY TESTS
# =============================================================================

class TestCurrency:
    """Test currency symbols and formatting."""

    def test_every_currency_has_a_symbol(self):
        """The symbol table should cover the whole enum."""
        for code in Currency:
            assert code in CURRENCY_SYMBOLS
        assert len(CURRENCY_OPTIONS) == len(Currency)

    def test_symbols(self):
        assert get_currency_symbol("USD") == "$"
        assert get_currency_symbol(Currency.CAD) == "C$"
        assert get_currency_symbol("inr") == "₹"

    def test_invalid_code_rejected(self):
        """Unknown codes never become a Currency."""
        with pytest.raises(ValueError):
            parse_currency("XYZ")

    def test_format_number_two_decimals(self):
        assert format_number(1234.5) == "1,234.50"
        assert format_number(0) == "0.00"
        assert format_number(float("nan")) == "0.00"

    def test_format_currency(self):
        assert format_currency(1500, "USD") == "$1,500.00"
        assert format_currency(80, Currency.CAD) == "C$80.00"
        assert format_currency(-1500, "GBP") == "-£1,500.00"


# =============================================================================
# MODEL TESTS
# =============================================================================

class TestModels:
    """Test record defaults, validation and wire names."""

    def test_field_counts(self):
        assert len(Assets.model_fields) == 12
        assert len(Liabilities.model_fields) == 11
        assert len(MonthlyFinancials.model_fields) == 17

    def test_defaults_are_zero(self):
        for record in (Assets(), Liabilities(), MonthlyFinancials()):
            assert all(v == 0 for v in record.model_dump().values())

    def test_negative_value_rejected(self):
        with pytest.raises(ValidationError):
            Assets(checking=-1)

    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_non_finite_value_rejected(self, value):
        with pytest.raises(ValidationError):
            Assets(checking=value)

    def test_camel_case_wire_names(self):
        liabilities = Liabilities.model_validate({"creditCard1": 400, "carLoan2": 50})
        assert liabilities.credit_card1 == 400
        assert liabilities.car_loan2 == 50

        dumped = Assets(primary_home=300000).model_dump(by_alias=True)
        assert dumped["primaryHome"] == 300000
        assert "otherRealEstate" in dumped

    def test_categories_cover_every_field(self):
        """Each field belongs to exactly one category group."""
        asset_fields = [f for group in ASSET_CATEGORIES for f in group.fields]
        liability_fields = [f for group in LIABILITY_CATEGORIES for f in group.fields]
        assert sorted(asset_fields) == sorted(ASSET_FIELDS)
        assert sorted(liability_fields) == sorted(LIABILITY_FIELDS)

    def test_normalize_keys_accepts_both_styles(self):
        normalized = normalize_keys(Assets, {"primaryHome": 1, "other_real_estate": 2, "bogus": 3})
        assert normalized == {"primary_home": 1, "other_real_estate": 2}

    def test_insert_schema_rejects_unknown_currency(self):
        with pytest.raises(ValidationError):
            InsertNetWorthCalculation.model_validate(
                {"currency": "XYZ", "assets": {}, "liabilities": {}}
            )


# =============================================================================
# AGGREGATION ENGINE TESTS
# =============================================================================

class TestCalculator:
    """Test totals, ratios and category breakdowns."""

    @pytest.fixture
    def assets(self):
        return Assets(checking=500, savings=1000, stocks=1500, primary_home=200000, vehicles=15000)

    @pytest.fixture
    def liabilities(self):
        return Liabilities(primary_mortgage=150000, credit_card1=400, car_loan1=8000)

    def test_all_zero_records(self):
        """Empty records give all-zero totals."""
        calc = calculate_totals(Assets(), Liabilities(), MonthlyFinancials())
        assert calc.total_assets == 0
        assert calc.total_liabilities == 0
        assert calc.net_worth == 0
        assert calc.debt_to_asset_ratio == 0
        assert calc.monthly_cash_flow == 0

    def test_total_assets_is_sum_of_fields(self, assets):
        calc = calculate_totals(assets, Liabilities())
        assert calc.total_assets == sum(assets.model_dump().values())

    def test_net_worth_identity(self, assets, liabilities):
        calc = calculate_totals(assets, liabilities)
        assert calc.net_worth == calc.total_assets - calc.total_liabilities

    def test_negative_net_worth(self):
        calc = calculate_totals(Assets(cash=100), Liabilities(student_loan=5000))
        assert calc.net_worth == -4900

    def test_ratio_zero_without_assets(self):
        """No assets means a 0% ratio, not a division error."""
        calc = calculate_totals(Assets(), Liabilities(other_debt=1000))
        assert calc.debt_to_asset_ratio == 0

    def test_ratio_rounds_to_integer_percent(self):
        assert debt_to_asset_ratio(1000, 300) == 30
        assert debt_to_asset_ratio(3, 1) == 33
        assert debt_to_asset_ratio(200, 1) == 1  # 0.5% rounds up
        assert debt_to_asset_ratio(100, 250) == 250

    @pytest.mark.parametrize("value,expected", [
        (0.49999999999999994, 0), (0.5, 1), (2.5, 3), (71.49, 71), (-2.5, -2), (-2.6, -3),
    ])
    def test_round_half_up_matches_math_round(self, value, expected):
        assert round_half_up(value) == expected

    def test_monthly_cash_flow(self):
        monthly = MonthlyFinancials(salary=5000, freelance=500, housing=2000, groceries=600)
        calc = calculate_totals(Assets(), Liabilities(), monthly)
        assert calc.monthly_income == 5500
        assert calc.monthly_expenses == 2600
        assert calc.monthly_cash_flow == 2900

    def test_lenient_inputs(self):
        """Missing or invalid values count as 0."""
        calc = calculate_totals(
            {"checking": 100, "savings": None, "stocks": "abc", "cash": -50, "bonds": float("inf")},
            {"creditCard1": "250"},
        )
        assert calc.total_assets == 100
        assert calc.total_liabilities == 250

    @pytest.mark.parametrize("value,expected", [
        (None, 0.0), ("", 0.0), ("1,200.50", 1200.5), (-5, 0.0),
        (float("nan"), 0.0), (True, 0.0), (42, 42.0),
    ])
    def test_coerce_amount(self, value, expected):
        assert coerce_amount(value) == expected

    def test_asset_breakdown_subtotals(self, assets):
        breakdown = {b.name: b for b in asset_breakdown(assets)}
        assert breakdown["Cash & Bank"].value == 1500
        assert breakdown["Investments"].value == 1500
        assert breakdown["Real Estate"].value == 200000
        assert breakdown["Personal Property"].value == 15000

    def test_breakdown_percentages(self):
        breakdown = category_breakdown(Assets(checking=250, stocks=750), ASSET_CATEGORIES)
        by_name = {b.name: b.percentage for b in breakdown}
        assert by_name == {"Cash & Bank": 25, "Real Estate": 0, "Investments": 75, "Personal Property": 0}

    def test_non_zero_categories(self, liabilities):
        names = [b.name for b in non_zero_categories(liability_breakdown(liabilities))]
        assert names == ["Mortgages & Home Loans", "Credit Card Debt", "Vehicle Loans"]

    def test_non_zero_items(self, liabilities):
        cards = [b for b in liability_breakdown(liabilities) if b.name == "Credit Card Debt"][0]
        assert [item.label for item in cards.non_zero_items] == ["Credit Card 1"]

    def test_empty_breakdown_has_zero_percentages(self):
        assert all(b.percentage == 0 for b in asset_breakdown(Assets()))

    def test_deterministic(self, assets, liabilities):
        assert calculate_totals(assets, liabilities) == calculate_totals(assets, liabilities)


# =============================================================================
# STEP FLOW TESTS
# =============================================================================

class TestStepFlow:
    """Test linear step navigation."""

    def test_initial_state(self):
        flow = StepFlow()
        assert flow.current == Step.ASSETS
        assert flow.step_number == 1
        assert flow.total_steps == 4
        assert flow.is_first

    def test_forward_through_all_steps(self):
        flow = StepFlow()
        visited = [flow.current]
        while not flow.is_last:
            visited.append(flow.next())
        assert visited == [Step.ASSETS, Step.LIABILITIES, Step.MONTHLY_FINANCIALS, Step.RESULTS]

    def test_next_on_results_stays(self):
        flow = StepFlow(index=3)
        assert flow.next() == Step.RESULTS

    def test_back_from_results(self):
        flow = StepFlow(index=3)
        assert flow.back() == Step.MONTHLY_FINANCIALS

    def test_back_on_first_stays(self):
        assert StepFlow().back() == Step.ASSETS

    def test_reset_returns_to_assets(self):
        flow = StepFlow(index=2)
        assert flow.reset() == Step.ASSETS

    def test_short_variant_skips_monthly(self):
        flow = StepFlow(include_monthly=False)
        flow.next()
        assert flow.next() == Step.RESULTS
        assert flow.total_steps == 3

    def test_progress_statuses(self):
        flow = StepFlow()
        flow.next()
        statuses = [status for _, _, status in flow.progress()]
        assert statuses == [StepStatus.COMPLETED, StepStatus.ACTIVE, StepStatus.PENDING, StepStatus.PENDING]

    def test_invalid_index(self):
        with pytest.raises(ValueError):
            StepFlow(include_monthly=False, index=3)


# =============================================================================
# RUN TESTS
# =============================================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
