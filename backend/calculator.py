"""
NetWorth Pro - Aggregation Engine
=================================
Pure functions that turn the three form records into totals.

No I/O and no hidden state: the same records always give the same
Calculations. Inputs are treated leniently - missing, non-numeric,
non-finite or negative values count as 0 instead of raising.
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from models import (
    ASSET_CATEGORIES,
    EXPENSE_FIELDS,
    INCOME_FIELDS,
    LIABILITY_CATEGORIES,
    Assets,
    Calculations,
    CategoryGroup,
    Liabilities,
    field_names,
)

Record = Union[BaseModel, Mapping[str, Any], None]

ASSET_FIELDS: List[str] = field_names(Assets)
LIABILITY_FIELDS: List[str] = field_names(Liabilities)
MONTHLY_INCOME_FIELDS: List[str] = [name for name, _ in INCOME_FIELDS]
MONTHLY_EXPENSE_FIELDS: List[str] = [name for name, _ in EXPENSE_FIELDS]


# =============================================================================
# VALUE COERCION
# =============================================================================

def coerce_amount(value: Any) -> float:
    """
    Coerce a form value to a usable amount.

    None, empty strings, non-numeric text, NaN/inf and negative numbers all
    become 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def field_value(record: Record, name: str) -> float:
    """Read one field from a model or a plain mapping (snake or camel key)."""
    if record is None:
        return 0.0
    if isinstance(record, BaseModel):
        return coerce_amount(getattr(record, name, None))
    if name in record:
        return coerce_amount(record[name])
    return coerce_amount(record.get(to_camel(name)))


def sum_fields(record: Record, names: Iterable[str]) -> float:
    """Sum the given fields of a record, left to right."""
    total = 0.0
    for name in names:
        total += field_value(record, name)
    return total


# =============================================================================
# TOTALS
# =============================================================================

def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up."""
    whole = math.floor(value)
    # value + 0.5 can itself round up (0.49999999999999994 + 0.5 == 1.0)
    return int(whole + 1 if value - whole >= 0.5 else whole)


def debt_to_asset_ratio(total_assets: float, total_liabilities: float) -> int:
    """Liabilities as a rounded percentage of assets; 0 when there are no assets."""
    if total_assets <= 0:
        return 0
    return round_half_up(total_liabilities / total_assets * 100)


def total_assets(assets: Record) -> float:
    return sum_fields(assets, ASSET_FIELDS)


def total_liabilities(liabilities: Record) -> float:
    return sum_fields(liabilities, LIABILITY_FIELDS)


def monthly_income(monthly: Record) -> float:
    return sum_fields(monthly, MONTHLY_INCOME_FIELDS)


def monthly_expenses(monthly: Record) -> float:
    return sum_fields(monthly, MONTHLY_EXPENSE_FIELDS)


def calculate_totals(
    assets: Record,
    liabilities: Record,
    monthly_financials: Record = None,
) -> Calculations:
    """
    Compute every derived total from the form records.

    Args:
        assets: Assets model or mapping
        liabilities: Liabilities model or mapping
        monthly_financials: MonthlyFinancials model or mapping (optional)

    Returns:
        Calculations
    """
    assets_total = total_assets(assets)
    liabilities_total = total_liabilities(liabilities)
    income = monthly_income(monthly_financials)
    expenses = monthly_expenses(monthly_financials)

    return Calculations(
        total_assets=assets_total,
        total_liabilities=liabilities_total,
        net_worth=assets_total - liabilities_total,
        debt_to_asset_ratio=debt_to_asset_ratio(assets_total, liabilities_total),
        monthly_income=income,
        monthly_expenses=expenses,
        monthly_cash_flow=income - expenses,
    )


# =============================================================================
# CATEGORY BREAKDOWNS
# =============================================================================

@dataclass
class BreakdownItem:
    field: str
    label: str
    value: float


@dataclass
class CategoryBreakdown:
    """Subtotal of one category group plus its share of the grand total."""
    name: str
    color: str
    value: float
    percentage: int
    items: List[BreakdownItem]

    @property
    def non_zero_items(self) -> List[BreakdownItem]:
        return [item for item in self.items if item.value > 0]


def category_breakdown(
    record: Record,
    groups: Sequence[CategoryGroup],
    total: Optional[float] = None,
) -> List[CategoryBreakdown]:
    """
    Subtotal a record by category group.

    ``percentage`` is the rounded share of ``total`` (the sum of all groups
    when not given), 0 when the total is 0.
    """
    breakdowns = []
    for group in groups:
        items = [
            BreakdownItem(field=name, label=label, value=field_value(record, name))
            for name, label in group.items
        ]
        breakdowns.append(CategoryBreakdown(
            name=group.name,
            color=group.color,
            value=sum(item.value for item in items),
            percentage=0,
            items=items,
        ))

    if total is None:
        total = sum(b.value for b in breakdowns)
    for breakdown in breakdowns:
        breakdown.percentage = (
            round_half_up(breakdown.value / total * 100) if total > 0 else 0
        )
    return breakdowns


def asset_breakdown(assets: Record) -> List[CategoryBreakdown]:
    return category_breakdown(assets, ASSET_CATEGORIES)


def liability_breakdown(liabilities: Record) -> List[CategoryBreakdown]:
    return category_breakdown(liabilities, LIABILITY_CATEGORIES)


def non_zero_categories(breakdowns: Iterable[CategoryBreakdown]) -> List[CategoryBreakdown]:
    """Drop categories whose subtotal is 0 (charts and reports skip them)."""
    return [b for b in breakdowns if b.value > 0]
