"""
NetWorth Pro - Data Models
==========================
Pydantic models for the calculator's records.

These models serve as the contract between:
- The Streamlit form (session state store)
- The aggregation engine
- Export generators
- The save endpoint (FastAPI)

Python attributes are snake_case; every model reads and writes the camelCase
wire names (``primaryHome``, ``creditCard1``, ``totalAssets``...).
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from currency import Currency, DEFAULT_CURRENCY


class CamelModel(BaseModel):
    """Base model that accepts and emits camelCase field names. Amounts must be finite."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
    )


# =============================================================================
# FORM RECORDS
# =============================================================================

class Assets(CamelModel):
    """What the user owns. All values non-negative, default 0."""

    # Cash & Bank Accounts
    checking: float = Field(default=0.0, ge=0)
    savings: float = Field(default=0.0, ge=0)
    cash: float = Field(default=0.0, ge=0)

    # Real Estate
    primary_home: float = Field(default=0.0, ge=0)
    rental_property: float = Field(default=0.0, ge=0)
    other_real_estate: float = Field(default=0.0, ge=0)

    # Investments
    stocks: float = Field(default=0.0, ge=0)
    retirement: float = Field(default=0.0, ge=0)
    bonds: float = Field(default=0.0, ge=0)

    # Personal Property
    vehicles: float = Field(default=0.0, ge=0)
    jewelry: float = Field(default=0.0, ge=0)
    business: float = Field(default=0.0, ge=0)


class Liabilities(CamelModel):
    """What the user owes. All values non-negative, default 0."""

    # Mortgages & Loans
    primary_mortgage: float = Field(default=0.0, ge=0)
    home_equity_loan: float = Field(default=0.0, ge=0)
    investment_mortgage: float = Field(default=0.0, ge=0)

    # Credit Cards
    credit_card1: float = Field(default=0.0, ge=0)
    credit_card2: float = Field(default=0.0, ge=0)
    credit_card3: float = Field(default=0.0, ge=0)

    # Personal Loans
    student_loan: float = Field(default=0.0, ge=0)
    personal_loan: float = Field(default=0.0, ge=0)
    other_debt: float = Field(default=0.0, ge=0)

    # Vehicle Loans
    car_loan1: float = Field(default=0.0, ge=0)
    car_loan2: float = Field(default=0.0, ge=0)


class MonthlyFinancials(CamelModel):
    """Monthly income and expenses. All values non-negative, default 0."""

    # Income
    salary: float = Field(default=0.0, ge=0)
    bonuses: float = Field(default=0.0, ge=0)
    freelance: float = Field(default=0.0, ge=0)
    rental_income: float = Field(default=0.0, ge=0)
    investments: float = Field(default=0.0, ge=0)
    other_income: float = Field(default=0.0, ge=0)

    # Expenses
    housing: float = Field(default=0.0, ge=0)
    utilities: float = Field(default=0.0, ge=0)
    groceries: float = Field(default=0.0, ge=0)
    transportation: float = Field(default=0.0, ge=0)
    insurance: float = Field(default=0.0, ge=0)
    healthcare: float = Field(default=0.0, ge=0)
    entertainment: float = Field(default=0.0, ge=0)
    dining: float = Field(default=0.0, ge=0)
    shopping: float = Field(default=0.0, ge=0)
    subscriptions: float = Field(default=0.0, ge=0)
    other_expenses: float = Field(default=0.0, ge=0)


class Calculations(CamelModel):
    """Derived totals. Always recomputed from the form records."""

    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_worth: float = 0.0
    debt_to_asset_ratio: int = 0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    monthly_cash_flow: float = 0.0


# =============================================================================
# FIELD GROUPS
# =============================================================================

@dataclass(frozen=True)
class CategoryGroup:
    """A themed subset of a record's fields, e.g. "Cash & Bank"."""
    name: str
    color: str
    items: Tuple[Tuple[str, str], ...]  # (field name, label)

    @property
    def fields(self) -> List[str]:
        return [name for name, _ in self.items]


ASSET_CATEGORIES: Tuple[CategoryGroup, ...] = (
    CategoryGroup("Cash & Bank", "#00BCD4", (
        ("checking", "Checking Account"),
        ("savings", "Savings Account"),
        ("cash", "Cash on Hand"),
    )),
    CategoryGroup("Real Estate", "#1565C0", (
        ("primary_home", "Primary Residence"),
        ("rental_property", "Rental Properties"),
        ("other_real_estate", "Other Real Estate"),
    )),
    CategoryGroup("Investments", "#2E7D32", (
        ("stocks", "Stocks & ETFs"),
        ("retirement", "Retirement Accounts"),
        ("bonds", "Bonds & Fixed Income"),
    )),
    CategoryGroup("Personal Property", "#FF9800", (
        ("vehicles", "Vehicles"),
        ("jewelry", "Jewelry & Valuables"),
        ("business", "Business Ownership"),
    )),
)

LIABILITY_CATEGORIES: Tuple[CategoryGroup, ...] = (
    CategoryGroup("Mortgages & Home Loans", "#C62828", (
        ("primary_mortgage", "Primary Mortgage"),
        ("home_equity_loan", "Home Equity Loan"),
        ("investment_mortgage", "Investment Property Mortgage"),
    )),
    CategoryGroup("Credit Card Debt", "#AD1457", (
        ("credit_card1", "Credit Card 1"),
        ("credit_card2", "Credit Card 2"),
        ("credit_card3", "Credit Card 3"),
    )),
    CategoryGroup("Personal & Student Loans", "#6A1B9A", (
        ("student_loan", "Student Loans"),
        ("personal_loan", "Personal Loans"),
        ("other_debt", "Other Debt"),
    )),
    CategoryGroup("Vehicle Loans", "#EF6C00", (
        ("car_loan1", "Car Loan 1"),
        ("car_loan2", "Car Loan 2"),
    )),
)

INCOME_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("salary", "Salary"),
    ("bonuses", "Bonuses"),
    ("freelance", "Freelance Income"),
    ("rental_income", "Rental Income"),
    ("investments", "Investment Income"),
    ("other_income", "Other Income"),
)

EXPENSE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("housing", "Housing"),
    ("utilities", "Utilities"),
    ("groceries", "Groceries"),
    ("transportation", "Transportation"),
    ("insurance", "Insurance"),
    ("healthcare", "Healthcare"),
    ("entertainment", "Entertainment"),
    ("dining", "Dining Out"),
    ("shopping", "Shopping"),
    ("subscriptions", "Subscriptions"),
    ("other_expenses", "Other Expenses"),
)


# =============================================================================
# PERSISTED SNAPSHOTS
# =============================================================================

class NetWorthSnapshot(CamelModel):
    """
    Point-in-time copy of all records and totals.

    Written to durable local storage by the session store and handed to the
    export generators.

    The totals are informational only - loading always recomputes them.
    """
    assets: Assets
    liabilities: Liabilities
    monthly_financials: MonthlyFinancials
    currency: Currency = DEFAULT_CURRENCY
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_worth: float = 0.0
    debt_to_asset_ratio: int = 0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    monthly_cash_flow: float = 0.0
    timestamp: str


class InsertNetWorthCalculation(CamelModel):
    """Body of a save request. Negative asset or liability values are rejected."""

    user_id: Optional[str] = None
    currency: Currency = DEFAULT_CURRENCY
    assets: Assets
    liabilities: Liabilities
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_worth: float = 0.0

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": "user-123",
                "currency": "USD",
                "assets": {"checking": 500, "stocks": 1500},
                "liabilities": {"creditCard1": 400},
                "totalAssets": 2000,
                "totalLiabilities": 400,
                "netWorth": 1600,
            }
        }
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NetWorthCalculation(InsertNetWorthCalculation):
    """A stored calculation. Created once, never modified."""

    id: str
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


# =============================================================================
# HELPERS
# =============================================================================

RecordT = TypeVar("RecordT", bound=CamelModel)


def field_names(model: Type[CamelModel]) -> List[str]:
    """Attribute names of a model, in declaration order."""
    return list(model.model_fields.keys())


def normalize_keys(model: Type[RecordT], partial: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Map a partial update onto a model's attribute names.

    Accepts either attribute names (``primary_home``) or wire names
    (``primaryHome``). Unknown keys are dropped.
    """
    by_alias = {
        (info.alias or name): name for name, info in model.model_fields.items()
    }
    normalized: Dict[str, Any] = {}
    for key, value in partial.items():
        if key in model.model_fields:
            normalized[key] = value
        elif key in by_alias:
            normalized[by_alias[key]] = value
    return normalized
