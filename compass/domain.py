from dataclasses import dataclass
from datetime import date
from typing import Optional

EXPENSE = "expense"
INCOME = "income"
TRANSACTION_TYPES = (EXPENSE, INCOME)

MONTHLY = "monthly"
WEEKLY = "weekly"
YEARLY = "yearly"
PERIODS = (MONTHLY, WEEKLY, YEARLY)


@dataclass(frozen=True)
class Transaction:
    id: str
    description: str
    amount: float    # always positive, direction comes from type
    type: str        # "expense" or "income"
    category: str
    date: str        # ISO date, e.g. "2024-03-05"


# A spending limit for a category over a recurring period
@dataclass(frozen=True)
class Budget:
    id: str
    category: str
    limit: float
    period: str  # "monthly", "weekly" or "yearly"


@dataclass(frozen=True)
class Goal:
    id: str
    description: str
    target_amount: float
    current_amount: float = 0.0
    deadline: Optional[str] = None  # ISO date


@dataclass(frozen=True)
class Interval:
    """Calendar interval, inclusive at both ends."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
