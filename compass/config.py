"""Configuration for the compass package and its Streamlit front end.

Values come from environment variables with sensible defaults. They are read
once at import time; helpers validate them where a bad value would otherwise
surface far from its cause.
"""

from __future__ import annotations

import os
from pathlib import Path

from compass.domain import MONTHLY, PERIODS

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Storage
DATA_DIR = Path(os.getenv("COMPASS_DATA_DIR", _PROJECT_ROOT / "data"))
SEED_PATH = Path(os.getenv("COMPASS_SEED_PATH", DATA_DIR / "seed.json"))
USER_ID = os.getenv("COMPASS_USER", "demo")

# Calendar
WEEK_START = os.getenv("COMPASS_WEEK_START", "monday").strip().lower()

# Payment simulation: "fixed" only checks budgets of POLICY_PERIOD,
# "budget" checks the matched budget over its own period
PAYMENT_POLICY = os.getenv("COMPASS_PAYMENT_POLICY", "fixed").strip().lower()
POLICY_PERIOD = os.getenv("COMPASS_POLICY_PERIOD", MONTHLY).strip().lower()

# Display
CURRENCY = os.getenv("COMPASS_CURRENCY", "USD")

# Advisor
ADVISOR_MODEL = os.getenv("COMPASS_ADVISOR_MODEL", "gpt-4o-mini")

LOG_LEVEL = os.getenv("COMPASS_LOG_LEVEL")

_WEEK_STARTS = {"monday": 0, "sunday": 6}
PAYMENT_POLICIES = ("fixed", "budget")


def week_start_index(name: str | None = None) -> int:
    """Return the ``date.weekday()`` value that opens a week."""
    key = (name or WEEK_START).strip().lower()
    if key not in _WEEK_STARTS:
        raise ValueError(f"Unsupported week start {key!r}; use 'monday' or 'sunday'")
    return _WEEK_STARTS[key]


def payment_policy(name: str | None = None) -> str:
    policy = (name or PAYMENT_POLICY).strip().lower()
    if policy not in PAYMENT_POLICIES:
        raise ValueError(f"Unsupported payment policy {policy!r}; use one of {PAYMENT_POLICIES}")
    return policy


def policy_period(name: str | None = None) -> str:
    period = (name or POLICY_PERIOD).strip().lower()
    if period not in PERIODS:
        raise ValueError(f"Unsupported policy period {period!r}; use one of {PERIODS}")
    return period


def user_store_path(user_id: str | None = None, data_dir: Path | None = None) -> Path:
    """Path of the JSON document holding one user's records."""
    return Path(data_dir or DATA_DIR) / f"{user_id or USER_ID}.json"
