"""Financial plan generation through a generative-text backend.

The backend is an opaque function from a ``PlanRequest`` to a
``FinancialPlan`` with a fixed JSON schema. This module builds the prompt and
the strict schema, calls the OpenAI Responses API, and validates the answer.
Pass ``client`` to substitute the backend (tests use a stub).
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from openai import OpenAI, OpenAIError

from compass import config
from compass.aggregation import income_in_interval, spending_by_category
from compass.domain import MONTHLY, Budget, Goal, Transaction
from compass.errors import AdvisorError, PlanFormatError
from compass.formatting import format_currency, format_date
from compass.logging_setup import get_logger
from compass.periods import DateLike, resolve_period
from compass.progress import goal_progress

logger = get_logger(__name__)

_PLAN_TEXT_FIELDS = ("summary", "action_steps", "investment_plan", "progress_tracking")
_CHANGE_FIELDS = ("category_name", "old_amount", "new_amount", "change_description")


@dataclass(frozen=True)
class PlanRequest:
    spending_patterns: str
    financial_goals: str

    def __post_init__(self) -> None:
        if not self.spending_patterns.strip():
            raise ValueError("spending_patterns must not be empty")
        if not self.financial_goals.strip():
            raise ValueError("financial_goals must not be empty")


@dataclass(frozen=True)
class CategoryChange:
    category_name: str
    old_amount: float
    new_amount: float
    change_description: str

    @property
    def delta(self) -> float:
        return self.new_amount - self.old_amount


@dataclass(frozen=True)
class FinancialPlan:
    summary: str
    spending_analysis: list[CategoryChange] = field(default_factory=list)
    action_steps: str = ""
    investment_plan: str = ""
    progress_tracking: str = ""


def build_response_format() -> dict[str, Any]:
    """Strict JSON Schema ``text.format`` object for the Responses API."""

    change = {
        "type": "object",
        "properties": {
            "category_name": {"type": "string"},
            "old_amount": {"type": "number"},
            "new_amount": {"type": "number"},
            "change_description": {"type": "string"},
        },
        "required": list(_CHANGE_FIELDS),
        "additionalProperties": False,
    }
    return {
        "type": "json_schema",
        "name": "financial_plan",
        "schema": {
            "type": "object",
            "properties": {
                "summary": {"type": "string"},
                "spending_analysis": {"type": "array", "items": change},
                "action_steps": {"type": "string"},
                "investment_plan": {"type": "string"},
                "progress_tracking": {"type": "string"},
            },
            "required": ["summary", "spending_analysis", *_PLAN_TEXT_FIELDS[1:]],
            "additionalProperties": False,
        },
        "strict": True,
    }


def build_instructions() -> str:
    return (
        "You are a personal financial advisor. From the user's spending patterns and "
        "financial goals, write a personalized financial plan.\n"
        "- summary: a short overview of the plan.\n"
        "- spending_analysis: one entry per spending category with the current amount "
        "(old_amount), your suggested amount (new_amount) and a brief change_description "
        "such as \"Decrease by 10%\" or \"No change\". Cover essentials, discretionary "
        "spending and savings.\n"
        "- action_steps: a prioritized checklist, markdown list allowed.\n"
        "- investment_plan: short-term and long-term strategies.\n"
        "- progress_tracking: milestones with targets and timeframes.\n"
        "Amounts are plain numbers. Respond with JSON only, following the schema."
    )


def build_user_input(request: PlanRequest) -> str:
    return (
        f"Spending patterns:\n{request.spending_patterns.strip()}\n\n"
        f"Financial goals:\n{request.financial_goals.strip()}"
    )


def describe_spending(
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
    reference: DateLike,
    currency: str | None = None,
) -> str:
    """Summarize this month's income, spending and budgets in plain sentences."""

    currency = currency or config.CURRENCY
    transactions = tuple(transactions)
    month = resolve_period(MONTHLY, reference)
    income = income_in_interval(transactions, month).total
    by_category = spending_by_category(transactions, month)

    lines = [f"This month ({format_date(month.start, '%B %Y')}) I earned {format_currency(income, currency)}."]
    if by_category:
        parts = [
            f"{cat} {format_currency(total, currency)}"
            for cat, total in sorted(by_category.items(), key=lambda item: item[1], reverse=True)
        ]
        lines.append(f"I spent {format_currency(sum(by_category.values()), currency)}: " + ", ".join(parts) + ".")
    else:
        lines.append("I have not recorded any expenses yet this month.")
    budget_parts = [f"{b.category} {format_currency(b.limit, currency)} {b.period}" for b in budgets]
    if budget_parts:
        lines.append("My budgets: " + ", ".join(budget_parts) + ".")
    return " ".join(lines)


def describe_goals(goals: Iterable[Goal], currency: str | None = None) -> str:
    currency = currency or config.CURRENCY
    lines = []
    for g in goals:
        line = (
            f"{g.description}: {format_currency(g.current_amount, currency)} saved of "
            f"{format_currency(g.target_amount, currency)} ({goal_progress(g)}%)"
        )
        if g.deadline:
            line += f" by {format_date(g.deadline)}"
        lines.append(line + ".")
    return " ".join(lines)


def _to_number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PlanFormatError(f"{where} must be a number, got {value!r}")
    return float(value)


def parse_plan(data: Mapping[str, Any]) -> FinancialPlan:
    """Validate a decoded backend answer and build a ``FinancialPlan``."""

    if not isinstance(data, Mapping):
        raise PlanFormatError("Plan must be a JSON object")
    for name in _PLAN_TEXT_FIELDS:
        if not isinstance(data.get(name), str):
            raise PlanFormatError(f"Plan field {name!r} must be a string")
    raw_changes = data.get("spending_analysis")
    if not isinstance(raw_changes, list):
        raise PlanFormatError("Plan field 'spending_analysis' must be a list")

    changes = []
    for i, item in enumerate(raw_changes):
        if not isinstance(item, Mapping):
            raise PlanFormatError(f"spending_analysis[{i}] must be an object")
        missing = [k for k in _CHANGE_FIELDS if k not in item]
        if missing:
            raise PlanFormatError(f"spending_analysis[{i}] is missing {', '.join(missing)}")
        changes.append(CategoryChange(
            category_name=str(item["category_name"]),
            old_amount=_to_number(item["old_amount"], f"spending_analysis[{i}].old_amount"),
            new_amount=_to_number(item["new_amount"], f"spending_analysis[{i}].new_amount"),
            change_description=str(item["change_description"]),
        ))

    return FinancialPlan(
        summary=data["summary"],
        spending_analysis=changes,
        action_steps=data["action_steps"],
        investment_plan=data["investment_plan"],
        progress_tracking=data["progress_tracking"],
    )


def _extract_text(resp: Any) -> str:
    """Locate the text output of a Responses API result."""

    text = getattr(resp, "output_text", None)
    if not text:
        output = getattr(resp, "output", None) or []
        content = getattr(output[0], "content", None) if output else None
        if content:
            text = getattr(content[0], "text", None)
    if not text or not isinstance(text, str):
        raise PlanFormatError("Unexpected Responses API shape; unable to locate text output")
    return text


def _create_client() -> OpenAI:
    return OpenAI()


def generate_financial_plan(request: PlanRequest, client: Any = None, model: str | None = None) -> FinancialPlan:
    """Ask the backend for a plan and return it validated."""

    try:
        client = client or _create_client()
        resp = client.responses.create(
            model=model or config.ADVISOR_MODEL,
            instructions=build_instructions(),
            input=build_user_input(request),
            text={"format": build_response_format()},
        )
    except OpenAIError as e:
        logger.error("financial plan request failed: %s", e)
        raise AdvisorError(f"Could not generate a financial plan: {e}") from e

    try:
        decoded = json.loads(_extract_text(resp))
    except json.JSONDecodeError as e:
        raise PlanFormatError("Backend output was not valid JSON") from e
    plan = parse_plan(decoded)
    logger.info("generated financial plan with %d category changes", len(plan.spending_analysis))
    return plan
