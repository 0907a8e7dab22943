"""
Goal Evaluator

Projects a goal's remaining horizon under the current contribution rate
and classifies it as completed, on track or behind.

DESIGN DECISION: A goal's status is derived, never hand-maintained.
evaluate() recomputes it from scratch each time and refresh_status()
writes it back onto a copy of the goal.

Classification:
- completed: projected value reaches the target (progress >= 100%)
- on_track:  current contribution >= tolerance * required SIP
             (tolerance 0.9 by default, boundary inclusive)
- behind:    anything else

A target date on or before today is not an error: months remaining is 0,
the required SIP is 0 and progress is measured on what is already
invested.
"""

import math
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog

from fincore.config import FinanceSettings, get_settings
from fincore.models.ledger import Goal, GoalStatus, InvestmentPlan, PlanStatus
from fincore.models.reports import GoalEvaluation
from fincore.networth.aggregator import realized_contributions
from fincore.projections.cashflow import weighted_annual_increase
from fincore.projections.sip import (
    final_value,
    monthly_rate,
    project,
    round_money,
    solve_required_monthly_contribution,
)
from fincore.timemath import AVERAGE_DAYS_PER_MONTH, days_between

logger = structlog.get_logger(__name__)

Number = Union[int, float, Decimal]


class GoalEvaluator:
    """
    Evaluates goals against a contribution rate.

    Usage:
        evaluator = GoalEvaluator()
        result = evaluator.evaluate(goal, current_invested=50000, current_monthly=8000)
        goal = evaluator.refresh_status(goal, result)
    """

    def __init__(self, settings: Optional[FinanceSettings] = None):
        self._settings = settings or get_settings().finance

    @staticmethod
    def months_remaining(target_on: date, today: date) -> int:
        """Average-length months until the target date, rounded up; 0 once it has passed."""
        if target_on <= today:
            return 0
        return math.ceil(days_between(today, target_on) / AVERAGE_DAYS_PER_MONTH)

    def evaluate(
        self,
        goal: Goal,
        current_invested: Number = 0,
        current_monthly: Number = 0,
        annual_return_percent: Optional[Number] = None,
        annual_increase_percent: Optional[Number] = None,
        *,
        today: Optional[date] = None,
    ) -> GoalEvaluation:
        """
        Evaluate one goal.

        Args:
            goal: The goal to evaluate
            current_invested: Amount already invested towards it
            current_monthly: Current monthly contribution
            annual_return_percent: Expected return; settings default if None
            annual_increase_percent: Yearly contribution step-up; settings default if None
            today: Evaluation date; defaults to date.today()

        Returns:
            GoalEvaluation with the derived status
        """
        today = today or date.today()
        if annual_return_percent is None:
            annual_return_percent = self._settings.default_expected_return_percent
        if annual_increase_percent is None:
            annual_increase_percent = self._settings.default_annual_increase_percent

        months = self.months_remaining(goal.target_on, today)
        invested = float(current_invested)
        monthly = float(current_monthly)
        target = float(goal.target_amount)

        points = project(
            monthly,
            monthly_rate(annual_return_percent),
            months,
            annual_increase_percent,
            sample="yearly",
            initial_value=invested,
        )
        projected = final_value(points, default=round_money(invested))

        progress = 0.0
        if target > 0:
            progress = min(100.0, round_money(projected / target * 100))

        required = solve_required_monthly_contribution(
            target,
            months,
            annual_return_percent,
            annual_increase_percent,
        )

        if progress >= 100:
            status = GoalStatus.COMPLETED
        elif monthly >= self._settings.on_track_tolerance * required:
            status = GoalStatus.ON_TRACK
        else:
            status = GoalStatus.BEHIND

        logger.debug(
            "goal_evaluated",
            goal_id=str(goal.id),
            months_remaining=months,
            progress_percent=progress,
            required_sip=required,
            status=status.value,
        )

        return GoalEvaluation(
            goal_id=goal.id,
            months_remaining=months,
            current_value=round_money(invested),
            projected_value=projected,
            progress_percent=progress,
            required_sip=required,
            status=status,
        )

    def evaluate_linked_plans(
        self,
        goal: Goal,
        plans: Iterable[InvestmentPlan],
        today: Optional[date] = None,
    ) -> GoalEvaluation:
        """
        Evaluate a goal from the active plans linked to it.

        Invested-so-far is the realized contributions of those plans, the
        monthly rate is their summed contribution, and return and step-up
        are their contribution-weighted averages. Without linked plans
        the settings defaults apply.
        """
        today = today or date.today()
        linked = [
            p for p in plans
            if p.goal_id == goal.id and p.status == PlanStatus.ACTIVE
        ]
        if not linked:
            return self.evaluate(goal, today=today)

        monthly = sum((p.monthly_contribution for p in linked), Decimal("0"))
        weight = float(monthly)
        annual_return = sum(
            p.midpoint_return * float(p.monthly_contribution) for p in linked
        ) / weight

        return self.evaluate(
            goal,
            current_invested=realized_contributions(linked, today),
            current_monthly=monthly,
            annual_return_percent=annual_return,
            annual_increase_percent=weighted_annual_increase(linked),
            today=today,
        )

    @staticmethod
    def contribution_progress_percent(
        goal: Goal,
        plans: Iterable[InvestmentPlan],
        today: Optional[date] = None,
    ) -> float:
        """Realized contributions of linked active plans as a percent of target, capped at 100."""
        today = today or date.today()
        linked = [
            p for p in plans
            if p.goal_id == goal.id and p.status == PlanStatus.ACTIVE
        ]
        contributed = realized_contributions(linked, today)
        target = float(goal.target_amount)
        if target <= 0:
            return 0.0
        return min(100.0, round_money(contributed / target * 100))

    @staticmethod
    def refresh_status(goal: Goal, evaluation: GoalEvaluation) -> Goal:
        """The goal with its status replaced by the evaluated one."""
        if goal.status == evaluation.status:
            return goal
        return goal.model_copy(update={"status": evaluation.status})
