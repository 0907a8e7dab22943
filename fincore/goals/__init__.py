"""Goal evaluation package."""

from fincore.goals.evaluator import GoalEvaluator

__all__ = ["GoalEvaluator"]
