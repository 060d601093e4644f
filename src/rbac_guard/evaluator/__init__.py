"""Policy evaluation and decision caching."""
from __future__ import annotations

from rbac_guard.evaluator.cache import DecisionCache, make_key
from rbac_guard.evaluator.policy_evaluator import AccessDecision, PolicyEvaluator

__all__ = [
    "AccessDecision",
    "DecisionCache",
    "PolicyEvaluator",
    "make_key",
]
