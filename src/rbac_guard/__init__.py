"""rbac-guard — role-based access-control policy evaluation.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import rbac_guard as rbac
>>> rbac.__version__
'0.1.0'
>>> role = rbac.Role.from_dict({
...     "name": "Viewer",
...     "policies": [{"resources": ["experiments"], "resourceNames": ["*"], "verbs": ["get"]}],
... })
>>> rbac.PolicyEvaluator().allowed(role, "experiments", "get", "exp1")
True
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------
from rbac_guard.evaluator.cache import DecisionCache, make_key
from rbac_guard.evaluator.policy_evaluator import AccessDecision, PolicyEvaluator

# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------
from rbac_guard.matching.glob import GlobMatcher, glob_match, is_valid_pattern

# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------
from rbac_guard.roles.loader import RoleCatalog, RoleLoader
from rbac_guard.roles.models import Policy, ResourceNamePattern, Role

# ---------------------------------------------------------------------------
# Configuration and errors
# ---------------------------------------------------------------------------
from rbac_guard.config import ConfigLoader, EvaluatorConfig
from rbac_guard.errors import (
    RbacError,
    ResourceNameExistsError,
    ResourceNameInvalidError,
    RoleConfigError,
)

__all__ = [
    "__version__",
    # Evaluation
    "AccessDecision",
    "DecisionCache",
    "PolicyEvaluator",
    "make_key",
    # Matching
    "GlobMatcher",
    "glob_match",
    "is_valid_pattern",
    # Roles
    "Policy",
    "ResourceNamePattern",
    "Role",
    "RoleCatalog",
    "RoleLoader",
    # Configuration and errors
    "ConfigLoader",
    "EvaluatorConfig",
    "RbacError",
    "ResourceNameExistsError",
    "ResourceNameInvalidError",
    "RoleConfigError",
]
