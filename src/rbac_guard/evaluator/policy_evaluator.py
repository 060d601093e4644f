"""Role-based policy evaluator.

PolicyEvaluator answers "may this role perform *verb* on *resource*,
optionally for any of these instance *names*?".  Policies are OR-ed: the
first policy whose resource pattern, verb and (when names are given)
resource-name patterns all match grants access.  When nothing grants
access the answer is deny.

Resource-name scoping
---------------------
For each name the policy's resource-name patterns are scanned in order:

- a positive match marks the name allowed, but scanning continues;
- a negated (``!``) match vetoes the name outright;
- a pattern without ``/`` is widened to ``*/pattern`` when the name is
  namespaced (contains ``/``), so ``"vm1"`` also covers ``"expA/vm1"``.

Decisions from :meth:`PolicyEvaluator.allowed` are memoised in a
:class:`~rbac_guard.evaluator.cache.DecisionCache`.  The evaluator never
raises; a missing role is denied.

Example
-------
::

    role = Role.from_dict({
        "name": "Things Admin",
        "policies": [
            {"resources": ["things"], "resourceNames": ["*", "!thing1"], "verbs": ["*"]},
        ],
    })
    evaluator = PolicyEvaluator()
    assert evaluator.allowed(role, "things", "delete", "thing2") is True
    assert evaluator.allowed(role, "things", "delete", "thing1") is False
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from rbac_guard.config import EvaluatorConfig
from rbac_guard.evaluator.cache import DecisionCache
from rbac_guard.matching.glob import GlobMatcher
from rbac_guard.roles.models import Policy, Role

logger = logging.getLogger(__name__)

ANY_VERB = "*"
_NAMESPACE_SEPARATOR = "/"


@dataclass(frozen=True)
class AccessDecision:
    """Explained outcome of an authorization query.

    Attributes
    ----------
    allowed:
        Whether the action is permitted.
    reason:
        Human-readable explanation of the decision.
    role_name:
        Name of the evaluated role, or ``None`` when no role was given.
    resource:
        The resource that was queried.
    verb:
        The verb that was queried.
    names:
        The instance names that took part, after empty ones were dropped.
    matched_policy:
        Index of the granting policy within the role, or ``None``.
    matched_name:
        The name that passed resource-name scoping, or ``None`` for a bare
        resource/verb grant or a denial.
    """

    allowed: bool
    reason: str
    role_name: str | None
    resource: str
    verb: str
    names: tuple[str, ...] = ()
    matched_policy: int | None = None
    matched_name: str | None = None

    def __bool__(self) -> bool:
        """Return True if the action is allowed."""
        return self.allowed


class PolicyEvaluator:
    """Evaluates authorization queries against a role's policies.

    Parameters
    ----------
    matcher:
        Glob matcher used for resource and resource-name patterns.
        Defaults to :class:`~rbac_guard.matching.glob.GlobMatcher`.
    cache:
        Decision cache.  Defaults to a fresh
        :class:`~rbac_guard.evaluator.cache.DecisionCache` using the
        configured key separator.
    config:
        Evaluator configuration; defaults apply when omitted.
    """

    def __init__(
        self,
        matcher: GlobMatcher | None = None,
        cache: DecisionCache | None = None,
        config: EvaluatorConfig | None = None,
    ) -> None:
        self._config = config or EvaluatorConfig()
        self._matcher = matcher or GlobMatcher()
        self._cache = cache if cache is not None else DecisionCache(self._config.key_separator)

    @classmethod
    def from_config(
        cls,
        config: EvaluatorConfig,
        matcher: GlobMatcher | None = None,
    ) -> PolicyEvaluator:
        """Build an evaluator with a new cache configured from *config*."""
        return cls(matcher=matcher, cache=DecisionCache(config.key_separator), config=config)

    @property
    def cache(self) -> DecisionCache:
        return self._cache

    @property
    def matcher(self) -> GlobMatcher:
        return self._matcher

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def allowed(
        self,
        role: Role | None,
        resource: str,
        verb: str,
        *names: str | None,
    ) -> bool:
        """Return True if *role* may perform *verb* on *resource*.

        Parameters
        ----------
        role:
            The caller's role.  ``None`` is always denied.
        resource:
            Resource kind, e.g. ``"experiments"`` or ``"vms/screenshot"``.
        verb:
            Action, e.g. ``"get"`` or ``"delete"``.
        *names:
            Instance names; access to any one of them is sufficient.
            Empty and ``None`` entries are ignored.  With no names the
            query is a bare resource/verb check.

        Returns
        -------
        bool
        """
        if role is None:
            return False

        filtered = _filter_names(names)
        if not self._config.cache_enabled:
            return self._decide(role, resource, verb, filtered).allowed

        key = self._cache.key(role.name, resource, verb, filtered)
        return self._cache.get_or_compute(
            key,
            lambda: self._decide(role, resource, verb, filtered).allowed,
            role_name=role.name,
        )

    def explain(
        self,
        role: Role | None,
        resource: str,
        verb: str,
        *names: str | None,
    ) -> AccessDecision:
        """Evaluate without the cache and report which policy decided.

        Always agrees with :meth:`allowed` for the same arguments.
        """
        filtered = _filter_names(names)
        if role is None:
            return AccessDecision(
                allowed=False,
                reason="No role assigned; access denied by default.",
                role_name=None,
                resource=resource,
                verb=verb,
                names=filtered,
            )
        return self._decide(role, resource, verb, filtered)

    def resource_name_allowed(self, policy: Policy, name: str) -> bool:
        """Return True if *policy*'s resource-name patterns permit *name*.

        A negated pattern that matches vetoes the name even after an
        earlier positive match.
        """
        allowed = False
        for resource_name in policy.resource_names:
            pattern = self._scope_pattern(resource_name.pattern, name)
            if self._matcher.match(pattern, name):
                if resource_name.negate:
                    return False
                allowed = True
        return allowed

    def invalidate(self, role_name: str | None = None) -> int:
        """Drop cached decisions for one role, or all of them.

        Call this whenever a role's policies change or a role is replaced
        under the same name.
        """
        if role_name is None:
            return self._cache.clear()
        return self._cache.invalidate_role(role_name)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _scope_pattern(pattern: str, name: str) -> str:
        """Widen an un-namespaced pattern to match any namespace prefix."""
        if _NAMESPACE_SEPARATOR in name and _NAMESPACE_SEPARATOR not in pattern:
            return f"*{_NAMESPACE_SEPARATOR}{pattern}"
        return pattern

    def _resource_matches(self, policy: Policy, resource: str) -> bool:
        return any(self._matcher.match(r, resource) for r in policy.resources)

    def _decide(
        self,
        role: Role,
        resource: str,
        verb: str,
        names: tuple[str, ...],
    ) -> AccessDecision:
        for index, policy in enumerate(role.policies):
            if not self._resource_matches(policy, resource):
                continue
            for policy_verb in policy.verbs:
                if policy_verb != ANY_VERB and policy_verb != verb:
                    continue
                if not names:
                    return self._grant(role, resource, verb, names, index, None)
                for name in names:
                    if self.resource_name_allowed(policy, name):
                        return self._grant(role, resource, verb, names, index, name)

        logger.debug(
            "Access DENY: role=%s resource=%s verb=%s names=%s",
            role.name,
            resource,
            verb,
            list(names),
        )
        return AccessDecision(
            allowed=False,
            reason=(
                f"No policy in role '{role.name}' allows '{verb}' on '{resource}'"
                + (f" for any of {list(names)}." if names else ".")
            ),
            role_name=role.name,
            resource=resource,
            verb=verb,
            names=names,
        )

    def _grant(
        self,
        role: Role,
        resource: str,
        verb: str,
        names: tuple[str, ...],
        index: int,
        name: str | None,
    ) -> AccessDecision:
        logger.debug(
            "Access ALLOW: role=%s resource=%s verb=%s name=%s policy=%d",
            role.name,
            resource,
            verb,
            name,
            index,
        )
        target = f" for '{name}'" if name is not None else ""
        return AccessDecision(
            allowed=True,
            reason=f"Policy {index} of role '{role.name}' allows '{verb}' on '{resource}'{target}.",
            role_name=role.name,
            resource=resource,
            verb=verb,
            names=names,
            matched_policy=index,
            matched_name=name,
        )


def _filter_names(names: tuple[str | None, ...]) -> tuple[str, ...]:
    """Drop empty and missing names, keeping order."""
    return tuple(n for n in names if n)
