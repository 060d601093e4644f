"""Role and policy records consumed by the policy evaluator.

A :class:`Role` is a named, ordered bundle of :class:`Policy` grants.  Each
policy names the resource kinds it covers, the verbs it allows and the
resource names (instances) it is scoped to.  Resource-name patterns may be
prefixed with ``!`` to veto names that would otherwise match; the prefix is
parsed once into a :class:`ResourceNamePattern` when the policy is built.

All records are frozen.  The editing helpers on :class:`Role` return a new
role rather than mutating the existing one, so a role handed to the
evaluator stays a stable snapshot.

Example
-------
::

    role = Role.from_dict({
        "name": "Experiment Viewer",
        "policies": [
            {
                "resources": ["experiments", "experiments/*"],
                "resourceNames": ["*", "!secret-*"],
                "verbs": ["list", "get"],
            }
        ],
    })
    assert role.policies[0].resource_names[1].negate is True
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from collections.abc import Iterable, Mapping

from rbac_guard.errors import ResourceNameExistsError, ResourceNameInvalidError
from rbac_guard.matching.glob import is_valid_pattern

_NEGATION_PREFIX = "!"
_ALL_NAMES = "*"


def _as_string_tuple(field_name: str, raw: object) -> tuple[str, ...]:
    """Return *raw* as a tuple of strings, rejecting a bare string."""
    if raw is None:
        return ()
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Iterable):
        raise ValueError(f"{field_name} must be a list of strings; got {raw!r}.")
    values = tuple(raw)
    for item in values:
        if not isinstance(item, str):
            raise ValueError(f"{field_name} entries must be strings; got {item!r}.")
    return values


def _string_tuple(data: Mapping[str, object], *keys: str) -> tuple[str, ...]:
    """Read the first present key in *keys* as a tuple of strings."""
    for key in keys:
        if key in data:
            return _as_string_tuple(f"Policy.{keys[0]}", data[key])
    return ()


# ---------------------------------------------------------------------------
# ResourceNamePattern
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResourceNamePattern:
    """A resource-name glob, optionally negated.

    Attributes
    ----------
    pattern:
        The glob pattern without any ``!`` prefix.
    negate:
        ``True`` when a match vetoes access instead of granting it.
    """

    pattern: str
    negate: bool = False

    @classmethod
    def parse(cls, raw: str) -> ResourceNamePattern:
        """Parse ``"name"`` or ``"!name"`` into a pattern record."""
        if raw.startswith(_NEGATION_PREFIX):
            return cls(pattern=raw[len(_NEGATION_PREFIX):], negate=True)
        return cls(pattern=raw)

    def __str__(self) -> str:
        return f"{_NEGATION_PREFIX}{self.pattern}" if self.negate else self.pattern


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Policy:
    """One grant rule within a role.

    Attributes
    ----------
    resources:
        Glob patterns naming the resource kinds covered, e.g.
        ``"experiments"`` or ``"experiments/*"``.
    resource_names:
        Parsed resource-name patterns.  Only consulted when a query names
        specific instances; an empty tuple is not the same as ``("*",)``.
    verbs:
        Allowed verbs; ``"*"`` allows any verb.
    """

    resources: tuple[str, ...] = ()
    resource_names: tuple[ResourceNamePattern, ...] = ()
    verbs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "resources", _as_string_tuple("Policy.resources", self.resources))
        object.__setattr__(self, "verbs", _as_string_tuple("Policy.verbs", self.verbs))

        names = self.resource_names
        if names is None:
            names = ()
        if isinstance(names, (str, bytes, Mapping, ResourceNamePattern)) or not isinstance(
            names, Iterable
        ):
            raise ValueError(f"Policy.resource_names must be a list of patterns; got {names!r}.")
        parsed: list[ResourceNamePattern] = []
        for name in names:
            if isinstance(name, str):
                name = ResourceNamePattern.parse(name)
            elif not isinstance(name, ResourceNamePattern):
                raise ValueError(f"Policy.resource_names entries must be strings; got {name!r}.")
            parsed.append(name)
        object.__setattr__(self, "resource_names", tuple(parsed))

    @classmethod
    def build(
        cls,
        resources: Iterable[str],
        resource_names: Iterable[str],
        verbs: Iterable[str],
    ) -> Policy:
        """Build a policy from raw string lists.

        Raises
        ------
        ValueError
            If a field is a bare string or holds non-string entries.
        """
        return cls(
            resources=_as_string_tuple("Policy.resources", resources),
            resource_names=_as_string_tuple("Policy.resource_names", resource_names),
            verbs=_as_string_tuple("Policy.verbs", verbs),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Policy:
        """Build a Policy from a plain dictionary.

        Parameters
        ----------
        data:
            Dictionary with keys ``resources``, ``resourceNames`` (or
            ``resource_names``) and ``verbs``.  Missing keys are treated as
            empty lists.

        Returns
        -------
        Policy

        Raises
        ------
        ValueError
            If *data* is not a mapping or a field is not a list of strings.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Policy must be a mapping; got {data!r}.")
        return cls.build(
            resources=_string_tuple(data, "resources"),
            resource_names=_string_tuple(data, "resourceNames", "resource_names"),
            verbs=_string_tuple(data, "verbs"),
        )

    def to_dict(self) -> dict[str, list[str]]:
        """Render the policy in its serialised camelCase form."""
        return {
            "resources": list(self.resources),
            "resourceNames": [str(n) for n in self.resource_names],
            "verbs": list(self.verbs),
        }

    @property
    def raw_resource_names(self) -> list[str]:
        """Resource-name patterns as written, ``!`` prefixes included."""
        return [str(n) for n in self.resource_names]


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


def _check_resource_name(name: str) -> None:
    pattern = ResourceNamePattern.parse(name).pattern
    if not is_valid_pattern(pattern):
        raise ResourceNameInvalidError(f"invalid resource name for role: {name}")


@dataclass(frozen=True)
class Role:
    """A named bundle of policies assigned to an actor.

    Attributes
    ----------
    name:
        Display name; also the role component of decision cache keys.
    policies:
        Policies in declaration order.  Evaluation is a logical OR across
        them, but they are always walked in this order.
    """

    name: str
    policies: tuple[Policy, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Role name must be a non-empty string.")
        if isinstance(self.policies, (str, bytes, Mapping, Policy)) or not isinstance(
            self.policies, Iterable
        ):
            raise ValueError(f"Role.policies must be a list of policies; got {self.policies!r}.")
        policies = tuple(self.policies)
        for policy in policies:
            if not isinstance(policy, Policy):
                raise ValueError(f"Role.policies entries must be Policy records; got {policy!r}.")
        object.__setattr__(self, "policies", policies)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Role:
        """Build a Role from a plain dictionary.

        Accepts ``name``, ``roleName`` or ``role_name`` for the role name
        and a ``policies`` list of policy dictionaries.

        Raises
        ------
        ValueError
            If the name is missing or ``policies`` is not a list.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Role must be a mapping; got {data!r}.")

        name = data.get("name") or data.get("roleName") or data.get("role_name")
        if not isinstance(name, str) or not name:
            raise ValueError("Role name must be a non-empty string.")

        raw_policies = data.get("policies") or []
        if not isinstance(raw_policies, (list, tuple)):
            raise ValueError(f"Role.policies must be a list; got {raw_policies!r}.")

        return cls(name=name, policies=tuple(Policy.from_dict(p) for p in raw_policies))

    def to_dict(self) -> dict[str, object]:
        """Render the role in its serialised form."""
        return {
            "roleName": self.name,
            "policies": [p.to_dict() for p in self.policies],
        }

    # ------------------------------------------------------------------
    # Editing helpers
    # ------------------------------------------------------------------

    def add_policy(
        self,
        resources: Iterable[str],
        resource_names: Iterable[str],
        verbs: Iterable[str],
    ) -> Role:
        """Return a copy of this role with one more policy appended."""
        policy = Policy.build(resources, resource_names, verbs)
        return replace(self, policies=self.policies + (policy,))

    def with_resource_names(self, *names: str) -> Role:
        """Return a copy with *names* set as every policy's resource names.

        No names, or a single empty name, means ``"*"`` (any name).

        Raises
        ------
        ResourceNameExistsError
            If any policy already carries resource names.
        ResourceNameInvalidError
            If a name is not a valid glob pattern.
        """
        if not names or (len(names) == 1 and not names[0]):
            names = (_ALL_NAMES,)

        for name in names:
            _check_resource_name(name)

        patterns = tuple(ResourceNamePattern.parse(n) for n in names)
        policies: list[Policy] = []
        for policy in self.policies:
            if policy.resource_names:
                raise ResourceNameExistsError(
                    "resource name for role exists: resource names already exist for policy"
                )
            policies.append(replace(policy, resource_names=patterns))
        return replace(self, policies=tuple(policies))

    def with_added_resource_name(self, name: str) -> Role:
        """Return a copy with *name* appended to every policy.

        Raises
        ------
        ResourceNameExistsError
            If a policy already lists *name*.
        ResourceNameInvalidError
            If *name* is not a valid glob pattern.
        """
        _check_resource_name(name)
        added = ResourceNamePattern.parse(name)

        policies: list[Policy] = []
        for policy in self.policies:
            if added in policy.resource_names:
                raise ResourceNameExistsError(f"resource name for role exists: {name}")
            policies.append(replace(policy, resource_names=policy.resource_names + (added,)))
        return replace(self, policies=tuple(policies))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def invalid_patterns(self) -> list[str]:
        """Return every resource or resource-name pattern that won't compile.

        Such patterns are tolerated by the evaluator (they match nothing);
        this is for reporting only.
        """
        invalid: list[str] = []
        for policy in self.policies:
            invalid.extend(r for r in policy.resources if not is_valid_pattern(r))
            invalid.extend(
                str(n) for n in policy.resource_names if not is_valid_pattern(n.pattern)
            )
        return invalid
