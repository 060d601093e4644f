#!/usr/bin/env python3
"""Example: Quickstart — rbac-guard

Minimal working example: load a role, ask the evaluator whether actions
are permitted, and see why.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install rbac-guard
"""
from __future__ import annotations

import rbac_guard as rbac

_ROLES = """\
kind: Role
metadata:
  name: vm-operator
spec:
  roleName: VM Operator
  policies:
    - resources: [vms, vms/screenshot, vms/vnc]
      resourceNames: ["foo_*", "!foo_secret"]
      verbs: [list, get]
    - resources: [experiments]
      resourceNames: ["*"]
      verbs: [list]
"""


def main() -> None:
    print(f"rbac-guard version: {rbac.__version__}")

    # Step 1: Load roles and pick the current actor's role
    catalog = rbac.RoleLoader().load_from_yaml_string(_ROLES)
    role = catalog.get("vm-operator")
    print(f"Role '{role.name}' loaded with {len(role.policies)} policies")

    # Step 2: Ask the evaluator
    evaluator = rbac.PolicyEvaluator()
    queries = [
        ("vms", "get", ("foo_1",)),
        ("vms", "get", ("exp1/foo_2",)),
        ("vms", "get", ("foo_secret",)),
        ("vms/screenshot", "get", ("foo_1",)),
        ("vms/start", "update", ("foo_1",)),
        ("experiments", "list", ()),
        ("experiments", "delete", ("exp1",)),
    ]

    print("\nAccess checks:")
    for resource, verb, names in queries:
        icon = "ALLOW" if evaluator.allowed(role, resource, verb, *names) else "DENY"
        print(f"  [{icon}] {verb} {resource} {list(names)}")

    # Step 3: Explain a decision
    decision = evaluator.explain(role, "vms", "get", "foo_secret")
    print(f"\nWhy? {decision.reason}")
    print(f"Cache: {evaluator.cache.stats()}")


if __name__ == "__main__":
    main()
