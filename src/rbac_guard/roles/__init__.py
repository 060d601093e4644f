"""Role and policy records plus the YAML role loader."""
from __future__ import annotations

from rbac_guard.roles.loader import RoleCatalog, RoleLoader
from rbac_guard.roles.models import Policy, ResourceNamePattern, Role

__all__ = [
    "Policy",
    "ResourceNamePattern",
    "Role",
    "RoleCatalog",
    "RoleLoader",
]
