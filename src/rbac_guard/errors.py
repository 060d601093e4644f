"""Exception types raised by rbac-guard.

The evaluator itself never raises; these errors come from building or
editing roles and from loading role files.
"""
from __future__ import annotations


class RbacError(Exception):
    """Base class for all rbac-guard errors."""


class ResourceNameExistsError(RbacError, ValueError):
    """Raised when a resource name is already present on a policy."""


class ResourceNameInvalidError(RbacError, ValueError):
    """Raised when a resource name is not a valid glob pattern."""


class RoleConfigError(RbacError, ValueError):
    """Raised when a role file is malformed or invalid.

    Attributes
    ----------
    config_path:
        The path to the file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")
