"""YAML role loader.

RoleLoader reads role definitions and builds a :class:`RoleCatalog` that
callers use to look up the role for the current actor.  A file may hold
several YAML documents separated by ``---``.

Accepted documents
------------------
::

    # bare role
    roleName: Experiment Viewer
    policies:
      - resources: [experiments, experiments/*]
        resourceNames: ["*", "*/*"]
        verbs: [list, get]
    ---
    # stored role config; metadata.name is an alias of the role
    version: v1
    kind: Role
    metadata:
      name: experiment-admin
    spec:
      roleName: Experiment Admin
      policies:
        - resources: ["*"]
          resourceNames: ["*"]
          verbs: ["*"]
    ---
    # stored user config; yields the user's role, aliased by username
    version: v1
    kind: User
    metadata:
      name: jdoe
    spec:
      username: jdoe
      rbac:
        roleName: VM Operator
        policies:
          - resources: [vms]
            resourceNames: ["foo_*"]
            verbs: [list]

A mapping with a top-level ``roles:`` list of any of the above is also
accepted.

Example
-------
::

    catalog = RoleLoader().load("roles.yaml")
    role = catalog.get("experiment-admin")
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path

import yaml

from rbac_guard.errors import RoleConfigError
from rbac_guard.roles.models import Role

logger = logging.getLogger(__name__)

_KNOWN_KINDS: frozenset[str] = frozenset(["Role", "User"])


class RoleCatalog:
    """Roles indexed by role name and by alias.

    Parameters
    ----------
    roles:
        Optional initial roles (indexed by name only).
    """

    def __init__(self, roles: list[Role] | None = None) -> None:
        self._roles: list[Role] = []
        self._index: dict[str, Role] = {}
        for role in roles or []:
            self.add(role)

    def add(self, role: Role, aliases: tuple[str, ...] = ()) -> None:
        """Register *role* under its name and any extra *aliases*."""
        self._roles.append(role)
        for key in (role.name, *aliases):
            if key:
                self._index[key] = role

    def update(self, other: RoleCatalog) -> None:
        """Merge every role and alias from *other* into this catalog."""
        self._roles.extend(other._roles)
        self._index.update(other._index)

    def get(self, name: str) -> Role:
        """Return the role registered under *name*.

        Raises
        ------
        KeyError
            If no role or alias matches *name*.
        """
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"could not find role: {name}") from None

    def names(self) -> list[str]:
        """Return role names in load order."""
        return [r.name for r in self._roles]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[Role]:
        return iter(list(self._roles))

    def __len__(self) -> int:
        return len(self._roles)


class RoleLoader:
    """Loads roles from YAML files, YAML strings or parsed dictionaries.

    Parameters
    ----------
    strict:
        When ``True``, documents with an unknown ``kind`` are an error.
        Default ``False`` (such documents are skipped).
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    def load(self, config_path: str | Path) -> RoleCatalog:
        """Load every role document from a YAML file on disk.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        RoleConfigError
            If the file cannot be parsed or a document is invalid.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Role file not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            text = fh.read()
        return self.load_from_yaml_string(text, config_path=str(config_path))

    def load_from_yaml_string(
        self,
        yaml_string: str,
        config_path: str | None = None,
    ) -> RoleCatalog:
        """Load every role document from a YAML string."""
        try:
            documents = [d for d in yaml.safe_load_all(yaml_string) if d is not None]
        except yaml.YAMLError as exc:
            raise RoleConfigError(f"Failed to parse YAML: {exc}", config_path) from exc
        return self._build_catalog(documents, config_path)

    def load_from_dict(
        self,
        config: Mapping[str, object],
        config_path: str | None = None,
    ) -> RoleCatalog:
        """Load roles from one already-parsed document."""
        return self._build_catalog([config], config_path)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_catalog(
        self,
        documents: list[object],
        config_path: str | None,
    ) -> RoleCatalog:
        catalog = RoleCatalog()
        for index, document in enumerate(documents):
            try:
                for role, aliases in self._parse_document(document, config_path):
                    catalog.add(role, aliases)
            except RoleConfigError:
                raise
            except (ValueError, KeyError, TypeError) as exc:
                raise RoleConfigError(
                    f"Error in document at index {index}: {exc}", config_path
                ) from exc

        logger.info("Loaded %d roles from %s", len(catalog), config_path or "<dict>")
        return catalog

    def _parse_document(
        self,
        document: object,
        config_path: str | None,
    ) -> list[tuple[Role, tuple[str, ...]]]:
        if not isinstance(document, Mapping):
            raise RoleConfigError("Role document must be a YAML mapping (dict).", config_path)

        if "roles" in document:
            entries = document["roles"]
            if not isinstance(entries, list):
                raise RoleConfigError("'roles' must be a list.", config_path)
            parsed: list[tuple[Role, tuple[str, ...]]] = []
            for entry in entries:
                parsed.extend(self._parse_document(entry, config_path))
            return parsed

        kind = document.get("kind")
        if kind is None and "spec" not in document:
            return [(Role.from_dict(document), ())]

        kind = kind or "Role"
        if kind not in _KNOWN_KINDS:
            if self._strict:
                raise RoleConfigError(
                    f"Unknown document kind {kind!r}. Known kinds: {sorted(_KNOWN_KINDS)}.",
                    config_path,
                )
            logger.debug("Skipping document of kind %r", kind)
            return []

        metadata = document.get("metadata") or {}
        if not isinstance(metadata, Mapping):
            raise RoleConfigError("'metadata' must be a mapping.", config_path)
        spec = document.get("spec")
        if not isinstance(spec, Mapping):
            raise RoleConfigError(f"{kind} document must contain a 'spec' mapping.", config_path)

        alias = str(metadata.get("name") or "")
        if kind == "User":
            rbac = spec.get("rbac")
            if rbac is None:
                logger.debug("User %r has no role assigned", alias or spec.get("username"))
                return []
            user_alias = str(spec.get("username") or alias)
            return [(Role.from_dict(rbac), (alias, user_alias))]

        return [(Role.from_dict(spec), (alias,))]
