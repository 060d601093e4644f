"""Tests for Role, Policy and ResourceNamePattern."""
from __future__ import annotations

import pytest

from rbac_guard.errors import ResourceNameExistsError, ResourceNameInvalidError
from rbac_guard.roles.models import Policy, ResourceNamePattern, Role


def _bare_role() -> Role:
    return Role(
        name="Operator",
        policies=(
            Policy.build(["vms"], [], ["list"]),
            Policy.build(["vms/screenshot", "vms/vnc"], [], ["get"]),
        ),
    )


# ---------------------------------------------------------------------------
# ResourceNamePattern
# ---------------------------------------------------------------------------


class TestResourceNamePattern:
    def test_parse_positive(self) -> None:
        pattern = ResourceNamePattern.parse("vm1")
        assert pattern.negate is False
        assert pattern.pattern == "vm1"

    def test_parse_negated(self) -> None:
        pattern = ResourceNamePattern.parse("!thing1")
        assert pattern.negate is True
        assert pattern.pattern == "thing1"

    def test_only_leading_bang_is_stripped(self) -> None:
        assert ResourceNamePattern.parse("!!x").pattern == "!x"
        assert ResourceNamePattern.parse("a!b") == ResourceNamePattern("a!b", False)

    def test_str_round_trips_raw_form(self) -> None:
        assert str(ResourceNamePattern.parse("!thing1")) == "!thing1"
        assert str(ResourceNamePattern.parse("item*")) == "item*"


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


class TestPolicyFromDict:
    def test_camel_case_keys(self) -> None:
        policy = Policy.from_dict(
            {"resources": ["things"], "resourceNames": ["*", "!thing1"], "verbs": ["*"]}
        )
        assert policy.resources == ("things",)
        assert policy.resource_names == (
            ResourceNamePattern("*"),
            ResourceNamePattern("thing1", negate=True),
        )
        assert policy.verbs == ("*",)

    def test_snake_case_resource_names(self) -> None:
        policy = Policy.from_dict({"resources": ["vms"], "resource_names": ["vm1"], "verbs": ["get"]})
        assert policy.raw_resource_names == ["vm1"]

    def test_missing_keys_are_empty(self) -> None:
        policy = Policy.from_dict({})
        assert policy.resources == ()
        assert policy.resource_names == ()
        assert policy.verbs == ()

    def test_null_value_is_empty(self) -> None:
        assert Policy.from_dict({"resourceNames": None}).resource_names == ()

    def test_string_instead_of_list_raises(self) -> None:
        with pytest.raises(ValueError, match="list of strings"):
            Policy.from_dict({"resources": "vms"})

    def test_non_string_entry_raises(self) -> None:
        with pytest.raises(ValueError, match="must be strings"):
            Policy.from_dict({"verbs": ["get", 3]})

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(ValueError):
            Policy.from_dict(["vms"])  # type: ignore[arg-type]

    def test_to_dict(self) -> None:
        raw = {"resources": ["things"], "resourceNames": ["*", "!thing1"], "verbs": ["*"]}
        assert Policy.from_dict(raw).to_dict() == raw

    def test_frozen(self) -> None:
        policy = Policy.from_dict({"resources": ["vms"]})
        with pytest.raises((AttributeError, TypeError)):
            policy.resources = ("x",)  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Role
# ---------------------------------------------------------------------------


class TestRoleFromDict:
    @pytest.mark.parametrize("key", ["name", "roleName", "role_name"])
    def test_name_keys(self, key: str) -> None:
        role = Role.from_dict({key: "Viewer", "policies": []})
        assert role.name == "Viewer"

    def test_policies_keep_order(self) -> None:
        role = Role.from_dict(
            {
                "name": "Viewer",
                "policies": [
                    {"resources": ["a"], "verbs": ["get"]},
                    {"resources": ["b"], "verbs": ["get"]},
                ],
            }
        )
        assert [p.resources for p in role.policies] == [("a",), ("b",)]

    def test_missing_name_raises(self) -> None:
        with pytest.raises(ValueError, match="name"):
            Role.from_dict({"policies": []})

    def test_policies_not_list_raises(self) -> None:
        with pytest.raises(ValueError, match="policies"):
            Role.from_dict({"name": "x", "policies": {"resources": []}})

    def test_missing_policies_is_empty(self) -> None:
        assert Role.from_dict({"name": "x"}).policies == ()

    def test_to_dict(self) -> None:
        role = Role.from_dict({"name": "x", "policies": [{"resources": ["vms"], "verbs": ["get"]}]})
        assert role.to_dict() == {
            "roleName": "x",
            "policies": [{"resources": ["vms"], "resourceNames": [], "verbs": ["get"]}],
        }


class TestRoleEditing:
    def test_add_policy_returns_new_role(self) -> None:
        role = _bare_role()
        updated = role.add_policy(["experiments"], ["*"], ["get"])
        assert len(role.policies) == 2
        assert len(updated.policies) == 3
        assert updated.policies[-1].raw_resource_names == ["*"]

    def test_with_resource_names_defaults_to_star(self) -> None:
        updated = _bare_role().with_resource_names()
        assert all(p.raw_resource_names == ["*"] for p in updated.policies)

    def test_with_single_empty_name_defaults_to_star(self) -> None:
        updated = _bare_role().with_resource_names("")
        assert all(p.raw_resource_names == ["*"] for p in updated.policies)

    def test_with_resource_names_sets_every_policy(self) -> None:
        updated = _bare_role().with_resource_names("foo_*", "!foo_secret")
        for policy in updated.policies:
            assert policy.raw_resource_names == ["foo_*", "!foo_secret"]

    def test_with_resource_names_rejects_existing(self) -> None:
        role = _bare_role().with_resource_names("foo_*")
        with pytest.raises(ResourceNameExistsError):
            role.with_resource_names("bar")

    def test_with_resource_names_rejects_invalid_glob(self) -> None:
        with pytest.raises(ResourceNameInvalidError):
            _bare_role().with_resource_names("[bad")

    def test_with_added_resource_name(self) -> None:
        role = _bare_role().with_resource_names("foo_*")
        updated = role.with_added_resource_name("bar_inverter")
        for policy in updated.policies:
            assert policy.raw_resource_names == ["foo_*", "bar_inverter"]
        assert role.policies[0].raw_resource_names == ["foo_*"]

    def test_with_added_resource_name_rejects_duplicate(self) -> None:
        role = _bare_role().with_resource_names("foo_*")
        with pytest.raises(ResourceNameExistsError):
            role.with_added_resource_name("foo_*")

    def test_with_added_resource_name_rejects_invalid_glob(self) -> None:
        with pytest.raises(ResourceNameInvalidError):
            _bare_role().with_added_resource_name("!vm[")

    def test_errors_are_value_errors(self) -> None:
        assert issubclass(ResourceNameExistsError, ValueError)
        assert issubclass(ResourceNameInvalidError, ValueError)


class TestInvalidPatterns:
    def test_reports_bad_resources_and_names(self) -> None:
        role = Role.from_dict(
            {
                "name": "x",
                "policies": [
                    {"resources": ["vms", "vms/["], "resourceNames": ["*", "![a"], "verbs": ["get"]},
                ],
            }
        )
        assert role.invalid_patterns() == ["vms/[", "![a"]

    def test_clean_role_has_none(self) -> None:
        assert _bare_role().invalid_patterns() == []


class TestConstructionValidation:
    def test_add_policy_rejects_bare_string_resources(self) -> None:
        with pytest.raises(ValueError, match="list of strings"):
            Role(name="r").add_policy("vms", ["*"], ["get"])

    def test_add_policy_rejects_bare_string_verbs(self) -> None:
        with pytest.raises(ValueError, match="list of strings"):
            Role(name="r").add_policy(["vms"], ["*"], "get")

    def test_build_rejects_bare_string_resource_names(self) -> None:
        with pytest.raises(ValueError, match="list of strings"):
            Policy.build(["vms"], "vm1", ["get"])

    def test_direct_construction_rejects_bare_string(self) -> None:
        with pytest.raises(ValueError):
            Policy(resources="experiments", verbs=("*",))  # type: ignore[arg-type]

    def test_direct_construction_rejects_non_string_entries(self) -> None:
        with pytest.raises(ValueError, match="must be strings"):
            Policy(resources=("vms", 1), verbs=("get",))  # type: ignore[arg-type]

    def test_direct_construction_normalises_lists(self) -> None:
        policy = Policy(resources=["vms"], resource_names=["*", "!vm1"], verbs=["get"])  # type: ignore[arg-type]
        assert policy.resources == ("vms",)
        assert policy.resource_names == (
            ResourceNamePattern("*"),
            ResourceNamePattern("vm1", negate=True),
        )
        assert policy.verbs == ("get",)

    def test_role_rejects_empty_name(self) -> None:
        with pytest.raises(ValueError, match="name"):
            Role(name="")

    def test_role_rejects_non_policy_entries(self) -> None:
        with pytest.raises(ValueError, match="Policy records"):
            Role(name="r", policies=({"resources": ["vms"]},))  # type: ignore[arg-type]

    def test_role_rejects_single_policy(self) -> None:
        with pytest.raises(ValueError, match="list of policies"):
            Role(name="r", policies=Policy.build(["vms"], [], ["get"]))  # type: ignore[arg-type]

    def test_role_normalises_policy_list(self) -> None:
        policy = Policy.build(["vms"], [], ["get"])
        assert Role(name="r", policies=[policy]).policies == (policy,)  # type: ignore[arg-type]
