"""Tests for permission resolution (global, wildcard, department-scoped)."""

import pytest

from lms_authz.authz.principal import UNAUTHENTICATED, DepartmentMembership, Principal
from lms_authz.authz.resolver import (
    PermissionResolver,
    has_all_permissions,
    has_any_permission,
    has_permission,
    has_role,
)


# ---- Global checks ----------------------------------------------------------------------


@pytest.mark.parametrize(
    "capability",
    ["content:courses:read", "system:settings:manage", "anything:at:all", "not-a-capability", "", "a:b:c:d"],
)
def test_super_admin_grants_everything(make_principal, capability):
    principal = make_principal(global_rights=["system:*"])
    assert has_permission(principal, capability) is True
    assert has_permission(principal, capability, "any-dept") is True


def test_direct_match(make_principal):
    principal = make_principal(global_rights=["content:courses:read", "content:courses:create"])
    assert has_permission(principal, "content:courses:read")
    assert has_permission(principal, "content:courses:create")
    assert not has_permission(principal, "content:courses:delete")


def test_domain_wildcard(make_principal):
    principal = make_principal(global_rights=["content:*"])
    assert has_permission(principal, "content:courses:read")
    assert has_permission(principal, "content:lessons:manage")
    assert not has_permission(principal, "grades:own:edit")


def test_other_domain_wildcard_does_not_match(make_principal):
    principal = make_principal(global_rights=["reports:*"])
    assert not has_permission(principal, "content:courses:read")


def test_mixed_rights(make_principal):
    principal = make_principal(global_rights=["content:*", "grades:own:edit", "reports:view:own"])
    assert has_permission(principal, "content:courses:read")
    assert has_permission(principal, "grades:own:edit")
    assert has_permission(principal, "reports:view:own")
    assert not has_permission(principal, "grades:all:edit")


def test_malformed_capability_is_denied_not_raised(make_principal):
    principal = make_principal(global_rights=["content:*", "garbage"])
    assert has_permission(principal, "content") is False
    assert has_permission(principal, "garbage") is False
    assert has_permission(principal, "content:*:read") is False


def test_mixed_case_capability_matches_exactly(make_principal):
    principal = make_principal(global_rights=["reports:CustomReport:read"])
    assert has_permission(principal, "reports:CustomReport:read") is True
    assert has_permission(principal, "reports:customreport:read") is False


def test_capability_with_spaces_in_department(make_principal):
    principal = make_principal(department_rights={"d": ["content:course list:read"]})
    assert has_permission(principal, "content:course list:read", "d") is True
    assert has_permission(principal, "content:course list:read") is False


def test_scenario_read_only_courses(make_principal):
    principal = make_principal(global_rights=["content:courses:read"])
    assert has_permission(principal, "content:courses:read") is True
    assert has_permission(principal, "content:courses:manage") is False


# ---- Department scoping -----------------------------------------------------------------


def test_department_rights_do_not_leak(make_principal):
    principal = make_principal(department_rights={"A": ["x:y:z"]})
    assert has_permission(principal, "x:y:z", "A") is True
    assert has_permission(principal, "x:y:z", "B") is False
    assert has_permission(principal, "x:y:z") is False


def test_department_wildcard(make_principal):
    principal = make_principal(department_rights={"dept-1": ["content:*"]}, active_department_id="dept-1")
    assert has_permission(principal, "content:lessons:manage", "dept-1") is True
    assert has_permission(principal, "content:lessons:manage", "dept-2") is False


def test_departments_have_independent_rights(staff_in_two_departments):
    p = staff_in_two_departments
    assert has_permission(p, "content:courses:create", "dept-1")
    assert has_permission(p, "content:courses:read", "dept-2")
    assert not has_permission(p, "content:courses:create", "dept-2")
    assert not has_permission(p, "content:courses:read", "dept-999")


@pytest.mark.parametrize("department_id", [None, "", "A", "B"])
def test_global_rights_are_department_independent(make_principal, department_id):
    principal = make_principal(global_rights=["x:y:z"], department_rights={"A": ["q:r:s"]})
    assert has_permission(principal, "x:y:z", department_id) is True


def test_empty_department_id_checks_global_only(make_principal):
    principal = make_principal(department_rights={"dept-1": ["content:courses:read"]})
    assert has_permission(principal, "content:courses:read", "") is False


def test_department_super_admin_is_only_a_system_wildcard(make_principal):
    principal = make_principal(department_rights={"dept-1": ["system:*"]})
    assert has_permission(principal, "system:settings:manage", "dept-1") is True
    assert has_permission(principal, "content:courses:read", "dept-1") is False


# ---- Absent / unauthenticated principal -------------------------------------------------


def test_absent_principal_has_no_permissions():
    assert has_permission(None, "content:courses:read") is False
    assert has_any_permission(None, ["content:courses:read"]) is False
    assert has_all_permissions(None, ["content:courses:read"]) is False
    assert has_all_permissions(None, []) is False
    assert has_role(None, "instructor") is False


def test_unauthenticated_principal_has_no_permissions():
    principal = Principal.build(global_rights=["system:*"], authenticated=False)
    assert has_permission(principal, "content:courses:read") is False
    assert has_permission(UNAUTHENTICATED, "content:courses:read") is False


# ---- any / all --------------------------------------------------------------------------


def test_any_and_all_with_empty_lists(make_principal):
    for principal in (make_principal(), make_principal(global_rights=["system:*"])):
        assert has_any_permission(principal, []) is False
        assert has_all_permissions(principal, []) is True


def test_any_permission(make_principal):
    principal = make_principal(global_rights=["content:courses:read"])
    assert has_any_permission(principal, ["content:courses:create", "content:courses:read"])
    assert not has_any_permission(principal, ["content:courses:create", "content:courses:delete"])


def test_all_permissions(make_principal):
    principal = make_principal(global_rights=["a:b:c"])
    assert has_all_permissions(principal, ["a:b:c"]) is True
    assert has_all_permissions(principal, ["a:b:c", "d:e:f"]) is False


def test_any_and_all_with_department(staff_in_two_departments):
    p = staff_in_two_departments
    caps = ["content:courses:read", "content:courses:create"]
    assert has_all_permissions(p, caps, "dept-1") is True
    assert has_all_permissions(p, caps, "dept-2") is False
    assert has_any_permission(p, caps, "dept-2") is True
    assert has_any_permission(p, caps) is False


# ---- Roles ------------------------------------------------------------------------------


def test_has_role_in_department(staff_in_two_departments):
    p = staff_in_two_departments
    assert has_role(p, "instructor", "dept-1") is True
    assert has_role(p, "content-admin", "dept-1") is False
    assert has_role(p, "instructor", "dept-3") is False


def test_has_role_without_department_uses_global_roles(make_principal):
    principal = make_principal(
        global_roles=["system-admin"],
        department_memberships=[DepartmentMembership("dept-1", frozenset({"instructor"}))],
    )
    assert has_role(principal, "instructor") is False
    assert has_role(principal, "system-admin") is True
    assert has_role(principal, "system-admin", "dept-1") is True


def test_has_role_false_when_nothing_supplied(make_principal):
    assert has_role(make_principal(), "instructor") is False
    assert has_role(make_principal(), "") is False


def test_roles_are_not_derived_from_rights(make_principal):
    principal = make_principal(global_rights=["system:*"])
    assert has_role(principal, "admin") is False


# ---- Object form ------------------------------------------------------------------------


def test_permission_resolver_object(staff_in_two_departments):
    resolver = PermissionResolver(staff_in_two_departments)
    assert resolver.principal is staff_in_two_departments
    assert resolver.has_permission("content:courses:create", "dept-1")
    assert resolver.has_any_permission(["content:courses:create"], "dept-1")
    assert resolver.has_all_permissions([], "dept-2")
    assert resolver.has_role("instructor", "dept-2")
    assert resolver.permission_map(["content:courses:read", "content:courses:create"], "dept-2") == {
        "content:courses:read": True,
        "content:courses:create": False,
    }
