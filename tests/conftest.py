"""
Pytest fixtures for the test suite.

Principals are plain immutable values, so most tests build them inline with
``make_principal``. API tests use a TestClient entered as a context manager so
the app lifespan loads the bundled flag table and route policy.
"""
from __future__ import annotations

import pytest

from lms_authz.authz.feature_flags import DEFAULT_FLAGS_PATH, FeatureFlagDeriver
from lms_authz.authz.principal import DepartmentMembership, MembershipType, Principal
from lms_authz.authz.route_policy import DEFAULT_ROUTE_POLICY_PATH, load_route_policy


@pytest.fixture
def make_principal():
    """Factory: make_principal(global_rights=[...], department_rights={...}, ...)."""

    def _make(**kwargs) -> Principal:
        kwargs.setdefault("user_id", "user-1")
        return Principal.build(**kwargs)

    return _make


@pytest.fixture
def deriver():
    """Fresh deriver over the bundled flag table (own cache per test)."""
    return FeatureFlagDeriver.from_yaml(DEFAULT_FLAGS_PATH)


@pytest.fixture
def route_policy():
    return load_route_policy(DEFAULT_ROUTE_POLICY_PATH)


@pytest.fixture
def staff_in_two_departments(make_principal):
    return make_principal(
        user_types=["staff"],
        department_rights={
            "dept-1": ["content:courses:read", "content:courses:create"],
            "dept-2": ["content:courses:read"],
        },
        department_memberships=[
            DepartmentMembership("dept-1", frozenset({"instructor"}), "Department 1", frozenset({MembershipType.STAFF})),
            DepartmentMembership("dept-2", frozenset({"instructor"}), "Department 2", frozenset({MembershipType.STAFF})),
        ],
    )


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from lms_authz.main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
