"""
Protected-route access evaluation.

Given a principal and an AccessRequirement, decide whether to render the
route or where to send the user instead. Checks run in a fixed order and the
first failing check determines the outcome:

1. authentication        -> /login
2. user types            -> dashboard or /unauthorized
3. single permission     -> dashboard or /unauthorized
4. permission list       -> dashboard or /unauthorized
5. department selection  -> /select-department
6. department type       -> dashboard or /unauthorized
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
import logging

from . import resolver
from .principal import MembershipType, Principal, UserType
from .user_types import default_dashboard

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"
SELECT_DEPARTMENT_PATH = "/select-department"


class AccessOutcome(str, Enum):
    ALLOW = "allow"
    LOGIN = "login"
    DASHBOARD = "dashboard"
    UNAUTHORIZED = "unauthorized"
    SELECT_DEPARTMENT = "select_department"


@dataclass(frozen=True)
class AccessRequirement:
    """What a protected route demands. An empty requirement only needs a login."""

    user_types: frozenset[UserType] = frozenset()
    require_all_user_types: bool = False
    permission: str | None = None
    permissions: tuple[str, ...] = ()
    require_all_permissions: bool = False
    require_department: bool = False
    department_types: frozenset[MembershipType] = frozenset()
    redirect_to: str | None = None
    redirect_to_dashboard: bool = False


@dataclass(frozen=True)
class AccessDecision:
    outcome: AccessOutcome
    redirect_to: str | None = None
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return self.outcome is AccessOutcome.ALLOW

    def to_dict(self) -> dict[str, object]:
        return {
            "allowed": self.allowed,
            "outcome": self.outcome.value,
            "redirect_to": self.redirect_to,
            "reason": self.reason,
        }


ALLOW = AccessDecision(AccessOutcome.ALLOW, reason="all checks passed")


def staff_only() -> AccessRequirement:
    return AccessRequirement(user_types=frozenset({UserType.STAFF}), redirect_to_dashboard=True)


def learner_only() -> AccessRequirement:
    return AccessRequirement(user_types=frozenset({UserType.LEARNER}), redirect_to_dashboard=True)


def admin_only() -> AccessRequirement:
    return AccessRequirement(user_types=frozenset({UserType.GLOBAL_ADMIN}), redirect_to_dashboard=True)


def department_route(department_types: Iterable[MembershipType | str] = ()) -> AccessRequirement:
    return AccessRequirement(
        require_department=True,
        department_types=frozenset(MembershipType(t) for t in department_types),
        redirect_to_dashboard=True,
    )


def _deny(principal: Principal, requirement: AccessRequirement, reason: str) -> AccessDecision:
    if requirement.redirect_to_dashboard:
        dashboard = default_dashboard(principal)
        if dashboard is not None:
            return AccessDecision(AccessOutcome.DASHBOARD, f"/{dashboard.value}/dashboard", reason)
    return AccessDecision(AccessOutcome.UNAUTHORIZED, requirement.redirect_to or UNAUTHORIZED_PATH, reason)


def evaluate_access(principal: Principal | None, requirement: AccessRequirement) -> AccessDecision:
    if principal is None or not principal.authenticated:
        return AccessDecision(AccessOutcome.LOGIN, LOGIN_PATH, "authentication required")

    department_id = principal.active_department_id

    if requirement.user_types:
        held = requirement.user_types & principal.user_types
        ok = held == requirement.user_types if requirement.require_all_user_types else bool(held)
        if not ok:
            logger.debug(
                "Access denied user=%s required_user_types=%s user_types=%s",
                principal.user_id,
                sorted(t.value for t in requirement.user_types),
                sorted(t.value for t in principal.user_types),
            )
            return _deny(principal, requirement, "missing required user type")

    if requirement.permission and not resolver.has_permission(principal, requirement.permission, department_id):
        return _deny(principal, requirement, f"missing permission {requirement.permission}")

    if requirement.permissions:
        check = resolver.has_all_permissions if requirement.require_all_permissions else resolver.has_any_permission
        if not check(principal, requirement.permissions, department_id):
            return _deny(principal, requirement, "missing required permissions")

    if requirement.require_department:
        if department_id is None:
            return AccessDecision(AccessOutcome.SELECT_DEPARTMENT, SELECT_DEPARTMENT_PATH, "department required")
        if requirement.department_types and not (
            requirement.department_types & principal.membership_types(department_id)
        ):
            return _deny(principal, requirement, "no matching department membership")

    return ALLOW
