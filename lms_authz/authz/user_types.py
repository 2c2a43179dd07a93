"""User-type classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .principal import Principal, UserType


class DashboardType(str, Enum):
    LEARNER = "learner"
    STAFF = "staff"
    ADMIN = "admin"


# Highest priority first.
_PRIORITY: tuple[UserType, ...] = (UserType.GLOBAL_ADMIN, UserType.STAFF, UserType.LEARNER)

_DASHBOARDS: dict[UserType, DashboardType] = {
    UserType.GLOBAL_ADMIN: DashboardType.ADMIN,
    UserType.STAFF: DashboardType.STAFF,
    UserType.LEARNER: DashboardType.LEARNER,
}


def has_user_type(principal: Principal | None, user_type: UserType | str) -> bool:
    if principal is None or not principal.authenticated:
        return False
    try:
        return UserType(user_type) in principal.user_types
    except ValueError:
        return False


def is_learner(principal: Principal | None) -> bool:
    return has_user_type(principal, UserType.LEARNER)


def is_staff(principal: Principal | None) -> bool:
    return has_user_type(principal, UserType.STAFF)


def is_global_admin(principal: Principal | None) -> bool:
    return has_user_type(principal, UserType.GLOBAL_ADMIN)


def primary_user_type(principal: Principal | None) -> UserType | None:
    """Most privileged user type held: global-admin, then staff, then learner."""
    for user_type in _PRIORITY:
        if has_user_type(principal, user_type):
            return user_type
    return None


def default_dashboard(principal: Principal | None) -> DashboardType | None:
    primary = primary_user_type(principal)
    return _DASHBOARDS[primary] if primary is not None else None


@dataclass(frozen=True)
class UserTypeSummary:
    is_learner: bool
    is_staff: bool
    is_global_admin: bool
    primary_type: UserType | None
    all_types: tuple[UserType, ...]

    def has_type(self, user_type: UserType | str) -> bool:
        try:
            return UserType(user_type) in self.all_types
        except ValueError:
            return False


def classify(principal: Principal | None) -> UserTypeSummary:
    all_types = tuple(t for t in _PRIORITY if has_user_type(principal, t))
    return UserTypeSummary(
        is_learner=UserType.LEARNER in all_types,
        is_staff=UserType.STAFF in all_types,
        is_global_admin=UserType.GLOBAL_ADMIN in all_types,
        primary_type=all_types[0] if all_types else None,
        all_types=all_types,
    )
