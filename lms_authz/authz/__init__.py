"""
Permission and feature-access resolution for the LMS.

This package has no dependency on the HTTP layer (lms_authz.main, routers).
Build a Principal, then ask:
    has_permission(principal, "content:courses:create", "dept-1")
    derive_feature_flags(principal).can_manage_courses
"""

from .capability import SUPER_ADMIN, Capability, is_valid_capability, parse_capability
from .department import DepartmentAccessSummary, DepartmentScope
from .feature_flags import (
    FeatureFlagDeriver,
    FeatureFlags,
    FlagConfigError,
    derive_feature_flags,
    load_flag_definitions,
)
from .guard import AccessDecision, AccessOutcome, AccessRequirement, evaluate_access
from .principal import UNAUTHENTICATED, DepartmentMembership, MembershipType, Principal, UserType
from .resolver import PermissionResolver, has_all_permissions, has_any_permission, has_permission, has_role
from .route_policy import RoutePolicy, RoutePolicyError, load_route_policy
from .user_types import DashboardType, classify, default_dashboard, primary_user_type

__all__ = [
    "SUPER_ADMIN",
    "Capability",
    "is_valid_capability",
    "parse_capability",
    "DepartmentAccessSummary",
    "DepartmentScope",
    "FeatureFlagDeriver",
    "FeatureFlags",
    "FlagConfigError",
    "derive_feature_flags",
    "load_flag_definitions",
    "AccessDecision",
    "AccessOutcome",
    "AccessRequirement",
    "evaluate_access",
    "UNAUTHENTICATED",
    "DepartmentMembership",
    "MembershipType",
    "Principal",
    "UserType",
    "PermissionResolver",
    "has_all_permissions",
    "has_any_permission",
    "has_permission",
    "has_role",
    "RoutePolicy",
    "RoutePolicyError",
    "load_route_policy",
    "DashboardType",
    "classify",
    "default_dashboard",
    "primary_user_type",
]
