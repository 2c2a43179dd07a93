from __future__ import annotations

from fastapi import APIRouter, Depends

from lms_authz.api.dependencies import get_flag_deriver, get_route_policy, to_principal
from lms_authz.authz import resolver
from lms_authz.authz.department import DepartmentScope
from lms_authz.authz.feature_flags import FeatureFlagDeriver
from lms_authz.authz.route_policy import RoutePolicy
from lms_authz.schemas.access import (
    AccessDecisionOut,
    CheckOut,
    DepartmentSummaryIn,
    DepartmentSummaryOut,
    FeatureFlagsIn,
    FeatureFlagsOut,
    PermissionCheckIn,
    PermissionListCheckIn,
    RoleCheckIn,
    RouteEvaluateIn,
)

router = APIRouter(prefix="/access", tags=["access"])


@router.post("/permissions/check", response_model=CheckOut)
def check_permission(body: PermissionCheckIn) -> CheckOut:
    principal = to_principal(body.principal)
    return CheckOut(allowed=resolver.has_permission(principal, body.capability, body.department_id))


@router.post("/permissions/any", response_model=CheckOut)
def check_any_permission(body: PermissionListCheckIn) -> CheckOut:
    principal = to_principal(body.principal)
    return CheckOut(allowed=resolver.has_any_permission(principal, body.capabilities, body.department_id))


@router.post("/permissions/all", response_model=CheckOut)
def check_all_permissions(body: PermissionListCheckIn) -> CheckOut:
    principal = to_principal(body.principal)
    return CheckOut(allowed=resolver.has_all_permissions(principal, body.capabilities, body.department_id))


@router.post("/roles/check", response_model=CheckOut)
def check_role(body: RoleCheckIn) -> CheckOut:
    principal = to_principal(body.principal)
    return CheckOut(allowed=resolver.has_role(principal, body.role, body.department_id))


@router.post("/feature-flags", response_model=FeatureFlagsOut)
def feature_flags(
    body: FeatureFlagsIn,
    deriver: FeatureFlagDeriver = Depends(get_flag_deriver),
) -> FeatureFlagsOut:
    flags = deriver.derive(to_principal(body.principal), body.active_department_id)
    return FeatureFlagsOut(flags=flags.to_dict(), granted=flags.granted())


@router.post("/departments/summary", response_model=DepartmentSummaryOut)
def department_summary(body: DepartmentSummaryIn) -> DepartmentSummaryOut:
    summary = DepartmentScope(to_principal(body.principal), body.department_id).summary()
    return DepartmentSummaryOut(**summary.to_dict())


@router.post("/routes/evaluate", response_model=AccessDecisionOut)
def evaluate_route(
    body: RouteEvaluateIn,
    policy: RoutePolicy = Depends(get_route_policy),
) -> AccessDecisionOut:
    decision = policy.evaluate(to_principal(body.principal), body.path)
    return AccessDecisionOut(**decision.to_dict())
