from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys (the front end's wire shape); snake_case also accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Principal-rights source --------------------------------------------------------------


class DepartmentMembershipIn(CamelModel):
    department_id: str
    department_name: str | None = None
    roles: list[str] = Field(default_factory=list)
    type: Literal["staff", "learner"] | None = None


class PrincipalSource(CamelModel):
    """
    Rights snapshot as supplied by the session provider.

    Unknown keys are ignored so that full login / my-roles payloads can be
    passed through unchanged.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    user_id: str | None = None
    global_rights: list[str] = Field(default_factory=list)
    department_rights: dict[str, list[str]] = Field(default_factory=dict)
    user_types: list[str] = Field(default_factory=list)
    active_department_id: str | None = None
    is_admin_session_active: bool = False
    authenticated: bool = True
    global_roles: list[str] = Field(default_factory=list)
    department_memberships: list[DepartmentMembershipIn] = Field(default_factory=list)


# ---- Requests ----------------------------------------------------------------------------


class PermissionCheckIn(CamelModel):
    principal: PrincipalSource | None = None
    capability: str
    department_id: str | None = None


class PermissionListCheckIn(CamelModel):
    principal: PrincipalSource | None = None
    capabilities: list[str] = Field(default_factory=list)
    department_id: str | None = None


class RoleCheckIn(CamelModel):
    principal: PrincipalSource | None = None
    role: str
    department_id: str | None = None


class FeatureFlagsIn(CamelModel):
    principal: PrincipalSource | None = None
    active_department_id: str | None = None


class DepartmentSummaryIn(CamelModel):
    principal: PrincipalSource | None = None
    department_id: str | None = None


class RouteEvaluateIn(CamelModel):
    principal: PrincipalSource | None = None
    path: str


# ---- Responses ---------------------------------------------------------------------------


class CheckOut(CamelModel):
    allowed: bool


class FeatureFlagsOut(CamelModel):
    flags: dict[str, bool]
    granted: list[str]


class DepartmentSummaryOut(CamelModel):
    department_id: str | None
    department_name: str | None
    membership_types: list[str]
    permissions: list[str]
    roles: list[str]
    can_create: bool
    can_edit: bool
    can_delete: bool
    can_view: bool


class AccessDecisionOut(CamelModel):
    allowed: bool
    outcome: str
    redirect_to: str | None
    reason: str
