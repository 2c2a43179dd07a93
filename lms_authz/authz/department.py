"""Department-scoped view over a Principal."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging

from . import resolver
from .principal import MembershipType, Principal, normalize_department_id

logger = logging.getLogger(__name__)

COURSE_CREATE = "content:courses:create"
COURSE_EDIT = "content:courses:edit"
COURSE_DELETE = "content:courses:delete"
COURSE_READ = "content:courses:read"


@dataclass(frozen=True)
class DepartmentAccessSummary:
    """Rights, roles and common course actions for one department."""

    department_id: str | None
    department_name: str | None
    membership_types: tuple[MembershipType, ...]
    permissions: tuple[str, ...]
    roles: tuple[str, ...]
    can_create: bool
    can_edit: bool
    can_delete: bool
    can_view: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "department_id": self.department_id,
            "department_name": self.department_name,
            "membership_types": [t.value for t in self.membership_types],
            "permissions": list(self.permissions),
            "roles": list(self.roles),
            "can_create": self.can_create,
            "can_edit": self.can_edit,
            "can_delete": self.can_delete,
            "can_view": self.can_view,
        }


_EMPTY_SUMMARY = DepartmentAccessSummary(
    department_id=None,
    department_name=None,
    membership_types=(),
    permissions=(),
    roles=(),
    can_create=False,
    can_edit=False,
    can_delete=False,
    can_view=False,
)


class DepartmentScope:
    """
    Checks bound to one department.

    The department defaults to the principal's active department. With no
    department selected, permission checks fall back to global rights only
    and department role checks see global roles only.

    Switching departments returns a new scope over a new Principal value;
    an existing scope never changes what it answers.
    """

    __slots__ = ("_principal", "_department_id")

    def __init__(self, principal: Principal | None, department_id: str | None = None) -> None:
        self._principal = principal
        if department_id is None and principal is not None:
            department_id = principal.active_department_id
        self._department_id = normalize_department_id(department_id)

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def department_id(self) -> str | None:
        return self._department_id

    @property
    def has_department_selected(self) -> bool:
        return self._department_id is not None

    @property
    def membership_types(self) -> frozenset[MembershipType]:
        if self._principal is None:
            return frozenset()
        return self._principal.membership_types(self._department_id)

    @property
    def is_staff_department(self) -> bool:
        return MembershipType.STAFF in self.membership_types

    @property
    def is_learner_department(self) -> bool:
        return MembershipType.LEARNER in self.membership_types

    # ---- Checks -----------------------------------------------------------------------

    def has_permission(self, capability: str) -> bool:
        return resolver.has_permission(self._principal, capability, self._department_id)

    def has_any_permission(self, capabilities: Sequence[str]) -> bool:
        return resolver.has_any_permission(self._principal, capabilities, self._department_id)

    def has_all_permissions(self, capabilities: Sequence[str]) -> bool:
        return resolver.has_all_permissions(self._principal, capabilities, self._department_id)

    def has_role(self, role: str) -> bool:
        return resolver.has_role(self._principal, role, self._department_id)

    # ---- Switching --------------------------------------------------------------------

    def switch(self, department_id: str | None) -> DepartmentScope:
        if self._principal is None:
            return DepartmentScope(None, department_id)
        logger.debug(
            "Switching department user=%s from=%s to=%s",
            self._principal.user_id,
            self._department_id,
            department_id,
        )
        return DepartmentScope(self._principal.with_active_department(department_id))

    def clear(self) -> DepartmentScope:
        return self.switch(None)

    # ---- Summary ----------------------------------------------------------------------

    def summary(self) -> DepartmentAccessSummary:
        if self._principal is None or self._department_id is None:
            return _EMPTY_SUMMARY

        membership = self._principal.department_memberships.get(self._department_id)
        return DepartmentAccessSummary(
            department_id=self._department_id,
            department_name=membership.department_name if membership else None,
            membership_types=tuple(sorted(membership.membership_types, key=lambda t: t.value)) if membership else (),
            permissions=tuple(sorted(self._principal.rights_for_department(self._department_id))),
            roles=tuple(sorted(self._principal.roles_for_department(self._department_id))),
            can_create=self.has_permission(COURSE_CREATE),
            can_edit=self.has_permission(COURSE_EDIT),
            can_delete=self.has_permission(COURSE_DELETE),
            can_view=self.has_permission(COURSE_READ),
        )

    def __repr__(self) -> str:
        user_id = self._principal.user_id if self._principal is not None else None
        return f"DepartmentScope(user_id={user_id!r}, department_id={self._department_id!r})"
