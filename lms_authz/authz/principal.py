"""Immutable snapshot of an authenticated actor's rights, roles and user types."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
import logging
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)


class UserType(str, Enum):
    """Coarse classification of a principal. A principal may hold several."""

    LEARNER = "learner"
    STAFF = "staff"
    GLOBAL_ADMIN = "global-admin"


class MembershipType(str, Enum):
    STAFF = "staff"
    LEARNER = "learner"


@dataclass(frozen=True)
class DepartmentMembership:
    """Department membership with its role names (used for role checks, not rights)."""

    department_id: str
    roles: frozenset[str] = frozenset()
    department_name: str | None = None
    membership_types: frozenset[MembershipType] = frozenset()


def _frozen_set(values: Iterable[str] | None) -> frozenset[str]:
    if not values:
        return frozenset()
    return frozenset(str(v).strip() for v in values if v is not None and str(v).strip())


def _frozen_mapping(values: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(values))


def normalize_department_id(department_id: str | None) -> str | None:
    if department_id is None:
        return None
    department_id = str(department_id).strip()
    return department_id or None


@dataclass(frozen=True)
class Principal:
    """
    Rights snapshot for one actor.

    Treat instances as values: a department switch or a permission grant
    produces a new Principal (see ``with_active_department``), never an in-place
    update. Build with ``Principal.build`` or ``Principal.from_source`` so that
    iterables are normalized into frozensets and mappings into read-only views.
    """

    user_id: str | None = None
    global_rights: frozenset[str] = frozenset()
    department_rights: Mapping[str, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))
    user_types: frozenset[UserType] = frozenset()
    active_department_id: str | None = None
    is_admin_session_active: bool = False
    authenticated: bool = True
    global_roles: frozenset[str] = frozenset()
    department_memberships: Mapping[str, DepartmentMembership] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def build(
        cls,
        *,
        user_id: str | None = None,
        global_rights: Iterable[str] | None = None,
        department_rights: Mapping[str, Iterable[str]] | None = None,
        user_types: Iterable[UserType | str] | None = None,
        active_department_id: str | None = None,
        is_admin_session_active: bool = False,
        authenticated: bool = True,
        global_roles: Iterable[str] | None = None,
        department_memberships: Iterable[DepartmentMembership] | None = None,
    ) -> Principal:
        dept_rights: dict[str, frozenset[str]] = {}
        for dept_id, rights in (department_rights or {}).items():
            normalized = normalize_department_id(dept_id)
            if normalized is None:
                logger.warning("Ignoring department rights with empty department id")
                continue
            dept_rights[normalized] = dept_rights.get(normalized, frozenset()) | _frozen_set(rights)

        memberships: dict[str, DepartmentMembership] = {}
        for membership in department_memberships or ():
            existing = memberships.get(membership.department_id)
            if existing is not None:
                membership = replace(
                    existing,
                    roles=existing.roles | membership.roles,
                    membership_types=existing.membership_types | membership.membership_types,
                    department_name=existing.department_name or membership.department_name,
                )
            memberships[membership.department_id] = membership

        return cls(
            user_id=user_id,
            global_rights=_frozen_set(global_rights),
            department_rights=_frozen_mapping(dept_rights),
            user_types=parse_user_types(user_types or ()),
            active_department_id=normalize_department_id(active_department_id),
            is_admin_session_active=bool(is_admin_session_active),
            authenticated=bool(authenticated),
            global_roles=_frozen_set(global_roles),
            department_memberships=_frozen_mapping(memberships),
        )

    @classmethod
    def from_source(cls, source: Any) -> Principal:
        """
        Build from a principal-rights source.

        ``source`` is a ``PrincipalSource`` model or any mapping in the same
        camelCase shape (``globalRights``, ``departmentRights``, ...).
        """

        # Local import: schemas depend on pydantic, this module does not.
        from lms_authz.schemas.access import PrincipalSource

        if not isinstance(source, PrincipalSource):
            source = PrincipalSource.model_validate(source)

        return cls.build(
            user_id=source.user_id,
            global_rights=source.global_rights,
            department_rights=source.department_rights,
            user_types=source.user_types,
            active_department_id=source.active_department_id,
            is_admin_session_active=source.is_admin_session_active,
            authenticated=source.authenticated,
            global_roles=source.global_roles,
            department_memberships=[
                DepartmentMembership(
                    department_id=m.department_id,
                    roles=_frozen_set(m.roles),
                    department_name=m.department_name,
                    membership_types=frozenset({MembershipType(m.type)}) if m.type else frozenset(),
                )
                for m in source.department_memberships
            ],
        )

    # ---- Derived views ----------------------------------------------------------------

    def rights_for_department(self, department_id: str | None) -> frozenset[str]:
        department_id = normalize_department_id(department_id)
        if department_id is None:
            return frozenset()
        return self.department_rights.get(department_id, frozenset())

    def roles_for_department(self, department_id: str | None) -> frozenset[str]:
        department_id = normalize_department_id(department_id)
        if department_id is None:
            return frozenset()
        membership = self.department_memberships.get(department_id)
        return membership.roles if membership is not None else frozenset()

    def membership_types(self, department_id: str | None) -> frozenset[MembershipType]:
        """Staff and/or learner membership in ``department_id``; a user may hold both."""
        department_id = normalize_department_id(department_id)
        membership = self.department_memberships.get(department_id) if department_id else None
        return membership.membership_types if membership is not None else frozenset()

    def flag_cache_key(self, active_department_id: str | None = None) -> tuple:
        """
        Hashable key over every input feature flags depend on.

        Two principals with equal keys always derive equal flags.
        """

        department_id = normalize_department_id(active_department_id) or self.active_department_id
        return (
            self.global_rights,
            frozenset(self.department_rights.items()),
            department_id,
            self.user_types,
            self.is_admin_session_active,
            self.authenticated,
        )

    def __hash__(self) -> int:
        return hash(
            (
                self.user_id,
                self.flag_cache_key(),
                self.global_roles,
                frozenset(self.department_memberships.items()),
            )
        )

    # ---- Copy-on-change ---------------------------------------------------------------

    def with_active_department(self, department_id: str | None) -> Principal:
        return replace(self, active_department_id=normalize_department_id(department_id))

    def with_admin_session(self, active: bool) -> Principal:
        return replace(self, is_admin_session_active=bool(active))


def parse_user_types(values: Iterable[UserType | str]) -> frozenset[UserType]:
    """Convert raw user type strings; unknown values are dropped with a warning."""

    result: set[UserType] = set()
    for value in values:
        try:
            result.add(UserType(value))
        except ValueError:
            logger.warning("Ignoring unknown user type %r", value)
    return frozenset(result)


UNAUTHENTICATED = Principal(authenticated=False)
