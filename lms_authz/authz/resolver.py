"""
Permission resolution over a Principal snapshot.

Pure functions, no FastAPI dependency. Answer:
    has_permission(principal, "content:courses:create", department_id)?
    has_any_permission / has_all_permissions over a list
    has_role(principal, "instructor", department_id)?

Resolution order for ``has_permission``:
1. Absent or unauthenticated principal -> deny.
2. ``system:*`` in global rights -> allow anything (super-admin override).
3. Malformed capability -> deny.
4. Any global right grants the capability (exact or wildcard) -> allow.
5. With a department id: the same checks against that department's rights.
6. Deny.

Global rights are consulted first and independently of department rights, so
a department can only add access, never take away a global grant.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
import logging

from .capability import SUPER_ADMIN, Capability, parse_capability
from .principal import Principal

logger = logging.getLogger(__name__)


def _rights_grant(rights: Collection[str], requested: Capability) -> bool:
    if str(requested) in rights:
        return True
    for raw in rights:
        held = parse_capability(raw)
        if held is None:
            logger.debug("Ignoring malformed held right %r", raw)
            continue
        if held.grants(requested):
            return True
    return False


def _is_present(principal: Principal | None) -> bool:
    return principal is not None and principal.authenticated


def has_permission(
    principal: Principal | None,
    capability: str,
    department_id: str | None = None,
) -> bool:
    if not _is_present(principal):
        return False

    if SUPER_ADMIN in principal.global_rights:
        return True

    requested = parse_capability(capability)
    if requested is None:
        logger.debug("Malformed capability %r treated as non-matching", capability)
        return False

    if _rights_grant(principal.global_rights, requested):
        return True

    dept_rights = principal.rights_for_department(department_id)
    if dept_rights and _rights_grant(dept_rights, requested):
        return True

    logger.debug(
        "Permission denied user=%s capability=%s department=%s",
        principal.user_id,
        capability,
        department_id,
    )
    return False


def has_any_permission(
    principal: Principal | None,
    capabilities: Sequence[str],
    department_id: str | None = None,
) -> bool:
    """True if at least one capability is granted. An empty list is never satisfied."""
    return any(has_permission(principal, c, department_id) for c in capabilities)


def has_all_permissions(
    principal: Principal | None,
    capabilities: Sequence[str],
    department_id: str | None = None,
) -> bool:
    """
    True if every capability is granted.

    An empty list is satisfied by any present principal, mirroring
    ``has_any_permission([]) is False``. An absent principal has no
    permissions at all, so it fails even the empty list.
    """

    if not _is_present(principal):
        return False
    return all(has_permission(principal, c, department_id) for c in capabilities)


def has_role(
    principal: Principal | None,
    role: str,
    department_id: str | None = None,
) -> bool:
    """
    Literal role-name membership.

    Global roles hold in every department; department roles only in their own
    department. Roles are looked up by name and never derived from rights.
    """

    if not _is_present(principal) or not role:
        return False
    if role in principal.global_roles:
        return True
    return role in principal.roles_for_department(department_id)


class PermissionResolver:
    """
    Object form of the checks above, bound to a single principal.

    Usage:
        resolver = PermissionResolver(principal)
        resolver.has_permission("content:courses:create", "dept-1")
    """

    def __init__(self, principal: Principal | None) -> None:
        self._principal = principal

    @property
    def principal(self) -> Principal | None:
        return self._principal

    def has_permission(self, capability: str, department_id: str | None = None) -> bool:
        return has_permission(self._principal, capability, department_id)

    def has_any_permission(self, capabilities: Sequence[str], department_id: str | None = None) -> bool:
        return has_any_permission(self._principal, capabilities, department_id)

    def has_all_permissions(self, capabilities: Sequence[str], department_id: str | None = None) -> bool:
        return has_all_permissions(self._principal, capabilities, department_id)

    def has_role(self, role: str, department_id: str | None = None) -> bool:
        return has_role(self._principal, role, department_id)

    def permission_map(
        self,
        capabilities: Iterable[str],
        department_id: str | None = None,
    ) -> dict[str, bool]:
        """Per-capability results, e.g. for rendering several action buttons at once."""
        return {c: self.has_permission(c, department_id) for c in capabilities}
