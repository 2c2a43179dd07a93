from __future__ import annotations

from fastapi import Request

from lms_authz.authz.feature_flags import FeatureFlagDeriver
from lms_authz.authz.principal import Principal
from lms_authz.authz.route_policy import RoutePolicy
from lms_authz.schemas.access import PrincipalSource


def get_flag_deriver(request: Request) -> FeatureFlagDeriver:
    deriver = getattr(request.app.state, "flag_deriver", None)
    if deriver is None:
        raise RuntimeError("Feature flag table not loaded. Did app startup run?")
    return deriver


def get_route_policy(request: Request) -> RoutePolicy:
    policy = getattr(request.app.state, "route_policy", None)
    if policy is None:
        raise RuntimeError("Route policy not loaded. Did app startup run?")
    return policy


def to_principal(source: PrincipalSource | None) -> Principal | None:
    """A missing principal in the request body means "no session": every check is False."""
    if source is None:
        return None
    return Principal.from_source(source)
