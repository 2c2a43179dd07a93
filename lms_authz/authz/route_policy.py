from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .capability import is_valid_capability
from .guard import AccessDecision, AccessOutcome, AccessRequirement, evaluate_access
from .principal import MembershipType, Principal, UserType

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_POLICY_PATH = Path(__file__).resolve().parents[1] / "config" / "route_policy.yaml"


class RoutePolicyError(ValueError):
    """Raised when the route policy YAML is invalid."""


class DefaultRouteRule(BaseModel):
    auth_required: bool = True
    redirect_to_dashboard: bool = False


class RouteRule(BaseModel):
    path: str
    public: bool = False
    user_types: list[UserType] = Field(default_factory=list)
    require_all_user_types: bool = False
    permission: str | None = None
    permissions: list[str] = Field(default_factory=list)
    require_all_permissions: bool = False
    require_department: bool = False
    department_types: list[MembershipType] = Field(default_factory=list)
    redirect_to: str | None = None
    redirect_to_dashboard: bool | None = None

    @field_validator("permission")
    @classmethod
    def _check_permission(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_capability(value):
            raise ValueError(f"malformed capability {value!r}")
        return value

    @field_validator("permissions")
    @classmethod
    def _check_permissions(cls, value: list[str]) -> list[str]:
        bad = [p for p in value if not is_valid_capability(p)]
        if bad:
            raise ValueError(f"malformed capabilities {bad}")
        return value


class RoutePolicyModel(BaseModel):
    default: DefaultRouteRule = Field(default_factory=DefaultRouteRule)
    rules: list[RouteRule] = Field(default_factory=list)


def _path_template_to_regex(path_template: str) -> re.Pattern[str]:
    # Convert "/admin/courses/{id}" -> r"^/admin/courses/[^/]+$"
    regex = re.sub(r"\{[^/]+\}", r"[^/]+", path_template)
    return re.compile(rf"^{regex}$")


def _normalize_path(path: str) -> str:
    path = path.split("?", 1)[0].split("#", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path or "/"


@dataclass(frozen=True)
class MatchedRule:
    path_template: str
    requirement: AccessRequirement | None
    """None means the route is public."""


class RoutePolicy:
    """
    Runtime helper around a validated route policy.

    Exact paths win over templates; among templates the first declared match
    wins; unmatched paths fall back to the default rule.
    """

    def __init__(self, model: RoutePolicyModel):
        self.model = model

        self._exact_rules: dict[str, MatchedRule] = {}
        self._compiled_rules: list[tuple[re.Pattern[str], MatchedRule]] = []
        for rule in model.rules:
            matched = MatchedRule(path_template=rule.path, requirement=_requirement(rule, model.default))
            self._exact_rules.setdefault(rule.path, matched)
            self._compiled_rules.append((_path_template_to_regex(rule.path), matched))

        if model.default.auth_required:
            self._default: AccessRequirement | None = AccessRequirement(
                redirect_to_dashboard=model.default.redirect_to_dashboard
            )
        else:
            self._default = None

    def match_rule(self, path: str) -> MatchedRule | None:
        path = _normalize_path(path)
        exact = self._exact_rules.get(path)
        if exact is not None:
            return exact
        for regex, matched in self._compiled_rules:
            if regex.match(path):
                return matched
        return None

    def match(self, path: str) -> AccessRequirement | None:
        """Requirement for ``path``, or None when the path is public."""
        matched = self.match_rule(path)
        if matched is None:
            return self._default
        return matched.requirement

    def evaluate(self, principal: Principal | None, path: str) -> AccessDecision:
        requirement = self.match(path)
        if requirement is None:
            logger.debug("Route is public path=%s", path)
            return AccessDecision(AccessOutcome.ALLOW, reason="public route")
        decision = evaluate_access(principal, requirement)
        logger.debug(
            "Route decision path=%s user=%s outcome=%s reason=%s",
            path,
            principal.user_id if principal is not None else None,
            decision.outcome.value,
            decision.reason,
        )
        return decision


def _requirement(rule: RouteRule, default: DefaultRouteRule) -> AccessRequirement | None:
    if rule.public:
        return None
    return AccessRequirement(
        user_types=frozenset(rule.user_types),
        require_all_user_types=rule.require_all_user_types,
        permission=rule.permission,
        permissions=tuple(rule.permissions),
        require_all_permissions=rule.require_all_permissions,
        require_department=rule.require_department,
        department_types=frozenset(rule.department_types),
        redirect_to=rule.redirect_to,
        redirect_to_dashboard=default.redirect_to_dashboard
        if rule.redirect_to_dashboard is None
        else rule.redirect_to_dashboard,
    )


def load_route_policy(path: Path) -> RoutePolicy:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "routes" not in raw:
        raise RoutePolicyError(f"Missing top-level 'routes' key in config: {path}")

    try:
        model = RoutePolicyModel.model_validate(raw["routes"])
    except ValidationError as exc:
        raise RoutePolicyError(f"Invalid route policy in {path}: {exc}") from exc
    return RoutePolicy(model)
